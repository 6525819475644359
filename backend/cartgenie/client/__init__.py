"""Client library - backend calls, device cache, profile wizard and scan flows."""

from .api_client import CartGenieClient
from .device_cache import DeviceCache
from .scan_flows import ProductScanResult, ReceiptAnalysis, ScanFlows
from .wizard import DIAGNOSIS_TO_ILLNESS, ProfileWizard, illnesses_from_diagnosis

__all__ = [
    'CartGenieClient',
    'DeviceCache',
    'ProductScanResult',
    'ReceiptAnalysis',
    'ScanFlows',
    'DIAGNOSIS_TO_ILLNESS',
    'ProfileWizard',
    'illnesses_from_diagnosis',
]
