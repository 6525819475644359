"""Models module."""

from .common import CamelModel, DocumentId, envelope
from .user import (
    RegisterRequest, LoginRequest, GoogleLoginRequest, VerifyIdentityRequest,
    ResetPasswordRequest, Credential, CredentialInDB, LoginResponse, TokenData
)
from .profile import (
    PersonalDetails, BodyMeasurements, Illness, MedicalData, BloodTestInfo,
    UserProfile, ProfileView, ProfileSaveRequest, BloodTestUpdateRequest
)
from .product import Product, ProductLookup, BatchDetailsRequest
from .history import (
    ScanHistoryCreate, ScanHistory, HealthSummary, ReceiptHistoryCreate,
    ReceiptHistory, BloodTestRecord
)
from .consult import (
    ProductDescriptor, ConsultRequest, CartConsultRequest, Alternative,
    ProductVerdict, CartItemVerdict, CartVerdict, ConsultProfile
)
from .ocr import ReceiptScanResult, BloodTestAnalysis

__all__ = [
    'CamelModel', 'DocumentId', 'envelope',
    'RegisterRequest', 'LoginRequest', 'GoogleLoginRequest', 'VerifyIdentityRequest',
    'ResetPasswordRequest', 'Credential', 'CredentialInDB', 'LoginResponse', 'TokenData',
    'PersonalDetails', 'BodyMeasurements', 'Illness', 'MedicalData', 'BloodTestInfo',
    'UserProfile', 'ProfileView', 'ProfileSaveRequest', 'BloodTestUpdateRequest',
    'Product', 'ProductLookup', 'BatchDetailsRequest',
    'ScanHistoryCreate', 'ScanHistory', 'HealthSummary', 'ReceiptHistoryCreate',
    'ReceiptHistory', 'BloodTestRecord',
    'ProductDescriptor', 'ConsultRequest', 'CartConsultRequest', 'Alternative',
    'ProductVerdict', 'CartItemVerdict', 'CartVerdict', 'ConsultProfile',
    'ReceiptScanResult', 'BloodTestAnalysis',
]
