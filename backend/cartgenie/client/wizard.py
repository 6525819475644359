"""
Profile wizard - collects the health profile step by step and saves it once.

Steps run in order: personal details, body measurements, allergies, then
either a blood-test upload or a manual illness selection, and finally
``finish()``. Each step validates its own input and merges its fields into
the accumulated payload.
"""

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Union

from ..core.body_metrics import (
    BMI_DIGITS,
    HEIGHT_RANGE,
    WAIST_RANGE,
    WHTR_DIGITS,
    WEIGHT_RANGE,
    bmi_status,
    calculate_age,
    calculate_bmi,
    calculate_whtr,
    normalize_numeric_input,
    to_number,
    whtr_status,
)
from ..core.exceptions import WizardValidationError
from .api_client import CartGenieClient
from .device_cache import DeviceCache

logger = logging.getLogger(__name__)

PERSONAL = "personal"
BODY = "body"
ALLERGIES = "allergies"
MEDICAL = "medical"
STEPS = (PERSONAL, BODY, ALLERGIES, MEDICAL)

SEX_VALUES = ("male", "female")

# Blood-test diagnosis label -> illness name used by the selection list
DIAGNOSIS_TO_ILLNESS = {
    "High Cholesterol": "High cholesterol",
    "Type 2 Diabetes": "Diabetes Type 2",
    "High Blood Pressure (Sodium)": "High blood pressure (Hypertension)",
}

Number = Union[str, int, float, None]


def illnesses_from_diagnosis(diagnosis: List[str]) -> List[str]:
    """Map diagnosis labels to illness names, in the mapping's order."""
    return [illness for label, illness in DIAGNOSIS_TO_ILLNESS.items() if label in diagnosis]


def _measurement(value: Number, name: str, unit: str, valid_range, errors: Dict[str, str]) -> Optional[float]:
    if isinstance(value, str):
        value = normalize_numeric_input(value)
    number = to_number(value)
    if not number:
        errors[name] = f"{name.capitalize()} is required"
        return None
    if not valid_range.contains(number):
        errors[name] = f"{name.capitalize()} must be {valid_range.minimum:g}-{valid_range.maximum:g} {unit}"
        return None
    return number


class ProfileWizard:
    """
    Accumulates wizard fields for one user.

    Nothing reaches the backend before ``finish()``, which performs a
    single ``/userdata/save`` and caches the saved profile on the device.
    """

    def __init__(self, api: CartGenieClient, cache: DeviceCache, username: str):
        self.api = api
        self.cache = cache
        self.username = username
        self.payload: Dict[str, Any] = {"username": username}
        self.completed: List[str] = []
        self.metrics: Dict[str, Optional[str]] = {}
        self.diagnosis: Optional[List[str]] = None

    def _require(self, step: str) -> None:
        missing = [s for s in STEPS[:STEPS.index(step)] if s not in self.completed]
        if missing:
            raise WizardValidationError({"step": f"Complete the {missing[0]} step first"})

    def _complete(self, step: str) -> None:
        if step not in self.completed:
            self.completed.append(step)

    def personal_details(
        self,
        first_name: str,
        last_name: str,
        birth_date: Optional[Union[date, datetime]],
        sex: str
    ) -> Dict[str, Any]:
        errors: Dict[str, str] = {}
        if not (first_name or "").strip():
            errors["firstName"] = "First name is required"
        if not (last_name or "").strip():
            errors["lastName"] = "Last name is required"
        if birth_date is None:
            errors["birthDate"] = "Birth date is required"
        if (sex or "").lower() not in SEX_VALUES:
            errors["sex"] = "Sex is required"
        if errors:
            raise WizardValidationError(errors)

        fields = {
            "firstName": first_name.strip(),
            "lastName": last_name.strip(),
            "birthDate": birth_date.isoformat(),
            "ageYears": str(calculate_age(birth_date)),
            "sex": sex.lower(),
        }
        self.payload.update(fields)
        self._complete(PERSONAL)
        return fields

    def body_measurements(self, height: Number, weight: Number, waist: Number) -> Dict[str, Any]:
        """
        Validate the measurements and derive BMI and WHtR.

        Inputs may be raw text such as "70,5".
        """
        self._require(BODY)
        errors: Dict[str, str] = {}
        height_cm = _measurement(height, "height", "cm", HEIGHT_RANGE, errors)
        weight_kg = _measurement(weight, "weight", "kg", WEIGHT_RANGE, errors)
        waist_cm = _measurement(waist, "waist", "cm", WAIST_RANGE, errors)
        if errors:
            raise WizardValidationError(errors)

        bmi = calculate_bmi(height_cm, weight_kg)
        whtr = calculate_whtr(height_cm, waist_cm)
        fields = {
            "height": height_cm,
            "weight": weight_kg,
            "waist": waist_cm,
            "bmi": round(bmi, BMI_DIGITS),
            "whtr": round(whtr, WHTR_DIGITS),
        }
        self.metrics = {"bmi": bmi_status(bmi), "whtr": whtr_status(whtr)}
        self.payload.update(fields)
        self._complete(BODY)
        return fields

    async def allergies(self, selected: List[str], other: str = "") -> Dict[str, Any]:
        """Allergies stay on the device; the profile document has no field for them."""
        self._require(ALLERGIES)
        stored = await self.cache.save_allergies(selected, other)
        self._complete(ALLERGIES)
        return stored

    async def upload_blood_test(
        self,
        document: bytes,
        filename: str,
        content_type: str = "application/pdf"
    ) -> List[str]:
        """
        Analyze a blood test and take its findings as the illness list.

        Returns the diagnosis labels reported by the backend.
        """
        self._require(MEDICAL)
        result = await self.api.analyze_blood_test(document, filename=filename, content_type=content_type)
        self.diagnosis = result.get("diagnosis") or []
        illnesses = illnesses_from_diagnosis(self.diagnosis)
        self.payload.update({
            "illnesses": illnesses,
            "otherIllnesses": "",
            "bloodTest": {"fileName": filename, "fileSize": len(document), "status": "processed"},
        })
        await self.cache.save_illnesses(illnesses)
        self._complete(MEDICAL)
        return self.diagnosis

    async def select_illnesses(self, selected: List[str], other: str = "") -> Dict[str, Any]:
        """Manual alternative to the blood test; an empty selection means no known conditions."""
        self._require(MEDICAL)
        stored = await self.cache.save_illnesses(selected, other)
        self.payload.update({"illnesses": stored["selected"], "otherIllnesses": stored["other"]})
        self._complete(MEDICAL)
        return stored

    async def finish(self) -> Dict[str, Any]:
        """
        Save the accumulated profile and cache the result.

        Returns:
            The stored profile as returned by the backend
        """
        missing = [step for step in STEPS if step not in self.completed]
        if missing:
            raise WizardValidationError({"step": f"Complete the {missing[0]} step first"})

        body = await self.api.save_profile(self.payload)
        profile = body.get("data") or {}
        await self.cache.set_session(self.username, self.api.access_token)
        await self.cache.save_profile(profile)
        logger.info(f"Profile saved for {self.username} (new: {body.get('isNew')})")
        return profile
