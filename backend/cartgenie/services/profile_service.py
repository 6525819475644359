"""
Profile Service - the create-or-update behind the wizard's final save.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import ValidationError

from ..core.body_metrics import (
    BMI_DIGITS,
    WHTR_DIGITS,
    calculate_age,
    calculate_bmi,
    calculate_whtr,
    to_number,
)
from ..core.exceptions import ProfileValidationError
from ..models.profile import (
    BloodTestInfo,
    BodyMeasurements,
    Illness,
    MedicalData,
    PersonalDetails,
    ProfileSaveRequest,
    UserProfile,
)
from ..storage.profile_storage import ProfileStorage

logger = logging.getLogger(__name__)

REQUIRED_FOR_NEW = (
    ("first_name", "firstName"),
    ("last_name", "lastName"),
    ("birth_date", "birthDate"),
    ("sex", "sex"),
    ("weight", "weight"),
    ("height", "height"),
    ("waist", "waist"),
)
MEASUREMENT_FIELDS = ("weight", "height", "waist")
SEX_VALUES = ("male", "female")


def parse_illnesses(value: Union[List[str], str, None]) -> List[Illness]:
    """
    Accept a list of names or a JSON-encoded list; anything unparseable yields [].
    Every illness gets the default severity.
    """
    if value is None:
        return []
    names: Any = value
    if isinstance(value, str):
        try:
            names = json.loads(value)
        except json.JSONDecodeError:
            logger.warning("Ignoring unparseable illnesses payload")
            return []
    if not isinstance(names, list):
        return []
    return [Illness(name=str(name).strip()) for name in names if str(name).strip()]


def parse_birth_date(value: str) -> datetime:
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError as e:
        raise ProfileValidationError(f"Invalid birthDate: {value}") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _number(request: ProfileSaveRequest, field: str) -> Optional[float]:
    raw = getattr(request, field)
    if raw is None or raw == "":
        return None
    value = to_number(raw)
    if value is None:
        raise ProfileValidationError(f"Invalid number for {field}: {raw}")
    return value


def _text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _sex(value: Optional[str]) -> Optional[str]:
    value = _text(value)
    if value is None:
        return None
    value = value.lower()
    if value not in SEX_VALUES:
        raise ProfileValidationError(f"Invalid sex: {value}")
    return value


def _age(request: ProfileSaveRequest) -> Optional[int]:
    if request.age_years is None or request.age_years == "":
        return None
    value = to_number(request.age_years)
    if value is None:
        raise ProfileValidationError(f"Invalid ageYears: {request.age_years}")
    return int(value)


def _blood_test(value: Optional[Dict[str, Any]]) -> Optional[BloodTestInfo]:
    if not value:
        return None
    try:
        return BloodTestInfo.model_validate(value)
    except ValidationError as e:
        raise ProfileValidationError(f"Invalid bloodTest: {e.errors()[0]['msg']}") from e


def _round(value: Optional[float], digits: int) -> Optional[float]:
    return round(value, digits) if value is not None else None


class ProfileService:
    """
    Upsert of health profiles.

    Existing profiles only receive the fields present in the request; new ones
    need the full set of wizard fields.
    """

    def __init__(self, profiles: ProfileStorage):
        self.profiles = profiles

    async def save(self, username: str, request: ProfileSaveRequest) -> Tuple[UserProfile, bool]:
        """
        Create or update the profile of ``username``.

        Returns:
            Tuple[UserProfile, bool]: Stored profile and whether it was created

        Raises:
            ProfileValidationError: Missing fields for a new profile or invalid values
        """
        existing = await self.profiles.get(username)
        if existing is None:
            return await self._create(username, request), True
        return await self._update(existing, request), False

    async def _create(self, username: str, request: ProfileSaveRequest) -> UserProfile:
        missing = [
            alias for field, alias in REQUIRED_FOR_NEW
            if getattr(request, field) is None
            or (isinstance(getattr(request, field), str) and not getattr(request, field).strip())
        ]
        if missing:
            raise ProfileValidationError(f"Missing required fields for new user: {', '.join(missing)}")

        birth_date = parse_birth_date(request.birth_date)
        age = _age(request)
        if age is None:
            age = calculate_age(birth_date)

        height = _number(request, "height")
        weight = _number(request, "weight")
        waist = _number(request, "waist")
        bmi = _number(request, "bmi")
        whtr = _number(request, "whtr")
        blood_test = _blood_test(request.blood_test)

        profile = UserProfile(
            username=username,
            personal_details=PersonalDetails(
                first_name=_text(request.first_name),
                last_name=_text(request.last_name),
                birth_date=birth_date,
                age=age,
                sex=_sex(request.sex),
            ),
            body_measurements=BodyMeasurements(
                weight=weight,
                height=height,
                waist=waist,
                bmi=bmi if bmi is not None else _round(calculate_bmi(height, weight), BMI_DIGITS),
                whtr=whtr if whtr is not None else _round(calculate_whtr(height, waist), WHTR_DIGITS),
            ),
            medical_data=MedicalData(
                illnesses=parse_illnesses(request.illnesses),
                other_illnesses=(request.other_illnesses or "").strip(),
            ),
            blood_test=blood_test or BloodTestInfo(),
            is_completed=bool(blood_test and blood_test.file_name),
        )
        return await self.profiles.create(profile)

    async def _update(self, existing: UserProfile, request: ProfileSaveRequest) -> UserProfile:
        fields: Dict[str, Any] = {}

        for field in ("first_name", "last_name"):
            value = _text(getattr(request, field))
            if value is not None:
                fields[f"personal_details.{field}"] = value
        if _text(request.birth_date) is not None:
            fields["personal_details.birth_date"] = parse_birth_date(request.birth_date)
        age = _age(request)
        if age is not None:
            fields["personal_details.age"] = age
        sex = _sex(request.sex)
        if sex is not None:
            fields["personal_details.sex"] = sex

        measurements = existing.body_measurements.model_dump()
        measurements_changed = False
        for field in MEASUREMENT_FIELDS + ("bmi", "whtr"):
            value = _number(request, field)
            if value is not None:
                fields[f"body_measurements.{field}"] = value
                measurements[field] = value
                measurements_changed = measurements_changed or field in MEASUREMENT_FIELDS

        if measurements_changed:
            if _number(request, "bmi") is None:
                fields["body_measurements.bmi"] = _round(
                    calculate_bmi(measurements["height"], measurements["weight"]), BMI_DIGITS
                )
            if _number(request, "whtr") is None:
                fields["body_measurements.whtr"] = _round(
                    calculate_whtr(measurements["height"], measurements["waist"]), WHTR_DIGITS
                )

        if request.illnesses is not None:
            fields["medical_data.illnesses"] = [
                illness.model_dump() for illness in parse_illnesses(request.illnesses)
            ]
        if request.other_illnesses is not None:
            fields["medical_data.other_illnesses"] = request.other_illnesses.strip()

        blood_test = _blood_test(request.blood_test)
        if blood_test is not None:
            fields["blood_test"] = blood_test.model_dump()
            if blood_test.file_name:
                fields["is_completed"] = True

        await self.profiles.update_fields(existing.username, fields)
        logger.info(
            f"Profile updated: {existing.username}",
            extra={"extra_fields": {"fields": sorted(fields)}}
        )
        return await self.profiles.get(existing.username)
