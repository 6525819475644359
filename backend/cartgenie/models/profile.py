"""
Profile Models - the consolidated health profile built by the wizard.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional, Union
from pydantic import Field

from .common import CamelModel, DocumentId

Sex = Literal["male", "female"]
Severity = Literal["mild", "moderate", "severe"]
BloodTestStatus = Literal["pending", "uploaded", "processed"]


class PersonalDetails(CamelModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    birth_date: Optional[datetime] = None
    age: Optional[int] = None
    sex: Optional[Sex] = None


class BodyMeasurements(CamelModel):
    weight: Optional[float] = None  # kg
    height: Optional[float] = None  # cm
    waist: Optional[float] = None  # cm
    bmi: Optional[float] = None
    whtr: Optional[float] = None


class Illness(CamelModel):
    name: str
    severity: Severity = "moderate"


class MedicalData(CamelModel):
    illnesses: List[Illness] = Field(default_factory=list)
    other_illnesses: str = ""


class BloodTestInfo(CamelModel):
    file_name: Optional[str] = None
    file_url: Optional[str] = None
    file_size: Optional[int] = None
    upload_date: Optional[datetime] = None
    status: BloodTestStatus = "pending"


class UserProfile(CamelModel):
    """Profile document in the ``userdata`` collection."""
    id: DocumentId = Field(None, alias="_id")
    username: str
    personal_details: PersonalDetails = Field(default_factory=PersonalDetails)
    body_measurements: BodyMeasurements = Field(default_factory=BodyMeasurements)
    medical_data: MedicalData = Field(default_factory=MedicalData)
    blood_test: BloodTestInfo = Field(default_factory=BloodTestInfo)
    is_completed: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    last_updated: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ProfileView(UserProfile):
    """Profile as returned by GET, with the blood-test record flag."""
    has_blood_tests: bool = False


class ProfileSaveRequest(CamelModel):
    """
    Flat wizard payload for the upsert.

    The mobile wizard forwards form values as strings, so numbers are
    accepted either way and parsed by the profile service.
    """
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    birth_date: Optional[str] = None
    age_years: Optional[Union[int, str]] = None
    sex: Optional[str] = None
    weight: Optional[Union[float, str]] = None
    height: Optional[Union[float, str]] = None
    waist: Optional[Union[float, str]] = None
    bmi: Optional[Union[float, str]] = None
    whtr: Optional[Union[float, str]] = None
    illnesses: Optional[Union[List[str], str]] = None
    other_illnesses: Optional[str] = None
    blood_test: Optional[Dict[str, Any]] = None


class BloodTestUpdateRequest(CamelModel):
    username: Optional[str] = None
    file_name: Optional[str] = None
    file_url: Optional[str] = None
    file_size: Optional[int] = None
