"""
Body metrics - BMI, waist-to-height ratio, age and input normalization.

Shared by the backend (deriving missing values on profile save) and the
client wizard (local range checks before anything is sent).
"""

import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Union


@dataclass(frozen=True)
class Range:
    minimum: float
    maximum: float

    def contains(self, value: float) -> bool:
        return self.minimum <= value <= self.maximum


HEIGHT_RANGE = Range(40, 250)  # cm
WEIGHT_RANGE = Range(30, 300)  # kg
WAIST_RANGE = Range(30, 200)  # cm

# Decimal places kept when a derived metric is stored
BMI_DIGITS = 1
WHTR_DIGITS = 3

BMI_BANDS = (
    (18.5, "Underweight"),
    (25.0, "Healthy"),
    (30.0, "Overweight"),
)
BMI_TOP_LABEL = "Obesity"

WHTR_BANDS = (
    (0.40, "Below range"),
    (0.50, "Healthy"),
    (0.60, "Increased risk"),
)
WHTR_TOP_LABEL = "High risk"


def normalize_numeric_input(value: str) -> str:
    """
    Keep digits and a single decimal separator.

    "70,5 kg" -> "70.5", "1.2.3" -> "1.23"
    """
    cleaned = re.sub(r"[^0-9.,]", "", value)
    parts = re.split(r"[.,]", cleaned)
    if len(parts) <= 1:
        return cleaned
    return f"{parts[0]}.{''.join(parts[1:])}"


def to_number(value: Union[str, int, float, None]) -> Optional[float]:
    """Parse user input into a float, or None when it is empty or not numeric."""
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    text = value.strip().replace(",", ".")
    if not text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


def calculate_bmi(height_cm: Optional[float], weight_kg: Optional[float]) -> Optional[float]:
    """BMI = weight (kg) / height (m) squared."""
    if not height_cm or not weight_kg or height_cm < HEIGHT_RANGE.minimum:
        return None
    return weight_kg / (height_cm / 100) ** 2


def calculate_whtr(height_cm: Optional[float], waist_cm: Optional[float]) -> Optional[float]:
    """Waist-to-height ratio, both in centimetres."""
    if not height_cm or not waist_cm or height_cm < HEIGHT_RANGE.minimum:
        return None
    return waist_cm / height_cm


def _band_label(value: Optional[float], bands, top_label: str) -> Optional[str]:
    if not value:
        return None
    for upper, label in bands:
        if value < upper:
            return label
    return top_label


def bmi_status(bmi: Optional[float]) -> Optional[str]:
    return _band_label(bmi, BMI_BANDS, BMI_TOP_LABEL)


def whtr_status(whtr: Optional[float]) -> Optional[str]:
    return _band_label(whtr, WHTR_BANDS, WHTR_TOP_LABEL)


def calculate_age(birth_date: Union[date, datetime], today: Optional[date] = None) -> int:
    """Completed years between birth_date and today."""
    if isinstance(birth_date, datetime):
        birth_date = birth_date.date()
    today = today or date.today()
    had_birthday = (today.month, today.day) >= (birth_date.month, birth_date.day)
    return today.year - birth_date.year - (0 if had_birthday else 1)
