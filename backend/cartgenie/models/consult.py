"""
Consult Models - AI suitability verdicts for a product or a cart.
"""

from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .common import CamelModel
from .history import HealthSummary

Verdict = Literal["SAFE", "CAUTION", "AVOID"]

MAX_ALTERNATIVES = 5


def _upper(value):
    return value.strip().upper() if isinstance(value, str) else value


class ProductDescriptor(CamelModel):
    """Product as scanned; extra catalog fields are passed through."""
    model_config = ConfigDict(extra="allow")

    name: str
    brand: Optional[str] = None
    barcode: Optional[str] = None


class ConsultRequest(CamelModel):
    username: Optional[str] = None
    product: Optional[ProductDescriptor] = None


class CartConsultRequest(CamelModel):
    username: Optional[str] = None
    products: Optional[List[str]] = None


class Alternative(CamelModel):
    name: str
    reason: str = ""


class ProductVerdict(CamelModel):
    allowed: bool
    recommendation: Verdict
    reason: str
    alternatives: List[Alternative] = Field(default_factory=list)
    fallback: bool = False

    normalize_recommendation = field_validator("recommendation", mode="before")(_upper)

    @field_validator("alternatives")
    @classmethod
    def cap_alternatives(cls, value: List[Alternative]) -> List[Alternative]:
        return value[:MAX_ALTERNATIVES]


class CartItemVerdict(CamelModel):
    product_name: str
    allowed: bool
    recommendation: Verdict
    reason: str = ""

    normalize_recommendation = field_validator("recommendation", mode="before")(_upper)


class CartVerdict(CamelModel):
    health_match_score: float = Field(..., ge=0, le=100)
    analyzed_items: List[CartItemVerdict] = Field(default_factory=list)
    fallback: bool = False

    def health_summary(self) -> HealthSummary:
        counts = {"SAFE": 0, "CAUTION": 0, "AVOID": 0}
        for item in self.analyzed_items:
            counts[item.recommendation] += 1
        return HealthSummary(safe=counts["SAFE"], caution=counts["CAUTION"], avoid=counts["AVOID"])


class ConsultProfile(BaseModel):
    """Profile summary that goes into the prompt."""
    age: int = 30
    bmi: Optional[float] = None
    whtr: Optional[float] = None
    illnesses: List[str] = Field(default_factory=list)
    other_illnesses: str = "None"
    condition_names: List[str] = Field(default_factory=list)
