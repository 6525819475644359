"""
Food Safety Agent - Judges whether a product or a whole cart suits a user's health profile.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError

from ..core.body_metrics import calculate_age
from ..core.exceptions import LLMUnavailableError
from ..models.consult import (
    MAX_ALTERNATIVES,
    CartVerdict,
    ConsultProfile,
    ProductDescriptor,
    ProductVerdict,
)
from ..models.profile import UserProfile
from .base_agent import BaseAgent

logger = logging.getLogger(__name__)

DEFAULT_AGE = 30
GUEST_OTHER_ILLNESSES = "None (Guest User)"
UNAVAILABLE_REASON = "AI Service unavailable. Please check ingredients manually."
REDACTED_CONDITION = "your health condition"

_FENCE = re.compile(r"```(?:json)?", re.IGNORECASE)

SYSTEM_PROMPT = """You are an expert clinical nutritionist AI agent.

The user profile you receive is for INTERNAL USE ONLY. Do not reveal it in the output.

Instructions:
1. Identify the food item(s) based on general knowledge.
2. Check suitability against the user's specific medical conditions AND body measurements.
3. Apply a nuanced approach with strict safety guardrails:
   A. The "soft" rule (general wellness): if a product is slightly imperfect (moderate
      processing, sugar or fat) but the user has a healthy BMI/WHtR and no conflicting
      illness, lean towards "SAFE". Do not be alarmist about ordinary processed food
      for a healthy person.
   B. The "hard" safety limit (no compromise): if the product contains ingredients that
      directly contradict a specific medical condition (sugar for diabetes, sodium for
      hypertension, gluten for celiac), you MUST mark it "CAUTION" or "AVOID", even if
      the user's BMI is perfect. Preventing deterioration of an illness takes priority
      over dietary flexibility.

Privacy and safety rules:
1. NEVER name the medical diagnosis (do not say "because of your diabetes").
2. Use generic phrases such as "your health condition", "your specific profile" or
   "your dietary needs".
3. Explain in terms of nutrients ("high sugar content is not recommended for your profile").
4. Return RAW JSON only. Do not wrap it in markdown code blocks.
"""

SINGLE_MODE = f"""MODE: SINGLE PRODUCT ANALYSIS
- Analyze the safety of this specific product.
- Suggest up to {MAX_ALTERNATIVES} healthier alternatives that are similar to this product but better suited to the user.

Output JSON schema:
{{
  "allowed": boolean,
  "recommendation": "SAFE" | "CAUTION" | "AVOID",
  "reason": "Short explanation addressing the user directly without naming the disease.",
  "alternatives": [{{"name": "Name of healthier product", "reason": "Why it is better for the user's profile"}}]
}}"""

CART_MODE = """MODE: CART ANALYSIS (multiple items)
- Analyze EVERY item in the list separately.
- Calculate "healthMatchScore" (0-100): how well the WHOLE cart fits the user's health needs (100 = perfect, 0 = bad).

Output JSON schema:
{
  "healthMatchScore": number,
  "analyzedItems": [
    {"productName": "string", "allowed": boolean, "recommendation": "SAFE" | "CAUTION" | "AVOID",
     "reason": "Short explanation (max 10 words) about nutrients/profile only, no disease names."}
  ]
}"""


def guest_profile() -> ConsultProfile:
    return ConsultProfile(age=DEFAULT_AGE, illnesses=[], other_illnesses=GUEST_OTHER_ILLNESSES)


def build_consult_profile(profile: Optional[UserProfile]) -> ConsultProfile:
    """Summarize a stored profile for the prompt; None yields the guest profile."""
    if profile is None:
        return guest_profile()

    details = profile.personal_details
    age = details.age
    if age is None and details.birth_date is not None:
        age = calculate_age(details.birth_date)

    measurements = profile.body_measurements
    illnesses = profile.medical_data.illnesses
    return ConsultProfile(
        age=age or DEFAULT_AGE,
        bmi=round(measurements.bmi, 1) if measurements.bmi else None,
        whtr=round(measurements.whtr, 2) if measurements.whtr else None,
        illnesses=[f"{illness.name} ({illness.severity})" for illness in illnesses],
        other_illnesses=profile.medical_data.other_illnesses or "None",
        condition_names=[illness.name for illness in illnesses],
    )


def strip_code_fences(text: str) -> str:
    return _FENCE.sub("", text).strip()


def redact_conditions(text: str, condition_names: List[str]) -> str:
    """Replace any of the user's condition names in ``text`` with a generic phrase."""
    for name in sorted(condition_names, key=len, reverse=True):
        name = name.strip()
        if len(name) < 3:
            continue
        text = re.sub(re.escape(name), REDACTED_CONDITION, text, flags=re.IGNORECASE)
    return text


class FoodSafetyAgent(BaseAgent):
    """
    Clinical-nutritionist agent.
    Never raises on AI failure: callers always get a complete verdict, flagged as a fallback.
    """

    def __init__(self):
        super().__init__("FoodSafetyAgent", SYSTEM_PROMPT)

    async def process_request(
        self,
        data: Union[ProductDescriptor, List[str]],
        context: Optional[Dict[str, Any]] = None
    ) -> Union[ProductVerdict, CartVerdict]:
        profile = (context or {}).get("profile") or guest_profile()
        if isinstance(data, list):
            return await self.analyze_cart(data, profile)
        return await self.analyze_product(data, profile)

    def format_profile(self, profile: ConsultProfile) -> str:
        return (
            "User Profile (INTERNAL USE ONLY - DO NOT REVEAL IN OUTPUT):\n"
            f"- Age: {profile.age}\n"
            f"- BMI: {profile.bmi if profile.bmi is not None else 'Unknown'}\n"
            f"- Waist-to-Height Ratio (WHtR): {profile.whtr if profile.whtr is not None else 'Unknown'}\n"
            f"- Medical Conditions: {', '.join(profile.illnesses) if profile.illnesses else 'None'}\n"
            f"- Other notes: {profile.other_illnesses or 'None'}"
        )

    def build_product_prompt(self, product: ProductDescriptor, profile: ConsultProfile) -> str:
        description = f'Single Product: "{product.name}" (Brand: "{product.brand or "General"}")'
        return f"{self.format_profile(profile)}\n\nData to Analyze:\n{description}\n\n{SINGLE_MODE}"

    def build_cart_prompt(self, products: List[str], profile: ConsultProfile) -> str:
        description = f"Shopping Cart List: [{', '.join(products)}]"
        return f"{self.format_profile(profile)}\n\nData to Analyze:\n{description}\n\n{CART_MODE}"

    async def _ask(self, prompt: str) -> Any:
        content = await self.call_llm(
            messages=[
                {"role": "system", "content": self.system_prompt},
                {"role": "user", "content": prompt},
            ],
            temperature=0.2,
            json_mode=True,
        )
        return json.loads(strip_code_fences(content))

    async def analyze_product(self, product: ProductDescriptor, profile: ConsultProfile) -> ProductVerdict:
        """
        Verdict for a single product, with up to five alternatives.

        Args:
            product: Scanned product
            profile: Prompt profile summary

        Returns:
            ProductVerdict; the conservative fallback when the AI answer is unusable
        """
        try:
            verdict = ProductVerdict.model_validate(await self._ask(self.build_product_prompt(product, profile)))
        except (LLMUnavailableError, json.JSONDecodeError, ValidationError) as e:
            logger.warning(
                f"Product consult fell back: {e}",
                extra={"extra_fields": {"agent": self.name, "product": product.name}}
            )
            return ProductVerdict(
                allowed=False,
                recommendation="CAUTION",
                reason=UNAVAILABLE_REASON,
                alternatives=[],
                fallback=True,
            )

        verdict.reason = redact_conditions(verdict.reason, profile.condition_names)
        for alternative in verdict.alternatives:
            alternative.reason = redact_conditions(alternative.reason, profile.condition_names)
        return verdict

    async def analyze_cart(self, products: List[str], profile: ConsultProfile) -> CartVerdict:
        """Per-item verdicts plus a 0-100 match score for the whole cart."""
        try:
            verdict = CartVerdict.model_validate(await self._ask(self.build_cart_prompt(products, profile)))
        except (LLMUnavailableError, json.JSONDecodeError, ValidationError) as e:
            logger.warning(
                f"Cart consult fell back: {e}",
                extra={"extra_fields": {"agent": self.name, "items": len(products)}}
            )
            return CartVerdict(health_match_score=0, analyzed_items=[], fallback=True)

        for item in verdict.analyzed_items:
            item.reason = redact_conditions(item.reason, profile.condition_names)
        return verdict
