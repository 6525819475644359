"""
Tests for the food safety agent and the AI consult endpoints.
"""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from cartgenie.agents import FoodSafetyAgent, build_consult_profile, guest_profile
from cartgenie.agents.food_safety_agent import (
    REDACTED_CONDITION,
    UNAVAILABLE_REASON,
    redact_conditions,
    strip_code_fences,
)
from cartgenie.api.deps import get_food_safety_agent
from cartgenie.llm.base import LLMResponse
from cartgenie.main import app
from cartgenie.models import (
    BodyMeasurements,
    Illness,
    MedicalData,
    PersonalDetails,
    ProductDescriptor,
    UserProfile,
)


def agent_answering(content=None, error=None) -> FoodSafetyAgent:
    """Agent whose provider returns ``content`` or raises ``error``."""
    provider = MagicMock()
    if error is not None:
        provider.chat_completion = AsyncMock(side_effect=error)
    else:
        provider.chat_completion = AsyncMock(return_value=LLMResponse(content=content, model="test"))
    agent = FoodSafetyAgent()
    agent.set_llm_provider(provider)
    return agent


@pytest.fixture
def diabetic_profile():
    return build_consult_profile(UserProfile(
        username="dana",
        personal_details=PersonalDetails(age=42),
        body_measurements=BodyMeasurements(bmi=24.22, whtr=0.4706),
        medical_data=MedicalData(
            illnesses=[Illness(name="Diabetes Type 2", severity="severe")],
            other_illnesses="lactose sensitivity",
        ),
    ))


class TestConsultProfile:

    def test_guest(self):
        profile = build_consult_profile(None)
        assert profile.age == 30
        assert profile.illnesses == []
        assert profile.other_illnesses == "None (Guest User)"

    def test_from_stored_profile(self, diabetic_profile):
        assert diabetic_profile.age == 42
        assert diabetic_profile.bmi == 24.2
        assert diabetic_profile.whtr == 0.47
        assert diabetic_profile.illnesses == ["Diabetes Type 2 (severe)"]
        assert diabetic_profile.condition_names == ["Diabetes Type 2"]

    def test_prompt_contains_profile_and_product(self, diabetic_profile):
        agent = FoodSafetyAgent()
        prompt = agent.build_product_prompt(ProductDescriptor(name="Cola", brand="Coca-Cola"), diabetic_profile)
        assert "Age: 42" in prompt
        assert "Diabetes Type 2 (severe)" in prompt
        assert 'Single Product: "Cola" (Brand: "Coca-Cola")' in prompt
        assert "INTERNAL USE ONLY" in prompt


class TestResponseCleanup:

    def test_strip_code_fences(self):
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
        assert strip_code_fences('{"a": 1}') == '{"a": 1}'

    def test_redact_conditions(self):
        text = "Not great for your diabetes type 2 or Diabetes Type 2."
        redacted = redact_conditions(text, ["Diabetes Type 2"])
        assert "iabetes" not in redacted
        assert redacted.count(REDACTED_CONDITION) == 2


class TestFoodSafetyAgent:

    @pytest.mark.asyncio
    async def test_product_verdict(self, diabetic_profile):
        answer = {
            "allowed": False,
            "recommendation": "avoid",
            "reason": "High sugar is bad with Diabetes Type 2.",
            "alternatives": [{"name": f"Alt {i}", "reason": "less sugar"} for i in range(7)],
        }
        agent = agent_answering("```json\n" + json.dumps(answer) + "\n```")

        verdict = await agent.analyze_product(ProductDescriptor(name="Cola"), diabetic_profile)

        assert verdict.recommendation == "AVOID"
        assert verdict.fallback is False
        assert "Diabetes" not in verdict.reason
        assert len(verdict.alternatives) == 5

    @pytest.mark.asyncio
    async def test_product_fallback_on_provider_error(self, diabetic_profile):
        agent = agent_answering(error=RuntimeError("network down"))
        verdict = await agent.analyze_product(ProductDescriptor(name="Cola"), diabetic_profile)
        assert verdict.model_dump() == {
            "allowed": False,
            "recommendation": "CAUTION",
            "reason": UNAVAILABLE_REASON,
            "alternatives": [],
            "fallback": True,
        }

    @pytest.mark.asyncio
    async def test_product_fallback_on_bad_json(self, diabetic_profile):
        agent = agent_answering("I think it is fine")
        verdict = await agent.analyze_product(ProductDescriptor(name="Cola"), diabetic_profile)
        assert verdict.fallback is True
        assert verdict.recommendation == "CAUTION"

    @pytest.mark.asyncio
    async def test_product_fallback_on_wrong_shape(self, diabetic_profile):
        agent = agent_answering('{"verdict": "ok"}')
        verdict = await agent.analyze_product(ProductDescriptor(name="Cola"), diabetic_profile)
        assert verdict.fallback is True

    @pytest.mark.asyncio
    async def test_product_fallback_without_provider(self):
        verdict = await FoodSafetyAgent().analyze_product(ProductDescriptor(name="Cola"), guest_profile())
        assert verdict.fallback is True

    @pytest.mark.asyncio
    async def test_cart_verdict(self, diabetic_profile):
        answer = {
            "healthMatchScore": 72,
            "analyzedItems": [
                {"productName": "Bread", "allowed": True, "recommendation": "SAFE", "reason": "fiber"},
                {"productName": "Cola", "allowed": False, "recommendation": "AVOID",
                 "reason": "sugar vs diabetes type 2"},
            ],
        }
        agent = agent_answering(json.dumps(answer))
        verdict = await agent.analyze_cart(["Bread", "Cola"], diabetic_profile)
        assert verdict.health_match_score == 72
        assert verdict.analyzed_items[1].reason == f"sugar vs {REDACTED_CONDITION}"
        assert verdict.health_summary().model_dump() == {"safe": 1, "caution": 0, "avoid": 1}

    @pytest.mark.asyncio
    async def test_cart_fallback(self, diabetic_profile):
        agent = agent_answering(error=RuntimeError("timeout"))
        verdict = await agent.analyze_cart(["Bread"], diabetic_profile)
        assert verdict.health_match_score == 0
        assert verdict.analyzed_items == []
        assert verdict.fallback is True

    @pytest.mark.asyncio
    async def test_cart_score_out_of_range_falls_back(self, diabetic_profile):
        agent = agent_answering('{"healthMatchScore": 140, "analyzedItems": []}')
        verdict = await agent.analyze_cart(["Bread"], diabetic_profile)
        assert verdict.fallback is True

    @pytest.mark.asyncio
    async def test_process_request_dispatch(self):
        agent = agent_answering('{"healthMatchScore": 50, "analyzedItems": []}')
        verdict = await agent.process_request(["Bread"])
        assert verdict.health_match_score == 50


class TestConsultEndpoints:

    def test_consult_without_llm_returns_fallback_shape(self, client):
        app.dependency_overrides[get_food_safety_agent] = FoodSafetyAgent
        response = client.post("/api/ai/consult", json={"product": {"name": "Cola"}})
        assert response.status_code == 200
        data = response.json()["data"]
        assert data == {
            "allowed": False,
            "recommendation": "CAUTION",
            "reason": UNAVAILABLE_REASON,
            "alternatives": [],
            "fallback": True,
        }

    def test_consult_cart_without_llm_returns_fallback_shape(self, client):
        app.dependency_overrides[get_food_safety_agent] = FoodSafetyAgent
        response = client.post("/api/ai/consult-cart", json={"products": ["Bread", "Milk"]})
        assert response.status_code == 200
        assert response.json()["data"] == {"healthMatchScore": 0, "analyzedItems": [], "fallback": True}

    def test_missing_product(self, client):
        response = client.post("/api/ai/consult", json={"username": "guest"})
        assert response.status_code == 400
        assert response.json()["message"] == "Missing product data"

    def test_missing_products_list(self, client):
        response = client.post("/api/ai/consult-cart", json={"products": []})
        assert response.status_code == 400
        assert response.json()["message"] == "Missing products list"

    def test_consult_uses_callers_profile(self, client, auth_headers, profile_payload):
        client.post("/api/userdata/save", json=profile_payload, headers=auth_headers)
        agent = agent_answering(json.dumps({
            "allowed": True, "recommendation": "SAFE", "reason": "Fine for you.", "alternatives": []
        }))
        app.dependency_overrides[get_food_safety_agent] = lambda: agent

        response = client.post(
            "/api/ai/consult",
            json={"username": "dana", "product": {"name": "Bread", "brand": "Angel", "barcode": "1"}},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["data"]["recommendation"] == "SAFE"

        messages = agent._llm_provider.chat_completion.call_args.args[0]
        prompt = messages[1].content
        assert "Diabetes Type 2 (moderate)" in prompt
        assert "BMI: 24.2" in prompt

    def test_anonymous_consult_uses_guest_profile(self, client):
        agent = agent_answering('{"healthMatchScore": 90, "analyzedItems": []}')
        app.dependency_overrides[get_food_safety_agent] = lambda: agent

        response = client.post("/api/ai/consult-cart", json={"username": "guest", "products": ["Bread"]})
        assert response.status_code == 200
        prompt = agent._llm_provider.chat_completion.call_args.args[0][1].content
        assert "None (Guest User)" in prompt
