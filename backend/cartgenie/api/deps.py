"""
Shared route dependencies - repositories over the global store and the consult agent.
"""

import logging
from typing import Optional

from ..agents.food_safety_agent import FoodSafetyAgent
from ..config import settings
from ..llm.base import LLMProvider
from ..llm.factory import create_llm_provider
from ..storage.credential_storage import CredentialStorage
from ..storage.history_storage import HistoryStorage
from ..storage.product_storage import ProductStorage
from ..storage.profile_storage import ProfileStorage
from ..storage.store import get_document_store

logger = logging.getLogger(__name__)

_food_safety_agent: Optional[FoodSafetyAgent] = None


def get_credential_storage() -> CredentialStorage:
    return CredentialStorage(get_document_store())


def get_profile_storage() -> ProfileStorage:
    return ProfileStorage(get_document_store())


def get_product_storage() -> ProductStorage:
    return ProductStorage(get_document_store())


def get_history_storage() -> HistoryStorage:
    return HistoryStorage(get_document_store())


def _get_llm_provider() -> Optional[LLMProvider]:
    """Get configured LLM provider or None."""
    return create_llm_provider(
        provider=settings.llm_provider,
        api_key=settings.resolved_llm_api_key,
        model=settings.llm_model,
        base_url=settings.llm_base_url,
        timeout=settings.llm_timeout,
        log_calls=settings.log_llm_calls,
    )


def get_food_safety_agent() -> FoodSafetyAgent:
    """Process-wide consult agent, created on first use."""
    global _food_safety_agent
    if _food_safety_agent is None:
        agent = FoodSafetyAgent()
        agent.set_llm_provider(_get_llm_provider())
        if not agent.has_llm:
            logger.warning("No LLM API key configured; consults will return fallback verdicts")
        _food_safety_agent = agent
    return _food_safety_agent
