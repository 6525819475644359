"""
Agent base - one system prompt and an optional LLM provider behind it.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Any, Optional, List

from ..core.exceptions import LLMUnavailableError
from ..llm.base import LLMProvider, LLMMessage

logger = logging.getLogger(__name__)


class BaseAgent(ABC):
    """
    An agent owns a system prompt and talks to the model through ``call_llm``.
    Without a provider every call raises ``LLMUnavailableError``, which
    subclasses turn into their own fallback answers.
    """

    def __init__(self, name: str, system_prompt: str):
        self.name = name
        self.system_prompt = system_prompt
        self._llm_provider: Optional[LLMProvider] = None

    @property
    def has_llm(self) -> bool:
        return self._llm_provider is not None

    def set_llm_provider(self, provider: Optional[LLMProvider]) -> None:
        """Attach a provider, or detach it with None."""
        self._llm_provider = provider

    @abstractmethod
    async def process_request(
        self,
        data: Any,
        context: Optional[Dict[str, Any]] = None
    ) -> Any:
        """
        Handle one agent-specific request. ``context`` carries e.g. the consult profile.
        """
        pass

    async def call_llm(
        self,
        messages: List[Dict[str, str]],
        temperature: float = 0.2,
        json_mode: bool = False,
    ) -> str:
        """
        Call the configured LLM provider.

        Args:
            messages: Dicts with "role" and "content"
            temperature: Sampling temperature
            json_mode: Ask the provider for a raw JSON answer

        Returns:
            The raw answer text

        Raises:
            LLMUnavailableError: If no provider is configured or the call fails
        """
        if self._llm_provider is None:
            raise LLMUnavailableError(
                f"LLM not configured for {self.name}. "
                f"Set LLM_API_KEY and LLM_PROVIDER in environment to enable AI responses."
            )

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                f"Agent {self.name} calling LLM: {len(messages)} messages, "
                f"temperature={temperature}, json_mode={json_mode}"
            )

        llm_messages = [LLMMessage.text(msg["role"], msg["content"]) for msg in messages]

        try:
            response = await self._llm_provider.chat_completion(
                llm_messages, temperature=temperature, json_mode=json_mode
            )
        except Exception as e:
            logger.error(
                f"Agent {self.name} LLM call failed: {str(e)}",
                extra={"extra_fields": {"agent": self.name, "error": str(e)}}
            )
            raise LLMUnavailableError(f"LLM call failed for {self.name}: {e}") from e

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                f"Agent {self.name} received LLM response: length={len(response.content)} chars"
            )

        return response.content
