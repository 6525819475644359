"""
LLM Provider Base - Abstract base for all LLM API providers.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass
class LLMMessage:
    """Represents a message in a conversation."""
    role: str  # "system", "user", "assistant"
    content: str

    @staticmethod
    def text(role: str, text: str) -> "LLMMessage":
        """Create a text-only message."""
        return LLMMessage(role=role, content=text)


@dataclass
class LLMResponse:
    """Response from an LLM API call."""
    content: str
    model: str = ""
    usage: Dict[str, int] = field(default_factory=dict)
    raw: Optional[Dict[str, Any]] = None


class LLMProvider(ABC):
    """
    Abstract base class for LLM API providers.
    All providers must implement chat_completion.
    """

    name = "base"

    def __init__(self, api_key: str, model: str, base_url: Optional[str] = None,
                 default_temperature: float = 0.2, default_max_tokens: int = 2048,
                 timeout: float = 60.0, log_calls: bool = True):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.default_temperature = default_temperature
        self.default_max_tokens = default_max_tokens
        self.timeout = timeout
        self.log_calls = log_calls

    @abstractmethod
    async def chat_completion(
        self,
        messages: List[LLMMessage],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        json_mode: bool = False,
        **kwargs
    ) -> LLMResponse:
        """
        Send a chat completion request.

        Args:
            messages: List of conversation messages
            temperature: Sampling temperature override
            max_tokens: Max tokens override
            json_mode: Ask the model for a raw JSON object
            **kwargs: Additional provider-specific parameters

        Returns:
            LLMResponse with the generated content
        """
        pass

    def _format_messages(self, messages: List[LLMMessage]) -> List[Dict[str, Any]]:
        """Convert LLMMessage list to API-compatible format."""
        return [{"role": m.role, "content": m.content} for m in messages]

    def _log_request(self, model: str, temperature: float, messages: List[LLMMessage]) -> None:
        if not self.log_calls or not logger.isEnabledFor(logging.DEBUG):
            return
        message_summary = f"{len(messages)} messages"
        if messages:
            message_summary += f", first: {messages[0].content[:200]}"
        logger.debug(
            f"LLM API call starting: provider={self.name}, model={model}, "
            f"temperature={temperature}, {message_summary}"
        )

    def _log_completion(self, model: str, usage: Dict[str, int], duration_ms: float) -> None:
        if not self.log_calls:
            return
        logger.info(
            "LLM API call completed",
            extra={"extra_fields": {
                "provider": self.name,
                "model": model,
                "prompt_tokens": usage.get("prompt_tokens", 0),
                "completion_tokens": usage.get("completion_tokens", 0),
                "total_tokens": usage.get("total_tokens", 0),
                "duration_ms": round(duration_ms, 2),
            }}
        )

    def _log_failure(self, model: str, error: Exception, duration_ms: float) -> None:
        logger.error(
            f"LLM API call failed: {str(error)}",
            exc_info=True,
            extra={"extra_fields": {
                "provider": self.name,
                "model": model,
                "duration_ms": round(duration_ms, 2),
                "error": str(error),
            }}
        )
