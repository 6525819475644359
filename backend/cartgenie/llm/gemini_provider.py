"""
Google Gemini LLM Provider.
Talks to the Generative Language REST API (``models/{model}:generateContent``).
"""

import httpx
import logging
import time
from typing import Optional, List, Dict, Any, Tuple

from .base import LLMProvider, LLMMessage, LLMResponse

logger = logging.getLogger(__name__)


class GeminiProvider(LLMProvider):
    """
    Provider for Google Gemini models.
    System messages become the ``systemInstruction``; assistant turns use the ``model`` role.
    """

    name = "gemini"

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        default_temperature: float = 0.2,
        default_max_tokens: int = 2048,
        timeout: float = 60.0,
        log_calls: bool = True,
    ):
        super().__init__(api_key, model, base_url, default_temperature, default_max_tokens,
                         timeout, log_calls)

    def _get_headers(self) -> Dict[str, str]:
        return {
            "x-goog-api-key": self.api_key,
            "Content-Type": "application/json",
        }

    def _format_contents(self, messages: List[LLMMessage]) -> Tuple[Optional[Dict[str, Any]], List[Dict[str, Any]]]:
        system_parts = []
        contents = []
        for message in messages:
            if message.role == "system":
                system_parts.append({"text": message.content})
                continue
            role = "model" if message.role == "assistant" else "user"
            contents.append({"role": role, "parts": [{"text": message.content}]})
        system_instruction = {"parts": system_parts} if system_parts else None
        return system_instruction, contents

    @staticmethod
    def _extract_text(data: Dict[str, Any]) -> str:
        candidates = data.get("candidates") or []
        if not candidates:
            feedback = data.get("promptFeedback", {})
            raise ValueError(f"Gemini returned no candidates: {feedback.get('blockReason', 'unknown reason')}")
        parts = candidates[0].get("content", {}).get("parts", [])
        return "".join(part.get("text", "") for part in parts)

    @staticmethod
    def _extract_usage(data: Dict[str, Any]) -> Dict[str, int]:
        metadata = data.get("usageMetadata", {})
        return {
            "prompt_tokens": metadata.get("promptTokenCount", 0),
            "completion_tokens": metadata.get("candidatesTokenCount", 0),
            "total_tokens": metadata.get("totalTokenCount", 0),
        }

    async def chat_completion(
        self,
        messages: List[LLMMessage],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        json_mode: bool = False,
        **kwargs
    ) -> LLMResponse:
        """Send request to the generateContent endpoint."""
        start_time = time.time()
        model = kwargs.get("model", self.model)
        url = f"{self.base_url}/models/{model}:generateContent"
        system_instruction, contents = self._format_contents(messages)

        generation_config: Dict[str, Any] = {
            "temperature": temperature if temperature is not None else self.default_temperature,
            "maxOutputTokens": max_tokens or self.default_max_tokens,
        }
        if json_mode:
            generation_config["responseMimeType"] = "application/json"

        payload: Dict[str, Any] = {
            "contents": contents,
            "generationConfig": generation_config,
        }
        if system_instruction:
            payload["systemInstruction"] = system_instruction

        self._log_request(model, generation_config["temperature"], messages)

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(url, json=payload, headers=self._get_headers())
                logger.debug(f"LLM API response status: {resp.status_code}")
                resp.raise_for_status()
                data = resp.json()

            content = self._extract_text(data)
            usage = self._extract_usage(data)
            response_model = data.get("modelVersion", model)
            self._log_completion(response_model, usage, (time.time() - start_time) * 1000)

            return LLMResponse(
                content=content,
                model=response_model,
                usage=usage,
                raw=data,
            )
        except Exception as e:
            self._log_failure(model, e, (time.time() - start_time) * 1000)
            raise
