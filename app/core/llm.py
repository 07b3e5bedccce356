import logging
from typing import Any, Dict, List, Optional

import google.generativeai as genai
from openai import AsyncOpenAI

from app.config import Settings
from app.core.exceptions import LLMProviderError, MissingCredentialError

logger = logging.getLogger(__name__)

PERPLEXITY = "perplexity"
GEMINI = "gemini"

_PROVIDER_ALIASES = {
    "perplexity": PERPLEXITY,
    "pplx": PERPLEXITY,
    "sonar": PERPLEXITY,
    "gemini": GEMINI,
    "google": GEMINI,
    "google_gemini": GEMINI,
    "google-ai": GEMINI,
}
_CREDENTIAL_NAMES = {PERPLEXITY: "PERPLEXITY_API_KEY", GEMINI: "GEMINI_API_KEY"}


def normalize_provider(name: str) -> str:
    provider = _PROVIDER_ALIASES.get((name or "").strip().lower())
    if provider is None:
        raise LLMProviderError(f"Unsupported LLM provider '{name}'")
    return provider


class LLMClient:
    """
    Text generation over Perplexity (OpenAI-compatible API) and Gemini.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self._perplexity: Optional[AsyncOpenAI] = None
        self._gemini_configured = False

    def _api_key(self, provider: str) -> Optional[str]:
        if provider == PERPLEXITY:
            return self.settings.PERPLEXITY_API_KEY
        return self.settings.gemini_api_key

    def is_configured(self, provider: str) -> bool:
        return bool(self._api_key(normalize_provider(provider)))

    def pick_provider(self, preferred: str) -> Optional[str]:
        """Return `preferred` if it has a key, else any other configured provider."""
        first = normalize_provider(preferred)
        for provider in (first, PERPLEXITY, GEMINI):
            if self._api_key(provider):
                return provider
        return None

    def require_provider(self, preferred: str) -> str:
        provider = self.pick_provider(preferred)
        if provider is None:
            raise MissingCredentialError(_CREDENTIAL_NAMES[normalize_provider(preferred)])
        return provider

    def _get_perplexity_client(self) -> AsyncOpenAI:
        if not self.settings.PERPLEXITY_API_KEY:
            raise MissingCredentialError("PERPLEXITY_API_KEY")
        if self._perplexity is None:
            self._perplexity = AsyncOpenAI(
                api_key=self.settings.PERPLEXITY_API_KEY,
                base_url=self.settings.PERPLEXITY_BASE_URL,
                timeout=self.settings.HTTP_TIMEOUT * 4,
            )
        return self._perplexity

    async def _call_perplexity(
        self, prompt: str, system: Optional[str], temperature: float, max_tokens: int
    ) -> str:
        client = self._get_perplexity_client()
        messages: List[Dict[str, str]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        try:
            response = await client.chat.completions.create(
                model=self.settings.PERPLEXITY_MODEL,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except Exception as exc:
            raise LLMProviderError(f"Perplexity call failed: {exc}") from exc

        try:
            return response.choices[0].message.content or ""
        except (AttributeError, IndexError) as exc:
            raise LLMProviderError("Perplexity returned an unexpected payload") from exc

    async def _call_gemini(
        self,
        prompt: str,
        system: Optional[str],
        temperature: float,
        max_tokens: int,
        json_output: bool,
    ) -> str:
        api_key = self.settings.gemini_api_key
        if not api_key:
            raise MissingCredentialError("GEMINI_API_KEY")
        if not self._gemini_configured:
            genai.configure(api_key=api_key)
            self._gemini_configured = True

        model = genai.GenerativeModel(self.settings.GEMINI_MODEL, system_instruction=system)
        generation_config: Dict[str, Any] = {
            "temperature": temperature,
            "candidate_count": 1,
            "max_output_tokens": max_tokens,
        }
        if json_output:
            generation_config["response_mime_type"] = "application/json"
        try:
            response = await model.generate_content_async(prompt, generation_config=generation_config)
        except Exception as exc:
            raise LLMProviderError(f"Gemini call failed: {exc}") from exc

        try:
            text = response.text
        except (AttributeError, ValueError):
            text = None
        if text:
            return text

        parts: List[str] = []
        for candidate in getattr(response, "candidates", None) or []:
            content = getattr(candidate, "content", None)
            for part in getattr(content, "parts", None) or []:
                part_text = getattr(part, "text", None)
                if part_text:
                    parts.append(part_text)
        if parts:
            return "".join(parts)

        raise LLMProviderError("Gemini returned an empty payload")

    async def complete(
        self,
        prompt: str,
        *,
        provider: str,
        system: Optional[str] = None,
        temperature: float = 0.2,
        max_tokens: int = 800,
        json_output: bool = False,
    ) -> str:
        """
        Generate text with the given provider.

        Raises:
            MissingCredentialError: provider key not configured
            LLMProviderError: provider call failed or returned nothing usable
        """
        name = normalize_provider(provider)
        logger.debug("LLM call via %s (%d prompt chars)", name, len(prompt))
        if name == PERPLEXITY:
            return await self._call_perplexity(prompt, system, temperature, max_tokens)
        return await self._call_gemini(prompt, system, temperature, max_tokens, json_output)


__all__ = ["LLMClient", "LLMProviderError", "GEMINI", "PERPLEXITY", "normalize_provider"]
