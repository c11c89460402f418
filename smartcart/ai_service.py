"""AI list cleanup and keyword expansion providers.

The provider is chosen once from configuration (``AI_PROVIDER``) and every
variant exposes the same two calls:

- ``sanitize(raw_text)``: rewrite a pasted list into one clean item per line
- ``expand(items)``: map each cleaned line to alternate product phrases

``analyze_shopping_list`` runs both as a single unit: it either returns a
cleaned text together with its expansion map, or raises ``AIServiceError``.
"""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

import httpx

from .config import (
    GEMINI_API_URL,
    OPENROUTER_API_URL,
    get_ai_provider_name,
    get_ai_timeout,
    get_gemini_settings,
    get_openrouter_settings,
)
from .normalizer import prepare_list_text, split_list_lines

logger = logging.getLogger(__name__)


class AIServiceError(Exception):
    """Exception raised when an AI provider call fails."""

    pass


def sanitize_prompt(raw_text: str) -> str:
    return f"""Clean up this grocery shopping list.
- Remove bullet points, symbols, and numbering.
- Fix obvious spelling errors.
- One product per line.
- Return ONLY the cleaned list text.
List: {raw_text}"""


def expand_prompt(items: list[str]) -> str:
    item_lines = "\n".join(items)
    return f"""You are a grocery item semantic mapper. For each item in the list, provide 5-7 alternate search keywords or specific product phrases likely found in a Walmart order history.

CRITICAL RULES:
1. Keywords MUST strictly align with the user's intent.
2. DO NOT suggest items that just share a word fragment (e.g., if searching for "anti gas", do NOT suggest "bubbles").
3. For generic items like "breakfast sandwiches", suggest actual products like "sausage biscuit", "bacon croissant", "Jimmy Dean", "breakfast muffin".
4. Return a JSON object where keys are the original items and values are arrays of strings.

Shopping List:
{item_lines}"""


def build_expansion_schema(items: list[str]) -> dict[str, Any]:
    """Build the JSON schema for an expansion response keyed by the given items."""
    return {
        "type": "object",
        "properties": {item: {"type": "array", "items": {"type": "string"}} for item in items},
        "required": list(items),
        "additionalProperties": False,
    }


def parse_expansions(content: str) -> dict[str, list[str]]:
    """
    Parse an expansion response body.

    Args:
        content: JSON text returned by the model

    Returns:
        Dict mapping list item to alternate phrases

    Raises:
        AIServiceError: If the content is not a JSON object of string lists
    """
    try:
        data = json.loads(content or "{}")
    except json.JSONDecodeError as e:
        raise AIServiceError(f"Malformed expansion response: {e}") from e

    if not isinstance(data, dict):
        raise AIServiceError("Malformed expansion response: expected a JSON object")

    expansions: dict[str, list[str]] = {}
    for item, phrases in data.items():
        if not isinstance(phrases, list) or not all(isinstance(p, str) for p in phrases):
            raise AIServiceError(f"Malformed expansion response for '{item}'")
        expansions[item] = phrases
    return expansions


def _gemini_text(data: dict[str, Any]) -> str:
    """
    Extract the text of the first candidate from a generateContent response.

    A response without candidates, content or parts yields "" (e.g. a
    blocked prompt). Anything else not shaped as text parts is an error.
    """
    candidates = data.get("candidates") or []
    if not isinstance(candidates, list):
        raise AIServiceError("Malformed Gemini response: 'candidates' is not a list")
    if not candidates:
        return ""

    candidate = candidates[0]
    content = candidate.get("content") if isinstance(candidate, dict) else None
    if content is None:
        return ""
    if not isinstance(content, dict):
        raise AIServiceError("Malformed Gemini response: 'content' is not an object")

    parts = content.get("parts") or []
    if not isinstance(parts, list):
        raise AIServiceError("Malformed Gemini response: 'parts' is not a list")

    texts = []
    for part in parts:
        text = part.get("text", "") if isinstance(part, dict) else None
        if not isinstance(text, str):
            raise AIServiceError("Malformed Gemini response: part text is not a string")
        texts.append(text)
    return "".join(texts)


def _openrouter_content(data: dict[str, Any]) -> str:
    """Extract the message content of the first choice from a chat completion."""
    choices = data.get("choices") or []
    if not isinstance(choices, list):
        raise AIServiceError("Malformed OpenRouter response: 'choices' is not a list")
    if not choices:
        raise AIServiceError("No content in OpenRouter response")

    choice = choices[0]
    message = choice.get("message") if isinstance(choice, dict) else None
    if not isinstance(message, dict):
        raise AIServiceError("Malformed OpenRouter response: missing message")

    content = message.get("content")
    if content is not None and not isinstance(content, str):
        raise AIServiceError("Malformed OpenRouter response: content is not a string")
    if not content:
        raise AIServiceError("No content in OpenRouter response")
    return content


class AIProvider(Protocol):
    """Capability shared by every list cleanup provider."""

    def sanitize(self, raw_text: str) -> str: ...

    def expand(self, items: list[str]) -> dict[str, list[str]]: ...


class PassthroughProvider:
    """Offline provider: splits comma lists, trims lines, suggests nothing."""

    def sanitize(self, raw_text: str) -> str:
        return "\n".join(split_list_lines(prepare_list_text(raw_text)))

    def expand(self, items: list[str]) -> dict[str, list[str]]:
        return {}


class GeminiProvider:
    """Google Gemini provider using the generateContent REST endpoint."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
    ):
        default_key, default_model = get_gemini_settings()
        self.api_key = api_key or default_key
        self.model = model or default_model
        self.timeout = timeout or get_ai_timeout()

    def _generate(self, prompt: str, response_schema: dict[str, Any] | None = None) -> str:
        if not self.api_key:
            raise AIServiceError("GEMINI_API_KEY is not configured")

        url = f"{GEMINI_API_URL}/models/{self.model}:generateContent"
        body: dict[str, Any] = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
        if response_schema is not None:
            body["generationConfig"] = {
                "responseMimeType": "application/json",
                "responseSchema": response_schema,
            }

        try:
            response = httpx.post(
                url, json=body, headers={"x-goog-api-key": self.api_key}, timeout=self.timeout
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            raise AIServiceError(f"Gemini API error: {e}") from e
        except ValueError as e:
            raise AIServiceError(f"Gemini API returned invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise AIServiceError("Gemini API returned an unexpected response")

        return _gemini_text(data)

    def sanitize(self, raw_text: str) -> str:
        return self._generate(sanitize_prompt(raw_text)).strip() or raw_text

    def expand(self, items: list[str]) -> dict[str, list[str]]:
        if not items:
            return {}
        # Gemini's schema dialect has no additionalProperties
        schema = {
            "type": "OBJECT",
            "properties": {item: {"type": "ARRAY", "items": {"type": "STRING"}} for item in items},
        }
        return parse_expansions(self._generate(expand_prompt(items), schema))


class OpenRouterProvider:
    """OpenRouter provider using the OpenAI-compatible chat completions API."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
    ):
        default_key, default_model = get_openrouter_settings()
        self.api_key = api_key or default_key
        self.model = model or default_model
        self.timeout = timeout or get_ai_timeout()

    def _chat(self, messages: list[dict[str, str]], json_schema: dict[str, Any] | None = None) -> str:
        if not self.api_key:
            raise AIServiceError("OPENROUTER_API_KEY is not configured")

        body: dict[str, Any] = {"model": self.model, "messages": messages}
        if json_schema is not None:
            body["response_format"] = {
                "type": "json_schema",
                "json_schema": {"name": "response", "strict": True, "schema": json_schema},
            }

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "X-Title": "SmartCart Standardizer",
        }

        try:
            response = httpx.post(
                OPENROUTER_API_URL, json=body, headers=headers, timeout=self.timeout
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise AIServiceError(
                f"OpenRouter API error: {e.response.status_code} - {e.response.text}"
            ) from e
        except httpx.HTTPError as e:
            raise AIServiceError(f"OpenRouter API error: {e}") from e
        except ValueError as e:
            raise AIServiceError(f"OpenRouter API returned invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise AIServiceError("OpenRouter API returned an unexpected response")

        return _openrouter_content(data)

    def sanitize(self, raw_text: str) -> str:
        content = self._chat([{"role": "user", "content": sanitize_prompt(raw_text)}])
        return content.strip() or raw_text

    def expand(self, items: list[str]) -> dict[str, list[str]]:
        if not items:
            return {}
        content = self._chat(
            [{"role": "user", "content": expand_prompt(items)}],
            build_expansion_schema(items),
        )
        return parse_expansions(content)


class AIProviderKind(Enum):
    """The closed set of supported providers."""

    GEMINI = "gemini"
    OPENROUTER = "openrouter"
    NONE = "none"

    @classmethod
    def from_name(cls, name: str) -> "AIProviderKind":
        try:
            return cls(name.strip().lower())
        except ValueError:
            valid = ", ".join(kind.value for kind in cls)
            raise AIServiceError(f"Unknown AI provider '{name}' (expected one of: {valid})") from None


def create_provider(kind: AIProviderKind | None = None) -> AIProvider:
    """
    Create the provider for a kind, or for the configured ``AI_PROVIDER``.

    Raises:
        AIServiceError: If the configured provider name is unknown
    """
    if kind is None:
        kind = AIProviderKind.from_name(get_ai_provider_name())

    if kind is AIProviderKind.OPENROUTER:
        return OpenRouterProvider()
    if kind is AIProviderKind.NONE:
        return PassthroughProvider()
    return GeminiProvider()


@dataclass
class AnalysisResult:
    """Cleaned list text with the expansions found for each line."""

    cleaned_text: str
    expansions: dict[str, list[str]] = field(default_factory=dict)


def analyze_shopping_list(provider: AIProvider, raw_text: str) -> AnalysisResult:
    """
    Clean up a shopping list and expand each item into alternate phrases.

    Args:
        provider: The configured AI provider
        raw_text: List text as pasted by the user

    Returns:
        AnalysisResult with cleaned text and expansions

    Raises:
        AIServiceError: If either step fails
    """
    logger.info("Analyzing shopping list with %s", type(provider).__name__)
    cleaned_text = provider.sanitize(raw_text)
    items = split_list_lines(cleaned_text)
    expansions = provider.expand(items)
    logger.info("Analysis complete: %d items, %d expanded", len(items), len(expansions))
    return AnalysisResult(cleaned_text=cleaned_text, expansions=expansions)
