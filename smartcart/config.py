"""Configuration for SmartCart Standardizer."""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

APP_NAME = "smartcart-standardizer"

# AI provider configuration
DEFAULT_AI_PROVIDER = "gemini"
GEMINI_API_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_GEMINI_MODEL = "gemini-3-flash-preview"
OPENROUTER_API_URL = "https://openrouter.ai/api/v1/chat/completions"
DEFAULT_OPENROUTER_MODEL = "google/gemini-3-flash-preview"
DEFAULT_AI_TIMEOUT = 60.0

# Accepted purchase history file types
HISTORY_EXTENSIONS = (".csv", ".xlsx", ".xls")


class ConfigError(Exception):
    """Exception raised for invalid configuration values."""

    pass


@dataclass(frozen=True)
class ScoringWeights:
    """Points awarded by each scoring tier, plus the minimum score to keep a candidate."""

    substring: int = 1000
    expansion: int = 600
    token: int = 50
    min_score: int = 150


def _int_from_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got '{value}'") from e


def get_scoring_weights() -> ScoringWeights:
    """Get scoring weights, allowing each to be recalibrated from the environment."""
    defaults = ScoringWeights()
    return ScoringWeights(
        substring=_int_from_env("SMARTCART_SUBSTRING_WEIGHT", defaults.substring),
        expansion=_int_from_env("SMARTCART_EXPANSION_WEIGHT", defaults.expansion),
        token=_int_from_env("SMARTCART_TOKEN_WEIGHT", defaults.token),
        min_score=_int_from_env("SMARTCART_MIN_SCORE", defaults.min_score),
    )


def get_ai_provider_name() -> str:
    """Get the configured AI provider name."""
    return (os.getenv("AI_PROVIDER") or DEFAULT_AI_PROVIDER).strip().lower()


def get_gemini_settings() -> tuple[str | None, str]:
    """Get the Gemini API key and model."""
    api_key = os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY")
    model = os.getenv("GEMINI_MODEL") or DEFAULT_GEMINI_MODEL
    return api_key, model


def get_openrouter_settings() -> tuple[str | None, str]:
    """Get the OpenRouter API key and model."""
    api_key = os.getenv("OPENROUTER_API_KEY")
    model = os.getenv("OPENROUTER_MODEL") or DEFAULT_OPENROUTER_MODEL
    return api_key, model


def get_ai_timeout() -> float:
    """Get the HTTP timeout (seconds) for AI provider calls."""
    value = os.getenv("AI_TIMEOUT")
    if value is None or not value.strip():
        return DEFAULT_AI_TIMEOUT
    try:
        return float(value)
    except ValueError as e:
        raise ConfigError(f"AI_TIMEOUT must be a number, got '{value}'") from e
