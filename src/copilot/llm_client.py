"""
LLM access for the analyst and the territory report.

Providers:
  mock      -- echoes the start of the prompt; no network, used offline and in tests
  openai    -- Chat Completions (model from ``openai_model``)
  anthropic -- Messages API (model from ``anthropic_model``)

The provider defaults to ``llm_provider`` in Settings and can be
overridden per call (the CLI ``--mode`` flag, the API ``mode`` field).
SDKs are imported only when their provider is used.
"""
from __future__ import annotations

from typing import Callable

from src.core.config import Settings, get_settings
from src.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_SYSTEM_PROMPT = "Analyze customer sales data. Be concise and focus on key metrics."
DEFAULT_MAX_TOKENS = 500
MOCK_ECHO_CHARS = 200


def _api_key(settings: Settings, field: str) -> str:
    key = getattr(settings, field)
    if not key:
        raise RuntimeError(
            f"{field} is not set.  Add {field.upper()} to .env or the environment, "
            f"or use the mock provider."
        )
    return key


def _mock(prompt: str, system: str, max_tokens: int) -> str:
    return f"[MOCK] {prompt[:MOCK_ECHO_CHARS]}"


def _openai(prompt: str, system: str, max_tokens: int) -> str:
    settings = get_settings()
    key = _api_key(settings, "openai_api_key")
    try:
        from openai import OpenAI
    except ImportError as exc:
        raise RuntimeError("openai provider selected but the openai package is missing") from exc

    completion = OpenAI(api_key=key).chat.completions.create(
        model=settings.openai_model,
        messages=[
            {"role": "system", "content": system},
            {"role": "user", "content": prompt},
        ],
        temperature=settings.llm_temperature,
        max_tokens=max_tokens,
    )
    return completion.choices[0].message.content or ""


def _anthropic(prompt: str, system: str, max_tokens: int) -> str:
    settings = get_settings()
    key = _api_key(settings, "anthropic_api_key")
    try:
        from anthropic import Anthropic
    except ImportError as exc:
        raise RuntimeError("anthropic provider selected but the anthropic package is missing") from exc

    message = Anthropic(api_key=key).messages.create(
        model=settings.anthropic_model,
        system=system,
        messages=[{"role": "user", "content": prompt}],
        temperature=settings.llm_temperature,
        max_tokens=max_tokens,
    )
    return "".join(block.text for block in message.content if getattr(block, "type", "") == "text")


_PROVIDERS: dict[str, Callable[[str, str, int], str]] = {
    "mock": _mock,
    "openai": _openai,
    "anthropic": _anthropic,
}


def call_llm(
    prompt: str,
    provider: str | None = None,
    system: str = DEFAULT_SYSTEM_PROMPT,
    max_tokens: int = DEFAULT_MAX_TOKENS,
) -> str:
    """Send *prompt* to an LLM and return the reply text.

    Parameters
    ----------
    prompt : str
        User message.
    provider : str, optional
        mock, openai or anthropic; ``None`` uses ``llm_provider`` from Settings.
    system : str
        System instruction.
    max_tokens : int
        Reply length cap.

    Raises
    ------
    NotImplementedError
        For an unknown provider name.
    RuntimeError
        When the provider's API key is missing.
    """
    name = (provider or get_settings().llm_provider).lower()
    fn = _PROVIDERS.get(name)
    if fn is None:
        raise NotImplementedError(
            f"LLM provider '{name}' is not supported (use one of: {', '.join(_PROVIDERS)})"
        )
    reply = fn(prompt, system, max_tokens)
    logger.info("LLM %s: %d-char prompt -> %d-char reply", name, len(prompt), len(reply))
    return reply
