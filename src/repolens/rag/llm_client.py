"""LiteLLM client wrapper with retry, backoff, and API key validation.

All generation calls route through this module. LiteLLM's built-in retry is
used (num_retries, exponential backoff). API key presence is validated by the
CLI before any generation begins.
"""

from __future__ import annotations

import logging
import os

import litellm

# Disable LiteLLM verbose logging unless explicitly enabled
litellm.suppress_debug_info = True
litellm.set_verbose = False  # type: ignore[assignment]

logger = logging.getLogger(__name__)

EMPTY_COMPLETION = "No response generated"


class GenerationError(RuntimeError):
    """Raised when the generation backend call fails or times out."""


# ------------------------------------------------------------------
# Provider → env var mapping for API key validation
# ------------------------------------------------------------------

_PROVIDER_ENV: dict[str, str | None] = {
    "openrouter": "OPENROUTER_API_KEY",
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "azure": "AZURE_API_KEY",
    "cohere": "COHERE_API_KEY",
    "google": "GOOGLE_API_KEY",
    "mistral": "MISTRAL_API_KEY",
    "groq": "GROQ_API_KEY",
    "together_ai": "TOGETHERAI_API_KEY",
    "ollama": None,  # Local, no key required
    "ollama_chat": None,
}


def provider_of(model: str) -> str:
    return model.split("/")[0].lower() if "/" in model else "openai"


def validate_api_key(model: str) -> None:
    """Check that the required API key env var is set for *model*.

    Raises:
        EnvironmentError: If the required key is missing from environment.
    """
    provider = provider_of(model)
    env_var = _PROVIDER_ENV.get(provider, f"{provider.upper()}_API_KEY")

    if env_var is None:
        return

    if not os.getenv(env_var):
        raise EnvironmentError(
            f"API key not found for provider '{provider}'. "
            f"Set the {env_var} environment variable."
        )


def complete(
    model: str,
    messages: list[dict],
    max_tokens: int = 1_000,
    temperature: float = 0.2,
    num_retries: int = 3,
    timeout: float | None = None,
) -> str:
    """Call litellm.completion() with retry/backoff. Returns content string ('' if none)."""
    kwargs: dict = {}
    if timeout is not None:
        kwargs["timeout"] = timeout
    response = litellm.completion(
        model=model,
        messages=messages,
        max_tokens=max_tokens,
        temperature=temperature,
        num_retries=num_retries,
        **kwargs,
    )
    return response.choices[0].message.content or ""


def generate(
    system_prompt: str,
    user_prompt: str,
    *,
    model: str,
    temperature: float,
    max_tokens: int,
    timeout: float | None = None,
    num_retries: int = 3,
    empty_fallback: str = EMPTY_COMPLETION,
) -> str:
    """One system + user exchange with the chat backend.

    Returns:
        The generated text, or *empty_fallback* if the backend sent nothing.

    Raises:
        GenerationError: On any backend failure, including timeouts.
    """
    messages = [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": user_prompt},
    ]
    try:
        text = complete(
            model=model,
            messages=messages,
            max_tokens=max_tokens,
            temperature=temperature,
            num_retries=num_retries,
            timeout=timeout,
        )
    except Exception as exc:
        logger.error("generation with %s failed: %s", model, exc)
        raise GenerationError(str(exc) or exc.__class__.__name__) from exc

    text = text.strip()
    logger.debug("generated %d chars with %s", len(text), model)
    return text or empty_fallback
