"""Model pricing in USD per million tokens."""

from pydantic import BaseModel, ConfigDict


class ModelRates(BaseModel):
    model_config = ConfigDict(frozen=True)

    input: float
    output: float


def _rates(input_rate: float, output_rate: float) -> ModelRates:
    return ModelRates(input=input_rate, output=output_rate)


PROVIDER_PRICING: dict[str, dict[str, ModelRates]] = {
    "openai": {
        "gpt-4.1": _rates(2.00, 8.00),
        "gpt-4.1-mini": _rates(0.40, 1.60),
        "gpt-4.1-nano": _rates(0.10, 0.40),
        "gpt-4o": _rates(5.00, 20.00),
        "gpt-4o-mini": _rates(0.60, 2.40),
        "gpt-4": _rates(30.00, 60.00),
        "gpt-4-turbo": _rates(10.00, 30.00),
        "gpt-3.5-turbo": _rates(1.50, 2.00),
        "o3": _rates(10.00, 40.00),
        "o4-mini": _rates(1.10, 4.40),
    },
    "anthropic": {
        "claude-opus-4": _rates(15.00, 75.00),
        "claude-sonnet-4": _rates(3.00, 15.00),
        "claude-3-7-sonnet": _rates(3.00, 15.00),
        "claude-3-5-sonnet": _rates(3.00, 15.00),
        "claude-3-5-haiku": _rates(0.80, 4.00),
        "claude-3-opus": _rates(15.00, 75.00),
        "claude-3-sonnet": _rates(3.00, 15.00),
        "claude-3-haiku": _rates(0.25, 1.25),
    },
    "gemini": {
        "gemini-1.5-pro": _rates(1.25, 5.00),
        "gemini-1.5-flash": _rates(0.075, 0.30),
        "gemini-2.0-flash": _rates(0.075, 0.30),
    },
    "deepseek": {
        "deepseek-chat": _rates(0.14, 0.28),
        "deepseek-coder": _rates(0.14, 0.28),
    },
    "mistral": {
        "mistral-large": _rates(2.00, 6.00),
        "mistral-medium": _rates(2.70, 8.10),
        "mistral-small": _rates(0.20, 0.60),
    },
    "ollama": {
        "default": _rates(0.00, 0.00),
    },
}

DEFAULT_RATES = _rates(1.00, 2.00)

_PROVIDER_PREFIXES = {
    "gpt-": "openai",
    "o3": "openai",
    "o4-": "openai",
    "claude-": "anthropic",
    "gemini-": "gemini",
    "deepseek-": "deepseek",
    "mistral-": "mistral",
}


def detect_provider(model: str) -> str | None:
    for prefix, provider in _PROVIDER_PREFIXES.items():
        if model.startswith(prefix):
            return provider
    return None


def get_model_rates(model: str) -> tuple[ModelRates, str]:
    """Resolve rates for a model.

    Lookup order: exact name in any provider, then the longest known model name
    that prefixes ``model`` within its detected provider, then default rates.

    Returns:
        Tuple of (rates, source) where source is "exact", "similar" or "default"
    """
    for models in PROVIDER_PRICING.values():
        if model in models:
            return models[model], "exact"

    provider = detect_provider(model)
    if provider is not None:
        candidates = [name for name in PROVIDER_PRICING[provider] if model.startswith(name)]
        if candidates:
            return PROVIDER_PRICING[provider][max(candidates, key=len)], "similar"

    return DEFAULT_RATES, "default"
