"""Token usage accounting for documentation generation."""

import logging
import math
from pathlib import Path

from pydantic import BaseModel

from docdrift.core.database import TrackingStore
from docdrift.core.pricing import ModelRates, get_model_rates
from docdrift.core.settings import settings

logger = logging.getLogger(__name__)

CHARS_PER_TOKEN = 4


class CostEstimate(BaseModel):
    model: str
    estimated_input_tokens: int
    estimated_output_tokens: int
    estimated_cost: float
    rates: ModelRates
    rates_source: str

    @property
    def estimated_total_tokens(self) -> int:
        return self.estimated_input_tokens + self.estimated_output_tokens


class CostTracker:
    """Prices token usage and appends it to the store's usage ledger."""

    def __init__(self, store: TrackingStore):
        self.store = store

    @staticmethod
    def calculate_cost(model: str, input_tokens: int, output_tokens: int) -> float:
        rates, _ = get_model_rates(model)
        return input_tokens / 1_000_000 * rates.input + output_tokens / 1_000_000 * rates.output

    def record_usage(
        self, model: str, input_tokens: int, output_tokens: int, path: str | Path | None = None
    ) -> float:
        """Price and record one generation call.

        Returns:
            Cost in USD
        """
        cost = self.calculate_cost(model, input_tokens, output_tokens)
        self.store.record_token_usage(model, input_tokens, output_tokens, cost, path)
        logger.debug(f"Recorded {input_tokens}+{output_tokens} tokens for {model}: ${cost:.6f}")
        return cost

    def estimate_cost(self, model: str, input_text: str, estimated_output_tokens: int | None = None) -> CostEstimate:
        """Estimate cost without calling a model, at roughly four characters per token."""
        if estimated_output_tokens is None:
            estimated_output_tokens = settings.estimated_output_tokens
        input_tokens = math.ceil(len(input_text) / CHARS_PER_TOKEN)
        rates, source = get_model_rates(model)
        return CostEstimate(
            model=model,
            estimated_input_tokens=input_tokens,
            estimated_output_tokens=estimated_output_tokens,
            estimated_cost=self.calculate_cost(model, input_tokens, estimated_output_tokens),
            rates=rates,
            rates_source=source,
        )
