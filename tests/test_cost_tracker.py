"""Tests for model pricing and the usage ledger."""

import pytest

from docdrift.core.cost_tracker import CostTracker
from docdrift.core.pricing import DEFAULT_RATES, PROVIDER_PRICING, detect_provider, get_model_rates


class TestModelRates:
    def test_get_model_rates__exact_match(self) -> None:
        rates, source = get_model_rates("claude-sonnet-4")

        assert source == "exact"
        assert rates == PROVIDER_PRICING["anthropic"]["claude-sonnet-4"]

    def test_get_model_rates__dated_variant_uses_longest_known_prefix(self) -> None:
        rates, source = get_model_rates("gpt-4.1-mini-2025-04-14")

        assert source == "similar"
        assert rates == PROVIDER_PRICING["openai"]["gpt-4.1-mini"]

    def test_get_model_rates__unknown_model_falls_back_to_default(self) -> None:
        rates, source = get_model_rates("llama-local")

        assert source == "default"
        assert rates == DEFAULT_RATES

    @pytest.mark.parametrize(
        "model,provider",
        [
            ("gpt-4o", "openai"),
            ("o4-mini", "openai"),
            ("claude-3-haiku", "anthropic"),
            ("gemini-2.0-flash", "gemini"),
            ("something-else", None),
        ],
    )
    def test_detect_provider__matches_name_prefix(self, model, provider) -> None:
        assert detect_provider(model) == provider


class TestCostTracker:
    def test_calculate_cost__prices_per_million_tokens(self) -> None:
        cost = CostTracker.calculate_cost("gpt-4.1-nano", 1_000_000, 1_000_000)

        assert cost == pytest.approx(0.10 + 0.40)

    def test_record_usage__appends_to_ledger(self, store) -> None:
        tracker = CostTracker(store)

        cost = tracker.record_usage("claude-sonnet-4", 1000, 500, "app/User.php")

        entries = store.get_usage_entries()
        assert len(entries) == 1
        assert entries[0].model == "claude-sonnet-4"
        assert entries[0].input_tokens == 1000
        assert entries[0].output_tokens == 500
        assert entries[0].cost == pytest.approx(cost)
        assert cost == pytest.approx(1000 / 1_000_000 * 3.00 + 500 / 1_000_000 * 15.00)

    def test_estimate_cost__rounds_input_tokens_up(self, store) -> None:
        estimate = CostTracker(store).estimate_cost("gpt-4.1-nano", "x" * 10, estimated_output_tokens=100)

        assert estimate.estimated_input_tokens == 3
        assert estimate.estimated_output_tokens == 100
        assert estimate.estimated_total_tokens == 103
        assert estimate.rates_source == "exact"

    def test_estimate_cost__defaults_output_tokens_from_settings(self, store) -> None:
        from docdrift.core.settings import settings

        estimate = CostTracker(store).estimate_cost("unknown-model", "")

        assert estimate.estimated_input_tokens == 0
        assert estimate.estimated_output_tokens == settings.estimated_output_tokens
        assert estimate.rates == DEFAULT_RATES

    def test_estimate_cost__does_not_touch_the_ledger(self, store) -> None:
        CostTracker(store).estimate_cost("gpt-4.1-nano", "hello world")

        assert store.get_usage_entries() == []
