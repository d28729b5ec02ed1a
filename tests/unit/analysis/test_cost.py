import pytest

from papertutor.analysis.cost import UsageTotals, calculate_cost, round_cost


class TestCalculateCost:
    def test_default_rates(self) -> None:
        assert calculate_cost(1_000_000, 0) == pytest.approx(2.00)
        assert calculate_cost(0, 1_000_000) == pytest.approx(8.00)
        assert calculate_cost(1000, 500) == pytest.approx(0.006)

    def test_custom_rates(self) -> None:
        assert calculate_cost(2_000_000, 1_000_000, input_rate=0.5, output_rate=1.5) == pytest.approx(2.5)

    def test_zero_rate_is_respected(self) -> None:
        assert calculate_cost(1_000_000, 1_000_000, input_rate=0.0, output_rate=0.0) == 0.0

    def test_negative_tokens_raise(self) -> None:
        with pytest.raises(ValueError, match="token counts must be >= 0"):
            calculate_cost(-1, 0)


def test_round_cost_keeps_four_decimals() -> None:
    assert round_cost(0.123456) == 0.1235
    assert round_cost(0.00004) == 0.0


class TestUsageTotals:
    def test_add_returns_new_totals(self) -> None:
        start = UsageTotals()

        after = start.add(1000, 500)

        assert start.total_tokens == 0
        assert after.input_tokens == 1000
        assert after.output_tokens == 500
        assert after.total_tokens == 1500
        assert after.calls == 1
        assert after.cost == pytest.approx(0.006)

    def test_cost_never_decreases(self) -> None:
        totals = UsageTotals()
        previous = totals.cost

        for prompt_tokens, completion_tokens in [(120, 40), (0, 0), (9000, 3000), (1, 1)]:
            totals = totals.add(prompt_tokens, completion_tokens)
            assert totals.cost >= previous
            previous = totals.cost

    def test_rounding_only_applies_to_total(self) -> None:
        totals = UsageTotals()
        for _ in range(10):
            totals = totals.add(10, 10)

        assert totals.rounded_cost == pytest.approx(0.001)
        assert UsageTotals().add(10, 10).rounded_cost == 0.0001
