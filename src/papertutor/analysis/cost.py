"""
Token cost accounting.

Costs are computed from the token counts the model reports for each call
and summed; only the final total is rounded.
"""

from dataclasses import dataclass

from papertutor.config import settings

TOKENS_PER_UNIT = 1_000_000
COST_DECIMALS = 4


def calculate_cost(
    input_tokens: int,
    output_tokens: int,
    input_rate: float | None = None,
    output_rate: float | None = None,
) -> float:
    """
    Cost of one call in USD.

    Args:
        input_tokens: Prompt tokens reported by the model
        output_tokens: Completion tokens reported by the model
        input_rate: USD per million input tokens (default from settings)
        output_rate: USD per million output tokens (default from settings)
    """
    if input_tokens < 0 or output_tokens < 0:
        raise ValueError("token counts must be >= 0")

    input_rate = settings.input_cost_per_million if input_rate is None else input_rate
    output_rate = settings.output_cost_per_million if output_rate is None else output_rate

    return (
        input_tokens / TOKENS_PER_UNIT * input_rate
        + output_tokens / TOKENS_PER_UNIT * output_rate
    )


def round_cost(cost: float) -> float:
    return round(cost, COST_DECIMALS)


@dataclass(frozen=True)
class UsageTotals:
    """Running token and cost totals across model calls."""

    input_tokens: int = 0
    output_tokens: int = 0
    cost: float = 0.0
    calls: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    @property
    def rounded_cost(self) -> float:
        return round_cost(self.cost)

    def add(
        self,
        input_tokens: int,
        output_tokens: int,
        input_rate: float | None = None,
        output_rate: float | None = None,
    ) -> "UsageTotals":
        """Return new totals with one more call counted."""
        return UsageTotals(
            input_tokens=self.input_tokens + input_tokens,
            output_tokens=self.output_tokens + output_tokens,
            cost=self.cost + calculate_cost(input_tokens, output_tokens, input_rate, output_rate),
            calls=self.calls + 1,
        )
