"""
Cost calculations for a hypothetical request.

Turns a token usage scenario and a model's per-token prices into an
itemized cost breakdown, including prompt cache reads and writes.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from .catalog import Model, parse_price
from .errors import UnsupportedTTLError

# Cache write price = prompt price * multiplier, by cache lifetime in minutes
TTL_MULTIPLIERS: Dict[int, Decimal] = {
    5: Decimal("1.25"),
    60: Decimal("2.0"),
}
DEFAULT_TTL_MINUTES = 5


@dataclass(frozen=True)
class UsageScenario:
    """Token counts for the request being priced.

    ``cached_tokens`` is None when no caching was requested. Zero is a valid,
    distinct value: caching requested, nothing read from the cache.
    """
    input_tokens: int
    output_tokens: int
    cached_tokens: Optional[int] = None
    ttl_minutes: int = DEFAULT_TTL_MINUTES

    def __post_init__(self):
        """Validate token counts are non-negative."""
        if self.input_tokens < 0:
            raise ValueError("input_tokens must be >= 0")
        if self.output_tokens < 0:
            raise ValueError("output_tokens must be >= 0")
        if self.cached_tokens is not None and self.cached_tokens < 0:
            raise ValueError("cached_tokens must be >= 0")

    @property
    def caching_requested(self) -> bool:
        return self.cached_tokens is not None

    @property
    def new_tokens(self) -> int:
        """Input tokens not served from the cache, floored at zero."""
        return max(self.input_tokens - (self.cached_tokens or 0), 0)


@dataclass(frozen=True)
class CostBreakdown:
    """Itemized cost of one scenario against one model."""
    input_cost: Decimal
    output_cost: Decimal
    cache_read_cost: Decimal = Decimal(0)
    cache_write_cost: Decimal = Decimal(0)
    total_cost: Decimal = field(init=False)

    def __post_init__(self):
        total = self.input_cost + self.output_cost + self.cache_read_cost + self.cache_write_cost
        object.__setattr__(self, "total_cost", total)


@dataclass(frozen=True)
class CostRow:
    """A model paired with its computed breakdown."""
    model: Model
    breakdown: CostBreakdown


def ttl_multiplier(ttl_minutes: int) -> Decimal:
    """Get the cache write multiplier for a cache lifetime.

    Raises:
        UnsupportedTTLError: If the TTL is neither 5 nor 60 minutes
    """
    try:
        return TTL_MULTIPLIERS[ttl_minutes]
    except KeyError:
        raise UnsupportedTTLError(ttl_minutes, TTL_MULTIPLIERS)


def validate_scenario(scenario: UsageScenario) -> None:
    """Check scenario-wide parameters before any model is priced."""
    ttl_multiplier(scenario.ttl_minutes)


def calculate_cost(model: Model, scenario: UsageScenario) -> CostBreakdown:
    """Calculate the itemized cost of a scenario for one model.

    Output tokens are always billed in full at the completion price. Without
    cache information every input token is billed at the prompt price. With
    cache information, cached tokens are read at the cache read price
    (falling back to the prompt price) and the remaining new tokens are
    either written to the cache at the TTL-derived write price, when the
    model offers cache writes, or billed at the plain prompt price.

    Args:
        model: Model to price
        scenario: Token usage to price

    Returns:
        CostBreakdown with an exact total

    Raises:
        InvalidPriceError: If a price needed for the computation fails to parse
        UnsupportedTTLError: If the scenario TTL is not supported
    """
    pricing = model.pricing
    prompt_price = parse_price(pricing.prompt, "prompt", model.id)
    completion_price = parse_price(pricing.completion, "completion", model.id)

    output_cost = scenario.output_tokens * completion_price

    if not scenario.caching_requested:
        return CostBreakdown(
            input_cost=scenario.input_tokens * prompt_price,
            output_cost=output_cost,
        )

    cached = scenario.cached_tokens
    cache_read_cost = Decimal(0)
    if cached > 0:
        if pricing.input_cache_read is not None:
            read_price = parse_price(pricing.input_cache_read, "cache read", model.id)
        else:
            read_price = prompt_price
        cache_read_cost = cached * read_price

    # New tokens land in exactly one of input_cost or cache_write_cost
    new_tokens = scenario.new_tokens
    input_cost = Decimal(0)
    cache_write_cost = Decimal(0)
    if pricing.offers_cache_write:
        write_price = prompt_price * ttl_multiplier(scenario.ttl_minutes)
        cache_write_cost = new_tokens * write_price
    else:
        input_cost = new_tokens * prompt_price

    return CostBreakdown(
        input_cost=input_cost,
        output_cost=output_cost,
        cache_read_cost=cache_read_cost,
        cache_write_cost=cache_write_cost,
    )


def calculate_costs(models: Sequence[Model], scenario: UsageScenario) -> List[CostRow]:
    """Price every model for the same scenario.

    The scenario is validated once up front, and the first model with an
    invalid price aborts the whole batch.
    """
    validate_scenario(scenario)
    return [CostRow(model=model, breakdown=calculate_cost(model, scenario)) for model in models]
