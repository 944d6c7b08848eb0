"""
Listing and cost calculation flows.

Runs one invocation over an already-fetched catalog:
filter -> sort -> group, then either hand the groups to presentation or
price every model and optionally order the rows by total cost.

The flows are read-only and deterministic for the same inputs. All
configuration checks run before any model is priced.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Union

from .catalog import Model
from .filtering import filter_models, flatten_groups, group_by_provider
from .pricing import CostRow, UsageScenario, calculate_costs, validate_scenario
from .sorting import SortKey, SortSpec, check_sort_scope, sort_models, sort_rows

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunConfig:
    """Validated options for one invocation.

    A scenario selects the cost calculation flow; without one the catalog
    is listed.
    """
    filters: List[str] = field(default_factory=list)
    verbose: bool = False
    sort: Optional[SortSpec] = None
    scenario: Optional[UsageScenario] = None


@dataclass
class ListingResult:
    """Models grouped by provider, ready for display."""
    groups: Dict[str, List[Model]]

    @property
    def models(self) -> List[Model]:
        return list(flatten_groups(self.groups))

    @property
    def is_empty(self) -> bool:
        return not self.groups


@dataclass
class CalculationResult:
    """Cost rows for every matching model and the scenario they price."""
    rows: List[CostRow]
    scenario: UsageScenario

    @property
    def caching_requested(self) -> bool:
        return self.scenario.caching_requested

    @property
    def is_empty(self) -> bool:
        return not self.rows


def validate_config(config: RunConfig) -> None:
    """Run the configuration checks that must pass before any work is done.

    Raises:
        UnsupportedTTLError: If the scenario TTL is not supported
        SortScopeError: If the sort key is not available in the selected flow
    """
    calculating = config.scenario is not None
    if calculating:
        validate_scenario(config.scenario)
    if config.sort is not None:
        check_sort_scope(config.sort, calculating=calculating)


def _select(models: Sequence[Model], config: RunConfig) -> Dict[str, List[Model]]:
    selected = filter_models(models, config.filters)
    sort = config.sort
    if sort is not None and sort.key is not SortKey.TOTAL:
        selected = sort_models(selected, sort)
    return group_by_provider(selected)


def build_listing(models: Sequence[Model], config: RunConfig) -> ListingResult:
    """Filter, sort and group the catalog for listing.

    Raises:
        ValueError: If the config carries a scenario
        SortScopeError: If sorting by total was requested
    """
    if config.scenario is not None:
        raise ValueError("Listing does not take a usage scenario")
    validate_config(config)

    groups = _select(models, config)
    logger.debug(
        "Listing %d of %d models across %d providers",
        sum(len(group) for group in groups.values()), len(models), len(groups),
    )
    return ListingResult(groups=groups)


def build_calculation(models: Sequence[Model], config: RunConfig) -> CalculationResult:
    """Price every matching model for the configured scenario.

    Raises:
        ValueError: If the config carries no scenario
        UnsupportedTTLError: If the scenario TTL is not supported
        InvalidPriceError: If any matching model has an unparsable price
    """
    scenario = config.scenario
    if scenario is None:
        raise ValueError("A usage scenario is required for cost calculation")

    validate_config(config)

    groups = _select(models, config)
    rows = calculate_costs(list(flatten_groups(groups)), scenario)
    if config.sort is not None and config.sort.key is SortKey.TOTAL:
        rows = sort_rows(rows, config.sort)

    logger.debug(
        "Priced %d of %d models (cached=%s, ttl=%dm)",
        len(rows), len(models), scenario.cached_tokens, scenario.ttl_minutes,
    )
    return CalculationResult(rows=rows, scenario=scenario)


def run(models: Sequence[Model], config: RunConfig) -> Union[ListingResult, CalculationResult]:
    """Run the flow selected by the config."""
    if config.scenario is None:
        return build_listing(models, config)
    return build_calculation(models, config)
