"""
Sort keys and stable ordering of models and cost rows.

All sorts are stable: ties keep their original relative order, in both
directions.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import List, Sequence, Union

from .catalog import Model, parse_price_or_zero
from .errors import InvalidSortKeyError, SortScopeError
from .pricing import CostRow

DESCENDING_SUFFIX = "-"


class SortKey(Enum):
    """Available sort keys, valued by their command-line token."""
    NAME = "name"
    INPUT_PRICE = "input"
    OUTPUT_PRICE = "output"
    PROVIDER = "provider"
    TOTAL = "total"  # cost calculation only


VALID_SORT_TOKENS = [key.value for key in SortKey]


@dataclass(frozen=True)
class SortSpec:
    """A sort key with its direction."""
    key: SortKey
    descending: bool = False


def parse_sort(token: str, descending: bool = False) -> SortSpec:
    """Parse a sort token such as ``"input"`` or ``"input-"``.

    A trailing ``-`` requests descending order. It combines with the
    ``descending`` flag: either one is enough.

    Raises:
        InvalidSortKeyError: If the token names no sort key
    """
    normalized = token.strip().lower()
    if normalized.endswith(DESCENDING_SUFFIX):
        normalized = normalized[:-len(DESCENDING_SUFFIX)]
        descending = True

    try:
        key = SortKey(normalized)
    except ValueError:
        raise InvalidSortKeyError(token, VALID_SORT_TOKENS)
    return SortSpec(key=key, descending=descending)


def check_sort_scope(spec: SortSpec, calculating: bool) -> None:
    """Reject sort keys that are not available in the current flow.

    Raises:
        SortScopeError: If sorting by total outside a cost calculation
    """
    key = spec.key
    if key is SortKey.TOTAL:
        if not calculating:
            raise SortScopeError(
                "Sorting by 'total' is only available for cost calculations (use the calc command)"
            )
    elif key in (SortKey.NAME, SortKey.INPUT_PRICE, SortKey.OUTPUT_PRICE, SortKey.PROVIDER):
        return
    else:
        raise ValueError(f"Unhandled sort key: {key}")


def _model_sort_value(model: Model, key: SortKey) -> Union[str, Decimal]:
    if key is SortKey.NAME:
        return model.id
    if key is SortKey.INPUT_PRICE:
        return parse_price_or_zero(model.pricing.prompt)
    if key is SortKey.OUTPUT_PRICE:
        return parse_price_or_zero(model.pricing.completion)
    if key is SortKey.PROVIDER:
        return model.provider
    if key is SortKey.TOTAL:
        raise SortScopeError("Models can only be sorted by total once their costs are computed")
    raise ValueError(f"Unhandled sort key: {key}")


def sort_models(models: Sequence[Model], spec: SortSpec) -> List[Model]:
    """Return the models in a stable order for the given sort spec."""
    return sorted(
        models,
        key=lambda model: _model_sort_value(model, spec.key),
        reverse=spec.descending,
    )


def sort_rows(rows: Sequence[CostRow], spec: SortSpec) -> List[CostRow]:
    """Order computed cost rows; ``TOTAL`` compares the total cost."""
    if spec.key is SortKey.TOTAL:
        return sorted(rows, key=lambda row: row.breakdown.total_cost, reverse=spec.descending)
    return sorted(
        rows,
        key=lambda row: _model_sort_value(row.model, spec.key),
        reverse=spec.descending,
    )
