"""
Catalog filtering and grouping.

Selects models by case-insensitive substring needles and partitions them
by provider.
"""

from typing import Dict, Iterator, List, Sequence

from .catalog import Model


def filter_models(models: Sequence[Model], needles: Sequence[str]) -> List[Model]:
    """Keep models whose id or name contains any of the needles.

    Matching is case-insensitive. A model without a name can only match on
    its id. Input order is preserved, and an empty needle list keeps every
    model.

    Args:
        models: Catalog models in catalog order
        needles: Substrings to look for, e.g. ``["anthropic/", "sonnet"]``

    Returns:
        The matching models
    """
    if not needles:
        return list(models)

    lowered = [needle.lower() for needle in needles]
    return [model for model in models if _matches_any(model, lowered)]


def _matches_any(model: Model, lowered_needles: List[str]) -> bool:
    model_id = model.id.lower()
    name = model.name.lower() if model.name is not None else None
    for needle in lowered_needles:
        if needle in model_id:
            return True
        if name is not None and needle in name:
            return True
    return False


def group_by_provider(models: Sequence[Model]) -> Dict[str, List[Model]]:
    """Partition models by provider key, keeping input order within groups."""
    grouped: Dict[str, List[Model]] = {}
    for model in models:
        grouped.setdefault(model.provider, []).append(model)
    return grouped


def flatten_groups(groups: Dict[str, List[Model]]) -> Iterator[Model]:
    """Yield grouped models back out, group by group."""
    for models in groups.values():
        yield from models
