"""
Group-by-category summaries over registry chains.

Every summary is built on ``group_by``: one normalization step (trim, empty
to "Unknown", case-insensitive key) and one cell type. The label shown for a
group depends on the casing mode:

- ``"preserve"``: the first spelling seen wins ("Gaming", " gaming " -> "Gaming")
- ``"title"``: the label is title-cased
"""

import enum
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from raas_analytics.aggregation.series import as_number
from raas_analytics.shared.models.chain import ChainRecord
from raas_analytics.transformation.normalizers import (
    CaseMode,
    category_key,
    category_label,
)

KeyFunc = Callable[[ChainRecord], Any]


@dataclass
class CategoryCell:
    """Aggregate for one category value."""

    count: int = 0
    total: float = 0.0
    chains: list[str] = field(default_factory=list)

    def add(self, chain: str, value: float = 0.0) -> None:
        self.count += 1
        self.total += value
        self.chains.append(chain)

    def to_dict(self) -> dict[str, Any]:
        return {"count": self.count, "total": self.total, "chains": list(self.chains)}


def field_getter(name: str) -> KeyFunc:
    """Read a ChainRecord attribute, unwrapping enums to their value."""

    def get(chain: ChainRecord) -> Any:
        value = getattr(chain, name)
        return value.value if isinstance(value, enum.Enum) else value

    return get


def _as_key_func(key: str | KeyFunc) -> KeyFunc:
    return field_getter(key) if isinstance(key, str) else key


def group_by(
    chains: Iterable[ChainRecord],
    key: str | KeyFunc,
    value: Callable[[ChainRecord], float] | None = None,
    case: CaseMode = "preserve",
) -> dict[str, CategoryCell]:
    """
    Group chains by a category and accumulate a count, total and names.

    Args:
        chains: Chains to group
        key: ChainRecord attribute name or a function returning the category
        value: Optional per-chain metric summed into ``CategoryCell.total``
        case: Label casing mode

    Returns:
        Label -> CategoryCell, in first-seen order
    """
    get_key = _as_key_func(key)
    cells: dict[str, CategoryCell] = {}
    labels: dict[str, str] = {}
    for chain in chains:
        raw = get_key(chain)
        group = category_key(raw)
        if group not in labels:
            labels[group] = category_label(raw, case)
            cells[labels[group]] = CategoryCell()
        cells[labels[group]].add(chain.name, value(chain) if value else 0.0)
    return cells


def count_by(
    chains: Iterable[ChainRecord],
    field_name: str | KeyFunc,
    case: CaseMode = "preserve",
) -> dict[str, int]:
    """Number of chains per category value."""
    return {label: cell.count for label, cell in group_by(chains, field_name, case=case).items()}


def cross_tab(
    chains: Iterable[ChainRecord],
    outer: str | KeyFunc,
    inner: str | KeyFunc,
    case: CaseMode = "preserve",
) -> dict[str, dict[str, int]]:
    """Nested counts, e.g. RaaS provider -> vertical -> chain count."""
    chains = list(chains)
    return {
        label: count_by(_chains_named(chains, cell.chains), inner, case=case)
        for label, cell in group_by(chains, outer, case=case).items()
    }


def metric_by_category(
    chains: Iterable[ChainRecord],
    field_name: str | KeyFunc,
    totals: Mapping[str, float],
    case: CaseMode = "preserve",
) -> dict[str, CategoryCell]:
    """Sum a per-chain metric (e.g. transaction totals) per category."""
    return group_by(
        chains,
        field_name,
        value=lambda chain: as_number(totals.get(chain.name, 0.0), chain=chain.name),
        case=case,
    )


def _chains_named(chains: Iterable[ChainRecord], names: list[str]) -> list[ChainRecord]:
    wanted = set(names)
    return [chain for chain in chains if chain.name in wanted]


def sort_cells(
    cells: Mapping[str, CategoryCell], by: str = "count"
) -> dict[str, CategoryCell]:
    """Cells ordered by ``count`` or ``total``, descending; ties keep order."""
    return dict(sorted(cells.items(), key=lambda item: getattr(item[1], by), reverse=True))
