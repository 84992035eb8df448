"""Append computed columns to a table under collision-free names.

Classes:
    NamingRule: Default and collision suffixes used by one operation.

Functions:
    resolve_column_name(existing, requested, ...): Pick the name a new column will actually use.
    materialize_column(table, values, requested, ...): Append ``values`` and return the name used.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Collection, Sequence

from tabvec.models.table import DataTable

_LOGGER = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class NamingRule:
    default_suffix: str
    collision_suffix: str


EMBEDDINGS_NAMING = NamingRule(default_suffix="_emb", collision_suffix="__emb")
PCA_NAMING = NamingRule(default_suffix="_pca", collision_suffix="__pca")
CLUSTER_NAMING = NamingRule(default_suffix="_cluster", collision_suffix="__cluster")
SIMILARITY_NAMING = NamingRule(default_suffix="__prompt_sim", collision_suffix="__sim")


def resolve_column_name(
    existing: Collection[str],
    requested: str,
    *,
    source_column: str,
    rule: NamingRule,
) -> str:
    name = requested.strip() or f"{source_column}{rule.default_suffix}"
    while name in existing:
        name = f"{name}{rule.collision_suffix}"
    return name


def materialize_column(
    table: DataTable,
    values: Sequence[Any],
    requested: str,
    *,
    source_column: str,
    rule: NamingRule,
    hidden: bool = False,
    dtype: Any = None,
) -> str:
    name = resolve_column_name(
        set(table.column_names),
        requested,
        source_column=source_column,
        rule=rule,
    )
    table.append_column(name, values, dtype=dtype)
    if hidden:
        table.set_hidden(name)
    _LOGGER.info("Materialized column %r (%d rows%s)", name, len(values), ", hidden" if hidden else "")
    return name
