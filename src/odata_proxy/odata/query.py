# src/odata_proxy/odata/query.py

from dataclasses import dataclass
from typing import List, Optional, Tuple
import logging
import math

import pandas as pd

from .filter import FilterPredicate, as_text, parse_filter
from .normalize import Record
from .schema import EntityConfig, get_transaction_entity

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Query options
# ------------------------------------------------------------------

@dataclass(frozen=True)
class QueryOptions:
    """
    Raw OData query parameters for one request, plus the compiled $filter.

    Values are kept as strings: malformed input degrades to a no-op for its
    stage instead of failing the request.
    """
    filter_expr: Optional[str] = None
    predicate: Optional[FilterPredicate] = None
    orderby: Optional[str] = None
    skip: Optional[str] = None
    top: Optional[str] = None
    count: Optional[str] = None

    @classmethod
    def from_params(
        cls,
        filter_expr: Optional[str] = None,
        orderby: Optional[str] = None,
        skip: Optional[str] = None,
        top: Optional[str] = None,
        count: Optional[str] = None,
    ) -> "QueryOptions":
        return cls(
            filter_expr=filter_expr,
            predicate=parse_filter(filter_expr),
            orderby=orderby,
            skip=skip,
            top=top,
            count=count,
        )

    @property
    def count_requested(self) -> bool:
        return self.count == "true"


@dataclass
class QueryResult:
    value: List[Record]
    count: Optional[int] = None


# ------------------------------------------------------------------
# Parameter helpers
# ------------------------------------------------------------------

def parse_orderby(orderby: Optional[str]) -> Optional[Tuple[str, bool]]:
    """
    Supports: col, col asc, col desc.

    Returns (column, ascending). Only the exact token "desc" sorts descending.
    """
    if not orderby:
        return None
    parts = orderby.split()
    if not parts:
        return None
    direction = parts[1] if len(parts) > 1 else "asc"
    return parts[0], direction != "desc"


def paging_value(raw: Optional[str]) -> Optional[float]:
    """
    Interpret a raw $skip/$top value.

    None when the parameter is absent or empty. Non-numeric, NaN and negative
    input become 0. May return inf, which callers clamp to the frame length.
    """
    if raw is None or raw == "":
        return None
    try:
        value = float(raw.strip())
    except ValueError:
        return 0
    if math.isnan(value) or value < 0:
        return 0
    return value


def is_valid_paging_value(raw: Optional[str]) -> bool:
    """Strict form: absent, or a plain non-negative integer."""
    if raw is None or raw == "":
        return True
    return raw.strip().isdigit()


def _clamp(value: float, length: int) -> int:
    return int(min(value, length))


# ------------------------------------------------------------------
# Pipeline stages
# ------------------------------------------------------------------

def apply_filter(df: pd.DataFrame, predicate: FilterPredicate) -> pd.DataFrame:
    if predicate.field not in df.columns:
        # No record carries an undeclared field.
        return df.iloc[0:0]
    mask = df[predicate.field].map(predicate.matches).astype(bool)
    return df[mask]


def _text_or_na(value):
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return value
    return as_text(value)


def apply_orderby(df: pd.DataFrame, column: str, ascending: bool) -> pd.DataFrame:
    """
    Sort on one column. null and NaN always go last.

    Columns holding values that do not compare with each other (e.g. numbers
    and text mixed by the upstream) are ordered by their string form.
    """
    if column not in df.columns:
        logger.warning("Ignoring $orderby on unknown column %r", column)
        return df
    try:
        return df.sort_values(column, ascending=ascending, kind="mergesort", na_position="last")
    except TypeError:
        logger.warning("Column %r has mixed value types; ordering by string form", column)
        return df.sort_values(
            column,
            ascending=ascending,
            kind="mergesort",
            na_position="last",
            key=lambda s: s.map(_text_or_na),
        )


def apply_skip(df: pd.DataFrame, skip: float) -> pd.DataFrame:
    return df.iloc[_clamp(skip, len(df)):]


def apply_top(df: pd.DataFrame, top: float) -> pd.DataFrame:
    return df.iloc[:_clamp(top, len(df))]


def run_query(
    records: List[Record],
    options: QueryOptions,
    entity: Optional[EntityConfig] = None,
) -> QueryResult:
    """
    Evaluate a query against normalized records: filter, order, skip, top, count.

    The input list is not modified. The count, when requested, is the length of
    the final page, not of the filtered collection.
    """
    entity = entity or get_transaction_entity()
    df = pd.DataFrame(records, columns=entity.column_names, dtype=object)

    # $filter
    if options.predicate is not None:
        df = apply_filter(df, options.predicate)

    # $orderby
    order = parse_orderby(options.orderby)
    if order is not None:
        df = apply_orderby(df, *order)

    # $skip / $top
    skip = paging_value(options.skip)
    if skip is not None:
        df = apply_skip(df, skip)

    top = paging_value(options.top)
    if top is not None:
        df = apply_top(df, top)

    value = df.to_dict(orient="records")
    count = len(value) if options.count_requested else None
    return QueryResult(value=value, count=count)
