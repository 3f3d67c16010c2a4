# src/odata_proxy/odata/filter.py

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union
import math
import re
import logging

from .normalize import parse_number

logger = logging.getLogger(__name__)


class FilterKind(str, Enum):
    STRING = "string-equality"
    NUMBER = "number-equality"
    DATE = "date-prefix"


# Tried in this order; first match wins.
_STRING_EQ = re.compile(r"(\w+)\s+eq\s+'([^']*)'", re.ASCII)
_NUMBER_EQ = re.compile(r"(\w+)\s+eq\s+([+-]?\d+(?:\.\d+)?)", re.ASCII)
_DATE_EQ = re.compile(r"(\w+)\s+eq\s+(\d{4}-\d{2}-\d{2})", re.ASCII)


def as_text(value: Any) -> str:
    """String form of a record value, as clients see it in the JSON payload."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
    return str(value)


def as_number(value: Any) -> float:
    """
    Numeric form of a record value for number-equality.

    null and blank strings count as 0; unparseable text is NaN and so never
    equal to anything.
    """
    if value is None:
        return 0
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value

    return parse_number(str(value))


@dataclass(frozen=True)
class FilterPredicate:
    field: str
    value: Union[str, int, float]
    kind: FilterKind

    def matches(self, field_value: Any) -> bool:
        if self.kind is FilterKind.NUMBER:
            return as_number(field_value) == self.value
        if self.kind is FilterKind.DATE:
            # A timestamp field matches a date-only filter
            return as_text(field_value).startswith(self.value)
        return as_text(field_value) == self.value


def parse_filter(filter_expr: Optional[str]) -> Optional[FilterPredicate]:
    """
    Parse a single-clause OData $filter:

      field eq 'text'        -> string equality
      field eq 42 / -1.5     -> number equality
      field eq 2025-08-01    -> date prefix

    Returns None when no filter is given or the expression is not one of the
    forms above. Callers treat that as "no filter".
    """
    if not filter_expr:
        return None

    expr = filter_expr.strip()

    m = _STRING_EQ.fullmatch(expr)
    if m:
        return FilterPredicate(field=m.group(1), value=m.group(2), kind=FilterKind.STRING)

    m = _NUMBER_EQ.fullmatch(expr)
    if m:
        literal = m.group(2)
        value = float(literal) if "." in literal else int(literal)
        return FilterPredicate(field=m.group(1), value=value, kind=FilterKind.NUMBER)

    m = _DATE_EQ.fullmatch(expr)
    if m:
        return FilterPredicate(field=m.group(1), value=m.group(2), kind=FilterKind.DATE)

    logger.warning("Ignoring unsupported $filter expression: %r", filter_expr)
    return None
