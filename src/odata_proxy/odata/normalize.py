# src/odata_proxy/odata/normalize.py

from collections.abc import Mapping
from typing import Any, Dict, List, Optional
import re

from .schema import EntityConfig, get_transaction_entity

Record = Dict[str, Any]

NAN = float("nan")

# Plain ASCII decimal literal, optional sign and exponent
_NUMBER_LITERAL = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)


def parse_number(text: str):
    """
    Parse numeric text the way JSON clients read it: surrounding whitespace is
    ignored, blank text is 0, anything that is not a decimal literal is NaN.
    """
    text = text.strip()
    if not text:
        return 0
    if not _NUMBER_LITERAL.fullmatch(text):
        return NAN
    if any(c in text for c in ".eE"):
        return float(text)
    return int(text)


def to_number(value: Any):
    """
    Convert a raw upstream value for a numeric column.

      - None or "" -> None
      - int/float  -> unchanged (bool becomes 0/1)
      - integral literal strings -> int, other decimal literals -> float
      - blank strings -> 0
      - anything else -> NaN, passed through to the caller
    """
    if value is None or (isinstance(value, str) and value == ""):
        return None
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value

    return parse_number(str(value))


def normalize_record(raw: Any, entity: Optional[EntityConfig] = None) -> Record:
    """
    Coerce one upstream item to the declared entity shape.

    The result always has exactly the entity's columns, in declaration order.
    Extra input fields are dropped. Never raises.
    """
    entity = entity or get_transaction_entity()
    if not isinstance(raw, Mapping):
        raw = {}

    record: Record = {}
    for col in entity.columns:
        value = raw.get(col.name)
        if col.is_numeric:
            record[col.name] = to_number(value)
        else:
            # string columns pass through untouched
            record[col.name] = value
    return record


def normalize_records(payload: Any, entity: Optional[EntityConfig] = None) -> List[Record]:
    """Normalize an upstream payload. Anything but a JSON array yields no records."""
    if not isinstance(payload, list):
        return []
    entity = entity or get_transaction_entity()
    return [normalize_record(item, entity) for item in payload]
