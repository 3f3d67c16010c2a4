# src/odata_proxy/odata/schema.py

from functools import lru_cache
from pathlib import Path
from typing import List, Literal
import logging

import yaml
from pydantic import BaseModel

logger = logging.getLogger(__name__)

TRANSACTION_ENTITY_PATH = Path(__file__).resolve().parent / "transaction.yaml"

# Column type -> EDM primitive type used in $metadata
EDM_TYPES = {
    "int": "Edm.Int32",
    "float": "Edm.Double",
    "string": "Edm.String",
}

NUMERIC_TYPES = ("int", "float")


# ------------------------------------------------------------
# Pydantic entity models
# ------------------------------------------------------------

class EntityColumn(BaseModel):
    name: str
    type: Literal["int", "float", "string"]

    @property
    def is_numeric(self) -> bool:
        return self.type in NUMERIC_TYPES

    @property
    def edm_type(self) -> str:
        return EDM_TYPES[self.type]


class EntityConfig(BaseModel):
    name: str                             # EntityType name, e.g. "Transaction"
    entity_set: str                       # EntitySet name, e.g. "Transactions"
    namespace: str = "Proxy"
    container: str = "Container"
    key_column: str
    columns: List[EntityColumn]

    @property
    def column_names(self) -> List[str]:
        return [c.name for c in self.columns]

    @property
    def qualified_name(self) -> str:
        return f"{self.namespace}.{self.name}"

    def get_column(self, name: str):
        for col in self.columns:
            if col.name == name:
                return col
        return None


# ------------------------------------------------------------
# Loading
# ------------------------------------------------------------

def load_entity_config(path: Path) -> EntityConfig:
    """
    Load an entity declaration from YAML.

    Raises ValueError when the key column is not one of the declared columns.
    """
    with path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    cfg = EntityConfig(**raw)
    if cfg.get_column(cfg.key_column) is None:
        raise ValueError(
            f"Key column '{cfg.key_column}' is not declared on entity '{cfg.name}'"
        )

    logger.debug("Loaded entity %s (%d columns) from %s", cfg.name, len(cfg.columns), path)
    return cfg


@lru_cache(maxsize=None)
def get_transaction_entity() -> EntityConfig:
    """The Transaction entity, loaded once from the packaged YAML."""
    return load_entity_config(TRANSACTION_ENTITY_PATH)
