# src/odata_proxy/odata/metadata.py

from functools import lru_cache
from typing import Optional

from lxml import etree

from .schema import EntityConfig, get_transaction_entity

EDMX_NS = "http://docs.oasis-open.org/odata/ns/edmx"
EDM_NS = "http://docs.oasis-open.org/odata/ns/schema"

CSDL_VERSION = "4.0"


def _edm(tag: str) -> str:
    return f"{{{EDM_NS}}}{tag}"


def build_metadata_document(entity: Optional[EntityConfig] = None) -> bytes:
    """
    Render the CSDL v4 document for an entity:

      edmx:Edmx
        edmx:DataServices
          Schema (Namespace=<namespace>)
            EntityType  - Key/PropertyRef + one Property per column
            EntityContainer
              EntitySet (EntityType=<namespace>.<name>)
    """
    entity = entity or get_transaction_entity()

    root = etree.Element(
        f"{{{EDMX_NS}}}Edmx",
        nsmap={"edmx": EDMX_NS},
        Version=CSDL_VERSION,
    )
    services = etree.SubElement(root, f"{{{EDMX_NS}}}DataServices")
    schema = etree.SubElement(
        services,
        _edm("Schema"),
        nsmap={None: EDM_NS},
        Namespace=entity.namespace,
    )

    entity_type = etree.SubElement(schema, _edm("EntityType"), Name=entity.name)
    key = etree.SubElement(entity_type, _edm("Key"))
    etree.SubElement(key, _edm("PropertyRef"), Name=entity.key_column)

    for col in entity.columns:
        etree.SubElement(entity_type, _edm("Property"), Name=col.name, Type=col.edm_type)

    container = etree.SubElement(schema, _edm("EntityContainer"), Name=entity.container)
    etree.SubElement(
        container,
        _edm("EntitySet"),
        Name=entity.entity_set,
        EntityType=entity.qualified_name,
    )

    return etree.tostring(root, xml_declaration=True, encoding="UTF-8", pretty_print=True)


@lru_cache(maxsize=1)
def transaction_metadata() -> bytes:
    """The $metadata payload; static for the life of the process."""
    return build_metadata_document(get_transaction_entity())
