"""Catalog system for native and federated table metadata."""

from .catalog import Catalog, MetadataProvider
from .schema import Column, DataType, Database, Partition, Table, TableKind, TableState
from .types import map_type

__all__ = [
    "Catalog",
    "MetadataProvider",
    "Column",
    "DataType",
    "Database",
    "Partition",
    "Table",
    "TableKind",
    "TableState",
    "map_type",
]
