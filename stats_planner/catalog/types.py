"""Normalization of source type strings into DataType."""

from typing import Optional

from sqlglot import exp
from sqlglot.errors import ParseError

from .schema import DataType

_SQLGLOT_TYPES = {
    exp.DataType.Type.BOOLEAN: DataType.BOOLEAN,
    exp.DataType.Type.TINYINT: DataType.TINYINT,
    exp.DataType.Type.SMALLINT: DataType.SMALLINT,
    exp.DataType.Type.INT: DataType.INTEGER,
    exp.DataType.Type.BIGINT: DataType.BIGINT,
    exp.DataType.Type.INT128: DataType.LARGEINT,
    exp.DataType.Type.FLOAT: DataType.FLOAT,
    exp.DataType.Type.DOUBLE: DataType.DOUBLE,
    exp.DataType.Type.DECIMAL: DataType.DECIMAL,
    exp.DataType.Type.CHAR: DataType.CHAR,
    exp.DataType.Type.NCHAR: DataType.CHAR,
    exp.DataType.Type.VARCHAR: DataType.VARCHAR,
    exp.DataType.Type.NVARCHAR: DataType.VARCHAR,
    exp.DataType.Type.TEXT: DataType.VARCHAR,
    exp.DataType.Type.DATE: DataType.DATE,
    exp.DataType.Type.DATETIME: DataType.DATETIME,
    exp.DataType.Type.TIMESTAMP: DataType.DATETIME,
    exp.DataType.Type.TIMESTAMPTZ: DataType.DATETIME,
    exp.DataType.Type.JSON: DataType.JSON,
    exp.DataType.Type.JSONB: DataType.JSON,
    exp.DataType.Type.ARRAY: DataType.ARRAY,
    exp.DataType.Type.MAP: DataType.MAP,
    exp.DataType.Type.STRUCT: DataType.STRUCT,
    exp.DataType.Type.HLLSKETCH: DataType.HLL,
}

# Names sqlglot does not know as types.
_NATIVE_ONLY_TYPES = {
    "LARGEINT": DataType.LARGEINT,
    "HLL": DataType.HLL,
    "BITMAP": DataType.BITMAP,
    "PERCENTILE": DataType.PERCENTILE,
}


def map_type(type_str: str, dialect: Optional[str] = None) -> DataType:
    """Map a database type string to a DataType.

    Args:
        type_str: Type as reported by the source, e.g. ``DECIMAL(10, 2)``
        dialect: sqlglot dialect used to parse the type

    Returns:
        Mapped DataType, UNKNOWN when the type cannot be parsed
    """
    normalized = type_str.strip().upper()
    if normalized in _NATIVE_ONLY_TYPES:
        return _NATIVE_ONLY_TYPES[normalized]

    try:
        parsed = exp.DataType.build(normalized, dialect=dialect)
    except (ParseError, ValueError):
        return DataType.UNKNOWN

    return _SQLGLOT_TYPES.get(parsed.this, DataType.UNKNOWN)
