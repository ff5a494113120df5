"""
Dynamic table structure for published models.

Every model table has:
- id: INTEGER PRIMARY KEY AUTOINCREMENT (never reused after deletion)
- one column per declared field, typed by app.config.permissions_config.FIELD_TYPES,
  NOT NULL when the field is required, UNIQUE when the field is unique
- the ownerField column (nullable TEXT) when it is not among the declared fields
"""
from typing import Optional

from sqlalchemy import REAL, Column, Integer, MetaData, Table, Text

from app.config.permissions_config import get_storage_type
from app.modules.models.schemas import ModelDefinition

PRIMARY_KEY = "id"

STORAGE_TYPES = {
    "TEXT": Text,
    "REAL": REAL,
    "INTEGER": Integer,
}


def column_type(field_type: str):
    return STORAGE_TYPES[get_storage_type(field_type)]()


def build_table(definition: ModelDefinition, metadata: Optional[MetaData] = None) -> Table:
    """Build the SQLAlchemy table for a definition; identifiers come only from the definition"""
    metadata = metadata if metadata is not None else MetaData()
    columns = [Column(PRIMARY_KEY, Integer, primary_key=True, autoincrement=True)]
    for field in definition.fields:
        columns.append(
            Column(
                field.name,
                column_type(field.type),
                nullable=not field.required,
                unique=field.unique,
            )
        )
    if definition.has_implicit_owner_column:
        columns.append(Column(definition.owner_field, Text, nullable=True))
    return Table(definition.table_name, metadata, *columns, sqlite_autoincrement=True)
