"""
Model-scoped CRUD against synchronized tables.

Statements are built with SQLAlchemy Core from the trusted definition, so
column identifiers never come from request bodies and every value is a
bound parameter.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine

from app.core.exceptions import RecordNotFoundError, RecordValidationError, StorageConstraintError
from app.database.tables import PRIMARY_KEY, build_table
from app.modules.models.schemas import ModelDefinition

logger = logging.getLogger(__name__)

StoredRecord = Dict[str, Any]

# Largest value a SQLite INTEGER PRIMARY KEY can hold
MAX_RECORD_ID = 2 ** 63 - 1


class RecordStore:
    def __init__(self, engine: AsyncEngine):
        self.engine = engine

    def _to_row(self, definition: ModelDefinition, payload: Dict[str, Any]) -> Dict[str, Any]:
        """One value per column in declaration order; absent keys become NULL"""
        row = {name: payload.get(name) for name in definition.column_names()}
        for name in definition.boolean_columns():
            value = row[name]
            if value is None:
                continue
            # bool is an int subclass; other ints and strings are rejected
            if isinstance(value, bool) or (isinstance(value, int) and value in (0, 1)):
                row[name] = int(value)
            else:
                raise RecordValidationError(
                    f"Field '{name}' of '{definition.name}' must be a boolean, got {value!r}"
                )
        return row

    def _check_record_id(self, definition: ModelDefinition, record_id: int) -> None:
        """Ids outside the store's key range cannot exist"""
        if record_id < 1 or record_id > MAX_RECORD_ID:
            raise RecordNotFoundError(definition.name, record_id)

    def _from_row(self, definition: ModelDefinition, row) -> StoredRecord:
        record = dict(row)
        for name in definition.boolean_columns():
            if record.get(name) is not None:
                record[name] = bool(record[name])
        return record

    def _constraint_error(self, definition: ModelDefinition, error: IntegrityError) -> StorageConstraintError:
        message = str(error.orig) if error.orig is not None else str(error)
        logger.warning(f"Constraint violation on '{definition.table_name}': {message}")
        return StorageConstraintError(message)

    async def list_all(self, definition: ModelDefinition) -> List[StoredRecord]:
        table = build_table(definition)
        async with self.engine.connect() as conn:
            result = await conn.execute(select(table).order_by(table.c[PRIMARY_KEY]))
            return [self._from_row(definition, row) for row in result.mappings()]

    async def get_by_id(self, definition: ModelDefinition, record_id: int) -> StoredRecord:
        self._check_record_id(definition, record_id)
        table = build_table(definition)
        async with self.engine.connect() as conn:
            result = await conn.execute(select(table).where(table.c[PRIMARY_KEY] == record_id))
            row = result.mappings().first()
        if row is None:
            raise RecordNotFoundError(definition.name, record_id)
        return self._from_row(definition, row)

    async def create(
        self,
        definition: ModelDefinition,
        payload: Dict[str, Any],
        actor_id: Optional[str] = None,
    ) -> StoredRecord:
        """Insert a record; an absent or empty ownerField defaults to the creating actor's id"""
        payload = dict(payload)
        owner_field = definition.owner_field
        if owner_field and actor_id is not None and payload.get(owner_field) in (None, ""):
            payload[owner_field] = actor_id
        table = build_table(definition)
        try:
            async with self.engine.begin() as conn:
                result = await conn.execute(table.insert().values(self._to_row(definition, payload)))
                record_id = result.inserted_primary_key[0]
        except IntegrityError as e:
            raise self._constraint_error(definition, e) from e
        logger.debug(f"Created record {record_id} in '{definition.table_name}'")
        return await self.get_by_id(definition, record_id)

    async def update(self, definition: ModelDefinition, record_id: int, payload: Dict[str, Any]) -> StoredRecord:
        """Full replace of every column; a missing id is reported as not found"""
        self._check_record_id(definition, record_id)
        table = build_table(definition)
        statement = (
            table.update()
            .where(table.c[PRIMARY_KEY] == record_id)
            .values(self._to_row(definition, payload))
        )
        try:
            async with self.engine.begin() as conn:
                result = await conn.execute(statement)
        except IntegrityError as e:
            raise self._constraint_error(definition, e) from e
        if result.rowcount == 0:
            raise RecordNotFoundError(definition.name, record_id)
        return await self.get_by_id(definition, record_id)

    async def delete(self, definition: ModelDefinition, record_id: int) -> None:
        self._check_record_id(definition, record_id)
        table = build_table(definition)
        async with self.engine.begin() as conn:
            result = await conn.execute(table.delete().where(table.c[PRIMARY_KEY] == record_id))
        if result.rowcount == 0:
            raise RecordNotFoundError(definition.name, record_id)
        logger.debug(f"Deleted record {record_id} from '{definition.table_name}'")
