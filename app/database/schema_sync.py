"""Reconciles the live relational schema with published model definitions."""
import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import Index, inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine
from sqlalchemy.schema import CreateIndex, CreateTable

from app.core.exceptions import SynchronizationError
from app.database.tables import PRIMARY_KEY, build_table
from app.modules.models.schemas import ModelDefinition

logger = logging.getLogger(__name__)


@dataclass
class SynchronizationResult:
    model: str
    table: str
    created: bool = False
    added_columns: List[str] = field(default_factory=list)
    undeclared_columns: List[str] = field(default_factory=list)
    type_mismatches: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["ok"] = self.ok
        return data


def _reflect_columns(sync_conn, table_name: str) -> Optional[Dict[str, Dict[str, Any]]]:
    inspector = inspect(sync_conn)
    if not inspector.has_table(table_name):
        return None
    return {column["name"].lower(): column for column in inspector.get_columns(table_name)}


class SchemaSynchronizer:
    """
    Create-if-absent plus additive evolution. Columns are never dropped or
    retyped: undeclared and retyped columns are reported and left alone.
    """

    def __init__(self, engine: AsyncEngine):
        self.engine = engine

    async def synchronize(self, definition: ModelDefinition) -> SynchronizationResult:
        table = build_table(definition)
        result = SynchronizationResult(model=definition.name, table=table.name)
        try:
            async with self.engine.begin() as conn:
                existing = await conn.run_sync(_reflect_columns, table.name)
                if existing is None:
                    await self._create_table(conn, table)
                    result.created = True
                else:
                    await self._evolve_table(conn, table, existing, result)
        except SQLAlchemyError as e:
            message = str(getattr(e, "orig", None) or e)
            logger.error(f"Failed to create table '{table.name}': {message}")
            raise SynchronizationError(table.name, message, e) from e
        logger.info(f"Table '{table.name}' is ready.")
        return result

    async def synchronize_all(self, definitions: Iterable[ModelDefinition]) -> List[SynchronizationResult]:
        """Synchronize every definition in order; one failure never stops the rest"""
        results = []
        for definition in definitions:
            try:
                results.append(await self.synchronize(definition))
            except SynchronizationError as e:
                results.append(SynchronizationResult(
                    model=definition.name,
                    table=definition.table_name,
                    error=e.message,
                ))
        return results

    async def _create_table(self, conn: AsyncConnection, table) -> None:
        ddl = CreateTable(table, if_not_exists=True)
        logger.info(f"Executing SQL: {str(ddl.compile(dialect=self.engine.dialect)).strip()}")
        await conn.execute(ddl)

    async def _evolve_table(self, conn: AsyncConnection, table, existing, result: SynchronizationResult) -> None:
        preparer = self.engine.dialect.identifier_preparer
        declared = set()
        for column in table.columns:
            declared.add(column.name.lower())
            if column.name == PRIMARY_KEY:
                continue
            expected_type = column.type.compile(dialect=self.engine.dialect)
            current = existing.get(column.name.lower())
            if current is not None:
                current_type = str(current["type"]).upper()
                if current_type != expected_type.upper():
                    logger.warning(
                        f"Column '{table.name}.{column.name}' is {current_type}, declared as "
                        f"{expected_type}; retyping is not supported, leaving it unchanged"
                    )
                    result.type_mismatches.append(column.name)
                continue

            # exec_driver_sql: identifiers are quoted by the dialect, no bind parsing
            ddl = (
                f"ALTER TABLE {preparer.format_table(table)} "
                f"ADD COLUMN {preparer.format_column(column)} {expected_type}"
            )
            logger.info(f"Executing SQL: {ddl}")
            await conn.exec_driver_sql(ddl)
            if not column.nullable:
                logger.warning(
                    f"Column '{table.name}.{column.name}' added as nullable: existing rows have no value"
                )
            if column.unique:
                index = Index(f"uq_{table.name}_{column.name}", column, unique=True)
                await conn.execute(CreateIndex(index, if_not_exists=True))
            result.added_columns.append(column.name)

        for name, current in existing.items():
            if name not in declared:
                logger.warning(f"Column '{table.name}.{current['name']}' is no longer declared; keeping it")
                result.undeclared_columns.append(current["name"])
