from typing import Any, List
import logging

from app.core.exceptions import ModelValidationError
from app.database.schema_sync import SchemaSynchronizer, SynchronizationResult
from app.modules.models.registry import ModelRegistry
from app.modules.models.schemas import ModelDefinition, PublishResponse, parse_model_definition
from app.modules.models.storage import ModelDefinitionStorage

logger = logging.getLogger(__name__)


class PublicationService:
    """Validate, persist, reload and synchronize model definitions"""

    def __init__(
        self,
        registry: ModelRegistry,
        storage: ModelDefinitionStorage,
        synchronizer: SchemaSynchronizer,
    ):
        self.registry = registry
        self.storage = storage
        self.synchronizer = synchronizer

    async def load_and_synchronize(self) -> List[SynchronizationResult]:
        """Reload the registry from persisted definitions, then synchronize every model"""
        self.registry.reload_all(self.storage.load_all())
        results = await self.synchronizer.synchronize_all(self.registry.list())
        for result in results:
            if not result.ok:
                logger.error(f"Model {result.model} is registered but its table is not synchronized: {result.error}")
        return results

    async def publish(self, raw: Any) -> PublishResponse:
        definition = parse_model_definition(raw)

        existing = self.registry.resolve(definition.name) if definition.name in self.registry else None
        if existing is not None and not raw.get("tableName"):
            # Republishing keeps the table the model is already bound to
            definition.table_name = existing.table_name
        owner = self.registry.find_table_owner(definition.table_name)
        if owner is not None and owner.key != definition.key:
            raise ModelValidationError(
                f"Table '{definition.table_name}' is already used by model '{owner.name}'"
            )
        if existing is not None and existing.table_name.lower() != definition.table_name.lower():
            raise ModelValidationError(
                f"Model '{definition.name}' is bound to table '{existing.table_name}'; renaming tables is not supported"
            )

        self.storage.save(definition)
        results = await self.load_and_synchronize()

        published = self.registry.resolve(definition.name)
        logger.info(f"[Admin] Published model {published.name} ({len(self.registry)} models registered)")
        return PublishResponse(
            message=f"Model '{published.name}' published successfully.",
            model=published.to_json(),
            synchronization=[result.to_dict() for result in results],
        )

    def list_models(self) -> List[ModelDefinition]:
        return self.registry.list()

    def get_model(self, name: str) -> ModelDefinition:
        return self.registry.resolve(name)
