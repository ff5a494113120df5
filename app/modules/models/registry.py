"""In-memory registry of published model definitions, keyed by lowercase name."""
import logging
from typing import Dict, Iterable, List

from app.core.exceptions import ModelNotFoundError, ModelValidationError
from app.modules.models.schemas import ModelDefinition

logger = logging.getLogger(__name__)


class ModelRegistry:
    """
    Single source of truth for model definitions.

    No locking: reload_all swaps the whole mapping in one assignment, so a
    concurrent resolve sees either the old or the new contents.
    """

    def __init__(self):
        self._models: Dict[str, ModelDefinition] = {}

    def register(self, definition: ModelDefinition) -> ModelDefinition:
        """Store or overwrite a definition by its lowercase name"""
        if not definition.name:
            raise ModelValidationError('Model "name" is required')
        if not definition.fields:
            raise ModelValidationError('Model "fields" are required')
        if not definition.table_name:
            definition.table_name = definition.name.lower() + "s"
        self._models[definition.key] = definition
        logger.debug(f"Registered model {definition.name} -> table {definition.table_name}")
        return definition

    def resolve(self, name: str) -> ModelDefinition:
        definition = self._models.get(name.lower())
        if definition is None:
            raise ModelNotFoundError(name)
        return definition

    def list(self) -> List[ModelDefinition]:
        return list(self._models.values())

    def reload_all(self, definitions: Iterable[ModelDefinition]) -> None:
        """Replace the full registry contents with the given definitions"""
        models: Dict[str, ModelDefinition] = {}
        tables: Dict[str, str] = {}
        for definition in definitions:
            table_key = definition.table_name.lower()
            owner = tables.get(table_key)
            if owner is not None and owner != definition.key:
                logger.warning(
                    f"Skipping model {definition.name}: table '{definition.table_name}' "
                    f"already belongs to model '{owner}'"
                )
                continue
            tables[table_key] = definition.key
            models[definition.key] = definition
        self._models = models
        logger.info(f"{len(models)} models loaded.")

    def find_table_owner(self, table_name: str):
        """Return the definition using table_name, if any"""
        for definition in self._models.values():
            if definition.table_name.lower() == table_name.lower():
                return definition
        return None

    def __contains__(self, name: str) -> bool:
        return name.lower() in self._models

    def __len__(self) -> int:
        return len(self._models)
