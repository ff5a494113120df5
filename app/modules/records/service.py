from typing import Any, Dict, List, Optional
import logging

from app.core.exceptions import AccessDeniedError
from app.core.rbac import Actor, OperationKind, authorize, requires_ownership_check
from app.database.record_store import RecordStore, StoredRecord
from app.modules.models.schemas import ModelDefinition

logger = logging.getLogger(__name__)


class RecordService:
    """
    CRUD over a model's table. With an actor (public API) update and delete are
    refined by ownership; without one (admin API) every call goes straight to the store.
    Role-level permission is checked by the route dependency before these run.
    """

    def __init__(self, store: RecordStore):
        self.store = store

    async def _load_owned_target(
        self,
        model: ModelDefinition,
        record_id: int,
        operation: OperationKind,
        actor: Optional[Actor],
    ) -> Optional[StoredRecord]:
        """Pre-read the target when ownership applies; raises if the actor is not the owner"""
        if actor is None or not requires_ownership_check(model, operation, actor.role):
            return None
        logger.info(f"[RBAC] Ownership check required for {operation.value} on {model.name}/{record_id}.")
        target = await self.store.get_by_id(model, record_id)
        decision = authorize(model, operation, actor.role, actor.id, target)
        if not decision.allowed:
            raise AccessDeniedError(decision)
        return target

    async def list_records(self, model: ModelDefinition) -> List[StoredRecord]:
        return await self.store.list_all(model)

    async def get_record(self, model: ModelDefinition, record_id: int) -> StoredRecord:
        return await self.store.get_by_id(model, record_id)

    async def create_record(
        self,
        model: ModelDefinition,
        payload: Dict[str, Any],
        actor: Optional[Actor] = None,
    ) -> StoredRecord:
        record = await self.store.create(model, payload, actor.id if actor else None)
        logger.info(f"Created {model.name} record {record['id']}")
        return record

    async def update_record(
        self,
        model: ModelDefinition,
        record_id: int,
        payload: Dict[str, Any],
        actor: Optional[Actor] = None,
    ) -> StoredRecord:
        target = await self._load_owned_target(model, record_id, OperationKind.UPDATE, actor)
        if target is not None and payload.get(model.owner_field) in (None, ""):
            # A full replace must not strip the record of its owner
            payload = {**payload, model.owner_field: target.get(model.owner_field)}
        record = await self.store.update(model, record_id, payload)
        logger.info(f"Updated {model.name} record {record_id}")
        return record

    async def delete_record(
        self,
        model: ModelDefinition,
        record_id: int,
        actor: Optional[Actor] = None,
    ) -> None:
        await self._load_owned_target(model, record_id, OperationKind.DELETE, actor)
        await self.store.delete(model, record_id)
        logger.info(f"Deleted {model.name} record {record_id}")
