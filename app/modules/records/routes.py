from fastapi import APIRouter, Body, Depends
from typing import Any, Dict, List

from app.core.dependencies import get_model_definition, get_record_store, require_operation
from app.core.rbac import Actor, OperationKind
from app.database.record_store import RecordStore
from app.modules.models.schemas import ModelDefinition
from app.modules.records.schemas import MessageResponse
from app.modules.records.service import RecordService

# Admin data API: bypasses RBAC
admin_router = APIRouter(prefix="/admin/api/data", tags=["admin-data"])

# Public API: every route is gated by the model's rbac table
router = APIRouter(prefix="/api", tags=["records"])


def get_record_service(store: RecordStore = Depends(get_record_store)) -> RecordService:
    return RecordService(store)


@admin_router.get("/{model_name}", response_model=List[Dict[str, Any]])
async def admin_list_records(
    model: ModelDefinition = Depends(get_model_definition),
    service: RecordService = Depends(get_record_service)
):
    """Get all records"""
    return await service.list_records(model)


@admin_router.get("/{model_name}/{record_id}", response_model=Dict[str, Any])
async def admin_get_record(
    record_id: int,
    model: ModelDefinition = Depends(get_model_definition),
    service: RecordService = Depends(get_record_service)
):
    return await service.get_record(model, record_id)


@admin_router.post("/{model_name}", response_model=Dict[str, Any], status_code=201)
async def admin_create_record(
    payload: Dict[str, Any] = Body(...),
    model: ModelDefinition = Depends(get_model_definition),
    service: RecordService = Depends(get_record_service)
):
    """Create a new record"""
    return await service.create_record(model, payload)


@admin_router.put("/{model_name}/{record_id}", response_model=Dict[str, Any])
async def admin_update_record(
    record_id: int,
    payload: Dict[str, Any] = Body(...),
    model: ModelDefinition = Depends(get_model_definition),
    service: RecordService = Depends(get_record_service)
):
    """Replace every field of a record"""
    return await service.update_record(model, record_id, payload)


@admin_router.delete("/{model_name}/{record_id}", response_model=MessageResponse)
async def admin_delete_record(
    record_id: int,
    model: ModelDefinition = Depends(get_model_definition),
    service: RecordService = Depends(get_record_service)
):
    """Delete a record"""
    await service.delete_record(model, record_id)
    return MessageResponse(message="Record deleted successfully")


@router.get("/{model_name}", response_model=List[Dict[str, Any]])
async def list_records(
    model: ModelDefinition = Depends(get_model_definition),
    actor: Actor = Depends(require_operation(OperationKind.READ)),
    service: RecordService = Depends(get_record_service)
):
    """List all records (read permission; not filtered by owner)"""
    return await service.list_records(model)


@router.get("/{model_name}/{record_id}", response_model=Dict[str, Any])
async def get_record(
    record_id: int,
    model: ModelDefinition = Depends(get_model_definition),
    actor: Actor = Depends(require_operation(OperationKind.READ)),
    service: RecordService = Depends(get_record_service)
):
    """Get record by ID"""
    return await service.get_record(model, record_id)


@router.post("/{model_name}", response_model=Dict[str, Any], status_code=201)
async def create_record(
    payload: Dict[str, Any] = Body(...),
    model: ModelDefinition = Depends(get_model_definition),
    actor: Actor = Depends(require_operation(OperationKind.CREATE)),
    service: RecordService = Depends(get_record_service)
):
    """Create a record; ownerField defaults to the caller's id"""
    return await service.create_record(model, payload, actor)


@router.put("/{model_name}/{record_id}", response_model=Dict[str, Any])
async def update_record(
    record_id: int,
    payload: Dict[str, Any] = Body(...),
    model: ModelDefinition = Depends(get_model_definition),
    actor: Actor = Depends(require_operation(OperationKind.UPDATE)),
    service: RecordService = Depends(get_record_service)
):
    """Replace a record (owner only when the model declares ownerField)"""
    return await service.update_record(model, record_id, payload, actor)


@router.delete("/{model_name}/{record_id}", response_model=MessageResponse)
async def delete_record(
    record_id: int,
    model: ModelDefinition = Depends(get_model_definition),
    actor: Actor = Depends(require_operation(OperationKind.DELETE)),
    service: RecordService = Depends(get_record_service)
):
    """Delete a record (owner only when the model declares ownerField)"""
    await service.delete_record(model, record_id, actor)
    return MessageResponse(message="Record deleted successfully")
