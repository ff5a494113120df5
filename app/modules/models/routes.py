from fastapi import APIRouter, Body, Depends
from typing import Any, Dict, List

from app.core.dependencies import get_model_definition, get_publication_service
from app.core.rbac import permission_matrix
from app.modules.models.schemas import ModelDefinition, PublishResponse
from app.modules.models.service import PublicationService

router = APIRouter(prefix="/admin/api/models", tags=["models"])


@router.post("/publish", response_model=PublishResponse, status_code=201)
async def publish_model(
    definition: Any = Body(...),
    service: PublicationService = Depends(get_publication_service)
):
    """Save a model definition, reload all models and synchronize their tables"""
    return await service.publish(definition)


@router.get("", response_model=List[Dict[str, Any]])
async def list_models(
    service: PublicationService = Depends(get_publication_service)
):
    """List all currently loaded model definitions"""
    return [model.to_json() for model in service.list_models()]


@router.get("/{model_name}", response_model=Dict[str, Any])
async def get_model(
    model: ModelDefinition = Depends(get_model_definition)
):
    return model.to_json()


@router.get("/{model_name}/permissions")
async def get_model_permissions(
    model: ModelDefinition = Depends(get_model_definition)
):
    """Role -> operation grants for the public API, before ownership refinement"""
    return permission_matrix(model)
