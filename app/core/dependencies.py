"""
Core dependencies for route protection and permission checking
"""

from fastapi import Depends, Header, Request
from typing import Optional
import logging

from app.core.exceptions import AccessDeniedError
from app.core.rbac import Actor, OperationKind, authorize
from app.database.record_store import RecordStore
from app.modules.models.registry import ModelRegistry
from app.modules.models.schemas import ModelDefinition
from app.modules.models.service import PublicationService

logger = logging.getLogger(__name__)


def get_registry(request: Request) -> ModelRegistry:
    return request.app.state.registry


def get_record_store(request: Request) -> RecordStore:
    return request.app.state.record_store


def get_publication_service(request: Request) -> PublicationService:
    return request.app.state.publication_service


def get_model_definition(
    model_name: str,
    registry: ModelRegistry = Depends(get_registry)
) -> ModelDefinition:
    """Resolve the {model_name} path parameter against the registry"""
    return registry.resolve(model_name)


def default_actor_id(role: str) -> str:
    return f"user_{role.lower()}"


def get_current_actor(
    request: Request,
    x_user_role: Optional[str] = Header(default=None),
    x_user_id: Optional[str] = Header(default=None),
) -> Actor:
    """The actor arrives already resolved by the upstream auth layer"""
    role = (x_user_role or request.app.state.settings.default_role).strip()
    actor_id = (x_user_id or default_actor_id(role)).strip()
    logger.debug(f"[Auth] Actor role={role} id={actor_id}")
    return Actor(role=role, id=actor_id)


def require_operation(operation: OperationKind):
    """Factory function to create a role-level permission check dependency"""
    def check_operation(
        model: ModelDefinition = Depends(get_model_definition),
        actor: Actor = Depends(get_current_actor)
    ) -> Actor:
        """Ownership refinement happens later, once the target record is loaded"""
        decision = authorize(model, operation, actor.role, actor.id)
        if not decision.allowed:
            raise AccessDeniedError(decision)
        return actor
    return check_operation
