"""
Role-based access control for the public API.

Each model carries a static rbac table (role -> granted operations). A request
is decided once, synchronously, from that table plus optional ownership
refinement against the target record.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from app.config.permissions_config import ALL_PERMISSION, OWNERSHIP_OPERATIONS, get_permission_matrix
from app.modules.models.schemas import ModelDefinition

logger = logging.getLogger(__name__)


class OperationKind(str, Enum):
    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class Actor:
    role: str
    id: str


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: str

    def __bool__(self) -> bool:
        return self.allowed


def _granted(model: ModelDefinition, role: str):
    return (model.rbac or {}).get(role) or []


def requires_ownership_check(model: ModelDefinition, operation: OperationKind, role: str) -> bool:
    """True when an allowed operation must also be checked against the target's owner"""
    operation = OperationKind(operation)
    if not model.owner_field or operation.value not in OWNERSHIP_OPERATIONS or model.rbac is None:
        return False
    granted = _granted(model, role)
    return ALL_PERMISSION not in granted and operation.value in granted


def authorize(
    model: ModelDefinition,
    operation: OperationKind,
    actor_role: str,
    actor_id: Optional[str],
    target: Optional[Dict[str, Any]] = None,
) -> Decision:
    operation = OperationKind(operation)

    if model.rbac is None:
        logger.warning(f"[RBAC] Deny: Model {model.name} has no RBAC rules defined.")
        return Decision(False, "No permissions defined for this resource.")

    permissions = _granted(model, actor_role)

    if ALL_PERMISSION in permissions:
        logger.info(f"[RBAC] Allow: {actor_role} has '{ALL_PERMISSION}' permission on {model.name}.")
        return Decision(True, f"Role '{actor_role}' has '{ALL_PERMISSION}' permission.")

    if operation.value in permissions:
        if target is not None and requires_ownership_check(model, operation, actor_role):
            owner = target.get(model.owner_field)
            if owner is None or str(owner) != str(actor_id):
                logger.warning(
                    f"[RBAC] Deny: {actor_role} '{actor_id}' does not own record "
                    f"{target.get('id')} of {model.name}."
                )
                return Decision(False, f"Only the record owner may {operation.value} this record.")
        logger.info(f"[RBAC] Allow: {actor_role} has '{operation.value}' permission on {model.name}.")
        return Decision(True, f"Role '{actor_role}' has '{operation.value}' permission.")

    logger.warning(f"[RBAC] Deny: {actor_role} lacks '{operation.value}' permission for {model.name}.")
    return Decision(False, f"Role '{actor_role}' lacks '{operation.value}' permission.")


def permission_matrix(model: ModelDefinition) -> Dict[str, Any]:
    """Role -> operation -> allowed, before ownership refinement"""
    matrix = get_permission_matrix(model.rbac)
    matrix["model"] = model.name
    matrix["owner_field"] = model.owner_field
    matrix["ownership_operations"] = list(OWNERSHIP_OPERATIONS) if model.owner_field else []
    return matrix
