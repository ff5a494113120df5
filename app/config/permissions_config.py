"""
Permissions and Field Type Configuration
This config defines the operations a model's rbac table may grant and the
storage type used for every declared field type.
Used by the RBAC engine, the schema synchronizer and the admin permission matrix.
"""

# Operations exposed by the public API for every published model
OPERATIONS = ["read", "create", "update", "delete"]

# Sentinel granting every operation, without ownership refinement
ALL_PERMISSION = "all"

# Operations restricted to the record owner when a model declares ownerField
OWNERSHIP_OPERATIONS = ["update", "delete"]

OPERATION_DESCRIPTIONS = {
    "read": "List records or fetch one record by id",
    "create": "Create a record; ownerField is filled with the creator's id",
    "update": "Replace every field of a record",
    "delete": "Delete a record",
}

# Model field type -> storage column type
FIELD_TYPES = {
    "string": "TEXT",
    "text": "TEXT",
    "relation": "TEXT",
    "number": "REAL",
    "float": "REAL",
    "integer": "INTEGER",
    "autoincrement": "INTEGER",
    "boolean": "INTEGER",  # stored as 0 or 1
}

# Unrecognized field types are stored as text
DEFAULT_STORAGE_TYPE = "TEXT"


def get_storage_type(field_type: str) -> str:
    """Return the storage column type for a model field type"""
    return FIELD_TYPES.get((field_type or "").lower(), DEFAULT_STORAGE_TYPE)


def get_permission_matrix(rbac):
    """
    Returns the effective grants of a model's rbac table, without ownership refinement.
    Format: {
        "operations": [{"name": "read", "description": "..."}, ...],
        "roles": {
            "Manager": {"read": True, "create": True, "update": False, "delete": False},
            ...
        }
    }
    An absent rbac table yields no roles: every operation is denied.
    """
    operations = [
        {"name": op, "description": OPERATION_DESCRIPTIONS[op]}
        for op in OPERATIONS
    ]
    matrix = {}
    if rbac:
        for role in rbac:
            granted = rbac.get(role) or []
            matrix[role] = {
                op: ALL_PERMISSION in granted or op in granted
                for op in OPERATIONS
            }
    return {
        "operations": operations,
        "roles": matrix
    }
