from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from typing import Any, Dict, List, Optional

from app.core.exceptions import ModelValidationError

RESERVED_FIELD_NAMES = {"id"}


class FieldDefinition(BaseModel):
    name: str
    type: str = "string"
    required: bool = False
    unique: bool = False

    model_config = ConfigDict(extra="ignore")

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Field name must not be empty")
        if value.lower() in RESERVED_FIELD_NAMES:
            raise ValueError(f"Field name '{value}' is reserved for the primary key")
        return value

    @field_validator("type")
    @classmethod
    def normalize_type(cls, value: str) -> str:
        return value.strip().lower()


class ModelDefinition(BaseModel):
    """Operator-declared schema and permission contract for one resource type"""

    name: str
    table_name: Optional[str] = Field(default=None, alias="tableName")
    fields: List[FieldDefinition]
    rbac: Optional[Dict[str, List[str]]] = None
    owner_field: Optional[str] = Field(default=None, alias="ownerField")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Model name must not be empty")
        return value

    @field_validator("fields")
    @classmethod
    def validate_fields(cls, value: List[FieldDefinition]) -> List[FieldDefinition]:
        if not value:
            raise ValueError("Model must declare at least one field")
        seen = set()
        for field in value:
            # The store compares column names case-insensitively
            key = field.name.lower()
            if key in seen:
                raise ValueError(f"Duplicate field name '{field.name}'")
            seen.add(key)
        return value

    @field_validator("rbac")
    @classmethod
    def normalize_rbac(cls, value: Optional[Dict[str, List[str]]]) -> Optional[Dict[str, List[str]]]:
        if value is None:
            return None
        normalized = {}
        for role, operations in value.items():
            unique_ops = []
            for op in operations:
                op = op.strip().lower()
                if op and op not in unique_ops:
                    unique_ops.append(op)
            normalized[role] = unique_ops
        return normalized

    @model_validator(mode="after")
    def apply_defaults(self) -> "ModelDefinition":
        if not self.table_name:
            self.table_name = self.name.lower() + "s"
        if self.table_name.lower().startswith("sqlite_"):
            raise ValueError(f"Table name '{self.table_name}' is reserved by the store")
        if self.owner_field is not None:
            self.owner_field = self.owner_field.strip() or None
        if self.owner_field and self.owner_field.lower() in RESERVED_FIELD_NAMES:
            raise ValueError("ownerField must not be the primary key")
        if self.owner_field:
            # Column names are case-insensitive: bind to the declared field's spelling
            for field in self.fields:
                if field.name.lower() == self.owner_field.lower():
                    self.owner_field = field.name
                    break
        return self

    @property
    def key(self) -> str:
        return self.name.lower()

    def get_field(self, name: str) -> Optional[FieldDefinition]:
        for field in self.fields:
            if field.name == name:
                return field
        return None

    @property
    def has_implicit_owner_column(self) -> bool:
        """True when ownerField is stored but not declared among the fields"""
        return bool(self.owner_field) and self.get_field(self.owner_field) is None

    def column_names(self) -> List[str]:
        """Data columns in declaration order, implicit owner column last"""
        names = [field.name for field in self.fields]
        if self.has_implicit_owner_column:
            names.append(self.owner_field)
        return names

    def boolean_columns(self) -> List[str]:
        return [field.name for field in self.fields if field.type == "boolean"]

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class PublishResponse(BaseModel):
    message: str
    model: Dict[str, Any]
    synchronization: List[Dict[str, Any]]


def _format_validation_error(exc: ValidationError) -> str:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        message = error.get("msg", "invalid value")
        # Strip pydantic's "Value error, " prefix from custom validators
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        messages.append(f"{location}: {message}" if location else message)
    return "; ".join(messages)


def parse_model_definition(raw: Any) -> ModelDefinition:
    """Validate raw structured data into a ModelDefinition or raise ModelValidationError"""
    if not isinstance(raw, dict):
        raise ModelValidationError("Model definition must be a JSON object")
    name = raw.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ModelValidationError('Model "name" is required')
    fields = raw.get("fields")
    if not isinstance(fields, list) or not fields:
        raise ModelValidationError('Model "fields" are required')
    try:
        return ModelDefinition.model_validate(raw)
    except ValidationError as e:
        raise ModelValidationError(_format_validation_error(e)) from e
