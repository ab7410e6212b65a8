"""Connection details declared once, as a pydantic model, per driver.

Drivers describe the keys they understand with a `BaseModel` subclass; the
connection form (`details_fields`) is derived from that model so the two never
drift apart. Unknown keys are preserved (``extra="allow"``) and handed to the
backend untouched.
"""
from typing import Any, Dict, List, Optional, Type, Union, get_args, get_origin

from pydantic import BaseModel, ConfigDict, SecretStr

from .models import DetailsField, DetailsFieldType


class ConnectionDetails(BaseModel):
    """Base class for typed connection details."""

    model_config = ConfigDict(extra="allow")

    def secret_value(self, name: str) -> Optional[str]:
        value = getattr(self, name, None)
        if isinstance(value, SecretStr):
            return value.get_secret_value()
        return value

    def passthrough(self) -> Dict[str, Any]:
        """Keys not declared on the model."""
        return dict(self.model_extra or {})


def _unwrap_optional(annotation: Any) -> Any:
    if get_origin(annotation) is Union:
        args = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def _field_type(annotation: Any) -> DetailsFieldType:
    annotation = _unwrap_optional(annotation)
    if annotation is SecretStr:
        return DetailsFieldType.PASSWORD
    if annotation is bool:
        return DetailsFieldType.BOOLEAN
    if annotation is int:
        return DetailsFieldType.INTEGER
    return DetailsFieldType.STRING


def details_fields_from_model(model: Type[BaseModel]) -> List[DetailsField]:
    """Builds the ordered connection form for a details model."""
    fields = []
    for name, info in model.model_fields.items():
        extra = info.json_schema_extra if isinstance(info.json_schema_extra, dict) else {}
        required = info.is_required()
        default = None if required else info.get_default(call_default_factory=True)
        if isinstance(default, SecretStr):
            default = None
        fields.append(
            DetailsField(
                name=name,
                display_name=info.title or name.replace("_", " ").title(),
                type=_field_type(info.annotation),
                default=default,
                placeholder=extra.get("placeholder"),
                required=required,
            )
        )
    return fields
