"""Resolved type model handed to SDK generators."""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, model_validator

PRIMITIVE_TYPES = ("string", "integer", "number", "boolean")

TYPE_REF_PREFIX = "#/types/"
ANY_TYPE_REF = "json#/Any"


class TypeKind(str, Enum):
    """Discriminant of a TypeSpec."""

    PRIMITIVE = "primitive"
    ARRAY = "array"
    MAP = "map"
    REF = "ref"
    UNION = "union"
    ANY = "any"


_PAYLOAD_FIELDS = {
    TypeKind.PRIMITIVE: "primitive",
    TypeKind.ARRAY: "items",
    TypeKind.MAP: "additional_properties",
    TypeKind.REF: "ref",
    TypeKind.UNION: "one_of",
    TypeKind.ANY: None,
}


class TypeSpec(BaseModel):
    """Generator-agnostic reference to a type.

    Exactly one form is set, selected by ``kind``. ``any`` is a case of its
    own so that generators never mistake it for a named type.
    """

    model_config = {"frozen": True}

    kind: TypeKind
    primitive: Optional[str] = None
    items: Optional["TypeSpec"] = None
    additional_properties: Optional["TypeSpec"] = None
    ref: Optional[str] = None
    one_of: Optional[List["TypeSpec"]] = None

    @model_validator(mode="after")
    def _check_single_form(self):
        expected = _PAYLOAD_FIELDS[self.kind]
        for field_name in set(_PAYLOAD_FIELDS.values()) - {None}:
            value = getattr(self, field_name)
            if field_name == expected and value is None:
                raise ValueError(f"{self.kind.value} type requires '{field_name}'")
            if field_name != expected and value is not None:
                raise ValueError(
                    f"{self.kind.value} type cannot set '{field_name}'"
                )
        if self.kind == TypeKind.PRIMITIVE and self.primitive not in PRIMITIVE_TYPES:
            raise ValueError(f"unknown primitive type '{self.primitive}'")
        return self

    @classmethod
    def any_type(cls):
        return cls(kind=TypeKind.ANY)

    @classmethod
    def primitive_type(cls, name):
        return cls(kind=TypeKind.PRIMITIVE, primitive=name)

    @classmethod
    def array_of(cls, item):
        return cls(kind=TypeKind.ARRAY, items=item)

    @classmethod
    def map_of(cls, value):
        return cls(kind=TypeKind.MAP, additional_properties=value)

    @classmethod
    def reference(cls, token):
        return cls(kind=TypeKind.REF, ref=token)

    @classmethod
    def union(cls, members):
        return cls(kind=TypeKind.UNION, one_of=list(members))

    @classmethod
    def int_or_string(cls):
        """Union of integer and string, used for ``x-kubernetes-int-or-string``."""
        return cls.union([cls.primitive_type("integer"), cls.primitive_type("string")])

    @property
    def is_any(self):
        return self.kind == TypeKind.ANY

    @property
    def is_structured(self):
        """True for arrays and object-shaped types (maps and named objects)."""
        return self.kind in (TypeKind.ARRAY, TypeKind.MAP, TypeKind.REF)

    def to_schema(self) -> Dict[str, Any]:
        """Render the type in its OpenAPI-like dictionary form."""
        if self.kind == TypeKind.PRIMITIVE:
            return {"type": self.primitive}
        if self.kind == TypeKind.ARRAY:
            return {"type": "array", "items": self.items.to_schema()}
        if self.kind == TypeKind.MAP:
            return {
                "type": "object",
                "additionalProperties": self.additional_properties.to_schema(),
            }
        if self.kind == TypeKind.REF:
            return {"$ref": TYPE_REF_PREFIX + self.ref}
        if self.kind == TypeKind.UNION:
            return {"oneOf": [member.to_schema() for member in self.one_of]}
        return {"$ref": ANY_TYPE_REF}


TypeSpec.model_rebuild()


class PropertySpec(BaseModel):
    """A single property of a named object type."""

    type_spec: TypeSpec
    description: Optional[str] = None
    default: Any = None
    const: Optional[Any] = None

    def to_schema(self):
        schema = self.type_spec.to_schema()
        if self.description:
            schema["description"] = self.description
        if self.default is not None:
            schema["default"] = self.default
        if self.const is not None:
            schema["const"] = self.const
        return schema


class ComplexTypeSpec(BaseModel):
    """A resolved named object type stored in the type registry."""

    type: str = "object"
    description: Optional[str] = None
    properties: Dict[str, PropertySpec] = Field(default_factory=dict)
    required: List[str] = Field(default_factory=list)
    # Only set on resource roots, see PackageGenerator.get_types.
    required_inputs: Optional[List[str]] = None
    required_outputs: Optional[List[str]] = None

    @property
    def is_map(self):
        """An object without declared properties is an open map."""
        return not self.properties

    def to_schema(self) -> Dict[str, Any]:
        schema = {
            "type": self.type,
            "properties": {
                name: prop.to_schema() for name, prop in self.properties.items()
            },
        }
        if self.description:
            schema["description"] = self.description
        if self.required:
            schema["required"] = list(self.required)
        if self.required_inputs is not None:
            schema["requiredInputs"] = list(self.required_inputs)
        if self.required_outputs is not None:
            schema["requiredOutputs"] = list(self.required_outputs)
        return schema


class DefinitionConflict(BaseModel):
    """Two documents defined the same name with different schemas."""

    name: str
    kept: str
    replaced: str


class SchemaDocument(BaseModel):
    """An OpenAPI document reduced to what type resolution needs.

    ``definitions`` maps definition names to raw schema nodes and is mutated
    in place by the flattener. ``roots`` lists the definitions that are
    resource roots, one per CRD version.
    """

    version: Optional[str] = None
    roots: List[str] = Field(default_factory=list)
    definitions: Dict[str, Any] = Field(default_factory=dict)
    conflicts: List[DefinitionConflict] = Field(default_factory=list)
