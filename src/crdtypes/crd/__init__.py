"""CRD schema resolution pipeline."""

from .base import ComplexTypeSpec, PropertySpec, SchemaDocument, TypeKind, TypeSpec
from .combine import combine_schemas
from .flatten import flatten_openapi
from .generator import (
    OBJECT_META_TOKEN,
    CustomResourceGenerator,
    PackageGenerator,
    read_packages_from_source,
)
from .merge import merge_specs
from .registry import TypeRegistry
from .resolver import TypeResolver, add_type, get_type_spec

__all__ = [
    "ComplexTypeSpec",
    "CustomResourceGenerator",
    "OBJECT_META_TOKEN",
    "PackageGenerator",
    "PropertySpec",
    "SchemaDocument",
    "TypeKind",
    "TypeRegistry",
    "TypeResolver",
    "TypeSpec",
    "add_type",
    "combine_schemas",
    "flatten_openapi",
    "get_type_spec",
    "merge_specs",
    "read_packages_from_source",
]
