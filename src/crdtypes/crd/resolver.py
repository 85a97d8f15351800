"""Resolve OpenAPI v3 schema nodes into generator-agnostic types."""

import logging

from .base import PRIMITIVE_TYPES, ComplexTypeSpec, PropertySpec, TypeSpec
from .combine import combine_schemas
from .naming import child_type_name, one_of_name, property_key, ref_name, to_pascal_case
from .registry import TypeRegistry

logger = logging.getLogger(__name__)


def _schema_list(schema, key):
    """Return ``schema[key]`` if it is a list of schema mappings, else None."""
    value = schema.get(key)
    if not isinstance(value, list):
        return None
    if not all(isinstance(item, dict) for item in value):
        logger.debug(f"Ignoring '{key}' containing non-schema entries")
        return None
    return value


def _is_true(schema, key):
    return schema.get(key) is True


class TypeResolver:
    """Converts schema nodes to TypeSpecs, registering named object types.

    Args:
        registry: The TypeRegistry that receives every named object type.
            A fresh one is created when omitted.
        definitions: Definitions table used to resolve local ``$ref`` nodes,
            usually the merged document of one CRD.
    """

    def __init__(self, registry=None, definitions=None):
        self.registry = registry if registry is not None else TypeRegistry()
        self.definitions = definitions if definitions is not None else {}
        self._resolved_refs = {}
        self._refs_in_progress = set()
        # id() of inline nodes currently being resolved -> their type name
        self._active = {}

    def get_type_spec(self, schema, name):
        """Return the TypeSpec for ``schema``, registering object types under ``name``.

        Resolution order, first match wins: missing schema, local reference,
        int-or-string, ``oneOf``, ``allOf``, ``anyOf``,
        preserve-unknown-fields, missing ``type``, array, object, primitive.
        Anything that cannot be represented resolves to the any type.
        """
        if not isinstance(schema, dict):
            return TypeSpec.any_type()

        active_name = self._active.get(id(schema))
        if active_name is not None:
            logger.debug(f"Cyclic schema detected at '{name}', referencing '{active_name}'")
            if isinstance(schema.get("properties"), dict):
                return TypeSpec.reference(active_name)
            return TypeSpec.any_type()

        self._active[id(schema)] = name
        try:
            return self._resolve(schema, name)
        finally:
            del self._active[id(schema)]

    def _resolve(self, schema, name):
        if "$ref" in schema:
            return self._resolve_reference(schema)

        if _is_true(schema, "x-kubernetes-int-or-string"):
            return TypeSpec.int_or_string()

        one_of = _schema_list(schema, "oneOf")
        if one_of is not None:
            members = []
            for i, sub_schema in enumerate(one_of):
                member = self.get_type_spec(sub_schema, one_of_name(name, i))
                # A union with an unconstrained member is itself unconstrained.
                if member.is_any:
                    return TypeSpec.any_type()
                members.append(member)
            if not members:
                return TypeSpec.any_type()
            return TypeSpec.union(members)

        all_of = _schema_list(schema, "allOf")
        if all_of is not None:
            combined = combine_schemas(True, *self._dereference_all(all_of))
            return self.get_type_spec(combined, name)

        any_of = _schema_list(schema, "anyOf")
        if any_of is not None:
            combined = combine_schemas(False, *self._dereference_all(any_of))
            return self.get_type_spec(combined, name)

        if _is_true(schema, "x-kubernetes-preserve-unknown-fields"):
            return TypeSpec.map_of(TypeSpec.any_type())

        schema_type = schema.get("type")
        if not isinstance(schema_type, str):
            return TypeSpec.any_type()

        if schema_type == "array":
            items = schema.get("items")
            return TypeSpec.array_of(self.get_type_spec(items, name))

        if schema_type == "object":
            self.add_type(schema, name)
            additional = schema.get("additionalProperties")
            if isinstance(additional, dict):
                return TypeSpec.map_of(self.get_type_spec(additional, name))
            # `additionalProperties: true` is the same as `additionalProperties: {}`
            if additional is True:
                return TypeSpec.map_of(TypeSpec.any_type())
            if not isinstance(schema.get("properties"), dict):
                return TypeSpec.map_of(TypeSpec.any_type())
            return TypeSpec.reference(name)

        if schema_type in PRIMITIVE_TYPES:
            return TypeSpec.primitive_type(schema_type)

        logger.debug(f"Unsupported schema type '{schema_type}' for '{name}'")
        return TypeSpec.any_type()

    def _resolve_reference(self, schema):
        name = ref_name(schema)
        if name is None or name not in self.definitions:
            logger.debug(f"Cannot resolve reference {schema.get('$ref')!r}")
            return TypeSpec.any_type()

        if name in self._resolved_refs:
            return self._resolved_refs[name]
        if name in self._refs_in_progress:
            return TypeSpec.reference(name)

        self._refs_in_progress.add(name)
        try:
            type_spec = self.get_type_spec(self.definitions[name], name)
        finally:
            self._refs_in_progress.discard(name)
        self._resolved_refs[name] = type_spec
        return type_spec

    def _dereference_all(self, schemas):
        resolved = []
        for schema in schemas:
            name = ref_name(schema) if "$ref" in schema else None
            if name is not None and isinstance(self.definitions.get(name), dict):
                resolved.append(self.definitions[name])
            else:
                resolved.append(schema)
        return resolved

    def add_definition(self, name):
        """Register the definition ``name`` of the definitions table as an object type."""
        self._refs_in_progress.add(name)
        try:
            return self.add_type(self.definitions[name], name)
        finally:
            self._refs_in_progress.discard(name)

    def add_type(self, schema, name):
        """Build a ComplexTypeSpec for an object ``schema`` and register it under ``name``.

        Every property is resolved under ``name + PascalCase(property)``.
        Defaults are only kept for properties that do not resolve to an
        array or object type, since generators cannot represent structured
        defaults.

        Returns:
            ComplexTypeSpec: The registered type.
        """
        properties = schema.get("properties")
        found_properties = isinstance(properties, dict)
        description = schema.get("description")
        schema_type = schema.get("type")
        if not isinstance(schema_type, str):
            schema_type = ""
        required = schema.get("required")
        if isinstance(required, list):
            required = [
                property_key(field)
                for field in required
                if isinstance(field, (str, bool, int, float))
            ]
        else:
            required = []

        property_specs = {}
        for key, property_schema in (properties or {}).items():
            property_name = property_key(key)
            # Unnamed properties like "-" have no usable name.
            if not to_pascal_case(property_name):
                continue
            if not isinstance(property_schema, dict):
                property_schema = None
            type_spec = self.get_type_spec(
                property_schema, child_type_name(name, property_name)
            )
            property_description = None
            default = None
            if property_schema is not None:
                property_description = property_schema.get("description")
                if not type_spec.is_structured:
                    default = property_schema.get("default")
            property_specs[property_name] = PropertySpec(
                type_spec=type_spec,
                description=property_description if isinstance(property_description, str) else None,
                default=default,
            )

        # If the type wasn't specified but properties were found, it is an object.
        if found_properties and not schema_type:
            schema_type = "object"

        return self.registry.add(
            name,
            ComplexTypeSpec(
                type=schema_type,
                description=description if isinstance(description, str) else None,
                properties=property_specs,
                required=required,
            ),
        )


def get_type_spec(schema, name, registry, definitions=None):
    """Resolve ``schema`` under ``name``, registering object types in ``registry``."""
    return TypeResolver(registry, definitions).get_type_spec(schema, name)


def add_type(schema, name, registry, definitions=None):
    """Register the object ``schema`` under ``name`` in ``registry``."""
    return TypeResolver(registry, definitions).add_type(schema, name)
