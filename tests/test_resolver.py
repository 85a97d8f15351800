"""Tests for resolving schema nodes into TypeSpecs."""

import copy

import pytest

from crdtypes.crd.base import SchemaDocument, TypeKind, TypeSpec
from crdtypes.crd.flatten import flatten_openapi
from crdtypes.crd.registry import TypeRegistry
from crdtypes.crd.resolver import TypeResolver, add_type, get_type_spec

STRING = TypeSpec.primitive_type("string")
INTEGER = TypeSpec.primitive_type("integer")
ANY = TypeSpec.any_type()


@pytest.fixture
def registry():
    return TypeRegistry()


class TestBasicResolution:

    def test_missing_schema_is_any(self, registry):
        assert get_type_spec(None, "Foo", registry) == ANY

    @pytest.mark.parametrize("schema_type", ["string", "integer", "number", "boolean"])
    def test_primitives(self, registry, schema_type):
        result = get_type_spec({"type": schema_type}, "Foo", registry)

        assert result == TypeSpec.primitive_type(schema_type)
        assert len(registry) == 0

    def test_missing_type_is_any(self, registry):
        assert get_type_spec({"description": "untyped"}, "Foo", registry) == ANY

    def test_unknown_type_is_any(self, registry):
        assert get_type_spec({"type": "null"}, "Foo", registry) == ANY

    def test_int_or_string(self, registry):
        result = get_type_spec(
            {"type": "string", "x-kubernetes-int-or-string": True}, "Foo", registry
        )

        assert result == TypeSpec.union([INTEGER, STRING])

    def test_preserve_unknown_fields_is_open_map(self, registry):
        result = get_type_spec(
            {"type": "object", "x-kubernetes-preserve-unknown-fields": True},
            "Foo",
            registry,
        )

        assert result == TypeSpec.map_of(ANY)
        assert "Foo" not in registry


class TestObjects:

    def test_object_with_properties_is_a_reference(self, registry):
        schema = {"type": "object", "properties": {"x": {"type": "string"}}}

        result = get_type_spec(schema, "Foo", registry)

        assert result == TypeSpec.reference("Foo")
        assert registry["Foo"].properties["x"].type_spec == STRING

    def test_additional_properties_schema_is_a_map(self, registry):
        schema = {"type": "object", "additionalProperties": {"type": "string"}}

        result = get_type_spec(schema, "Foo", registry)

        assert result == TypeSpec.map_of(STRING)
        assert result.kind == TypeKind.MAP

    def test_additional_properties_true_is_map_of_any(self, registry):
        schema = {"type": "object", "additionalProperties": True}

        assert get_type_spec(schema, "Foo", registry) == TypeSpec.map_of(ANY)

    def test_object_without_properties_is_arbitrary_json(self, registry):
        result = get_type_spec({"type": "object"}, "Foo", registry)

        assert result == TypeSpec.map_of(ANY)
        assert registry["Foo"].is_map

    def test_nested_properties_get_derived_names(self, registry):
        schema = {
            "type": "object",
            "properties": {
                "spec": {
                    "type": "object",
                    "properties": {
                        "template_spec": {
                            "type": "object",
                            "properties": {"image": {"type": "string"}},
                        }
                    },
                }
            },
        }

        get_type_spec(schema, "Foo", registry)

        assert list(registry) == ["FooSpecTemplateSpec", "FooSpec", "Foo"]
        assert registry["FooSpec"].properties["template_spec"].type_spec == TypeSpec.reference(
            "FooSpecTemplateSpec"
        )

    def test_array_items_share_the_parent_name(self, registry):
        schema = {
            "type": "array",
            "items": {"type": "object", "properties": {"name": {"type": "string"}}},
        }

        result = get_type_spec(schema, "Foo", registry)

        assert result == TypeSpec.array_of(TypeSpec.reference("Foo"))
        assert "Foo" in registry

    def test_array_without_items_is_array_of_any(self, registry):
        assert get_type_spec({"type": "array"}, "Foo", registry) == TypeSpec.array_of(ANY)


class TestCombinators:

    def test_one_of_is_a_union(self, registry):
        schema = {"oneOf": [{"type": "string"}, {"type": "integer"}]}

        assert get_type_spec(schema, "Foo", registry) == TypeSpec.union([STRING, INTEGER])

    def test_one_of_members_get_indexed_names(self, registry):
        schema = {
            "oneOf": [
                {"type": "object", "properties": {"a": {"type": "string"}}},
                {"type": "object", "properties": {"b": {"type": "string"}}},
            ]
        }

        result = get_type_spec(schema, "Foo", registry)

        assert result == TypeSpec.union(
            [TypeSpec.reference("FooOneOf0"), TypeSpec.reference("FooOneOf1")]
        )
        assert set(registry) == {"FooOneOf0", "FooOneOf1"}

    @pytest.mark.parametrize(
        "unconstrained",
        [{}, {"description": "no type"}, {"type": "null"}, {"oneOf": [{"type": "string"}, {}]}],
    )
    def test_one_of_with_any_member_is_any(self, registry, unconstrained):
        schema = {"oneOf": [{"type": "string"}, unconstrained, {"type": "integer"}]}

        assert get_type_spec(schema, "Foo", registry) == ANY

    def test_all_of_collapses_into_the_current_type(self, registry):
        schema = {
            "allOf": [
                {"properties": {"a": {"type": "string"}}, "required": ["a"]},
                {"properties": {"b": {"type": "integer"}}, "required": ["b"]},
            ]
        }

        result = get_type_spec(schema, "Foo", registry)

        assert result == TypeSpec.reference("Foo")
        assert set(registry["Foo"].properties) == {"a", "b"}
        assert registry["Foo"].required == ["a", "b"]

    def test_any_of_makes_every_property_optional(self, registry):
        schema = {
            "anyOf": [
                {"properties": {"a": {"type": "string"}}, "required": ["a"]},
                {"properties": {"b": {"type": "integer"}}},
            ]
        }

        result = get_type_spec(schema, "Foo", registry)

        assert result == TypeSpec.reference("Foo")
        assert registry["Foo"].required == []

    def test_single_all_of_member_is_resolved_directly(self, registry):
        schema = {"allOf": [{"type": "string"}]}

        assert get_type_spec(schema, "Foo", registry) == STRING

    def test_combinator_members_can_be_references(self, registry):
        definitions = {
            "Base": {"type": "object", "properties": {"a": {"type": "string"}}},
        }
        schema = {
            "allOf": [
                {"$ref": "#/definitions/Base"},
                {"properties": {"b": {"type": "string"}}},
            ]
        }

        get_type_spec(schema, "Foo", registry, definitions)

        assert set(registry["Foo"].properties) == {"a", "b"}


class TestAddType:

    def test_defaults_only_for_scalar_properties(self, registry):
        schema = {
            "type": "object",
            "properties": {
                "count": {"type": "integer", "default": 3},
                "tags": {"type": "array", "items": {"type": "string"}, "default": ["a"]},
                "labels": {
                    "type": "object",
                    "additionalProperties": {"type": "string"},
                    "default": {"a": "b"},
                },
                "mode": {"x-kubernetes-int-or-string": True, "default": "auto"},
            },
        }

        spec = add_type(schema, "Foo", registry)

        assert spec.properties["count"].default == 3
        assert spec.properties["tags"].default is None
        assert spec.properties["labels"].default is None
        assert spec.properties["mode"].default == "auto"

    def test_descriptions_are_carried_over(self, registry):
        schema = {
            "type": "object",
            "description": "A foo.",
            "properties": {"name": {"type": "string", "description": "The name."}},
        }

        spec = add_type(schema, "Foo", registry)

        assert spec.description == "A foo."
        assert spec.properties["name"].description == "The name."

    def test_type_is_inferred_from_properties(self, registry):
        spec = add_type({"properties": {"a": {"type": "string"}}}, "Foo", registry)

        assert spec.type == "object"

    def test_unnamed_properties_are_skipped(self, registry):
        spec = add_type(
            {"type": "object", "properties": {"-": {"type": "string"}, "a": {"type": "string"}}},
            "Foo",
            registry,
        )

        assert list(spec.properties) == ["a"]

    def test_non_string_property_names(self, registry):
        schema = {
            "type": "object",
            "required": [True, 200],
            "properties": {
                True: {"type": "object", "properties": {"a": {"type": "string"}}},
                200: {"type": "string"},
            },
        }

        spec = add_type(schema, "Foo", registry)

        assert list(spec.properties) == ["true", "200"]
        assert spec.properties["true"].type_spec == TypeSpec.reference("FooTrue")
        assert spec.required == ["true", "200"]

    def test_re_adding_the_same_schema_keeps_the_registry_consistent(self, registry):
        schema = {"type": "object", "properties": {"a": {"type": "string"}}}

        first = add_type(schema, "Foo", registry)
        second = add_type(schema, "Foo", registry)

        assert first == second
        assert registry.conflicts == []

    def test_different_schema_under_same_name_last_write_wins(self, registry):
        add_type({"type": "object", "properties": {"a": {"type": "string"}}}, "Foo", registry)
        add_type({"type": "object", "properties": {"b": {"type": "string"}}}, "Foo", registry)

        assert list(registry["Foo"].properties) == ["b"]
        assert len(registry.conflicts) == 1
        assert registry.conflicts[0].token == "Foo"


class TestReferences:

    def test_local_reference_resolves_definition(self, registry):
        definitions = {"Bar": {"type": "object", "properties": {"x": {"type": "string"}}}}

        result = get_type_spec({"$ref": "#/definitions/Bar"}, "Foo", registry, definitions)

        assert result == TypeSpec.reference("Bar")
        assert "Bar" in registry
        assert "Foo" not in registry

    def test_reference_to_non_object_returns_its_type(self, registry):
        definitions = {"Bar": {"type": "string"}}

        result = get_type_spec({"$ref": "#/definitions/Bar"}, "Foo", registry, definitions)

        assert result == STRING

    def test_unknown_and_external_references_are_any(self, registry):
        assert get_type_spec({"$ref": "#/definitions/Missing"}, "Foo", registry) == ANY
        assert get_type_spec({"$ref": "http://example.com/schema.json"}, "Foo", registry) == ANY

    def test_cyclic_references_terminate(self, registry):
        definitions = {
            "A": {"type": "object", "properties": {"b": {"$ref": "#/definitions/B"}}},
            "B": {"type": "object", "properties": {"a": {"$ref": "#/definitions/A"}}},
        }

        result = get_type_spec({"$ref": "#/definitions/A"}, "Foo", registry, definitions)

        assert result == TypeSpec.reference("A")
        assert registry["A"].properties["b"].type_spec == TypeSpec.reference("B")
        assert registry["B"].properties["a"].type_spec == TypeSpec.reference("A")

    def test_self_referencing_inline_schema_terminates(self, registry):
        node = {"type": "object", "properties": {}}
        node["properties"]["child"] = node

        result = get_type_spec(node, "Node", registry)

        assert result == TypeSpec.reference("Node")
        assert registry["Node"].properties["child"].type_spec == TypeSpec.reference("Node")


def _sample_schema():
    return {
        "type": "object",
        "properties": {
            "spec": {
                "type": "object",
                "description": "The spec.",
                "properties": {
                    "size": {"type": "integer", "default": 2},
                    "template": {
                        "type": "object",
                        "properties": {"image": {"type": "string"}},
                    },
                    "containers": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {"name": {"type": "string"}},
                        },
                    },
                    "ports": {
                        "type": "object",
                        "additionalProperties": {
                            "type": "array",
                            "items": {
                                "type": "object",
                                "properties": {"port": {"type": "integer"}},
                            },
                        },
                    },
                    "routes": {
                        "type": "object",
                        "additionalProperties": {
                            "type": "object",
                            "properties": {
                                "backend": {
                                    "type": "object",
                                    "properties": {"host": {"type": "string"}},
                                },
                            },
                        },
                    },
                    "args": {"type": "object", "properties": {"v": {"type": "string"}}},
                    "-": {"type": "string"},
                },
            }
        },
    }


def test_resolution_is_deterministic():
    first, second = TypeRegistry(), TypeRegistry()

    get_type_spec(_sample_schema(), "Root", first)
    get_type_spec(_sample_schema(), "Root", second)

    assert list(first) == list(second)
    assert dict(first.items()) == dict(second.items())


def test_flattened_and_inline_schemas_resolve_to_the_same_types():
    inline_registry = TypeRegistry()
    get_type_spec(_sample_schema(), "Root", inline_registry)

    document = SchemaDocument(definitions={"Root": copy.deepcopy(_sample_schema())})
    flatten_openapi(document)
    flat_registry = TypeRegistry()
    TypeResolver(flat_registry, document.definitions).add_definition("Root")

    assert dict(flat_registry.items()) == dict(inline_registry.items())


def test_every_reference_is_registered():
    registry = TypeRegistry()
    get_type_spec(_sample_schema(), "Root", registry)

    def refs(type_spec):
        if type_spec.kind == TypeKind.REF:
            yield type_spec.ref
        elif type_spec.kind == TypeKind.ARRAY:
            yield from refs(type_spec.items)
        elif type_spec.kind == TypeKind.MAP:
            yield from refs(type_spec.additional_properties)
        elif type_spec.kind == TypeKind.UNION:
            for member in type_spec.one_of:
                yield from refs(member)

    for _, spec in registry.items():
        for prop in spec.properties.values():
            for token in refs(prop.type_spec):
                assert token in registry
