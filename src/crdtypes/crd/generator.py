"""CRD parsing and type registry construction."""

import copy
import logging
from concurrent.futures import ThreadPoolExecutor

from crdtypes.exception import CRDParseError

from .base import ComplexTypeSpec, PropertySpec, SchemaDocument, TypeSpec
from .flatten import flatten_openapi
from .merge import merge_specs
from .registry import TypeRegistry
from .resolver import TypeResolver
from .versions import get_token, group_prefix, split_group_version

logger = logging.getLogger(__name__)

CRD_KIND = "CustomResourceDefinition"
DEFAULT_NAME = "crds"
DEFAULT_VERSION = "0.0.0-dev"

# Well-known token of the Kubernetes ObjectMeta type referenced by every resource.
OBJECT_META_TOKEN = "kubernetes:meta/v1:ObjectMeta"

ENVELOPE_FIELDS = ("apiVersion", "kind", "metadata")


def _nested(obj, *fields):
    """Return the value at the given path of nested mappings, or None."""
    for field in fields:
        if not isinstance(obj, dict):
            return None
        obj = obj.get(field)
    return obj


def _nested_string(obj, *fields):
    value = _nested(obj, *fields)
    return value if isinstance(value, str) and value else None


class CustomResourceGenerator:
    """Parses one CRD into flattened per-version OpenAPI documents.

    Args:
        crd: The decoded CustomResourceDefinition manifest.

    Raises:
        CRDParseError: If ``spec.names.kind`` or ``spec.group`` is missing.
    """

    def __init__(self, crd):
        self.custom_resource_definition = crd
        self.api_version = crd.get("apiVersion", "")

        self.kind = _nested_string(crd, "spec", "names", "kind")
        if self.kind is None:
            raise CRDParseError("could not find `spec.names.kind` field in the CRD")
        self.group = _nested_string(crd, "spec", "group")
        if self.group is None:
            raise CRDParseError("could not find `spec.group` field in the CRD")

        self.plural = _nested_string(crd, "spec", "names", "plural")
        self.singular = _nested_string(crd, "spec", "names", "singular") or self.kind.lower()
        self.list_kind = _nested_string(crd, "spec", "names", "listKind") or f"{self.kind}List"

        self.schemas = self._extract_schemas()
        self.versions = list(self.schemas)
        self.group_versions = [f"{self.group}/{version}" for version in self.versions]
        self.resource_tokens = [
            get_token(self.group, version, self.kind) for version in self.versions
        ]

        self.documents = [
            self._build_document(version, schema)
            for version, schema in self.schemas.items()
        ]
        if self.documents:
            self.merged = merge_specs(self.documents)
        else:
            logger.warning(f"CRD {self.kind}.{self.group} has no served version with a schema")
            self.merged = SchemaDocument()

    def _served_versions(self):
        versions = _nested(self.custom_resource_definition, "spec", "versions")
        if not isinstance(versions, list):
            return []
        served = []
        for version_info in versions:
            if not isinstance(version_info, dict):
                continue
            name = version_info.get("name")
            if not isinstance(name, str) or not name:
                continue
            if version_info.get("served", True) is False:
                logger.debug(f"Skipping unserved version {name} of {self.kind}")
                continue
            served.append(version_info)
        return served

    def _extract_schemas(self):
        """Map every served version to its ``openAPIV3Schema``.

        A top-level ``spec.validation.openAPIV3Schema`` (apiextensions v1beta1)
        validates every version, otherwise each version carries its own schema.
        """
        spec = self.custom_resource_definition.get("spec")
        schemas = {}

        validation = _nested(spec, "validation", "openAPIV3Schema")
        if isinstance(validation, dict):
            version = _nested_string(spec, "version")
            if version is not None:
                schemas[version] = validation
            else:
                for version_info in self._served_versions():
                    schemas[version_info["name"]] = validation
            return schemas

        for version_info in self._served_versions():
            schema = _nested(version_info, "schema", "openAPIV3Schema")
            if isinstance(schema, dict):
                schemas[version_info["name"]] = schema
        return schemas

    def _build_document(self, version, schema):
        token = get_token(self.group, version, self.kind)
        document = SchemaDocument(
            version=version,
            roots=[token],
            definitions={token: copy.deepcopy(schema)},
        )
        added = flatten_openapi(document)
        logger.debug(f"Built OpenAPI spec for {token} with {len(added)} nested definitions")
        return document

    def has_schemas(self):
        """Return True if the CRD specifies at least one schema."""
        return len(self.schemas) > 0


class PackageGenerator:
    """Resolves a set of CRDs into a single type registry.

    Args:
        crds: Decoded CustomResourceDefinition manifests.
        version: Version stamped into the package dump.
        name: Package name stamped into the package dump.
        workers: Number of threads used to parse and flatten CRDs. Type
            resolution always runs serially in CRD order.
    """

    def __init__(self, crds, version=DEFAULT_VERSION, name=DEFAULT_NAME, workers=1):
        self.version = version
        self.name = name
        self.custom_resource_generators = self._build_generators(crds, workers)

        self.resource_tokens = []
        self.group_versions = []
        for crg in self.custom_resource_generators:
            self.resource_tokens.extend(crg.resource_tokens)
            self.group_versions.extend(crg.group_versions)

        self.types = self.get_types()

    @staticmethod
    def _build_generators(crds, workers):
        def build(indexed_crd):
            index, crd = indexed_crd
            try:
                return CustomResourceGenerator(crd)
            except CRDParseError as e:
                raise CRDParseError(f"could not parse crd {index}: {e}") from e

        indexed = list(enumerate(crds))
        if workers > 1 and len(indexed) > 1:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                return list(executor.map(build, indexed))
        return [build(item) for item in indexed]

    def get_types(self):
        """Resolve every (CRD, version) root into a new TypeRegistry.

        Each root is registered under its resource token and amended with the
        ``apiVersion``, ``kind`` and ``metadata`` envelope properties, which
        are also made required. ``required_outputs`` lists every property of
        the root since a CRD cannot declare that e.g. ``status`` is always
        present in responses.
        """
        registry = TypeRegistry()
        for crg in self.custom_resource_generators:
            definitions = crg.merged.definitions
            resolver = TypeResolver(registry, definitions)
            for version in crg.versions:
                token = get_token(crg.group, version, crg.kind)
                schema = definitions.get(token)
                if not isinstance(schema, dict):
                    continue

                found_properties = isinstance(schema.get("properties"), dict)
                preserve_unknown_fields = (
                    schema.get("x-kubernetes-preserve-unknown-fields") is True
                )
                if found_properties:
                    resolver.add_definition(token)
                if preserve_unknown_fields and token not in registry:
                    registry.add(token, ComplexTypeSpec(type="object"))
                if found_properties or preserve_unknown_fields:
                    self._add_envelope(registry[token], crg.group, version, crg.kind)

        logger.info(
            f"Resolved {len(registry)} types for {len(self.resource_tokens)} resources"
        )
        return registry

    @staticmethod
    def _add_envelope(type_spec, group, version, kind):
        type_spec.properties["apiVersion"] = PropertySpec(
            type_spec=TypeSpec.primitive_type("string"),
            const=f"{group}/{version}",
        )
        type_spec.properties["kind"] = PropertySpec(
            type_spec=TypeSpec.primitive_type("string"),
            const=kind,
        )
        type_spec.properties["metadata"] = PropertySpec(
            type_spec=TypeSpec.reference(OBJECT_META_TOKEN),
        )
        for field in ENVELOPE_FIELDS:
            if field not in type_spec.required:
                type_spec.required.append(field)

        type_spec.required_inputs = list(type_spec.required)
        type_spec.required_outputs = list(type_spec.properties)

    def module_to_package(self):
        """Map every ``<group>/<version>`` to ``<groupPrefix>/<version>``.

        Raises:
            ValueError: If a group version is malformed.
        """
        module_to_package = {}
        for group_version in self.group_versions:
            group, version = split_group_version(group_version)
            module_to_package[group_version] = f"{group_prefix(group)}/{version}"
        return module_to_package

    def has_schemas(self):
        """Return True if at least one CRD in this package has a schema."""
        return any(crg.has_schemas() for crg in self.custom_resource_generators)

    def to_dict(self):
        """Return the resolved package as plain data for generators."""
        return {
            "name": self.name,
            "version": self.version,
            "resources": list(self.resource_tokens),
            "types": self.types.to_dict(),
            "moduleToPackage": self.module_to_package(),
        }


def read_packages_from_source(version, documents, name=DEFAULT_NAME, workers=1):
    """Build a PackageGenerator from decoded manifests.

    Documents that are not CustomResourceDefinitions are ignored.

    Raises:
        CRDParseError: If no CRD is found or a CRD is malformed.
    """
    crds = [
        document
        for document in documents
        if isinstance(document, dict) and document.get("kind") == CRD_KIND
    ]
    if not crds:
        raise CRDParseError("could not find any CRD YAML files")

    logger.info(f"Processing {len(crds)} CRDs")
    return PackageGenerator(crds, version=version, name=name, workers=workers)
