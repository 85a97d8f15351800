"""Lift nested inline object schemas into named definitions."""

import logging

from .naming import child_type_name, definition_ref, is_reference, property_key

logger = logging.getLogger(__name__)

# Upstream tooling emits a property literally named "-" for ignored fields.
_IGNORED_PROPERTY = "-"


def _has_properties(node):
    return isinstance(node, dict) and isinstance(node.get("properties"), dict)


def _is_leaf(node):
    return not any(key in node for key in ("properties", "items", "additionalProperties"))


def _stringify_keys(properties):
    """Rename non-string property names in place, keeping their order."""
    renamed = {property_key(key): value for key, value in properties.items()}
    properties.clear()
    properties.update(renamed)


def flatten_openapi(document):
    """Flatten every definition of ``document`` in place.

    Every nested object schema that declares ``properties`` is moved into
    ``document.definitions`` under a name derived from its parent and
    replaced by a ``$ref``. Array items and map values are lifted the same
    way under the parent's name, since arrays and maps do not introduce a
    naming level. Non-string property names are converted to strings.

    The pass walks an explicit stack of ``(name, node)`` pairs, so nesting
    depth is not bounded by the interpreter's recursion limit. Running it on
    an already flat document changes nothing.

    Args:
        document: A SchemaDocument whose definitions are mutated.

    Returns:
        list: Names of the definitions added by this pass, in insertion order.
    """
    definitions = document.definitions
    added = []
    visited = set()

    def extract(name, node):
        existing = definitions.get(name)
        if existing is not None and existing is not node:
            logger.debug(f"Definition '{name}' already exists, keeping nested schema inline")
            return False
        if existing is None:
            definitions[name] = node
            added.append(name)
            logger.debug(f"Extracted nested schema as definition '{name}'")
        return True

    stack = [(name, node) for name, node in reversed(list(definitions.items()))]

    while stack:
        name, node = stack.pop()
        if not isinstance(node, dict) or id(node) in visited:
            continue
        visited.add(id(node))

        if is_reference(node) or _is_leaf(node):
            continue

        additional = node.get("additionalProperties")
        if isinstance(additional, dict):
            stack.append((name, additional))
            if _has_properties(additional) and extract(name, additional):
                node["additionalProperties"] = definition_ref(name)

        items = node.get("items")
        if isinstance(items, dict):
            stack.append((name, items))
            if _has_properties(items) and not is_reference(items) and extract(name, items):
                node["items"] = definition_ref(name)

        properties = node.get("properties")
        if not isinstance(properties, dict):
            continue

        if any(not isinstance(key, str) for key in properties):
            _stringify_keys(properties)

        if _IGNORED_PROPERTY in properties:
            del properties[_IGNORED_PROPERTY]

        pending = []
        for property_name, child in properties.items():
            if not isinstance(child, dict) or is_reference(child):
                continue
            child_name = child_type_name(name, property_name)
            pending.append((child_name, child))
            if _has_properties(child) and extract(child_name, child):
                reference = definition_ref(child_name)
                if "description" in child:
                    reference["description"] = child["description"]
                properties[property_name] = reference

        # Reversed so that siblings are popped in declaration order.
        stack.extend(reversed(pending))

    if added:
        logger.debug(f"Flattened {len(added)} nested schemas")
    return added
