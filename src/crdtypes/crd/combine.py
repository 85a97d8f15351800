"""Structural merge of ``allOf``/``anyOf`` sub-schemas."""

import logging

from .naming import property_key

logger = logging.getLogger(__name__)


def combine_schemas(combine_required, *schemas, conflicts=None):
    """Combine the ``properties`` of the given sub-schemas into one object schema.

    Args:
        combine_required: If True, the ``required`` lists of all sub-schemas
            are concatenated (``allOf``). If False the combined schema has no
            ``required`` key at all (``anyOf``).
        *schemas: The sub-schemas to combine.
        conflicts: Optional list that receives the names of properties
            defined by more than one sub-schema.

    Returns:
        None if no schemas are given, the schema itself if exactly one is
        given, otherwise a new object schema. On a property name collision
        the last sub-schema wins.
    """
    if not schemas:
        return None
    if len(schemas) == 1:
        return schemas[0]

    combined_properties = {}
    combined_required = []

    for schema in schemas:
        properties = schema.get("properties")
        if isinstance(properties, dict):
            for key, property_schema in properties.items():
                property_name = property_key(key)
                if property_name in combined_properties:
                    logger.debug(f"Property '{property_name}' redefined while combining schemas")
                    if conflicts is not None:
                        conflicts.append(property_name)
                combined_properties[property_name] = property_schema
        if combine_required:
            required = schema.get("required")
            if isinstance(required, list):
                combined_required.extend(required)

    combined = {"type": "object", "properties": combined_properties}
    if combine_required:
        combined["required"] = combined_required
    return combined
