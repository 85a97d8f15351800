"""Merge the per-version OpenAPI documents of one CRD."""

import logging

from crdtypes.exception import SchemaMergeError

from .base import DefinitionConflict, SchemaDocument

logger = logging.getLogger(__name__)


def merge_specs(documents):
    """Merge flattened per-version documents into a single document.

    Definitions are combined by name. A name defined with identical content
    by several documents is shared. When the content differs the document
    that comes last in ``documents`` wins and the conflict is logged and
    recorded on the merged document's ``conflicts``.

    Args:
        documents: Sequence of SchemaDocument, one per served version.

    Returns:
        SchemaDocument: The merged document.

    Raises:
        SchemaMergeError: If ``documents`` is empty.
    """
    if not documents:
        raise SchemaMergeError("no OpenAPI specs to merge")

    merged = SchemaDocument()
    owners = {}

    for document in documents:
        for root in document.roots:
            if root not in merged.roots:
                merged.roots.append(root)

        for name, schema in document.definitions.items():
            if name in merged.definitions:
                if merged.definitions[name] == schema:
                    continue
                conflict = DefinitionConflict(
                    name=name,
                    kept=document.version or "",
                    replaced=owners.get(name) or "",
                )
                logger.warning(
                    f"Definition '{name}' differs between versions "
                    f"{conflict.replaced!r} and {conflict.kept!r}, using {conflict.kept!r}"
                )
                merged.conflicts.append(conflict)
            merged.definitions[name] = schema
            owners[name] = document.version

    logger.debug(
        f"Merged {len(documents)} OpenAPI specs into {len(merged.definitions)} definitions"
    )
    return merged
