"""Registry of resolved named object types."""

import logging

from pydantic import BaseModel

from .base import ComplexTypeSpec

logger = logging.getLogger(__name__)


class TypeConflict(BaseModel):
    """A registered type was replaced by a different definition."""

    token: str
    previous: ComplexTypeSpec
    current: ComplexTypeSpec


class TypeRegistry:
    """Mapping from type token to ComplexTypeSpec.

    One registry is owned by one build and threaded through the resolver.
    Entries are only ever added or replaced, never removed. Replacing an
    entry with different content keeps the new one (last write wins) and
    records a TypeConflict.
    """

    def __init__(self):
        self._types = {}
        self.conflicts = []

    def add(self, token, type_spec):
        """Register ``type_spec`` under ``token``."""
        previous = self._types.get(token)
        if previous is not None and previous != type_spec:
            logger.debug(f"Type '{token}' redefined, keeping the latest definition")
            self.conflicts.append(
                TypeConflict(token=token, previous=previous, current=type_spec)
            )
        self._types[token] = type_spec
        logger.debug(f"Registered type: {token}")
        return type_spec

    def get(self, token):
        return self._types.get(token)

    def __getitem__(self, token):
        return self._types[token]

    def __contains__(self, token):
        return token in self._types

    def __len__(self):
        return len(self._types)

    def __iter__(self):
        return iter(self._types)

    def items(self):
        return self._types.items()

    def to_dict(self):
        """Render every registered type in its schema form."""
        return {token: spec.to_schema() for token, spec in self._types.items()}
