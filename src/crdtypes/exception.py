"""Exceptions raised by crdtypes."""


class CRDError(Exception):
    """Base class for all crdtypes errors."""


class CRDParseError(CRDError):
    """Raised when a CustomResourceDefinition is missing required fields."""


class CRDLoadError(CRDError):
    """Raised when a CRD source cannot be read."""

    def __init__(self, source, message):
        self.source = source
        super().__init__(f"could not read {source}: {message}")


class SchemaMergeError(CRDError):
    """Raised when OpenAPI documents cannot be merged."""
