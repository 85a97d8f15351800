"""Resolve Kubernetes CRD schemas into a flat, named type graph."""

__version__ = "0.1.0"
