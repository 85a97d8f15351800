"""Helpers for Kubernetes group/version strings."""

import re

_non_alphanumeric = re.compile(r"[^a-zA-Z0-9]+")


def get_token(group, version, kind):
    """Return the resource token ``<group>/<version>:<kind>``."""
    return f"{group}/{version}:{kind}"


def split_group_version(group_version):
    """Split ``<group>/<version>`` into its two parts.

    Raises:
        ValueError: If the string does not contain exactly one ``/``.
    """
    parts = group_version.split("/")
    if len(parts) != 2:
        raise ValueError(
            f"expected a version string with the format <group>/<version>, but got {group_version!r}"
        )
    return parts[0], parts[1]


def group_prefix(group):
    """Return the first dot-separated word of ``group`` with non-alphanumerics removed."""
    if not group:
        raise ValueError("group cannot be empty")
    return _non_alphanumeric.sub("", group.split(".")[0])

