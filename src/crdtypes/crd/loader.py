"""Read CRD manifests from files, stdin or http(s) URLs."""

import logging
import re
import sys
from pathlib import Path

import requests
import yaml

from crdtypes.exception import CRDLoadError, CRDParseError

logger = logging.getLogger(__name__)

_url_scheme = re.compile(r"^\w+://")

YAML_ACCEPT_HEADER = "application/x-yaml, text/yaml"


def fetch_url(url, timeout=30):
    """Download a CRD manifest over http(s)."""
    try:
        response = requests.get(url, headers={"Accept": YAML_ACCEPT_HEADER}, timeout=timeout)
    except requests.RequestException as e:
        raise CRDLoadError(url, f"failed to connect to HTTP server: {e}") from e
    if response.status_code != 200:
        raise CRDLoadError(url, f"error getting CRD. Status={response.status_code}")
    return response.text


def read_source(source, timeout=30):
    """Return the text of a path, URL, or ``-`` for stdin."""
    if _url_scheme.match(source):
        scheme = source.split("://", 1)[0].lower()
        if scheme not in ("http", "https"):
            raise CRDLoadError(source, f"scheme {scheme!r} is not supported")
        return fetch_url(source, timeout=timeout)

    if source == "-":
        return sys.stdin.read()

    try:
        return Path(source).read_text(encoding="utf-8")
    except OSError as e:
        raise CRDLoadError(source, str(e)) from e


def parse_documents(text, source="<string>"):
    """Decode every YAML (or JSON) document in ``text``, skipping empty ones."""
    try:
        return [document for document in yaml.safe_load_all(text) if document is not None]
    except yaml.YAMLError as e:
        raise CRDParseError(f"failed to unmarshal yaml from {source}: {e}") from e


def load_documents(sources, timeout=30):
    """Read and decode all documents of the given sources, in order."""
    documents = []
    for source in sources:
        text = read_source(source, timeout=timeout)
        parsed = parse_documents(text, source)
        logger.debug(f"Read {len(parsed)} documents from {source}")
        documents.extend(parsed)
    return documents
