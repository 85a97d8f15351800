"""Shared fixtures for crdtypes tests."""

from pathlib import Path

import pytest
import yaml

from crdtypes.crd.loader import load_documents

TESTDATA = Path(__file__).parent / "testdata"


@pytest.fixture
def testdata() -> Path:
    return TESTDATA


@pytest.fixture
def widget_documents():
    """All documents of the widgets manifest, including the non-CRD ones."""
    return load_documents([str(TESTDATA / "widgets.yaml")])


@pytest.fixture
def widget_crd(widget_documents):
    return next(doc for doc in widget_documents if doc["kind"] == "CustomResourceDefinition")


@pytest.fixture
def combine_fixtures():
    return yaml.safe_load((TESTDATA / "combine-schemas.yaml").read_text(encoding="utf-8"))


def _make_crd(group="example.com", kind="Widget", versions=None, **names):
    """Build a minimal CRD manifest with one schema per version."""
    versions = versions or {"v1": {"type": "object"}}
    return {
        "apiVersion": "apiextensions.k8s.io/v1",
        "kind": "CustomResourceDefinition",
        "metadata": {"name": f"{kind.lower()}s.{group}"},
        "spec": {
            "group": group,
            "names": {"kind": kind, **names},
            "versions": [
                {
                    "name": name,
                    "served": True,
                    "schema": {"openAPIV3Schema": schema},
                }
                for name, schema in versions.items()
            ],
        },
    }


@pytest.fixture
def make_crd():
    """Factory for minimal CRD manifests."""
    return _make_crd
