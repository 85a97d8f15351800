import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import typer
import yaml
from typing_extensions import Annotated

from crdtypes import __version__
from crdtypes.config import Settings
from crdtypes.crd.generator import read_packages_from_source
from crdtypes.crd.loader import load_documents
from crdtypes.exception import CRDError

logger = logging.getLogger(__name__)

app = typer.Typer(
    help="crdtypes: resolve Kubernetes CRD schemas into a flat, named type graph",
    add_completion=False,
)


def configure_logging(level):
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@app.command("generate")
def generate(
    sources: Annotated[
        List[str],
        typer.Argument(help="CRD YAML files or URLs, or '-' to read from stdin"),
    ],
    output: Annotated[
        Optional[Path], typer.Option("-o", "--output", help="Output file (default: stdout)")
    ] = None,
    output_format: Annotated[
        str, typer.Option("--format", help="Output format: json or yaml")
    ] = "json",
    version: Annotated[
        Optional[str], typer.Option("-v", "--version", help="Version of the generated package")
    ] = None,
    name: Annotated[
        Optional[str], typer.Option("--name", help="Name of the generated package")
    ] = None,
    workers: Annotated[
        Optional[int], typer.Option("--workers", min=1, help="Threads used to parse CRDs")
    ] = None,
):
    """Resolve CRDs and write the type graph handed to SDK generators."""
    settings = Settings()
    configure_logging(settings.log_level)

    if output_format not in ("json", "yaml"):
        typer.echo(f"Unsupported format {output_format!r}, must be one of 'json', 'yaml'")
        raise typer.Exit(2)

    try:
        documents = load_documents(sources, timeout=settings.http_timeout)
        package = read_packages_from_source(
            version or settings.package_version,
            documents,
            name=name or settings.package_name,
            workers=workers if workers is not None else settings.workers,
        )
        data = package.to_dict()
    except (CRDError, ValueError) as e:
        typer.echo(f"Failed to generate types: {e}", err=True)
        sys.exit(1)

    if output_format == "yaml":
        rendered = yaml.dump(data, default_flow_style=False, sort_keys=False)
    else:
        rendered = json.dumps(data, indent=2) + "\n"

    if output is None:
        typer.echo(rendered, nl=False)
        return

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(rendered, encoding="utf-8")
    typer.echo(
        f"Resolved {len(package.resource_tokens)} resources and "
        f"{len(package.types)} types into {output}"
    )


@app.command("version")
def show_version():
    """Print the version number of crdtypes."""
    typer.echo(__version__)
