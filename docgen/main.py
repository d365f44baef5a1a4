from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer

from . import config
from .errors import ValidationError
from .pipeline.build import document_totals
from .pipeline.formatting import format_money
from .pipeline.ingest import discover_documents, load_document
from .pipeline.run import run_pipeline

app = typer.Typer(help="Render invoices, quotations and credit notes to PDF")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def build(
    paths: List[Path] = typer.Argument(..., help="Document JSON files or directories"),
    out: Optional[Path] = typer.Option(None, "--out", help="Output directory"),
    previews: bool = typer.Option(False, "--previews", help="Also write PNG previews"),
    layout: Optional[Path] = typer.Option(None, "--layout", help="JSON layout preset"),
) -> None:
    if out:
        config.set_out_dir(out)
    layout_config = config.load_layout_config(layout)
    files = discover_documents(paths)
    if not files:
        typer.echo("No documents to render")
        return
    results = run_pipeline(files, previews=previews, layout=layout_config)
    typer.echo(f"READY: {len(results['READY'])}")
    typer.echo(f"FAILED: {len(results['FAILED'])}")
    for slug in results["FAILED"]:
        typer.echo(f"FAILED: {slug}")
    if results["FAILED"]:
        raise typer.Exit(code=1)


@app.command()
def totals(path: Path = typer.Argument(..., help="Document JSON file")) -> None:
    try:
        document = load_document(path)
    except (FileNotFoundError, ValueError) as exc:
        typer.echo(f"ERROR: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    try:
        document.ensure_valid()
    except ValidationError as exc:
        for error in exc.errors:
            typer.echo(f"INVALID: {error}", err=True)
        raise typer.Exit(code=1) from exc
    result = document_totals(document)
    options = document.options
    typer.echo(f"{options.text_total_total}: {format_money(result.total, options)}")
    if document.discount is not None:
        typer.echo(f"{options.text_total_discounted}: {format_money(result.total_after_discount, options)}")
    typer.echo(f"{options.text_total_tax}: {format_money(result.total_tax, options)}")
    typer.echo(f"{options.text_total_with_tax}: {format_money(result.grand_total, options)}")


if __name__ == "__main__":
    app()
