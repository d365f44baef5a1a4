from __future__ import annotations

from pathlib import Path

from . import config


ARTIFACT_NAMES = {
    "pdf": "document.pdf",
    "preview_1": "preview_1.png",
    "preview_2": "preview_2.png",
    "preview_3": "preview_3.png",
    "totals": "totals.json",
    "error": "error.log",
}


def document_dir(slug: str, base_dir: Path | None = None, include_slug: bool = True) -> Path:
    root = base_dir or config.OUT_DIR
    path = root / slug if include_slug else root
    path.mkdir(parents=True, exist_ok=True)
    return path


def artifact_path(
    slug: str,
    artifact_type: str,
    base_dir: Path | None = None,
    include_slug: bool = True,
) -> Path:
    filename = ARTIFACT_NAMES[artifact_type]
    return document_dir(slug, base_dir=base_dir, include_slug=include_slug) / filename
