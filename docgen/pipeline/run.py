from __future__ import annotations

from pathlib import Path
import json
import logging
import shutil
from typing import Iterable, List, Optional

from .. import config
from ..config import LayoutConfig
from ..errors import ValidationError
from ..models import Document
from ..storage import artifact_path
from .build import document_totals, render_document
from .ingest import load_document, slug_from_ref
from .render_preview import render_previews


logger = logging.getLogger(__name__)


def _write_error(slug: str, message: str) -> None:
    # a failed document keeps only its error log
    stale_dir = config.OUT_DIR / slug
    if stale_dir.exists():
        shutil.rmtree(stale_dir)
    error_path = artifact_path(slug, "error", base_dir=config.OUT_DIR)
    error_path.write_text(message, encoding="utf-8")


def _prepare_temp_dir(slug: str) -> Path:
    temp_dir = config.OUT_DIR / f"{slug}.tmp"
    if temp_dir.exists():
        shutil.rmtree(temp_dir)
    temp_dir.mkdir(parents=True, exist_ok=True)
    return temp_dir


def _finalize_artifacts(
    temp_dir: Path,
    final_dir: Path,
    artifacts: List[tuple[str, Path]],
) -> List[tuple[str, Path]]:
    if final_dir.exists():
        shutil.rmtree(final_dir)
    temp_dir.replace(final_dir)
    finalized: List[tuple[str, Path]] = []
    for artifact_type, path in artifacts:
        finalized.append((artifact_type, final_dir / path.relative_to(temp_dir)))
    return finalized


def process_document(
    document: Document,
    slug: str,
    previews: bool = False,
    layout: Optional[LayoutConfig] = None,
) -> List[tuple[str, Path]]:
    temp_dir = _prepare_temp_dir(slug)
    artifacts: List[tuple[str, Path]] = []
    try:
        pdf_path = render_document(
            document,
            artifact_path(slug, "pdf", base_dir=temp_dir, include_slug=False),
            config=layout,
        )
        artifacts.append(("pdf", pdf_path))

        totals_path = artifact_path(slug, "totals", base_dir=temp_dir, include_slug=False)
        totals_path.write_text(json.dumps(document_totals(document).as_dict(), indent=2), encoding="utf-8")
        artifacts.append(("totals", totals_path))

        if previews:
            for index, preview in enumerate(render_previews(slug, pdf_path, base_dir=temp_dir, include_slug=False)):
                artifacts.append((f"preview_{index + 1}", preview))
    except Exception:
        shutil.rmtree(temp_dir, ignore_errors=True)
        raise

    final_dir = config.OUT_DIR / slug
    return _finalize_artifacts(temp_dir, final_dir, artifacts)


def _document_slug(path: Path, document: Document) -> str:
    return slug_from_ref(document.ref or path.stem)


def run_pipeline(
    paths: Iterable[Path],
    previews: bool = False,
    layout: Optional[LayoutConfig] = None,
) -> dict[str, list[str]]:
    """Render every document; a failure is recorded under the same slug a success would use."""
    config.OUT_DIR.mkdir(parents=True, exist_ok=True)
    results: dict[str, list[str]] = {"READY": [], "FAILED": []}
    for path in paths:
        # unreadable files have no ref to name them by
        slug = slug_from_ref(path.stem)
        try:
            document = load_document(path)
            slug = _document_slug(path, document)
            artifacts = process_document(document, slug, previews=previews, layout=layout)
        except ValidationError as exc:
            logger.warning("Invalid document %s: %s", path, exc)
            _write_error(slug, "\n".join(exc.errors))
            results["FAILED"].append(slug)
            continue
        except Exception as exc:
            logger.exception("Pipeline error for %s", path)
            _write_error(slug, str(exc))
            results["FAILED"].append(slug)
            continue

        logger.info("Rendered %s (%d artifacts)", slug, len(artifacts))
        results["READY"].append(slug)
    return results
