from __future__ import annotations

import hashlib
import re
from pathlib import Path
from typing import Iterable, List

import pydantic
from slugify import slugify

from ..models import Document


def slug_from_ref(ref: str) -> str:
    slug = slugify(ref)
    slug = re.sub(r"[^a-z0-9-]+", "-", slug.lower()).strip("-")
    if not slug:
        slug = hashlib.md5(ref.encode("utf-8")).hexdigest()[:12]
    if ".." in slug or "/" in slug or "\\" in slug:
        raise ValueError("Invalid slug generated from ref")
    return slug


def load_document(path: Path) -> Document:
    if not path.exists():
        raise FileNotFoundError(f"Document not found: {path}")
    raw = path.read_text(encoding="utf-8")
    try:
        return Document.model_validate_json(raw)
    except pydantic.ValidationError as exc:
        raise ValueError(f"Invalid document {path.name}: {exc}") from exc


def discover_documents(paths: Iterable[Path]) -> List[Path]:
    """Expand directories into their *.json files, keeping the given order otherwise."""
    found: List[Path] = []
    for path in paths:
        if path.is_dir():
            found.extend(sorted(path.glob("*.json")))
        else:
            found.append(path)
    seen = set()
    unique: List[Path] = []
    for path in found:
        key = path.resolve()
        if key not in seen:
            seen.add(key)
            unique.append(path)
    return unique
