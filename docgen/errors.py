from __future__ import annotations

from typing import List


class ValidationError(ValueError):
    """Document failed its structural checks; nothing was rendered."""

    def __init__(self, errors: List[str]) -> None:
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Invalid document")
