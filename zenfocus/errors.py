"""Error types raised by ZenFocus."""

from __future__ import annotations


class ValidationError(ValueError):
    """Input rejected before any state was touched."""

    def __init__(self, errors: list[str] | str):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class StoreError(RuntimeError):
    """The persistent store failed to fetch, save or delete."""
