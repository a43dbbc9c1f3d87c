"""Exceptions raised by the item pipelines."""

from __future__ import annotations

from typing import Optional


class ItemAdminError(Exception):
    """Base class for pipeline failures reported to the client."""


class UploadDecodeError(ItemAdminError):
    """An uploaded file could not be read or decoded into item records."""

    def __init__(self, filename: Optional[str], reason: str) -> None:
        self.filename = filename
        self.reason = reason
        super().__init__(f"Could not decode {filename or '<unnamed file>'}: {reason}")


class InvalidItemError(ItemAdminError):
    """A record in the batch failed schema validation."""

    def __init__(self, index: int, item_id: object, errors: list[str]) -> None:
        self.index = index
        self.item_id = item_id
        self.errors = list(errors)
        super().__init__("Invalid item input")
