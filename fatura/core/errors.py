"""
Error kinds and user-visible messages.

Only the boundary with external collaborators (record store, identity service,
image codec) raises; totals, layout and the preview scaler never do.
"""
from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    COLLABORATOR = "collaborator"
    MISSING_SNAPSHOT = "missing_snapshot"
    TRANSIENT = "transient"


class FaturaError(Exception):
    """An error with a closed kind and a message fit to show the user."""

    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message

    def __repr__(self) -> str:
        return f"FaturaError({self.kind.value!r}, {self.message!r})"

    @classmethod
    def validation(cls, message: str) -> "FaturaError":
        return cls(ErrorKind.VALIDATION, message)

    @classmethod
    def collaborator(cls, message: str) -> "FaturaError":
        return cls(ErrorKind.COLLABORATOR, message)

    @classmethod
    def missing_snapshot(cls, message: str) -> "FaturaError":
        return cls(ErrorKind.MISSING_SNAPSHOT, message)

    @classmethod
    def transient(cls, message: str) -> "FaturaError":
        return cls(ErrorKind.TRANSIENT, message)


class AppMessages:
    """Centralized user-visible messages."""

    SIGN_IN_TO_SAVE = "Sign in to save the invoice."
    INVOICE_SAVED = "Invoice saved."
    INVOICE_UPDATED = "Invoice updated."
    INVOICE_DELETED = "Invoice deleted."
    SAVE_FAILED = "The invoice was not saved."
    UPDATE_FAILED = "The invoice was not updated."
    LOAD_FAILED = "Could not load your data."
    NO_CURRENT_USER = "No current user: the session is not ready yet."
    NO_SNAPSHOT_EDIT = "This invoice has no full snapshot and cannot be edited. Recreate it as a new invoice."
    NO_SNAPSHOT_PRINT = "This invoice has no full snapshot and cannot be printed. Recreate it as a new invoice."
    IMAGE_UNREADABLE = "The image could not be read."
    SIGNED_IN = "Signed in."
    SIGNED_OUT = "Signed out."


def message_for(error: BaseException, fallback: str) -> str:
    """Text to show for an error; FaturaError messages pass through, anything else uses fallback."""
    if isinstance(error, FaturaError):
        return error.message or fallback
    text = str(error).strip()
    return text or fallback
