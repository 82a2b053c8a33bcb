"""
Typed failures surfaced by the file services.

Each error carries the HTTP-ish ``status_code`` and ``detail`` an API layer
would translate it into.
"""

from __future__ import annotations


class OrgFilesError(Exception):
    """Base class for all org-files failures."""

    status_code: int = 500

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class UnauthenticatedError(OrgFilesError):
    """No actor could be resolved for the call."""

    status_code = 401

    def __init__(self, detail: str = "Authentication required"):
        super().__init__(detail)


class ForbiddenError(OrgFilesError):
    """The actor is known but lacks organization, file, or role access."""

    status_code = 403


class NotFoundError(OrgFilesError):
    """The referenced file does not exist."""

    status_code = 404


class BlobUnavailableError(OrgFilesError):
    """The storage gateway could not resolve or delete a blob."""

    status_code = 502

    def __init__(self, storage_ref: str, detail: str | None = None):
        super().__init__(detail or f"Blob unavailable: {storage_ref}")
        self.storage_ref = storage_ref
