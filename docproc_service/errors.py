"""Error taxonomy for the document processing service.

Every error carries the HTTP status it maps to so the API layer can render
all of them through a single exception handler.
"""

from __future__ import annotations


class DocprocError(Exception):
    """Base class for all service errors."""

    status_code: int = 500


class ValidationError(DocprocError):
    """Missing or invalid request input."""

    status_code = 400


class UploadTooLargeError(ValidationError):
    status_code = 413


class ArchiveTooLargeError(ValidationError):
    """Archive declares more entries or uncompressed bytes than allowed."""

    status_code = 413


class CorruptDocumentError(DocprocError):
    """Malformed PDF, Word or archive input."""

    status_code = 422


class ExtractionFailedError(DocprocError):
    """OCR or parse engine failure."""

    status_code = 422


class NotFoundError(DocprocError):
    status_code = 404


class UpstreamError(DocprocError):
    """A collaborator API answered with a non-success response."""

    status_code = 502


class ConfigurationError(DocprocError):
    status_code = 500
