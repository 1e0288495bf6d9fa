"""Notification backends."""

from .backend import (
    EmailBackend,
    InMemoryEmailBackend,
    SMTPEmailBackend,
    build_email_backend,
)

__all__ = [
    "EmailBackend",
    "InMemoryEmailBackend",
    "SMTPEmailBackend",
    "build_email_backend",
]
