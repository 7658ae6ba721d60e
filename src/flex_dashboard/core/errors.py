# src/flex_dashboard/core/errors.py

from __future__ import annotations


class DashboardError(Exception):
    """Base class for failures the action layer knows how to report."""


class InitializationError(DashboardError):
    """Identity provider or state store unreachable at startup (fatal for the session)."""


class WriteFailure(DashboardError):
    """A store write (add/update/delete) was rejected. Not retried."""


class ValidationError(DashboardError):
    """Input rejected before any write was attempted."""


class StoreError(Exception):
    """Raised by state store adapters for backend-level failures."""


class DocumentNotFound(StoreError):
    def __init__(self, path: str) -> None:
        super().__init__(f"document not found: {path}")
        self.path = path
