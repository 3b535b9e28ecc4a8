"""Audit log collaborator.

Receives one event per committed status transition.  Implementations
may fail; callers treat recording as fire-and-forget.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class AuditLog(ABC):

    @abstractmethod
    def record(self, event: dict) -> None:
        """Store a single audit event."""
