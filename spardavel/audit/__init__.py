"""Audit logging package."""

from spardavel.audit.logger import AuditLogger

__all__ = ["AuditLogger"]
