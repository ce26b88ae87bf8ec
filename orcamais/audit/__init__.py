"""Audit logging package."""

from orcamais.audit.logger import AuditLogger, configure_logging

__all__ = ["AuditLogger", "configure_logging"]
