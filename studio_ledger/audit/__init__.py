"""Audit logging package."""

from studio_ledger.audit.logger import AuditLogger, set_log_level

__all__ = ["AuditLogger", "set_log_level"]
