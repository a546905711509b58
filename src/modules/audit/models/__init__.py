from .audit_log import AuditLog, AuditAction

__all__ = ['AuditLog', 'AuditAction']
