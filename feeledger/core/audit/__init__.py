from feeledger.core.audit.models import AuditLog
from feeledger.core.audit.service import AuditAction, AuditService

__all__ = ["AuditLog", "AuditAction", "AuditService"]
