from enum import StrEnum
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from feeledger.core.audit.models import AuditLog
from feeledger.core.auth.models import Actor


class AuditAction(StrEnum):
    """Finance audit actions."""

    CREATE_STRUCTURE = "fee_structure.create"
    UPDATE_STRUCTURE = "fee_structure.update"
    LOCK_STRUCTURE = "fee_structure.lock"
    ARCHIVE_STRUCTURE = "fee_structure.archive"
    DELETE_STRUCTURE = "fee_structure.delete"
    ASSIGN_FEE = "student_fee.assign"
    APPLY_REDUCTIONS = "student_fee.reductions"
    COLLECT_PAYMENT = "payment.collect"
    CREATE_STUDENT = "student.create"


class AuditService:
    """Service for creating audit logs."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def log(
        self,
        action: str | AuditAction,
        entity_type: str,
        entity_id: int,
        actor: Actor | None = None,
        entity_identifier: str | None = None,
        old_values: dict[str, Any] | None = None,
        new_values: dict[str, Any] | None = None,
        comment: str | None = None,
    ) -> AuditLog:
        """Create an audit log entry in the current transaction."""
        audit_log = AuditLog(
            actor_id=actor.id if actor else None,
            actor_name=actor.display_name if actor else None,
            actor_role=actor.role if actor else None,
            action=str(action),
            entity_type=entity_type,
            entity_id=entity_id,
            entity_identifier=entity_identifier,
            old_values=old_values,
            new_values=new_values,
            comment=comment,
        )

        self.db.add(audit_log)
        await self.db.flush()

        return audit_log

    async def list_for_entity(self, entity_type: str, entity_id: int) -> list[AuditLog]:
        """Audit trail of a single entity, oldest first."""
        result = await self.db.execute(
            select(AuditLog)
            .where(AuditLog.entity_type == entity_type, AuditLog.entity_id == entity_id)
            .order_by(AuditLog.id)
        )
        return list(result.scalars().all())
