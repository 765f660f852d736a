"""Service for Fee Structures module."""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from feeledger.core.audit.service import AuditAction, AuditService
from feeledger.core.auth.models import Actor
from feeledger.core.exceptions import ConflictError, NotFoundError, ValidationError
from feeledger.shared.utils.money import round_money
from feeledger.modules.fee_structures.models import FeeComponent, FeeStructure
from feeledger.modules.fee_structures.schemas import (
    FeeComponentInput,
    FeeStructureCreate,
    FeeStructureFilters,
    FeeStructureUpdate,
)
from feeledger.modules.fees.models import StudentFee

logger = logging.getLogger(__name__)


def validate_components(components: list[FeeComponentInput]) -> None:
    """Business rules for a component set. Raises ValidationError."""
    if not components:
        raise ValidationError("At least one fee component is required", field="components")

    for index, component in enumerate(components, start=1):
        if not component.name or not component.name.strip():
            raise ValidationError(
                f"Fee component {index}: Name is required", field=f"components.{index - 1}.name"
            )
        if component.amount < 0:
            raise ValidationError(
                f"Fee component {index}: Valid amount is required",
                field=f"components.{index - 1}.amount",
            )
        if component.late_fee_applicable and not (
            component.late_fee_amount or component.late_fee_percentage
        ):
            raise ValidationError(
                f"Fee component {index}: Late fee amount or percentage is required "
                "when late fee is applicable",
                field=f"components.{index - 1}.late_fee_amount",
            )


def _build_components(components: list[FeeComponentInput]) -> list[FeeComponent]:
    return [
        FeeComponent(
            name=c.name.strip(),
            fee_type=c.fee_type.value,
            description=c.description,
            amount=round_money(c.amount),
            frequency=c.frequency.value,
            is_mandatory=c.is_mandatory,
            due_date=c.due_date,
            late_fee_applicable=c.late_fee_applicable,
            late_fee_amount=round_money(c.late_fee_amount) if c.late_fee_amount is not None else None,
            late_fee_percentage=c.late_fee_percentage,
            display_order=index,
        )
        for index, c in enumerate(components)
    ]


class FeeStructureService:
    """Service for authoring fee structures."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditService(db)

    async def create_structure(self, data: FeeStructureCreate, actor: Actor | None = None) -> FeeStructure:
        """Create a fee structure with its components."""
        if not data.name or not data.name.strip():
            raise ValidationError("Fee structure name is required", field="name")
        if not data.academic_year or not data.academic_year.strip():
            raise ValidationError("Academic year is required", field="academic_year")
        validate_components(data.components)

        structure = FeeStructure(
            name=data.name.strip(),
            description=data.description,
            academic_year=data.academic_year.strip(),
            academic_unit=data.academic_unit or None,
            created_by=actor.id if actor else None,
        )
        structure.components = _build_components(data.components)
        self.db.add(structure)
        await self.db.flush()

        await self.audit.log(
            action=AuditAction.CREATE_STRUCTURE,
            entity_type="FeeStructure",
            entity_id=structure.id,
            entity_identifier=structure.name,
            actor=actor,
            new_values={
                "academic_year": structure.academic_year,
                "academic_unit": structure.academic_unit,
                "total_amount": str(structure.total_amount),
                "components": len(structure.components),
            },
        )

        await self.db.commit()
        logger.info(
            "Fee structure %r created for %s (total %s)",
            structure.name,
            structure.academic_year,
            structure.total_amount,
        )
        return await self.get_structure(structure.id)

    async def get_structure(self, structure_id: int, for_update: bool = False) -> FeeStructure:
        """Get fee structure by ID with components loaded."""
        query = (
            select(FeeStructure)
            .where(FeeStructure.id == structure_id)
            .options(selectinload(FeeStructure.components))
        )
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await self.db.execute(query)
        structure = result.scalar_one_or_none()
        if not structure:
            raise NotFoundError("Fee structure", structure_id)
        return structure

    async def count_assigned(self, structure_id: int) -> int:
        """Number of student fee accounts referencing the structure."""
        result = await self.db.execute(
            select(func.count(StudentFee.id)).where(StudentFee.fee_structure_id == structure_id)
        )
        return result.scalar() or 0

    async def assigned_counts(self, structure_ids: list[int]) -> dict[int, int]:
        """Assigned account counts for many structures in one query."""
        if not structure_ids:
            return {}
        result = await self.db.execute(
            select(StudentFee.fee_structure_id, func.count(StudentFee.id))
            .where(StudentFee.fee_structure_id.in_(structure_ids))
            .group_by(StudentFee.fee_structure_id)
        )
        return {structure_id: count for structure_id, count in result.all()}

    async def list_structures(
        self, filters: FeeStructureFilters
    ) -> tuple[list[FeeStructure], int]:
        """List fee structures with filters."""
        query = select(FeeStructure).options(selectinload(FeeStructure.components))

        if not filters.include_inactive:
            query = query.where(FeeStructure.is_active == True)  # noqa: E712
        if filters.academic_year:
            query = query.where(FeeStructure.academic_year == filters.academic_year)
        if filters.academic_unit:
            # A structure without a unit applies to every unit
            query = query.where(
                (FeeStructure.academic_unit == filters.academic_unit)
                | (FeeStructure.academic_unit.is_(None))
            )

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_query)).scalar() or 0

        query = query.order_by(FeeStructure.academic_year.desc(), FeeStructure.name)
        query = query.offset((filters.page - 1) * filters.limit).limit(filters.limit)
        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    async def assert_lockable(self, structure: FeeStructure) -> None:
        """
        Reject edits to a structure that students are assigned to.

        The lock flag is set with the first assignment; the count check also
        covers rows created before the flag existed.
        """
        if structure.is_locked or await self.count_assigned(structure.id) > 0:
            raise ConflictError(
                "Cannot modify locked fee structure. Students are already assigned."
            )

    async def lock_structure(self, structure: FeeStructure, actor: Actor | None = None) -> None:
        """Lock the structure inside the caller's transaction (no commit)."""
        if structure.is_locked:
            return
        structure.is_locked = True
        await self.db.flush()
        await self.audit.log(
            action=AuditAction.LOCK_STRUCTURE,
            entity_type="FeeStructure",
            entity_id=structure.id,
            entity_identifier=structure.name,
            actor=actor,
            new_values={"is_locked": True},
        )
        logger.info("Fee structure %s locked after first assignment", structure.id)

    async def update_structure(
        self, structure_id: int, data: FeeStructureUpdate, actor: Actor | None = None
    ) -> FeeStructure:
        """Update an unlocked fee structure."""
        structure = await self.get_structure(structure_id, for_update=True)
        await self.assert_lockable(structure)

        old_values = {}
        new_values = {}

        if data.name is not None:
            if not data.name.strip():
                raise ValidationError("Fee structure name is required", field="name")
            old_values["name"] = structure.name
            structure.name = data.name.strip()
            new_values["name"] = structure.name

        if data.description is not None:
            structure.description = data.description

        if "academic_unit" in data.model_fields_set:
            old_values["academic_unit"] = structure.academic_unit
            structure.academic_unit = data.academic_unit or None
            new_values["academic_unit"] = structure.academic_unit

        if data.is_active is not None:
            old_values["is_active"] = structure.is_active
            structure.is_active = data.is_active
            new_values["is_active"] = data.is_active

        if data.components is not None:
            validate_components(data.components)
            old_values["total_amount"] = str(structure.total_amount)
            structure.components = _build_components(data.components)
            new_values["total_amount"] = str(structure.total_amount)

        await self.db.flush()
        await self.audit.log(
            action=AuditAction.UPDATE_STRUCTURE,
            entity_type="FeeStructure",
            entity_id=structure.id,
            entity_identifier=structure.name,
            actor=actor,
            old_values=old_values,
            new_values=new_values,
        )

        await self.db.commit()
        return await self.get_structure(structure_id)

    async def archive_structure(self, structure_id: int, actor: Actor | None = None) -> FeeStructure:
        """Soft-archive a structure. Allowed on locked structures."""
        structure = await self.get_structure(structure_id, for_update=True)
        if structure.is_active:
            structure.is_active = False
            await self.audit.log(
                action=AuditAction.ARCHIVE_STRUCTURE,
                entity_type="FeeStructure",
                entity_id=structure.id,
                entity_identifier=structure.name,
                actor=actor,
                old_values={"is_active": True},
                new_values={"is_active": False},
            )
            await self.db.commit()
            logger.info("Fee structure %s archived", structure_id)
        return await self.get_structure(structure_id)

    async def delete_structure(self, structure_id: int, actor: Actor | None = None) -> None:
        """Physically delete a structure nobody is assigned to."""
        structure = await self.get_structure(structure_id, for_update=True)
        if structure.is_locked or await self.count_assigned(structure_id) > 0:
            raise ConflictError(
                "Cannot delete fee structure with assigned students. Deactivate it instead."
            )

        await self.audit.log(
            action=AuditAction.DELETE_STRUCTURE,
            entity_type="FeeStructure",
            entity_id=structure.id,
            entity_identifier=structure.name,
            actor=actor,
            old_values={"name": structure.name, "total_amount": str(structure.total_amount)},
        )
        await self.db.delete(structure)
        await self.db.commit()
        logger.info("Fee structure %s deleted", structure_id)
