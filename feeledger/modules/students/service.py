"""Service for Students module."""

import logging

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from feeledger.core.audit.service import AuditAction, AuditService
from feeledger.core.auth.models import Actor
from feeledger.core.exceptions import DuplicateError, NotFoundError
from feeledger.modules.students.models import Student
from feeledger.modules.students.schemas import StudentCreate, StudentFilters

logger = logging.getLogger(__name__)


class StudentService:
    """Service for the student registry."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditService(db)

    async def create_student(self, data: StudentCreate, actor: Actor | None = None) -> Student:
        """Register a new student."""
        admission_number = data.admission_number.strip()
        existing = await self.db.execute(
            select(Student).where(Student.admission_number == admission_number)
        )
        if existing.scalar_one_or_none():
            raise DuplicateError("Student", "admission_number", admission_number)

        student = Student(
            admission_number=admission_number,
            full_name=data.full_name.strip(),
            academic_unit=data.academic_unit,
        )
        self.db.add(student)
        await self.db.flush()

        await self.audit.log(
            action=AuditAction.CREATE_STUDENT,
            entity_type="Student",
            entity_id=student.id,
            entity_identifier=admission_number,
            actor=actor,
            new_values={"full_name": student.full_name, "academic_unit": student.academic_unit},
        )

        await self.db.commit()
        await self.db.refresh(student)
        logger.info("Student %s registered (id=%s)", admission_number, student.id)
        return student

    async def get_student(self, student_id: int) -> Student:
        """Get student by ID."""
        result = await self.db.execute(select(Student).where(Student.id == student_id))
        student = result.scalar_one_or_none()
        if not student:
            raise NotFoundError("Student", student_id)
        return student

    async def list_students(self, filters: StudentFilters) -> tuple[list[Student], int]:
        """List students with search and pagination."""
        query = select(Student)

        if not filters.include_inactive:
            query = query.where(Student.is_active == True)  # noqa: E712
        if filters.academic_unit:
            query = query.where(Student.academic_unit == filters.academic_unit)
        if filters.search:
            pattern = f"%{filters.search.strip()}%"
            query = query.where(
                or_(
                    Student.full_name.ilike(pattern),
                    Student.admission_number.ilike(pattern),
                )
            )

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_query)).scalar() or 0

        query = query.order_by(Student.full_name)
        query = query.offset((filters.page - 1) * filters.limit).limit(filters.limit)
        result = await self.db.execute(query)
        return list(result.scalars().all()), total
