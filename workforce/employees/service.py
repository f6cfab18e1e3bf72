"""Employee service layer — profile lookups and the two admin-only mutations.

``create_employee`` and ``deactivate_employee`` take the requesting user
explicitly and refuse anyone who is not an admin.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Iterable, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from workforce.auth.dependencies import CurrentUser, ensure_admin
from workforce.common.audit import create_audit_entry
from workforce.common.constants import AuditAction
from workforce.common.exceptions import ConflictError, NotFoundException
from workforce.common.pagination import PaginationParams, PaginationMeta, paginate
from workforce.employees.models import Employee
from workforce.employees.schemas import EmployeeCreate

logger = logging.getLogger(__name__)


class EmployeeService:
    """Async operations on employee profiles."""

    # ── Queries ─────────────────────────────────────────────────────

    @staticmethod
    async def list_employees(
        db: AsyncSession,
        pagination: PaginationParams,
        *,
        include_inactive: bool = False,
    ) -> tuple[Sequence[Employee], PaginationMeta]:
        query = select(Employee).order_by(Employee.full_name)
        if not include_inactive:
            query = query.where(Employee.is_active.is_(True))
        return await paginate(db, query, pagination, model=Employee)

    @staticmethod
    async def list_active(db: AsyncSession) -> Sequence[Employee]:
        """All active employees ordered by name (summary tables)."""
        result = await db.execute(
            select(Employee)
            .where(Employee.is_active.is_(True))
            .order_by(Employee.full_name),
        )
        return result.scalars().all()

    @staticmethod
    async def get_employee(db: AsyncSession, employee_id: uuid.UUID) -> Employee:
        employee = await db.get(Employee, employee_id)
        if employee is None:
            raise NotFoundException("Employee", str(employee_id))
        return employee

    @staticmethod
    async def resolve_emails(
        db: AsyncSession,
        emails: Iterable[str],
    ) -> dict[str, uuid.UUID]:
        """Map lower-cased emails to active employee ids.

        Emails without an active employee are simply absent from the result.
        """
        wanted = {email.strip().lower() for email in emails}
        if not wanted:
            return {}
        result = await db.execute(
            select(Employee.id, Employee.email).where(
                func.lower(Employee.email).in_(wanted),
                Employee.is_active.is_(True),
            ),
        )
        return {email.lower(): emp_id for emp_id, email in result.all()}

    # ── Admin-only mutations ────────────────────────────────────────

    @staticmethod
    async def create_employee(
        db: AsyncSession,
        requester: CurrentUser,
        data: EmployeeCreate,
        *,
        ip_address: Optional[str] = None,
    ) -> Employee:
        """Create an employee profile. Admins only."""
        ensure_admin(requester)

        existing = await db.execute(
            select(Employee.id).where(func.lower(Employee.email) == data.email.lower()),
        )
        if existing.first() is not None:
            raise ConflictError("email", data.email)

        employee = Employee(email=data.email, full_name=data.full_name, is_active=True)
        db.add(employee)
        await db.flush()

        await create_audit_entry(
            db,
            action=AuditAction.create,
            entity_type="employee",
            entity_id=employee.id,
            actor_id=requester.id,
            new_values=data.model_dump(mode="json"),
            ip_address=ip_address,
        )
        return employee

    @staticmethod
    async def deactivate_employee(
        db: AsyncSession,
        requester: CurrentUser,
        employee_id: uuid.UUID,
        reason: Optional[str] = None,
        *,
        ip_address: Optional[str] = None,
    ) -> Employee:
        """Soft-deactivate a profile; its history is kept. Admins only."""
        ensure_admin(requester)

        employee = await EmployeeService.get_employee(db, employee_id)
        old_values = {
            "is_active": employee.is_active,
            "deactivation_reason": employee.deactivation_reason,
        }

        employee.is_active = False
        employee.deactivated_at = datetime.now(timezone.utc)
        employee.deactivation_reason = reason or None
        await db.flush()

        await create_audit_entry(
            db,
            action=AuditAction.deactivate,
            entity_type="employee",
            entity_id=employee.id,
            actor_id=requester.id,
            old_values=old_values,
            new_values={"is_active": False, "deactivation_reason": employee.deactivation_reason},
            ip_address=ip_address,
        )
        logger.info("Employee %s deactivated by %s", employee.email, requester.id)
        return employee
