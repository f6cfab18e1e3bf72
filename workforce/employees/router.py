"""Employees router — active profile list plus admin-only create/deactivate."""

import uuid

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from workforce.auth.dependencies import CurrentUser, get_current_user, require_role
from workforce.common.constants import UserRole
from workforce.common.pagination import PaginatedResponse, PaginationParams
from workforce.database import get_db
from workforce.employees.schemas import DeactivateRequest, EmployeeCreate, EmployeeResponse
from workforce.employees.service import EmployeeService

router = APIRouter(prefix="", tags=["employees"])


@router.get("", response_model=PaginatedResponse[EmployeeResponse])
async def list_employees(
    pagination: PaginationParams = Depends(),
    include_inactive: bool = Query(False),
    user: CurrentUser = Depends(require_role(UserRole.manager)),
    db: AsyncSession = Depends(get_db),
):
    """List employee profiles (active only unless asked otherwise)."""
    rows, meta = await EmployeeService.list_employees(
        db, pagination, include_inactive=include_inactive,
    )
    return PaginatedResponse(
        data=[EmployeeResponse.model_validate(r) for r in rows], meta=meta,
    )


@router.post("", response_model=EmployeeResponse, status_code=201)
async def create_employee(
    body: EmployeeCreate,
    request: Request,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create an employee profile. The service enforces the admin check."""
    ip = request.client.host if request.client else None
    employee = await EmployeeService.create_employee(db, user, body, ip_address=ip)
    return EmployeeResponse.model_validate(employee)


@router.post("/{employee_id}/deactivate", response_model=EmployeeResponse)
async def deactivate_employee(
    employee_id: uuid.UUID,
    body: DeactivateRequest,
    request: Request,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Soft-deactivate an employee. Admins only."""
    ip = request.client.host if request.client else None
    employee = await EmployeeService.deactivate_employee(
        db, user, employee_id, body.reason, ip_address=ip,
    )
    return EmployeeResponse.model_validate(employee)
