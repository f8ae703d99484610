"""
Team Management Endpoints.

Agency owners create employee accounts, list them, remove them and reset
their passwords. Generated passwords are only ever sent by email.
"""

from __future__ import annotations

from typing import Dict, List

from fastapi import APIRouter, Depends, HTTPException, status

from immopro.core.database.entities.users import User
from immopro.core.database.repositories.users import UserRepository
from immopro.core.logging_config import get_logger
from immopro.core.models.domain.enums import UserRole
from immopro.core.models.io.auth import UserRead
from immopro.core.models.io.employees import EmployeeCreate, EmployeeCreated
from immopro.server.core.security import generate_strong_password, hash_password, is_valid_email
from immopro.server.services import email_service, email_templates
from immopro.server.services.account import delete_user_data
from immopro.server.services.deps import OwnerUser, SessionDep
from immopro.server.services.plan_limits import check_employee_limit

logger = get_logger(__name__)

router = APIRouter(tags=["employees"])


async def _get_employee(session, owner: User, employee_id: int) -> User:
    employee = await UserRepository(session).get_by_id(employee_id)
    if employee is None or employee.owner_id != owner.id or employee.role != UserRole.EMPLOYEE.value:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Employee {employee_id} not found")
    return employee


@router.post(
    "",
    response_model=EmployeeCreated,
    status_code=status.HTTP_201_CREATED,
    summary="Create Employee",
    description="Create an employee account in the caller's agency and email its credentials.",
    dependencies=[Depends(check_employee_limit)],
    responses={
        400: {"description": "Invalid email or email already used"},
        403: {"description": "Not an agency owner, or employee limit reached"},
    },
)
async def create_employee(payload: EmployeeCreate, owner: OwnerUser, session: SessionDep) -> EmployeeCreated:
    """
    Create an employee.

    A strong password is generated and sent to the employee. A failed email
    does not cancel the creation.
    """
    email = payload.email.strip().lower()
    if not is_valid_email(email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid email format")

    users = UserRepository(session)
    if await users.get_by_email(email) is not None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="This email is already used")

    password = generate_strong_password()
    employee = await users.create(
        User(
            email=email,
            first_name=payload.first_name.strip(),
            last_name=payload.last_name.strip(),
            role=UserRole.EMPLOYEE.value,
            owner_id=owner.id,
            hashed_password=hash_password(password),
        )
    )
    logger.info(f"Employee {employee.id} created by owner {owner.id}")

    subject, html = email_templates.employee_welcome_email(employee.first_name, owner.full_name, email, password)
    result = await email_service.send_email(email, subject, html)
    if not result.success:
        logger.warning(f"Welcome email to employee {employee.id} not delivered: {result.error}")

    return EmployeeCreated(message="Employee created", employee=UserRead.model_validate(employee))


@router.get(
    "",
    response_model=List[UserRead],
    summary="List Employees",
    description="Employees attached to the caller, by name.",
)
async def list_employees(owner: OwnerUser, session: SessionDep) -> List[UserRead]:
    members = await UserRepository(session).list_agency_members(owner.id)
    return [UserRead.model_validate(member) for member in members if member.role == UserRole.EMPLOYEE.value]


@router.delete(
    "/{employee_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Employee",
    description="Delete an employee of the caller together with the data they own.",
    responses={404: {"description": "Employee not found"}},
)
async def delete_employee(employee_id: int, owner: OwnerUser, session: SessionDep) -> None:
    employee = await _get_employee(session, owner, employee_id)
    await delete_user_data(session, employee)
    logger.info(f"Employee {employee_id} deleted by owner {owner.id}")


@router.post(
    "/{employee_id}/reset-password",
    summary="Reset Employee Password",
    description="Generate a new password for an employee and email it to them.",
    responses={
        404: {"description": "Employee not found"},
        502: {"description": "The new password could not be emailed"},
    },
)
async def reset_employee_password(employee_id: int, owner: OwnerUser, session: SessionDep) -> Dict[str, str]:
    employee = await _get_employee(session, owner, employee_id)
    password = generate_strong_password()
    employee.hashed_password = hash_password(password)
    employee = await UserRepository(session).update(employee)

    subject, html = email_templates.password_reset_email(employee.first_name, password)
    result = await email_service.send_email(employee.email, subject, html)
    if not result.success:
        logger.error(f"Password reset email to employee {employee_id} failed: {result.error}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Password was reset but the email could not be sent",
        )
    logger.info(f"Password of employee {employee_id} reset by owner {owner.id}")
    return {"message": f"A new password was sent to {employee.email}"}
