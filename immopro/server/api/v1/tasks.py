"""
Task Endpoints.

Personal to-do items of an agent, optionally linked to a contact and a
property of the agency. Only the agent owning a task can see or change it.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from fastapi import APIRouter, HTTPException, status
from sqlmodel import select

from immopro.core.database import apply_changes, plain_values
from immopro.core.database.entities.contacts import Contact
from immopro.core.database.entities.properties import Property
from immopro.core.database.entities.tasks import Task
from immopro.core.logging_config import get_logger
from immopro.core.models.domain.enums import TaskStatus
from immopro.core.models.io.contacts import ContactSummary
from immopro.core.models.io.properties import PropertySummary
from immopro.core.models.io.tasks import TaskCreate, TaskDetail, TaskRead, TaskUpdate
from immopro.server.services.activity import log_activity
from immopro.server.services.deps import AgencyMemberIds, CurrentUser, SessionDep

logger = get_logger(__name__)

router = APIRouter(tags=["tasks"])


async def _get_own_task(session, task_id: int, agent_id: int) -> Task:
    task = await session.get(Task, task_id)
    if task is None or task.agent_id != agent_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Task {task_id} not found")
    return task


async def _check_links(session, contact_id: Optional[int], property_id: Optional[int], agent_ids: List[int]) -> None:
    if contact_id is not None:
        contact = await session.get(Contact, contact_id)
        if contact is None or contact.agent_id not in agent_ids:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Contact {contact_id} not found")
    if property_id is not None:
        prop = await session.get(Property, property_id)
        if prop is None or prop.agent_id not in agent_ids:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Property {property_id} not found")


@router.post(
    "",
    response_model=TaskRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Task",
    responses={404: {"description": "Linked contact or property not found"}},
)
async def create_task(
    payload: TaskCreate,
    user: CurrentUser,
    agent_ids: AgencyMemberIds,
    session: SessionDep,
) -> TaskRead:
    """
    Create a task for the caller. New tasks start PENDING.

    - **contact_id** / **property_id**: Optional links to records of the agency.
    """
    await _check_links(session, payload.contact_id, payload.property_id, agent_ids)
    task = Task(**plain_values(payload.model_dump()), status=TaskStatus.PENDING.value, agent_id=user.id)
    session.add(task)
    await session.flush()
    log_activity(session, user.id, "TASK_CREATED", f"New task: {task.title}", entity_type="task", entity_id=task.id)
    await session.commit()
    await session.refresh(task)
    return TaskRead.model_validate(task)


@router.get(
    "",
    response_model=List[TaskDetail],
    summary="List Tasks",
    description="List the caller's tasks by due date, tasks without due date last.",
    response_description="Tasks with the summaries of their linked contact and property.",
)
async def list_tasks(user: CurrentUser, session: SessionDep) -> List[TaskDetail]:
    stmt = select(Task).where(Task.agent_id == user.id).order_by(Task.due_date.is_(None), Task.due_date, Task.id)
    tasks = list((await session.execute(stmt)).scalars().all())

    contact_ids = {task.contact_id for task in tasks if task.contact_id is not None}
    property_ids = {task.property_id for task in tasks if task.property_id is not None}
    contacts: Dict[int, Contact] = {}
    properties: Dict[int, Property] = {}
    if contact_ids:
        result = await session.execute(select(Contact).where(Contact.id.in_(contact_ids)))
        contacts = {contact.id: contact for contact in result.scalars().all()}
    if property_ids:
        result = await session.execute(select(Property).where(Property.id.in_(property_ids)))
        properties = {prop.id: prop for prop in result.scalars().all()}

    details = []
    for task in tasks:
        contact = contacts.get(task.contact_id)
        prop = properties.get(task.property_id)
        details.append(
            TaskDetail(
                **TaskRead.model_validate(task).model_dump(),
                contact=ContactSummary.model_validate(contact) if contact else None,
                property=PropertySummary.model_validate(prop) if prop else None,
            )
        )
    return details


@router.put(
    "/{task_id}",
    response_model=TaskRead,
    summary="Update Task",
    description="Update the provided fields of one of the caller's tasks.",
    responses={404: {"description": "Task not found"}},
)
async def update_task(task_id: int, payload: TaskUpdate, user: CurrentUser, session: SessionDep) -> TaskRead:
    task = await _get_own_task(session, task_id, user.id)
    changes = payload.model_dump(exclude_unset=True)
    apply_changes(task, changes)
    if changes.get("status") == TaskStatus.DONE:
        log_activity(
            session, user.id, "TASK_COMPLETED", f"Task completed: {task.title}", entity_type="task", entity_id=task.id
        )
    session.add(task)
    await session.commit()
    await session.refresh(task)
    return TaskRead.model_validate(task)


@router.delete(
    "/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Task",
    responses={404: {"description": "Task not found"}},
)
async def delete_task(task_id: int, user: CurrentUser, session: SessionDep) -> None:
    task = await _get_own_task(session, task_id, user.id)
    await session.delete(task)
    await session.commit()
