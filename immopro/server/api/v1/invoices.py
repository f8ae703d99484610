"""
Invoice Endpoints.

Fee invoices issued by the agency to its contacts.
"""

from __future__ import annotations

from datetime import datetime
from typing import List

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import Integer, cast, func
from sqlmodel import select

from immopro.core.database.entities.contacts import Contact
from immopro.core.database.entities.invoices import Invoice
from immopro.core.logging_config import get_logger
from immopro.core.models.domain.enums import InvoiceStatus
from immopro.core.models.io.contacts import ContactSummary
from immopro.core.models.io.invoices import InvoiceCreate, InvoiceRead, InvoiceUpdate
from immopro.server.services.activity import log_activity
from immopro.server.services.deps import AgencyMemberIds, CurrentUser, SessionDep

logger = get_logger(__name__)

router = APIRouter(tags=["invoices"])


async def next_invoice_ref(session, now: datetime) -> str:
    """Next reference of the day, ``FAC-YYYYMMDD-<n>`` with ``n`` starting at 1.

    ``n`` follows the highest suffix already issued that day, so references
    freed by a deleted invoice are never handed out again.
    """
    prefix = f"FAC-{now:%Y%m%d}-"
    suffix = cast(func.substr(Invoice.ref, len(prefix) + 1), Integer)
    stmt = select(func.max(suffix)).where(Invoice.ref.like(f"{prefix}%"))
    highest = (await session.execute(stmt)).scalar_one_or_none()
    return f"{prefix}{(highest or 0) + 1}"


def _to_read(invoice: Invoice, contact: Contact | None) -> InvoiceRead:
    read = InvoiceRead.model_validate(invoice)
    read.contact = ContactSummary.model_validate(contact) if contact is not None else None
    return read


@router.get(
    "",
    response_model=List[InvoiceRead],
    summary="List Invoices",
    description="List the invoices of the caller's agency, newest first, with the invoiced contact.",
)
async def list_invoices(agent_ids: AgencyMemberIds, session: SessionDep) -> List[InvoiceRead]:
    stmt = (
        select(Invoice, Contact)
        .join(Contact, Invoice.contact_id == Contact.id, isouter=True)
        .where(Invoice.agent_id.in_(agent_ids))
        .order_by(Invoice.created_at.desc(), Invoice.id.desc())
    )
    result = await session.execute(stmt)
    return [_to_read(invoice, contact) for invoice, contact in result.all()]


@router.post(
    "",
    response_model=InvoiceRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Invoice",
    description="Issue a PENDING invoice with a generated reference.",
    responses={404: {"description": "Contact not found"}},
)
async def create_invoice(
    payload: InvoiceCreate,
    user: CurrentUser,
    agent_ids: AgencyMemberIds,
    session: SessionDep,
) -> InvoiceRead:
    contact = None
    if payload.contact_id is not None:
        contact = await session.get(Contact, payload.contact_id)
        if contact is None or contact.agent_id not in agent_ids:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Contact {payload.contact_id} not found")

    invoice = Invoice(
        ref=await next_invoice_ref(session, datetime.utcnow()),
        amount=payload.amount,
        description=payload.description,
        status=InvoiceStatus.PENDING.value,
        agent_id=user.id,
        contact_id=payload.contact_id,
    )
    session.add(invoice)
    await session.flush()
    log_activity(
        session,
        user.id,
        "INVOICE_CREATED",
        f"Invoice {invoice.ref} issued for {invoice.amount:.2f} EUR",
        entity_type="invoice",
        entity_id=invoice.id,
    )
    await session.commit()
    await session.refresh(invoice)
    return _to_read(invoice, contact)


@router.patch(
    "/{invoice_id}",
    response_model=InvoiceRead,
    summary="Update Invoice Status",
    responses={404: {"description": "Invoice not found"}},
)
async def update_invoice_status(
    invoice_id: int,
    payload: InvoiceUpdate,
    agent_ids: AgencyMemberIds,
    session: SessionDep,
) -> InvoiceRead:
    invoice = await session.get(Invoice, invoice_id)
    if invoice is None or invoice.agent_id not in agent_ids:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Invoice {invoice_id} not found")

    invoice.status = payload.status.value
    session.add(invoice)
    await session.commit()
    await session.refresh(invoice)
    contact = await session.get(Contact, invoice.contact_id) if invoice.contact_id is not None else None
    return _to_read(invoice, contact)
