import base64
import logging
import time
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from hrportal.core.config import settings
from hrportal.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from hrportal.models.document import Document
from hrportal.models.employee import Employee
from hrportal.services.access import DOCUMENT_READ_ROLES, Principal, missing, scoped_documents, scoped_employees

logger = logging.getLogger("hrportal.documents")


async def list_documents(
    db: AsyncSession,
    principal: Principal,
    employee_id: Optional[int] = None,
    doc_type: Optional[str] = None,
) -> list[Document]:
    stmt = scoped_documents(principal)
    if employee_id is not None and principal.has_role(DOCUMENT_READ_ROLES):
        stmt = stmt.where(Document.employee_id == employee_id)
    if doc_type:
        stmt = stmt.where(Document.type == doc_type)
    result = await db.execute(stmt.order_by(Document.uploaded_at.desc(), Document.id.desc()))
    return list(result.scalars().all())


async def upload_document(
    db: AsyncSession,
    principal: Principal,
    employee_id: int,
    doc_type: str,
    name: str,
    filename: str,
    content_type: Optional[str],
    content: bytes,
) -> Document:
    """
    Store an uploaded file against an employee.

    Privileged roles may upload for anyone in their company; everyone else
    only for themselves. The bytes are kept inline as a data URL.
    """
    if not principal.has_role(DOCUMENT_READ_ROLES) and employee_id != principal.employee_id:
        raise AuthorizationError()

    employee = (await db.execute(
        scoped_employees(principal).where(Employee.id == employee_id)
    )).scalar_one_or_none()
    if employee is None:
        raise NotFoundError("Employee not found")

    if len(content) > settings.DOCUMENT_MAX_BYTES:
        limit_mb = settings.DOCUMENT_MAX_BYTES // (1024 * 1024)
        raise ValidationError(f"File size must be less than {limit_mb}MB")
    if content_type not in settings.DOCUMENT_ALLOWED_TYPES:
        raise ValidationError("Invalid file type")

    encoded = base64.b64encode(content).decode("ascii")
    document = Document(
        name=name,
        type=doc_type,
        key=f"{employee_id}-{int(time.time() * 1000)}-{filename}",
        url=f"data:{content_type};base64,{encoded}",
        employee=employee,
    )
    db.add(document)
    await db.commit()
    await db.refresh(document)

    logger.info(
        f"Document {document.id} ({content_type}, {len(content)} bytes) uploaded "
        f"for employee {employee.employee_id} by user {principal.id}"
    )
    return document


async def get_document(db: AsyncSession, principal: Principal, document_id: int) -> Document:
    result = await db.execute(scoped_documents(principal).where(Document.id == document_id))
    document = result.scalar_one_or_none()
    if document is None:
        raise missing(principal, DOCUMENT_READ_ROLES, "Document")
    return document


async def delete_document(db: AsyncSession, principal: Principal, document_id: int) -> None:
    result = await db.execute(
        scoped_documents(principal).where(Document.id == document_id).with_for_update(of=Document)
    )
    document = result.scalar_one_or_none()
    if document is None:
        raise missing(principal, DOCUMENT_READ_ROLES, "Document")

    await db.delete(document)
    await db.commit()
    logger.info(f"Document {document_id} deleted by user {principal.id}")
