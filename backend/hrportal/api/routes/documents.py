from typing import Any, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from hrportal.api.deps import get_current_principal, get_db, require_roles
from hrportal.core.config import settings
from hrportal.schemas.common import MessageResponse
from hrportal.schemas.document import DocumentListResponse, DocumentOut
from hrportal.services import document_service
from hrportal.services.access import HR_ROLES, Principal

router = APIRouter()


@router.get("", response_model=DocumentListResponse)
async def list_documents(
    employee_id: Optional[int] = Query(None, alias="employeeId"),
    doc_type: Optional[str] = Query(None, alias="type"),
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
) -> Any:
    documents = await document_service.list_documents(db, principal, employee_id, doc_type)
    return DocumentListResponse(documents=[DocumentOut.model_validate(d) for d in documents])


@router.post("", response_model=DocumentOut, status_code=status.HTTP_201_CREATED)
async def upload_document(
    file: UploadFile = File(...),
    employee_id: int = Form(..., alias="employeeId"),
    doc_type: str = Form(..., alias="type"),
    name: str = Form(...),
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """
    Upload a file for an employee (multipart form).

    Accepts pdf, images and Word documents up to the configured size.
    """
    content = await file.read(settings.DOCUMENT_MAX_BYTES + 1)
    document = await document_service.upload_document(
        db,
        principal,
        employee_id=employee_id,
        doc_type=doc_type,
        name=name,
        filename=file.filename or "upload",
        content_type=file.content_type,
        content=content,
    )
    return DocumentOut.model_validate(document)


@router.get("/{document_id}", response_model=DocumentOut)
async def get_document(
    document_id: int,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
) -> Any:
    document = await document_service.get_document(db, principal, document_id)
    return DocumentOut.model_validate(document)


@router.delete("/{document_id}", response_model=MessageResponse)
async def delete_document(
    document_id: int,
    principal: Principal = Depends(require_roles(*HR_ROLES)),
    db: AsyncSession = Depends(get_db),
) -> Any:
    await document_service.delete_document(db, principal, document_id)
    return {"message": "Document deleted successfully"}
