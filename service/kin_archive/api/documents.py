"""
Documents API.

Upload goes through the shared pipeline: classification never fails, any
other error in the pipeline is reported as a single "upload error".
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from slowapi import Limiter
from slowapi.util import get_remote_address

from kin_archive.agents.schemas import Document, UploadResponse
from kin_archive.api.links import navigation_response
from kin_archive.api.folders import find_folder_or_404
from kin_archive.config import get_settings
from kin_archive.dependencies import Services, get_services
from kin_archive.logging_config import service_logger as logger
from kin_archive.middleware.auth import get_host_bridge
from kin_archive.services.host_bridge import HostBridge

router = APIRouter(prefix="/documents", tags=["documents"])

UPLOAD_ERROR_DETAIL = "Ошибка загрузки"

# Rate limiter for uploads (each may cost an LLM call)
limiter = Limiter(key_func=get_remote_address)


def upload_rate_limit() -> str:
    return get_settings().upload_rate_limit


@router.post("", response_model=UploadResponse)
@limiter.limit(upload_rate_limit)
async def upload_document(
    request: Request,  # Required for rate limiter
    file: UploadFile = File(...),
    message: str = Form(""),
    folder: Optional[str] = Form(None),
    services: Services = Depends(get_services),
    bridge: HostBridge = Depends(get_host_bridge)
):
    """
    Upload one document.

    - folder: folder open in the Mini App; the document goes there as is
    - message: accompanying text, a folder command in it overrides AI
    """
    active_folder = find_folder_or_404(services, folder).id if folder else None

    try:
        content = await file.read()
        outcome = await services.uploads.upload(
            filename=file.filename or "",
            size_bytes=len(content),
            message_text=message,
            active_folder=active_folder,
            uploader=bridge.user_first_name
        )
    except Exception as e:
        logger.error(f"Upload of '{file.filename}' failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=UPLOAD_ERROR_DETAIL)

    return UploadResponse(
        document=outcome.document,
        classification=outcome.classification,
        navigation=navigation_response(outcome.navigation)
    )


@router.get("/{document_id}", response_model=Document)
async def get_document(
    document_id: str,
    services: Services = Depends(get_services)
):
    document = services.archive.get(document_id)
    if document is None:
        raise HTTPException(status_code=404, detail="Document not found")
    return document


@router.delete("")
async def clear_documents(services: Services = Depends(get_services)):
    """Clear the whole archive. There is no single-document delete."""
    removed = len(services.archive.documents)
    services.archive.clear()
    return {"removed": removed}
