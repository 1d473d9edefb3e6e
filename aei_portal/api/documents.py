import logging

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import FileResponse, StreamingResponse
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.document import ENTITY_TYPES
from ..services import document_vault
from ..utils.dependencies import Identity, get_current_user
from ..utils.error_handlers import EXPECTED_ERRORS, redirect_with

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/documents", tags=["Documents"])

ARCHIVE_CHUNK_SIZE = 64 * 1024


def _entity_page(user: Identity, entity_type: str | None = None, entity_id: int | None = None) -> str:
    """Where the user manages this profile's documents."""
    if user.is_admin:
        if entity_type in ENTITY_TYPES and entity_id is not None:
            return f"/admin/{entity_type}s/{entity_id}"
        return "/admin"
    return f"/{user.role}"


def _iter_and_close(fileobj):
    try:
        while chunk := fileobj.read(ARCHIVE_CHUNK_SIZE):
            yield chunk
    finally:
        fileobj.close()


@router.post("/{entity_type}/{entity_id}/upload")
async def upload_document(
    entity_type: str,
    entity_id: int,
    category: str = Form(""),
    title: str = Form(""),
    file: UploadFile | None = File(None),
    user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    back = _entity_page(user, entity_type, entity_id)
    try:
        doc = await document_vault.store_document(
            db,
            user,
            entity_type=entity_type,
            entity_id=entity_id,
            category=category,
            title=title,
            upload=file,
        )
    except EXPECTED_ERRORS as e:
        return redirect_with(back, error=e.message)
    return redirect_with(back, message=f"Uploaded {doc.original_filename}.")


@router.get("/{entity_type}/{entity_id}/archive")
def download_archive(
    entity_type: str,
    entity_id: int,
    user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    archive = document_vault.build_entity_archive(db, user, entity_type, entity_id)
    filename = document_vault.archive_filename(entity_type, entity_id)
    return StreamingResponse(
        _iter_and_close(archive),
        media_type="application/zip",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/{document_id}/download")
def download_document(
    document_id: int,
    user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    found = document_vault.get_document_for_download(db, user, document_id)
    return FileResponse(
        path=str(found.path),
        media_type=found.document.mime_type,
        filename=found.document.original_filename,
    )


@router.post("/{document_id}/delete")
def delete_document(
    document_id: int,
    user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        entity_type, entity_id = document_vault.delete_document(db, user, document_id)
    except EXPECTED_ERRORS as e:
        return redirect_with(_entity_page(user), error=e.message)
    return redirect_with(_entity_page(user, entity_type, entity_id), message="Document deleted.")
