"""
Categorized document storage for student and employer profiles.

Files live under UPLOAD_DIR/<entity_type>/<entity_id>/<category-slug>/ with a
timestamp+random filename; the `documents` row carries the metadata. A file is
visible to admins and to the account that owns the profile, nobody else.
"""
import logging
import mimetypes
import zipfile
from collections import defaultdict
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from tempfile import SpooledTemporaryFile

from fastapi import UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import config
from ..database import commit
from ..models.document import ENTITY_TYPES, Document
from ..repositories import documents as document_repo
from ..utils.dependencies import Identity
from ..utils.error_handlers import (
    FileUploadError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
    get_error_message,
    handle_database_error,
)
from ..utils.validation import sanitize_filename, slugify, validate_choice, validate_string_field
from .storage import absolute_path, new_stored_filename, remove_stored_file, save_upload

logger = logging.getLogger(__name__)

DOCUMENT_CATEGORIES = {
    "student": (
        "ID",
        "Enrollment Agreement",
        "Apprenticeship Agreement",
        "Transcript",
        "Certificate",
        "Employment Verification",
        "RAPIDS",
        "Other",
    ),
    "employer": (
        "Employer Agreement",
        "Insurance",
        "W-9",
        "Wage Schedule",
        "Other",
    ),
}

# Spooled archives stay in memory up to this size, then move to a temp file.
_ARCHIVE_SPOOL_BYTES = 16 * 1024 * 1024


@dataclass
class DownloadableFile:
    document: Document
    path: Path


def _check_entity_type(entity_type: str) -> str:
    return validate_choice(entity_type, "entity type", ENTITY_TYPES)


def ensure_entity_access(db: Session, actor: Identity, entity_type: str, entity_id: int) -> None:
    """NotFound for an unknown profile, Forbidden unless admin or owner."""
    owner_user_id = document_repo.entity_owner_user_id(db, entity_type, entity_id)
    if owner_user_id is None:
        raise NotFoundError(get_error_message(f"{entity_type}_not_found"))
    if actor.is_admin:
        return
    if actor.role != entity_type or owner_user_id != actor.user_id:
        raise ForbiddenError()


def _load_document_for(db: Session, actor: Identity, document_id: int) -> Document:
    doc = document_repo.get_document(db, document_id)
    if doc is None:
        raise NotFoundError(get_error_message("document_not_found"))
    ensure_entity_access(db, actor, doc.entity_type, doc.entity_id)
    return doc


def list_documents(db: Session, actor: Identity, entity_type: str, entity_id: int) -> list[Document]:
    entity_type = _check_entity_type(entity_type)
    ensure_entity_access(db, actor, entity_type, entity_id)
    return document_repo.list_documents(db, entity_type, entity_id)


async def store_document(
    db: Session,
    actor: Identity,
    *,
    entity_type: str,
    entity_id: int,
    category: str,
    title: str,
    upload: UploadFile | None,
) -> Document:
    entity_type = _check_entity_type(entity_type)
    ensure_entity_access(db, actor, entity_type, entity_id)

    if category not in DOCUMENT_CATEGORIES[entity_type]:
        raise ValidationError(get_error_message("invalid_category"))
    title = validate_string_field(title, "Title", max_length=255)

    if upload is None or not upload.filename:
        raise FileUploadError(get_error_message("no_file"))

    original_filename = sanitize_filename(Path(upload.filename).name)
    ext = Path(original_filename).suffix
    stored_filename = new_stored_filename(ext)
    rel_path = PurePosixPath(entity_type, str(entity_id), slugify(category), stored_filename).as_posix()

    size = await save_upload(upload, rel_path, max_bytes=config.MAX_UPLOAD_BYTES)

    mime_type = (
        upload.content_type
        or mimetypes.guess_type(original_filename)[0]
        or "application/octet-stream"
    )

    try:
        doc = document_repo.add_document(
            db,
            entity_type=entity_type,
            entity_id=entity_id,
            category=category,
            title=title or Path(original_filename).stem,
            original_filename=original_filename,
            stored_rel_path=rel_path,
            mime_type=mime_type,
            size_bytes=size,
            uploaded_by_user_id=actor.user_id,
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        # No orphan files on disk for rows that never made it.
        remove_stored_file(rel_path)
        raise handle_database_error(e, "saving document")

    db.refresh(doc)
    logger.info(
        "User %s uploaded document %s (%s, %d bytes) to %s %s",
        actor.user_id, doc.id, category, size, entity_type, entity_id,
    )
    return doc


def get_document_for_download(db: Session, actor: Identity, document_id: int) -> DownloadableFile:
    """Forbidden for non-owners is checked before the disk is touched."""
    doc = _load_document_for(db, actor, document_id)

    path = absolute_path(doc.stored_rel_path)
    if not path.is_file():
        logger.error(f"Document {doc.id} file missing on server: {path}")
        raise NotFoundError(get_error_message("file_missing"))

    return DownloadableFile(document=doc, path=path)


def _archive_name(doc: Document, used: set[str]) -> str:
    folder = sanitize_filename(doc.category)
    name = f"{folder}/{doc.original_filename}"
    if name in used:
        name = f"{folder}/{doc.id}-{doc.original_filename}"
    used.add(name)
    return name


def build_entity_archive(db: Session, actor: Identity, entity_type: str, entity_id: int):
    """
    Zip every document of one profile, one folder per category.
    Files missing from disk are skipped. Returns a rewound file object.
    """
    docs = list_documents(db, actor, entity_type, entity_id)

    by_category: dict[str, list[Document]] = defaultdict(list)
    for doc in docs:
        by_category[doc.category].append(doc)

    spool = SpooledTemporaryFile(max_size=_ARCHIVE_SPOOL_BYTES)
    used: set[str] = set()
    skipped = 0
    with zipfile.ZipFile(spool, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for category in sorted(by_category):
            for doc in by_category[category]:
                path = absolute_path(doc.stored_rel_path)
                if not path.is_file():
                    skipped += 1
                    logger.warning(f"Skipping missing file for document {doc.id}: {path}")
                    continue
                zf.write(path, arcname=_archive_name(doc, used))

    spool.seek(0)
    logger.info(
        "User %s built archive for %s %s (%d files, %d skipped)",
        actor.user_id, entity_type, entity_id, len(docs) - skipped, skipped,
    )
    return spool


def archive_filename(entity_type: str, entity_id: int) -> str:
    return f"{entity_type}-{entity_id}-documents.zip"


def delete_document(db: Session, actor: Identity, document_id: int) -> tuple[str, int]:
    """
    Row first; the file is removed best-effort afterwards and never fails the
    delete. Returns the (entity_type, entity_id) the document belonged to.
    """
    doc = _load_document_for(db, actor, document_id)
    rel_path = doc.stored_rel_path
    owner = (doc.entity_type, doc.entity_id)

    db.delete(doc)
    commit(db, "deleting document")

    if not remove_stored_file(rel_path):
        logger.warning(f"Document {document_id} deleted but file {rel_path} was not removed")

    logger.info("User %s deleted document %s", actor.user_id, document_id)
    return owner
