"""
Document Service

Metadata for files uploaded against a prenup. The file bytes live on the local
filesystem at ``Document.path``; the store only keeps the metadata record.
Document metadata is never versioned.
"""

import logging
import random
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..core import VersionedEntityStore
from ..exceptions import AccessDeniedError, EntityNotFoundError, ValidationError
from ..models import Document, DocumentCreate, DocumentType, EntityType
from .prenups import PrenupService

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = frozenset({'.pdf', '.doc', '.docx', '.jpg', '.jpeg', '.png', '.gif'})

ALLOWED_MIME_TYPES = frozenset({
    'application/pdf',
    'application/msword',
    'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
    'image/jpeg',
    'image/jpg',
    'image/png',
    'image/gif',
})

MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB


class DocumentService:

    def __init__(self, store: VersionedEntityStore, prenup_service: PrenupService):
        self.store = store
        self.prenup_service = prenup_service

    # =========================================================================
    # CRUD
    # =========================================================================

    def create_document(self, data: DocumentCreate) -> Document:
        """
        Record an uploaded file.

        Raises:
            AccessDeniedError: The uploader is not a party to the prenup
        """
        self.prenup_service.require_access(data.prenup_id, data.uploaded_by)

        document = self.store.create(Document(**data.model_dump()))
        logger.info(f"Document created: {document.filename} for prenup {data.prenup_id}")
        return document

    def get_document(self, document_id: str) -> Optional[Document]:
        return self.store.get_by_id(EntityType.DOCUMENT, document_id)

    def list_documents(self, prenup_id: str) -> List[Document]:
        """Documents attached to a prenup, newest first."""
        documents = self.store.scan_all_by_entity_type(EntityType.DOCUMENT, filters={'prenup_id': prenup_id})
        return sorted(documents, key=lambda document: document.created_at, reverse=True)

    def list_documents_by_type(self, prenup_id: str, document_type: DocumentType) -> List[Document]:
        return [document for document in self.list_documents(prenup_id) if document.type == document_type]

    def update_document(self, document_id: str, updates: Dict[str, Any]) -> Document:
        """Patch document metadata in place (no archived version)."""
        return self.store.update(EntityType.DOCUMENT, document_id, updates, create_new_version=False)

    def delete_document(self, document_id: str, user_id: str) -> None:
        """
        Delete the file and its metadata record.

        A file that cannot be removed is logged and skipped; the record is
        deleted regardless.

        Raises:
            EntityNotFoundError: No such document
            AccessDeniedError: The user is not a party to the document's prenup
        """
        document = self.get_document(document_id)
        if document is None:
            raise EntityNotFoundError(EntityType.DOCUMENT, document_id)

        if not self.prenup_service.user_has_access(document.prenup_id, user_id):
            raise AccessDeniedError("Access denied", user_id=user_id, resource_id=document_id)

        file_path = Path(document.path)
        try:
            if file_path.exists():
                file_path.unlink()
                logger.info(f"Deleted file: {file_path}")
        except OSError as e:
            logger.warning(f"Failed to delete file {file_path}: {e}")

        self.store.delete(EntityType.DOCUMENT, document_id)
        logger.info(f"Deleted document: {document_id}")

    # =========================================================================
    # Access and aggregates
    # =========================================================================

    def user_can_access_document(self, document_id: str, user_id: str) -> bool:
        document = self.get_document(document_id)
        if document is None:
            return False
        return self.prenup_service.user_has_access(document.prenup_id, user_id)

    def get_document_with_prenup(self, document_id: str) -> Optional[Dict[str, Any]]:
        document = self.get_document(document_id)
        if document is None:
            return None

        prenup = self.prenup_service.get_prenup(document.prenup_id)
        result = document.model_dump()
        result['prenup'] = prenup.model_dump() if prenup else None
        return result

    def get_total_file_size(self, prenup_id: str) -> int:
        return sum(document.size for document in self.list_documents(prenup_id))

    # =========================================================================
    # Files
    # =========================================================================

    @staticmethod
    def validate_file(filename: str, mime_type: str, size: int) -> None:
        """
        Check an upload before it is stored.

        Raises:
            ValidationError: Unsupported extension or MIME type, or larger than 10MB
        """
        extension = Path(filename).suffix.lower()
        if extension not in ALLOWED_EXTENSIONS or mime_type.lower() not in ALLOWED_MIME_TYPES:
            raise ValidationError(
                "Only PDF, DOC, DOCX, and image files are allowed",
                errors={'filename': filename, 'mime_type': mime_type}
            )

        if size > MAX_FILE_SIZE:
            raise ValidationError("File size must be less than 10MB", errors={'size': size})

    @staticmethod
    def generate_unique_filename(original_filename: str) -> str:
        """``report.pdf`` -> ``report-<epoch-ms>-<0..999>.pdf``"""
        original = Path(original_filename)
        timestamp = int(time.time() * 1000)
        return f"{original.stem}-{timestamp}-{random.randint(0, 999)}{original.suffix}"

    @staticmethod
    def ensure_upload_directory(upload_dir: Union[str, Path]) -> Path:
        directory = Path(upload_dir)
        if not directory.exists():
            directory.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created upload directory: {directory}")
        return directory

    @staticmethod
    def get_file_stats(document_path: Union[str, Path]) -> Dict[str, Any]:
        """``{'exists': False}`` or ``{'exists': True, 'size': ..., 'modified': ...}``"""
        file_path = Path(document_path)
        try:
            if file_path.exists():
                stats = file_path.stat()
                return {
                    'exists': True,
                    'size': stats.st_size,
                    'modified': datetime.fromtimestamp(stats.st_mtime, tz=timezone.utc),
                }
        except OSError as e:
            logger.error(f"Error getting file stats for {file_path}: {e}")

        return {'exists': False}
