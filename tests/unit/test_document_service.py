"""
Tests for DocumentService (services/documents.py)
"""

import re
from pathlib import Path
from unittest.mock import patch

import pytest

from prenup_store.exceptions import AccessDeniedError, EntityNotFoundError, ValidationError
from prenup_store.models import DocumentCreate, DocumentType, EntityType
from prenup_store.services.documents import MAX_FILE_SIZE


@pytest.fixture
def uploaded_file(tmp_path):
    path = tmp_path / "draft.pdf"
    path.write_bytes(b"%PDF-1.4 test")
    return path


def make_document(prenup_id, uploaded_by, path, document_type=DocumentType.PRENUP_DRAFT, filename="draft.pdf", size=13):
    return DocumentCreate(
        prenup_id=prenup_id,
        type=document_type,
        filename=filename,
        path=str(path),
        size=size,
        mime_type="application/pdf",
        uploaded_by=uploaded_by,
    )


class TestDocumentCrud:
    """Test create/get/list/update."""

    def test_create_document(self, document_service, prenup, creator, uploaded_file):
        document = document_service.create_document(make_document(prenup.id, creator.id, uploaded_file))

        assert document.version == "V0"
        assert document.uploaded_by == creator.id
        assert document_service.get_document(document.id).filename == "draft.pdf"

    def test_create_document_access_denied(self, document_service, prenup, outsider, uploaded_file):
        with pytest.raises(AccessDeniedError):
            document_service.create_document(make_document(prenup.id, outsider.id, uploaded_file))

        assert document_service.list_documents(prenup.id) == []

    def test_list_documents_newest_first(self, document_service, prenup, creator, uploaded_file, clock):
        older = document_service.create_document(make_document(prenup.id, creator.id, uploaded_file, filename="a.pdf"))
        newer = document_service.create_document(make_document(prenup.id, creator.id, uploaded_file, filename="b.pdf"))

        assert [d.id for d in document_service.list_documents(prenup.id)] == [newer.id, older.id]
        assert document_service.list_documents("other-prenup") == []

    def test_list_documents_by_type(self, document_service, prenup, creator, uploaded_file):
        document_service.create_document(make_document(prenup.id, creator.id, uploaded_file))
        statement = document_service.create_document(make_document(
            prenup.id, creator.id, uploaded_file, document_type=DocumentType.FINANCIAL_STATEMENT, filename="bank.pdf"
        ))

        matches = document_service.list_documents_by_type(prenup.id, DocumentType.FINANCIAL_STATEMENT)

        assert [d.id for d in matches] == [statement.id]

    def test_update_document_is_not_versioned(self, document_service, store, prenup, creator, uploaded_file):
        document = document_service.create_document(make_document(prenup.id, creator.id, uploaded_file))

        updated = document_service.update_document(document.id, {'type': DocumentType.PRENUP_FINAL, 'filename': 'final.pdf'})

        assert updated.type == DocumentType.PRENUP_FINAL
        assert updated.filename == 'final.pdf'
        assert [v.version for v in store.list_versions(EntityType.DOCUMENT, document.id)] == ['V0']

    def test_update_missing_document(self, document_service):
        with pytest.raises(EntityNotFoundError):
            document_service.update_document("ghost", {'filename': 'x.pdf'})

    def test_total_file_size(self, document_service, prenup, creator, uploaded_file):
        document_service.create_document(make_document(prenup.id, creator.id, uploaded_file, size=100))
        document_service.create_document(make_document(prenup.id, creator.id, uploaded_file, size=250))

        assert document_service.get_total_file_size(prenup.id) == 350


class TestDeleteDocument:
    """Test file + record deletion."""

    def test_delete_removes_file_and_record(self, document_service, prenup, creator, uploaded_file):
        document = document_service.create_document(make_document(prenup.id, creator.id, uploaded_file))

        document_service.delete_document(document.id, creator.id)

        assert not uploaded_file.exists()
        assert document_service.get_document(document.id) is None

    def test_partner_can_delete(self, document_service, prenup_with_partner, creator, partner, uploaded_file):
        document = document_service.create_document(make_document(prenup_with_partner.id, creator.id, uploaded_file))

        document_service.delete_document(document.id, partner.id)

        assert document_service.get_document(document.id) is None

    def test_delete_with_missing_file_still_deletes_record(self, document_service, prenup, creator, tmp_path):
        document = document_service.create_document(make_document(prenup.id, creator.id, tmp_path / "gone.pdf"))

        document_service.delete_document(document.id, creator.id)

        assert document_service.get_document(document.id) is None

    def test_file_removal_failure_is_logged_not_raised(self, document_service, prenup, creator, uploaded_file):
        document = document_service.create_document(make_document(prenup.id, creator.id, uploaded_file))

        with patch.object(Path, 'unlink', side_effect=PermissionError("read-only")):
            with patch('prenup_store.services.documents.logger') as mock_logger:
                document_service.delete_document(document.id, creator.id)

        mock_logger.warning.assert_called_once()
        assert uploaded_file.exists()
        assert document_service.get_document(document.id) is None

    def test_delete_access_denied(self, document_service, prenup, creator, outsider, uploaded_file):
        document = document_service.create_document(make_document(prenup.id, creator.id, uploaded_file))

        with pytest.raises(AccessDeniedError):
            document_service.delete_document(document.id, outsider.id)

        assert uploaded_file.exists()
        assert document_service.get_document(document.id) is not None

    def test_delete_missing_document(self, document_service, creator):
        with pytest.raises(EntityNotFoundError):
            document_service.delete_document("ghost", creator.id)


class TestAccessAndAggregates:

    def test_user_can_access_document(self, document_service, prenup, creator, outsider, uploaded_file):
        document = document_service.create_document(make_document(prenup.id, creator.id, uploaded_file))

        assert document_service.user_can_access_document(document.id, creator.id)
        assert not document_service.user_can_access_document(document.id, outsider.id)
        assert not document_service.user_can_access_document("ghost", creator.id)

    def test_get_document_with_prenup(self, document_service, prenup, creator, uploaded_file):
        document = document_service.create_document(make_document(prenup.id, creator.id, uploaded_file))

        view = document_service.get_document_with_prenup(document.id)

        assert view['id'] == document.id
        assert view['prenup']['id'] == prenup.id
        assert view['prenup']['title'] == prenup.title

    def test_get_document_with_prenup_missing(self, document_service):
        assert document_service.get_document_with_prenup("ghost") is None


class TestFileHelpers:
    """Test upload validation and filesystem helpers."""

    @pytest.mark.parametrize("filename,mime_type", [
        ("agreement.pdf", "application/pdf"),
        ("agreement.DOCX", "application/vnd.openxmlformats-officedocument.wordprocessingml.document"),
        ("scan.doc", "application/msword"),
        ("photo.jpeg", "image/jpeg"),
        ("photo.png", "image/png"),
    ])
    def test_validate_file_accepts_supported_types(self, document_service, filename, mime_type):
        document_service.validate_file(filename, mime_type, 1024)

    @pytest.mark.parametrize("filename,mime_type", [
        ("script.exe", "application/octet-stream"),
        ("notes.txt", "text/plain"),
        ("fake.pdf", "text/html"),
    ])
    def test_validate_file_rejects_other_types(self, document_service, filename, mime_type):
        with pytest.raises(ValidationError, match="Only PDF, DOC, DOCX, and image files are allowed"):
            document_service.validate_file(filename, mime_type, 1024)

    def test_validate_file_size_limit(self, document_service):
        document_service.validate_file("big.pdf", "application/pdf", MAX_FILE_SIZE)

        with pytest.raises(ValidationError, match="less than 10MB"):
            document_service.validate_file("big.pdf", "application/pdf", MAX_FILE_SIZE + 1)

    def test_generate_unique_filename(self, document_service):
        name = document_service.generate_unique_filename("My Agreement.pdf")

        assert re.fullmatch(r"My Agreement-\d{13}-\d{1,3}\.pdf", name)

    def test_ensure_upload_directory(self, document_service, tmp_path):
        target = tmp_path / "uploads" / "nested"

        created = document_service.ensure_upload_directory(target)
        document_service.ensure_upload_directory(target)

        assert created == target
        assert target.is_dir()

    def test_get_file_stats(self, document_service, uploaded_file, tmp_path):
        stats = document_service.get_file_stats(uploaded_file)

        assert stats['exists'] is True
        assert stats['size'] == uploaded_file.stat().st_size
        assert stats['modified'].tzinfo is not None
        assert document_service.get_file_stats(tmp_path / "missing.pdf") == {'exists': False}
