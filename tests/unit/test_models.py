"""
Tests for entity models and write DTOs (models/).
"""

import re
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError as PydanticValidationError

from prenup_store.models import (
    ENTITY_MODELS,
    BaseEntity,
    Document,
    EntityType,
    FinancialDisclosure,
    Income,
    PartnerInvitation,
    Prenup,
    PrenupStatus,
    Signature,
    User,
    UserCreate,
    UserRole,
    generate_entity_id,
    model_for,
)


class TestBaseEntity:
    """Test bookkeeping fields shared by every kind."""

    def test_generated_id_shape(self):
        assert re.fullmatch(r"\d{13}-[a-z0-9]{11}", generate_entity_id())

    def test_generated_ids_are_distinct(self):
        assert len({generate_entity_id() for _ in range(100)}) == 100

    def test_defaults(self):
        user = User(email="a@example.com", password="hash", first_name="A", last_name="B")

        assert user.entity_type == EntityType.USER
        assert user.version == "V0"
        assert user.is_latest
        assert user.created_at is None
        assert user.role == UserRole.USER

    def test_immutable_fields(self):
        assert BaseEntity.IMMUTABLE_FIELDS == {'id', 'entity_type', 'created_at', 'version'}

    def test_unknown_attributes_are_ignored(self):
        user = User.model_validate({
            'email': 'a@example.com', 'password': 'hash', 'first_name': 'A', 'last_name': 'B',
            'legacy_field': 'x'
        })

        assert not hasattr(user, 'legacy_field')

    def test_archived_version_is_not_latest(self):
        user = User(email="a@example.com", password="hash", first_name="A", last_name="B", version="V3")

        assert not user.is_latest


class TestDateTimeHandling:
    """Test DateTimeMixin parsing and UTC normalization."""

    def test_iso_string_with_z_suffix(self):
        prenup = Prenup(title="T", state="CALIFORNIA", created_by="u", created_at="2024-03-01T12:00:00Z")

        assert prenup.created_at == datetime(2024, 3, 1, 12, tzinfo=timezone.utc)

    def test_offset_string_converted_to_utc(self):
        prenup = Prenup(title="T", state="CALIFORNIA", created_by="u", updated_at="2024-03-01T12:00:00+02:00")

        assert prenup.updated_at == datetime(2024, 3, 1, 10, tzinfo=timezone.utc)
        assert prenup.updated_at.utcoffset() == timedelta(0)

    def test_naive_datetime_pinned_to_utc(self):
        signature = Signature(prenup_id="p", user_id="u", signed_at=datetime(2024, 1, 1, 9, 30))

        assert signature.signed_at.tzinfo == timezone.utc

    def test_required_datetime_field(self):
        invitation = PartnerInvitation(
            email="p@example.com", prenup_id="p", invited_by="u", token="t",
            expires_at="2030-01-01T00:00:00+00:00"
        )

        assert invitation.expires_at.year == 2030

    def test_invalid_datetime_string(self):
        with pytest.raises(PydanticValidationError, match="Invalid datetime format"):
            Prenup(title="T", state="CALIFORNIA", created_by="u", created_at="yesterday")


class TestDomainModels:
    """Test kind-specific models."""

    def test_every_kind_has_a_model(self):
        assert set(ENTITY_MODELS) == set(EntityType)
        for kind, model_class in ENTITY_MODELS.items():
            assert model_class.model_fields['entity_type'].default == kind

    def test_model_for_accepts_string(self):
        assert model_for("DOCUMENT") is Document

    def test_prenup_defaults(self):
        prenup = Prenup(title="T", state="NEW_YORK", created_by="u")

        assert prenup.status == PrenupStatus.DRAFT
        assert prenup.progress == {}
        assert prenup.partner_id is None

    def test_invalid_state_rejected(self):
        with pytest.raises(PydanticValidationError):
            Prenup(title="T", state="TEXAS", created_by="u")

    def test_income_total(self):
        income = Income(salary=Decimal("100000"), bonus=5000, rental="1200.50")

        assert income.total == Decimal("106200.50")

    def test_negative_income_rejected(self):
        with pytest.raises(PydanticValidationError):
            Income(salary=-1)

    def test_disclosure_totals(self):
        disclosure = FinancialDisclosure(
            prenup_id="p",
            user_id="u",
            assets=[
                {'type': 'REAL_ESTATE', 'description': 'Condo', 'value': "450000", 'ownership': 'INDIVIDUAL'},
                {'type': 'VEHICLE', 'description': 'Car', 'value': "20000.50", 'ownership': 'JOINT'},
            ],
            debts=[{'type': 'MORTGAGE', 'description': 'Condo loan', 'amount': "300000", 'creditor': 'Bank'}],
        )

        assert disclosure.total_assets == Decimal("470000.50")
        assert disclosure.total_debts == Decimal("300000")
        assert disclosure.income.total == Decimal("0")

    def test_document_size_must_be_non_negative(self):
        with pytest.raises(PydanticValidationError):
            Document(prenup_id="p", type="PRENUP_DRAFT", filename="f", path="/f", size=-1, mime_type="x")


class TestUserCreate:
    """Test the registration DTO."""

    def test_email_normalized(self):
        dto = UserCreate(email="  Jane.Doe@Example.COM ", password="password1", first_name="J", last_name="D")

        assert dto.email == "jane.doe@example.com"

    @pytest.mark.parametrize("email", ["not-an-email", "a@b", "two@@example.com"])
    def test_invalid_email_rejected(self, email):
        with pytest.raises(PydanticValidationError):
            UserCreate(email=email, password="password1", first_name="J", last_name="D")

    def test_short_password_rejected(self):
        with pytest.raises(PydanticValidationError):
            UserCreate(email="j@example.com", password="short", first_name="J", last_name="D")
