"""
Tests for serialization and expression helpers (utils.py).
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from prenup_store.exceptions import ValidationError
from prenup_store.models import Prenup, PrenupStatus, User, USState
from prenup_store.utils import (
    build_filter_expression,
    build_update_expression,
    from_dynamodb_value,
    item_to_model,
    model_to_item,
    to_dynamodb_value,
    to_json_numbers,
    to_utc,
)


class TestSerialization:
    """Test Python <-> DynamoDB value conversion."""

    def test_datetime_serialized_as_utc_iso(self):
        dt = datetime(2024, 5, 1, 14, 0, tzinfo=timezone(timedelta(hours=2)))

        assert to_dynamodb_value(dt) == "2024-05-01T12:00:00+00:00"

    def test_nested_conversion(self):
        value = {
            'status': PrenupStatus.DRAFT,
            'ratio': 0.1,
            'flag': True,
            'missing': None,
            'items': [{'amount': 2.5}],
        }

        assert to_dynamodb_value(value) == {
            'status': 'DRAFT',
            'ratio': Decimal('0.1'),
            'flag': True,
            'missing': None,
            'items': [{'amount': Decimal('2.5')}],
        }

    def test_integral_decimals_read_back_as_int(self):
        raw = {'size': Decimal('2048'), 'value': Decimal('10.75'), 'steps': [Decimal('1'), Decimal('2')]}

        assert from_dynamodb_value(raw) == {'size': 2048, 'value': Decimal('10.75'), 'steps': [1, 2]}
        assert isinstance(from_dynamodb_value(raw)['size'], int)

    def test_json_numbers_for_free_form_payloads(self):
        raw = {'rate': Decimal('0.1'), 'step': Decimal('3'), 'nested': [{'x': Decimal('2.5'), 'note': None}]}

        converted = to_json_numbers(raw)

        assert converted == {'rate': 0.1, 'step': 3, 'nested': [{'x': 2.5, 'note': None}]}
        assert isinstance(converted['rate'], float)
        assert isinstance(converted['step'], int)

    def test_model_to_item_keeps_nested_none(self):
        prenup = Prenup(title="T", state=USState.CALIFORNIA, created_by="u-1", content={'clause': None})

        item = model_to_item(prenup, PK=f"PRENUP#{prenup.id}", SK="V0")

        assert item['content'] == {'clause': None}
        assert 'partner_id' not in item

    def test_to_utc_naive(self):
        assert to_utc(datetime(2024, 1, 1)).tzinfo == timezone.utc
        assert to_utc(None) is None

    def test_model_to_item_adds_keys_and_drops_none(self):
        user = User(id="u-1", email="a@example.com", password="h", first_name="A", last_name="B")

        item = model_to_item(user, PK="USER#u-1", SK="V0")

        assert item['PK'] == "USER#u-1"
        assert item['SK'] == "V0"
        assert 'created_at' not in item
        assert item['role'] == 'USER'

    def test_item_to_model_strips_keys(self):
        item = {
            'PK': 'USER#u-1', 'SK': 'V1', 'id': 'u-1', 'entity_type': 'USER', 'version': 'V1',
            'email': 'a@example.com', 'password': 'h', 'first_name': 'A', 'last_name': 'B',
        }

        user = item_to_model(item, User)

        assert user.id == 'u-1'
        assert user.version == 'V1'

    def test_item_to_model_wraps_validation_failure(self):
        with pytest.raises(ValidationError, match="Failed to convert item to User") as exc_info:
            item_to_model({'PK': 'USER#1', 'SK': 'V0', 'id': '1'}, User)

        assert exc_info.value.original_error is not None


class TestExpressionBuilding:
    """Test UpdateExpression and FilterExpression builders."""

    def test_set_expression_aliases_every_name(self):
        expression, names, values = build_update_expression({'status': PrenupStatus.IN_PROGRESS, 'size': 10})

        assert expression == "SET #attr0 = :val0, #attr1 = :val1"
        assert names == {'#attr0': 'status', '#attr1': 'size'}
        assert values == {':val0': 'IN_PROGRESS', ':val1': 10}

    def test_none_values_become_remove(self):
        expression, names, values = build_update_expression({'title': 'New', 'partner_id': None})

        assert expression == "SET #attr0 = :val0 REMOVE #attr1"
        assert names == {'#attr0': 'title', '#attr1': 'partner_id'}
        assert values == {':val0': 'New'}

    def test_remove_only(self):
        expression, _, values = build_update_expression({'partner_id': None})

        assert expression == "REMOVE #attr0"
        assert values == {}

    def test_empty_updates_rejected(self):
        with pytest.raises(ValidationError, match="cannot be empty"):
            build_update_expression({})

    def test_filter_expression(self):
        assert build_filter_expression({}) is None
        assert build_filter_expression({'entity_type': 'USER', 'SK': 'V0'}) is not None
