"""
tests/unit/test_models.py — Schema and helper tests for maintenance_data.models.

Validates:
- Enum values enforce the wire vocabulary
- ISO 8601 rendering and the six-month maintenance interval
- Closed-set partial update expression (clause count and order)
- Request/update payload validation
- Frozen dataclass immutability
"""

import dataclasses
from datetime import UTC, datetime, timedelta, timezone
from decimal import Decimal

import pytest
from maintenance_data.exceptions import UnknownFieldError
from maintenance_data.models import (
    EXISTS_CONDITION,
    KEY_ALIAS,
    MAINTENANCE_INTERVAL_MONTHS,
    DeleteResult,
    MaintenanceField,
    MaintenanceKeys,
    MaintenanceRecord,
    MaintenanceRequest,
    MaintenanceType,
    UpdateResult,
    build_update_expression,
    iso_timestamp,
    next_maintenance_date,
    parse_update_fields,
    resolve_fields,
    to_dynamodb_value,
)

# ---------------------------------------------------------------------------
# Enums and constants
# ---------------------------------------------------------------------------


class TestEnums:
    def test_maintenance_type_values(self):
        assert {t.value for t in MaintenanceType} == {"engine", "transmission", "steer", "coolant"}

    def test_maintenance_keys(self):
        assert MaintenanceKeys.PRIMARY_KEY == "name"
        assert MaintenanceKeys.SECONDARY_KEY == "type"

    def test_updatable_fields_exclude_primary_key(self):
        assert "name" not in {f.value for f in MaintenanceField}
        assert {f.value for f in MaintenanceField} == {
            "type",
            "currentMaintenance",
            "nextMaintenance",
            "product",
            "odometer",
        }

    def test_interval_is_six_months(self):
        assert MAINTENANCE_INTERVAL_MONTHS == 6

    def test_exists_condition_uses_key_alias(self):
        assert KEY_ALIAS == "#pk"
        assert EXISTS_CONDITION == "attribute_exists(#pk)"


# ---------------------------------------------------------------------------
# Value helpers
# ---------------------------------------------------------------------------


class TestIsoTimestamp:
    def test_utc_millisecond_z_suffix(self):
        assert iso_timestamp(datetime(2024, 1, 1, tzinfo=UTC)) == "2024-01-01T00:00:00.000Z"

    def test_truncates_to_milliseconds(self):
        dt = datetime(2024, 3, 5, 6, 7, 8, 123456, tzinfo=UTC)
        assert iso_timestamp(dt) == "2024-03-05T06:07:08.123Z"

    def test_converts_other_timezones_to_utc(self):
        dt = datetime(2024, 1, 1, 2, 0, tzinfo=timezone(timedelta(hours=2)))
        assert iso_timestamp(dt) == "2024-01-01T00:00:00.000Z"

    def test_naive_treated_as_utc(self):
        assert iso_timestamp(datetime(2024, 1, 1, 12, 30)) == "2024-01-01T12:30:00.000Z"


class TestNextMaintenanceDate:
    def test_adds_six_calendar_months(self):
        start = datetime(2024, 1, 1, tzinfo=UTC)
        assert next_maintenance_date(start) == datetime(2024, 7, 1, tzinfo=UTC)

    def test_crosses_year_boundary(self):
        start = datetime(2024, 10, 15, 9, 30, tzinfo=UTC)
        assert next_maintenance_date(start) == datetime(2025, 4, 15, 9, 30, tzinfo=UTC)

    @pytest.mark.parametrize(
        ("start", "expected"),
        [
            (datetime(2023, 8, 31, tzinfo=UTC), datetime(2024, 2, 29, tzinfo=UTC)),
            (datetime(2024, 8, 31, tzinfo=UTC), datetime(2025, 2, 28, tzinfo=UTC)),
        ],
    )
    def test_clamps_to_month_end(self, start, expected):
        assert next_maintenance_date(start) == expected


class TestToDynamodbValue:
    def test_float_becomes_decimal(self):
        assert to_dynamodb_value(1.5) == Decimal("1.5")

    def test_nested_structures(self):
        value = {"a": [1.25, {"b": 2.0}], "c": "text", "d": 3}
        assert to_dynamodb_value(value) == {
            "a": [Decimal("1.25"), {"b": Decimal("2.0")}],
            "c": "text",
            "d": 3,
        }

    def test_bool_and_int_untouched(self):
        assert to_dynamodb_value(True) is True
        assert to_dynamodb_value(7) == 7


# ---------------------------------------------------------------------------
# Partial update expression
# ---------------------------------------------------------------------------


class TestBuildUpdateExpression:
    @pytest.mark.parametrize(
        "fields",
        [
            {},
            {"odometer": 1},
            {"product": "Castrol", "odometer": 2},
            {
                "nextMaintenance": "2025-01-01T00:00:00.000Z",
                "type": "coolant",
                "currentMaintenance": "2024-07-01T00:00:00.000Z",
                "odometer": 3,
                "product": "Prestone",
            },
        ],
    )
    def test_clause_count_and_order_match_fields(self, fields):
        expression, names, values = build_update_expression("name", fields)
        assert expression.startswith("SET ")
        body = expression.removeprefix("SET ")
        clauses = body.split(", ") if body else []
        assert len(clauses) == len(fields)
        assert clauses == [f"#{field} = :{field}" for field in fields]
        assert names == {"#pk": "name", **{f"#{f}": f for f in fields}}
        assert list(values) == [f":{f}" for f in fields]

    def test_empty_fields(self):
        assert build_update_expression("name", {}) == ("SET ", {"#pk": "name"}, {})

    def test_accepts_enum_keys(self):
        expression, _, values = build_update_expression(
            "name", {MaintenanceField.PRODUCT: "Mobil 1"}
        )
        assert expression == "SET #product = :product"
        assert values == {":product": "Mobil 1"}

    def test_key_alias_bound_to_key_name(self):
        _, names, _ = build_update_expression("email", {"odometer": 1})
        assert names["#pk"] == "email"

    def test_unknown_fields_rejected(self):
        with pytest.raises(UnknownFieldError) as exc_info:
            build_update_expression("name", {"name": "x", "odometer": 1, "colour": "red"})
        assert exc_info.value.fields == ["name", "colour"]
        assert "name, colour" in str(exc_info.value)

    def test_unknown_field_error_is_value_error(self):
        with pytest.raises(ValueError):
            resolve_fields({"bogus": 1})


class TestParseUpdateFields:
    def test_normalizes_type(self):
        assert parse_update_fields({"type": " ENGINE "}) == {MaintenanceField.TYPE: "engine"}

    def test_keeps_payload_order(self):
        parsed = parse_update_fields({"product": "Castrol", "odometer": 52000})
        assert list(parsed) == [MaintenanceField.PRODUCT, MaintenanceField.ODOMETER]

    def test_valid_dates_kept_verbatim(self):
        parsed = parse_update_fields({"nextMaintenance": "2025-01-01T00:00:00.000Z"})
        assert parsed == {MaintenanceField.NEXT_MAINTENANCE: "2025-01-01T00:00:00.000Z"}

    @pytest.mark.parametrize(
        ("body", "message"),
        [
            ({"type": "wipers"}, "type must be one of"),
            ({"odometer": -1}, "odometer must not be negative"),
            ({"odometer": True}, "odometer must be a number"),
            ({"odometer": "100"}, "odometer must be a number"),
            ({"product": "  "}, "product must be a non-empty string"),
            ({"odometer": float("nan")}, "odometer must be a number"),
            ({"odometer": float("inf")}, "odometer must be a number"),
            ({"odometer": Decimal("NaN")}, "odometer must be a number"),
            ({"currentMaintenance": "last tuesday"}, "currentMaintenance must be an ISO 8601"),
            ({"nextMaintenance": "9999-12-31T24:00:00"}, "nextMaintenance must be an ISO 8601"),
            ({"name": "renamed"}, "Unsupported update field"),
        ],
    )
    def test_rejects_invalid_values(self, body, message):
        with pytest.raises(ValueError, match=message):
            parse_update_fields(body)


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


def _request(**overrides) -> MaintenanceRequest:
    defaults = dict(
        name="engineOil", type=MaintenanceType.ENGINE, product="Penzoil", odometer=50000
    )
    defaults.update(overrides)
    return MaintenanceRequest(**defaults)


class TestMaintenanceRequest:
    def test_from_body(self):
        request = MaintenanceRequest.from_body(
            {"name": "engineOil", "type": "engine", "product": "Penzoil", "odometer": 50000}
        )
        assert request == _request()

    def test_from_body_missing_fields(self):
        with pytest.raises(ValueError, match="Missing required field\\(s\\): type, odometer"):
            MaintenanceRequest.from_body({"name": "engineOil", "product": "Penzoil"})

    def test_negative_odometer_rejected(self):
        with pytest.raises(ValueError, match="odometer"):
            _request(odometer=-5)

    def test_empty_name_rejected(self):
        with pytest.raises(ValueError, match="name"):
            _request(name="")

    def test_frozen(self):
        request = _request()
        with pytest.raises(dataclasses.FrozenInstanceError):
            request.odometer = 1  # type: ignore[misc]


class TestMaintenanceRecord:
    def test_from_request_computes_dates(self):
        now = datetime(2024, 1, 1, tzinfo=UTC)
        record = MaintenanceRecord.from_request(_request(), now)
        assert record.current_maintenance == "2024-01-01T00:00:00.000Z"
        assert record.next_maintenance == "2024-07-01T00:00:00.000Z"

    def test_to_item_wire_shape(self):
        record = MaintenanceRecord.from_request(
            _request(odometer=1234.5), datetime(2024, 1, 1, tzinfo=UTC)
        )
        assert record.to_item() == {
            "name": "engineOil",
            "type": "engine",
            "currentMaintenance": "2024-01-01T00:00:00.000Z",
            "nextMaintenance": "2024-07-01T00:00:00.000Z",
            "product": "Penzoil",
            "odometer": Decimal("1234.5"),
        }


class TestResults:
    def test_update_result_default_is_empty(self):
        result = UpdateResult()
        assert result.item is None
        assert result.updated is False

    def test_update_result_with_item(self):
        assert UpdateResult(item={"name": "x"}).updated is True

    def test_delete_result(self):
        assert DeleteResult(success=True).success is True
        assert DeleteResult(success=False).success is False
