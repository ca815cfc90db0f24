"""
maintenance_data.models — Maintenance table schema and value helpers.

Table: maintenances
    PK: name (string)
    Every item also carries type, currentMaintenance, nextMaintenance,
    product, odometer, plus the server-stamped id and createdAt.

Updates are restricted to a closed set of fields (MaintenanceField).  Each
field maps to one fixed assignment clause, so no caller-supplied text is ever
interpolated into an UpdateExpression.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal
from enum import StrEnum
from typing import Any

from dateutil import parser
from dateutil.relativedelta import relativedelta

from maintenance_data.exceptions import UnknownFieldError

MAINTENANCE_INTERVAL_MONTHS: int = 6

# Reserved ExpressionAttributeNames alias bound to the key attribute for
# attribute_exists() preconditions.
KEY_ALIAS: str = "#pk"
EXISTS_CONDITION: str = f"attribute_exists({KEY_ALIAS})"


# ---------------------------------------------------------------------------
# Enums — constrained vocabulary
# ---------------------------------------------------------------------------


class MaintenanceType(StrEnum):
    ENGINE = "engine"
    TRANSMISSION = "transmission"
    STEER = "steer"
    COOLANT = "coolant"


class MaintenanceKeys(StrEnum):
    PRIMARY_KEY = "name"
    SECONDARY_KEY = "type"


class MaintenanceField(StrEnum):
    """Attributes that may be changed by a partial update."""

    TYPE = "type"
    CURRENT_MAINTENANCE = "currentMaintenance"
    NEXT_MAINTENANCE = "nextMaintenance"
    PRODUCT = "product"
    ODOMETER = "odometer"


_UPDATE_CLAUSES: dict[MaintenanceField, tuple[str, str]] = {
    MaintenanceField.TYPE: ("#type", ":type"),
    MaintenanceField.CURRENT_MAINTENANCE: ("#currentMaintenance", ":currentMaintenance"),
    MaintenanceField.NEXT_MAINTENANCE: ("#nextMaintenance", ":nextMaintenance"),
    MaintenanceField.PRODUCT: ("#product", ":product"),
    MaintenanceField.ODOMETER: ("#odometer", ":odometer"),
}


# ---------------------------------------------------------------------------
# Value helpers
# ---------------------------------------------------------------------------


def iso_timestamp(dt: datetime) -> str:
    """Render dt as UTC ISO 8601 with millisecond precision and a Z suffix."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def next_maintenance_date(from_date: datetime) -> datetime:
    # relativedelta clamps to month end: Aug 31 -> Feb 28/29
    return from_date + relativedelta(months=MAINTENANCE_INTERVAL_MONTHS)


def to_dynamodb_value(value: Any) -> Any:
    """Convert floats (rejected by the boto3 resource layer) to Decimal."""
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {k: to_dynamodb_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [to_dynamodb_value(v) for v in value]
    return value


def _as_odometer(value: Any) -> int | float:
    if isinstance(value, bool) or not isinstance(value, int | float | Decimal):
        raise ValueError("odometer must be a number")
    if not math.isfinite(value):
        raise ValueError("odometer must be a number")
    if value < 0:
        raise ValueError("odometer must not be negative")
    return value


def _as_type(value: Any) -> MaintenanceType:
    try:
        return MaintenanceType(str(value).strip().lower())
    except ValueError as exc:
        allowed = ", ".join(t.value for t in MaintenanceType)
        raise ValueError(f"type must be one of: {allowed}") from exc


def _as_text(value: Any, *, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{field} must be a non-empty string")
    return value.strip()


def _as_iso_date(value: Any, *, field: str) -> str:
    text = _as_text(value, field=field)
    try:
        parser.isoparse(text)
    except (ValueError, OverflowError) as exc:
        raise ValueError(f"{field} must be an ISO 8601 date-time") from exc
    return text


# ---------------------------------------------------------------------------
# Partial update expression
# ---------------------------------------------------------------------------


def resolve_fields(fields: Mapping[str, Any]) -> dict[MaintenanceField, Any]:
    """Map caller field names onto MaintenanceField, keeping iteration order.

    Raises UnknownFieldError listing every name outside the updatable set.
    """
    resolved: dict[MaintenanceField, Any] = {}
    unknown: list[str] = []
    for name, value in fields.items():
        try:
            resolved[MaintenanceField(name)] = value
        except ValueError:
            unknown.append(str(name))
    if unknown:
        raise UnknownFieldError(unknown)
    return resolved


def parse_update_fields(body: Mapping[str, Any]) -> dict[MaintenanceField, Any]:
    """Validate an update payload and return its typed fields in payload order."""
    parsed: dict[MaintenanceField, Any] = {}
    for field, value in resolve_fields(body).items():
        if field is MaintenanceField.TYPE:
            parsed[field] = _as_type(value).value
        elif field is MaintenanceField.ODOMETER:
            parsed[field] = _as_odometer(value)
        elif field is MaintenanceField.PRODUCT:
            parsed[field] = _as_text(value, field=field.value)
        else:
            parsed[field] = _as_iso_date(value, field=field.value)
    return parsed


def build_update_expression(
    key_name: str,
    fields: Mapping[str, Any],
) -> tuple[str, dict[str, str], dict[str, Any]]:
    """Build (UpdateExpression, ExpressionAttributeNames, ExpressionAttributeValues).

    One "#field = :field" clause per entry, in the mapping's iteration order.
    An empty mapping yields "SET " with only the key alias bound.
    """
    names: dict[str, str] = {KEY_ALIAS: key_name}
    values: dict[str, Any] = {}
    clauses: list[str] = []
    for field, raw_value in resolve_fields(fields).items():
        name_ref, value_ref = _UPDATE_CLAUSES[field]
        clauses.append(f"{name_ref} = {value_ref}")
        names[name_ref] = field.value
        values[value_ref] = to_dynamodb_value(raw_value)
    return "SET " + ", ".join(clauses), names, values


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MaintenanceRequest:
    """Caller-supplied fields for a new maintenance record."""

    name: str
    type: MaintenanceType
    product: str
    odometer: int | float

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("name must not be empty")
        if self.odometer < 0:
            raise ValueError("odometer must not be negative")

    @classmethod
    def from_body(cls, body: Mapping[str, Any]) -> MaintenanceRequest:
        required = ["name", "type", "product", "odometer"]
        missing = [field for field in required if body.get(field) is None]
        if missing:
            raise ValueError(f"Missing required field(s): {', '.join(missing)}")
        return cls(
            name=_as_text(body["name"], field="name"),
            type=_as_type(body["type"]),
            product=_as_text(body["product"], field="product"),
            odometer=_as_odometer(body["odometer"]),
        )


@dataclass(frozen=True)
class MaintenanceRecord:
    """A fully-formed maintenance record as stored (minus id/createdAt)."""

    name: str
    type: MaintenanceType
    current_maintenance: str  # ISO 8601 UTC
    next_maintenance: str  # ISO 8601 UTC, current + 6 months
    product: str
    odometer: int | float

    @classmethod
    def from_request(cls, request: MaintenanceRequest, now: datetime) -> MaintenanceRecord:
        return cls(
            name=request.name,
            type=request.type,
            current_maintenance=iso_timestamp(now),
            next_maintenance=iso_timestamp(next_maintenance_date(now)),
            product=request.product,
            odometer=request.odometer,
        )

    def to_item(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type.value,
            "currentMaintenance": self.current_maintenance,
            "nextMaintenance": self.next_maintenance,
            "product": self.product,
            "odometer": to_dynamodb_value(self.odometer),
        }


# ---------------------------------------------------------------------------
# Operation results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class UpdateResult:
    """Outcome of a conditional update.

    item is the post-update record, or None when nothing was returned
    (record missing, or the store call failed; the two are not distinguished).
    """

    item: dict[str, Any] | None = None

    @property
    def updated(self) -> bool:
        return self.item is not None


@dataclass(frozen=True)
class DeleteResult:
    success: bool
