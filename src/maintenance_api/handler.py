"""
maintenance_api.handler — Maintenance record REST API Lambdas.

One entry point per route, each calling exactly one MaintenanceDynamoDB
operation:
    GET    /maintenances          get_maintenances_handler
    GET    /maintenances/{name}   get_maintenance_handler
    POST   /maintenances          post_maintenance_handler
    PUT    /maintenances/{name}   put_maintenance_handler
    DELETE /maintenances/{name}   delete_maintenance_handler

500 responses carry the raw exception text under "error"; existing clients
read it.
"""

from __future__ import annotations

import json
import os
from collections.abc import Callable
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

from aws_lambda_powertools import Logger
from maintenance_data import (
    MaintenanceDynamoDB,
    MaintenanceKeys,
    MaintenanceRecord,
    MaintenanceRequest,
)
from maintenance_data.models import parse_update_fields

logger = Logger(service="maintenance-api")

_TABLE_ENV = "MAINTENANCE_TABLE_NAME"
_LEGACY_TABLE_ENV = "maintenanceTable"  # name used by existing stacks
_DEFAULT_TABLE = "maintenances"


def _now_utc() -> datetime:
    return datetime.now(UTC)


def _table_name() -> str:
    return os.environ.get(_TABLE_ENV) or os.environ.get(_LEGACY_TABLE_ENV) or _DEFAULT_TABLE


def _store(clock: Callable[[], datetime] | None = None) -> MaintenanceDynamoDB:
    return MaintenanceDynamoDB(clock=clock or _now_utc)


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        if value == value.to_integral_value():
            return int(value)
        return float(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _response(status_code: int, body: Any) -> dict[str, Any]:
    return {
        "statusCode": status_code,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(body, default=_json_default),
    }


def _message(status_code: int, message: str) -> dict[str, Any]:
    return _response(status_code, {"message": message})


def _server_error(message: str, exc: Exception) -> dict[str, Any]:
    logger.exception(message)
    return _response(500, {"message": message, "error": str(exc)})


def _require_json_body(event: dict[str, Any], *, empty_message: str) -> dict[str, Any]:
    raw_body = event.get("body")
    if raw_body is None or raw_body == "":
        raise ValueError(empty_message)
    if not isinstance(raw_body, str):
        raise ValueError("Request body must be a JSON string")
    try:
        body = json.loads(raw_body)
    except json.JSONDecodeError as exc:
        raise ValueError("Malformed JSON body") from exc
    if not body:
        raise ValueError(empty_message)
    if not isinstance(body, dict):
        raise ValueError("JSON body must be an object")
    return body


def _path_name(event: dict[str, Any]) -> str:
    path_params = event.get("pathParameters") or {}
    if not isinstance(path_params, dict):
        path_params = {}
    name = path_params.get(MaintenanceKeys.PRIMARY_KEY.value)
    if name is None or not str(name).strip():
        raise ValueError("Maintenance name is required in the path")
    return str(name).strip()


@logger.inject_lambda_context(clear_state=True, log_event=False)
def get_maintenances_handler(event: dict[str, Any], _context: Any) -> dict[str, Any]:
    logger.debug("Maintenance API event", event=event)
    try:
        items = _store().scan_table(_table_name())
    except Exception as exc:
        return _server_error("Error retrieving the maintenances", exc)
    return _response(200, items)


@logger.inject_lambda_context(clear_state=True, log_event=False)
def get_maintenance_handler(event: dict[str, Any], _context: Any) -> dict[str, Any]:
    logger.debug("Maintenance API event", event=event)
    try:
        name = _path_name(event)
        item = _store().find_record(_table_name(), MaintenanceKeys.PRIMARY_KEY.value, name)
    except ValueError as exc:
        return _message(400, str(exc))
    except Exception as exc:
        return _server_error("Error retrieving the maintenance record", exc)
    if item is None:
        return _message(404, "Maintenance record not found")
    return _response(200, item)


@logger.inject_lambda_context(clear_state=True, log_event=False)
def post_maintenance_handler(event: dict[str, Any], _context: Any) -> dict[str, Any]:
    logger.debug("Maintenance API event", event=event)
    try:
        body = _require_json_body(event, empty_message="The body cannot be empty")
        request = MaintenanceRequest.from_body(body)
    except ValueError as exc:
        return _message(400, str(exc))

    # currentMaintenance and createdAt share one instant
    now = _now_utc()
    record = MaintenanceRecord.from_request(request, now)
    try:
        item = _store(clock=lambda: now).add_record(_table_name(), record.to_item())
    except Exception as exc:
        return _server_error("Error adding maintenance item to DynamoDB", exc)
    logger.info("Maintenance record created", record_id=item["id"])
    return _response(
        200,
        {"message": f"{record.name} successfully added to the table", "item": item},
    )


@logger.inject_lambda_context(clear_state=True, log_event=False)
def put_maintenance_handler(event: dict[str, Any], _context: Any) -> dict[str, Any]:
    logger.debug("Maintenance API event", event=event)
    try:
        name = _path_name(event)
        body = _require_json_body(event, empty_message="Payload cannot be empty")
        fields = parse_update_fields(body)
    except ValueError as exc:
        return _message(400, str(exc))

    try:
        result = _store().update_record(
            _table_name(), MaintenanceKeys.PRIMARY_KEY.value, name, fields
        )
    except Exception as exc:
        return _server_error("Error updating the maintenance record", exc)
    if not result.updated:
        return _message(404, "Maintenance record could not be updated")
    return _response(200, {"item": result.item})


@logger.inject_lambda_context(clear_state=True, log_event=False)
def delete_maintenance_handler(event: dict[str, Any], _context: Any) -> dict[str, Any]:
    logger.debug("Maintenance API event", event=event)
    try:
        name = _path_name(event)
    except ValueError as exc:
        return _message(400, str(exc))

    try:
        result = _store().delete_record(_table_name(), MaintenanceKeys.PRIMARY_KEY.value, name)
    except Exception as exc:
        return _server_error("Error deleting the maintenance record", exc)
    if not result.success:
        return _message(400, "Maintenance record could not be deleted")
    return _response(200, result.success)
