"""
maintenance_data.client — MaintenanceDynamoDB, the maintenance record access layer.

Translates CRUD intents into DynamoDB table operations:
  - add_record:    unconditional put with server-stamped id and createdAt.
  - scan_table:    full scan, following LastEvaluatedKey until exhausted.
  - find_record:   get by key; store failures become MaintenanceRecordError.
  - update_record: conditional partial update; failures become an empty UpdateResult.
  - delete_record: conditional delete; failures become DeleteResult(success=False).

The DynamoDB resource is injected at construction.  Table names are passed
per call so the same instance serves any configured table.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import Any

import boto3
from aws_lambda_powertools import Logger

from maintenance_data.exceptions import MaintenanceRecordError
from maintenance_data.models import (
    EXISTS_CONDITION,
    KEY_ALIAS,
    DeleteResult,
    UpdateResult,
    build_update_expression,
    iso_timestamp,
    to_dynamodb_value,
)

logger = Logger(service="maintenance-data-lib")


def _now_utc() -> datetime:
    return datetime.now(UTC)


def _error_code(exc: Exception) -> str:
    """Best-effort DynamoDB error code for logging (e.g. ConditionalCheckFailedException)."""
    response = getattr(exc, "response", None)
    if isinstance(response, dict):
        return str(response.get("Error", {}).get("Code", type(exc).__name__))
    return type(exc).__name__


class MaintenanceDynamoDB:
    """
    DynamoDB access layer for maintenance records.

    Error policy differs per operation and callers rely on it:
      - add_record / scan_table propagate store errors unchanged.
      - find_record re-raises every failure as MaintenanceRecordError.
      - update_record / delete_record never raise on store failure; they
        return a negative result and log the DynamoDB error code.
    """

    def __init__(
        self,
        *,
        dynamodb_resource: Any = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if dynamodb_resource is None:
            dynamodb_resource = boto3.resource("dynamodb", region_name=os.environ["AWS_REGION"])
        self._dynamodb: Any = dynamodb_resource
        self._clock = clock or _now_utc

    def add_record(self, table_name: str, item: Mapping[str, Any]) -> dict[str, Any]:
        """Write a new item, overwriting any existing item with the same key.

        id and createdAt are generated here and take precedence over
        caller-supplied fields of the same name.  Returns the stored item.
        """
        record = {
            **to_dynamodb_value(dict(item)),
            "id": str(uuid.uuid4()),
            "createdAt": iso_timestamp(self._clock()),
        }
        table = self._dynamodb.Table(table_name)
        table.put_item(Item=record)
        logger.debug("Maintenance record stored", table_name=table_name, record_id=record["id"])
        return record

    def scan_table(self, table_name: str) -> list[dict[str, Any]]:
        """Return every item in the table, page by page in scan order."""
        table = self._dynamodb.Table(table_name)
        items: list[dict[str, Any]] = []
        kwargs: dict[str, Any] = {}
        while True:
            try:
                response = table.scan(**kwargs)
            except Exception:
                logger.exception("Error scanning DynamoDB table", table_name=table_name)
                raise
            items.extend(response.get("Items", []))
            last_evaluated_key = response.get("LastEvaluatedKey")
            if not last_evaluated_key:
                return items
            kwargs["ExclusiveStartKey"] = last_evaluated_key

    def find_record(self, table_name: str, key: str, value: Any) -> dict[str, Any] | None:
        """Get a single item by key.

        Returns the item dict, or None if the item does not exist.
        """
        key_dict = {key: value}
        table = self._dynamodb.Table(table_name)
        try:
            response = table.get_item(Key=key_dict)
        except Exception as exc:
            logger.exception(
                "Error retrieving maintenance record",
                table_name=table_name,
                key=key,
                error_code=_error_code(exc),
            )
            raise MaintenanceRecordError(table_name=table_name, key=key_dict) from exc
        return response.get("Item")

    def update_record(
        self,
        table_name: str,
        key: str,
        value: Any,
        fields: Mapping[str, Any],
    ) -> UpdateResult:
        """Set exactly the supplied fields on an existing item.

        Conditioned on attribute_exists of the key.  Returns the post-update
        item (ReturnValues=ALL_NEW) or an empty UpdateResult when the record
        is missing or the store call fails.  Raises UnknownFieldError, before
        touching the store, for fields outside MaintenanceField.
        """
        update_expression, names, values = build_update_expression(key, fields)
        table = self._dynamodb.Table(table_name)
        try:
            response = table.update_item(
                Key={key: value},
                UpdateExpression=update_expression,
                ConditionExpression=EXISTS_CONDITION,
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values,
                ReturnValues="ALL_NEW",
            )
        except Exception as exc:
            logger.warning(
                "Maintenance record was not updated",
                table_name=table_name,
                key=key,
                error_code=_error_code(exc),
                error=str(exc),
            )
            return UpdateResult()
        if not response:
            return UpdateResult()
        return UpdateResult(item=response.get("Attributes"))

    def delete_record(self, table_name: str, key: str, value: Any) -> DeleteResult:
        """Delete an existing item.  Never raises; any failure is success=False."""
        table = self._dynamodb.Table(table_name)
        try:
            table.delete_item(
                Key={key: value},
                ConditionExpression=EXISTS_CONDITION,
                ExpressionAttributeNames={KEY_ALIAS: key},
                ReturnValues="ALL_OLD",
            )
        except Exception as exc:
            logger.warning(
                "Maintenance record was not deleted",
                table_name=table_name,
                key=key,
                error_code=_error_code(exc),
                error=str(exc),
            )
            return DeleteResult(success=False)
        return DeleteResult(success=True)
