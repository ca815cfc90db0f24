"""
maintenance_data — DynamoDB access library for vehicle maintenance records.

The only way Lambda handlers read or write the maintenances table.
"""

from maintenance_data.client import MaintenanceDynamoDB
from maintenance_data.exceptions import MaintenanceRecordError, UnknownFieldError
from maintenance_data.models import (
    DeleteResult,
    MaintenanceField,
    MaintenanceKeys,
    MaintenanceRecord,
    MaintenanceRequest,
    MaintenanceType,
    UpdateResult,
)

__all__ = [
    "DeleteResult",
    "MaintenanceDynamoDB",
    "MaintenanceField",
    "MaintenanceKeys",
    "MaintenanceRecord",
    "MaintenanceRecordError",
    "MaintenanceRequest",
    "MaintenanceType",
    "UnknownFieldError",
    "UpdateResult",
]
