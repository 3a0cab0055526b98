"""
Import all models here so that:
1. Alembic can auto-detect them when generating migrations
2. Relationships between models resolve correctly

Order matters: parent tables before child tables.
"""

from fleet_venue.models.role import Role, RoleName
from fleet_venue.models.department import Department
from fleet_venue.models.employee import Employee
from fleet_venue.models.module import Module, ModuleCode, user_modules
from fleet_venue.models.user import User
from fleet_venue.models.user_session import UserSession
from fleet_venue.models.catalog import (
    VehicleType, AssignmentType, MaintenanceType,
    Service, Equipment, Tasting, LayoutType, CostType, PaymentType,
)
from fleet_venue.models.resource import Resource, ResourceType, ResourceStatus
from fleet_venue.models.vehicle import Vehicle
from fleet_venue.models.driver_license import DriverLicense, LicenseStatus
from fleet_venue.models.booking import BookingStatus
from fleet_venue.models.vehicle_assignment import VehicleAssignment
from fleet_venue.models.trip_log import TripLog
from fleet_venue.models.fuel_load import FuelLoad
from fleet_venue.models.maintenance_record import MaintenanceRecord
from fleet_venue.models.room import Room
from fleet_venue.models.room_config import (
    RoomCapacity, RoomCost, RoomOfferedService, RoomOfferedEquipment, RoomOfferedTasting,
)
from fleet_venue.models.reservation import (
    RequesterType, ExternalRequester, RoomReservation,
    ServiceSelection, EquipmentSelection, TastingSelection,
)
from fleet_venue.models.payment import Payment
from fleet_venue.models.audit_log import AuditLog, BookingChangeAudit

__all__ = [
    "Role", "RoleName",
    "Department",
    "Employee",
    "Module", "ModuleCode", "user_modules",
    "User",
    "UserSession",
    "VehicleType", "AssignmentType", "MaintenanceType",
    "Service", "Equipment", "Tasting", "LayoutType", "CostType", "PaymentType",
    "Resource", "ResourceType", "ResourceStatus",
    "Vehicle",
    "DriverLicense", "LicenseStatus",
    "BookingStatus",
    "VehicleAssignment",
    "TripLog",
    "FuelLoad",
    "MaintenanceRecord",
    "Room",
    "RoomCapacity", "RoomCost", "RoomOfferedService", "RoomOfferedEquipment", "RoomOfferedTasting",
    "RequesterType", "ExternalRequester", "RoomReservation",
    "ServiceSelection", "EquipmentSelection", "TastingSelection",
    "Payment",
    "AuditLog", "BookingChangeAudit",
]
