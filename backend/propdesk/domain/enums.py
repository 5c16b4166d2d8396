# backend/propdesk/domain/enums.py
from __future__ import annotations

from enum import Enum


class UserRole(str, Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    ORG_ADMIN = "ORG_ADMIN"
    ENTITY_MANAGER = "ENTITY_MANAGER"
    PROPERTY_MANAGER = "PROPERTY_MANAGER"
    ACCOUNTANT = "ACCOUNTANT"
    MAINTENANCE = "MAINTENANCE"
    TENANT = "TENANT"


class PropertyType(str, Enum):
    RESIDENTIAL = "RESIDENTIAL"
    COMMERCIAL = "COMMERCIAL"
    MIXED_USE = "MIXED_USE"
    INDUSTRIAL = "INDUSTRIAL"
    RETAIL = "RETAIL"
    OFFICE = "OFFICE"
    WAREHOUSE = "WAREHOUSE"
    LAND = "LAND"


class SpaceType(str, Enum):
    UNIT = "UNIT"
    APARTMENT = "APARTMENT"
    OFFICE = "OFFICE"
    RETAIL = "RETAIL"
    WAREHOUSE = "WAREHOUSE"
    PARKING = "PARKING"
    STORAGE = "STORAGE"
    COMMON_AREA = "COMMON_AREA"
    AMENITY = "AMENITY"
    OTHER = "OTHER"


class LeaseStatus(str, Enum):
    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"
    TERMINATED = "TERMINATED"
    RENEWED = "RENEWED"


class InvoiceStatus(str, Enum):
    DRAFT = "DRAFT"
    SENT = "SENT"
    PAID = "PAID"
    OVERDUE = "OVERDUE"
    CANCELLED = "CANCELLED"


class InvoiceType(str, Enum):
    RENT = "RENT"
    UTILITIES = "UTILITIES"
    NNN = "NNN"
    LATE_FEE = "LATE_FEE"
    MAINTENANCE = "MAINTENANCE"
    OTHER = "OTHER"


class PaymentMethod(str, Enum):
    CASH = "CASH"
    CHECK = "CHECK"
    CREDIT_CARD = "CREDIT_CARD"
    BANK_TRANSFER = "BANK_TRANSFER"
    ONLINE = "ONLINE"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class ExpenseType(str, Enum):
    MAINTENANCE = "MAINTENANCE"
    UTILITIES = "UTILITIES"
    INSURANCE = "INSURANCE"
    TAXES = "TAXES"
    MANAGEMENT = "MANAGEMENT"
    REPAIRS = "REPAIRS"
    LANDSCAPING = "LANDSCAPING"
    CLEANING = "CLEANING"
    OTHER = "OTHER"


class MaintenanceStatus(str, Enum):
    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class MaintenancePriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    EMERGENCY = "EMERGENCY"


class AssignmentStatus(str, Enum):
    ASSIGNED = "ASSIGNED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
