import enum


class UserRole(str, enum.Enum):
    CUSTOMER = "CUSTOMER"
    VENDOR = "VENDOR"
    RIDER = "RIDER"
    DELIVERY_AGENCY = "DELIVERY_AGENCY"
    ADMIN = "ADMIN"


class OrderStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    IN_TRANSIT = "IN_TRANSIT"
    DELIVERED = "DELIVERED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class PaymentMethod(str, enum.Enum):
    COD = "COD"
    MTN_MOBILE_MONEY = "MTN_MOBILE_MONEY"
    ORANGE_MONEY = "ORANGE_MONEY"


class PaymentStatus(str, enum.Enum):
    INITIATED = "INITIATED"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class DeliveryJobStatus(str, enum.Enum):
    OPEN = "OPEN"
    ACCEPTED = "ACCEPTED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class LegacyDeliveryStatus(str, enum.Enum):
    SEARCHING_RIDER = "SEARCHING_RIDER"
    ASSIGNED = "ASSIGNED"
    PICKED_UP = "PICKED_UP"
    ON_THE_WAY = "ON_THE_WAY"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class ActorType(str, enum.Enum):
    ADMIN = "ADMIN"
    SYSTEM = "SYSTEM"
    AGENCY = "AGENCY"
    VENDOR = "VENDOR"
    CUSTOMER = "CUSTOMER"


class DisputeStatus(str, enum.Enum):
    """Derived from ``Dispute.resolution``; never stored."""

    OPEN = "OPEN"
    RESOLVED = "RESOLVED"
    REJECTED = "REJECTED"


class KycStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class KycDocumentType(str, enum.Enum):
    ID_CARD = "ID_CARD"
    PASSPORT = "PASSPORT"
    TAXPAYER_DOC = "TAXPAYER_DOC"
    BUSINESS_LICENSE = "BUSINESS_LICENSE"


class VendorApplicationType(str, enum.Enum):
    INDIVIDUAL = "INDIVIDUAL"
    BUSINESS = "BUSINESS"


class VendorApplicationStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    PENDING_KYC_REVIEW = "PENDING_KYC_REVIEW"
    PENDING_MANUAL_VERIFICATION = "PENDING_MANUAL_VERIFICATION"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
