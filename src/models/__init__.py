# Import all models so SQLAlchemy metadata is populated for Alembic autogenerate
from src.models.audit import WorkflowAuditEvent
from src.models.delivery import Delivery
from src.models.delivery_agency import DeliveryAgency
from src.models.delivery_job import DeliveryJob
from src.models.delivery_job_log import DeliveryJobLog
from src.models.dispute import Dispute
from src.models.enums import (
    ActorType,
    DeliveryJobStatus,
    DisputeStatus,
    KycDocumentType,
    KycStatus,
    LegacyDeliveryStatus,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    UserRole,
    VendorApplicationStatus,
    VendorApplicationType,
)
from src.models.kyc_submission import KycSubmission
from src.models.order import Order
from src.models.order_item import OrderItem
from src.models.payment import Payment
from src.models.product import Product
from src.models.rider_profile import RiderProfile
from src.models.user import User
from src.models.vendor_application import VendorApplication
from src.models.vendor_profile import VendorProfile

__all__ = [
    "ActorType",
    "Delivery",
    "DeliveryAgency",
    "DeliveryJob",
    "DeliveryJobLog",
    "DeliveryJobStatus",
    "Dispute",
    "DisputeStatus",
    "KycDocumentType",
    "KycStatus",
    "KycSubmission",
    "LegacyDeliveryStatus",
    "Order",
    "OrderItem",
    "OrderStatus",
    "Payment",
    "PaymentMethod",
    "PaymentStatus",
    "Product",
    "RiderProfile",
    "User",
    "UserRole",
    "VendorApplication",
    "VendorApplicationStatus",
    "VendorApplicationType",
    "VendorProfile",
    "WorkflowAuditEvent",
]
