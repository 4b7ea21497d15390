"""KYC review constants."""

from src.models.enums import KycDocumentType, VendorApplicationType

AUDIT_ENTITY_KYC_SUBMISSION = "kyc_submission"
AUDIT_ENTITY_VENDOR_APPLICATION = "vendor_application"

# Business name used when an approved application carries neither a
# business name nor the name printed on the ID
DEFAULT_VENDOR_BUSINESS_NAME = "Vendor"

# Document type shown in the unified queue for vendor applications
APPLICATION_DOCUMENT_TYPES: dict[VendorApplicationType, KycDocumentType] = {
    VendorApplicationType.BUSINESS: KycDocumentType.TAXPAYER_DOC,
    VendorApplicationType.INDIVIDUAL: KycDocumentType.ID_CARD,
}
