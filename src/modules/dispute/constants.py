"""Dispute module constants."""

AUDIT_ENTITY_DISPUTE = "dispute"

MSG_DISPUTE_ALREADY_CLOSED = "Dispute is already resolved or rejected"
