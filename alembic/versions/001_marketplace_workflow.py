"""Marketplace workflow schema

Revision ID: 001
Revises: None
Create Date: 2026-10-16

Creates: users, vendor_profiles, rider_profiles, products, orders,
order_items, payments, delivery_agencies, delivery_jobs, delivery_job_logs,
deliveries, disputes, kyc_submissions, vendor_applications,
workflow_audit_events
Enums: userrole, orderstatus, paymentmethod, paymentstatus,
deliveryjobstatus, legacydeliverystatus, actortype, kycstatus,
kycdocumenttype, vendorapplicationtype, vendorapplicationstatus
"""

from collections.abc import Sequence

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


_ENUMS: dict[str, tuple[str, ...]] = {
    "userrole": ("CUSTOMER", "VENDOR", "RIDER", "DELIVERY_AGENCY", "ADMIN"),
    "orderstatus": (
        "PENDING", "CONFIRMED", "IN_TRANSIT", "DELIVERED", "COMPLETED", "CANCELLED",
    ),
    "paymentmethod": ("COD", "MTN_MOBILE_MONEY", "ORANGE_MONEY"),
    "paymentstatus": ("INITIATED", "SUCCESS", "FAILED", "REFUNDED"),
    "deliveryjobstatus": ("OPEN", "ACCEPTED", "DELIVERED", "CANCELLED"),
    "legacydeliverystatus": (
        "SEARCHING_RIDER", "ASSIGNED", "PICKED_UP", "ON_THE_WAY", "DELIVERED", "CANCELLED",
    ),
    "actortype": ("ADMIN", "SYSTEM", "AGENCY", "VENDOR", "CUSTOMER"),
    "kycstatus": ("PENDING", "APPROVED", "REJECTED"),
    "kycdocumenttype": ("ID_CARD", "PASSPORT", "TAXPAYER_DOC", "BUSINESS_LICENSE"),
    "vendorapplicationtype": ("INDIVIDUAL", "BUSINESS"),
    "vendorapplicationstatus": (
        "DRAFT", "PENDING_KYC_REVIEW", "PENDING_MANUAL_VERIFICATION", "APPROVED", "REJECTED",
    ),
}

_APPEND_ONLY_TABLES = ("delivery_job_logs", "workflow_audit_events")


def upgrade() -> None:
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto";')

    # ── 1. Create enum types ──────────────────────────────────────────────
    for name, values in _ENUMS.items():
        labels = ", ".join(f"'{v}'" for v in values)
        op.execute(f"CREATE TYPE {name} AS ENUM ({labels});")

    # ── 2. Parties ─────────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE users (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            email VARCHAR(255) UNIQUE,
            phone VARCHAR(20) NOT NULL UNIQUE,
            name VARCHAR(200) NOT NULL,
            role userrole NOT NULL DEFAULT 'CUSTOMER',
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)
    op.execute("CREATE INDEX ix_users_role ON users (role);")

    op.execute("""
        CREATE TABLE vendor_profiles (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id UUID NOT NULL UNIQUE REFERENCES users(id) ON DELETE CASCADE,
            business_name VARCHAR(255) NOT NULL,
            business_address TEXT NOT NULL DEFAULT '',
            kyc_status kycstatus NOT NULL DEFAULT 'PENDING',
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)

    op.execute("""
        CREATE TABLE rider_profiles (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id UUID NOT NULL UNIQUE REFERENCES users(id) ON DELETE CASCADE,
            kyc_status kycstatus NOT NULL DEFAULT 'PENDING',
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)

    op.execute("""
        CREATE TABLE delivery_agencies (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id UUID UNIQUE REFERENCES users(id) ON DELETE SET NULL,
            name VARCHAR(200) NOT NULL,
            phone VARCHAR(20) NOT NULL,
            email VARCHAR(255),
            address TEXT,
            cities_covered VARCHAR(100)[] NOT NULL DEFAULT '{}',
            is_active BOOLEAN NOT NULL DEFAULT true,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)
    op.execute("CREATE INDEX ix_delivery_agencies_is_active ON delivery_agencies (is_active);")

    # ── 3. Catalogue and orders ───────────────────────────────────────────
    op.execute("""
        CREATE TABLE products (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            name VARCHAR(255) NOT NULL,
            vendor_profile_id UUID NOT NULL REFERENCES vendor_profiles(id) ON DELETE CASCADE,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)
    op.execute("CREATE INDEX ix_products_vendor_profile_id ON products (vendor_profile_id);")

    op.execute("""
        CREATE TABLE orders (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            customer_id UUID NOT NULL REFERENCES users(id) ON DELETE RESTRICT,
            status orderstatus NOT NULL DEFAULT 'PENDING',
            total_amount NUMERIC(15, 2) NOT NULL,
            delivery_fee NUMERIC(15, 2) NOT NULL DEFAULT 0,
            currency VARCHAR(3) NOT NULL DEFAULT 'XAF',

            -- Delivery details
            delivery_address TEXT NOT NULL,
            delivery_phone VARCHAR(20) NOT NULL,

            -- Per-transition timestamps
            confirmed_at TIMESTAMPTZ,
            in_transit_at TIMESTAMPTZ,
            delivered_at TIMESTAMPTZ,
            cancelled_at TIMESTAMPTZ,

            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)
    op.execute("CREATE INDEX ix_orders_customer_id ON orders (customer_id);")
    op.execute("CREATE INDEX ix_orders_status ON orders (status);")

    op.execute("""
        CREATE TABLE order_items (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            order_id UUID NOT NULL REFERENCES orders(id) ON DELETE CASCADE,
            product_id UUID NOT NULL REFERENCES products(id) ON DELETE RESTRICT,
            quantity INTEGER NOT NULL,
            unit_price NUMERIC(15, 2) NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)
    op.execute("CREATE INDEX ix_order_items_order_id ON order_items (order_id);")

    op.execute("""
        CREATE TABLE payments (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            order_id UUID NOT NULL REFERENCES orders(id) ON DELETE CASCADE,
            amount NUMERIC(15, 2) NOT NULL,
            payment_method paymentmethod NOT NULL,
            status paymentstatus NOT NULL DEFAULT 'INITIATED',
            transaction_id VARCHAR(100),
            paid_at TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)
    op.execute("CREATE INDEX ix_payments_order_id ON payments (order_id);")
    op.execute("CREATE INDEX ix_payments_status ON payments (status);")

    # ── 4. Delivery jobs ──────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE delivery_jobs (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            order_id UUID NOT NULL UNIQUE REFERENCES orders(id) ON DELETE CASCADE,
            agency_id UUID REFERENCES delivery_agencies(id) ON DELETE SET NULL,
            status deliveryjobstatus NOT NULL DEFAULT 'OPEN',
            pickup_address TEXT NOT NULL,
            pickup_city VARCHAR(100) NOT NULL,
            dropoff_address TEXT NOT NULL,
            dropoff_city VARCHAR(100) NOT NULL,
            fee NUMERIC(15, 2),
            accepted_at TIMESTAMPTZ,
            delivered_at TIMESTAMPTZ,
            cancelled_at TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)
    op.execute("CREATE INDEX ix_delivery_jobs_status ON delivery_jobs (status);")
    op.execute(
        "CREATE INDEX ix_delivery_jobs_agency_id ON delivery_jobs (agency_id) "
        "WHERE agency_id IS NOT NULL;"
    )
    op.execute("CREATE INDEX ix_delivery_jobs_pickup_city ON delivery_jobs (pickup_city);")
    op.execute("CREATE INDEX ix_delivery_jobs_dropoff_city ON delivery_jobs (dropoff_city);")

    op.execute("""
        CREATE TABLE delivery_job_logs (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            delivery_job_id UUID NOT NULL REFERENCES delivery_jobs(id) ON DELETE CASCADE,
            event VARCHAR(50) NOT NULL,
            previous_status deliveryjobstatus,
            new_status deliveryjobstatus,
            actor_id UUID,
            actor_type actortype NOT NULL,
            actor_name VARCHAR(200),
            notes TEXT,
            metadata TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)
    op.execute(
        "CREATE INDEX ix_delivery_job_logs_delivery_job_id ON delivery_job_logs (delivery_job_id);"
    )
    op.execute("CREATE INDEX ix_delivery_job_logs_created_at ON delivery_job_logs (created_at);")

    # Legacy mirror of job state, written alongside delivery_jobs
    op.execute("""
        CREATE TABLE deliveries (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            order_id UUID NOT NULL UNIQUE REFERENCES orders(id) ON DELETE CASCADE,
            delivery_agency_id UUID REFERENCES delivery_agencies(id) ON DELETE SET NULL,
            status legacydeliverystatus NOT NULL DEFAULT 'SEARCHING_RIDER',
            delivered_at TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)
    op.execute("CREATE INDEX ix_deliveries_status ON deliveries (status);")

    # ── 5. Disputes ───────────────────────────────────────────────────────
    # No status column: OPEN / RESOLVED / REJECTED is derived from resolution
    op.execute("""
        CREATE TABLE disputes (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            order_id UUID NOT NULL UNIQUE REFERENCES orders(id) ON DELETE CASCADE,
            reason VARCHAR(200) NOT NULL,
            description TEXT,
            resolution TEXT,
            resolved_at TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)

    # ── 6. KYC ────────────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE kyc_submissions (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            vendor_profile_id UUID REFERENCES vendor_profiles(id) ON DELETE CASCADE,
            rider_profile_id UUID REFERENCES rider_profiles(id) ON DELETE CASCADE,
            document_type kycdocumenttype NOT NULL,
            document_url VARCHAR(500) NOT NULL,
            status kycstatus NOT NULL DEFAULT 'PENDING',
            reviewed_at TIMESTAMPTZ,
            review_notes TEXT,
            reviewed_by_id UUID REFERENCES users(id) ON DELETE SET NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)
    op.execute("CREATE INDEX ix_kyc_submissions_status ON kyc_submissions (status);")

    op.execute("""
        CREATE TABLE vendor_applications (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            type vendorapplicationtype NOT NULL,
            status vendorapplicationstatus NOT NULL DEFAULT 'DRAFT',

            -- Business applicants
            business_name VARCHAR(255),
            business_address TEXT,
            business_phone VARCHAR(20),
            business_email VARCHAR(255),

            -- Individual applicants
            full_name_on_id VARCHAR(255),
            location VARCHAR(255),
            phone_normalized VARCHAR(20),

            -- Review
            reviewed_at TIMESTAMPTZ,
            review_notes TEXT,
            reviewed_by_id UUID REFERENCES users(id) ON DELETE SET NULL,

            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)
    op.execute("CREATE INDEX ix_vendor_applications_status ON vendor_applications (status);")
    op.execute("CREATE INDEX ix_vendor_applications_user_id ON vendor_applications (user_id);")

    # ── 7. Audit ──────────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE workflow_audit_events (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            entity_type VARCHAR(50) NOT NULL,
            entity_id UUID NOT NULL,
            event VARCHAR(50) NOT NULL,
            previous_status VARCHAR(50),
            new_status VARCHAR(50),
            actor_id UUID,
            actor_type actortype NOT NULL,
            notes TEXT,
            metadata TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)
    op.execute(
        "CREATE INDEX ix_workflow_audit_events_entity "
        "ON workflow_audit_events (entity_type, entity_id);"
    )
    op.execute(
        "CREATE INDEX ix_workflow_audit_events_created_at ON workflow_audit_events (created_at);"
    )

    # ── 8. Append-only guard on audit tables ──────────────────────────────
    op.execute("""
        CREATE OR REPLACE FUNCTION reject_audit_mutation()
        RETURNS TRIGGER AS $$
        BEGIN
            RAISE EXCEPTION '% is append-only', TG_TABLE_NAME;
        END;
        $$ LANGUAGE plpgsql;
    """)
    for table in _APPEND_ONLY_TABLES:
        op.execute(f"""
            CREATE TRIGGER trg_{table}_append_only
            BEFORE UPDATE OR DELETE ON {table}
            FOR EACH ROW EXECUTE FUNCTION reject_audit_mutation();
        """)


def downgrade() -> None:
    for table in _APPEND_ONLY_TABLES:
        op.execute(f"DROP TRIGGER IF EXISTS trg_{table}_append_only ON {table};")
    op.execute("DROP FUNCTION IF EXISTS reject_audit_mutation();")

    for table in (
        "workflow_audit_events",
        "vendor_applications",
        "kyc_submissions",
        "disputes",
        "deliveries",
        "delivery_job_logs",
        "delivery_jobs",
        "payments",
        "order_items",
        "orders",
        "products",
        "delivery_agencies",
        "rider_profiles",
        "vendor_profiles",
        "users",
    ):
        op.execute(f"DROP TABLE IF EXISTS {table};")

    for name in reversed(list(_ENUMS)):
        op.execute(f"DROP TYPE IF EXISTS {name};")
