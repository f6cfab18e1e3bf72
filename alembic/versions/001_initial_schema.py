"""001 – Initial schema: employees, attendance, fuel reports, settings, audit.

Revision ID: 001_initial_schema
Revises:
Create Date: 2025-01-06 10:00:00.000000+05:00
"""

from alembic import op

# Revision identifiers
revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


# Reverse dependency order; downgrade drops them in this order
TABLES: list[str] = [
    "audit_trail",
    "system_settings",
    "fuel_report_items",
    "fuel_reports",
    "attendance_records",
    "employees",
]

ENUM_TYPES: list[tuple[str, list[str]]] = [
    ("attendance_status", ["present", "late", "absent"]),
]


# ---------------------------------------------------------------------------
# UPGRADE
# ---------------------------------------------------------------------------


def upgrade() -> None:
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto"')

    for name, values in ENUM_TYPES:
        vals = ", ".join(f"'{v}'" for v in values)
        op.execute(f"CREATE TYPE {name} AS ENUM ({vals})")

    # ── 1. employees ──────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE employees (
            id                  UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            email               VARCHAR(255) NOT NULL UNIQUE,
            full_name           VARCHAR(255) NOT NULL,
            is_active           BOOLEAN NOT NULL DEFAULT TRUE,
            deactivated_at      TIMESTAMPTZ,
            deactivation_reason TEXT,
            created_at          TIMESTAMPTZ DEFAULT NOW(),
            updated_at          TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_employees_is_active ON employees(is_active)")

    # ── 2. attendance_records ─────────────────────────────────────────────
    op.execute("""
        CREATE TABLE attendance_records (
            id             UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            employee_id    UUID NOT NULL REFERENCES employees(id),
            date           DATE NOT NULL,
            check_in_time  TIME,
            check_out_time TIME,
            status         attendance_status NOT NULL DEFAULT 'present',
            notes          TEXT,
            created_by     UUID REFERENCES employees(id),
            created_at     TIMESTAMPTZ DEFAULT NOW(),
            updated_at     TIMESTAMPTZ DEFAULT NOW(),
            CONSTRAINT uq_attendance_emp_date UNIQUE (employee_id, date)
        )
    """)
    op.execute("CREATE INDEX ix_attendance_records_date ON attendance_records(date)")

    # ── 3. fuel_reports ───────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE fuel_reports (
            id           UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            employee_id  UUID NOT NULL REFERENCES employees(id),
            date         DATE NOT NULL,
            total_km     NUMERIC(14, 4) NOT NULL DEFAULT 0,
            total_amount NUMERIC(18, 6) NOT NULL DEFAULT 0,
            created_by   UUID REFERENCES employees(id),
            created_at   TIMESTAMPTZ DEFAULT NOW(),
            updated_at   TIMESTAMPTZ DEFAULT NOW(),
            CONSTRAINT uq_fuel_report_emp_date UNIQUE (employee_id, date)
        )
    """)
    op.execute("CREATE INDEX ix_fuel_reports_date ON fuel_reports(date)")

    # ── 4. fuel_report_items ──────────────────────────────────────────────
    op.execute("""
        CREATE TABLE fuel_report_items (
            id        UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            report_id UUID NOT NULL REFERENCES fuel_reports(id) ON DELETE CASCADE,
            position  INTEGER NOT NULL DEFAULT 0,
            job_no    VARCHAR(100) NOT NULL,
            area      VARCHAR(255) NOT NULL,
            km        NUMERIC(14, 4) NOT NULL CHECK (km >= 0)
        )
    """)
    op.execute("CREATE INDEX ix_fuel_report_items_report ON fuel_report_items(report_id)")

    # ── 5. system_settings ────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE system_settings (
            key         VARCHAR(100) PRIMARY KEY,
            value       TEXT NOT NULL,
            description TEXT,
            updated_at  TIMESTAMPTZ DEFAULT NOW(),
            updated_by  UUID REFERENCES employees(id)
        )
    """)

    # ── 6. audit_trail ────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE audit_trail (
            id          UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            actor_id    UUID REFERENCES employees(id),
            action      VARCHAR(50) NOT NULL,
            entity_type VARCHAR(50) NOT NULL,
            entity_id   VARCHAR(100) NOT NULL,
            old_values  JSONB,
            new_values  JSONB,
            ip_address  INET,
            created_at  TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_audit_trail_entity ON audit_trail(entity_type, entity_id)")
    op.execute("CREATE INDEX ix_audit_trail_created_at ON audit_trail(created_at)")

    # ══════════════════════════════════════════════════════════════════════
    # SEED DATA
    # ══════════════════════════════════════════════════════════════════════

    op.execute("""
        INSERT INTO system_settings (key, value, description) VALUES
        ('FUEL_RATE_PER_KM',  '9',     'Reimbursement per kilometre'),
        ('LATE_ARRIVAL_TIME', '10:15', 'Check-ins after this time (HH:MM) are late')
    """)


# ---------------------------------------------------------------------------
# DOWNGRADE
# ---------------------------------------------------------------------------


def downgrade() -> None:
    for table in TABLES:
        op.execute(f"DROP TABLE IF EXISTS {table} CASCADE")
    for name, _ in reversed(ENUM_TYPES):
        op.execute(f"DROP TYPE IF EXISTS {name}")
