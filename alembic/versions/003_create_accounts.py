"""003: create accounts table

Revision ID: 003
Revises: 002
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE accounts (
            id              BIGSERIAL   PRIMARY KEY,
            owner_id        UUID        NOT NULL,
            balance_cents   BIGINT      NOT NULL DEFAULT 0,
            currency        VARCHAR(3)  NOT NULL,
            status          VARCHAR(10) NOT NULL DEFAULT 'ACTIVE',
            created_at      TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT fk_accounts_owner FOREIGN KEY (owner_id) REFERENCES users (id),
            CONSTRAINT ck_accounts_balance_gte_0 CHECK (balance_cents >= 0),
            CONSTRAINT ck_accounts_currency CHECK (currency IN ('USD', 'EUR', 'GBP', 'CAD', 'BDT')),
            CONSTRAINT ck_accounts_status CHECK (status IN ('ACTIVE', 'CLOSED'))
        );
    """)
    op.execute("CREATE INDEX idx_accounts_owner ON accounts (owner_id);")
    op.execute("""
        CREATE TRIGGER trg_accounts_updated_at
            BEFORE UPDATE ON accounts
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON TABLE accounts IS 'Balances: all amounts in minor units (cents); never deleted';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS accounts CASCADE;")
