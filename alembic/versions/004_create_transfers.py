"""004: create transfers table

Revision ID: 004
Revises: 003
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE transfers (
            id              BIGSERIAL   PRIMARY KEY,
            from_account_id BIGINT      NOT NULL,
            to_account_id   BIGINT      NOT NULL,
            amount_cents    BIGINT      NOT NULL,
            status          VARCHAR(10) NOT NULL DEFAULT 'PENDING',
            created_at      TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT fk_transfers_from FOREIGN KEY (from_account_id) REFERENCES accounts (id),
            CONSTRAINT fk_transfers_to   FOREIGN KEY (to_account_id)   REFERENCES accounts (id),
            CONSTRAINT ck_transfers_amount_gt_0 CHECK (amount_cents > 0),
            CONSTRAINT ck_transfers_distinct_accounts CHECK (from_account_id <> to_account_id),
            CONSTRAINT ck_transfers_status CHECK (status IN ('PENDING', 'COMPLETED'))
        );
    """)
    op.execute("CREATE INDEX idx_transfers_from ON transfers (from_account_id, created_at DESC);")
    op.execute("CREATE INDEX idx_transfers_to ON transfers (to_account_id, created_at DESC);")
    op.execute("""
        CREATE TRIGGER trg_transfers_immutable
            BEFORE UPDATE OR DELETE ON transfers
            FOR EACH ROW EXECUTE FUNCTION fn_reject_mutation();
    """)
    op.execute("COMMENT ON TABLE transfers IS 'Money movements between two accounts: immutable';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS transfers CASCADE;")
