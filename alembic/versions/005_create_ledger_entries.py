"""005: create ledger_entries table

Revision ID: 005
Revises: 004
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE ledger_entries (
            id                  BIGSERIAL   PRIMARY KEY,
            account_id          BIGINT      NOT NULL,
            entry_type          VARCHAR(20) NOT NULL,
            amount_cents        BIGINT      NOT NULL,
            balance_after_cents BIGINT      NOT NULL,
            transfer_id         BIGINT,
            created_at          TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT fk_ledger_account  FOREIGN KEY (account_id)  REFERENCES accounts (id),
            CONSTRAINT fk_ledger_transfer FOREIGN KEY (transfer_id) REFERENCES transfers (id),
            CONSTRAINT ck_ledger_entry_type CHECK (
                entry_type IN ('DEPOSIT', 'WITHDRAWAL', 'TRANSFER_OUT', 'TRANSFER_IN')
            ),
            CONSTRAINT ck_ledger_amount_sign CHECK (
                (entry_type IN ('DEPOSIT', 'TRANSFER_IN') AND amount_cents > 0)
                OR (entry_type IN ('WITHDRAWAL', 'TRANSFER_OUT') AND amount_cents < 0)
            ),
            CONSTRAINT ck_ledger_transfer_link CHECK (
                (entry_type IN ('TRANSFER_OUT', 'TRANSFER_IN')) = (transfer_id IS NOT NULL)
            ),
            CONSTRAINT ck_ledger_balance_gte_0 CHECK (balance_after_cents >= 0)
        );
    """)
    op.execute("CREATE INDEX idx_ledger_account_id ON ledger_entries (account_id, id DESC);")
    op.execute("""
        CREATE INDEX idx_ledger_transfer
        ON ledger_entries (transfer_id)
        WHERE transfer_id IS NOT NULL;
    """)
    op.execute("""
        CREATE TRIGGER trg_ledger_entries_append_only
            BEFORE UPDATE OR DELETE ON ledger_entries
            FOR EACH ROW EXECUTE FUNCTION fn_reject_mutation();
    """)
    op.execute("COMMENT ON TABLE ledger_entries IS 'Ledger: append-only, never updated or deleted; amounts in cents';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS ledger_entries CASCADE;")
