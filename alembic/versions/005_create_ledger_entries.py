"""005: create ledger_entries table

Revision ID: 005
Revises: 004
Create Date: 2026-09-28
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
            id              BIGSERIAL       PRIMARY KEY,
            user_id         VARCHAR(64)     NOT NULL,
            transaction_id  VARCHAR(64)     NOT NULL,
            entry_type      VARCHAR(20)     NOT NULL,
            amount          BIGINT          NOT NULL,
            balance_before  BIGINT          NOT NULL,
            balance_after   BIGINT          NOT NULL,
            account_id      BIGINT          REFERENCES book_accounts (id),
            bet_id          BIGINT          REFERENCES bets (id),
            description     VARCHAR(500),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_ledger_entry_type CHECK (
                entry_type IN (
                    'charge', 'return',
                    'recharge', 'transfer-out', 'transfer-in',
                    'adjustment'
                )
            ),
            CONSTRAINT ck_ledger_amount_nonzero CHECK (amount <> 0),
            CONSTRAINT ck_ledger_balance_chain  CHECK (balance_after = balance_before + amount)
        );
    """)
    op.execute("CREATE INDEX idx_ledger_user_id ON ledger_entries (user_id, id DESC);")
    op.execute("CREATE INDEX idx_ledger_transaction ON ledger_entries (transaction_id);")
    op.execute("""
        CREATE UNIQUE INDEX uq_ledger_bet_return
        ON ledger_entries (bet_id)
        WHERE entry_type = 'return';
    """)
    op.execute("""
        CREATE TRIGGER trg_ledger_entries_append_only
            BEFORE UPDATE OR DELETE ON ledger_entries
            FOR EACH ROW EXECUTE FUNCTION fn_reject_modification();
    """)
    op.execute("COMMENT ON TABLE ledger_entries IS '资金流水: Append-Only, 余额 = SUM(amount), 所有金额单位: 分';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS ledger_entries CASCADE;")
