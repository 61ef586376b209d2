"""003: create book_accounts table

Revision ID: 003
Revises: 002
Create Date: 2026-09-28
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE book_accounts (
            id                  BIGSERIAL       PRIMARY KEY,
            user_id             VARCHAR(64)     NOT NULL REFERENCES users (id),
            agent_id            VARCHAR(64)     REFERENCES users (id),
            username            VARCHAR(64)     NOT NULL,
            original_username   VARCHAR(64),
            line_key            VARCHAR(32),
            stop_profit_limit   BIGINT          NOT NULL DEFAULT 0,
            is_online           BOOLEAN         NOT NULL DEFAULT FALSE,
            is_enabled          BOOLEAN         NOT NULL DEFAULT TRUE,
            status_message      VARCHAR(255),
            proxy_url           VARCHAR(255),
            stake_ceilings      JSONB           NOT NULL DEFAULT '{}'::jsonb,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_book_accounts_username    UNIQUE (username),
            CONSTRAINT ck_book_accounts_stop_profit CHECK (stop_profit_limit >= 0)
        );
    """)
    op.execute("CREATE INDEX idx_book_accounts_agent ON book_accounts (agent_id, is_enabled);")
    op.execute("CREATE INDEX idx_book_accounts_line_key ON book_accounts (line_key);")
    op.execute("""
        CREATE TRIGGER trg_book_accounts_updated_at
            BEFORE UPDATE ON book_accounts
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute(
        "COMMENT ON COLUMN book_accounts.line_key IS "
        "'同源线路: 共享上游来源的账号视为同一投注人; NULL 时由用户名前缀推导';"
    )
    op.execute(
        "COMMENT ON COLUMN book_accounts.stake_ceilings IS "
        "'单注上限 (分): {\"football\": {\"prematch\": 500000, \"live\": 300000}}';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS book_accounts CASCADE;")
