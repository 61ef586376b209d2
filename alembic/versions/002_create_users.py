"""002: create users table

Revision ID: 002
Revises: 001
Create Date: 2026-09-28
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE users (
            id              VARCHAR(64)     PRIMARY KEY,
            username        VARCHAR(64)     NOT NULL,
            role            VARCHAR(10)     NOT NULL DEFAULT 'staff',
            agent_id        VARCHAR(64)     REFERENCES users (id),
            is_active       BOOLEAN         NOT NULL DEFAULT TRUE,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_users_username    UNIQUE (username),
            CONSTRAINT ck_users_role        CHECK (role IN ('admin', 'agent', 'staff')),
            CONSTRAINT ck_users_staff_agent CHECK (role <> 'staff' OR agent_id IS NOT NULL)
        );
    """)
    op.execute("CREATE INDEX idx_users_agent ON users (agent_id) WHERE agent_id IS NOT NULL;")
    op.execute("""
        CREATE TRIGGER trg_users_updated_at
            BEFORE UPDATE ON users
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON TABLE users IS '用户目录: 由后台管理维护, 本服务只读';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS users CASCADE;")
