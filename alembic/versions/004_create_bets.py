"""004: create bets table

Revision ID: 004
Revises: 003
Create Date: 2026-09-28
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE bets (
            id                  BIGSERIAL       PRIMARY KEY,
            distribution_id     VARCHAR(64)     NOT NULL,
            user_id             VARCHAR(64)     NOT NULL,
            ledger_user_id      VARCHAR(64)     NOT NULL,
            account_id          BIGINT          NOT NULL REFERENCES book_accounts (id),
            match_id            VARCHAR(64)     NOT NULL,
            market_category     VARCHAR(16)     NOT NULL,
            market_scope        VARCHAR(8)      NOT NULL,
            market_side         VARCHAR(8)      NOT NULL,
            market_line         VARCHAR(32),
            spread_gid          VARCHAR(64),
            stake               BIGINT          NOT NULL,
            odds                NUMERIC(8, 3)   NOT NULL,
            odds_source         VARCHAR(20)     NOT NULL,
            single_limit        BIGINT,
            status              VARCHAR(10)     NOT NULL DEFAULT 'pending',
            placement_id        VARCHAR(64),
            result              VARCHAR(8),
            score               VARCHAR(32),
            payout              BIGINT,
            profit_loss         BIGINT,
            error_message       VARCHAR(500),
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            settled_at          TIMESTAMPTZ,
            CONSTRAINT ck_bets_stake_positive   CHECK (stake > 0),
            CONSTRAINT ck_bets_odds_positive    CHECK (odds > 0),
            CONSTRAINT ck_bets_category CHECK (
                market_category IN ('moneyline', 'handicap', 'overunder')
            ),
            CONSTRAINT ck_bets_scope    CHECK (market_scope IN ('full', 'half')),
            CONSTRAINT ck_bets_side     CHECK (
                market_side IN ('home', 'away', 'draw', 'over', 'under')
            ),
            CONSTRAINT ck_bets_status   CHECK (
                status IN ('pending', 'confirmed', 'settled', 'cancelled')
            ),
            CONSTRAINT ck_bets_result   CHECK (
                result IS NULL OR result IN ('win', 'lose', 'draw', 'void')
            ),
            CONSTRAINT ck_bets_odds_source CHECK (
                odds_source IN ('preview', 'cache_fallback')
            ),
            CONSTRAINT ck_bets_confirmed_has_placement CHECK (
                status <> 'confirmed' OR placement_id IS NOT NULL
            )
        );
    """)
    op.execute("CREATE INDEX idx_bets_account_time ON bets (account_id, created_at DESC);")
    op.execute("CREATE INDEX idx_bets_match ON bets (match_id, status);")
    op.execute("CREATE INDEX idx_bets_distribution ON bets (distribution_id);")
    op.execute("CREATE INDEX idx_bets_user ON bets (user_id, id DESC);")
    op.execute("CREATE INDEX idx_bets_ledger_user ON bets (ledger_user_id, id DESC);")
    op.execute("""
        CREATE INDEX idx_bets_open
        ON bets (account_id, id)
        WHERE status IN ('pending', 'confirmed');
    """)
    op.execute("""
        CREATE TRIGGER trg_bets_updated_at
            BEFORE UPDATE ON bets
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON TABLE bets IS '注单: 每个账号一笔; distribution_id 相同者构成一张票';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS bets CASCADE;")
