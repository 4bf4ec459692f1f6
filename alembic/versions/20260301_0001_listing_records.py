"""Create off-chain listing records table, temp id sequence, and on-chain id index."""

from __future__ import annotations

from alembic import op

# revision identifiers, used by Alembic.
revision = "20260301_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """
    Apply listing records storage schema.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        `on_chain_id` is a uint256 on the ledger and is stored as NUMERIC(78, 0).
    Raises:
        Exception: Postgres execution errors from Alembic runtime.
    Side Effects:
        Creates sequence, table, constraints, and unique index.
    """
    op.execute("CREATE SEQUENCE IF NOT EXISTS listing_records_temp_id_seq START WITH 1")
    op.execute(
        """
        CREATE TABLE IF NOT EXISTS listing_records (
            temp_id BIGINT PRIMARY KEY,
            project_name TEXT NOT NULL,
            quantity INTEGER NOT NULL,
            price_eth TEXT NOT NULL,
            price_minor_units NUMERIC(20, 0) NOT NULL,
            collateral_eth TEXT NOT NULL,
            mint_date BIGINT NOT NULL,
            seller TEXT NOT NULL,
            created_at TIMESTAMPTZ NOT NULL,
            on_chain_id NUMERIC(78, 0) NULL,
            tx_hash TEXT NULL,
            linked BOOLEAN NOT NULL DEFAULT FALSE,
            id_source TEXT NULL,
            pending_tx_hash TEXT NULL,
            linked_at TIMESTAMPTZ NULL,
            CONSTRAINT listing_records_quantity_chk CHECK (quantity > 0),
            CONSTRAINT listing_records_price_chk CHECK (price_minor_units > 0),
            CONSTRAINT listing_records_id_source_chk
                CHECK (id_source IS NULL OR id_source IN ('event', 'fallback')),
            CONSTRAINT listing_records_link_chk
                CHECK (
                    (linked = FALSE AND on_chain_id IS NULL AND id_source IS NULL)
                    OR (linked = TRUE AND on_chain_id > 0 AND id_source IS NOT NULL)
                )
        )
        """
    )
    op.execute(
        """
        CREATE UNIQUE INDEX IF NOT EXISTS listing_records_on_chain_id_uq
        ON listing_records (on_chain_id)
        WHERE on_chain_id IS NOT NULL
        """
    )


def downgrade() -> None:
    op.execute("DROP INDEX IF EXISTS listing_records_on_chain_id_uq")
    op.execute("DROP TABLE IF EXISTS listing_records")
    op.execute("DROP SEQUENCE IF EXISTS listing_records_temp_id_seq")
