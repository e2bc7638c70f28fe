"""create stock_prices table

Revision ID: 20250301_0001
Revises:
Create Date: 2025-03-01 00:01:00
"""

from alembic import op
import sqlalchemy as sa

from tradedb.db.provision import POSTGRES_TRIGGER_DDL

# revision identifiers, used by Alembic.
revision = "20250301_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "stock_prices",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("symbol", sa.String(length=10), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("change_amount", sa.Numeric(10, 2), nullable=True),
        sa.Column("change_percent", sa.Numeric(5, 2), nullable=True),
        sa.Column("volume", sa.BigInteger(), nullable=True),
        sa.Column("market_cap", sa.BigInteger(), nullable=True),
        sa.Column("last_updated", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_stock_prices"),
        sa.UniqueConstraint("symbol", name="uq_stock_prices_symbol"),
    )
    op.create_index("idx_stock_prices_symbol", "stock_prices", ["symbol"], unique=False)
    op.create_index("idx_stock_prices_last_updated", "stock_prices", ["last_updated"], unique=False)

    if op.get_bind().dialect.name == "postgresql":
        for statement in POSTGRES_TRIGGER_DDL:
            op.execute(statement)


def downgrade():
    if op.get_bind().dialect.name == "postgresql":
        op.execute("DROP TRIGGER IF EXISTS trg_stock_prices_last_updated ON stock_prices")
        op.execute("DROP FUNCTION IF EXISTS touch_stock_prices_last_updated()")
    op.drop_index("idx_stock_prices_last_updated", table_name="stock_prices")
    op.drop_index("idx_stock_prices_symbol", table_name="stock_prices")
    op.drop_table("stock_prices")
