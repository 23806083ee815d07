"""cache and portfolio tables

Revision ID: 0001
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "stock_quote_cache",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("symbol", sa.String(32), nullable=False),
        sa.Column("quote", sa.JSON, nullable=False),
        sa.Column("last_updated", sa.DateTime(timezone=True), nullable=False),
        sa.Column("cache_date", sa.Date, nullable=False),
    )
    op.create_index("ux_stock_quote_cache_symbol", "stock_quote_cache", ["symbol"], unique=True)
    op.create_index("ix_stock_quote_cache_last_updated", "stock_quote_cache", ["last_updated"])
    op.create_index("ix_stock_quote_cache_cache_date", "stock_quote_cache", ["cache_date"])

    op.create_table(
        "stock_search_cache",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("query", sa.String(255), nullable=False),
        sa.Column("results", sa.JSON, nullable=False),
        sa.Column("last_updated", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ux_stock_search_cache_query", "stock_search_cache", ["query"], unique=True)
    op.create_index("ix_stock_search_cache_last_updated", "stock_search_cache", ["last_updated"])

    op.create_table(
        "portfolio_holdings",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("symbol", sa.String(32), nullable=False),
        sa.Column("company_name", sa.String(255), nullable=False),
        sa.Column("added_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("user_id", "symbol", name="uq_portfolio_holdings_user_symbol"),
    )
    op.create_index("ix_portfolio_holdings_user_id", "portfolio_holdings", ["user_id"])


def downgrade():
    op.drop_table("portfolio_holdings")
    op.drop_table("stock_search_cache")
    op.drop_table("stock_quote_cache")
