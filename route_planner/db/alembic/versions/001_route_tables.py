"""Route tables

Revision ID: 001
Revises:
Create Date: 2026-10-19

Creates route, route_day and route_point with the uniqueness rules
the engine relies on:
- (user_id, name, is_archived) per route
- (route_id, day_number) per day
- (day_id, order_index) and (day_id, poi_id) per point
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create route tables."""
    op.create_table(
        "route",
        sa.Column("route_id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.String(500), nullable=True),
        sa.Column("city_id", sa.BigInteger(), nullable=False),
        sa.Column("transport_mode", sa.String(16), nullable=False),
        sa.Column("is_archived", sa.Boolean(), nullable=False),
        sa.Column("is_optimized", sa.Boolean(), nullable=False),
        sa.Column("optimization_mode", sa.String(16), nullable=True),
        sa.Column("distance_km", sa.Float(), nullable=False),
        sa.Column("duration_min", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("user_id", "name", "is_archived", name="uq_route_user_name_archived"),
    )
    op.create_index("idx_route_user_archived", "route", ["user_id", "is_archived", "created_at"])
    op.create_index("idx_route_user_city", "route", ["user_id", "city_id"])

    op.create_table(
        "route_day",
        sa.Column("day_id", sa.Uuid(), primary_key=True),
        sa.Column("route_id", sa.Uuid(), nullable=False),
        sa.Column("day_number", sa.SmallInteger(), nullable=False),
        sa.Column("planned_start", sa.DateTime(timezone=True), nullable=True),
        sa.Column("planned_end", sa.DateTime(timezone=True), nullable=True),
        sa.Column("description", sa.String(500), nullable=True),
        sa.Column("distance_km", sa.Float(), nullable=False),
        sa.Column("duration_min", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["route_id"], ["route.route_id"], ondelete="CASCADE"),
        sa.UniqueConstraint("route_id", "day_number", name="uq_route_day_number"),
    )

    op.create_table(
        "route_point",
        sa.Column("point_id", sa.Uuid(), primary_key=True),
        sa.Column("day_id", sa.Uuid(), nullable=False),
        sa.Column("order_index", sa.SmallInteger(), nullable=False),
        sa.Column("poi_id", sa.BigInteger(), nullable=False),
        sa.Column("estimated_duration_min", sa.Integer(), nullable=True),
        sa.Column("poi_name", sa.Text(), nullable=True),
        sa.Column("poi_address", sa.Text(), nullable=True),
        sa.Column("poi_lat", sa.Float(), nullable=True),
        sa.Column("poi_lon", sa.Float(), nullable=True),
        sa.Column("poi_category", sa.String(64), nullable=True),
        sa.Column("poi_rating", sa.Float(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["day_id"], ["route_day.day_id"], ondelete="CASCADE"),
        sa.UniqueConstraint("day_id", "order_index", name="uq_route_point_order"),
        sa.UniqueConstraint("day_id", "poi_id", name="uq_route_point_poi"),
    )
    op.create_index("idx_route_point_poi", "route_point", ["poi_id"])


def downgrade() -> None:
    """Drop route tables."""
    op.drop_index("idx_route_point_poi", table_name="route_point")
    op.drop_table("route_point")
    op.drop_table("route_day")
    op.drop_index("idx_route_user_city", table_name="route")
    op.drop_index("idx_route_user_archived", table_name="route")
    op.drop_table("route")
