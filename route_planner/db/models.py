"""SQLAlchemy ORM models for routes, days and points."""

import uuid
from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    SmallInteger,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql import func


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class Route(Base):
    """Route table - one multi-day trip plan per row."""

    __tablename__ = "route"
    __table_args__ = (
        UniqueConstraint("user_id", "name", "is_archived", name="uq_route_user_name_archived"),
        Index("idx_route_user_archived", "user_id", "is_archived", "created_at"),
        Index("idx_route_user_city", "user_id", "city_id"),
    )

    route_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    city_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    transport_mode: Mapped[str] = mapped_column(String(16), nullable=False, default="walk")
    is_archived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_optimized: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    optimization_mode: Mapped[str | None] = mapped_column(String(16), nullable=True)
    distance_km: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    duration_min: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # Relationships
    days: Mapped[list["RouteDay"]] = relationship(
        "RouteDay",
        back_populates="route",
        cascade="all, delete-orphan",
        order_by="RouteDay.day_number",
    )


class RouteDay(Base):
    """Route day table - owned by a route."""

    __tablename__ = "route_day"
    __table_args__ = (UniqueConstraint("route_id", "day_number", name="uq_route_day_number"),)

    day_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    route_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("route.route_id", ondelete="CASCADE"), nullable=False
    )
    day_number: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    planned_start: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    planned_end: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    distance_km: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    duration_min: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Relationships
    route: Mapped["Route"] = relationship("Route", back_populates="days")
    points: Mapped[list["RoutePoint"]] = relationship(
        "RoutePoint",
        back_populates="day",
        cascade="all, delete-orphan",
        order_by="RoutePoint.order_index",
    )


class RoutePoint(Base):
    """Route point table - one POI visit, with its cached display snapshot."""

    __tablename__ = "route_point"
    __table_args__ = (
        UniqueConstraint("day_id", "order_index", name="uq_route_point_order"),
        UniqueConstraint("day_id", "poi_id", name="uq_route_point_poi"),
        Index("idx_route_point_poi", "poi_id"),
    )

    point_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    day_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("route_day.day_id", ondelete="CASCADE"), nullable=False
    )
    order_index: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    poi_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    estimated_duration_min: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Cached POI snapshot
    poi_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    poi_address: Mapped[str | None] = mapped_column(Text, nullable=True)
    poi_lat: Mapped[float | None] = mapped_column(Float, nullable=True)
    poi_lon: Mapped[float | None] = mapped_column(Float, nullable=True)
    poi_category: Mapped[str | None] = mapped_column(String(64), nullable=True)
    poi_rating: Mapped[float | None] = mapped_column(Float, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # Relationships
    day: Mapped["RouteDay"] = relationship("RouteDay", back_populates="points")
