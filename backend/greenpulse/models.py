"""SQLAlchemy ORM models for GreenPulse."""

from sqlalchemy import (
    REAL,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    Text,
    UniqueConstraint,
    desc,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

_SENSOR_TYPE_SQL = "'temperature','humidity','soil_moisture','ph','npk','light'"


class Base(DeclarativeBase):
    pass


class Sensor(Base):
    __tablename__ = "sensors"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(Text, nullable=False)
    device_id: Mapped[str] = mapped_column(Text, nullable=False)
    sensor_name: Mapped[str] = mapped_column(Text, nullable=False)
    sensor_type: Mapped[str] = mapped_column(Text, nullable=False)
    location: Mapped[str] = mapped_column(
        Text, nullable=False, server_default=text("'Unknown'")
    )
    status: Mapped[str] = mapped_column(
        Text, nullable=False, server_default=text("'active'")
    )
    created_at: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[str] = mapped_column(Text, nullable=False)

    __table_args__ = (
        CheckConstraint(
            f"sensor_type IN ({_SENSOR_TYPE_SQL},'multi-sensor')",
            name="ck_sensor_type",
        ),
        CheckConstraint(
            "status IN ('active', 'inactive', 'error')", name="ck_sensor_status"
        ),
        CheckConstraint(
            "LENGTH(device_id) BETWEEN 1 AND 128", name="ck_sensor_device_id_length"
        ),
        CheckConstraint(
            "LENGTH(sensor_name) BETWEEN 1 AND 128", name="ck_sensor_name_length"
        ),
        UniqueConstraint("device_id", "user_id", name="uq_sensors_device_owner"),
        Index("idx_sensors_user", "user_id", desc("created_at")),
    )


class SensorReading(Base):
    __tablename__ = "sensor_readings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sensor_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("sensors.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(Text, nullable=False)
    recorded_at: Mapped[str] = mapped_column(Text, nullable=False)
    ingested_at: Mapped[str] = mapped_column(Text, nullable=False)
    temperature: Mapped[float | None] = mapped_column(REAL, nullable=True)
    humidity: Mapped[float | None] = mapped_column(REAL, nullable=True)
    soil_moisture: Mapped[float | None] = mapped_column(REAL, nullable=True)
    ph_level: Mapped[float | None] = mapped_column(REAL, nullable=True)
    nutrients: Mapped[float | None] = mapped_column(REAL, nullable=True)
    light_level: Mapped[float | None] = mapped_column(REAL, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "temperature IS NOT NULL OR humidity IS NOT NULL "
            "OR soil_moisture IS NOT NULL OR ph_level IS NOT NULL "
            "OR nutrients IS NOT NULL OR light_level IS NOT NULL",
            name="ck_reading_has_value",
        ),
        Index("idx_readings_sensor_time", "sensor_id", desc("recorded_at")),
        Index("idx_readings_user_time", "user_id", desc("recorded_at")),
    )


class SensorThreshold(Base):
    __tablename__ = "sensor_thresholds"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(Text, nullable=False)
    sensor_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("sensors.id", ondelete="CASCADE"), nullable=False
    )
    sensor_type: Mapped[str] = mapped_column(Text, nullable=False)
    warning_min: Mapped[float | None] = mapped_column(REAL, nullable=True)
    warning_max: Mapped[float | None] = mapped_column(REAL, nullable=True)
    critical_min: Mapped[float | None] = mapped_column(REAL, nullable=True)
    critical_max: Mapped[float | None] = mapped_column(REAL, nullable=True)
    created_at: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[str] = mapped_column(Text, nullable=False)

    __table_args__ = (
        CheckConstraint(
            f"sensor_type IN ({_SENSOR_TYPE_SQL})", name="ck_threshold_sensor_type"
        ),
        UniqueConstraint(
            "user_id", "sensor_id", "sensor_type", name="uq_thresholds_owner_sensor_type"
        ),
    )


class Alert(Base):
    __tablename__ = "sensor_alerts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(Text, nullable=False)
    sensor_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("sensors.id", ondelete="CASCADE"), nullable=False
    )
    sensor_type: Mapped[str] = mapped_column(Text, nullable=False)
    severity: Mapped[str] = mapped_column(Text, nullable=False)
    current_value: Mapped[float] = mapped_column(REAL, nullable=False)
    threshold_value: Mapped[float] = mapped_column(REAL, nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    is_resolved: Mapped[int] = mapped_column(
        Integer, nullable=False, server_default="0"
    )
    created_at: Mapped[str] = mapped_column(Text, nullable=False)
    resolved_at: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint(
            f"sensor_type IN ({_SENSOR_TYPE_SQL})", name="ck_alert_sensor_type"
        ),
        CheckConstraint(
            "severity IN ('critical', 'warning', 'info')", name="ck_alert_severity"
        ),
        CheckConstraint(
            "LENGTH(message) BETWEEN 1 AND 256", name="ck_alert_message_length"
        ),
        CheckConstraint("is_resolved IN (0, 1)", name="ck_alert_is_resolved"),
        # At most one open alert per (owner, sensor, sensor_type)
        Index(
            "uq_alerts_open",
            "user_id",
            "sensor_id",
            "sensor_type",
            unique=True,
            sqlite_where=text("is_resolved = 0"),
        ),
        Index("idx_alerts_user_time", "user_id", "is_resolved", desc("created_at")),
    )
