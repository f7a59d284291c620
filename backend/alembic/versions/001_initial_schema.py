"""initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-18

Creates the sensors, sensor_readings, sensor_thresholds and sensor_alerts
tables with all CHECK constraints, unique constraints, indexes, and foreign
keys matching greenpulse/models.py.
"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

SENSOR_TYPES = "'temperature','humidity','soil_moisture','ph','npk','light'"


def upgrade() -> None:
    # --- sensors ---
    op.create_table(
        "sensors",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Text, nullable=False),
        sa.Column("device_id", sa.Text, nullable=False),
        sa.Column("sensor_name", sa.Text, nullable=False),
        sa.Column("sensor_type", sa.Text, nullable=False),
        sa.Column("location", sa.Text, nullable=False, server_default=sa.text("'Unknown'")),
        sa.Column("status", sa.Text, nullable=False, server_default=sa.text("'active'")),
        sa.Column("created_at", sa.Text, nullable=False),
        sa.Column("updated_at", sa.Text, nullable=False),
        sa.CheckConstraint(
            f"sensor_type IN ({SENSOR_TYPES},'multi-sensor')", name="ck_sensor_type"
        ),
        sa.CheckConstraint(
            "status IN ('active', 'inactive', 'error')", name="ck_sensor_status"
        ),
        sa.CheckConstraint(
            "LENGTH(device_id) BETWEEN 1 AND 128", name="ck_sensor_device_id_length"
        ),
        sa.CheckConstraint(
            "LENGTH(sensor_name) BETWEEN 1 AND 128", name="ck_sensor_name_length"
        ),
        sa.UniqueConstraint("device_id", "user_id", name="uq_sensors_device_owner"),
    )
    op.create_index("idx_sensors_user", "sensors", ["user_id", sa.text("created_at DESC")])

    # --- sensor_readings ---
    op.create_table(
        "sensor_readings",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "sensor_id",
            sa.Integer,
            sa.ForeignKey("sensors.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.Text, nullable=False),
        sa.Column("recorded_at", sa.Text, nullable=False),
        sa.Column("ingested_at", sa.Text, nullable=False),
        sa.Column("temperature", sa.REAL, nullable=True),
        sa.Column("humidity", sa.REAL, nullable=True),
        sa.Column("soil_moisture", sa.REAL, nullable=True),
        sa.Column("ph_level", sa.REAL, nullable=True),
        sa.Column("nutrients", sa.REAL, nullable=True),
        sa.Column("light_level", sa.REAL, nullable=True),
        sa.CheckConstraint(
            "temperature IS NOT NULL OR humidity IS NOT NULL "
            "OR soil_moisture IS NOT NULL OR ph_level IS NOT NULL "
            "OR nutrients IS NOT NULL OR light_level IS NOT NULL",
            name="ck_reading_has_value",
        ),
    )
    op.create_index(
        "idx_readings_sensor_time",
        "sensor_readings",
        ["sensor_id", sa.text("recorded_at DESC")],
    )
    op.create_index(
        "idx_readings_user_time",
        "sensor_readings",
        ["user_id", sa.text("recorded_at DESC")],
    )

    # --- sensor_thresholds ---
    op.create_table(
        "sensor_thresholds",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Text, nullable=False),
        sa.Column(
            "sensor_id",
            sa.Integer,
            sa.ForeignKey("sensors.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("sensor_type", sa.Text, nullable=False),
        sa.Column("warning_min", sa.REAL, nullable=True),
        sa.Column("warning_max", sa.REAL, nullable=True),
        sa.Column("critical_min", sa.REAL, nullable=True),
        sa.Column("critical_max", sa.REAL, nullable=True),
        sa.Column("created_at", sa.Text, nullable=False),
        sa.Column("updated_at", sa.Text, nullable=False),
        sa.CheckConstraint(
            f"sensor_type IN ({SENSOR_TYPES})", name="ck_threshold_sensor_type"
        ),
        sa.UniqueConstraint(
            "user_id", "sensor_id", "sensor_type", name="uq_thresholds_owner_sensor_type"
        ),
    )

    # --- sensor_alerts ---
    op.create_table(
        "sensor_alerts",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Text, nullable=False),
        sa.Column(
            "sensor_id",
            sa.Integer,
            sa.ForeignKey("sensors.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("sensor_type", sa.Text, nullable=False),
        sa.Column("severity", sa.Text, nullable=False),
        sa.Column("current_value", sa.REAL, nullable=False),
        sa.Column("threshold_value", sa.REAL, nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("is_resolved", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.Text, nullable=False),
        sa.Column("resolved_at", sa.Text, nullable=True),
        sa.CheckConstraint(
            f"sensor_type IN ({SENSOR_TYPES})", name="ck_alert_sensor_type"
        ),
        sa.CheckConstraint(
            "severity IN ('critical', 'warning', 'info')", name="ck_alert_severity"
        ),
        sa.CheckConstraint(
            "LENGTH(message) BETWEEN 1 AND 256", name="ck_alert_message_length"
        ),
        sa.CheckConstraint("is_resolved IN (0, 1)", name="ck_alert_is_resolved"),
    )
    op.create_index(
        "uq_alerts_open",
        "sensor_alerts",
        ["user_id", "sensor_id", "sensor_type"],
        unique=True,
        sqlite_where=sa.text("is_resolved = 0"),
    )
    op.create_index(
        "idx_alerts_user_time",
        "sensor_alerts",
        ["user_id", "is_resolved", sa.text("created_at DESC")],
    )


def downgrade() -> None:
    op.drop_index("idx_alerts_user_time", table_name="sensor_alerts")
    op.drop_index("uq_alerts_open", table_name="sensor_alerts")
    op.drop_table("sensor_alerts")
    op.drop_table("sensor_thresholds")
    op.drop_index("idx_readings_user_time", table_name="sensor_readings")
    op.drop_index("idx_readings_sensor_time", table_name="sensor_readings")
    op.drop_table("sensor_readings")
    op.drop_index("idx_sensors_user", table_name="sensors")
    op.drop_table("sensors")
