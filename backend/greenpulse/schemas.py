"""Pydantic v2 request/response schemas for the GreenPulse API."""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, Field, model_validator

from greenpulse.sensor_types import AlertSeverity, SensorStatus, SensorType

FiniteFloat = Annotated[float, Field(allow_inf_nan=False)]

DeclaredSensorType = Literal[
    "temperature", "humidity", "soil_moisture", "ph", "npk", "light", "multi-sensor"
]


# --- Ingestion ---


class SingleReadingIn(BaseModel):
    """One value of one sensor type from one device."""

    device_id: str = Field(min_length=1, max_length=128)
    user_id: str = Field(min_length=1, max_length=128)
    sensor_type: SensorType
    value: FiniteFloat
    location: str | None = Field(default=None, max_length=256)
    timestamp: str | None = None


class BatchReadingIn(BaseModel):
    """Several sensor-type values from one device at one instant."""

    device_id: str = Field(min_length=1, max_length=128)
    user_id: str = Field(min_length=1, max_length=128)
    location: str | None = Field(default=None, max_length=256)
    timestamp: str | None = None
    sensors: dict[SensorType, FiniteFloat | None] = Field(min_length=1)


class IngestResponse(BaseModel):
    success: bool = True
    message: str
    device_id: str
    sensor_type: SensorType | None = None


# --- Sensors ---


class SensorCreate(BaseModel):
    user_id: str = Field(min_length=1, max_length=128)
    device_id: str = Field(min_length=1, max_length=128)
    sensor_name: str = Field(min_length=1, max_length=128)
    sensor_type: DeclaredSensorType = "temperature"
    location: str | None = Field(default=None, max_length=256)


class SensorOut(BaseModel):
    id: int
    user_id: str
    device_id: str
    sensor_name: str
    sensor_type: str
    location: str
    status: SensorStatus
    created_at: str
    updated_at: str


class SensorsResponse(BaseModel):
    items: list[SensorOut]
    total: int


# --- Readings ---


class ReadingOut(BaseModel):
    id: int
    sensor_id: int
    recorded_at: str
    temperature: float | None
    humidity: float | None
    soil_moisture: float | None
    ph_level: float | None
    nutrients: float | None
    light_level: float | None


class ReadingsResponse(BaseModel):
    items: list[ReadingOut]
    limit: int


# --- Thresholds ---


class ThresholdIn(BaseModel):
    warning_min: float | None = None
    warning_max: float | None = None
    critical_min: float | None = None
    critical_max: float | None = None

    @model_validator(mode="after")
    def validate_bounds(self) -> "ThresholdIn":
        pairs = [
            ("warning_min", "warning_max"),
            ("critical_min", "critical_max"),
            ("critical_min", "warning_min"),
            ("warning_max", "critical_max"),
        ]
        for lo_name, hi_name in pairs:
            lo, hi = getattr(self, lo_name), getattr(self, hi_name)
            if lo is not None and hi is not None and lo > hi:
                raise ValueError(f"{lo_name} must not exceed {hi_name}")
        return self


class ThresholdOut(BaseModel):
    id: int
    sensor_id: int
    sensor_type: SensorType
    warning_min: float | None
    warning_max: float | None
    critical_min: float | None
    critical_max: float | None
    updated_at: str


class ThresholdsResponse(BaseModel):
    items: list[ThresholdOut]


# --- Alerts ---


class AlertOut(BaseModel):
    id: int
    sensor_id: int
    sensor_type: SensorType
    severity: AlertSeverity
    current_value: float
    threshold_value: float
    message: str
    is_resolved: bool
    created_at: str
    resolved_at: str | None


class AlertsResponse(BaseModel):
    items: list[AlertOut]
    total: int
    limit: int


# --- Dashboard ---


class MetricSummary(BaseModel):
    sensor_type: SensorType
    name: str
    value: str
    latest_value: float | None
    latest_at: str | None
    range: str
    status: Literal["optimal", "warning", "critical", "offline"]
    trend: Literal["up", "down", "stable"]


class DashboardResponse(BaseModel):
    range: Literal["24h", "7d", "30d"]
    sensor_id: int | None
    metrics: list[MetricSummary]
    devices: list[SensorOut]
    alerts: list[AlertOut]


# --- Status ---


class ServiceStatusOut(BaseModel):
    status: Literal["ok", "degraded"]
    database: Literal["ok", "error"]
    sensor_count: int | None
    readings_24h: int | None
    open_alerts: int | None
    uptime_sec: float
