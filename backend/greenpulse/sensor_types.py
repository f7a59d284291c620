"""Closed vocabularies shared by ingestion, alerting and the dashboard."""

from enum import StrEnum


class SensorType(StrEnum):
    """Physical quantity reported by a device, as named in ingestion payloads.

    Each member maps onto exactly one sparse column of ``sensor_readings``.
    """

    TEMPERATURE = "temperature"
    HUMIDITY = "humidity"
    SOIL_MOISTURE = "soil_moisture"
    PH = "ph"
    NPK = "npk"
    LIGHT = "light"

    @property
    def column(self) -> str:
        return _READING_COLUMNS[self]

    @property
    def label(self) -> str:
        return _LABELS[self]


_READING_COLUMNS = {
    SensorType.TEMPERATURE: "temperature",
    SensorType.HUMIDITY: "humidity",
    SensorType.SOIL_MOISTURE: "soil_moisture",
    SensorType.PH: "ph_level",
    SensorType.NPK: "nutrients",
    SensorType.LIGHT: "light_level",
}

_LABELS = {
    SensorType.TEMPERATURE: "Temperature",
    SensorType.HUMIDITY: "Humidity",
    SensorType.SOIL_MOISTURE: "Soil Moisture",
    SensorType.PH: "pH Level",
    SensorType.NPK: "Nutrients",
    SensorType.LIGHT: "Light Level",
}

# Declared type of a device that reports several quantities per message
MULTI_SENSOR = "multi-sensor"

READING_COLUMNS: tuple[str, ...] = tuple(_READING_COLUMNS.values())


class AlertSeverity(StrEnum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


class SensorStatus(StrEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    ERROR = "error"
