"""Prometheus metrics definitions.

Metrics are defined as module-level singletons so that any module can
import and increment them.
"""

from __future__ import annotations

from prometheus_client import Counter

# --- Ingestion metrics ---
readings_ingested = Counter(
    "greenpulse_readings_ingested_total",
    "Total sensor values persisted by the ingestion endpoint",
    labelnames=["sensor_type"],
)
payloads_rejected = Counter(
    "greenpulse_payloads_rejected_total",
    "Total ingestion payloads rejected before any write",
    labelnames=["reason"],
)

# --- Alerting metrics ---
alerts_fired = Counter(
    "greenpulse_alerts_fired_total",
    "Total threshold alerts opened",
    labelnames=["sensor_type", "severity"],
)
alert_evaluation_failures = Counter(
    "greenpulse_alert_evaluation_failures_total",
    "Total threshold evaluations that raised and were skipped",
    labelnames=["sensor_type"],
)
