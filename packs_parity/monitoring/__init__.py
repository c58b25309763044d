"""Monitoring and telemetry for parity runs."""

from packs_parity.monitoring.metrics import ParityMetricsPublisher

__all__ = ["ParityMetricsPublisher"]
