# src/plugin_test_driver/engine/metrics.py
# Point-in-time snapshots of plugin and engine counters.

"""
MetricsCollector gathers counters on demand. Each snapshot replaces the
previous one; callers that keep results must copy them.

Plugin metrics are reported as `<plugin>.<metric>`. Values are coerced to
unsigned 64-bit integers.
"""

import math
from typing import Union

from plugin_test_driver.engine.inspector import Inspector
from plugin_test_driver.log import get_logger
from plugin_test_driver.models import U64_MAX, MetricRecord


def to_u64(value: Union[int, float, bool]) -> int:
    """Coerce a metric value to u64: ints wrap, floats truncate and saturate."""
    if isinstance(value, float):
        if math.isnan(value) or value <= 0:
            return 0
        if value >= U64_MAX:
            return U64_MAX
        return int(value)
    return int(value) & U64_MAX


class MetricsCollector:
    """Snapshots metrics from every plugin registered with an inspector."""

    def __init__(self, inspector: Inspector, include_engine: bool = False) -> None:
        self.inspector = inspector
        self.include_engine = include_engine
        self._records: list[MetricRecord] = []

    def snapshot(self) -> None:
        records = []
        if self.include_engine:
            stats = self.inspector.stats
            records.extend([
                MetricRecord(name="engine.n_evts", value=stats.n_evts),
                MetricRecord(name="engine.n_timeouts", value=stats.n_timeouts),
                MetricRecord(name="engine.n_parse_errors", value=stats.n_parse_errors),
                MetricRecord(name="engine.n_source_errors", value=stats.n_source_errors),
            ])

        for handle in self.inspector.plugins:
            try:
                metrics = list(handle.instance.get_metrics())
            except Exception as e:
                get_logger().error(f"failed to read metrics: {e}", component=handle.name)
                continue
            for metric in metrics:
                records.append(
                    MetricRecord(name=f"{handle.name}.{metric.name}", value=to_u64(metric.value))
                )
        self._records = records

    def get_metrics(self) -> list[MetricRecord]:
        """Records of the latest snapshot. Overwritten by the next snapshot."""
        return self._records
