"""
Parity run metrics.

Publishes the totals of a parity run to CloudWatch so the success ratio can
be tracked across runs while the experimental producer converges.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

import boto3

from packs_parity.comparison.diff_reporter import RunSummary


class ParityMetricsPublisher:
    """
    Publishes parity run metrics to CloudWatch.

    - files_compared / successes / failures / errors / skipped counts
    - success_percentage
    - run_duration_ms
    """

    NAMESPACE = "packs-parity/comparison"

    def __init__(self, region_name: str = "ap-northeast-2"):
        """
        Initialize metrics publisher.

        Args:
            region_name: AWS region for CloudWatch
        """
        self.region_name = region_name
        self.cloudwatch_client = boto3.client("cloudwatch", region_name=region_name)
        self.logger = logging.getLogger(__name__)

    def build_metric_data(
        self, run_id: str, summary: RunSummary, duration_ms: float
    ) -> List[Dict[str, Any]]:
        timestamp = datetime.now(timezone.utc)
        dimensions = [{"Name": "ParityRun", "Value": run_id}]

        values = [
            ("files_compared", summary.total, "Count"),
            ("successes", summary.successes, "Count"),
            ("failures", summary.failures, "Count"),
            ("errors", summary.errors, "Count"),
            ("skipped", summary.skipped, "Count"),
            ("success_percentage", summary.success_percentage, "Percent"),
            ("run_duration_ms", duration_ms, "Milliseconds"),
        ]

        return [
            {
                "MetricName": name,
                "Value": value,
                "Unit": unit,
                "Timestamp": timestamp,
                "Dimensions": dimensions,
            }
            for name, value, unit in values
        ]

    def publish_run_summary(self, run_id: str, summary: RunSummary, duration_ms: float) -> None:
        """
        Publish run totals to CloudWatch.

        Failures are logged, never raised: metrics must not change the outcome
        of a parity run.

        Args:
            run_id: Identifier of the run (dimension value)
            summary: Aggregated run summary
            duration_ms: Wall-clock duration of the run
        """
        try:
            metric_data = self.build_metric_data(run_id, summary, duration_ms)

            # CloudWatch limit: 20 metrics per request
            for i in range(0, len(metric_data), 20):
                batch = metric_data[i : i + 20]
                self.cloudwatch_client.put_metric_data(Namespace=self.NAMESPACE, MetricData=batch)
                self.logger.debug(f"Published {len(batch)} metrics to CloudWatch")

            self.logger.info(
                f"Parity metrics published: success_percentage={summary.success_percentage}%, "
                f"failures={summary.failures}, errors={summary.errors}"
            )

        except Exception as e:
            self.logger.error(f"Failed to publish parity metrics: {e}")
