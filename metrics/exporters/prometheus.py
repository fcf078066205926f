"""Prometheus format exporter"""
import logging
from typing import List
from datetime import datetime
from ..models import MetricValue
from ..registry import MetricsRegistry


logger = logging.getLogger(__name__)

CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"


class PrometheusExporter:
    """Render metrics in the Prometheus text exposition format"""

    def __init__(self, config=None):
        self.config = config

    def export_metrics(self, metrics: List[MetricValue]) -> str:
        """Convert metrics to Prometheus format"""
        lines = []

        # Add header
        service_name = getattr(self.config, 'service_name', 'atasmart-exporter')
        lines.append(f"# {service_name} metrics")
        lines.append(f"# Generated at {datetime.now().astimezone().isoformat()}")

        # Group metrics by name to avoid duplicate HELP/TYPE comments
        metrics_by_name = {}
        for metric in metrics:
            if metric.name not in metrics_by_name:
                metrics_by_name[metric.name] = []
            metrics_by_name[metric.name].append(metric)

        for metric_name, metric_list in metrics_by_name.items():
            help_text = metric_list[0].help_text.replace("\\", "\\\\").replace("\n", "\\n")
            lines.append(f"# HELP {metric_name} {help_text}")
            lines.append(f"# TYPE {metric_name} {metric_list[0].metric_type.value}")

            for metric in metric_list:
                lines.append(metric.to_prometheus_line())

        logger.debug(f"Rendered {len(metrics)} samples in {len(metrics_by_name)} families")
        return "\n".join(lines) + "\n"

    def render(self, registry: MetricsRegistry) -> str:
        """Render the current contents of ``registry``"""
        return self.export_metrics(registry.collect())
