"""ATA SMART collector running one full read of every disk per scrape"""
import time
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence
from .attributes import AttributeReader, AttributeSample, VerdictReader, default_readers
from .base import BaseCollector
from .disk import DiskSession
from .errors import AttributeReadError, DiskRefreshError
from metrics.registry import GaugeFamily, MetricsRegistry
from logging_config import bind_disk, get_logger


logger = get_logger(__name__)


@dataclass
class CycleResult:
    """Outcome of one collection cycle"""
    cycle: int = 0
    disks: int = 0
    refresh_failures: int = 0
    reads: int = 0
    read_failures: int = 0
    duration: float = 0.0

    @property
    def errors(self) -> int:
        return self.refresh_failures + self.read_failures


class AtaSmartCollector(BaseCollector):
    """Reads every attribute of every disk and publishes it to the registry.

    Disks are visited in the order given. A disk whose refresh fails is
    skipped for the cycle; a failed attribute read only skips that one
    metric. Either way the previous value stays in the registry.
    """

    def __init__(self, disks: Sequence[DiskSession], registry: MetricsRegistry, config=None,
                 readers: Optional[List[AttributeReader]] = None):
        super().__init__(config, "atasmart", "ATA SMART disk health collector")
        self.disks = list(disks)
        self.registry = registry
        self.readers = readers if readers is not None else default_readers()
        self.clear_stale_overall = getattr(config, 'clear_stale_overall', True)
        self.cycle_count = 0
        self.last_result: Optional[CycleResult] = None

        self._families: Dict[str, GaugeFamily] = {
            reader.metric: registry.gauge(reader.metric, reader.help_text, reader.label_names)
            for reader in self.readers
        }
        self._scrapes = registry.counter(
            "atasmart_exporter_scrapes_total", "Number of collection cycles run")
        self._refresh_errors = registry.counter(
            "atasmart_exporter_refresh_errors_total", "Number of failed disk refreshes", ("disk",))
        self._read_errors = registry.counter(
            "atasmart_exporter_read_errors_total", "Number of failed attribute reads", ("disk", "attribute"))
        self._last_duration = registry.gauge(
            "atasmart_exporter_last_cycle_duration_seconds", "Duration of the last collection cycle")
        registry.gauge("atasmart_exporter_disks", "Number of tracked disks").set({}, len(self.disks))

    def collect(self) -> CycleResult:
        return self.run_cycle()

    def run_cycle(self) -> CycleResult:
        """Run one full pass over all disks; never raises for disk or attribute failures"""
        start_time = time.time()
        self.cycle_count += 1
        result = CycleResult(cycle=self.cycle_count, disks=len(self.disks))

        for disk in self.disks:
            self._collect_disk(disk, result)

        result.duration = time.time() - start_time
        self._scrapes.inc()
        self._last_duration.set({}, result.duration)
        self.last_result = result
        return result

    def _collect_disk(self, disk: DiskSession, result: CycleResult) -> None:
        disk_logger = bind_disk(logger, disk.name)
        try:
            disk.refresh()
        except DiskRefreshError as e:
            result.refresh_failures += 1
            self._refresh_errors.inc({"disk": disk.name})
            disk_logger.warning("Disk refresh failed", error=str(e), event_type="disk_refresh_error")
            return
        except Exception as e:
            result.refresh_failures += 1
            self._refresh_errors.inc({"disk": disk.name})
            disk_logger.error("Disk refresh failed unexpectedly", error=str(e),
                              event_type="disk_refresh_error", exc_info=True)
            return

        for reader in self.readers:
            result.reads += 1
            try:
                sample = reader.read(disk)
            except AttributeReadError as e:
                result.read_failures += 1
                self._read_errors.inc({"disk": disk.name, "attribute": reader.attribute})
                disk_logger.warning(
                    "Attribute read failed",
                    attribute=reader.attribute,
                    error=str(e),
                    event_type="attribute_read_error"
                )
                continue
            self._publish(reader, sample)

    def _publish(self, reader: AttributeReader, sample: AttributeSample) -> None:
        family = self._families[reader.metric]
        if isinstance(reader, VerdictReader) and self.clear_stale_overall:
            family.set_exclusive(sample.labels, sample.value, "status")
        else:
            family.set(sample.labels, sample.value)

    def cleanup(self):
        """Close all disk sessions"""
        for disk in self.disks:
            disk.close()
