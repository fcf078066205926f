"""Single-threaded collection loop driven by scrape requests"""
import threading
import time
from typing import Optional
from collectors.atasmart import AtaSmartCollector, CycleResult
from logging_config import get_logger, log_error, log_metrics_collection
from .gate import ScrapeGate


logger = get_logger(__name__)


class CollectionLoop:
    """Blocks on the gate and runs one collection cycle per scrape"""

    def __init__(self, collector: AtaSmartCollector, gate: ScrapeGate, poll_interval: float = 0.5):
        self.collector = collector
        self.gate = gate
        self.poll_interval = poll_interval
        self.collection_errors = 0
        self.last_collection_time = 0.0
        self._thread: Optional[threading.Thread] = None

    def run_forever(self) -> None:
        """Serve cycles until the gate is closed"""
        logger.info("Collection loop started", disks=len(self.collector.disks), event_type="loop_start")
        while not self.gate.closed:
            if not self.gate.wait_for_request(timeout=self.poll_interval):
                continue
            try:
                self.run_once()
            finally:
                self.gate.notify_finished()
        logger.info("Collection loop stopped", event_type="loop_stop")

    def run_once(self) -> Optional[CycleResult]:
        """Run one cycle, logging instead of raising on unexpected failure"""
        try:
            result = self.collector.run_cycle()
        except Exception as e:
            self.collection_errors += 1
            log_error(logger, e, {"component": "collection_loop", "cycle": self.collector.cycle_count})
            return None

        self.last_collection_time = time.time()
        log_metrics_collection(logger, result.reads - result.read_failures, result.duration, result.errors)
        return result

    def start(self) -> threading.Thread:
        """Run the loop in a background thread"""
        if self._thread and self._thread.is_alive():
            return self._thread
        self._thread = threading.Thread(target=self.run_forever, name="atasmart_collection", daemon=True)
        self._thread.start()
        return self._thread

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        """Close the gate and wait for the loop thread to exit"""
        self.gate.close()
        if self._thread:
            self._thread.join(timeout)

    def is_alive(self) -> bool:
        return bool(self._thread and self._thread.is_alive())
