"""Metric registry holding the latest value of every labelled series"""
import threading
from typing import Dict, List, Optional, Sequence, Tuple
from .models import MetricType, MetricValue


class MetricFamily:
    """All series of one metric name, keyed by label values"""

    metric_type = MetricType.GAUGE

    def __init__(self, name: str, help_text: str, label_names: Sequence[str], lock: threading.RLock):
        self.name = name
        self.help_text = help_text
        self.label_names = tuple(label_names)
        self._lock = lock
        self._values: Dict[Tuple[str, ...], float] = {}

    def _key(self, labels: Dict[str, str]) -> Tuple[str, ...]:
        if set(labels) != set(self.label_names):
            raise ValueError(f"{self.name} expects labels {self.label_names}, got {tuple(labels)}")
        return tuple(str(labels[name]) for name in self.label_names)

    def get(self, labels: Dict[str, str]) -> Optional[float]:
        with self._lock:
            return self._values.get(self._key(labels))

    def samples(self) -> List[MetricValue]:
        with self._lock:
            return [
                MetricValue(
                    name=self.name,
                    value=value,
                    labels=dict(zip(self.label_names, key)),
                    help_text=self.help_text,
                    metric_type=self.metric_type
                )
                for key, value in self._values.items()
            ]


class GaugeFamily(MetricFamily):
    """Series that are set to a value"""

    def set(self, labels: Dict[str, str], value: float) -> None:
        key = self._key(labels)
        with self._lock:
            self._values[key] = float(value)

    def set_exclusive(self, labels: Dict[str, str], value: float, label_name: str, other_value: float = 0.0) -> None:
        """Set one series and reset its siblings.

        Siblings are existing series that match ``labels`` on every label
        except ``label_name``.
        """
        key = self._key(labels)
        index = self.label_names.index(label_name)
        with self._lock:
            for existing in self._values:
                if existing != key and all(
                    existing[i] == key[i] for i in range(len(key)) if i != index
                ):
                    self._values[existing] = float(other_value)
            self._values[key] = float(value)


class CounterFamily(MetricFamily):
    """Series that only go up"""

    metric_type = MetricType.COUNTER

    def inc(self, labels: Dict[str, str] = None, amount: float = 1.0) -> None:
        if amount < 0:
            raise ValueError("counters can only increase")
        key = self._key(labels or {})
        with self._lock:
            self._values[key] = self._values.get(key, 0.0) + amount


class MetricsRegistry:
    """Explicit registry shared by the collection loop and the renderer.

    Families are registered once; asking again for the same name returns
    the existing family.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._families: Dict[str, MetricFamily] = {}

    def _register(self, cls, name: str, help_text: str, label_names: Sequence[str]) -> MetricFamily:
        with self._lock:
            family = self._families.get(name)
            if family is None:
                family = cls(name, help_text, label_names, self._lock)
                self._families[name] = family
            elif not isinstance(family, cls) or family.label_names != tuple(label_names):
                raise ValueError(f"Metric {name} already registered with a different type or labels")
            return family

    def gauge(self, name: str, help_text: str, label_names: Sequence[str] = ()) -> GaugeFamily:
        return self._register(GaugeFamily, name, help_text, label_names)

    def counter(self, name: str, help_text: str, label_names: Sequence[str] = ()) -> CounterFamily:
        return self._register(CounterFamily, name, help_text, label_names)

    def get_family(self, name: str) -> Optional[MetricFamily]:
        with self._lock:
            return self._families.get(name)

    def get_sample_value(self, name: str, labels: Dict[str, str] = None) -> Optional[float]:
        """Current value of one series, ``None`` if it has never been set"""
        family = self.get_family(name)
        if family is None:
            return None
        return family.get(labels or {})

    def collect(self) -> List[MetricValue]:
        """Snapshot every series in registration order"""
        with self._lock:
            metrics = []
            for family in self._families.values():
                metrics.extend(family.samples())
            return metrics
