"""Per-attribute readers turning raw disk values into metric samples"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple
from .disk import DiskSession, OverallVerdict
from .errors import AtaSmartError, AttributeReadError


UNKNOWN_VERDICT = "unknown"

VERDICT_LABELS: Dict[int, str] = {
    OverallVerdict.GOOD: "good",
    OverallVerdict.BAD_ATTRIBUTE_IN_THE_PAST: "bad_attr_in_past",
    OverallVerdict.BAD_SECTOR: "bad_sector",
    OverallVerdict.BAD_ATTRIBUTE_NOW: "bad_attr_now",
    OverallVerdict.BAD_SECTOR_MANY: "bad_sector_many",
    OverallVerdict.BAD_STATUS: "bad_status",
    OverallVerdict.OVERALL_MAX: "overall_max",
}


def verdict_label(raw: Any) -> str:
    """Map a raw overall verdict to its label, ``unknown`` if unmapped"""
    try:
        return VERDICT_LABELS.get(int(raw), UNKNOWN_VERDICT)
    except (TypeError, ValueError):
        return UNKNOWN_VERDICT


@dataclass
class AttributeSample:
    """One freshly read value for a (disk, attribute) pair"""
    disk: str
    attribute: str
    metric: str
    value: float
    labels: Dict[str, str] = field(default_factory=dict)


class AttributeReader(ABC):
    """Reads one attribute from a disk session.

    ``read`` calls the session method named by ``method`` exactly once.
    Any failure is raised as ``AttributeReadError`` carrying the disk and
    attribute name; the caller decides what to do with it.
    """

    label_names: Tuple[str, ...] = ("disk",)

    def __init__(self, attribute: str, metric: str, help_text: str, method: str = None):
        self.attribute = attribute
        self.metric = metric
        self.help_text = help_text
        self.method = method or attribute

    def read(self, disk: DiskSession) -> AttributeSample:
        try:
            raw = getattr(disk, self.method)()
        except AttributeReadError:
            raise
        except AtaSmartError as e:
            raise AttributeReadError(disk.name, self.attribute, str(e)) from e
        except Exception as e:
            raise AttributeReadError(disk.name, self.attribute, f"{type(e).__name__}: {e}") from e

        try:
            return self.convert(disk.name, raw)
        except (TypeError, ValueError) as e:
            raise AttributeReadError(disk.name, self.attribute, f"unexpected value {raw!r}") from e

    @abstractmethod
    def convert(self, disk_name: str, raw: Any) -> AttributeSample:
        pass

    def _sample(self, disk_name: str, value: float, **labels: str) -> AttributeSample:
        return AttributeSample(
            disk=disk_name,
            attribute=self.attribute,
            metric=self.metric,
            value=value,
            labels={"disk": disk_name, **labels}
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.attribute!r})"


class NumericReader(AttributeReader):
    """Publishes the raw number, optionally divided by ``scale``"""

    def __init__(self, attribute: str, metric: str, help_text: str, method: str = None, scale: float = None):
        super().__init__(attribute, metric, help_text, method)
        self.scale = scale

    def convert(self, disk_name: str, raw: Any) -> AttributeSample:
        if isinstance(raw, bool):
            raise TypeError("expected a number")
        value = float(raw)
        if self.scale:
            value = value / self.scale
        return self._sample(disk_name, value)


class FlagReader(AttributeReader):
    """Publishes a boolean as 1.0 or 0.0"""

    def convert(self, disk_name: str, raw: Any) -> AttributeSample:
        if not isinstance(raw, bool):
            raise TypeError("expected a boolean")
        return self._sample(disk_name, 1.0 if raw else 0.0)


class VerdictReader(AttributeReader):
    """Publishes 1.0 under the ``status`` label naming the verdict"""

    label_names = ("disk", "status")

    def convert(self, disk_name: str, raw: Any) -> AttributeSample:
        return self._sample(disk_name, 1.0, status=verdict_label(raw))


def default_readers() -> List[AttributeReader]:
    """The attributes read from every disk on each cycle, in read order"""
    return [
        NumericReader("temperature", "atasmart_temperature",
                      "Disk temperature in degrees Celsius", scale=10000.0),
        FlagReader("smart_status", "atasmart_status",
                   "SMART overall status (1=good, 0=bad)"),
        VerdictReader("overall", "atasmart_overall",
                      "SMART overall verdict, 1 for the current status label"),
        NumericReader("size", "atasmart_disk_size",
                      "Disk size in bytes"),
        FlagReader("sleep_mode", "atasmart_sleep_mode",
                   "Disk power mode (1=awake, 0=standby or sleeping)", method="check_sleep_mode"),
        NumericReader("bad_sectors", "atasmart_bad_sectors",
                      "Number of bad sectors"),
        NumericReader("power_cycles", "atasmart_power_cycles",
                      "Number of power cycles"),
        NumericReader("power_on", "atasmart_power_on",
                      "Accumulated power-on time in milliseconds"),
        FlagReader("identify_available", "atasmart_identify_available",
                   "Whether ATA IDENTIFY data is available"),
        FlagReader("smart_available", "atasmart_smart_available",
                   "Whether SMART is available on the disk"),
    ]
