"""Disk sessions: open connections to a physical disk's health data"""
import json
import logging
import os
import shutil
import stat
import subprocess
from abc import ABC, abstractmethod
from enum import IntEnum
from typing import Any, Dict, List, Optional, Tuple
from .enumerator import DeviceDescriptor
from .errors import AttributeReadError, AttributeUnavailableError, DiskOpenError, DiskRefreshError

logger = logging.getLogger(__name__)


class OverallVerdict(IntEnum):
    """Overall SMART verdict, ordered from healthy to worst"""
    GOOD = 0
    BAD_ATTRIBUTE_IN_THE_PAST = 1
    BAD_SECTOR = 2
    BAD_ATTRIBUTE_NOW = 3
    BAD_SECTOR_MANY = 4
    BAD_STATUS = 5
    OVERALL_MAX = 6


# smartctl exit status bits: command line did not parse, device open failed
SMARTCTL_FATAL_BITS = 0b011

# Temperatures are handed out in units of 1/10000 degree
TEMPERATURE_SCALE = 10000

REALLOCATED_SECTOR_CT = 5
POWER_ON_HOURS = 9
POWER_CYCLE_COUNT = 12
CURRENT_PENDING_SECTOR = 197


class DiskSession(ABC):
    """Open connection to one disk.

    ``refresh`` pulls fresh health data into the session; every other
    method reads one raw value from it and raises ``AttributeReadError``
    when that value cannot be obtained.
    """

    def __init__(self, descriptor: DeviceDescriptor):
        self.descriptor = descriptor

    @property
    def name(self) -> str:
        return self.descriptor.path

    @abstractmethod
    def refresh(self) -> None:
        pass

    @abstractmethod
    def temperature(self) -> int:
        pass

    @abstractmethod
    def smart_status(self) -> bool:
        pass

    @abstractmethod
    def overall(self) -> int:
        pass

    @abstractmethod
    def size(self) -> int:
        pass

    @abstractmethod
    def check_sleep_mode(self) -> bool:
        """True while the disk is awake"""
        pass

    @abstractmethod
    def bad_sectors(self) -> int:
        pass

    @abstractmethod
    def power_cycles(self) -> int:
        pass

    @abstractmethod
    def power_on(self) -> int:
        """Accumulated power-on time in milliseconds"""
        pass

    @abstractmethod
    def identify_available(self) -> bool:
        pass

    @abstractmethod
    def smart_available(self) -> bool:
        pass

    def close(self) -> None:
        """Release the session"""
        pass


def bad_sector_threshold(size_bytes: Optional[int]) -> int:
    """Sector count above which a disk has "many" bad sectors"""
    if not size_bytes or size_bytes < 512:
        return 1024
    sectors = size_bytes // 512
    return (sectors.bit_length() - 1) * 1024


class SmartctlDisk(DiskSession):
    """Disk session backed by ``smartctl --json``"""

    def __init__(self, descriptor: DeviceDescriptor, executable: str, timeout: float = 30.0):
        super().__init__(descriptor)
        self.executable = executable
        self.timeout = timeout
        self._data: Optional[Dict[str, Any]] = None
        self._awake: Optional[bool] = None
        self._power_error: Optional[str] = None

    @classmethod
    def open(cls, descriptor: DeviceDescriptor, smartctl_path: str = "smartctl", timeout: float = 30.0) -> "SmartctlDisk":
        """Open a session for ``descriptor``, raising ``DiskOpenError`` on failure"""
        try:
            mode = os.stat(descriptor.path).st_mode
        except OSError as e:
            raise DiskOpenError(descriptor.path, e.strerror or str(e)) from e
        if not stat.S_ISBLK(mode):
            raise DiskOpenError(descriptor.path, "not a block device")

        executable = shutil.which(smartctl_path)
        if not executable:
            raise DiskOpenError(descriptor.path, f"{smartctl_path} not found")

        logger.debug(f"Opened {descriptor.path} using {executable}")
        return cls(descriptor, executable, timeout)

    def _run(self, *args: str) -> Tuple[int, Dict[str, Any]]:
        """Run smartctl against this disk and return its exit status and JSON"""
        cmd = [self.executable, *args, "--json", self.name]
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout)
        try:
            data = json.loads(result.stdout) if result.stdout else {}
        except json.JSONDecodeError:
            data = {}
        return result.returncode, data

    def refresh(self) -> None:
        # The full read below spins a standby disk up, so the power mode is probed first
        try:
            self._awake = self._probe_power_mode()
            self._power_error = None
        except AttributeReadError as e:
            self._awake = None
            self._power_error = e.reason

        try:
            returncode, data = self._run("--all")
        except (OSError, subprocess.SubprocessError) as e:
            raise DiskRefreshError(self.name, str(e)) from e

        if returncode & SMARTCTL_FATAL_BITS:
            raise DiskRefreshError(self.name, f"smartctl exited with status {returncode}: {_messages(data)}")
        if not data:
            raise DiskRefreshError(self.name, "smartctl returned no data")
        self._data = data

    def _require_data(self, attribute: str) -> Dict[str, Any]:
        if self._data is None:
            raise AttributeReadError(self.name, attribute, "disk has not been refreshed")
        return self._data

    def _get(self, attribute: str, *keys: str) -> Any:
        value: Any = self._require_data(attribute)
        for key in keys:
            if not isinstance(value, dict) or key not in value:
                raise AttributeUnavailableError(self.name, attribute)
            value = value[key]
        return value

    def _attribute_table(self) -> List[Dict[str, Any]]:
        if self._data is None:
            return []
        return self._data.get("ata_smart_attributes", {}).get("table", [])

    def _raw_attribute(self, attribute_id: int) -> Optional[int]:
        for entry in self._attribute_table():
            if entry.get("id") == attribute_id:
                return int(entry.get("raw", {}).get("value", 0))
        return None

    def temperature(self) -> int:
        celsius = self._get("temperature", "temperature", "current")
        return int(round(float(celsius) * TEMPERATURE_SCALE))

    def smart_status(self) -> bool:
        return bool(self._get("smart_status", "smart_status", "passed"))

    def size(self) -> int:
        return int(self._get("size", "user_capacity", "bytes"))

    def bad_sectors(self) -> int:
        self._require_data("bad_sectors")
        reallocated = self._raw_attribute(REALLOCATED_SECTOR_CT)
        pending = self._raw_attribute(CURRENT_PENDING_SECTOR)
        if reallocated is None and pending is None:
            raise AttributeUnavailableError(self.name, "bad_sectors")
        return (reallocated or 0) + (pending or 0)

    def power_cycles(self) -> int:
        data = self._require_data("power_cycles")
        if "power_cycle_count" in data:
            return int(data["power_cycle_count"])
        count = self._raw_attribute(POWER_CYCLE_COUNT)
        if count is None:
            raise AttributeUnavailableError(self.name, "power_cycles")
        return count

    def power_on(self) -> int:
        data = self._require_data("power_on")
        if "power_on_time" in data:
            hours = int(data["power_on_time"].get("hours", 0))
            minutes = int(data["power_on_time"].get("minutes", 0))
            return (hours * 60 + minutes) * 60 * 1000
        hours = self._raw_attribute(POWER_ON_HOURS)
        if hours is None:
            raise AttributeUnavailableError(self.name, "power_on")
        return hours * 3600 * 1000

    def identify_available(self) -> bool:
        protocol = self._get("identify_available", "device", "protocol")
        return str(protocol).upper() == "ATA"

    def smart_available(self) -> bool:
        return bool(self._get("smart_available", "smart_support", "available"))

    def overall(self) -> int:
        try:
            passed = self.smart_status()
        except AttributeUnavailableError as e:
            raise AttributeUnavailableError(self.name, "overall", "no SMART status") from e
        if not passed:
            return OverallVerdict.BAD_STATUS

        try:
            bad = self.bad_sectors()
        except AttributeUnavailableError:
            bad = 0
        try:
            size = self.size()
        except AttributeUnavailableError:
            size = None

        failed = [entry.get("when_failed", "") for entry in self._attribute_table()]
        if bad > bad_sector_threshold(size):
            return OverallVerdict.BAD_SECTOR_MANY
        if "now" in failed:
            return OverallVerdict.BAD_ATTRIBUTE_NOW
        if bad > 0:
            return OverallVerdict.BAD_SECTOR
        if "past" in failed:
            return OverallVerdict.BAD_ATTRIBUTE_IN_THE_PAST
        return OverallVerdict.GOOD

    def check_sleep_mode(self) -> bool:
        """Power mode as it was before the last refresh woke the disk"""
        self._require_data("sleep_mode")
        if self._awake is None:
            raise AttributeReadError(self.name, "sleep_mode", self._power_error)
        return self._awake

    def _probe_power_mode(self) -> bool:
        # --nocheck=standby makes smartctl bail out with status 2 instead of spinning the disk up
        try:
            returncode, data = self._run("--nocheck=standby", "--info")
        except (OSError, subprocess.SubprocessError) as e:
            raise AttributeReadError(self.name, "sleep_mode", str(e)) from e

        messages = _messages(data).lower()
        if returncode == 2 and ("standby" in messages or "sleep" in messages):
            return False
        if returncode & SMARTCTL_FATAL_BITS:
            raise AttributeReadError(self.name, "sleep_mode", f"smartctl exited with status {returncode}")
        return True

    def close(self) -> None:
        self._data = None
        self._awake = None


def _messages(data: Dict[str, Any]) -> str:
    """Join the messages smartctl attached to its JSON output"""
    messages = data.get("smartctl", {}).get("messages", [])
    return "; ".join(str(m.get("string", "")) for m in messages if isinstance(m, dict))
