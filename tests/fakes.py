"""Test doubles for disk sessions and sysfs trees"""
import time
from pathlib import Path
from typing import List, Optional

from collectors.disk import DiskSession, OverallVerdict
from collectors.enumerator import DeviceDescriptor
from collectors.errors import AttributeReadError, DiskRefreshError


DEFAULT_VALUES = {
    "temperature": 353000,
    "smart_status": True,
    "overall": OverallVerdict.GOOD,
    "size": 500107862016,
    "sleep_mode": True,
    "bad_sectors": 0,
    "power_cycles": 1234,
    "power_on": 3600000,
    "identify_available": True,
    "smart_available": True,
}


class FakeDisk(DiskSession):
    """Disk session returning canned values"""

    def __init__(self, path: str = "/dev/sda", **values):
        super().__init__(DeviceDescriptor(path, "0:0:0:0"))
        self.values = dict(DEFAULT_VALUES, **values)
        self.fail_refresh = False
        self.failing = set()
        self.refresh_count = 0
        self.read_count = 0
        self.closed = False
        self.delay = 0.0

    def refresh(self):
        self.refresh_count += 1
        if self.delay:
            time.sleep(self.delay)
        if self.fail_refresh:
            raise DiskRefreshError(self.name, "device not ready")

    def _value(self, attribute: str):
        self.read_count += 1
        if attribute in self.failing:
            raise AttributeReadError(self.name, attribute, "not supported")
        return self.values[attribute]

    def temperature(self):
        return self._value("temperature")

    def smart_status(self):
        return self._value("smart_status")

    def overall(self):
        return self._value("overall")

    def size(self):
        return self._value("size")

    def check_sleep_mode(self):
        return self._value("sleep_mode")

    def bad_sectors(self):
        return self._value("bad_sectors")

    def power_cycles(self):
        return self._value("power_cycles")

    def power_on(self):
        return self._value("power_on")

    def identify_available(self):
        return self._value("identify_available")

    def smart_available(self):
        return self._value("smart_available")

    def close(self):
        self.closed = True


def make_scsi_device(root: Path, address: str, device_type: Optional[str], block_names: Optional[List[str]]) -> Path:
    """Create ``<root>/<address>/device/{type,block/<name>}``.

    ``None`` leaves the corresponding part out.
    """
    device_dir = root / address / "device"
    device_dir.mkdir(parents=True)
    if device_type is not None:
        (device_dir / "type").write_text(f"{device_type}\n")
    if block_names is not None:
        block_dir = device_dir / "block"
        block_dir.mkdir()
        for name in block_names:
            (block_dir / name).mkdir()
    return device_dir
