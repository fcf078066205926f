"""Discovery of direct-access disks from the SCSI device tree"""
import logging
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import Callable, List, Optional, Tuple
from .errors import DiskOpenError, EnumerationError

logger = logging.getLogger(__name__)


class ScsiDeviceType(IntEnum):
    """Peripheral device types reported in the sysfs ``type`` file"""
    DIRECT_ACCESS = 0
    SEQUENTIAL_ACCESS = 1
    PRINTER = 2
    PROCESSOR = 3
    WORM = 4
    CD_ROM = 5
    SCANNER = 6
    OPTICAL_MEMORY = 7
    MEDIUM_CHANGER = 8
    ENCLOSURE = 13


@dataclass(frozen=True)
class DeviceDescriptor:
    """Identity of one discovered physical disk"""
    path: str
    scsi_address: str = ""

    @property
    def name(self) -> str:
        return Path(self.path).name

    def __str__(self) -> str:
        return self.path


def _address_sort_key(address: str) -> Tuple:
    """Order SCSI addresses (host:channel:target:lun) numerically"""
    parts = []
    for part in address.split(":"):
        if part.isdigit():
            parts.append((0, int(part), ""))
        else:
            parts.append((1, 0, part))
    return tuple(parts)


class DiskEnumerator:
    """Walk the SCSI device tree once and keep direct-access disks.

    Each entry under ``scsi_device_root`` is expected to look like::

        <root>/<host:channel:target:lun>/device/type
        <root>/<host:channel:target:lun>/device/block/<name>

    A node missing either part is skipped. Only a failure to list the
    root itself is fatal.
    """

    def __init__(self, scsi_device_root: Path = Path("/sys/class/scsi_device"), dev_root: Path = Path("/dev")):
        self.scsi_device_root = Path(scsi_device_root)
        self.dev_root = Path(dev_root)

    def discover(self) -> List[DeviceDescriptor]:
        """Return the eligible disks in SCSI address order"""
        try:
            nodes = sorted(self.scsi_device_root.iterdir(), key=lambda p: _address_sort_key(p.name))
        except OSError as e:
            raise EnumerationError(f"could not read device tree {self.scsi_device_root}: {e}") from e

        descriptors = []
        for node in nodes:
            device_type = self._read_device_type(node)
            if device_type is None:
                continue
            if device_type != ScsiDeviceType.DIRECT_ACCESS:
                logger.debug(f"Skipping {node.name}: device type {device_type}")
                continue

            for block_name in self._read_block_names(node):
                descriptors.append(DeviceDescriptor(
                    path=str(self.dev_root / block_name),
                    scsi_address=node.name
                ))

        logger.info(f"Discovered {len(descriptors)} disks under {self.scsi_device_root}")
        return descriptors

    def _read_device_type(self, node: Path) -> Optional[int]:
        type_file = node / "device" / "type"
        try:
            raw = type_file.read_text().strip()
        except OSError as e:
            logger.warning(f"Skipping {node.name}: no device type ({e})")
            return None

        try:
            return int(raw)
        except ValueError:
            logger.warning(f"Skipping {node.name}: malformed device type {raw!r}")
            return None

    def _read_block_names(self, node: Path) -> List[str]:
        block_dir = node / "device" / "block"
        try:
            return sorted(entry.name for entry in block_dir.iterdir())
        except OSError as e:
            logger.warning(f"Skipping {node.name}: no block device ({e})")
            return []


def open_disks(descriptors: List[DeviceDescriptor], opener: Callable, strict: bool = False) -> List:
    """Open a disk session for every descriptor.

    ``opener`` takes a descriptor and returns a session or raises
    ``DiskOpenError``. With ``strict`` the first failure is re-raised,
    otherwise the disk is left out.
    """
    sessions = []
    for descriptor in descriptors:
        try:
            sessions.append(opener(descriptor))
        except DiskOpenError as e:
            if strict:
                raise
            logger.error(f"Ignoring disk {descriptor}: {e}")
    return sessions
