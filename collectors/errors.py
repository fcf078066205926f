"""Exceptions raised while discovering and reading disks"""
from typing import Optional


class AtaSmartError(Exception):
    """Base class for disk health errors"""


class EnumerationError(AtaSmartError):
    """The SCSI device tree could not be read at all"""


class DiskOpenError(AtaSmartError):
    """A resolved device path could not be opened"""

    def __init__(self, disk: str, reason: str):
        super().__init__(f"could not open {disk}: {reason}")
        self.disk = disk
        self.reason = reason


class DiskRefreshError(AtaSmartError):
    """Refreshing the health data of one disk failed"""

    def __init__(self, disk: str, reason: str):
        super().__init__(f"could not refresh {disk}: {reason}")
        self.disk = disk
        self.reason = reason


class AttributeReadError(AtaSmartError):
    """Reading a single attribute of a disk failed"""

    def __init__(self, disk: str, attribute: str, reason: Optional[str] = None):
        message = f"could not read {attribute} of {disk}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.disk = disk
        self.attribute = attribute
        self.reason = reason


class AttributeUnavailableError(AttributeReadError):
    """The disk does not report the requested attribute"""
