"""Disk discovery, disk sessions and the ATA SMART collector"""
from .enumerator import DeviceDescriptor, DiskEnumerator, open_disks
from .disk import DiskSession, OverallVerdict, SmartctlDisk
from .attributes import AttributeReader, AttributeSample, default_readers
from .atasmart import AtaSmartCollector, CycleResult

__all__ = [
    'DeviceDescriptor',
    'DiskEnumerator',
    'open_disks',
    'DiskSession',
    'OverallVerdict',
    'SmartctlDisk',
    'AttributeReader',
    'AttributeSample',
    'default_readers',
    'AtaSmartCollector',
    'CycleResult'
]
