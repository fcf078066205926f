"""Shared fixtures"""
import pytest

from config import Config
from metrics.registry import MetricsRegistry
from fakes import FakeDisk


@pytest.fixture
def registry():
    return MetricsRegistry()


@pytest.fixture
def config(tmp_path):
    return Config(scsi_device_root=tmp_path / "scsi_device", dev_root=tmp_path / "dev")


@pytest.fixture
def fake_disk():
    return FakeDisk("/dev/sda")


@pytest.fixture
def scsi_root(tmp_path):
    root = tmp_path / "scsi_device"
    root.mkdir()
    return root
