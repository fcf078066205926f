"""Tests for attribute readers"""
import pytest

from collectors.attributes import (
    FlagReader,
    NumericReader,
    UNKNOWN_VERDICT,
    default_readers,
    verdict_label,
)
from collectors.disk import OverallVerdict
from collectors.errors import AttributeReadError
from fakes import FakeDisk


class TestAttributeReaders:
    """Test reading and converting single attributes"""

    def setup_method(self):
        """Setup test fixtures"""
        self.disk = FakeDisk("/dev/sda")
        self.readers = {reader.attribute: reader for reader in default_readers()}

    def test_ten_attributes(self):
        """Every tracked attribute has its own metric"""
        assert len(self.readers) == 10
        assert {reader.metric for reader in self.readers.values()} == {
            "atasmart_temperature",
            "atasmart_status",
            "atasmart_overall",
            "atasmart_disk_size",
            "atasmart_sleep_mode",
            "atasmart_bad_sectors",
            "atasmart_power_cycles",
            "atasmart_power_on",
            "atasmart_identify_available",
            "atasmart_smart_available",
        }

    def test_temperature_conversion(self):
        """A raw temperature of 353000 is published as 35.3"""
        sample = self.readers["temperature"].read(self.disk)

        assert sample.value == pytest.approx(35.3)
        assert sample.metric == "atasmart_temperature"
        assert sample.labels == {"disk": "/dev/sda"}

    def test_flag_conversion(self):
        """Booleans are published as 1.0 and 0.0"""
        self.disk.values["smart_status"] = False

        assert self.readers["smart_status"].read(self.disk).value == 0.0
        assert self.readers["smart_available"].read(self.disk).value == 1.0

    def test_raw_values_are_unconverted(self):
        """Counts and sizes are published as read"""
        assert self.readers["size"].read(self.disk).value == 500107862016.0
        assert self.readers["power_cycles"].read(self.disk).value == 1234.0
        assert self.readers["power_on"].read(self.disk).value == 3600000.0
        assert self.readers["bad_sectors"].read(self.disk).value == 0.0

    def test_sleep_mode_uses_power_check(self):
        """The sleep-mode attribute reads the disk power mode"""
        self.disk.values["sleep_mode"] = False

        sample = self.readers["sleep_mode"].read(self.disk)

        assert self.readers["sleep_mode"].method == "check_sleep_mode"
        assert sample.value == 0.0

    def test_verdict_label(self):
        """The verdict is published as 1.0 under its status label"""
        self.disk.values["overall"] = OverallVerdict.BAD_SECTOR

        sample = self.readers["overall"].read(self.disk)

        assert sample.value == 1.0
        assert sample.labels == {"disk": "/dev/sda", "status": "bad_sector"}

    def test_verdict_labels_are_complete(self):
        """All seven verdicts map to a named label"""
        labels = [verdict_label(verdict) for verdict in OverallVerdict]

        assert labels == [
            "good",
            "bad_attr_in_past",
            "bad_sector",
            "bad_attr_now",
            "bad_sector_many",
            "bad_status",
            "overall_max",
        ]

    def test_unmapped_verdict(self):
        """Verdicts outside the known set map to unknown"""
        assert verdict_label(42) == UNKNOWN_VERDICT
        assert verdict_label(None) == UNKNOWN_VERDICT

    def test_read_failure_is_classified(self):
        """A failing read raises AttributeReadError naming disk and attribute"""
        self.disk.failing.add("temperature")

        with pytest.raises(AttributeReadError) as exc_info:
            self.readers["temperature"].read(self.disk)

        assert exc_info.value.disk == "/dev/sda"
        assert exc_info.value.attribute == "temperature"

    def test_unexpected_exception_is_wrapped(self):
        """Exceptions from the session become AttributeReadError"""
        def broken():
            raise OSError("I/O error")

        self.disk.temperature = broken

        with pytest.raises(AttributeReadError) as exc_info:
            self.readers["temperature"].read(self.disk)

        assert "I/O error" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, OSError)

    def test_wrong_value_type(self):
        """Values of the wrong type are read errors"""
        numeric = NumericReader("size", "atasmart_disk_size", "Disk size")
        flag = FlagReader("smart_status", "atasmart_status", "Status")
        self.disk.values["size"] = True
        self.disk.values["smart_status"] = 1

        with pytest.raises(AttributeReadError):
            numeric.read(self.disk)
        with pytest.raises(AttributeReadError):
            flag.read(self.disk)

    def test_read_is_attempted_once(self):
        """Each read calls the session exactly once"""
        self.readers["power_cycles"].read(self.disk)

        assert self.disk.read_count == 1
