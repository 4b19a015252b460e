"""Tests for nbd models."""

from __future__ import annotations

import pytest

from spdkctrl.models.nbd import NbdDisk, NbdGetDisksArgs, NbdStartDiskArgs


class TestNbd:
    def test_disk_from_doc(self):
        disk = NbdDisk.from_doc({"nbd_device": "/dev/nbd0", "bdev_name": "Malloc0"})
        assert disk == NbdDisk(bdev_name="Malloc0", nbd_device="/dev/nbd0")

    def test_disk_missing_field(self):
        with pytest.raises(KeyError):
            NbdDisk.from_doc({"nbd_device": "/dev/nbd0"})

    def test_args(self):
        assert NbdStartDiskArgs("Malloc0", "/dev/nbd0").to_params() == {
            "bdev_name": "Malloc0",
            "nbd_device": "/dev/nbd0",
        }
        assert NbdGetDisksArgs().to_params() == {}
        assert NbdGetDisksArgs("/dev/nbd1").to_params() == {"nbd_device": "/dev/nbd1"}
