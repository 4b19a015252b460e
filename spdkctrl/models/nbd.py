"""Network block device (nbd) models."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class NbdDisk:
    """A bdev exported through the kernel nbd driver."""

    bdev_name: str
    nbd_device: str

    def to_doc(self) -> dict:
        return {"bdev_name": self.bdev_name, "nbd_device": self.nbd_device}

    @classmethod
    def from_doc(cls, doc: dict) -> NbdDisk:
        return cls(bdev_name=doc["bdev_name"], nbd_device=doc["nbd_device"])


@dataclass(frozen=True)
class NbdStartDiskArgs:
    bdev_name: str
    nbd_device: str

    def to_params(self) -> dict:
        return {"bdev_name": self.bdev_name, "nbd_device": self.nbd_device}


@dataclass(frozen=True)
class NbdGetDisksArgs:
    nbd_device: str = ""

    def to_params(self) -> dict:
        params: dict = {}
        if self.nbd_device:
            params["nbd_device"] = self.nbd_device
        return params


@dataclass(frozen=True)
class NbdStopDiskArgs:
    nbd_device: str

    def to_params(self) -> dict:
        return {"nbd_device": self.nbd_device}
