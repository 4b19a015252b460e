"""Block device (bdev) request and result models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class SupportedIOTypes:
    read: bool = False
    write: bool = False
    unmap: bool = False
    write_zeroes: bool = False
    flush: bool = False
    reset: bool = False
    nvme_admin: bool = False
    nvme_io: bool = False

    def to_doc(self) -> dict:
        return {
            "read": self.read,
            "write": self.write,
            "unmap": self.unmap,
            "write_zeroes": self.write_zeroes,
            "flush": self.flush,
            "reset": self.reset,
            "nvme_admin": self.nvme_admin,
            "nvme_io": self.nvme_io,
        }

    @classmethod
    def from_doc(cls, doc: dict | None) -> SupportedIOTypes:
        if not doc:
            return cls()
        return cls(
            read=doc.get("read", False),
            write=doc.get("write", False),
            unmap=doc.get("unmap", False),
            write_zeroes=doc.get("write_zeroes", False),
            flush=doc.get("flush", False),
            reset=doc.get("reset", False),
            nvme_admin=doc.get("nvme_admin", False),
            nvme_io=doc.get("nvme_io", False),
        )


@dataclass(frozen=True)
class Bdev:
    """One entry of the bdev_get_bdevs result."""

    name: str
    product_name: str = ""
    uuid: str = ""
    block_size: int = 0
    num_blocks: int = 0
    claimed: bool = False
    zoned: bool = False
    supported_io_types: SupportedIOTypes = field(default_factory=SupportedIOTypes)
    # Free-form, depends on the bdev module
    driver_specific: Any = None

    @property
    def size_bytes(self) -> int:
        return self.block_size * self.num_blocks

    def to_doc(self) -> dict:
        return {
            "name": self.name,
            "product_name": self.product_name,
            "uuid": self.uuid,
            "block_size": self.block_size,
            "num_blocks": self.num_blocks,
            "claimed": self.claimed,
            "zoned": self.zoned,
            "supported_io_types": self.supported_io_types.to_doc(),
            "driver_specific": self.driver_specific,
        }

    @classmethod
    def from_doc(cls, doc: dict) -> Bdev:
        return cls(
            name=doc["name"],
            product_name=doc.get("product_name", ""),
            uuid=doc.get("uuid", ""),
            block_size=doc.get("block_size", 0),
            num_blocks=doc.get("num_blocks", 0),
            claimed=doc.get("claimed", False),
            zoned=doc.get("zoned", False),
            supported_io_types=SupportedIOTypes.from_doc(doc.get("supported_io_types")),
            driver_specific=doc.get("driver_specific"),
        )


@dataclass(frozen=True)
class BdevGetBdevsArgs:
    name: str = ""

    def to_params(self) -> dict:
        params: dict = {}
        if self.name:
            params["name"] = self.name
        return params


@dataclass(frozen=True)
class BdevMallocCreateArgs:
    block_size: int
    num_blocks: int
    name: str = ""
    uuid: str = ""

    def to_params(self) -> dict:
        params: dict = {}
        if self.name:
            params["name"] = self.name
        params["block_size"] = self.block_size
        params["num_blocks"] = self.num_blocks
        if self.uuid:
            params["uuid"] = self.uuid
        return params


@dataclass(frozen=True)
class BdevMallocDeleteArgs:
    name: str

    def to_params(self) -> dict:
        return {"name": self.name}


@dataclass(frozen=True)
class BdevAioCreateArgs:
    name: str
    filename: str
    block_size: int = 0

    def to_params(self) -> dict:
        params: dict = {"name": self.name, "filename": self.filename}
        if self.block_size:
            params["block_size"] = self.block_size
        return params


@dataclass(frozen=True)
class BdevAioDeleteArgs:
    name: str

    def to_params(self) -> dict:
        return {"name": self.name}
