"""Logical volume (lvol) and lvol store request and result models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from spdkctrl.infra.rpc.errors import ValidationError


class ClearMethod(str, Enum):
    """How SPDK clears the data region of a new lvstore or lvol."""

    NONE = "none"
    UNMAP = "unmap"
    WRITE_ZEROES = "write_zeroes"


def _require_one_of(uuid: str, lvs_name: str) -> None:
    if not uuid and not lvs_name:
        raise ValidationError("one of uuid or lvs_name is required")
    if uuid and lvs_name:
        raise ValidationError("uuid and lvs_name are mutually exclusive")


def _check_clear_method(clear_method: ClearMethod | str) -> None:
    choices = tuple(m.value for m in ClearMethod)
    if clear_method and clear_method not in choices:
        raise ValidationError(f"clear_method must be one of {', '.join(choices)}, got {clear_method!r}")


def _lvstore_selector(uuid: str, lvs_name: str) -> dict:
    params: dict = {}
    if uuid:
        params["uuid"] = uuid
    if lvs_name:
        params["lvs_name"] = lvs_name
    return params


@dataclass(frozen=True)
class Lvstore:
    """One entry of the bdev_lvol_get_lvstores result."""

    uuid: str
    name: str = ""
    base_bdev: str = ""
    free_clusters: int = 0
    cluster_size: int = 0
    total_data_clusters: int = 0
    block_size: int = 0

    @property
    def free_bytes(self) -> int:
        return self.free_clusters * self.cluster_size

    def to_doc(self) -> dict:
        return {
            "uuid": self.uuid,
            "base_bdev": self.base_bdev,
            "free_clusters": self.free_clusters,
            "cluster_size": self.cluster_size,
            "total_data_clusters": self.total_data_clusters,
            "block_size": self.block_size,
            "name": self.name,
        }

    @classmethod
    def from_doc(cls, doc: dict) -> Lvstore:
        return cls(
            uuid=doc["uuid"],
            name=doc.get("name", ""),
            base_bdev=doc.get("base_bdev", ""),
            free_clusters=doc.get("free_clusters", 0),
            cluster_size=doc.get("cluster_size", 0),
            total_data_clusters=doc.get("total_data_clusters", 0),
            block_size=doc.get("block_size", 0),
        )


@dataclass(frozen=True)
class BdevLvolCreateLvstoreArgs:
    bdev_name: str
    lvs_name: str
    cluster_sz: int = 0
    clear_method: ClearMethod | str = ""

    def validate(self) -> None:
        _check_clear_method(self.clear_method)

    def to_params(self) -> dict:
        params: dict = {"bdev_name": self.bdev_name, "lvs_name": self.lvs_name}
        if self.cluster_sz:
            params["cluster_sz"] = self.cluster_sz
        if self.clear_method:
            params["clear_method"] = ClearMethod(self.clear_method).value
        return params


@dataclass(frozen=True)
class BdevLvolDeleteLvstoreArgs:
    """Either uuid or lvs_name must be given, but not both."""

    uuid: str = ""
    lvs_name: str = ""

    def validate(self) -> None:
        _require_one_of(self.uuid, self.lvs_name)

    def to_params(self) -> dict:
        return _lvstore_selector(self.uuid, self.lvs_name)


@dataclass(frozen=True)
class BdevLvolGetLvstoresArgs:
    """At most one of uuid or lvs_name; neither lists every lvstore."""

    uuid: str = ""
    lvs_name: str = ""

    def validate(self) -> None:
        if self.uuid and self.lvs_name:
            raise ValidationError("uuid and lvs_name are mutually exclusive")

    def to_params(self) -> dict:
        return _lvstore_selector(self.uuid, self.lvs_name)


@dataclass(frozen=True)
class BdevLvolCreateArgs:
    """Create an lvol in the lvstore named by exactly one of uuid or lvs_name."""

    lvol_name: str
    size_in_mib: int
    uuid: str = ""
    lvs_name: str = ""
    thin_provision: bool = False
    clear_method: ClearMethod | str = ""

    def validate(self) -> None:
        _require_one_of(self.uuid, self.lvs_name)
        _check_clear_method(self.clear_method)

    def to_params(self) -> dict:
        params: dict = {"lvol_name": self.lvol_name, "size_in_mib": self.size_in_mib}
        params.update(_lvstore_selector(self.uuid, self.lvs_name))
        if self.thin_provision:
            params["thin_provision"] = True
        if self.clear_method:
            params["clear_method"] = ClearMethod(self.clear_method).value
        return params


@dataclass(frozen=True)
class BdevLvolDeleteArgs:
    name: str

    def to_params(self) -> dict:
        return {"name": self.name}


@dataclass(frozen=True)
class BdevLvolSnapshotArgs:
    lvol_name: str
    snapshot_name: str

    def to_params(self) -> dict:
        return {"lvol_name": self.lvol_name, "snapshot_name": self.snapshot_name}


@dataclass(frozen=True)
class BdevLvolCloneArgs:
    snapshot_name: str
    clone_name: str

    def to_params(self) -> dict:
        return {"snapshot_name": self.snapshot_name, "clone_name": self.clone_name}


@dataclass(frozen=True)
class BdevLvolSetReadOnlyArgs:
    name: str

    def to_params(self) -> dict:
        return {"name": self.name}


@dataclass(frozen=True)
class BdevLvolDecoupleParentArgs:
    name: str

    def to_params(self) -> dict:
        return {"name": self.name}
