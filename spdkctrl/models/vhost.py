"""Vhost controller models.

``vhost_get_controllers`` reports a ``backend_specific`` object keyed by
backend kind. The known kinds are parsed into typed values; see
spdk_vhost_scsi_dump_info_json() and friends for the shapes. Parsing is
lenient: members with an unexpected type keep their default.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

BACKEND_BLOCK = "block"
BACKEND_SCSI = "scsi"
BACKEND_NVME = "namespaces"


def _int(value: Any, default: int = 0) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return int(value)


def _str(value: Any, default: str = "") -> str:
    return value if isinstance(value, str) else default


@dataclass(frozen=True)
class BlockBackend:
    bdev: str = ""
    readonly: bool = False

    def to_doc(self) -> dict:
        return {"bdev": self.bdev, "readonly": self.readonly}

    @classmethod
    def from_doc(cls, doc: Any) -> BlockBackend:
        if not isinstance(doc, dict):
            return cls()
        readonly = doc.get("readonly")
        return cls(
            bdev=_str(doc.get("bdev")),
            readonly=readonly if isinstance(readonly, bool) else False,
        )


@dataclass(frozen=True)
class ScsiLun:
    id: int = 0
    bdev_name: str = ""

    def to_doc(self) -> dict:
        return {"id": self.id, "bdev_name": self.bdev_name}

    @classmethod
    def from_doc(cls, doc: Any) -> ScsiLun:
        if not isinstance(doc, dict):
            return cls()
        return cls(id=_int(doc.get("id")), bdev_name=_str(doc.get("bdev_name")))


@dataclass(frozen=True)
class ScsiBackend:
    """One SCSI target of a vhost-scsi controller."""

    target_name: str = ""
    id: int = 0
    scsi_dev_num: int = 0
    luns: tuple[ScsiLun, ...] = ()

    def to_doc(self) -> dict:
        return {
            "target_name": self.target_name,
            "id": self.id,
            "scsi_dev_num": self.scsi_dev_num,
            "luns": [lun.to_doc() for lun in self.luns],
        }

    @classmethod
    def from_doc(cls, doc: dict) -> ScsiBackend:
        luns = doc.get("luns")
        return cls(
            target_name=_str(doc.get("target_name")),
            id=_int(doc.get("id")),
            scsi_dev_num=_int(doc.get("scsi_dev_num")),
            luns=tuple(ScsiLun.from_doc(lun) for lun in luns) if isinstance(luns, list) else (),
        )


@dataclass(frozen=True)
class NvmeBackend:
    """One namespace of a vhost-nvme controller."""

    nsid: int = 0
    bdev: str = ""

    def to_doc(self) -> dict:
        return {"nsid": self.nsid, "bdev": self.bdev}

    @classmethod
    def from_doc(cls, doc: dict) -> NvmeBackend:
        return cls(nsid=_int(doc.get("nsid")), bdev=_str(doc.get("bdev")))


def parse_block_backend(raw: Any) -> BlockBackend:
    return BlockBackend.from_doc(raw)


def parse_scsi_backend(raw: Any) -> list[ScsiBackend]:
    if not isinstance(raw, list):
        return []
    return [ScsiBackend.from_doc(entry) for entry in raw if isinstance(entry, dict)]


def parse_nvme_backend(raw: Any) -> list[NvmeBackend]:
    if not isinstance(raw, list):
        return []
    return [NvmeBackend.from_doc(entry) for entry in raw if isinstance(entry, dict)]


_BACKEND_PARSERS = {
    BACKEND_BLOCK: parse_block_backend,
    BACKEND_SCSI: parse_scsi_backend,
    BACKEND_NVME: parse_nvme_backend,
}


def parse_backend_specific(raw: Any) -> dict[str, Any]:
    """Replace known backend entries with typed values; keep the rest as-is."""
    if not isinstance(raw, dict):
        return {}
    parsed: dict[str, Any] = {}
    for backend, specific in raw.items():
        parser = _BACKEND_PARSERS.get(backend)
        parsed[backend] = parser(specific) if parser else specific
    return parsed


def _backend_to_doc(value: Any) -> Any:
    if isinstance(value, list):
        return [_backend_to_doc(item) for item in value]
    if hasattr(value, "to_doc"):
        return value.to_doc()
    return value


@dataclass(frozen=True)
class Controller:
    """One entry of the vhost_get_controllers result."""

    ctrlr: str
    cpumask: str = ""
    delay_base_us: int = 0
    iops_threshold: int = 0
    backend_specific: dict[str, Any] = field(default_factory=dict)

    @property
    def block(self) -> BlockBackend | None:
        value = self.backend_specific.get(BACKEND_BLOCK)
        return value if isinstance(value, BlockBackend) else None

    @property
    def scsi(self) -> list[ScsiBackend]:
        return self.backend_specific.get(BACKEND_SCSI) or []

    @property
    def namespaces(self) -> list[NvmeBackend]:
        return self.backend_specific.get(BACKEND_NVME) or []

    def with_parsed_backends(self) -> Controller:
        """Return a copy whose known backend entries are typed."""
        return Controller(
            ctrlr=self.ctrlr,
            cpumask=self.cpumask,
            delay_base_us=self.delay_base_us,
            iops_threshold=self.iops_threshold,
            backend_specific=parse_backend_specific(self.backend_specific),
        )

    def to_doc(self) -> dict:
        return {
            "ctrlr": self.ctrlr,
            "cpumask": self.cpumask,
            "delay_base_us": self.delay_base_us,
            "iops_threshold": self.iops_threshold,
            "backend_specific": {
                backend: _backend_to_doc(value)
                for backend, value in self.backend_specific.items()
            },
        }

    @classmethod
    def from_doc(cls, doc: dict) -> Controller:
        """Generic decode; backend_specific stays raw."""
        backend_specific = doc.get("backend_specific")
        return cls(
            ctrlr=doc["ctrlr"],
            cpumask=doc.get("cpumask", ""),
            delay_base_us=doc.get("delay_base_us", 0),
            iops_threshold=doc.get("iops_threshold", 0),
            backend_specific=dict(backend_specific) if isinstance(backend_specific, dict) else {},
        )


@dataclass(frozen=True)
class VhostCreateBlkControllerArgs:
    ctrlr: str
    dev_name: str
    readonly: bool = False
    cpumask: str = ""

    def to_params(self) -> dict:
        params: dict = {"ctrlr": self.ctrlr, "dev_name": self.dev_name}
        if self.readonly:
            params["readonly"] = True
        if self.cpumask:
            params["cpumask"] = self.cpumask
        return params


@dataclass(frozen=True)
class VhostDeleteControllerArgs:
    ctrlr: str

    def to_params(self) -> dict:
        return {"ctrlr": self.ctrlr}


@dataclass(frozen=True)
class VhostGetControllersArgs:
    name: str = ""

    def to_params(self) -> dict:
        params: dict = {}
        if self.name:
            params["name"] = self.name
        return params
