"""
Module 01 - Core Model & Codec
File: entries.py

Purpose: Manifest entry types. Each entry references one archive member
and carries the publish policy used when importing it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Union

from core.manifest.policy import PublishPolicy

if TYPE_CHECKING:
    from core.manifest.manifest import Manifest


__all__ = [
    "VDB_SUFFIX",
    "CONNECTION_SUFFIX",
    "normalize_path",
    "DataServiceEntry",
    "VdbEntry",
    "ServiceVdbEntry",
    "ConnectionEntry",
]


VDB_SUFFIX = "-vdb.xml"
CONNECTION_SUFFIX = "-connection.xml"

_XML_EXTENSION = ".xml"


def normalize_path(path: str, suffix: str) -> str:
    """
    Ensure ``path`` ends with ``suffix``.

    A trailing ``.xml`` is replaced by the suffix, otherwise the suffix is
    appended. Applying this twice gives the same result as applying it once.
    """
    if path.endswith(suffix):
        return path
    if path.endswith(_XML_EXTENSION):
        return path[: -len(_XML_EXTENSION)] + suffix
    return path + suffix


def _blank_to_none(value: str | None) -> str | None:
    if value is None or not str(value).strip():
        return None
    return str(value)


class DataServiceEntry:
    """An archive member declared by the manifest."""

    def __init__(
        self,
        path: str,
        publish_policy: PublishPolicy | None = None,
    ) -> None:
        self._path = ""
        self._declared_path = ""
        self.path = path
        self.publish_policy = publish_policy

    @property
    def path(self) -> str:
        return self._path

    @path.setter
    def path(self, value: str) -> None:
        if value is None or not str(value).strip():
            raise ValueError("Entry path cannot be empty")
        self._declared_path = str(value)
        self._path = self._normalize(self._declared_path)

    @property
    def declared_path(self) -> str:
        """Path as given, before suffix normalization. Archive members are stored under it."""
        return self._declared_path

    def member_paths(self) -> tuple[str, ...]:
        """Archive paths that may hold this entry, declared path first."""
        if self._declared_path == self._path:
            return (self._path,)
        return (self._declared_path, self._path)

    @property
    def publish_policy(self) -> PublishPolicy:
        return self._publish_policy

    @publish_policy.setter
    def publish_policy(self, value: PublishPolicy | None) -> None:
        self._publish_policy = value if value is not None else PublishPolicy.default()

    @property
    def entry_name(self) -> str:
        """Final ``/``-delimited segment of the path."""
        return self._path.rstrip("/").rsplit("/", 1)[-1]

    def _normalize(self, path: str) -> str:
        return path

    def _fields(self) -> tuple[Any, ...]:
        return (self._path, self._publish_policy)

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self._path,
            "publish": self._publish_policy.to_xml(),
        }

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self._fields() == other._fields()

    def __hash__(self) -> int:
        return hash((type(self).__name__, self._path))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(path={self._path!r}, publish_policy={self._publish_policy.name})"


VdbContainer = Union["Manifest", "ServiceVdbEntry"]


class VdbEntry(DataServiceEntry):
    """
    A VDB archive entry.

    ``container`` is a non-owning back-reference to the owner of this entry:
    the manifest for top-level VDBs, or a service VDB for its dependencies.
    """

    def __init__(
        self,
        path: str,
        publish_policy: PublishPolicy | None = None,
        vdb_name: str | None = None,
        vdb_version: str | None = None,
        container: VdbContainer | None = None,
    ) -> None:
        super().__init__(path, publish_policy)
        self.vdb_name = vdb_name
        self.vdb_version = vdb_version
        self.container = container

    @property
    def vdb_name(self) -> str | None:
        return self._vdb_name

    @vdb_name.setter
    def vdb_name(self, value: str | None) -> None:
        self._vdb_name = _blank_to_none(value)

    @property
    def vdb_version(self) -> str | None:
        return self._vdb_version

    @vdb_version.setter
    def vdb_version(self, value: str | None) -> None:
        self._vdb_version = _blank_to_none(value)

    def _normalize(self, path: str) -> str:
        return normalize_path(path, VDB_SUFFIX)

    def _fields(self) -> tuple[Any, ...]:
        return super()._fields() + (self._vdb_name, self._vdb_version)

    def to_dict(self) -> dict[str, Any]:
        d = super().to_dict()
        d["vdb_name"] = self._vdb_name
        d["vdb_version"] = self._vdb_version
        return d

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(path={self._path!r}, "
            f"publish_policy={self._publish_policy.name}, "
            f"vdb_name={self._vdb_name!r}, vdb_version={self._vdb_version!r})"
        )


class ServiceVdbEntry(VdbEntry):
    """The data service's primary VDB, owning its dependency VDB entries."""

    def __init__(
        self,
        path: str,
        publish_policy: PublishPolicy | None = None,
        vdb_name: str | None = None,
        vdb_version: str | None = None,
        container: "Manifest | None" = None,
    ) -> None:
        super().__init__(path, publish_policy, vdb_name, vdb_version, container)
        self._vdbs: list[VdbEntry] = []

    @property
    def vdbs(self) -> list[VdbEntry]:
        """Copy of the dependency entries."""
        return list(self._vdbs)

    def add_vdb(self, entry: VdbEntry) -> VdbEntry:
        if isinstance(entry, ServiceVdbEntry):
            raise TypeError("A service VDB cannot be a dependency of another service VDB")
        entry.container = self
        self._vdbs.append(entry)
        return entry

    def set_vdbs(self, entries: list[VdbEntry] | None) -> None:
        for entry in self._vdbs:
            entry.container = None
        self._vdbs = []
        for entry in entries or []:
            self.add_vdb(entry)

    def _fields(self) -> tuple[Any, ...]:
        return super()._fields() + (tuple(self._vdbs),)

    def to_dict(self) -> dict[str, Any]:
        d = super().to_dict()
        d["dependencies"] = [vdb.to_dict() for vdb in self._vdbs]
        return d


class ConnectionEntry(DataServiceEntry):
    """A connection archive entry keyed by its JNDI name."""

    def __init__(
        self,
        path: str,
        publish_policy: PublishPolicy | None = None,
        jndi_name: str | None = None,
    ) -> None:
        super().__init__(path, publish_policy)
        self.jndi_name = jndi_name

    @property
    def jndi_name(self) -> str | None:
        return self._jndi_name

    @jndi_name.setter
    def jndi_name(self, value: str | None) -> None:
        self._jndi_name = _blank_to_none(value)

    def _normalize(self, path: str) -> str:
        return normalize_path(path, CONNECTION_SUFFIX)

    def _fields(self) -> tuple[Any, ...]:
        return super()._fields() + (self._jndi_name,)

    def to_dict(self) -> dict[str, Any]:
        d = super().to_dict()
        d["jndi_name"] = self._jndi_name
        return d

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(path={self._path!r}, "
            f"publish_policy={self._publish_policy.name}, jndi_name={self._jndi_name!r})"
        )
