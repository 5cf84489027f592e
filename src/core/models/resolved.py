"""
Resolved model — the output of the resolution engine.

Everything here is frozen: the engine builds these objects fresh for each
resolution call and downstream renderers only read them.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

# In-container locations
CERTS_DIR = "/etc/tls/certs"
TRUSTSTORES_DIR = "/etc/truststores"

INTERNAL = "internal"


class ListenerKind(str, Enum):
    """Listener protocols, valued by their snake_case name."""

    ADMIN = "admin"
    KAFKA = "kafka"
    HTTP = "http"
    SCHEMA_REGISTRY = "schema_registry"
    RPC = "rpc"

    @property
    def values_key(self) -> str:
        """Key of this kind under ``listeners`` in values.yaml."""
        return "schemaRegistry" if self is ListenerKind.SCHEMA_REGISTRY else self.value

    @property
    def supports_external(self) -> bool:
        return self is not ListenerKind.RPC


class TrustStoreKind(str, Enum):
    CONFIGMAP = "configmap"
    SECRET = "secret"

    @property
    def directory(self) -> str:
        return f"{TRUSTSTORES_DIR}/{self.value}s"


@dataclass(frozen=True)
class CertificateEntry:
    """A resolved entry of the ``tls.certs`` table."""

    name: str
    enabled: bool = True
    ca_enabled: bool = False
    secret_ref: str | None = None

    @property
    def issued(self) -> bool:
        """True when the chart generates this certificate itself."""
        return self.enabled and self.secret_ref is None

    @property
    def directory(self) -> str:
        return f"{CERTS_DIR}/{self.name}"

    @property
    def cert_file(self) -> str:
        return f"{self.directory}/tls.crt"

    @property
    def key_file(self) -> str:
        return f"{self.directory}/tls.key"

    @property
    def ca_file(self) -> str:
        return f"{self.directory}/ca.crt"


@dataclass(frozen=True)
class TrustStoreRef:
    """An explicit ConfigMap or Secret key holding a CA bundle."""

    kind: TrustStoreKind
    name: str
    key: str

    @property
    def filename(self) -> str:
        return f"{self.name}-{self.key}"

    @property
    def path(self) -> str:
        return f"{self.kind.directory}/{self.filename}"


@dataclass(frozen=True)
class Listener:
    """A fully resolved listener (one kind, one network)."""

    kind: ListenerKind
    network: str
    port: int
    tls_enabled: bool = False
    cert: str | None = None
    require_client_auth: bool = False
    trust_store: TrustStoreRef | None = None
    advertised_ports: tuple[int, ...] = ()

    @property
    def is_external(self) -> bool:
        return self.network != INTERNAL


@dataclass(frozen=True)
class VolumeMountSpec:
    """A volume the workload must attach, and where it is mounted.

    ``key`` is None when the whole source is projected (certificate
    secrets); otherwise only that key is mounted, at ``sub_path``.
    """

    volume_name: str
    source_kind: str
    source_name: str
    mount_path: str
    key: str | None = None
    sub_path: str | None = None


def freeze(value: Any) -> Any:
    """Deep read-only copy: mappings become MappingProxyType, lists tuples.

    The result shares no mutable container with ``value``.
    """
    if isinstance(value, Mapping):
        return MappingProxyType({k: freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(v) for v in value)
    if isinstance(value, (set, frozenset)):
        return frozenset(freeze(v) for v in value)
    return copy.deepcopy(value)


def thaw(value: Any) -> Any:
    """Plain, mutable dicts and lists from a frozen structure (for serializers)."""
    if isinstance(value, Mapping):
        return {k: thaw(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [thaw(v) for v in value]
    if isinstance(value, frozenset):
        return [thaw(v) for v in sorted(value, key=repr)]
    return value


def _frozen(mapping: Mapping | None = None) -> Mapping:
    return freeze(mapping or {})


@dataclass(frozen=True)
class ResolvedConfiguration:
    """The fully merged, validated configuration handed to the renderer.

    Nested mappings and lists are deep-frozen copies (see ``freeze``).
    ``tunables`` holds the version-approved tunable overrides, which are
    also merged into ``cluster_config``.
    """

    version: str
    fullname: str
    image: str = ""
    replicas: int = 0
    listeners: Mapping[tuple[ListenerKind, str], Listener] = field(default_factory=_frozen)
    certificates: Mapping[str, CertificateEntry] = field(default_factory=_frozen)
    truststore_paths: Mapping[tuple[str, str], str] = field(default_factory=_frozen)
    mounts: tuple[VolumeMountSpec, ...] = ()
    broker_config: Mapping[str, Any] = field(default_factory=_frozen)
    cluster_config: Mapping[str, Any] = field(default_factory=_frozen)
    tunables: Mapping[str, Any] = field(default_factory=_frozen)
    issued_certificates: tuple[str, ...] = ()

    def listeners_of(self, kind: ListenerKind) -> list[Listener]:
        """Listeners of one kind, internal first, externals by name."""
        found = [lst for (k, _), lst in self.listeners.items() if k is kind]
        return sorted(found, key=lambda lst: (lst.is_external, lst.network))

    def truststore_path(self, kind: ListenerKind | str, network: str) -> str | None:
        kind_name = kind.value if isinstance(kind, ListenerKind) else kind
        return self.truststore_paths.get((kind_name, network))
