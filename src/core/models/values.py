"""
Values model — the partial Helm values accepted by the Redpanda chart.

Every field is optional: ``None`` means "not set by this layer" and lets
the chart default (or a lower-precedence layer) show through. Keys use the
chart's camelCase spelling via aliases, so a values.yaml validates as-is.

Only the sections the resolution engine reads are modelled. Anything else
(``console``, ``tests``, ``affinity``...) is accepted and ignored.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class _Partial(BaseModel):
    """Base for partial values: camelCase aliases, unknown keys ignored."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ── TLS ─────────────────────────────────────────────────────────


class KeyRef(BaseModel):
    """A ``{name, key}`` reference into a ConfigMap or Secret."""

    model_config = ConfigDict(extra="forbid")

    name: str
    key: str


class TrustStoreSource(BaseModel):
    """Where a listener reads its CA bundle from.

    A sum type: at most one of the references may be set. The schema
    accepts both so the check can run after version gating; the listener
    resolver reports it. An empty record means "no explicit trust store".
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    config_map_key_ref: KeyRef | None = Field(default=None, alias="configMapKeyRef")
    secret_key_ref: KeyRef | None = Field(default=None, alias="secretKeyRef")

    @property
    def set_count(self) -> int:
        return sum(ref is not None for ref in (self.config_map_key_ref, self.secret_key_ref))

    @property
    def is_empty(self) -> bool:
        return self.config_map_key_ref is None and self.secret_key_ref is None


class SecretRef(BaseModel):
    """An existing Secret holding ``tls.crt``/``tls.key``/``ca.crt``."""

    model_config = ConfigDict(extra="ignore")

    name: str


class PartialCert(_Partial):
    """One entry of ``tls.certs``."""

    enabled: bool | None = None
    ca_enabled: bool | None = Field(default=None, alias="caEnabled")
    secret_ref: SecretRef | None = Field(default=None, alias="secretRef")
    issuer_ref: dict[str, Any] | None = Field(default=None, alias="issuerRef")
    duration: str | None = None


class PartialTLS(_Partial):
    enabled: bool | None = None
    certs: dict[str, PartialCert] = Field(default_factory=dict)


class PartialListenerTLS(_Partial):
    """TLS block of a single listener (internal or external)."""

    enabled: bool | None = None
    cert: str | None = None
    require_client_auth: bool | None = Field(default=None, alias="requireClientAuth")
    trust_store: TrustStoreSource | None = Field(default=None, alias="trustStore")


# ── Listeners ───────────────────────────────────────────────────


class PartialExternalListener(_Partial):
    enabled: bool | None = None
    port: int | None = None
    advertised_ports: list[int] | None = Field(default=None, alias="advertisedPorts")
    tls: PartialListenerTLS | None = None


class PartialListener(_Partial):
    """A listener kind: its internal listener plus named external ones."""

    enabled: bool | None = None
    port: int | None = None
    tls: PartialListenerTLS | None = None
    external: dict[str, PartialExternalListener] = Field(default_factory=dict)


class PartialListeners(_Partial):
    admin: PartialListener | None = None
    kafka: PartialListener | None = None
    http: PartialListener | None = None
    schema_registry: PartialListener | None = Field(default=None, alias="schemaRegistry")
    rpc: PartialListener | None = None


# ── Everything else the engine reads ────────────────────────────


class PartialImage(_Partial):
    repository: str | None = None
    tag: str | None = None


class PartialConfig(_Partial):
    cluster: dict[str, Any] = Field(default_factory=dict)
    tunable: dict[str, Any] = Field(default_factory=dict)


class PartialStatefulset(_Partial):
    replicas: int | None = None


class PartialEnterprise(_Partial):
    license: str | None = None


class PartialRackAwareness(_Partial):
    enabled: bool | None = None
    node_annotation: str | None = Field(default=None, alias="nodeAnnotation")


class PartialValues(_Partial):
    """Root of the values document."""

    fullname_override: str | None = Field(default=None, alias="fullnameOverride")
    image: PartialImage = Field(default_factory=PartialImage)
    tls: PartialTLS = Field(default_factory=PartialTLS)
    listeners: PartialListeners = Field(default_factory=PartialListeners)
    config: PartialConfig = Field(default_factory=PartialConfig)
    statefulset: PartialStatefulset = Field(default_factory=PartialStatefulset)
    enterprise: PartialEnterprise = Field(default_factory=PartialEnterprise)
    rack_awareness: PartialRackAwareness = Field(
        default_factory=PartialRackAwareness, alias="rackAwareness",
    )
