"""
Configuration assembler — resolved listeners, truststore paths and
tunables → one ResolvedConfiguration.

Produces:

- ``broker_config``: the redpanda.yaml sections (listener addresses and
  one TLS entry per TLS-enabled network, named after the network).
- ``cluster_config``: cluster properties (bootstrap), including the
  version-approved tunables and the replica-dependent
  ``default_topic_replications`` default.
- ``tunables``: the version-approved tunable overrides on their own.
- ``mounts``: certificate secrets followed by truststore references;
  every entry carries its mount path, so none is left orphaned.
"""

from __future__ import annotations

import copy
import logging
from types import MappingProxyType
from typing import Any, Mapping

from src.core.models.resolved import (
    INTERNAL,
    CertificateEntry,
    Listener,
    ListenerKind,
    ResolvedConfiguration,
    VolumeMountSpec,
    freeze,
)
from src.core.models.values import PartialValues
from src.core.services.chart.defaults import (
    CHART_DEFAULTS,
    DEFAULT_TOPIC_REPLICATIONS,
    LISTEN_ADDRESS,
    TOPIC_REPLICATION_THRESHOLD,
)
from src.core.services.chart.listeners import pick
from src.core.services.chart.truststores import (
    PathTable,
    listener_order,
    unique_name,
    volume_name,
)
from src.core.services.chart.version_gate import TUNABLE_PREFIX, GateResult

logger = logging.getLogger(__name__)

# kind → (top-level section, address list key, TLS list key)
SECTIONS: dict[ListenerKind, tuple[str, str, str]] = {
    ListenerKind.KAFKA: ("redpanda", "kafka_api", "kafka_api_tls"),
    ListenerKind.ADMIN: ("redpanda", "admin", "admin_api_tls"),
    ListenerKind.HTTP: ("pandaproxy", "pandaproxy_api", "pandaproxy_api_tls"),
    ListenerKind.SCHEMA_REGISTRY: ("schema_registry", "schema_registry_api", "schema_registry_api_tls"),
}


# ═══════════════════════════════════════════════════════════════════
#  Derived defaults
# ═══════════════════════════════════════════════════════════════════


def default_topic_replications(cluster: Mapping[str, Any], replicas: int) -> int | None:
    """The ``default_topic_replications`` value to inject, if any.

    An explicit value always wins (it is already in ``cluster``, so
    nothing is injected). Otherwise clusters of at least three brokers
    get 3, and smaller ones get no key at all.
    """
    if "default_topic_replications" in cluster:
        return None
    if replicas >= TOPIC_REPLICATION_THRESHOLD:
        return DEFAULT_TOPIC_REPLICATIONS
    return None


def replica_count(values: PartialValues) -> int:
    return pick((CHART_DEFAULTS.statefulset.replicas, values.statefulset.replicas), 0)


def image_reference(values: PartialValues, version: str) -> str:
    repository = pick((CHART_DEFAULTS.image.repository, values.image.repository))
    return f"{repository}:{version}"


def approved_tunables(values: PartialValues, gate: GateResult) -> dict[str, Any]:
    """Tunable overrides the version gate let through, copied."""
    return {
        key: copy.deepcopy(value)
        for key, value in values.config.tunable.items()
        if gate.is_available(TUNABLE_PREFIX + key)
    }


def build_cluster_config(values: PartialValues, gate: GateResult) -> dict[str, Any]:
    cluster: dict[str, Any] = copy.deepcopy(dict(values.config.cluster))
    cluster.update(approved_tunables(values, gate))

    replicas = replica_count(values)
    injected = default_topic_replications(cluster, replicas)
    if injected is not None:
        logger.debug("%d replicas: default_topic_replications=%d", replicas, injected)
        cluster["default_topic_replications"] = injected

    if values.enterprise.license:
        cluster["license"] = values.enterprise.license

    rack = [CHART_DEFAULTS.rack_awareness, values.rack_awareness]
    if pick(r.enabled for r in rack):
        cluster["enable_rack_awareness"] = True

    return dict(sorted(cluster.items()))


# ═══════════════════════════════════════════════════════════════════
#  Broker config (redpanda.yaml)
# ═══════════════════════════════════════════════════════════════════


def tls_entry(
    listener: Listener,
    certificates: Mapping[str, CertificateEntry],
    truststore: str | None,
) -> dict[str, Any]:
    """The TLS block of one listener, as it appears in redpanda.yaml."""
    cert = certificates[listener.cert]
    entry: dict[str, Any] = {
        "name": listener.network,
        "enabled": True,
        "cert_file": cert.cert_file,
        "key_file": cert.key_file,
        "require_client_auth": listener.require_client_auth,
    }
    if truststore is not None:
        entry["truststore_file"] = truststore
    return entry


def build_broker_config(
    listeners: Mapping[tuple[ListenerKind, str], Listener],
    certificates: Mapping[str, CertificateEntry],
    paths: PathTable,
) -> dict[str, Any]:
    config: dict[str, Any] = {"redpanda": {}}

    for kind, (section, api_key, tls_key) in SECTIONS.items():
        members = sorted(
            (lst for (k, _), lst in listeners.items() if k is kind),
            key=listener_order,
        )
        if not members:
            continue
        block = config.setdefault(section, {})
        block[api_key] = [
            {"name": lst.network, "address": LISTEN_ADDRESS, "port": lst.port}
            for lst in members
        ]
        tls = [
            tls_entry(lst, certificates, paths.get((kind.value, lst.network)))
            for lst in members if lst.tls_enabled
        ]
        if tls:
            block[tls_key] = tls

    rpc = listeners.get((ListenerKind.RPC, INTERNAL))
    if rpc is not None:
        config["redpanda"]["rpc_server"] = {"address": LISTEN_ADDRESS, "port": rpc.port}
        if rpc.tls_enabled:
            entry = tls_entry(rpc, certificates, paths.get((ListenerKind.RPC.value, INTERNAL)))
            del entry["name"]
            config["redpanda"]["rpc_server_tls"] = entry

    return config


# ═══════════════════════════════════════════════════════════════════
#  Certificates and mounts
# ═══════════════════════════════════════════════════════════════════


def certificates_in_use(
    listeners: Mapping[tuple[ListenerKind, str], Listener],
) -> list[str]:
    """Certificate names used by TLS listeners, in first-use order."""
    ordered = sorted(listeners.values(), key=listener_order)
    return list(dict.fromkeys(lst.cert for lst in ordered if lst.tls_enabled and lst.cert))


def certificate_mounts(
    names: list[str],
    certificates: Mapping[str, CertificateEntry],
    fullname: str,
    taken: set[str] | None = None,
) -> list[VolumeMountSpec]:
    """One secret mount per certificate in use.

    Volume names already in ``taken`` (truststore volumes) are avoided,
    and names that collide after sanitizing get a numeric suffix.
    """
    taken = set() if taken is None else taken
    mounts = []
    for name in names:
        entry = certificates[name]
        secret = entry.secret_ref or f"{fullname}-{name}-cert"
        mounts.append(VolumeMountSpec(
            volume_name=unique_name(volume_name(f"{fullname}-{name}-cert"), taken),
            source_kind="secret",
            source_name=secret,
            mount_path=entry.directory,
        ))
    return mounts


def assemble(
    values: PartialValues,
    listeners: Mapping[tuple[ListenerKind, str], Listener],
    certificates: Mapping[str, CertificateEntry],
    paths: PathTable,
    truststore_mounts: list[VolumeMountSpec],
    gate: GateResult,
    fullname: str,
) -> ResolvedConfiguration:
    """Combine the resolved pieces into the final, read-only model."""
    in_use = certificates_in_use(listeners)
    taken = {m.volume_name for m in truststore_mounts}
    mounts = certificate_mounts(in_use, certificates, fullname, taken) + list(truststore_mounts)
    issued = tuple(name for name in in_use if certificates[name].issued)

    logger.debug(
        "assembled: %d mounts, certificates issued: %s",
        len(mounts), ", ".join(issued) or "none",
    )

    return ResolvedConfiguration(
        version=str(gate.version),
        fullname=fullname,
        image=image_reference(values, str(gate.version)),
        replicas=replica_count(values),
        listeners=MappingProxyType(dict(listeners)),
        certificates=MappingProxyType(dict(certificates)),
        truststore_paths=MappingProxyType(dict(paths)),
        mounts=tuple(mounts),
        broker_config=freeze(build_broker_config(listeners, certificates, paths)),
        cluster_config=freeze(build_cluster_config(values, gate)),
        tunables=freeze(approved_tunables(values, gate)),
        issued_certificates=issued,
    )
