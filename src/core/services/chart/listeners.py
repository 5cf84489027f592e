"""
Listener model resolver — partial listener values → resolved listeners.

Precedence, lowest to highest (the last layer that sets a field wins):

    internal:  chart default for the kind  →  user override
    external:  chart default for that name →  user override for that name
               (unset tls.enabled / tls.cert fall back to the resolved
               internal listener of the same kind, never to a sibling)

``trustStore`` is replaced whole by the highest layer that sets it; its
two references are never mixed across layers.
"""

from __future__ import annotations

import logging
from typing import Iterable, TypeVar

from src.core.models.resolved import (
    INTERNAL,
    CertificateEntry,
    Listener,
    ListenerKind,
    TrustStoreKind,
    TrustStoreRef,
)
from src.core.models.values import (
    PartialListener,
    PartialListenerTLS,
    PartialValues,
    TrustStoreSource,
)
from src.core.services.chart.defaults import CHART_DEFAULTS
from src.core.services.chart.errors import ValidationReport

logger = logging.getLogger(__name__)

T = TypeVar("T")

ListenerKey = tuple[ListenerKind, str]

TRUST_STORE_SOURCES_ERROR = "Must have at most 1 properties"


def pick(values: Iterable[T | None], default: T | None = None) -> T | None:
    """Return the last non-None value (highest-precedence layer)."""
    chosen = default
    for value in values:
        if value is not None:
            chosen = value
    return chosen


# ═══════════════════════════════════════════════════════════════════
#  Certificates
# ═══════════════════════════════════════════════════════════════════


def resolve_certificates(
    values: PartialValues,
    defaults: PartialValues = CHART_DEFAULTS,
) -> dict[str, CertificateEntry]:
    """Merge the chart's ``tls.certs`` table with the user's, per field."""
    names = dict.fromkeys([*defaults.tls.certs, *values.tls.certs])
    table: dict[str, CertificateEntry] = {}
    for name in names:
        layers = [c for c in (defaults.tls.certs.get(name), values.tls.certs.get(name)) if c]
        secret_ref = pick(c.secret_ref for c in layers)
        table[name] = CertificateEntry(
            name=name,
            enabled=pick((c.enabled for c in layers), True),
            ca_enabled=pick((c.ca_enabled for c in layers), False),
            secret_ref=secret_ref.name if secret_ref else None,
        )
    return table


# ═══════════════════════════════════════════════════════════════════
#  Trust-store sum type
# ═══════════════════════════════════════════════════════════════════


def trust_store_ref(source: TrustStoreSource | None) -> TrustStoreRef | None:
    """Convert a validated TrustStoreSource into its resolved variant.

    An empty record (or None) means no explicit trust store.
    """
    if source is None or source.is_empty:
        return None
    if source.config_map_key_ref is not None:
        ref, kind = source.config_map_key_ref, TrustStoreKind.CONFIGMAP
    else:
        ref, kind = source.secret_key_ref, TrustStoreKind.SECRET
    return TrustStoreRef(kind=kind, name=ref.name, key=ref.key)


# ═══════════════════════════════════════════════════════════════════
#  Listeners
# ═══════════════════════════════════════════════════════════════════


def _tls_layers(layers: list) -> list[PartialListenerTLS]:
    return [layer.tls for layer in layers if layer is not None and layer.tls is not None]


def _resolve_one(
    kind: ListenerKind,
    network: str,
    path: str,
    layers: list,
    enabled_fallback: bool,
    cert_fallback: str | None,
    certificates: dict[str, CertificateEntry],
    report: ValidationReport,
) -> tuple[Listener | None, bool, str | None]:
    """Resolve a single listener from its layers.

    Returns the listener (None if it could not be built), and the raw TLS
    flag and cert name that external listeners fall back to.
    """
    tls = _tls_layers(layers)

    requested = pick((t.enabled for t in tls), enabled_fallback)
    cert = pick((t.cert for t in tls), cert_fallback) or None
    flag = bool(requested) and cert is not None

    tls_enabled = flag
    if flag:
        entry = certificates.get(cert)
        if entry is None:
            report.add(f"{path}.tls.cert", f"certificate {cert!r} is not defined in tls.certs")
            tls_enabled = False
        elif not entry.enabled:
            logger.debug("%s: certificate %r is disabled, TLS treated as absent", path, cert)
            tls_enabled = False

    port = pick(layer.port for layer in layers if layer is not None)
    if port is None:
        report.add(f"{path}.port", "port is required")
        return None, flag, cert

    advertised = pick(getattr(layer, "advertised_ports", None) for layer in layers if layer is not None)

    listener = Listener(
        kind=kind,
        network=network,
        port=port,
        tls_enabled=tls_enabled,
        cert=cert if tls_enabled else None,
        require_client_auth=bool(pick((t.require_client_auth for t in tls), False)),
        trust_store=trust_store_ref(pick(t.trust_store for t in tls)) if tls_enabled else None,
        advertised_ports=tuple(advertised or ()),
    )
    return listener, flag, cert


def _resolve_kind(
    kind: ListenerKind,
    default: PartialListener | None,
    override: PartialListener | None,
    global_tls: bool,
    certificates: dict[str, CertificateEntry],
    report: ValidationReport,
) -> dict[ListenerKey, Listener]:
    base = f"listeners.{kind.values_key}"
    kind_layers = [default, override]
    out: dict[ListenerKey, Listener] = {}

    if not pick((layer.enabled for layer in kind_layers if layer is not None), True):
        logger.debug("%s disabled", base)
        return out

    internal, flag, cert = _resolve_one(
        kind, INTERNAL, base, kind_layers,
        enabled_fallback=global_tls, cert_fallback=None,
        certificates=certificates, report=report,
    )
    if internal is not None:
        out[(kind, INTERNAL)] = internal

    default_ext = default.external if default is not None else {}
    override_ext = override.external if override is not None else {}

    if not kind.supports_external:
        if override_ext:
            report.add(f"{base}.external", f"{kind.value} listeners cannot be exposed externally")
        return out

    for name in sorted(dict.fromkeys([*default_ext, *override_ext])):
        path = f"{base}.external.{name}"
        if name == INTERNAL:
            report.add(path, f"external listener name {INTERNAL!r} is reserved")
            continue
        layers = [default_ext.get(name), override_ext.get(name)]
        if not pick((layer.enabled for layer in layers if layer is not None), True):
            continue
        external, _, _ = _resolve_one(
            kind, name, path, layers,
            enabled_fallback=flag, cert_fallback=cert,
            certificates=certificates, report=report,
        )
        if external is not None:
            out[(kind, name)] = external

    return out


def check_trust_stores(values: PartialValues, report: ValidationReport) -> None:
    """Report every trustStore record that sets more than one reference.

    Every declared listener is checked, enabled or not.
    """
    for kind in ListenerKind:
        listener = getattr(values.listeners, kind.value)
        if listener is None:
            continue
        base = f"listeners.{kind.values_key}"
        tls_blocks = [(base, listener.tls)]
        tls_blocks += [(f"{base}.external.{name}", ext.tls) for name, ext in listener.external.items()]
        for path, tls in tls_blocks:
            if tls is not None and tls.trust_store is not None and tls.trust_store.set_count > 1:
                report.add(f"{path}.tls.trustStore", TRUST_STORE_SOURCES_ERROR)


def resolve_listeners(
    values: PartialValues,
    certificates: dict[str, CertificateEntry],
    defaults: PartialValues = CHART_DEFAULTS,
) -> dict[ListenerKey, Listener]:
    """Resolve every listener of every kind.

    The network names of a kind are exactly ``internal`` plus the external
    names declared (by the chart or the user) and not disabled.

    Raises:
        StructuralValidationError: Unknown certificates, missing ports,
            reserved or unsupported external listeners,
            trust stores with more than one source.
    """
    report = ValidationReport()
    global_tls = bool(pick((defaults.tls.enabled, values.tls.enabled), True))

    resolved: dict[ListenerKey, Listener] = {}
    for kind in ListenerKind:
        resolved.update(_resolve_kind(
            kind,
            getattr(defaults.listeners, kind.value),
            getattr(values.listeners, kind.value),
            global_tls,
            certificates,
            report,
        ))

    check_trust_stores(values, report)
    report.raise_if_errors()
    logger.debug(
        "resolved %d listeners (%d with TLS)",
        len(resolved), sum(1 for lst in resolved.values() if lst.tls_enabled),
    )
    return resolved


def rpc_tls_requested(
    values: PartialValues,
    defaults: PartialValues = CHART_DEFAULTS,
) -> bool:
    """Whether the RPC listener will end up with TLS enabled.

    Evaluated before full listener resolution so the version gate can run
    first; mirrors the rules in ``_resolve_one`` for the internal listener.
    """
    layers = [defaults.listeners.rpc, values.listeners.rpc]
    if not pick((layer.enabled for layer in layers if layer is not None), True):
        return False
    tls = _tls_layers(layers)
    global_tls = pick((defaults.tls.enabled, values.tls.enabled), True)
    cert = pick(t.cert for t in tls)
    if not pick((t.enabled for t in tls), global_tls) or not cert:
        return False
    entry = resolve_certificates(values, defaults).get(cert)
    return entry is not None and entry.enabled
