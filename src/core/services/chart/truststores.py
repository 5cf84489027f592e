"""
Trust store resolver — which CA bundle each TLS listener trusts, and
which volumes must be mounted to provide them.

For a TLS-enabled listener the effective source is, in order:

1. its explicit ``trustStore`` (ConfigMap or Secret key), mounted at
   ``/etc/truststores/{configmaps|secrets}/<name>-<key>``;
2. the CA of its own certificate when that entry has ``caEnabled``,
   at ``/etc/tls/certs/<cert>/ca.crt`` (provided by the certificate mount);
3. nothing: the listener gets no truststore entry.

Listeners citing the same (kind, name, key) share one mount and one path,
so the mount count is bounded by distinct references.
Distinct references whose ``<name>-<key>`` file names coincide (``a-b`` / ``c``
and ``a`` / ``b-c``) would share a mount path and are rejected.
"""

from __future__ import annotations

import logging
import re
from typing import Mapping

from src.core.models.resolved import (
    CertificateEntry,
    Listener,
    ListenerKind,
    TrustStoreRef,
    VolumeMountSpec,
)
from src.core.services.chart.errors import ValidationReport

logger = logging.getLogger(__name__)

PathTable = dict[tuple[str, str], str]

_VOLUME_NAME_RE = re.compile(r"[^a-z0-9\-]")
_KIND_ORDER = {kind: i for i, kind in enumerate(ListenerKind)}


def volume_name(raw: str) -> str:
    """Sanitize a volume name for DNS label compliance.

    - lowercase
    - replace anything but alphanumerics and dashes with a dash
    - collapse consecutive dashes, strip leading/trailing dashes
    - truncate to 63 chars
    """
    name = _VOLUME_NAME_RE.sub("-", raw.lower())
    name = re.sub(r"-+", "-", name).strip("-")
    return name[:63].rstrip("-") or "truststore"


def listener_order(listener: Listener) -> tuple:
    return (_KIND_ORDER[listener.kind], listener.is_external, listener.network)


def effective_trust_store(
    listener: Listener,
    certificates: Mapping[str, CertificateEntry],
) -> TrustStoreRef | CertificateEntry | None:
    """The trust source a listener ends up with (see module docstring)."""
    if not listener.tls_enabled:
        return None
    if listener.trust_store is not None:
        return listener.trust_store
    entry = certificates.get(listener.cert or "")
    if entry is not None and entry.ca_enabled:
        return entry
    return None


def unique_name(base: str, taken: set[str]) -> str:
    """Reserve ``base`` in ``taken``, suffixed -2, -3... on collision."""
    name, n = base, 1
    while name in taken:
        n += 1
        suffix = f"-{n}"
        name = base[: 63 - len(suffix)].rstrip("-") + suffix
    taken.add(name)
    return name


def trust_store_path(listener: Listener) -> str:
    """The values path of a listener's ``trustStore`` block."""
    base = f"listeners.{listener.kind.values_key}"
    if listener.is_external:
        base += f".external.{listener.network}"
    return f"{base}.tls.trustStore"


def resolve_truststores(
    listeners: Mapping[tuple[ListenerKind, str], Listener],
    certificates: Mapping[str, CertificateEntry],
) -> tuple[PathTable, list[VolumeMountSpec]]:
    """Build the truststore path table and the deduplicated mount list.

    Returns:
        ``(paths, mounts)`` where ``paths`` maps ``(kind, network)`` to a
        file path and ``mounts`` holds one entry per distinct explicit
        reference, in first-use order.

    Raises:
        StructuralValidationError: Two distinct references resolve to
            the same file path.
    """
    paths: PathTable = {}
    mounts: dict[TrustStoreRef, VolumeMountSpec] = {}
    taken: set[str] = set()
    owners: dict[str, TrustStoreRef] = {}
    report = ValidationReport()

    for listener in sorted(listeners.values(), key=listener_order):
        source = effective_trust_store(listener, certificates)
        key = (listener.kind.value, listener.network)

        if source is None:
            if listener.tls_enabled:
                logger.debug("%s/%s: no trust store", *key)
            continue

        if isinstance(source, CertificateEntry):
            paths[key] = source.ca_file
            continue

        owner = owners.setdefault(source.path, source)
        if owner != source:
            report.add(
                trust_store_path(listener),
                f"{source.kind.value} {source.name!r} key {source.key!r} resolves to "
                f"{source.path}, already used by {owner.kind.value} {owner.name!r} key {owner.key!r}",
            )
            continue

        if source not in mounts:
            name = unique_name(
                volume_name(f"truststore-{source.kind.value}-{source.name}-{source.key}"),
                taken,
            )
            mounts[source] = VolumeMountSpec(
                volume_name=name,
                source_kind=source.kind.value,
                source_name=source.name,
                key=source.key,
                mount_path=source.path,
                sub_path=source.filename,
            )
        paths[key] = source.path

    report.raise_if_errors()
    logger.debug("%d truststore paths, %d truststore mounts", len(paths), len(mounts))
    return paths, list(mounts.values())
