"""
Version gate — which features the target Redpanda version supports (pure).

The gate table is a module-level tuple built once at import time and
never mutated; callers may pass their own table for testing.

Only the release triple of a tag matters: ``v23.1.2-rc1+build.7`` gates
exactly like ``v23.1.2``. The image repository is never consulted, so
forked or retagged images gate on the version they carry.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Iterable

from src.core.services.chart.errors import VersionGateError

logger = logging.getLogger(__name__)

_TAG_RE = re.compile(
    r"^v?(?P<major>\d+)\.(?P<minor>\d+)\.(?P<patch>\d+)"
    r"(?:-[0-9A-Za-z.\-]+)?"   # pre-release, ignored
    r"(?:\+[0-9A-Za-z.\-]+)?$"  # build metadata, ignored
)

# Feature identifiers
FEATURE_SUPPORTED = "supported-version"
FEATURE_RPC_TLS = "rpc-tls"
TUNABLE_PREFIX = "tunable:"

ACTION_FAIL = "fail"
ACTION_OMIT = "omit"


@dataclass(frozen=True, order=True)
class Version:
    """A parsed release triple; ``tag`` keeps the original spelling."""

    major: int
    minor: int
    patch: int
    tag: str = field(default="", compare=False)

    @classmethod
    def parse(cls, tag: str) -> Version:
        """Parse ``[v]MAJOR.MINOR.PATCH[-pre][+build]``.

        Raises:
            ValueError: If the tag is not a semantic version.
        """
        m = _TAG_RE.match(tag.strip())
        if not m:
            raise ValueError(f"{tag!r} is not a valid semantic version")
        return cls(int(m["major"]), int(m["minor"]), int(m["patch"]), tag=tag)

    def __str__(self) -> str:
        return self.tag or f"v{self.major}.{self.minor}.{self.patch}"


def _v(text: str) -> Version:
    return Version.parse(text)


@dataclass(frozen=True)
class VersionGate:
    """A minimum-version requirement for one feature.

    ``backport`` is an optional ``[low, high)`` window of older releases
    that received the feature as a patch.
    """

    feature: str
    min_version: Version
    message: str
    action: str = ACTION_FAIL
    backport: tuple[Version, Version] | None = None

    def allows(self, version: Version) -> bool:
        if version >= self.min_version:
            return True
        if self.backport is not None:
            low, high = self.backport
            return low <= version < high
        return False

    def error_message(self, version: Version) -> str:
        return self.message.format(tag=version)


_RPC_TLS_MESSAGE = (
    "Redpanda version {tag} does not support TLS on the RPC port. "
    "Please upgrade. See technical service bulletin 2023-01."
)


def _tunable_gate(key: str, min_version: str) -> VersionGate:
    return VersionGate(
        feature=TUNABLE_PREFIX + key,
        min_version=_v(min_version),
        message=f"tunable {key!r} requires Redpanda {min_version} or newer (running {{tag}})",
        action=ACTION_OMIT,
    )


GATES: tuple[VersionGate, ...] = (
    VersionGate(
        feature=FEATURE_SUPPORTED,
        min_version=_v("22.2.0"),
        message="Redpanda version {tag} is no longer supported",
    ),
    VersionGate(
        feature=FEATURE_RPC_TLS,
        min_version=_v("23.1.2"),
        message=_RPC_TLS_MESSAGE,
        backport=(_v("22.3.13"), _v("22.4.0")),
    ),
    _tunable_gate("log_segment_size_min", "22.3.0"),
    _tunable_gate("log_segment_size_max", "22.3.0"),
    _tunable_gate("kafka_batch_max_bytes", "22.3.0"),
)


@dataclass(frozen=True)
class GateResult:
    """Outcome of a passing evaluation.

    ``omitted`` lists requested features that are silently unavailable
    on this version (``omit`` gates); the assembler drops them.
    """

    version: Version
    omitted: frozenset[str] = frozenset()

    def is_available(self, feature: str) -> bool:
        return feature not in self.omitted


def evaluate(
    version: Version,
    requested: Iterable[str],
    gates: tuple[VersionGate, ...] = GATES,
) -> GateResult:
    """Check the requested features against the gate table.

    Gates are evaluated in table order; the first failing ``fail`` gate
    aborts resolution.

    Raises:
        VersionGateError: A requested feature is unsupported on ``version``.
    """
    wanted = set(requested)
    omitted: set[str] = set()

    for gate in gates:
        if gate.feature not in wanted or gate.allows(version):
            continue
        if gate.action == ACTION_OMIT:
            logger.warning("%s; dropping it", gate.error_message(version))
            omitted.add(gate.feature)
            continue
        message = gate.error_message(version)
        logger.info("version gate %s blocked %s", gate.feature, version)
        raise VersionGateError(gate.feature, message)

    return GateResult(version=version, omitted=frozenset(omitted))
