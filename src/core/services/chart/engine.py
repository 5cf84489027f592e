"""
Resolution engine — partial values + target version → ResolvedConfiguration.

Pipeline (each stage may abort, nothing partial is ever returned):

    supported-version gate (on the image tag alone)
      → parse values (schema)
      → feature gates (RPC TLS, tunables)
      → structural checks on cluster-level values
      → listener model resolver
      → trust store resolver
      → configuration assembler

The engine is a pure function: no I/O, no shared mutable state. The
gate table and chart defaults are read-only module constants.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from pydantic import ValidationError

from src.core.models.resolved import ResolvedConfiguration
from src.core.models.values import PartialValues
from src.core.services.chart import version_gate
from src.core.services.chart.assembler import assemble
from src.core.services.chart.defaults import CHART_DEFAULTS, DEFAULT_FULLNAME
from src.core.services.chart.errors import (
    StructuralValidationError,
    ValidationReport,
    from_pydantic,
)
from src.core.services.chart.listeners import (
    pick,
    resolve_certificates,
    resolve_listeners,
    rpc_tls_requested,
)
from src.core.services.chart.truststores import resolve_truststores
from src.core.services.chart.version_gate import (
    FEATURE_RPC_TLS,
    FEATURE_SUPPORTED,
    TUNABLE_PREFIX,
    Version,
)

logger = logging.getLogger(__name__)


def parse_values(raw: Mapping[str, Any] | PartialValues | None) -> PartialValues:
    """Validate a values mapping against the chart schema.

    Raises:
        StructuralValidationError: The document does not fit the schema.
    """
    if isinstance(raw, PartialValues):
        return raw
    try:
        return PartialValues.model_validate(dict(raw or {}))
    except ValidationError as e:
        raise from_pydantic(e) from e


def peek_tag(raw: Mapping[str, Any] | PartialValues | None) -> Any:
    """The user's ``image.tag`` read without validating the rest of the document."""
    if isinstance(raw, PartialValues):
        return raw.image.tag
    if not isinstance(raw, Mapping):
        return None
    image = raw.get("image")
    return image.get("tag") if isinstance(image, Mapping) else None


def parse_tag(tag: Any) -> Version:
    """The image version to gate on (repository is irrelevant).

    Raises:
        StructuralValidationError: The tag is not a semantic version.
    """
    tag = pick((CHART_DEFAULTS.image.tag, tag))
    try:
        return Version.parse(str(tag))
    except ValueError as e:
        raise StructuralValidationError([("image.tag", str(e))]) from e


def requested_features(values: PartialValues) -> set[str]:
    """Gated features the values ask for."""
    features = {FEATURE_SUPPORTED}
    if rpc_tls_requested(values):
        features.add(FEATURE_RPC_TLS)
    features.update(TUNABLE_PREFIX + key for key in values.config.tunable)
    return features


def check_cluster_values(values: PartialValues) -> None:
    """Cross-field checks outside the listener tree.

    Raises:
        StructuralValidationError: With every problem found.
    """
    report = ValidationReport()

    rack = [CHART_DEFAULTS.rack_awareness, values.rack_awareness]
    if pick(r.enabled for r in rack) and not pick(r.node_annotation for r in rack):
        report.add(
            "rackAwareness.nodeAnnotation",
            "must be set when rackAwareness.enabled is true",
        )

    replicas = values.statefulset.replicas
    if replicas is not None and replicas < 0:
        report.add("statefulset.replicas", "must be greater than or equal to 0")

    report.raise_if_errors()


def resolve_configuration(
    raw: Mapping[str, Any] | PartialValues | None,
) -> ResolvedConfiguration:
    """Resolve partial chart values into a complete configuration.

    Args:
        raw: The merged user values (a mapping as loaded from YAML, or an
            already validated PartialValues).

    Returns:
        A read-only ResolvedConfiguration.

    Raises:
        VersionGateError: The image version lacks a requested feature.
        StructuralValidationError: The values are malformed.
    """
    # an unsupported version fails whatever else the document holds
    version = parse_tag(peek_tag(raw))
    version_gate.evaluate(version, {FEATURE_SUPPORTED})

    values = parse_values(raw)
    gate = version_gate.evaluate(version, requested_features(values))
    logger.debug("version %s passed all gates", version)

    check_cluster_values(values)

    certificates = resolve_certificates(values)
    listeners = resolve_listeners(values, certificates)
    paths, truststore_mounts = resolve_truststores(listeners, certificates)

    fullname = values.fullname_override or DEFAULT_FULLNAME
    return assemble(
        values, listeners, certificates, paths, truststore_mounts, gate, fullname,
    )
