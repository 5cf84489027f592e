"""
Redpanda chart resolution engine.

    from src.core.services.chart import resolve_configuration

    resolved = resolve_configuration({"statefulset": {"replicas": 1}})
    resolved.truststore_path("kafka", "internal")
"""

from src.core.services.chart.engine import resolve_configuration
from src.core.services.chart.errors import (
    ResolutionError,
    StructuralValidationError,
    VersionGateError,
)

__all__ = [
    "ResolutionError",
    "StructuralValidationError",
    "VersionGateError",
    "resolve_configuration",
]
