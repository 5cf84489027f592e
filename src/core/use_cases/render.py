"""
Render use case — load values, resolve, project to manifests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from src.core.config.loader import ConfigError, load_values
from src.core.models.resolved import ResolvedConfiguration
from src.core.services.chart import ResolutionError, resolve_configuration
from src.core.services.chart.render import render_manifests


@dataclass
class RenderResult:
    """Result of resolving (and optionally rendering) a values set."""

    resolved: ResolvedConfiguration | None = None
    manifests: list[dict] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.resolved is not None and not self.errors

    def to_dict(self) -> dict:
        """Convert to a JSON-serializable dictionary."""
        if not self.ok:
            return {"ok": False, "errors": self.errors}
        assert self.resolved is not None
        return {
            "ok": True,
            "version": self.resolved.version,
            "truststores": {
                f"{kind}/{network}": path
                for (kind, network), path in sorted(self.resolved.truststore_paths.items())
            },
            "mounts": [m.volume_name for m in self.resolved.mounts],
            "certificates": list(self.resolved.issued_certificates),
            "manifests": self.manifests,
        }


def render_values(
    values_files: list[Path] | None = None,
    sets: list[str] | None = None,
    *,
    manifests: bool = True,
) -> RenderResult:
    """Resolve the given values and render manifests.

    Errors are reported in the result, never raised.

    Args:
        values_files: Values files, later ones win.
        sets: ``key.path=value`` overrides applied last.
        manifests: If False, only resolve (validation run).
    """
    result = RenderResult()

    try:
        values = load_values(values_files or [], sets or [])
    except ConfigError as e:
        result.errors.append(str(e))
        return result

    try:
        result.resolved = resolve_configuration(values)
    except ResolutionError as e:
        result.errors.append(str(e))
        return result

    if manifests:
        result.manifests = render_manifests(result.resolved)
    return result
