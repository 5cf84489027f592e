"""
Resolution errors and the validation reporter.

Two error kinds exist, both fatal:

- ``VersionGateError``: a feature was requested on an image version
  that does not support it. The message is fixed per gate.
- ``StructuralValidationError``: the values are malformed or
  over-specified (two trust-store sources, unknown certificate...).

``ValidationReport`` collects structural problems found during one
pass so the caller sees all of them at once, then raises a single error.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from pydantic import ValidationError

logger = logging.getLogger(__name__)


class ResolutionError(Exception):
    """Base class for everything the engine can fail with."""


class VersionGateError(ResolutionError):
    """A gated feature was requested below its minimum version."""

    def __init__(self, feature: str, message: str):
        super().__init__(message)
        self.feature = feature
        self.message = message


class StructuralValidationError(ResolutionError):
    """Malformed or over-specified input.

    ``problems`` holds ``(path, message)`` pairs; the string form lists
    them one per line as ``path: message``.
    """

    def __init__(self, problems: list[tuple[str, str]]):
        self.problems = list(problems)
        super().__init__("\n".join(f"{path}: {msg}" for path, msg in self.problems))

    @property
    def paths(self) -> list[str]:
        return [path for path, _ in self.problems]


@dataclass
class ValidationReport:
    """Accumulates structural problems, raises them together."""

    problems: list[tuple[str, str]] = field(default_factory=list)

    def add(self, path: str, message: str) -> None:
        logger.debug("validation problem at %s: %s", path, message)
        self.problems.append((path, message))

    @property
    def ok(self) -> bool:
        return not self.problems

    def raise_if_errors(self) -> None:
        if self.problems:
            raise StructuralValidationError(self.problems)


def _field_path(loc: tuple) -> str:
    parts: list[str] = []
    for item in loc:
        if isinstance(item, int):
            parts.append(f"[{item}]")
        else:
            parts.append(f".{item}" if parts else str(item))
    return "".join(parts)


def from_pydantic(exc: ValidationError) -> StructuralValidationError:
    """Convert a pydantic ValidationError into a StructuralValidationError.

    Field paths use the values.yaml spelling (pydantic reports aliases).
    """
    problems = []
    for err in exc.errors():
        msg = err.get("msg", "invalid value")
        # pydantic prefixes messages raised from validators
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        problems.append((_field_path(tuple(err.get("loc", ()))) or "<root>", msg))
    return StructuralValidationError(problems)
