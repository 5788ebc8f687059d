"""Builder capability — produces installer files for one target.

The orchestrator never knows how installers are made; it calls a ``Builder``
through this protocol.  Each method receives the remaining execution budget
of the calling job as ``timeout`` (seconds).
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from shipwright.models.targets import TargetDescriptor


class BuilderError(RuntimeError):
    """A builder step exited unsuccessfully.

    Attributes
    ----------
    step:
        Name of the failing builder step.
    returncode:
        Process exit status, or None when no process ran.
    output:
        Diagnostic text (tail of the process output).
    """

    def __init__(
        self, step: str, message: str, *, returncode: int | None = None, output: str = ""
    ) -> None:
        super().__init__(message)
        self.step = step
        self.returncode = returncode
        self.output = output


class BuilderTimeoutError(BuilderError):
    """A builder step exceeded its execution-time bound."""


@runtime_checkable
class Builder(Protocol):
    """Protocol for builder backends."""

    def check_environment(self, target: TargetDescriptor, workdir: Path, timeout: float) -> None:
        """Verify the toolchain for *target* is ready."""
        ...

    def add_native_target(self, target: TargetDescriptor, workdir: Path, timeout: float) -> None:
        """Install ``target.native_target`` for cross-compilation."""
        ...

    def install_dependencies(self, target: TargetDescriptor, workdir: Path, timeout: float) -> None:
        ...

    def prepare(self, target: TargetDescriptor, workdir: Path, timeout: float) -> None:
        """Point the product manifest at the target category (``prepare_args``)."""
        ...

    def build(self, target: TargetDescriptor, workdir: Path, timeout: float) -> list[Path]:
        """Build installers and return every produced file."""
        ...

    def build_portable(self, target: TargetDescriptor, workdir: Path, timeout: float) -> list[Path]:
        """Build the portable variant and return every produced file."""
        ...
