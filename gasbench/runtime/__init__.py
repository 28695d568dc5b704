"""Execution runtimes: the Protocols the runner needs and the local sandbox."""

from .base import Instance, InstanceState, Runtime, SubmissionOutcome  # noqa: F401
from .gas import DEFAULT_GAS_LIMIT, GasMeter, GasSchedule  # noqa: F401
from .local import LocalInstance, LocalSandbox  # noqa: F401
from .program import (  # noqa: F401
    BUILTIN_ARTIFACT,
    EntryPointSpec,
    ProgramArtifact,
    builtin_artifact,
    entry_point_name,
    resolve_artifact,
)

__all__ = [
    "BUILTIN_ARTIFACT",
    "DEFAULT_GAS_LIMIT",
    "EntryPointSpec",
    "GasMeter",
    "GasSchedule",
    "Instance",
    "InstanceState",
    "LocalInstance",
    "LocalSandbox",
    "ProgramArtifact",
    "Runtime",
    "SubmissionOutcome",
    "builtin_artifact",
    "entry_point_name",
    "resolve_artifact",
]
