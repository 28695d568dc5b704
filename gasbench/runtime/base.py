"""Surface the harness expects from an isolated-execution runtime.

The runner only ever talks to these Protocols. The bundled local sandbox
implements them in-process; another runtime (a real sandbox node, a remote
worker) can be dropped in as long as it keeps the same contract:

* ``deploy`` either returns a fresh, independently-stateful instance or raises
  :class:`~gasbench.errors.DeploymentError`.
* ``submit`` applies one encoded action batch and reports the gas it burnt,
  or raises :class:`~gasbench.errors.SubmissionError`.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Protocol, Tuple

from .program import ProgramArtifact


class InstanceState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    DEPLOYED = "deployed"
    ACTIVE = "active"
    TERMINATED = "terminated"


@dataclass(frozen=True)
class SubmissionOutcome:
    """Gas burnt by one submission.

    ``transaction_gas`` covers converting the call into a receipt;
    ``receipt_gas`` lists the gas of every receipt executed for it.
    """

    entry_point: str
    transaction_gas: int
    receipt_gas: Tuple[int, ...] = ()
    logs: Tuple[str, ...] = field(default=(), compare=False)

    @property
    def total_gas_burnt(self) -> int:
        return self.transaction_gas + sum(self.receipt_gas)


class Instance(Protocol):
    """One deployed program with its own storage."""

    @property
    def instance_id(self) -> str: ...

    @property
    def state(self) -> InstanceState: ...

    async def submit(
        self, entry_point: str, payload: bytes, gas_limit: int
    ) -> SubmissionOutcome: ...

    async def close(self) -> None: ...


class Runtime(Protocol):
    """Factory for isolated instances."""

    async def deploy(self, artifact: ProgramArtifact) -> Instance: ...
