"""In-process sandbox runtime.

Stands in for the isolated execution environment: every deployment gets its
own storage, submissions are metered with a :class:`GasSchedule` and bounded
by their gas limit, and a failed submission leaves storage untouched.
"""

from __future__ import annotations

import itertools
import logging
from typing import Dict, Optional

from ..errors import CodecError, DeploymentError, GasExceeded, SubmissionError
from .adapter import CollectionAdapter
from .base import InstanceState, SubmissionOutcome
from .collections import MeteredStorage
from .gas import GasMeter, GasSchedule
from .program import ProgramArtifact

logger = logging.getLogger(__name__)


class LocalInstance:
    """One deployed artifact with exclusive storage."""

    def __init__(
        self, instance_id: str, artifact: ProgramArtifact, schedule: GasSchedule
    ) -> None:
        self._id = instance_id
        self._state = InstanceState.UNINITIALIZED
        self.artifact = artifact
        self.schedule = schedule
        self._storage: Dict[bytes, bytes] = {}
        self._adapters: Dict[str, CollectionAdapter] = {}
        self.submissions = 0

    def install(self) -> None:
        """Bind an adapter to every entry point; raises DeploymentError."""

        if self._state is not InstanceState.UNINITIALIZED:
            raise DeploymentError(f"Instance {self._id} is already {self._state.value}")
        self._adapters = {
            name: CollectionAdapter(spec)
            for name, spec in self.artifact.entry_points.items()
        }
        self._state = InstanceState.DEPLOYED

    @property
    def instance_id(self) -> str:
        return self._id

    @property
    def state(self) -> InstanceState:
        return self._state

    @property
    def storage_entries(self) -> int:
        return len(self._storage)

    def storage_snapshot(self) -> Dict[bytes, bytes]:
        return dict(self._storage)

    async def submit(
        self, entry_point: str, payload: bytes, gas_limit: int
    ) -> SubmissionOutcome:
        if self._state in (InstanceState.UNINITIALIZED, InstanceState.TERMINATED):
            raise SubmissionError(
                f"Instance {self._id} is {self._state.value}", entry_point=entry_point
            )
        adapter = self._adapters.get(entry_point)
        if adapter is None:
            raise SubmissionError(
                f"Method '{entry_point}' not found on {self._id}", entry_point=entry_point
            )

        meter = GasMeter(gas_limit, self.schedule)
        working = dict(self._storage)
        storage = MeteredStorage(working, meter)
        try:
            meter.charge(self.schedule.receipt_base_cost(len(payload)), "function_call")
            applied = adapter.execute(payload, storage)
        except GasExceeded as exc:
            exc.entry_point = entry_point
            logger.warning("%s.%s: %s", self._id, entry_point, exc)
            raise
        except CodecError as exc:
            raise SubmissionError(
                f"{self._id}.{entry_point}: failed to deserialize input: {exc}",
                entry_point=entry_point,
            ) from exc

        self._storage = working
        self._state = InstanceState.ACTIVE
        self.submissions += 1
        outcome = SubmissionOutcome(
            entry_point=entry_point,
            transaction_gas=self.schedule.transaction_cost(len(payload)),
            receipt_gas=(meter.used,),
            logs=(f"applied {applied} actions",),
        )
        logger.debug(
            "%s.%s: %d actions, %d bytes, gas=%d (%s)",
            self._id,
            entry_point,
            applied,
            len(payload),
            outcome.total_gas_burnt,
            dict(meter.counts),
        )
        return outcome

    async def close(self) -> None:
        if self._state is not InstanceState.TERMINATED:
            logger.debug("%s: terminated after %d submissions", self._id, self.submissions)
        self._state = InstanceState.TERMINATED


class LocalSandbox:
    """Runtime that deploys artifacts as :class:`LocalInstance` objects."""

    def __init__(self, schedule: Optional[GasSchedule] = None) -> None:
        self.schedule = schedule or GasSchedule()
        self._ids = itertools.count()

    async def deploy(self, artifact: ProgramArtifact) -> LocalInstance:
        if not artifact.entry_points:
            raise DeploymentError(f"Artifact '{artifact.name}' exposes no entry points")
        instance_id = f"{artifact.name}#{next(self._ids)}"
        instance = LocalInstance(instance_id, artifact, self.schedule)
        instance.install()
        logger.info(
            "deployed %s with %d entry points", instance_id, len(artifact.entry_points)
        )
        return instance
