"""Generic adapter between an entry point and its collection engine.

One adapter class serves every kind x shape x engine combination: the entry
point spec picks the action family (which fixes the capability set the engine
must provide) and the value shape used to decode the payload.
"""

from __future__ import annotations

import logging
from typing import Sequence

from ..codec import decode_actions
from ..decoding.actions import Action
from ..errors import DeploymentError
from .collections import ENGINE_CLASSES, Collection, MeteredStorage
from .program import EntryPointSpec

logger = logging.getLogger(__name__)


class CollectionAdapter:
    def __init__(self, spec: EntryPointSpec) -> None:
        engine_cls = ENGINE_CLASSES.get((spec.kind, spec.engine))
        if engine_cls is None:
            raise DeploymentError(
                f"No {spec.engine} engine for {spec.kind} collections ({spec.name})"
            )
        missing = spec.family.ops - engine_cls.capabilities
        if missing:
            raise DeploymentError(
                f"{engine_cls.__name__} cannot serve {spec.name}: missing {sorted(missing)}"
            )
        self.spec = spec
        self.engine_cls = engine_cls
        self.prefix = spec.name.encode() + b":"

    def open(self, storage: MeteredStorage) -> Collection:
        return self.engine_cls(storage, self.prefix, self.spec.value_shape)

    def apply(self, actions: Sequence[Action], storage: MeteredStorage) -> int:
        """Apply ``actions`` in order; returns how many were applied."""

        collection = self.open(storage)
        for action in actions:
            storage.meter.dispatch()
            getattr(collection, action.op)(*action.args())
        collection.finish()
        return len(actions)

    def execute(self, payload: bytes, storage: MeteredStorage) -> int:
        actions = decode_actions(payload, self.spec.family, self.spec.value_shape)
        logger.debug("%s: applying %d actions", self.spec.name, len(actions))
        return self.apply(actions, storage)
