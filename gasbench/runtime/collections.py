"""Reference collection engines for the local sandbox.

Two flavors per collection kind mirror the two generations a benchmark
usually compares:

* ``store``: a write-back cache in front of storage. Reads populate the
  cache, writes only mark entries dirty, and ``flush`` (or the end of the
  call) commits them.
* ``legacy``: every operation goes straight to storage and ``flush`` is a
  no-op.

Engines are rebuilt for every submission over a :class:`MeteredStorage`,
the same way a contract reloads its state for every call.
"""

from __future__ import annotations

import bisect
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Tuple, Type

from ..codec import ByteWriter, encode_value
from ..decoding.reader import ByteCursor
from ..mocks import MockShape, MockValue
from .gas import GasMeter


class MeteredStorage:
    """Key/value storage that charges every host call to a gas meter."""

    def __init__(self, data: Dict[bytes, bytes], meter: GasMeter) -> None:
        self._data = data
        self.meter = meter

    def read(self, key: bytes) -> Optional[bytes]:
        value = self._data.get(key)
        self.meter.storage_read(len(key), len(value) if value is not None else 0)
        return value

    def write(self, key: bytes, value: bytes) -> Optional[bytes]:
        evicted = self._data.get(key)
        self.meter.storage_write(
            len(key), len(value), len(evicted) if evicted is not None else 0
        )
        self._data[key] = value
        return evicted

    def remove(self, key: bytes) -> Optional[bytes]:
        removed = self._data.get(key)
        self.meter.storage_remove(len(key), len(removed) if removed is not None else 0)
        self._data.pop(key, None)
        return removed

    def has_key(self, key: bytes) -> bool:
        self.meter.storage_has_key(len(key))
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)


class Collection:
    """Common plumbing: key derivation and value (de)serialization."""

    kind: str = ""
    engine: str = ""
    capabilities: FrozenSet[str] = frozenset()

    def __init__(self, storage: MeteredStorage, prefix: bytes, shape: MockShape) -> None:
        self.storage = storage
        self.prefix = prefix
        self.shape = shape

    def _key(self, key: MockValue) -> bytes:
        return self.prefix + encode_value(key)

    def _decode(self, raw: Optional[bytes]) -> Optional[MockValue]:
        if raw is None:
            return None
        cursor = ByteCursor(raw)
        return self.shape.read(cursor)

    def finish(self) -> None:
        """Called once after the last action of a submission."""


@dataclass
class _Cached:
    value: Optional[MockValue]
    dirty: bool = False


class StoreLookupMap(Collection):
    kind = "map"
    engine = "store"
    capabilities = frozenset({"insert", "set", "remove", "flush", "get"})

    def __init__(self, storage: MeteredStorage, prefix: bytes, shape: MockShape) -> None:
        super().__init__(storage, prefix, shape)
        self._cache: Dict[bytes, _Cached] = {}

    def _load(self, key: MockValue) -> Tuple[bytes, _Cached]:
        raw_key = self._key(key)
        entry = self._cache.get(raw_key)
        if entry is not None:
            self.storage.meter.memory_op()
            return raw_key, entry
        entry = _Cached(self._decode(self.storage.read(raw_key)))
        self._cache[raw_key] = entry
        return raw_key, entry

    def insert(self, key: MockValue, value: MockValue) -> Optional[MockValue]:
        _, entry = self._load(key)
        previous = entry.value
        entry.value = value
        entry.dirty = True
        return previous

    def set(self, key: MockValue, value: Optional[MockValue]) -> None:
        self.storage.meter.memory_op()
        self._cache[self._key(key)] = _Cached(value, dirty=True)

    def remove(self, key: MockValue) -> Optional[MockValue]:
        _, entry = self._load(key)
        previous = entry.value
        if previous is not None:
            entry.value = None
            entry.dirty = True
        return previous

    def get(self, key: MockValue) -> Optional[MockValue]:
        return self._load(key)[1].value

    def contains(self, key: MockValue) -> bool:
        return self.get(key) is not None

    def flush(self) -> None:
        for raw_key, entry in self._cache.items():
            if not entry.dirty:
                continue
            if entry.value is None:
                self.storage.remove(raw_key)
            else:
                self.storage.write(raw_key, encode_value(entry.value))
            entry.dirty = False

    def finish(self) -> None:
        self.flush()


class LegacyLookupMap(Collection):
    kind = "map"
    engine = "legacy"
    capabilities = frozenset({"insert", "set", "remove", "flush", "get"})

    def insert(self, key: MockValue, value: MockValue) -> Optional[MockValue]:
        return self._decode(self.storage.write(self._key(key), encode_value(value)))

    def set(self, key: MockValue, value: Optional[MockValue]) -> None:
        if value is None:
            self.remove(key)
        else:
            self.insert(key, value)

    def remove(self, key: MockValue) -> Optional[MockValue]:
        return self._decode(self.storage.remove(self._key(key)))

    def get(self, key: MockValue) -> Optional[MockValue]:
        return self._decode(self.storage.read(self._key(key)))

    def flush(self) -> None:
        pass


class StoreLookupSet(Collection):
    kind = "set"
    engine = "store"
    capabilities = frozenset({"insert", "put", "remove", "flush", "contains"})

    def __init__(self, storage: MeteredStorage, prefix: bytes, shape: MockShape) -> None:
        super().__init__(storage, prefix, shape)
        # raw key -> [present, dirty]
        self._cache: Dict[bytes, List[bool]] = {}

    def _load(self, value: MockValue) -> List[bool]:
        raw_key = self._key(value)
        entry = self._cache.get(raw_key)
        if entry is not None:
            self.storage.meter.memory_op()
            return entry
        entry = [self.storage.has_key(raw_key), False]
        self._cache[raw_key] = entry
        return entry

    def insert(self, value: MockValue) -> bool:
        entry = self._load(value)
        if entry[0]:
            return False
        entry[0] = entry[1] = True
        return True

    def put(self, value: MockValue) -> None:
        self.storage.meter.memory_op()
        self._cache[self._key(value)] = [True, True]

    def remove(self, value: MockValue) -> bool:
        entry = self._load(value)
        if not entry[0]:
            return False
        entry[0] = False
        entry[1] = True
        return True

    def contains(self, value: MockValue) -> bool:
        return self._load(value)[0]

    def flush(self) -> None:
        for raw_key, entry in self._cache.items():
            if not entry[1]:
                continue
            if entry[0]:
                self.storage.write(raw_key, b"")
            else:
                self.storage.remove(raw_key)
            entry[1] = False

    def finish(self) -> None:
        self.flush()


class LegacyLookupSet(Collection):
    kind = "set"
    engine = "legacy"
    capabilities = frozenset({"insert", "put", "remove", "flush", "contains"})

    def insert(self, value: MockValue) -> bool:
        return self.storage.write(self._key(value), b"") is None

    def put(self, value: MockValue) -> None:
        self.insert(value)

    def remove(self, value: MockValue) -> bool:
        return self.storage.remove(self._key(value)) is not None

    def contains(self, value: MockValue) -> bool:
        return self.storage.has_key(self._key(value))

    def flush(self) -> None:
        pass


class _TreeIndex:
    """Sorted key list persisted as one storage entry."""

    def __init__(self, storage: MeteredStorage, key: bytes, shape: MockShape) -> None:
        self.storage = storage
        self.key = key
        self.shape = shape
        self.keys: List[MockValue] = []

    def load(self) -> None:
        raw = self.storage.read(self.key)
        self.keys = []
        if raw is None:
            return
        cursor = ByteCursor(raw)
        for _ in range(cursor.read_u32()):
            self.keys.append(self.shape.read(cursor))

    def store(self) -> None:
        writer = ByteWriter()
        writer.write_u32(len(self.keys))
        for key in self.keys:
            key.write(writer)
        self.storage.write(self.key, writer.getvalue())

    def add(self, key: MockValue) -> bool:
        pos = bisect.bisect_left(self.keys, key)
        if pos < len(self.keys) and self.keys[pos] == key:
            return False
        self.keys.insert(pos, key)
        return True

    def discard(self, key: MockValue) -> bool:
        pos = bisect.bisect_left(self.keys, key)
        if pos < len(self.keys) and self.keys[pos] == key:
            del self.keys[pos]
            return True
        return False


class StoreTreeMap(Collection):
    kind = "tree"
    engine = "store"
    capabilities = frozenset({"insert", "remove", "get", "flush", "iter"})

    def __init__(self, storage: MeteredStorage, prefix: bytes, shape: MockShape) -> None:
        super().__init__(storage, prefix, shape)
        self._values = StoreLookupMap(storage, prefix + b"v", shape)
        self._index = _TreeIndex(storage, prefix + b"i", shape)
        self._index_loaded = False
        self._index_dirty = False

    def _ensure_index(self) -> _TreeIndex:
        if not self._index_loaded:
            self._index.load()
            self._index_loaded = True
        else:
            self.storage.meter.memory_op()
        return self._index

    def insert(self, key: MockValue, value: MockValue) -> Optional[MockValue]:
        previous = self._values.insert(key, value)
        if previous is None and self._ensure_index().add(key):
            self._index_dirty = True
        return previous

    def remove(self, key: MockValue) -> Optional[MockValue]:
        previous = self._values.remove(key)
        if previous is not None and self._ensure_index().discard(key):
            self._index_dirty = True
        return previous

    def get(self, key: MockValue) -> Optional[MockValue]:
        return self._values.get(key)

    def iter(self) -> List[Tuple[MockValue, Optional[MockValue]]]:
        return [(key, self._values.get(key)) for key in list(self._ensure_index().keys)]

    def flush(self) -> None:
        self._values.flush()
        if self._index_dirty:
            self._index.store()
            self._index_dirty = False

    def finish(self) -> None:
        self.flush()


class LegacyTreeMap(Collection):
    kind = "tree"
    engine = "legacy"
    capabilities = frozenset({"insert", "remove", "get", "flush", "iter"})

    def __init__(self, storage: MeteredStorage, prefix: bytes, shape: MockShape) -> None:
        super().__init__(storage, prefix, shape)
        self._values = LegacyLookupMap(storage, prefix + b"v", shape)
        self._index = _TreeIndex(storage, prefix + b"i", shape)

    def insert(self, key: MockValue, value: MockValue) -> Optional[MockValue]:
        previous = self._values.insert(key, value)
        if previous is None:
            self._index.load()
            if self._index.add(key):
                self._index.store()
        return previous

    def remove(self, key: MockValue) -> Optional[MockValue]:
        previous = self._values.remove(key)
        if previous is not None:
            self._index.load()
            if self._index.discard(key):
                self._index.store()
        return previous

    def get(self, key: MockValue) -> Optional[MockValue]:
        return self._values.get(key)

    def iter(self) -> List[Tuple[MockValue, Optional[MockValue]]]:
        self._index.load()
        return [(key, self._values.get(key)) for key in list(self._index.keys)]

    def flush(self) -> None:
        pass


ENGINE_CLASSES: Dict[Tuple[str, str], Type[Collection]] = {
    (cls.kind, cls.engine): cls
    for cls in (
        StoreLookupMap,
        LegacyLookupMap,
        StoreLookupSet,
        LegacyLookupSet,
        StoreTreeMap,
        LegacyTreeMap,
    )
}
