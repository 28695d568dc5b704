"""Program artifacts: named builds exposing fuzz entry points."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List

from ..decoding.actions import ActionFamily, family_for
from ..errors import DeploymentError
from ..mocks import MockShape, SHAPES, shape_for

ENGINES = ("store", "legacy")
BUILTIN_ARTIFACT = "collections_bench"
LEGACY_SUFFIX = "_old"


@dataclass(frozen=True)
class EntryPointSpec:
    """One callable fuzz method: collection kind, value shape, engine flavor."""

    name: str
    kind: str
    shape: str
    engine: str = "store"

    def __post_init__(self) -> None:
        family_for(self.kind)
        shape_for(self.shape)
        if self.engine not in ENGINES:
            raise ValueError(
                f"Unknown engine '{self.engine}' for {self.name} (expected one of: {ENGINES})"
            )

    @property
    def family(self) -> ActionFamily:
        return family_for(self.kind)

    @property
    def value_shape(self) -> MockShape:
        return shape_for(self.shape)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "kind": self.kind,
            "shape": self.shape,
            "engine": self.engine,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "EntryPointSpec":
        return cls(
            name=data["name"],
            kind=data["kind"],
            shape=data["shape"],
            engine=data.get("engine", "store"),
        )


@dataclass(frozen=True)
class ProgramArtifact:
    name: str
    entry_points: Dict[str, EntryPointSpec] = field(default_factory=dict)

    def entry_point(self, name: str) -> EntryPointSpec:
        try:
            return self.entry_points[name]
        except KeyError:
            raise DeploymentError(
                f"Artifact '{self.name}' has no entry point '{name}'"
            ) from None

    def names(self) -> List[str]:
        return sorted(self.entry_points)

    @classmethod
    def from_specs(cls, name: str, specs: Iterable[EntryPointSpec]) -> "ProgramArtifact":
        table: Dict[str, EntryPointSpec] = {}
        for spec in specs:
            if spec.name in table:
                raise DeploymentError(f"Duplicate entry point '{spec.name}' in '{name}'")
            table[spec.name] = spec
        return cls(name=name, entry_points=table)

    def save(self, path: str | Path) -> None:
        data = {
            "name": self.name,
            "entry_points": [self.entry_points[n].to_dict() for n in self.names()],
        }
        with open(path, "w") as f:
            json.dump(data, f, indent=2)

    @classmethod
    def load(cls, path: str | Path) -> "ProgramArtifact":
        try:
            with open(path, "r") as f:
                data = json.load(f)
        except OSError as exc:
            raise DeploymentError(f"Cannot read program artifact {path}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise DeploymentError(f"Program artifact {path} is not valid JSON: {exc}") from exc
        try:
            specs = [EntryPointSpec.from_dict(entry) for entry in data["entry_points"]]
            return cls.from_specs(data.get("name", Path(path).stem), specs)
        except (KeyError, TypeError, ValueError) as exc:
            raise DeploymentError(f"Malformed program artifact {path}: {exc}") from exc


def entry_point_name(kind: str, shape: str, engine: str = "store") -> str:
    name = f"fuzz_{kind}_{shape}"
    return name + LEGACY_SUFFIX if engine == "legacy" else name


def builtin_artifact() -> ProgramArtifact:
    """Every kind x shape x engine combination under its conventional name."""

    specs = [
        EntryPointSpec(entry_point_name(kind, shape, engine), kind, shape, engine)
        for kind in ("map", "set", "tree")
        for shape in SHAPES
        for engine in ENGINES
    ]
    return ProgramArtifact.from_specs(BUILTIN_ARTIFACT, specs)


def resolve_artifact(ref: str | Path) -> ProgramArtifact:
    """Builtin name, or a path to a JSON manifest."""

    if str(ref) == BUILTIN_ARTIFACT:
        return builtin_artifact()
    path = Path(ref)
    if not path.is_file():
        raise DeploymentError(
            f"Program artifact '{ref}' not found (use '{BUILTIN_ARTIFACT}' or a manifest path)"
        )
    return ProgramArtifact.load(path)
