# registry.py
from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from .config import Settings
from .errors import SchemaError, UnknownBlockError, UnknownWorkflowError
from .schema import BlockManifest, WorkflowDefinition, validate_manifest, validate_workflow


def list_json_files(directory: str | Path) -> List[Path]:
    """``*.json`` files in ``directory``, sorted; a missing directory is empty."""
    root = Path(directory)
    if not root.is_dir():
        return []
    return sorted(p for p in root.glob("*.json") if p.is_file())


def read_document(path: Path) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise SchemaError(str(path), [f"not valid UTF-8 (byte {e.start})"]) from e
    except OSError as e:
        raise SchemaError(str(path), [f"cannot be read ({e.strerror or e})"]) from e
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise SchemaError(str(path), [f"invalid JSON ({e.msg} at line {e.lineno} column {e.colno})"]) from e


def load_manifests(
    directory: str | Path, *, script_root: str | Path | None = None
) -> List[BlockManifest]:
    """
    Load and validate every manifest in ``directory``.

    Fails on the first bad document: a partial catalog would let workflows
    resolve against blocks that silently went missing.
    """
    manifests = [
        validate_manifest(read_document(path), path, identity=path.stem, script_root=script_root)
        for path in list_json_files(directory)
    ]
    return sorted(manifests, key=lambda m: m.name)


def load_workflows(
    directory: str | Path, *, known_blocks: Optional[Iterable[str]] = None
) -> List[WorkflowDefinition]:
    known = frozenset(known_blocks) if known_blocks is not None else None
    workflows = [
        validate_workflow(read_document(path), path, identity=path.stem, known_blocks=known)
        for path in list_json_files(directory)
    ]
    return sorted(workflows, key=lambda w: w.name)


@dataclass
class Registry:
    """The validated catalog for one invocation, indexed by name."""
    manifests: Dict[str, BlockManifest] = field(default_factory=dict)
    workflows: Dict[str, WorkflowDefinition] = field(default_factory=dict)

    @classmethod
    def from_lists(
        cls,
        manifests: Iterable[BlockManifest],
        workflows: Iterable[WorkflowDefinition] = (),
    ) -> Registry:
        return cls(
            manifests={m.name: m for m in manifests},
            workflows={w.name: w for w in workflows},
        )

    def manifest(self, name: str) -> BlockManifest:
        try:
            return self.manifests[name]
        except KeyError:
            raise UnknownBlockError(
                f'Unknown block "{name}". Run with "--list" to see valid names.'
            ) from None

    def workflow(self, name: str) -> WorkflowDefinition:
        try:
            return self.workflows[name]
        except KeyError:
            raise UnknownWorkflowError(
                f'Unknown workflow "{name}". Run with "--list" to see valid names.'
            ) from None


def load_registry(settings: Settings, *, include_workflows: bool = True) -> Registry:
    """Build the catalog from the settings' script root: manifests first, then workflows."""
    manifests = load_manifests(settings.manifests_dir, script_root=settings.script_root)
    workflows: List[WorkflowDefinition] = []
    if include_workflows:
        workflows = load_workflows(
            settings.workflows_dir, known_blocks=[m.name for m in manifests]
        )
    return Registry.from_lists(manifests, workflows)
