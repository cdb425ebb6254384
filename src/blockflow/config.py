# config.py
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

WORKSPACE_ROOT_ENV = "BLOCKFLOW_WORKSPACE_ROOT"
SCRIPT_ROOT_ENV = "BLOCKFLOW_SCRIPT_ROOT"

MANIFESTS_SUBDIR = Path("automations") / "manifests"
WORKFLOWS_SUBDIR = Path("automations") / "workflows"


@dataclass(frozen=True)
class Settings:
    """
    Where generators live and where they write.

    workspace_root: the repository being scaffolded; generators run here.
    script_root: where the catalog and generator scripts live. Defaults to
        the workspace root, but may point elsewhere so a test can scaffold
        into a throwaway directory with the real generators.
    """
    workspace_root: Path
    script_root: Path

    @property
    def manifests_dir(self) -> Path:
        return self.script_root / MANIFESTS_SUBDIR

    @property
    def workflows_dir(self) -> Path:
        return self.script_root / WORKFLOWS_SUBDIR

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> Settings:
        env = os.environ if environ is None else environ

        workspace = env.get(WORKSPACE_ROOT_ENV)
        workspace_root = Path(workspace).resolve() if workspace else Path.cwd().resolve()

        scripts = env.get(SCRIPT_ROOT_ENV)
        script_root = Path(scripts).resolve() if scripts else workspace_root

        return cls(workspace_root=workspace_root, script_root=script_root)

    def child_env(self, base: Optional[Mapping[str, str]] = None) -> dict[str, str]:
        """Environment for generator subprocesses, with both roots exported."""
        env = dict(os.environ if base is None else base)
        env[WORKSPACE_ROOT_ENV] = str(self.workspace_root)
        env[SCRIPT_ROOT_ENV] = str(self.script_root)
        return env
