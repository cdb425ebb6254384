from __future__ import annotations

import json
import shlex
import sys
from pathlib import Path

import pytest

from blockflow.config import Settings
from blockflow.ui.console import Console, set_console

GENERATOR = """\
import argparse
import os
import pathlib
import sys

parser = argparse.ArgumentParser()
parser.add_argument("--name")
parser.add_argument("--port")
parser.add_argument("--skip-install", action="store_true")
parser.add_argument("--fail", action="store_true")
args, _ = parser.parse_known_args()

if args.fail:
    sys.exit(3)

root = pathlib.Path(os.environ["BLOCKFLOW_WORKSPACE_ROOT"])
target = root / "apps" / args.name
target.mkdir(parents=True, exist_ok=True)
(target / "package.json").write_text('{"name": "%s"}' % args.name)
with open(root / "order.log", "a") as log:
    log.write(args.name + "\\n")
"""


def write_json(path: Path, doc) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(doc, indent=2))
    return path


def app_manifest(name: str, **overrides) -> dict:
    doc = {
        "name": name,
        "description": f"{name} generator",
        "entry": f"{shlex.quote(sys.executable)} automations/generators/app.py",
        "options": [
            {"flag": "--name", "type": "string", "required": True},
            {"flag": "--port", "type": "number"},
            {"flag": "--skip-install", "type": "boolean"},
            {"flag": "--fail", "type": "boolean"},
        ],
        "outputs": ["apps/<name>/**"],
    }
    doc.update(overrides)
    return doc


EXAMPLES_WORKFLOW = {
    "name": "examples",
    "description": "Web app plus API",
    "variables": {"web": "web", "api": "api", "webPort": 3000},
    "steps": [
        {"id": "api", "block": "nest-app", "args": ["--name", "{{api}}"], "dependsOn": ["web"]},
        {"id": "web", "block": "next-app", "args": ["--name", "{{web}}", "--port", "{{webPort}}"]},
    ],
}


@pytest.fixture(autouse=True)
def quiet_console():
    set_console(Console())
    yield
    set_console(Console())


@pytest.fixture
def script_root(tmp_path: Path) -> Path:
    root = tmp_path / "scripts"
    (root / "automations" / "generators").mkdir(parents=True)
    (root / "automations" / "generators" / "app.py").write_text(GENERATOR)
    write_json(root / "automations" / "manifests" / "next-app.json", app_manifest("next-app"))
    write_json(root / "automations" / "manifests" / "nest-app.json", app_manifest("nest-app"))
    write_json(root / "automations" / "workflows" / "examples.json", EXAMPLES_WORKFLOW)
    return root


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    root = tmp_path / "workspace"
    root.mkdir()
    return root


@pytest.fixture
def settings(workspace: Path, script_root: Path) -> Settings:
    return Settings(workspace_root=workspace, script_root=script_root)


@pytest.fixture
def env_roots(monkeypatch, workspace: Path, script_root: Path) -> Settings:
    monkeypatch.setenv("BLOCKFLOW_WORKSPACE_ROOT", str(workspace))
    monkeypatch.setenv("BLOCKFLOW_SCRIPT_ROOT", str(script_root))
    return Settings.from_env()


def files_under(root: Path) -> list[str]:
    return sorted(p.relative_to(root).as_posix() for p in root.rglob("*"))
