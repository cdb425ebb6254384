# lint.py
"""
Catalog lint: every problem in every manifest and workflow, not just the first.

The registry stops at the first bad document; this module walks the same documents
but keeps going, so a contributor sees the whole list in one run. It also
enforces the docs/changelog rule for changes that touch the catalog.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from .config import MANIFESTS_SUBDIR, WORKFLOWS_SUBDIR, Settings
from .errors import SchemaError
from .registry import list_json_files, read_document
from .schema import BlockManifest, WorkflowDefinition, validate_manifest, validate_workflow
from .templates import find_variables

DOCS_REQUIRED = ("README.md", "CONTRIBUTING.md")
CHANGELOG = "CHANGELOG.md"
CHANGESET_DIR = ".changeset/"


@dataclass
class LintReport:
    manifests: List[BlockManifest] = field(default_factory=list)
    workflows: List[WorkflowDefinition] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    changed_files: Optional[List[str]] = None

    @property
    def ok(self) -> bool:
        return not self.errors

    def summary(self) -> str:
        if self.changed_files is None:
            changed = "docs sync not checked"
        elif self.changed_files:
            changed = f"{len(self.changed_files)} changed file(s) inspected"
        else:
            changed = "no changed files detected"
        return f"OK ({len(self.manifests)} manifests, {len(self.workflows)} workflows, {changed})."


def _relative(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return path.as_posix()


def _lint_manifests(settings: Settings, report: LintReport) -> None:
    for path in list_json_files(settings.manifests_dir):
        source = _relative(path, settings.script_root)
        try:
            doc = read_document(path)
            manifest = validate_manifest(
                doc, source, identity=path.stem, script_root=settings.script_root
            )
        except SchemaError as e:
            report.errors.extend(f"{source}: {issue}" for issue in e.issues)
            continue
        report.manifests.append(manifest)


def _undefined_variables(workflow: WorkflowDefinition, source: str) -> List[str]:
    errors: List[str] = []
    for index, step in enumerate(workflow.steps):
        for arg in step.args:
            for name in find_variables(arg):
                if name not in workflow.variables:
                    errors.append(
                        f'{source}: steps[{index}] ("{step.id}") references undefined variable "{name}".'
                    )
    return errors


def _lint_workflows(settings: Settings, report: LintReport) -> None:
    known = [m.name for m in report.manifests]
    for path in list_json_files(settings.workflows_dir):
        source = _relative(path, settings.script_root)
        try:
            doc = read_document(path)
            workflow = validate_workflow(doc, source, identity=path.stem, known_blocks=known)
        except SchemaError as e:
            report.errors.extend(f"{source}: {issue}" for issue in e.issues)
            continue
        report.errors.extend(_undefined_variables(workflow, source))
        report.workflows.append(workflow)


def check_docs_sync(changed: Sequence[str], root: Path) -> List[str]:
    """
    Catalog changes must ship with README/CONTRIBUTING updates and a changelog entry.

    Args:
        changed: changed paths, relative to ``root``, with forward slashes
        root: repository root holding the docs
    """
    catalog_prefixes = (f"{MANIFESTS_SUBDIR.as_posix()}/", f"{WORKFLOWS_SUBDIR.as_posix()}/")
    if not any(path.startswith(catalog_prefixes) for path in changed):
        return []

    errors: List[str] = []
    for doc in DOCS_REQUIRED:
        if not (root / doc).exists():
            errors.append(f"{doc} is required for docs sync checks.")
        elif doc not in changed:
            errors.append(f"Manifest/workflow changes require updating {doc}.")

    has_changeset = any(p.startswith(CHANGESET_DIR) and p.endswith(".md") for p in changed)
    if CHANGELOG not in changed and not has_changeset:
        errors.append(
            f"Manifest/workflow changes require {CHANGELOG} or a {CHANGESET_DIR}*.md entry "
            f"in the same change."
        )
    return errors


def lint_catalog(settings: Settings, changed_files: Optional[Sequence[str]] = None) -> LintReport:
    """
    Validate the whole catalog under ``settings.script_root``.

    When ``changed_files`` is given, the docs sync rule is applied as well.
    """
    report = LintReport()
    _lint_manifests(settings, report)
    _lint_workflows(settings, report)
    if changed_files is not None:
        report.changed_files = list(changed_files)
        report.errors.extend(check_docs_sync(report.changed_files, settings.script_root))
    return report
