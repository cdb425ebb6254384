# runner.py
from __future__ import annotations

import shlex
import subprocess
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence

from .config import WORKSPACE_ROOT_ENV, Settings
from .contracts import validate_passthrough_args
from .dag import resolve_workflow_steps
from .errors import BlockflowError, ExecutionError
from .model import PlannedStep, RunState, VariableValue, WorkflowRun
from .registry import Registry
from .schema import BlockManifest, WorkflowDefinition
from .templates import resolve_step_args
from .ui.console import Console, get_console

BLOCK_TAG = "create-block"
WORKFLOW_TAG = "create-workflow"

TOOL_HINTS = {
    "node": "Install Node.js or fix PATH.",
    "npm": "Install Node.js (includes npm) or fix PATH.",
    "pnpm": "Install pnpm (npm install -g pnpm) or fix PATH.",
    "python": "Install Python or fix PATH.",
    "python3": "Install Python 3 or fix PATH (python3).",
}


# ----------------------------------------------------------------------
# Command resolution
# ----------------------------------------------------------------------

def resolve_command(
    manifest: BlockManifest, args: Sequence[str], *, script_root: str | Path
) -> List[str]:
    """
    Argument vector for invoking a block.

    The entry script is made absolute against ``script_root``; the entry's
    own trailing args come before the caller's args. Nothing is shell-quoted
    here because nothing goes through a shell.
    """
    entry = manifest.command
    script = Path(entry.script)
    if not script.is_absolute():
        script = Path(script_root) / script
    return [entry.program, str(script), *entry.args, *args]


# ----------------------------------------------------------------------
# Execution primitives
# ----------------------------------------------------------------------

def _spawn(
    argv: List[str],
    settings: Settings,
    *,
    block: str,
    step: Optional[str] = None,
) -> None:
    display = shlex.join(argv)
    workspace = Path(settings.workspace_root)
    if not workspace.is_dir():
        raise ExecutionError(
            block=block,
            step=step,
            command=display,
            exit_code=None,
            hint=f"Workspace root {workspace} does not exist; check {WORKSPACE_ROOT_ENV}.",
        )
    try:
        proc = subprocess.run(
            argv,
            cwd=str(workspace),
            env=settings.child_env(),
            check=False,
        )
    except FileNotFoundError:
        raise ExecutionError(
            block=block,
            step=step,
            command=display,
            exit_code=127,
            hint=TOOL_HINTS.get(Path(argv[0]).name, f'"{argv[0]}" was not found on PATH.'),
        ) from None
    except PermissionError:
        raise ExecutionError(
            block=block,
            step=step,
            command=display,
            exit_code=126,
            hint=f'"{argv[0]}" is not executable.',
        ) from None

    if proc.returncode != 0:
        raise ExecutionError(block=block, step=step, command=display, exit_code=proc.returncode)


def run_step(
    manifest: BlockManifest,
    args: Sequence[str],
    *,
    dry_run: bool = False,
    settings: Optional[Settings] = None,
    console: Optional[Console] = None,
    tag: str = BLOCK_TAG,
    step: Optional[str] = None,
) -> List[str]:
    """
    Run one block with already-validated args.

    Dry run prints the resolved command and returns without spawning.
    Otherwise the generator runs in the workspace root with inherited stdio.

    Returns:
        The argument vector that was (or would have been) executed.

    Raises:
        ExecutionError: the program is missing or exited non-zero.
    """
    settings = settings or Settings.from_env()
    console = console or get_console()

    argv = resolve_command(manifest, args, script_root=settings.script_root)
    console.print_command(tag, argv, dry_run=dry_run)
    if dry_run:
        return argv

    console.print_debug(f"cwd={settings.workspace_root}")
    _spawn(argv, settings, block=manifest.name, step=step)
    return argv


def run_block(
    registry: Registry,
    name: str,
    passthrough: Sequence[str],
    *,
    dry_run: bool = False,
    settings: Optional[Settings] = None,
    console: Optional[Console] = None,
) -> List[str]:
    """Look up a block, check its option contract, then run it."""
    manifest = registry.manifest(name)
    validate_passthrough_args(manifest, passthrough)
    return run_step(manifest, passthrough, dry_run=dry_run, settings=settings, console=console)


# ----------------------------------------------------------------------
# Workflows
# ----------------------------------------------------------------------

def merge_variables(
    workflow: WorkflowDefinition, overrides: Optional[Mapping[str, VariableValue]] = None
) -> Dict[str, VariableValue]:
    """Workflow defaults overlaid with caller-supplied values."""
    merged: Dict[str, VariableValue] = dict(workflow.defaults)
    merged.update(overrides or {})
    return merged


def plan_workflow(
    registry: Registry,
    workflow: WorkflowDefinition,
    variables: Mapping[str, VariableValue],
    *,
    settings: Settings,
) -> List[PlannedStep]:
    """
    Resolve order, args and commands for every step up front.

    Graph, interpolation and option-contract errors all surface here, before
    a single generator has touched the workspace.
    """
    planned: List[PlannedStep] = []
    for step in resolve_workflow_steps(workflow):
        manifest = registry.manifest(step.block)
        args = resolve_step_args(step, variables)
        validate_passthrough_args(manifest, args)
        command = resolve_command(manifest, args, script_root=settings.script_root)
        planned.append(PlannedStep(step=step, args=args, command=command))
    return planned


def run_workflow(
    registry: Registry,
    workflow: WorkflowDefinition,
    overrides: Optional[Mapping[str, VariableValue]] = None,
    *,
    dry_run: bool = False,
    settings: Optional[Settings] = None,
    console: Optional[Console] = None,
) -> WorkflowRun:
    """
    Plan, then execute a workflow's steps one at a time.

    The first failing step aborts the run; later steps are marked
    "skipped" and nothing already applied is rolled back.

    Raises:
        BlockflowError: any planning or execution failure. The run record is
            attached to the exception as ``exc.run``.
    """
    settings = settings or Settings.from_env()
    console = console or get_console()
    run = WorkflowRun(workflow=workflow.name, dry_run=dry_run)

    try:
        # The registry only holds documents that passed schema validation.
        run.advance(RunState.VALIDATED)
        variables = merge_variables(workflow, overrides)
        plan = plan_workflow(registry, workflow, variables, settings=settings)
        run.advance(RunState.GRAPH_RESOLVED)
    except BlockflowError as e:
        run.advance(RunState.ABORTED)
        e.run = run
        raise

    console.print_run_started(workflow.name, len(plan), dry_run)

    for index, planned in enumerate(plan):
        step = planned.step
        run.advance(RunState.STEP_RUNNING)
        console.print_step(step.id, step.block)
        try:
            run_step(
                registry.manifest(step.block),
                planned.args,
                dry_run=dry_run,
                settings=settings,
                console=console,
                tag=WORKFLOW_TAG,
                step=step.id,
            )
        except BlockflowError as e:
            run.results[step.id] = "failed"
            for rest in plan[index + 1:]:
                run.results[rest.step.id] = "skipped"
            run.advance(RunState.ABORTED)
            console.print_results(run.results)
            e.run = run
            raise
        run.results[step.id] = "dry-run" if dry_run else "ok"
        run.advance(RunState.STEP_SUCCEEDED)

    run.advance(RunState.COMPLETED)
    console.print_results(run.results)
    return run
