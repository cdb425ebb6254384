# cli.py
from __future__ import annotations

import subprocess
import sys

import click

from blockflow.config import Settings
from blockflow.errors import InvocationError
from blockflow.flags import variables_from_flags
from blockflow.git_facts.git import changed_files, is_repo, working_tree_changes
from blockflow.lint import lint_catalog
from blockflow.registry import Registry, load_registry
from blockflow.runner import BLOCK_TAG, WORKFLOW_TAG, run_block, run_workflow
from blockflow.templates import format_value
from blockflow.ui.console import Console, get_console, set_console

LINT_TAG = "lint"

# Unknown options are forwarded to the generator instead of rejected by click.
PASSTHROUGH_SETTINGS = {"ignore_unknown_options": True}


class PassthroughCommand(click.Command):
    """
    A command that forwards unknown flags and ignores bare ``--`` separators.

    Click's own usage errors are reported like every other failure: one
    line prefixed with ``tag``, exit status 1.
    """

    def __init__(self, *args, tag: str, **kwargs):
        super().__init__(*args, **kwargs)
        self.tag = tag

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        try:
            return super().parse_args(ctx, [arg for arg in args if arg != "--"])
        except click.UsageError as e:
            _fail(self.tag, e)


def _fail(tag: str, exc: BaseException) -> None:
    get_console().print_exception(tag, exc)
    sys.exit(1)


def _interrupted() -> None:
    get_console().print_info("\nInterrupted by user")
    sys.exit(130)


# ----------------------------------------------------------------------
# Catalog listings
# ----------------------------------------------------------------------

def _option_line(option) -> str:
    line = f"{option.flag} <{option.type}>"
    if option.required:
        line += " (required)"
    if option.description:
        line += f"  {option.description}"
    return line


def print_block_list(registry: Registry) -> None:
    get_console().print_catalog(
        "Available blocks:",
        [
            (m.name, m.description, [_option_line(o) for o in m.options])
            for m in registry.manifests.values()
        ],
    )


def print_block_help(registry: Registry) -> None:
    examples = []
    for manifest in list(registry.manifests.values())[:3]:
        required = [f"{o.flag} <{o.type}>" for o in manifest.options if o.required]
        examples.append(" ".join([f"create-block --block {manifest.name}", *required]))
    get_console().print_usage(
        [
            "create-block --block <name> [--dry-run] [--] [generator flags]",
            "create-block --list",
        ],
        examples or ["create-block --block next-app --name admin --port 3002"],
    )
    print_block_list(registry)


def print_workflow_list(registry: Registry) -> None:
    entries = []
    for workflow in registry.workflows.values():
        details = [f"steps: {', '.join(s.id for s in workflow.steps)}"]
        if workflow.variables:
            pairs = ", ".join(f"{k}={format_value(v)}" for k, v in workflow.variables.items())
            details.append(f"variables: {pairs}")
        entries.append((workflow.name, workflow.description, details))
    get_console().print_catalog("Available workflows:", entries)


def print_workflow_help(registry: Registry) -> None:
    get_console().print_usage(
        [
            "create-workflow --workflow <name> [--var value]",
            "create-workflow --workflow <name> --dry-run [--var value]",
            "create-workflow --list",
        ],
        [
            "create-workflow --workflow examples",
            "create-workflow --workflow examples --web admin --api api --web-port 3200",
        ],
    )
    print_workflow_list(registry)


# ----------------------------------------------------------------------
# Commands
# ----------------------------------------------------------------------

@click.command(
    "block",
    cls=PassthroughCommand,
    tag=BLOCK_TAG,
    add_help_option=False,
    context_settings=PASSTHROUGH_SETTINGS,
)
@click.option("--block", "-b", "block_name", default=None, metavar="NAME", help="Block to run")
@click.option("--list", "list_only", is_flag=True, default=False, help="List available blocks")
@click.option("--help", "-h", "show_help", is_flag=True, default=False, help="Show usage and blocks")
@click.option("--dry-run", is_flag=True, default=False, help="Print the command without running it")
@click.argument("passthrough", nargs=-1, type=click.UNPROCESSED)
def create_block(block_name, list_only, show_help, dry_run, passthrough):
    """Run one generator block with its own flags."""
    console = get_console()
    try:
        settings = Settings.from_env()
        console.print_debug(f"workspace={settings.workspace_root} scripts={settings.script_root}")
        registry = load_registry(settings, include_workflows=False)

        if show_help:
            print_block_help(registry)
            return
        if list_only:
            print_block_list(registry)
            return
        if not block_name:
            raise InvocationError(
                'Missing "--block <name>". Run with "--list" to see available blocks.'
            )

        run_block(
            registry,
            block_name,
            list(passthrough),
            dry_run=dry_run,
            settings=settings,
            console=console,
        )
    except KeyboardInterrupt:
        _interrupted()
    except Exception as e:
        _fail(BLOCK_TAG, e)


@click.command(
    "workflow",
    cls=PassthroughCommand,
    tag=WORKFLOW_TAG,
    add_help_option=False,
    context_settings=PASSTHROUGH_SETTINGS,
)
@click.option("--workflow", "-w", "workflow_name", default=None, metavar="NAME", help="Workflow to run")
@click.option("--list", "list_only", is_flag=True, default=False, help="List available workflows")
@click.option("--help", "-h", "show_help", is_flag=True, default=False, help="Show usage and workflows")
@click.option("--dry-run", is_flag=True, default=False, help="Print every command without running any")
@click.argument("variables", nargs=-1, type=click.UNPROCESSED)
def create_workflow(workflow_name, list_only, show_help, dry_run, variables):
    """Run a workflow: a dependency-ordered chain of blocks."""
    console = get_console()
    try:
        overrides = variables_from_flags(list(variables))
        settings = Settings.from_env()
        console.print_debug(f"workspace={settings.workspace_root} scripts={settings.script_root}")
        registry = load_registry(settings)

        if show_help:
            print_workflow_help(registry)
            return
        if list_only:
            print_workflow_list(registry)
            return
        if not workflow_name:
            raise InvocationError(
                'Missing "--workflow <name>". Run with "--list" to see available workflows.'
            )

        console.print_debug(f"overrides={overrides}")
        run_workflow(
            registry,
            registry.workflow(workflow_name),
            overrides,
            dry_run=dry_run,
            settings=settings,
            console=console,
        )
    except KeyboardInterrupt:
        _interrupted()
    except Exception as e:
        _fail(WORKFLOW_TAG, e)


@click.group()
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show stack traces and detailed output)",
)
@click.pass_context
def cli(ctx, debug):
    """blockflow: manifest-driven generator blocks and workflows."""
    set_console(Console(debug=debug))
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


cli.add_command(create_block)
cli.add_command(create_workflow)


@cli.command()
@click.option(
    "--docs-sync/--no-docs-sync",
    default=False,
    show_default=True,
    help="Require README/CONTRIBUTING/CHANGELOG updates when the catalog changes",
)
@click.option("--base", default=None, help="Git ref to diff against (defaults to working tree changes)")
def lint(docs_sync, base):
    """Validate every manifest and workflow, reporting all issues."""
    console = get_console()
    settings = Settings.from_env()

    changed = None
    if docs_sync:
        if not is_repo(settings.script_root):
            _fail(LINT_TAG, RuntimeError(f"--docs-sync needs a git work tree at {settings.script_root}"))
        try:
            if base:
                changed = changed_files(base, cwd=settings.script_root)
            else:
                changed = working_tree_changes(cwd=settings.script_root)
        except (subprocess.CalledProcessError, FileNotFoundError) as e:
            _fail(LINT_TAG, RuntimeError(f"Could not read git changes: {e}"))

    report = lint_catalog(settings, changed)
    if report.ok:
        console.print_info(f"[{LINT_TAG}] {report.summary()}")
        return

    console.print_error(LINT_TAG, "Found issues:")
    for error in report.errors:
        print(f"- {error}", file=sys.stderr)
    sys.exit(1)


if __name__ == "__main__":
    cli()
