from __future__ import annotations

import pytest
from click.testing import CliRunner

from blockflow.cli import cli, create_block, create_workflow

from conftest import files_under, write_json


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


# ---------------------------------------------------------------------
# create-block
# ---------------------------------------------------------------------

def test_block_list(runner, env_roots):
    result = runner.invoke(create_block, ["--list"])

    assert result.exit_code == 0
    assert "Available blocks:" in result.stdout
    assert "  - next-app" in result.stdout
    assert "--name <string> (required)" in result.stdout


def test_block_help_prints_usage_and_catalog(runner, env_roots):
    result = runner.invoke(create_block, ["--help"])

    assert result.exit_code == 0
    assert result.stdout.startswith("Usage:")
    assert "create-block --block nest-app --name <string>" in result.stdout
    assert "  - nest-app" in result.stdout


def test_block_missing_required_option(runner, env_roots, workspace):
    result = runner.invoke(create_block, ["--block", "next-app", "--port", "3000"])

    assert result.exit_code == 1
    assert result.stderr.strip() == '[create-block] Missing required option "--name" for block "next-app".'
    assert files_under(workspace) == []


def test_block_dry_run_prints_one_command_and_writes_nothing(runner, env_roots, workspace):
    result = runner.invoke(create_block, ["--block", "next-app", "--name", "demo", "--port", "3000", "--dry-run"])

    assert result.exit_code == 0, result.stderr
    lines = result.stdout.splitlines()
    assert len(lines) == 1
    assert lines[0].startswith("[create-block] [dry-run] ")
    assert lines[0].endswith("--name demo --port 3000")
    assert files_under(workspace) == []


def test_block_runs_generator(runner, env_roots, workspace):
    result = runner.invoke(create_block, ["-b", "next-app", "--", "--name", "web", "--skip-install"])

    assert result.exit_code == 0, result.stderr
    assert (workspace / "apps" / "web" / "package.json").exists()


def test_block_equals_form(runner, env_roots):
    result = runner.invoke(create_block, ["--block=next-app", "--name=demo", "--dry-run"])
    assert result.exit_code == 0, result.stderr
    assert result.stdout.rstrip().endswith("--name=demo")


@pytest.mark.parametrize(
    "args, message",
    [
        (["--name", "x"], 'Missing "--block <name>"'),
        (["--block", "ghost"], 'Unknown block "ghost"'),
        (["--block", "next-app", "--name", "x", "--colour", "red"], 'Unknown flag "--colour"'),
        (["--block", "next-app", "--name", "x", "--port", "abc"], "expects a number"),
        (["--block", "next-app", "--name", "x", "--skip-install", "maybe"], "invalid boolean value"),
        (["--block", "next-app", "stray"], 'Unexpected positional argument "stray"'),
    ],
)
def test_block_failures_print_one_tagged_line(runner, env_roots, args, message):
    result = runner.invoke(create_block, args)

    assert result.exit_code == 1
    lines = result.stderr.strip().splitlines()
    assert len(lines) == 1
    assert lines[0].startswith("[create-block] ")
    assert message in lines[0]


def test_generator_failure_exits_non_zero(runner, env_roots):
    result = runner.invoke(create_block, ["--block", "next-app", "--name", "x", "--fail"])
    assert result.exit_code == 1
    assert "exit=3" in result.stderr


def test_malformed_manifest_fails_listing(runner, env_roots):
    write_json(env_roots.manifests_dir / "broken.json", {"name": "broken"})
    result = runner.invoke(create_block, ["--list"])

    assert result.exit_code == 1
    assert "broken.json" in result.stderr


# ---------------------------------------------------------------------
# create-workflow
# ---------------------------------------------------------------------

def test_workflow_list(runner, env_roots):
    result = runner.invoke(create_workflow, ["--list"])

    assert result.exit_code == 0
    assert "Available workflows:" in result.stdout
    assert "  - examples" in result.stdout
    assert "steps: api, web" in result.stdout


def test_workflow_dry_run_orders_steps(runner, env_roots, workspace):
    result = runner.invoke(create_workflow, ["--workflow", "examples", "--dry-run", "--web", "admin", "--web-port", "3200"])

    assert result.exit_code == 0, result.stderr
    commands = [l for l in result.stdout.splitlines() if l.startswith("[create-workflow] [dry-run]")]
    assert len(commands) == 2
    assert commands[0].endswith("--name admin --port 3200")
    assert commands[1].endswith("--name api")
    assert files_under(workspace) == []


def test_workflow_runs_web_before_api(runner, env_roots, workspace):
    result = runner.invoke(create_workflow, ["-w", "examples"])

    assert result.exit_code == 0, result.stderr
    assert (workspace / "order.log").read_text().splitlines() == ["web", "api"]


@pytest.mark.parametrize(
    "args, message",
    [
        (["--dry-run"], 'Missing "--workflow <name>"'),
        (["--workflow", "ghost"], 'Unknown workflow "ghost"'),
        (["--workflow", "examples", "stray"], 'Unexpected positional argument "stray"'),
        (["--workflow", "examples", "--web-port", "x"], 'expects a number, got "x"'),
    ],
)
def test_workflow_failures_print_one_tagged_line(runner, env_roots, workspace, args, message):
    result = runner.invoke(create_workflow, args)

    assert result.exit_code == 1
    lines = result.stderr.strip().splitlines()
    assert len(lines) == 1
    assert lines[0].startswith("[create-workflow] ")
    assert message in lines[0]
    assert files_under(workspace) == []


def test_workflow_missing_variable_fails_before_spawning(runner, env_roots, workspace):
    write_json(
        env_roots.workflows_dir / "partial.json",
        {
            "name": "partial",
            "description": "",
            "steps": [
                {"id": "one", "block": "next-app", "args": ["--name", "one"]},
                {"id": "two", "block": "next-app", "args": ["--name", "{{missing}}"], "dependsOn": ["one"]},
            ],
        },
    )
    result = runner.invoke(create_workflow, ["--workflow", "partial"])

    assert result.exit_code == 1
    assert 'Missing workflow variable "missing"' in result.stderr
    assert files_under(workspace) == []


# ---------------------------------------------------------------------
# blockflow group
# ---------------------------------------------------------------------

def test_group_exposes_block_and_workflow(runner, env_roots):
    assert runner.invoke(cli, ["block", "--list"]).exit_code == 0
    assert runner.invoke(cli, ["workflow", "--list"]).exit_code == 0


def test_debug_adds_traceback(runner, env_roots):
    result = runner.invoke(cli, ["--debug", "block", "--block", "ghost"])

    assert result.exit_code == 1
    assert '[create-block] Unknown block "ghost"' in result.stderr
    assert "[DEBUG] workspace=" in result.stderr
    assert "Traceback" in result.stderr


@pytest.mark.parametrize(
    "command, args, tag",
    [
        (create_block, ["--block"], "create-block"),
        (create_workflow, ["-w"], "create-workflow"),
    ],
)
def test_click_usage_errors_are_tagged(runner, env_roots, command, args, tag):
    result = runner.invoke(command, args)

    assert result.exit_code == 1
    lines = result.stderr.strip().splitlines()
    assert len(lines) == 1
    assert lines[0].startswith(f"[{tag}] ")
    assert "requires an argument" in lines[0]


def test_non_utf8_manifest_named_in_listing(runner, env_roots):
    (env_roots.manifests_dir / "bad.json").write_bytes(b'{"name": "\xff"}')
    result = runner.invoke(create_block, ["--list"])

    assert result.exit_code == 1
    assert result.stderr.startswith("[create-block] ")
    assert "bad.json: not valid UTF-8" in result.stderr


def test_workflow_list_renders_variables_like_interpolation(runner, env_roots):
    write_json(
        env_roots.workflows_dir / "flags.json",
        {
            "name": "flags",
            "description": "",
            "variables": {"install": True, "ratio": 2.0},
            "steps": [{"block": "next-app", "args": ["--name", "x"]}],
        },
    )
    result = runner.invoke(create_workflow, ["--list"])

    assert result.exit_code == 0, result.stderr
    assert "variables: install=true, ratio=2" in result.stdout
