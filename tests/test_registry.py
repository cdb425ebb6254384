from __future__ import annotations

import pytest

from blockflow.errors import SchemaError, UnknownBlockError, UnknownWorkflowError
from blockflow.registry import load_manifests, load_registry, load_workflows

from conftest import app_manifest, write_json


def test_load_registry_indexes_sorted_by_name(settings):
    registry = load_registry(settings)

    assert list(registry.manifests) == ["nest-app", "next-app"]
    assert list(registry.workflows) == ["examples"]
    assert registry.manifest("next-app").name == "next-app"


def test_missing_directories_are_an_empty_catalog(tmp_path):
    assert load_manifests(tmp_path / "nope") == []
    assert load_workflows(tmp_path / "nope") == []


def test_non_json_files_are_ignored(settings):
    (settings.manifests_dir / "README.md").write_text("# not a manifest")
    assert len(load_manifests(settings.manifests_dir)) == 2


def test_one_bad_manifest_fails_the_whole_load(settings):
    write_json(settings.manifests_dir / "broken.json", app_manifest("broken", options="nope"))

    with pytest.raises(SchemaError) as excinfo:
        load_registry(settings)
    assert "broken.json: options:" in str(excinfo.value)


def test_invalid_json_names_the_file(settings):
    (settings.manifests_dir / "garbled.json").write_text("{ not json")
    with pytest.raises(SchemaError, match=r"garbled\.json: invalid JSON"):
        load_registry(settings)


def test_file_stem_must_match_name(settings):
    write_json(settings.manifests_dir / "alias.json", app_manifest("next-app"))
    with pytest.raises(SchemaError, match=r"must match its file name \(alias\)"):
        load_registry(settings)


def test_entry_script_checked_against_script_root(settings):
    write_json(
        settings.manifests_dir / "ghost.json",
        app_manifest("ghost", entry="node automations/generators/ghost.js"),
    )
    with pytest.raises(SchemaError, match="entry script does not exist"):
        load_registry(settings)


def test_workflow_with_unknown_block_fails_load(settings):
    write_json(
        settings.workflows_dir / "bad.json",
        {"name": "bad", "description": "", "steps": [{"block": "cube-app"}]},
    )
    with pytest.raises(SchemaError, match='unknown block "cube-app"'):
        load_registry(settings)


def test_block_only_load_skips_workflows(settings):
    write_json(settings.workflows_dir / "bad.json", {"name": "bad"})
    registry = load_registry(settings, include_workflows=False)
    assert registry.workflows == {}


def test_unknown_names_point_at_list(settings):
    registry = load_registry(settings)
    with pytest.raises(UnknownBlockError, match='Unknown block "nope". Run with "--list"'):
        registry.manifest("nope")
    with pytest.raises(UnknownWorkflowError, match='Unknown workflow "nope"'):
        registry.workflow("nope")


def test_registries_are_independent_values(settings, tmp_path):
    first = load_registry(settings)
    other_root = tmp_path / "empty"
    other_root.mkdir()
    second = load_registry(type(settings)(workspace_root=other_root, script_root=other_root))

    assert second.manifests == {}
    assert len(first.manifests) == 2


def test_undecodable_file_names_the_file(settings):
    (settings.manifests_dir / "latin.json").write_bytes(b'{"name": "caf\xe9"}')
    with pytest.raises(SchemaError, match=r"latin\.json: not valid UTF-8"):
        load_registry(settings)
