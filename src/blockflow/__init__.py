from .config import Settings
from .contracts import validate_passthrough_args
from .dag import resolve_workflow_steps
from .flags import parse_flags
from .registry import Registry, load_manifests, load_registry, load_workflows
from .runner import plan_workflow, run_block, run_step, run_workflow
from .schema import BlockManifest, WorkflowDefinition, validate_manifest, validate_workflow
from .templates import interpolate_template, resolve_step_args

__all__ = [
    "Settings",
    "validate_passthrough_args",
    "resolve_workflow_steps",
    "parse_flags",
    "Registry",
    "load_manifests",
    "load_registry",
    "load_workflows",
    "plan_workflow",
    "run_block",
    "run_step",
    "run_workflow",
    "BlockManifest",
    "WorkflowDefinition",
    "validate_manifest",
    "validate_workflow",
    "interpolate_template",
    "resolve_step_args",
]
