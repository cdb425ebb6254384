# schema.py
"""
Document schemas for block manifests and workflow definitions.

Both document kinds are plain JSON objects on disk. They are validated with
strict pydantic models so a ``"true"`` string never sneaks in where a boolean
is expected, and every failure is rewritten into a one-line ``SchemaError``
naming the source file and the offending field.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    ValidationError,
    ValidationInfo,
    field_validator,
    model_validator,
)

from .errors import SchemaError
from .model import EntryCommand, ResolvedStep, VariableValue

SUPPORTED_OPTION_TYPES = ("string", "number", "boolean")


def _context(info: ValidationInfo) -> dict:
    return info.context or {}


class _Document(BaseModel):
    model_config = ConfigDict(strict=True, extra="ignore", populate_by_name=True)


# ---------------------------------------------------------------------
# Block manifests
# ---------------------------------------------------------------------

class OptionSpec(_Document):
    """One CLI flag a block accepts."""
    flag: str
    type: str
    required: bool = False
    description: str = ""

    @field_validator("flag")
    @classmethod
    def _long_flag(cls, value: str) -> str:
        if not value.startswith("--") or len(value) <= 2:
            raise ValueError(f'must be a long-form flag (e.g. --name), got "{value}"')
        return value

    @field_validator("type")
    @classmethod
    def _supported_type(cls, value: str) -> str:
        if value not in SUPPORTED_OPTION_TYPES:
            raise ValueError(
                f'unsupported type "{value}" (expected one of {", ".join(SUPPORTED_OPTION_TYPES)})'
            )
        return value


class BlockManifest(_Document):
    """An invocable generator: identity, entry command and option contract."""
    name: str = Field(min_length=1)
    description: str
    entry: str
    options: List[OptionSpec]
    outputs: List[str]

    @field_validator("name")
    @classmethod
    def _matches_identity(cls, value: str, info: ValidationInfo) -> str:
        identity = _context(info).get("identity")
        if identity is not None and value != identity:
            raise ValueError(f'manifest name "{value}" must match its file name ({identity})')
        return value

    @field_validator("entry")
    @classmethod
    def _invocable_entry(cls, value: str, info: ValidationInfo) -> str:
        command = EntryCommand.parse(value)
        script_root = _context(info).get("script_root")
        if script_root is not None:
            script = Path(command.script)
            if not script.is_absolute():
                script = Path(script_root) / script
            if not script.exists():
                raise ValueError(f"entry script does not exist ({command.script})")
        return value

    @model_validator(mode="after")
    def _unique_flags(self) -> BlockManifest:
        seen: set[str] = set()
        for index, option in enumerate(self.options):
            if option.flag in seen:
                raise ValueError(f"options[{index}] duplicates flag {option.flag}")
            seen.add(option.flag)
        return self

    @property
    def command(self) -> EntryCommand:
        return EntryCommand.parse(self.entry)

    def option(self, flag: str) -> Optional[OptionSpec]:
        for option in self.options:
            if option.flag == flag:
                return option
        return None


# ---------------------------------------------------------------------
# Workflows
# ---------------------------------------------------------------------

class StepDocument(_Document):
    id: Optional[str] = None
    block: str = Field(min_length=1)
    args: List[str] = Field(default_factory=list)
    depends_on: List[str] = Field(default_factory=list, alias="dependsOn")

    @field_validator("block")
    @classmethod
    def _known_block(cls, value: str, info: ValidationInfo) -> str:
        known = _context(info).get("known_blocks")
        if known is not None and value not in known:
            raise ValueError(f'unknown block "{value}"')
        return value


class WorkflowDefinition(_Document):
    """A named chain of block invocations connected by ``dependsOn`` edges."""
    name: str = Field(min_length=1)
    description: str
    variables: Dict[str, Union[StrictBool, StrictInt, StrictFloat, StrictStr]] = Field(default_factory=dict)
    steps: List[StepDocument]

    @field_validator("name")
    @classmethod
    def _matches_identity(cls, value: str, info: ValidationInfo) -> str:
        identity = _context(info).get("identity")
        if identity is not None and value != identity:
            raise ValueError(f'workflow name "{value}" must match its file name ({identity})')
        return value

    @model_validator(mode="after")
    def _step_graph(self) -> WorkflowDefinition:
        # Positional fallback ids are 1-based: step-1, step-2, ...
        ids: List[str] = []
        for index, step in enumerate(self.steps):
            if not step.id:
                step.id = f"step-{index + 1}"
            if step.id in ids:
                raise ValueError(f'steps[{index}] has duplicate step id "{step.id}"')
            ids.append(step.id)

        declared = set(ids)
        for index, step in enumerate(self.steps):
            for dependency in step.depends_on:
                if dependency not in declared:
                    raise ValueError(
                        f'steps[{index}].dependsOn: step "{step.id}" references '
                        f'unknown dependency "{dependency}"'
                    )
        return self

    def resolved_steps(self) -> List[ResolvedStep]:
        return [
            ResolvedStep(
                id=step.id or f"step-{index + 1}",
                block=step.block,
                args=list(step.args),
                depends_on=list(step.depends_on),
            )
            for index, step in enumerate(self.steps)
        ]

    @property
    def defaults(self) -> Dict[str, VariableValue]:
        return dict(self.variables)


# ---------------------------------------------------------------------
# Public validation entry points
# ---------------------------------------------------------------------

def _format_loc(loc: Iterable[Union[str, int]]) -> str:
    out = ""
    for part in loc:
        if isinstance(part, int):
            out += f"[{part}]"
        else:
            out += f".{part}" if out else str(part)
    return out


def _format_issue(error: Dict[str, Any]) -> str:
    ctx_error = (error.get("ctx") or {}).get("error")
    if error.get("type") == "value_error" and ctx_error is not None:
        message = str(ctx_error)
    else:
        message = error["msg"]
    loc = _format_loc(error.get("loc", ()))
    return f"{loc}: {message}" if loc else message


def _issues(exc: ValidationError) -> List[str]:
    return [_format_issue(error) for error in exc.errors()]


def validate_manifest(
    doc: Any,
    source: str | Path,
    *,
    identity: Optional[str] = None,
    script_root: str | Path | None = None,
) -> BlockManifest:
    """
    Validate a parsed manifest document.

    Args:
        doc: The decoded JSON value.
        source: Path or label used in error messages.
        identity: Expected manifest name (the file stem), if known.
        script_root: When given, the entry script must exist relative to it.

    Raises:
        SchemaError: naming ``source`` and the first offending field.
    """
    context = {
        "identity": identity,
        "script_root": Path(script_root) if script_root is not None else None,
    }
    try:
        return BlockManifest.model_validate(doc, context=context)
    except ValidationError as e:
        raise SchemaError(str(source), _issues(e)) from e


def validate_workflow(
    doc: Any,
    source: str | Path,
    *,
    identity: Optional[str] = None,
    known_blocks: Optional[Iterable[str]] = None,
) -> WorkflowDefinition:
    """
    Validate a parsed workflow document.

    Step ids are filled in, uniqueness and ``dependsOn`` targets are checked,
    and, when ``known_blocks`` is given, every step must name one of them.
    """
    context = {
        "identity": identity,
        "known_blocks": frozenset(known_blocks) if known_blocks is not None else None,
    }
    try:
        return WorkflowDefinition.model_validate(doc, context=context)
    except ValidationError as e:
        raise SchemaError(str(source), _issues(e)) from e
