# model.py
from __future__ import annotations

import shlex
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Union

VariableValue = Union[str, int, float, bool]


@dataclass(frozen=True)
class EntryCommand:
    """A manifest ``entry`` split into program, script path and trailing args."""
    program: str
    script: str
    args: tuple[str, ...] = ()

    @classmethod
    def parse(cls, entry: str) -> EntryCommand:
        """
        Split an entry string such as ``node automations/generators/next-app.js``.

        Raises:
            ValueError: if the entry is empty, unbalanced, or has no script path.
        """
        tokens = shlex.split(entry)
        if not tokens:
            raise ValueError("entry must not be an empty command")
        if len(tokens) < 2:
            raise ValueError(f'entry must be "<program> <script-path>", got "{entry.strip()}"')
        return cls(program=tokens[0], script=tokens[1], args=tuple(tokens[2:]))


@dataclass(frozen=True)
class ResolvedStep:
    """A workflow step with its id filled in and optional lists normalised."""
    id: str
    block: str
    args: List[str] = field(default_factory=list)
    depends_on: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class PlannedStep:
    """A step whose args are interpolated and checked against the block's options."""
    step: ResolvedStep
    args: List[str]
    command: List[str]

    @property
    def display(self) -> str:
        return shlex.join(self.command)


class RunState(str, Enum):
    LOADED = "loaded"
    VALIDATED = "validated"
    GRAPH_RESOLVED = "graph_resolved"
    STEP_RUNNING = "step_running"
    STEP_SUCCEEDED = "step_succeeded"
    COMPLETED = "completed"
    ABORTED = "aborted"


@dataclass
class WorkflowRun:
    """Bookkeeping for one workflow invocation: state history and per-step results."""
    workflow: str
    dry_run: bool = False
    state: RunState = RunState.LOADED
    history: List[RunState] = field(default_factory=lambda: [RunState.LOADED])
    results: Dict[str, str] = field(default_factory=dict)

    def advance(self, state: RunState) -> None:
        self.state = state
        self.history.append(state)
