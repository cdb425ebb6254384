# errors.py
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional


class BlockflowError(Exception):
    """Base class for every failure the orchestrator reports to the user."""


class SchemaError(BlockflowError):
    """
    A manifest or workflow document failed validation.

    Carries every issue found in the document; ``str()`` renders the first
    one on a single line so the CLI can print it as-is.
    """

    def __init__(self, source: str, issues: List[str]):
        self.source = source
        self.issues = list(issues) or ["invalid document"]
        super().__init__(str(self))

    def __str__(self) -> str:
        first = f"{self.source}: {self.issues[0]}"
        extra = len(self.issues) - 1
        if extra > 0:
            return f"{first} (+{extra} more)"
        return first


class InvocationError(BlockflowError):
    """The command line itself is incomplete, e.g. no block or workflow named."""


class FlagParseError(BlockflowError):
    pass


class ContractError(BlockflowError):
    pass


class UnknownBlockError(ContractError):
    pass


class UnknownWorkflowError(BlockflowError):
    pass


class GraphError(BlockflowError):
    pass


class InterpolationError(BlockflowError):
    def __init__(self, missing: List[str]):
        self.missing = list(missing)
        quoted = ", ".join(f'"{name}"' for name in self.missing)
        noun = "variable" if len(self.missing) == 1 else "variables"
        super().__init__(f"Missing workflow {noun} {quoted}.")


@dataclass
class ExecutionError(BlockflowError):
    """
    A generator subprocess could not be started or exited non-zero.

    Structured so the console can show the block, the step (for workflow
    runs) and a hint without a traceback.
    """
    block: str
    command: str
    exit_code: Optional[int]
    step: Optional[str] = None
    hint: Optional[str] = None

    def __str__(self) -> str:
        where = f'step "{self.step}" (block "{self.block}")' if self.step else f'block "{self.block}"'
        if self.exit_code is None:
            msg = f"{where} could not start: {self.command}"
        else:
            msg = f"{where} failed (exit={self.exit_code}): {self.command}"
        if self.hint:
            msg += f" Hint: {self.hint}"
        return msg
