# templates.py
from __future__ import annotations

import re
from typing import Iterable, List, Mapping

from .errors import InterpolationError
from .model import ResolvedStep, VariableValue

PLACEHOLDER_RE = re.compile(r"\{\{\s*([A-Za-z0-9_]+)\s*\}\}")


def find_variables(value: str) -> List[str]:
    """Variable names referenced by ``{{name}}`` placeholders, first-seen order, no repeats."""
    names: List[str] = []
    for match in PLACEHOLDER_RE.finditer(value):
        if match.group(1) not in names:
            names.append(match.group(1))
    return names


def format_value(value: VariableValue) -> str:
    """Render a variable the way it would be typed on a command line."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def missing_variables(values: Iterable[str], variables: Mapping[str, VariableValue]) -> List[str]:
    missing: List[str] = []
    for value in values:
        for name in find_variables(value):
            if name not in variables and name not in missing:
                missing.append(name)
    return missing


def interpolate_template(value: str, variables: Mapping[str, VariableValue]) -> str:
    """
    Substitute ``{{name}}`` placeholders in ``value``.

    Every referenced name must be defined; all missing names are reported
    together. Substituted text is never scanned again.
    """
    text = str(value)
    missing = missing_variables([text], variables)
    if missing:
        raise InterpolationError(missing)
    return PLACEHOLDER_RE.sub(lambda m: format_value(variables[m.group(1)]), text)


def resolve_step_args(step: ResolvedStep, variables: Mapping[str, VariableValue]) -> List[str]:
    missing = missing_variables(step.args, variables)
    if missing:
        raise InterpolationError(missing)
    return [interpolate_template(arg, variables) for arg in step.args]
