# flags.py
from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Union

from .errors import FlagParseError
from .model import VariableValue

FlagValue = Union[str, bool]

FLAG_PREFIX = "--"

# Plain decimal literals only: no "inf", "nan", hex, or digit separators.
_NUMBER_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")
_KEBAB_RE = re.compile(r"-([a-z0-9])")


@dataclass
class ParsedFlags:
    """
    Flag -> value map plus first-seen order.

    A flag given without a value maps to ``True``; every other value is the
    raw string from the command line.
    """
    parsed: Dict[str, FlagValue] = field(default_factory=dict)
    order: List[str] = field(default_factory=list)

    def __contains__(self, flag: str) -> bool:
        return flag in self.parsed

    def get(self, flag: str, default=None):
        return self.parsed.get(flag, default)


def _is_flag(token: str) -> bool:
    return token.startswith(FLAG_PREFIX) and len(token) > len(FLAG_PREFIX)


def parse_flags(tokens: Sequence[str]) -> ParsedFlags:
    """
    Tokenize a flat list of long flags.

    Accepted forms: ``--name=value``, ``--name value``, and bare ``--name``
    (boolean ``True``). A bare token where a flag is expected is an error,
    there are no positional arguments.

    Raises:
        FlagParseError: on a positional token or a malformed flag.
    """
    result = ParsedFlags()
    index = 0
    while index < len(tokens):
        token = tokens[index]
        if not _is_flag(token):
            raise FlagParseError(f'Unexpected positional argument "{token}".')

        value: FlagValue
        if "=" in token:
            flag, value = token.split("=", 1)
            if flag == FLAG_PREFIX:
                raise FlagParseError(f'Malformed flag "{token}".')
        elif index + 1 < len(tokens) and not tokens[index + 1].startswith(FLAG_PREFIX):
            flag, value = token, tokens[index + 1]
            index += 1
        else:
            flag, value = token, True

        if flag not in result.parsed:
            result.order.append(flag)
        result.parsed[flag] = value
        index += 1

    return result


def parse_number(value: str) -> float:
    """Parse a plain decimal literal; raise ValueError for anything else."""
    text = value.strip()
    if not _NUMBER_RE.match(text):
        raise ValueError(value)
    number = float(text)
    if not math.isfinite(number):
        raise ValueError(value)
    return number


def to_camel_case(name: str) -> str:
    """``web-port`` -> ``webPort``."""
    return _KEBAB_RE.sub(lambda m: m.group(1).upper(), name)


def coerce_variable(value: FlagValue) -> VariableValue:
    """
    Coerce a workflow variable taken from the command line.

    ``True`` and ``"true"``/``"false"`` become booleans, numeric-looking
    strings become ``int`` (or ``float`` when they carry a fraction or
    exponent), everything else stays a string.
    """
    if value is True or value == "true":
        return True
    if value == "false":
        return False
    if isinstance(value, str):
        try:
            number = parse_number(value)
        except ValueError:
            return value
        if number.is_integer() and re.fullmatch(r"[+-]?\d+", value.strip()):
            return int(value.strip())
        return number
    return value


def variables_from_flags(tokens: Sequence[str]) -> Dict[str, VariableValue]:
    """Turn ``--web-port 3200`` style tokens into ``{"webPort": 3200}``."""
    flags = parse_flags(tokens)
    return {
        to_camel_case(flag[len(FLAG_PREFIX):]): coerce_variable(flags.parsed[flag])
        for flag in flags.order
    }
