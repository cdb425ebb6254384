# contracts.py
from __future__ import annotations

from typing import Callable, Dict, Sequence, Union

from .errors import ContractError
from .flags import FlagValue, parse_flags, parse_number
from .schema import BlockManifest, OptionSpec

CoercedValue = Union[str, float, bool]


def _coerce_string(option: OptionSpec, value: FlagValue, block: str) -> str:
    if value is True or not str(value).strip():
        raise ContractError(f'Option "{option.flag}" for block "{block}" requires a value.')
    return str(value)


def _coerce_number(option: OptionSpec, value: FlagValue, block: str) -> float:
    if value is True:
        raise ContractError(
            f'Option "{option.flag}" for block "{block}" requires a numeric value.'
        )
    try:
        return parse_number(value)
    except ValueError:
        raise ContractError(
            f'Option "{option.flag}" for block "{block}" expects a number, got "{value}".'
        ) from None


def _coerce_boolean(option: OptionSpec, value: FlagValue, block: str) -> bool:
    if value is True or value == "true":
        return True
    if value == "false":
        return False
    raise ContractError(
        f'Option "{option.flag}" for block "{block}" has an invalid boolean value "{value}" '
        f'(use "true" or "false").'
    )


COERCERS: Dict[str, Callable[[OptionSpec, FlagValue, str], CoercedValue]] = {
    "string": _coerce_string,
    "number": _coerce_number,
    "boolean": _coerce_boolean,
}


def validate_passthrough_args(
    manifest: BlockManifest, tokens: Sequence[str]
) -> Dict[str, CoercedValue]:
    """
    Check passthrough tokens against a block's declared options.

    Order of checks: unknown flags, then missing required options, then the
    per-type value checks. The first violation raises, so the user gets a
    single specific reason before any generator process is started.

    Returns:
        Flag -> coerced value for the flags that were given.

    Raises:
        FlagParseError: tokens are not a flat list of long flags.
        ContractError: unknown flag, missing required option, or bad value.
    """
    flags = parse_flags(tokens)

    for flag in flags.order:
        if manifest.option(flag) is None:
            raise ContractError(f'Unknown flag "{flag}" for block "{manifest.name}".')

    for option in manifest.options:
        if option.required and option.flag not in flags:
            raise ContractError(
                f'Missing required option "{option.flag}" for block "{manifest.name}".'
            )

    coerced: Dict[str, CoercedValue] = {}
    for flag in flags.order:
        option = manifest.option(flag)
        coerced[flag] = COERCERS[option.type](option, flags.parsed[flag], manifest.name)
    return coerced
