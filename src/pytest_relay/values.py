"""Core value types shared by bodies, cases and checkers.

This module defines the JSON-compatible value type used for case
arguments and decoded response bodies, and the helpers that turn such
values into the text substituted into templates.
"""

from collections.abc import Mapping, Sequence
from json import dumps

#: Scalars represent atomic values that can be consumed directly.
type Scalar = str | int | float | bool

#: A value is any JSON-compatible structure built from scalars.
type Value = Scalar | Sequence['Value'] | Mapping[str, 'Value'] | None

MAPPINGS = (dict,)
SCALARS = (str, int, float, bool)
SEQUENCES = (list, tuple)


def to_text(value: Value) -> str:
    """Render a value as template text.

    Strings are rendered verbatim. Every other value is rendered as
    compact JSON, so that numbers, booleans, `null`, lists and mappings
    can be substituted into JSON bodies as they are.

    Args:
        value: Value to render.

    Returns:
        Text representation of the value.
    """
    if isinstance(value, str):
        return value

    return dumps(value, ensure_ascii=False, separators=(',', ':'))
