"""Variable names and `{{ $name }}` placeholders.

Templates of a test source reference case arguments and run-time
variables with the same placeholder form. The compiler resolves case
arguments, the variable store resolves what is left at run time, and
both rely on the patterns defined here.
"""

from re import ASCII, Pattern, escape
from re import compile as regexp
from typing import Annotated

from pydantic import Field

#: A name starts with an ASCII letter, followed by letters, digits or underscores
_NAME = r'[a-zA-Z]\w*'

#: Any placeholder; the referenced name is captured as `name`
PLACEHOLDER_PATTERN = regexp(rf'\{{\{{\s*\$(?P<name>{_NAME})\s*\}}\}}', flags=ASCII)


def placeholder_pattern(name: str) -> Pattern[str]:
    """Compile a pattern matching placeholders of a single variable.

    Args:
        name: Variable name.

    Returns:
        Pattern matching `{{ $name }}` with any inner whitespace.
    """
    return regexp(rf'\{{\{{\s*\${escape(name)}\s*\}}\}}')


Variable = Annotated[
    str, Field(
        pattern=rf'^{_NAME}$',
        title='Variable name',
        description=(
            'Name of a run-time variable, referenced as `{{ $name }}`. '
            'Starts with an ASCII letter, followed by ASCII letters, '
            'digits or underscores.'
        ),
        examples=[
            'userId',
            'api_token',
        ],
    ),
]
