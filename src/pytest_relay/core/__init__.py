"""Test source compilation.

This module defines the infrastructure that turns YAML test sources
into compiled tests.

It provides:
- parsing and validation of test sources into test definitions;
- a minimal `{{ $name }}` placeholder engine for case arguments;
- body source resolution and case expansion;
- deterministic traversal of test source trees.
"""

from .compiler import TestCompiler
from .loader import TestLoader
from .parser import DocumentParser
from .templates import PlaceholderError, Template

__all__ = (
    'DocumentParser',
    'PlaceholderError',
    'Template',
    'TestCompiler',
    'TestLoader',
)
