"""Declarative schema of test sources and run telemetry.

Defines immutable Pydantic models that describe test definitions, cases,
tagged bodies, compiled tests, and the results and summaries of a run.
The module specifies the structural contract of test sources and is
consumed by the compiler, the runner, checkers and reporters.
"""

from .bodies import BodyKind, DataBody
from .definitions import CaseData, ComparisonParams, Form, TestDefinition
from .results import Mismatch, Result, Summary
from .tests import CompiledTest

__all__ = (
    'BodyKind',
    'CaseData',
    'ComparisonParams',
    'CompiledTest',
    'DataBody',
    'Form',
    'Mismatch',
    'Result',
    'Summary',
    'TestDefinition',
)
