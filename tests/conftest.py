"""Tests configurations and fixtures."""

from json import dumps
from pathlib import Path
from typing import TYPE_CHECKING

import httpx
import pytest
import yaml

from pytest_relay.core import TestCompiler
from pytest_relay.runner import Runner, RunnerConfig

if TYPE_CHECKING:
    from collections.abc import Callable

if TYPE_CHECKING:
    from pytest_relay.schema import CompiledTest


@pytest.fixture
def loader() -> type[yaml.SafeLoader]:
    """Provide an isolated YAML SafeLoader class for tests.

    Creates a dedicated subclass of `yaml.SafeLoader` to ensure that
    YAML constructors registered during a test do not leak into other
    tests or affect global loader state.
    """
    class Loader(yaml.SafeLoader):
        pass

    return Loader


@pytest.fixture
def compile_source() -> 'Callable[..., tuple[CompiledTest, ...]]':
    """Provide a factory compiling YAML source text.

    Body files are resolved against the given directory, or the current
    working directory.
    """
    def compile_(content: str, directory: Path | None = None) -> tuple['CompiledTest', ...]:
        compiler = TestCompiler()
        definitions = compiler.parser.parse(content, filename='test_source.yaml')

        return compiler.compile(definitions, directory=directory, filename='test_source.yaml')

    return compile_


@pytest.fixture
def requests() -> list[httpx.Request]:
    """Provide a list collecting every request sent by a runner."""
    return []


@pytest.fixture
def make_runner(requests: list[httpx.Request]) -> 'Callable[..., Runner]':
    """Provide a factory of runners backed by a mock transport.

    The returned factory accepts a handler mapping a request to a
    response, or a JSON-compatible body sent with status 200. Every
    request is recorded in the `requests` fixture.
    """
    def make(tests: 'list[CompiledTest] | None', handler: object = None,
             **options: object) -> Runner:
        def handle(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            if callable(handler):
                return handler(request)
            if handler is None:
                return httpx.Response(200)
            return httpx.Response(
                200,
                content=dumps(handler),
                headers={'Content-Type': 'application/json'},
            )

        config = RunnerConfig(
            host='api.test',
            transport=httpx.MockTransport(handle),
            **options,
        )

        return Runner(config, tests)

    return make
