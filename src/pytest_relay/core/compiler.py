"""Test definition compiler.

This module resolves body sources of test definitions and expands
parameterized definitions into concrete compiled tests.

Compilation of a source file is all-or-nothing: any error aborts the
whole file and none of its tests are emitted.
"""

from pathlib import Path
from typing import TYPE_CHECKING

from pytest_relay.errors import CompileError, ErrorContext
from pytest_relay.schema import BodyKind, CompiledTest, DataBody, Form

from .parser import DocumentParser
from .templates import PlaceholderError, Template

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable, Mapping

if TYPE_CHECKING:
    from pytest_relay.schema import CaseData, TestDefinition
    from pytest_relay.values import Value

JSON_SUFFIX = '.json'


class TestCompiler:
    """Compiler of test sources into compiled tests.

    The compiler:
    - parses a source file into test definitions;
    - resolves request and response bodies from inline values or files;
    - emits one test per definition without cases, or one test per case,
      with case arguments substituted into every template field.
    """

    __test__ = False

    def __init__(self, parser: DocumentParser | None = None) -> None:
        """Initialize the compiler.

        Args:
            parser: Parser used to read test sources.
        """
        self.parser = parser or DocumentParser()

    @staticmethod
    def variable_names(definitions: 'Iterable[TestDefinition]') -> set[str]:
        """Collect names of variables declared or captured by definitions."""
        return {
            name
            for definition in definitions
            for name in definition.variable_names
        }

    def parse_file(self, path: Path) -> tuple['TestDefinition', ...]:
        """Read and parse a test source file.

        Args:
            path: Path to the test source file.

        Returns:
            Test definitions in declaration order.

        Raises:
            CompileError: If the file can not be read or parsed.
        """
        filename = f'{path}'

        try:
            content = path.read_text(encoding='utf-8')
        except OSError as base:
            raise CompileError(
                f'Unable to read test source: {base.strerror or base}',
                context=ErrorContext(filename=filename),
            ) from base

        return tuple(self.parser.parse(content, filename=filename))

    def compile_file(self, path: Path, *,
                     reserved: 'Collection[str]' = ()) -> tuple[CompiledTest, ...]:
        """Compile a test source file.

        Args:
            path: Path to the test source file.
            reserved: Names of run-time variables set by other sources.

        Returns:
            Compiled tests in declaration order.

        Raises:
            CompileError: If the file can not be read, parsed or compiled.
        """
        return self.compile(
            self.parse_file(path),
            directory=path.parent,
            filename=f'{path}',
            reserved=reserved,
        )

    def compile(self, definitions: 'Iterable[TestDefinition]', *,
                directory: Path | None = None,
                filename: str | None = None,
                reserved: 'Collection[str]' = ()) -> tuple[CompiledTest, ...]:
        """Compile parsed test definitions.

        Placeholders naming a variable declared or captured by any test of
        the same source, or listed in `reserved`, are left for the run-time
        variable store.

        Args:
            definitions: Test definitions in declaration order.
            directory: Directory body files are resolved against.
            filename: Source file name used in error messages.
            reserved: Names of run-time variables set by other sources.

        Returns:
            Compiled tests in declaration order.

        Raises:
            CompileError: If any definition can not be compiled.
        """
        definitions = tuple(definitions)
        directory = directory or Path.cwd()

        reserved = self.variable_names(definitions) | set(reserved)

        tests: list[CompiledTest] = []
        for definition in definitions:
            tests.extend(self.compile_definition(
                definition,
                directory=directory,
                filename=filename,
                reserved=reserved,
            ))

        return tuple(tests)

    def compile_definition(self, definition: 'TestDefinition', *,
                           directory: Path,
                           filename: str | None = None,
                           reserved: 'Collection[str]' = ()) -> list[CompiledTest]:
        """Compile a single test definition.

        Args:
            definition: Test definition.
            directory: Directory body files are resolved against.
            filename: Source file name used in error messages.
            reserved: Names of run-time variables.

        Returns:
            One compiled test without cases, one test per case otherwise.

        Raises:
            CompileError: If the definition can not be compiled.
        """
        request = self.resolve_body(
            definition.request,
            definition.request_file,
            directory=directory,
            location=(filename, definition.name, 'request'),
        )

        responses = self.resolve_responses(definition, directory=directory, filename=filename)

        test = CompiledTest(
            name=definition.name,
            description=definition.description,
            method=definition.method,
            path=definition.path,
            query=definition.query,
            headers=definition.headers,
            cookies=definition.cookies,
            request=request,
            responses=responses,
            response_headers=definition.response_headers,
            comparison=definition.comparison,
            fixtures=definition.fixtures,
            pause=definition.pause,
            timeout=definition.timeout,
            db_query=definition.db_query,
            db_response=definition.db_response,
            variables=definition.variables,
            variables_to_set=definition.variables_to_set,
            form=self.resolve_form(definition, directory=directory, filename=filename),
            filename=filename,
        )

        if not definition.cases:
            return [test]

        return [
            self.expand(test, case, case_num, reserved=reserved)
            for case_num, case in enumerate(definition.cases)
        ]

    def expand(self, test: CompiledTest, case: 'CaseData', case_num: int, *,
               reserved: 'Collection[str]' = ()) -> CompiledTest:
        """Substitute arguments of a case into a compiled test.

        Request arguments go into the path, query, header and cookie
        values and the request body. Response arguments for a status code
        go into the expected body and headers of that status; statuses
        without arguments are copied verbatim. Expected database rows come
        from the case override first, then from templated rows.

        Args:
            test: Compiled test holding the definition templates.
            case: Case to apply.
            case_num: Position of the case in its definition.
            reserved: Names of run-time variables.

        Returns:
            A new compiled test named `<name> #<case_num>`.

        Raises:
            CompileError: If a placeholder can not be resolved or a JSON
                body is invalid after substitution.
        """
        def render(arguments: 'Mapping[str, Value]', value: str, field: str) -> str:
            try:
                return Template(arguments, reserved=reserved).render(value)
            except PlaceholderError as base:
                raise self.fail(
                    f'Unresolved placeholder {{{{ ${base.name} }}}}',
                    filename=test.filename,
                    test_name=test.name,
                    field=f'cases.{case_num}.{field}',
                ) from base

        def render_map(arguments: 'Mapping[str, Value]',
                       values: dict[str, str], field: str) -> dict[str, str]:
            return {
                key: render(arguments, value, f'{field}.{key}')
                for key, value in values.items()
            }

        request_args = case.request_args

        request = test.request
        if request is not None:
            request = request.replace(render(request_args, request.value, 'request'))

        responses = {}
        for status, body in test.responses.items():
            if (arguments := case.response_args.get(status)) is None:
                responses[status] = body
            else:
                responses[status] = body.replace(render(arguments, body.value, f'response.{status}'))

        response_headers = {}
        for status, headers in test.response_headers.items():
            if (arguments := case.response_args.get(status)) is None:
                response_headers[status] = headers
            else:
                response_headers[status] = render_map(
                    arguments, headers, f'responseHeaders.{status}',
                )

        if case.db_response is not None:
            db_response = case.db_response
        else:
            db_response = [
                render(case.db_response_args, row, f'dbResponse.{num}')
                for num, row in enumerate(test.db_response)
            ]

        compiled = test.model_copy(update={
            'name': f'{test.name} #{case_num}',
            'path': render(request_args, test.path, 'path'),
            'query': render(request_args, test.query, 'query'),
            'headers': render_map(request_args, test.headers, 'headers'),
            'cookies': render_map(request_args, test.cookies, 'cookies'),
            'request': request,
            'responses': responses,
            'response_headers': response_headers,
            'db_query': render(case.db_query_args, test.db_query, 'dbQuery'),
            'db_response': db_response,
            'case_num': case_num,
        })

        if compiled.request is not None:
            self.validate_json(compiled.request, location=(
                compiled.filename, compiled.name, 'request',
            ))

        for status, body in compiled.responses.items():
            self.validate_json(body, location=(
                compiled.filename, compiled.name, f'response.{status}',
            ))

        return compiled

    def resolve_responses(self, definition: 'TestDefinition', *,
                          directory: Path,
                          filename: str | None = None) -> dict[int, DataBody]:
        """Resolve expected response bodies of every status code.

        Args:
            definition: Test definition.
            directory: Directory body files are resolved against.
            filename: Source file name used in error messages.

        Returns:
            Expected body by status code.

        Raises:
            CompileError: If a status code has both an inline body and a
                body file, or a body can not be resolved.
        """
        responses: dict[int, DataBody] = {}

        for status, body in definition.responses.items():
            responses[status] = self.resolve_body(
                body, None,
                directory=directory,
                location=(filename, definition.name, f'response.{status}'),
            )

        for status, reference in definition.response_files.items():
            if status in responses:
                raise self.fail(
                    f'Response body for status code {status} is defined twice',
                    filename=filename,
                    test_name=definition.name,
                    field=f'responseFiles.{status}',
                )

            responses[status] = self.resolve_body(
                None, reference,
                directory=directory,
                location=(filename, definition.name, f'responseFiles.{status}'),
            )

        return responses

    def resolve_body(self, inline: DataBody | None, reference: str | None, *,
                     directory: Path,
                     location: tuple[str | None, str, str]) -> DataBody | None:
        """Resolve a body from an inline value or a file reference.

        Args:
            inline: Inline body, possibly tagged as a file reference.
            reference: Body file reference.
            directory: Directory body files are resolved against.
            location: Source file, test name and field for error messages.

        Returns:
            The resolved body, or `None` if no body is defined.

        Raises:
            CompileError: If both sources are set, the file can not be
                read, or a JSON body is invalid.
        """
        filename, test_name, field = location

        if inline is not None and reference is not None:
            raise self.fail(
                'Ambiguous body source: both inline body and body file are defined',
                filename=filename,
                test_name=test_name,
                field=field,
            )

        if inline is not None and inline.kind == BodyKind.PATH:
            reference, inline = inline.value, None

        body = inline
        if reference is not None:
            body = self.read_body(reference, directory=directory, location=location)

        if body is not None and not body.has_placeholders:
            self.validate_json(body, location=location)

        return body

    def read_body(self, reference: str, *, directory: Path,
                  location: tuple[str | None, str, str]) -> DataBody:
        """Read a body file.

        The literal name is tried first, then the name with the `.json`
        suffix appended.

        Raises:
            CompileError: If no candidate exists or the file can not be read.
        """
        filename, test_name, field = location

        candidates = (
            directory / reference,
            directory / f'{reference}{JSON_SUFFIX}',
        )

        for candidate in candidates:
            if not candidate.is_file():
                continue
            try:
                return DataBody.from_file(candidate)
            except (OSError, UnicodeDecodeError) as base:
                raise self.fail(
                    f'Unable to read body file {candidate}: {base}',
                    filename=filename,
                    test_name=test_name,
                    field=field,
                ) from base

        raise self.fail(
            f'Body file {reference!r} not found in {directory}',
            filename=filename,
            test_name=test_name,
            field=field,
        )

    def resolve_form(self, definition: 'TestDefinition', *,
                     directory: Path,
                     filename: str | None = None) -> Form | None:
        """Resolve multipart form file paths against the source directory.

        Raises:
            CompileError: If a form file does not exist.
        """
        if definition.form is None:
            return None

        files = {}
        for field, reference in definition.form.files.items():
            path = directory / reference
            if not path.is_file():
                raise self.fail(
                    f'Form file {reference!r} not found in {directory}',
                    filename=filename,
                    test_name=definition.name,
                    field=f'form.files.{field}',
                )
            files[field] = f'{path}'

        return Form(files=files)

    def validate_json(self, body: DataBody, *,
                      location: tuple[str | None, str, str]) -> None:
        """Check JSON syntax of a body without placeholders.

        Raises:
            CompileError: If the body is tagged JSON but is invalid.
        """
        if body.has_placeholders:
            return

        filename, test_name, field = location

        try:
            body.validate_json()
        except ValueError as base:
            raise self.fail(
                f'{base}',
                filename=filename,
                test_name=test_name,
                field=field,
            ) from base

    @staticmethod
    def fail(message: str, *,
             filename: str | None,
             test_name: str,
             field: str | None = None) -> CompileError:
        """Build a compile error attributed to a test field."""
        return CompileError(message, context=ErrorContext(
            filename=filename,
            test_name=test_name,
            field=field,
        ))
