"""Tests for cmdforge.scanner."""

from __future__ import annotations

import textwrap

import pytest

from cmdforge.errors import MultiplePackageNamesError, SignatureError, SourceParseError
from cmdforge.models import CommandKind, TaggedFile
from cmdforge.scanner import PackageAccumulator, default_package_name, scan_directory, scan_file


def _file(path: str, source: str) -> TaggedFile:
    return TaggedFile(path=path, content=textwrap.dedent(source).lstrip("\n").encode("utf-8"))


def test_scan_collects_types_and_functions() -> None:
    result = scan_directory(
        "/repo/tools",
        [
            _file(
                "/repo/tools/tasks.py",
                '''
                # cmdforge:build cmdforge
                """Project tasks."""

                __package_name__ = "tasks"

                from cmdforge.context import Context


                class Build:
                    def run(self) -> None:
                        pass

                    def description(self) -> str:
                        return "Compile the project."


                class _Private:
                    def run(self) -> None:
                        pass


                def lint(ctx: Context) -> Exception | None:
                    """Run the linters."""


                async def serve() -> None:
                    pass


                def _helper(a, b):
                    return a + b
                ''',
            )
        ],
    )

    assert result.package_name == "tasks"
    assert result.package_doc == "Project tasks."
    assert [candidate.name for candidate in result.types] == ["Build"]
    build = result.types[0]
    assert build.kind is CommandKind.TYPE
    assert build.has_run and not build.has_subcommands
    assert build.description == "Compile the project."

    functions = {candidate.name: candidate for candidate in result.functions}
    assert sorted(functions) == ["lint", "serve"]
    assert functions["lint"].uses_context
    assert functions["lint"].returns_error
    assert functions["lint"].description == "Run the linters."
    assert functions["serve"].is_async
    assert functions["serve"].file == "/repo/tools/tasks.py"
    assert result.main_files == ()
    assert not result.uses_explicit_registration


def test_scan_records_subcommand_links() -> None:
    result = scan_directory(
        "/repo/tools",
        [
            _file(
                "/repo/tools/tasks.py",
                """
                from typing import Annotated


                class Foo:
                    bar: Annotated["Bar", 'cmdforge:"subcommand"']


                class Bar:
                    def run(self) -> None:
                        pass
                """,
            )
        ],
    )

    foo = next(candidate for candidate in result.types if candidate.name == "Foo")
    assert foo.has_subcommands and not foo.has_run
    assert [(link.parent, link.name, link.type_name) for link in result.links] == [
        ("Foo", "bar", "Bar")
    ]


def test_scan_package_name_conflict() -> None:
    with pytest.raises(MultiplePackageNamesError) as excinfo:
        scan_directory(
            "/repo/tools",
            [
                _file("/repo/tools/a.py", '__package_name__ = "alpha"\n'),
                _file("/repo/tools/b.py", '__package_name__ = "beta"\n'),
            ],
        )
    assert excinfo.value.names == ("alpha", "beta")
    assert str(excinfo.value) == "multiple package names: /repo/tools (alpha, beta)"


def test_scan_files_without_package_name_do_not_vote() -> None:
    result = scan_directory(
        "/repo/tools",
        [
            _file("/repo/tools/a.py", "def build() -> None:\n    pass\n"),
            _file("/repo/tools/b.py", '__package_name__ = "beta"\n'),
        ],
    )
    assert result.package_name == "beta"


def test_scan_falls_back_to_directory_name() -> None:
    result = scan_directory("/repo/tools", [_file("/repo/tools/a.py", "x = 1\n")])
    assert result.package_name == "tools"
    assert default_package_name("/repo/my-tools") == ""


def test_scan_first_docstring_wins() -> None:
    result = scan_directory(
        "/repo/tools",
        [
            _file("/repo/tools/a.py", "x = 1\n"),
            _file("/repo/tools/b.py", '"""Second."""\n'),
            _file("/repo/tools/c.py", '"""Third."""\n'),
        ],
    )
    assert result.package_doc == "Second."


def test_scan_records_main_guard() -> None:
    result = scan_directory(
        "/repo/tools",
        [_file("/repo/tools/main.py", 'if __name__ == "__main__":\n    print("hi")\n')],
    )
    assert result.main_files == ("/repo/tools/main.py",)


def test_scan_detects_explicit_registration() -> None:
    result = scan_directory(
        "/repo/tools",
        [_file("/repo/tools/a.py", "import cmdforge\n\ncmdforge.register(object)\n")],
    )
    assert result.uses_explicit_registration


def test_scan_invalid_signature() -> None:
    with pytest.raises(SignatureError) as excinfo:
        scan_directory(
            "/repo/tools",
            [_file("/repo/tools/a.py", "def deploy(target, env) -> None:\n    pass\n")],
        )
    assert str(excinfo.value) == (
        "/repo/tools/a.py: function deploy must be niladic or accept context"
    )


def test_scan_syntax_error() -> None:
    with pytest.raises(SourceParseError) as excinfo:
        scan_directory("/repo/tools", [_file("/repo/tools/a.py", "def broken(:\n")])
    assert excinfo.value.path == "/repo/tools/a.py"
    assert str(excinfo.value).startswith("parsing file /repo/tools/a.py:1")


def test_accumulator_is_caller_owned() -> None:
    acc = PackageAccumulator(dir="/repo/tools")
    scan_file(_file("/repo/tools/a.py", "def build() -> None:\n    pass\n"), acc)
    scan_file(_file("/repo/tools/b.py", "class Deploy:\n    def run(self) -> None:\n        pass\n"), acc)

    result = acc.finalize()

    assert [candidate.name for candidate in result.functions] == ["build"]
    assert [candidate.name for candidate in result.types] == ["Deploy"]
    assert result.types[0].file == "/repo/tools/b.py"
