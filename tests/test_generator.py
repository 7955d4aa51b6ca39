"""Tests for cmdforge.generator."""

from __future__ import annotations

import ast

import black
import pytest

from cmdforge.config import GenerateOptions
from cmdforge.errors import (
    GenerationError,
    MultiplePackageNamesError,
    NoSourceFilesError,
    PackageNameNotFoundError,
    SignatureError,
    WrapperExistsError,
)
from cmdforge.generator import (
    collect_wrapper_targets,
    generate_function_wrappers,
    generated_filename,
)


def _options(**overrides) -> GenerateOptions:
    overrides.setdefault("dir", "/root/tools")
    return GenerateOptions(**overrides)


def _assert_valid(source: str) -> None:
    ast.parse(source)
    assert black.format_str(source, mode=black.Mode()) == source


def test_generated_filename() -> None:
    assert generated_filename("cmdforge", "tasks") == "generated_cmdforge_tasks.py"


def test_generate_wraps_niladic_function(memfs) -> None:
    memfs.write(
        {
            "tools/tasks.py": """
                __package_name__ = "tasks"


                def build() -> None:
                    pass
                """
        }
    )

    path = generate_function_wrappers(memfs, _options())

    assert path == "/root/tools/generated_cmdforge_tasks.py"
    [(written, data, mode)] = memfs.writes
    assert written == path
    assert mode == 0o644

    source = data.decode("utf-8")
    _assert_valid(source)
    assert source.startswith("# Code generated by cmdforge. DO NOT EDIT.\n")
    assert "from .tasks import build\n" in source
    assert "class BuildCommand:\n" in source
    assert "    def run(self) -> None:\n        build()\n" in source
    assert '        return "build"\n' in source
    assert "cmdforge.context" not in source
    assert "def description" not in source


def test_generate_context_error_and_description(memfs) -> None:
    memfs.write(
        {
            "tools/checks.py": '''
                from cmdforge.context import Context


                def lint(ctx: Context) -> Exception | None:
                    """Run the linters."""
                ''',
            "tools/tasks.py": """
                def build() -> None:
                    pass
                """,
        }
    )

    path = generate_function_wrappers(memfs, _options())

    assert path == "/root/tools/generated_cmdforge_tools.py"
    source = memfs.text("tools/generated_cmdforge_tools.py")
    _assert_valid(source)
    assert "from cmdforge.context import Context\n" in source
    assert "from .checks import lint\n" in source
    assert "from .tasks import build\n" in source
    assert source.index("from .checks") < source.index("from .tasks")
    assert "    def run(self, ctx: Context) -> Exception | None:\n" in source
    assert "        return lint(ctx)\n" in source
    assert '        return "Run the linters."\n' in source
    assert source.index("class BuildCommand") < source.index("class LintCommand")


def test_generate_async_function(memfs) -> None:
    memfs.write({"tools/tasks.py": "async def serve() -> None:\n    pass\n"})

    generate_function_wrappers(memfs, _options())

    source = memfs.text("tools/generated_cmdforge_tools.py")
    _assert_valid(source)
    assert "    async def run(self) -> None:\n        await serve()\n" in source


def test_generate_build_tag_header(memfs) -> None:
    memfs.write(
        {
            "tools/tasks.py": "# cmdforge:build ops\n\ndef ship() -> None:\n    pass\n",
            "tools/other.py": "def skipped() -> None:\n    pass\n",
        }
    )

    path = generate_function_wrappers(memfs, _options(build_tag="ops", only_tagged=True))

    assert path == "/root/tools/generated_ops_tools.py"
    source = memfs.text("tools/generated_ops_tools.py")
    _assert_valid(source)
    assert source.startswith("# cmdforge:build ops\n")
    assert "ShipCommand" in source
    assert "skipped" not in source


def test_second_run_reports_existing_wrapper(memfs) -> None:
    memfs.write({"tools/tasks.py": "def build() -> None:\n    pass\n"})
    generate_function_wrappers(memfs, _options())

    with pytest.raises(WrapperExistsError) as excinfo:
        generate_function_wrappers(memfs, _options())
    assert excinfo.value.wrapper == "BuildCommand"
    assert len(memfs.writes) == 1


def test_only_tagged_output_carries_default_directive(memfs) -> None:
    memfs.write({"tools/tasks.py": "# cmdforge:build cmdforge\n\ndef build() -> None:\n    pass\n"})

    path = generate_function_wrappers(memfs, _options(only_tagged=True))

    assert path == "/root/tools/generated_cmdforge_tools.py"
    source = memfs.text("tools/generated_cmdforge_tools.py")
    _assert_valid(source)
    assert source.startswith("# cmdforge:build cmdforge\n")

    with pytest.raises(WrapperExistsError):
        generate_function_wrappers(memfs, _options(only_tagged=True))
    assert len(memfs.writes) == 1


def test_only_tagged_rescans_untagged_earlier_output(memfs) -> None:
    memfs.write({"tools/tasks.py": "# cmdforge:build cmdforge\n\ndef build() -> None:\n    pass\n"})
    generate_function_wrappers(memfs, _options())

    with pytest.raises(WrapperExistsError) as excinfo:
        generate_function_wrappers(memfs, _options(only_tagged=True))
    assert excinfo.value.wrapper == "BuildCommand"
    assert len(memfs.writes) == 1


def test_hand_written_wrapper_conflicts(memfs) -> None:
    memfs.write(
        {
            "tools/tasks.py": """
                def run_tests() -> None:
                    pass


                class RunTestsCommand:
                    def run(self) -> None:
                        run_tests()
                """
        }
    )

    with pytest.raises(WrapperExistsError):
        generate_function_wrappers(memfs, _options())


def test_nothing_to_wrap(memfs) -> None:
    memfs.write(
        {
            "tools/tasks.py": """
                class Build:
                    def run(self) -> None:
                        pass


                def _helper() -> None:
                    pass
                """
        }
    )

    assert generate_function_wrappers(memfs, _options()) == ""
    assert memfs.writes == []


def test_subcommand_claimed_functions_are_skipped(memfs) -> None:
    memfs.write(
        {
            "tools/tasks.py": """
                from typing import Annotated


                class Root:
                    deploy: Annotated["Deploy", 'cmdforge:"subcommand"']


                def deploy() -> None:
                    pass


                def lint() -> None:
                    pass
                """
        }
    )

    package, functions = collect_wrapper_targets(memfs, _options())

    assert package == "tools"
    assert [fn.name for fn in functions] == ["lint"]


def test_no_source_files(memfs) -> None:
    memfs.write({"tools/README.md": "docs\n", "tools/test_tasks.py": "def test_x():\n    pass\n"})

    with pytest.raises(NoSourceFilesError):
        generate_function_wrappers(memfs, _options())


def test_package_name_not_found(memfs) -> None:
    memfs.write({"my-tools/tasks.py": "def build() -> None:\n    pass\n"})

    with pytest.raises(PackageNameNotFoundError):
        generate_function_wrappers(memfs, _options(dir="/root/my-tools"))


def test_package_name_mismatch(memfs) -> None:
    memfs.write(
        {
            "tools/a.py": '__package_name__ = "alpha"\n',
            "tools/b.py": '__package_name__ = "beta"\n',
        }
    )

    with pytest.raises(MultiplePackageNamesError):
        generate_function_wrappers(memfs, _options())


def test_invalid_signature(memfs) -> None:
    memfs.write({"tools/tasks.py": "def build() -> int:\n    return 1\n"})

    with pytest.raises(SignatureError):
        generate_function_wrappers(memfs, _options())


def test_unimportable_module_name(memfs) -> None:
    memfs.write({"tools/my-tasks.py": "def build() -> None:\n    pass\n"})

    with pytest.raises(GenerationError):
        generate_function_wrappers(memfs, _options())
