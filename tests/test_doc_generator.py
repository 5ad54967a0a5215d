"""Tests for documentation generators and doc path mapping."""

from pathlib import Path
from unittest.mock import patch

import pytest

from docdrift.core.cost_tracker import CostTracker
from docdrift.core.doc_generator import (
    CommandGenerator,
    MarkdownSkeletonGenerator,
    doc_path_for,
    write_documentation,
)
from docdrift.core.errors import GenerationError

USER = """<?php

namespace App\\Models;

use Illuminate\\Database\\Eloquent\\Model;

class User extends Model
{
    protected $table = 'users';

    /**
     * Display name.
     */
    public function name(): string
    {
        return $this->name;
    }
}
"""


@pytest.mark.parametrize(
    "source,expected",
    [
        ("app/Models/User.php", "docs/code/Models/User.md"),
        ("src/service.py", "docs/code/service.md"),
        ("lib/Util.php", "docs/code/lib/Util.md"),
        ("application/Foo.php", "docs/code/application/Foo.md"),
    ],
)
def test_doc_path_for__strips_first_matching_prefix(source, expected) -> None:
    assert doc_path_for(source, Path("docs/code"), ["app/", "src/"]) == Path(expected)


def test_doc_path_for__keeps_file_named_like_a_prefix() -> None:
    assert doc_path_for("app.php", Path("docs"), ["app/"]) == Path("docs/app.md")


class TestMarkdownSkeletonGenerator:
    def test_generate__renders_types_members_and_dependencies(self) -> None:
        markdown = MarkdownSkeletonGenerator().generate("app/Models/User.php", USER)

        assert markdown.startswith("# User.php\n")
        assert "Namespace: `App\\Models`" in markdown
        assert "- `Illuminate\\Database\\Eloquent\\Model`" in markdown
        assert "## class User" in markdown
        assert "Extends: `Model`" in markdown
        assert "### Properties" in markdown
        assert "*(protected)*" in markdown
        assert "- `name(" in markdown
        assert ": Display name." in markdown

    def test_generate__public_only_leaves_out_private_and_protected_members(self) -> None:
        markdown = MarkdownSkeletonGenerator(public_only=True).generate("app/Models/User.php", USER)

        assert "### Properties" not in markdown
        assert "*(protected)*" not in markdown
        assert "- `name(" in markdown

    def test_generate__renders_python_functions(self) -> None:
        markdown = MarkdownSkeletonGenerator().generate("tools/run.py", "def main(argv):\n    return 0\n")

        assert "## Functions" in markdown
        assert "main" in markdown

    def test_generate__unsupported_extension_raises(self) -> None:
        with pytest.raises(GenerationError):
            MarkdownSkeletonGenerator().generate("README.md", "# Readme")

    def test_generate__parse_error_becomes_generation_error(self) -> None:
        with pytest.raises(GenerationError):
            MarkdownSkeletonGenerator().generate("app/Broken.php", "<?php\nclass Broken {\n  public function x( {\n")


class TestCommandGenerator:
    def test_generate__returns_command_stdout_and_records_usage(self, store) -> None:
        generator = CommandGenerator("sh -c cat", "gpt-4.1-nano", CostTracker(store))

        markdown = generator.generate("app/Models/User.php", USER)

        assert markdown == USER
        entries = store.get_usage_entries()
        assert len(entries) == 1
        assert entries[0].model == "gpt-4.1-nano"
        assert entries[0].file_path == "app/Models/User.php"

    def test_generate__nonzero_exit_raises(self) -> None:
        generator = CommandGenerator("sh -c 'echo broken >&2; exit 3'", "gpt-4.1-nano")

        with pytest.raises(GenerationError, match="exited 3"):
            generator.generate("app/User.php", USER)

    def test_generate__missing_executable_raises(self) -> None:
        generator = CommandGenerator("gen", "gpt-4.1-nano")

        with patch("docdrift.core.doc_generator.subprocess.run", side_effect=OSError("not found")):
            with pytest.raises(GenerationError):
                generator.generate("app/User.php", USER)


def test_write_documentation__creates_parent_directories(tmp_path) -> None:
    target = tmp_path / "docs" / "code" / "Models" / "User.md"

    write_documentation(target, "# User\n")

    assert target.read_text() == "# User\n"


def test_write_documentation__unwritable_target_raises(tmp_path) -> None:
    blocker = tmp_path / "docs"
    blocker.write_text("not a directory")

    with pytest.raises(GenerationError):
        write_documentation(blocker / "User.md", "# User\n")
