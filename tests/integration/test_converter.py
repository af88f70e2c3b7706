"""
Integration tests for the file conversion driver.
"""

import pytest

from polymerts_migrate.core import converter
from polymerts_migrate.core.change_records import Severity
from polymerts_migrate.core.config import ConverterOptions
from polymerts_migrate.core.converter import (
    NoInputFilesError,
    convert_file,
    convert_files,
    output_path_for,
    resolve_files,
)
from polymerts_migrate.core.emitter import PrintError


COMPONENT = '@component("x-a")\nclass XA extends Polymer.Element {\n}\n'


@pytest.fixture
def project(temp_dir, monkeypatch):
    """A small project tree with the working directory set to its root."""
    src = temp_dir / "src"
    (src / "nested").mkdir(parents=True)
    (src / "node_modules" / "lib").mkdir(parents=True)
    (src / "a.ts").write_text(COMPONENT)
    (src / "nested" / "b.tsx").write_text("const b = 1;\n")
    (src / "node_modules" / "lib" / "c.ts").write_text("const c = 1;\n")
    (src / "readme.md").write_text("# not a source\n")
    monkeypatch.chdir(temp_dir)
    return temp_dir


class TestResolveFiles:
    """Input expansion."""

    def test_directory_expansion(self, project):
        """Test a directory gives its .ts/.tsx files minus ignored ones."""
        files = resolve_files(["src"])
        assert files == ["src/a.ts", "src/nested/b.tsx"]

    def test_glob_pattern(self, project):
        """Test glob patterns are expanded recursively."""
        assert resolve_files(["src/**/*.tsx"]) == ["src/nested/b.tsx"]

    def test_custom_ignore(self, project):
        """Test ignore patterns from the options replace the defaults."""
        files = resolve_files(["src"], ignore=["nested/**"])
        assert "src/nested/b.tsx" not in files
        assert "src/node_modules/lib/c.ts" in files

    def test_nothing_matched(self, project):
        """Test unmatched patterns give an empty list."""
        assert resolve_files(["missing/*.ts"]) == []


class TestConvertFiles:
    """Batch conversion."""

    def test_empty_batch_rejected(self):
        """Test converting no files is an error."""
        with pytest.raises(NoInputFilesError):
            convert_files([])

    def test_output_mirrors_tree(self, project):
        """Test converted files land under the output path with their relative path."""
        options = ConverterOptions(output_path="out")
        report = convert_files(["src/a.ts", "src/nested/b.tsx"], options)
        assert report.ok
        written = project / "out" / "src" / "a.ts"
        assert written.read_text() == '@customElement("x-a")\nclass XA extends Polymer.Element {\n}\n'
        assert (project / "out" / "src" / "nested" / "b.tsx").read_text() == "const b = 1;\n"
        assert (project / "src" / "a.ts").read_text() == COMPONENT

    def test_change_inline(self, project):
        """Test inline mode overwrites the input."""
        options = ConverterOptions(change_inline=True)
        assert str(output_path_for("src/a.ts", options)) == "src/a.ts"
        convert_files(["src/a.ts"], options)
        assert (project / "src" / "a.ts").read_text().startswith('@customElement("x-a")')

    def test_failure_does_not_stop_batch(self, project):
        """Test a missing file is reported while the others are written."""
        report = convert_files(["src/missing.ts", "src/a.ts"], ConverterOptions(output_path="out"))
        assert not report.ok
        assert report.not_written == ["src/missing.ts"]
        assert len(report.written) == 1
        errors = [n for n in report.notifications if n.severity is Severity.ERROR]
        assert errors and errors[0].file_path == "src/missing.ts"

    def test_print_error_reported(self, project, monkeypatch):
        """Test a print failure leaves the file unwritten."""
        def failing_emit(source_file, store):
            raise PrintError(source_file.file_path, "overlapping edits")
        monkeypatch.setattr(converter, "emit", failing_emit)
        result = convert_file("src/a.ts", ConverterOptions(output_path="out"))
        assert not result.written
        assert "overlapping edits" in result.error
        assert not (project / "out").exists()

    def test_progress_wrapper(self, project):
        """Test the progress callable sees every path."""
        seen = []

        def progress(paths):
            for path in paths:
                seen.append(path)
                yield path

        convert_files(["src/a.ts"], ConverterOptions(output_path="out"), progress=progress)
        assert seen == ["src/a.ts"]

    def test_notifications_carry_path(self, project):
        """Test notifications name the file they came from."""
        report = convert_files(["src/a.ts"], ConverterOptions(output_path="out"))
        assert report.notifications
        assert all(n.file_path == "src/a.ts" for n in report.notifications)
