"""Tests for file path utilities."""

from prscribe_core.utils.code import file_extension, is_test_path


class TestFileExtension:
    def test_simple_extension(self):
        assert file_extension("app/services/user.py") == "py"

    def test_last_suffix_only(self):
        assert file_extension("dist/bundle.tar.gz") == "gz"

    def test_case_insensitive(self):
        assert file_extension("assets/Logo.PNG") == "png"

    def test_extensionless_file(self):
        assert file_extension("Makefile") == ""

    def test_dotfile_has_no_extension(self):
        assert file_extension(".gitignore") == ""


class TestIsTestPath:
    def test_tests_directory(self):
        assert is_test_path("tests/test_auth.py") is True

    def test_spec_suffix(self):
        assert is_test_path("src/widget_spec.rb") is True

    def test_jest_directory(self):
        assert is_test_path("src/__tests__/Button.tsx") is True

    def test_case_insensitive(self):
        assert is_test_path("src/Widget.Test.ts") is True

    def test_regular_source(self):
        assert is_test_path("src/widget.py") is False
