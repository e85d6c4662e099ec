from pathlib import PurePosixPath

# Substrings that mark a path as test code across the common conventions:
# tests/, test_foo.py, foo.test.ts, foo_spec.rb, __tests__/
TEST_PATH_MARKERS = ("test", "spec", "__tests__")


def file_extension(file_name: str) -> str:
    """Lower-cased extension without the dot; "" for extensionless files and dotfiles."""
    return PurePosixPath(file_name).suffix.lstrip(".").lower()


def is_test_path(file_name: str) -> bool:
    lowered = file_name.lower()
    return any(marker in lowered for marker in TEST_PATH_MARKERS)
