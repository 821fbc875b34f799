import os

import pytest

FIXTURES_DIR = os.path.join(os.path.dirname(__file__), "end_to_end", "auwla_fixtures")


@pytest.fixture
def load_fixture():
    """Reads a component file (or its expected output) from the fixtures directory."""

    def _load(name):
        with open(os.path.join(FIXTURES_DIR, name), "r", encoding="utf-8") as f:
            return f.read()

    return _load


@pytest.fixture
def create_files(tmp_path):
    """A factory fixture to create a temporary file structure."""

    def _create_files(file_dict):
        for file_path, content in file_dict.items():
            path = tmp_path / file_path
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return tmp_path

    return _create_files
