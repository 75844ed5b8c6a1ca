import pytest

from config import settings
from library import Library
from utils.ui_helpers import OUTPUT_MODE_ENV


@pytest.fixture
def catalog_paths(tmp_path):
    # Each test gets its own catalog and history files
    catalog_file = tmp_path / "library.csv"
    history_file = tmp_path / "history.csv"
    catalog_file.write_text("", encoding="utf-8")
    return str(catalog_file), str(history_file)


@pytest.fixture
def lib(catalog_paths):
    catalog_file, history_file = catalog_paths
    return Library(catalog_file=catalog_file, history_file=history_file)


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, catalog_paths):
    """Point the CLI's shared settings at the per-test files and reset the output mode."""
    catalog_file, history_file = catalog_paths
    monkeypatch.setattr(settings, "catalog_file", catalog_file)
    monkeypatch.setattr(settings, "history_file", history_file)
    monkeypatch.delenv(OUTPUT_MODE_ENV, raising=False)
