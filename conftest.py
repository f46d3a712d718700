"""
Pytest configuration for porebox.

Tests marked ``skipped`` (e.g. long-running convergence studies) only run if the flag
``--run-skipped`` is given. Vtu and pvd files written to the working directory are
removed after the session.

Credits: https://jwodder.github.io/kbits/posts/pytest-mark-off/ (Option 1).
"""

import glob
import os

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--run-skipped",
        action="store_true",
        default=False,
        help="Run tests marked as skipped",
    )


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "skipped: Mark test to be run only with --run-skipped."
    )


def pytest_collection_modifyitems(config, items):
    if config.getoption("--run-skipped"):
        return
    skipper = pytest.mark.skip(reason="Only run when --run-skipped is given")
    for item in items:
        if "skipped" in item.keywords:
            item.add_marker(skipper)


@pytest.fixture(scope="session", autouse=True)
def cleanup_exported_files():
    """Remove vtu and pvd files from the working directory after the session."""
    yield

    for extension in ("vtu", "pvd"):
        for file_path in glob.glob(os.path.join(os.getcwd(), f"*.{extension}")):
            try:
                os.remove(file_path)
            except OSError as e:
                print(f"Error deleting file {file_path}: {e}")
