"""
Shared pytest fixtures.

Environment variables are set here, before any test module imports
``pavilo.core.config``, so every test run points at a throwaway database,
data directory and log file.
"""
import os
import sys
import tempfile

import pytest

# Ensure app package is importable when running pytest from project root
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

_tmp_dir = tempfile.mkdtemp(prefix="pavilo-tests-")
os.environ["STORAGE_BACKEND"] = "sql"
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_tmp_dir, 'test.db')}"
os.environ["DATA_DIR"] = os.path.join(_tmp_dir, "data")
os.environ["LOG_FILE"] = os.path.join(_tmp_dir, "logs", "pavilo.log")
os.environ["DEFAULT_GST_RATE"] = "18"

from pavilo.core.storage import MemoryStorage  # noqa: E402 – must import after env set


@pytest.fixture
def storage():
    return MemoryStorage()
