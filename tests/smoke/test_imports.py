import importlib
import os
from pathlib import Path

import pytest

# --- Test Configuration ---
SOURCE_DIRECTORIES = ["polyinfer"]


def find_modules_to_test():
    """
    Finds all Python modules in the specified source directories.
    """
    project_root = Path(__file__).resolve().parents[2]
    modules = []
    for directory in SOURCE_DIRECTORIES:
        source_path = project_root / directory
        if not source_path.is_dir():
            continue
        for py_file in sorted(source_path.rglob("*.py")):
            relative_path = py_file.relative_to(project_root)
            if py_file.name == "__init__.py":
                relative_path = relative_path.parent
            module_name = str(relative_path.with_suffix("")).replace(os.path.sep, ".")
            modules.append(module_name)
    return modules


@pytest.mark.parametrize("module_to_test", find_modules_to_test())
def test_dynamic_module_import(module_to_test):
    """
    A dynamically generated test that attempts to import a specific module.
    """
    try:
        importlib.import_module(module_to_test)
    except ImportError as e:
        pytest.fail(f"Failed to import module {module_to_test}: {e}")


def test_import_has_no_logging_side_effects():
    import logging

    import polyinfer  # noqa: F401

    handlers = logging.getLogger("polyinfer").handlers
    assert all(isinstance(h, logging.NullHandler) for h in handlers)
