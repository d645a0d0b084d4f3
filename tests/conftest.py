import logging
import sys
from pathlib import Path

import pytest

# Ensure local package path (workspace root) precedes any installed version
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from lookupkit.config import get_settings
from lookupkit.registry import LookupRegistry, reset_default_registry


@pytest.fixture
def registry():
    return LookupRegistry()


@pytest.fixture(autouse=True)
def fresh_settings():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    get_settings(refresh=True)
    reset_default_registry()
    yield
    # the CLI reconfigures root logging
    for h in list(root.handlers):
        if h not in handlers:
            root.removeHandler(h)
            h.close()
    for h in handlers:
        if h not in root.handlers:
            root.addHandler(h)
    root.setLevel(level)
    get_settings(refresh=True)
    reset_default_registry()
