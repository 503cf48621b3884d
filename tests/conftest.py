import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
if SRC.exists():
    sys.path.insert(0, str(SRC))

# Register shared Hypothesis profiles for deterministic CI runs and fast local loops.
from tests.util import hypothesis_profiles  # noqa: E402,F401  pylint: disable=unused-import

HASHLAB_ENV_VARS = (
    "HASHLAB_CONFIG",
    "HASHLAB_MAX_LOAD_FACTOR",
    "HASHLAB_MAX_OCCUPANCY",
    "HASHLAB_TABLE_SIZES",
    "HASHLAB_DATASET_SIZES",
    "HASHLAB_SEARCH_COUNT",
    "HASHLAB_DATA_DIR",
    "HASHLAB_MIN_VALUE",
    "HASHLAB_MAX_VALUE",
    "HASHLAB_SEED",
)


@pytest.fixture(autouse=True)
def _isolate_hashlab_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer shell overrides out of config-sensitive tests."""

    for name in HASHLAB_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
