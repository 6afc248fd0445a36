"""Shared fixtures and helpers for tests."""

from pathlib import Path

import pytest

from code_facts.config import ExtractionSettings
from code_facts.decoders import InMemoryBundleDecoder

_REPO_ROOT = Path(__file__).parent.parent


# ---------------------------------------------------------------------------
# Auto-marker: tag tests as "unit" or "integration" based on directory
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        test_path = Path(str(item.fspath))
        rel = test_path.relative_to(_REPO_ROOT / "tests")
        parts = rel.parts
        if parts and parts[0] == "integration":
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# Shared unit-test fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def thread_settings() -> ExtractionSettings:
    """Small thread pool so tests stay deterministic and cheap."""
    return ExtractionSettings(max_workers=2, executor="thread")


@pytest.fixture
def memory_decoder() -> InMemoryBundleDecoder:
    return InMemoryBundleDecoder()
