"""Shared fixtures for all tests."""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure repo root is on sys.path so tests can import the `wren` package
# when running pytest from the repository root without an editable install.
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

import pytest  # noqa: E402

from tests.helpers import make_padded_tone, write_audio_file  # noqa: E402
from wren._types import WorkflowContext  # noqa: E402
from wren.config.settings import get_settings  # noqa: E402
from wren.store import InMemoryAssetStore  # noqa: E402


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Settings are cached; make each test read the environment anew."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def padded_wav(tmp_path: Path) -> Path:
    """Mono 16-bit WAV at 1kHz: 1000 silent, 2000 loud, 1000 silent frames."""
    return write_audio_file(tmp_path / "padded.wav", make_padded_tone(1000, 2000, 1000))


@pytest.fixture
def loud_wav(tmp_path: Path) -> Path:
    """Mono 16-bit WAV with no silent frame anywhere."""
    return write_audio_file(tmp_path / "loud.wav", make_padded_tone(0, 2000, 0))


@pytest.fixture
def store() -> InMemoryAssetStore:
    return InMemoryAssetStore()


@pytest.fixture
def workflow() -> WorkflowContext:
    return WorkflowContext(workflow_id="wf-test", workflow_run_id="run-1")
