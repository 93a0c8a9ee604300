"""Tests for wren.service.AudioAssetService."""

from __future__ import annotations

import hashlib
import os
from pathlib import Path

import numpy as np
import pytest

from tests.helpers import make_padded_tone, write_audio_file
from wren._types import TrailingSilenceMode, WorkflowContext
from wren.audio_io import read_audio
from wren.config.settings import WrenSettings
from wren.exceptions import AssetNotFoundError, AudioFormatError, AudioInputError
from wren.features import SnrFeature
from wren.service import AudioAssetService
from wren.store import InMemoryAssetStore
from wren.trim import TrimmedAssetBuilder


@pytest.fixture
def service(store: InMemoryAssetStore, workflow: WorkflowContext) -> AudioAssetService:
    return AudioAssetService(store, workflow, settings=WrenSettings())


class TestIngest:
    def test_registers_root_asset(
        self, service: AudioAssetService, store: InMemoryAssetStore, padded_wav: Path
    ) -> None:
        # Act
        result = service.ingest(padded_wav)

        # Assert
        asset = result.asset
        assert asset.parent_asset_id is None
        assert asset.workflow_id == "wf-test"
        assert asset.workflow_run_id == "run-1"
        assert asset.file_path == os.path.abspath(padded_wav)
        assert asset.content_hash == hashlib.sha256(padded_wav.read_bytes()).hexdigest()
        assert store.get_asset(asset.id) == asset
        assert result.metadata.sample_rate == 1000
        assert result.metadata.duration_s == pytest.approx(4.0)

    def test_same_file_twice_creates_two_assets(
        self, service: AudioAssetService, store: InMemoryAssetStore, loud_wav: Path
    ) -> None:
        first = service.ingest(loud_wav).asset
        second = service.ingest(loud_wav).asset

        assert first.id != second.id
        assert first.content_hash == second.content_hash
        assert len(store.list_assets()) == 2

    def test_missing_file_registers_nothing(
        self, service: AudioAssetService, store: InMemoryAssetStore, tmp_path: Path
    ) -> None:
        with pytest.raises(AudioInputError) as excinfo:
            service.ingest(tmp_path / "missing.wav")
        assert excinfo.value.reason == AudioInputError.FILE_NOT_FOUND
        assert store.list_assets() == []

    def test_invalid_audio_registers_nothing(
        self, service: AudioAssetService, store: InMemoryAssetStore, tmp_path: Path
    ) -> None:
        path = tmp_path / "bogus.wav"
        path.write_bytes(b"\x00" * 64)
        with pytest.raises(AudioFormatError):
            service.ingest(path)
        assert store.list_assets() == []


class TestTrimSilence:
    def test_trim_registers_child_asset(
        self, service: AudioAssetService, store: InMemoryAssetStore, padded_wav: Path
    ) -> None:
        # Arrange
        source = service.ingest(padded_wav).asset

        # Act
        result = service.trim_silence(source.id)

        # Assert
        assert result.was_trimmed is True
        (child,) = store.list_assets(parent_asset_id=source.id)
        assert child.id == result.new_asset_id
        assert child.file_path == result.output_path
        assert child.content_hash == result.content_hash
        assert child.workflow_run_id == "run-1"

    def test_no_op_registers_nothing(
        self, service: AudioAssetService, store: InMemoryAssetStore, loud_wav: Path
    ) -> None:
        source = service.ingest(loud_wav).asset

        result = service.trim_silence(source.id)

        assert result.no_op is True
        assert result.content_hash == source.content_hash
        assert store.list_assets() == [source]

    def test_trimmed_asset_can_be_trimmed_again_as_no_op(
        self, service: AudioAssetService, padded_wav: Path
    ) -> None:
        source = service.ingest(padded_wav).asset
        child_id = service.trim_silence(source.id).new_asset_id

        again = service.trim_silence(child_id)

        assert again.no_op is True

    def test_settings_supply_trim_defaults(
        self, store: InMemoryAssetStore, workflow: WorkflowContext, padded_wav: Path
    ) -> None:
        # Arrange -- a threshold above the body amplitude makes everything silent
        settings = WrenSettings()
        settings = settings.model_copy(
            update={"trim": settings.trim.model_copy(update={"silence_threshold": 0.9})}
        )
        service = AudioAssetService(store, workflow, settings=settings)
        source = service.ingest(padded_wav).asset

        # Act
        result = service.trim_silence(source.id)

        # Assert
        assert result.no_op is True

    def test_explicit_arguments_override_settings(
        self, service: AudioAssetService, padded_wav: Path
    ) -> None:
        source = service.ingest(padded_wav).asset
        result = service.trim_silence(source.id, silence_threshold=0.9)
        assert result.no_op is True

    def test_injected_builder_is_used(
        self, store: InMemoryAssetStore, workflow: WorkflowContext, padded_wav: Path
    ) -> None:
        builder = TrimmedAssetBuilder(
            mode=TrailingSilenceMode.APPROXIMATE, id_factory=lambda: "trimmed-1"
        )
        service = AudioAssetService(store, workflow, settings=WrenSettings(), builder=builder)
        source = service.ingest(padded_wav).asset

        result = service.trim_silence(source.id)

        assert store.get_asset("trimmed-1").parent_asset_id == source.id
        assert result.new_asset_id == "trimmed-1"

    def test_unknown_asset_raises(self, service: AudioAssetService) -> None:
        with pytest.raises(AssetNotFoundError):
            service.trim_silence("nope")

    def test_file_rewritten_after_ingest_reports_current_hash(
        self, service: AudioAssetService, tmp_path: Path
    ) -> None:
        # Arrange -- ingest 500 loud frames, then replace them with 600
        path = write_audio_file(tmp_path / "take.wav", make_padded_tone(0, 500, 0))
        source = service.ingest(path).asset
        write_audio_file(path, make_padded_tone(0, 600, 0))
        current_hash = hashlib.sha256(path.read_bytes()).hexdigest()

        # Act
        result = service.trim_silence(source.id)

        # Assert
        assert result.no_op is True
        assert current_hash != source.content_hash
        assert result.content_hash == current_hash

    def test_rewritten_file_is_trimmed_from_its_current_bytes(
        self, service: AudioAssetService, store: InMemoryAssetStore, tmp_path: Path
    ) -> None:
        # Arrange -- ingest padded audio, then replace it with a different padding
        path = write_audio_file(tmp_path / "take.wav", make_padded_tone(100, 300, 100))
        source = service.ingest(path).asset
        write_audio_file(path, make_padded_tone(50, 200, 50))

        # Act
        result = service.trim_silence(source.id)

        # Assert
        trimmed = read_audio(result.output_path)
        assert trimmed.frame_count == 200
        assert store.get_asset(result.new_asset_id).parent_asset_id == source.id


class TestComputeSnr:
    def test_returns_feature_without_storing(
        self, service: AudioAssetService, store: InMemoryAssetStore, padded_wav: Path
    ) -> None:
        # Act
        feature = service.compute_snr(padded_wav)

        # Assert -- 2000 of 4000 samples at 20000, silent noise population
        assert isinstance(feature, SnrFeature)
        assert feature.signal_power == pytest.approx(20000.0**2 / 2)
        assert feature.noise_power == 0.0
        assert feature.snr == 120.0
        assert feature.params.noise_threshold == 0.01
        assert feature.params.use_silent_segments is False
        assert store.list_assets() == []

    def test_stores_feature_history_for_asset(
        self, service: AudioAssetService, store: InMemoryAssetStore, padded_wav: Path
    ) -> None:
        # Arrange
        asset = service.ingest(padded_wav).asset

        # Act
        service.compute_snr(padded_wav, asset_id=asset.id)
        service.compute_snr(padded_wav, asset_id=asset.id, use_silent_segments=True)

        # Assert
        history = store.list_features(asset.id, "snr")
        assert len(history) == 2
        assert {f.computation_params["use_silent_segments"] for f in history} == {True, False}
        assert SnrFeature.from_record(history[0]).snr == 120.0

    def test_unknown_asset_raises(self, service: AudioAssetService, padded_wav: Path) -> None:
        with pytest.raises(AssetNotFoundError):
            service.compute_snr(padded_wav, asset_id="ghost")

    def test_empty_file_rejected(self, service: AudioAssetService, tmp_path: Path) -> None:
        path = write_audio_file(tmp_path / "empty.wav", np.array([], dtype=np.int16))
        with pytest.raises(AudioFormatError, match="no samples"):
            service.compute_snr(path)

    def test_zero_threshold_uses_settings_default(
        self, service: AudioAssetService, padded_wav: Path
    ) -> None:
        feature = service.compute_snr(padded_wav, noise_threshold=0.0)
        assert feature.params.noise_threshold == 0.01

    def test_zero_configured_threshold_records_effective_value(
        self,
        store: InMemoryAssetStore,
        workflow: WorkflowContext,
        padded_wav: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        # Arrange -- zero in the environment means "use the default"
        monkeypatch.setenv("WREN_SNR_NOISE_THRESHOLD", "0")
        service = AudioAssetService(store, workflow, settings=WrenSettings())
        asset = service.ingest(padded_wav).asset

        # Act
        feature = service.compute_snr(padded_wav, asset_id=asset.id)

        # Assert -- stored params name the threshold the measurement used
        (record,) = store.list_features(asset.id)
        assert feature.params.noise_threshold == 0.01
        assert record.computation_params["noise_threshold"] == 0.01
