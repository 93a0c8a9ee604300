"""Asset operations: ingest raw audio, trim silence, compute SNR.

``AudioAssetService`` wires the pure signal-processing functions to an
``AssetStore`` on behalf of one workflow run. Every dependency is passed in,
so any number of services can run side by side in threads or processes. The
service performs no retries; errors propagate to the caller.
"""

from __future__ import annotations

import os
import uuid
from typing import TYPE_CHECKING

from wren._audio_constants import DEFAULT_NOISE_THRESHOLD
from wren._types import Asset, AudioMetadata, IngestResult, TrimResult, WorkflowContext
from wren.audio_io import read_audio
from wren.exceptions import AudioFormatError
from wren.features import SnrFeature, SnrParams
from wren.hashing import hash_file
from wren.logging import get_logger, workflow_log_context
from wren.snr import estimate_snr
from wren.trim import TrimmedAssetBuilder

if TYPE_CHECKING:
    from wren.config.settings import WrenSettings
    from wren.store import AssetStore

logger = get_logger("service")


class AudioAssetService:
    """Runs asset operations for one workflow run.

    Args:
        store: Persistence for assets and features.
        workflow: Workflow identifiers stamped on every new asset.
        settings: Default thresholds and storage options. Default: ``get_settings()``.
        builder: Trim builder. Default: built from ``settings.trim``.
    """

    def __init__(
        self,
        store: AssetStore,
        workflow: WorkflowContext,
        *,
        settings: WrenSettings | None = None,
        builder: TrimmedAssetBuilder | None = None,
    ) -> None:
        if settings is None:
            from wren.config.settings import get_settings

            settings = get_settings()
        self._store = store
        self._workflow = workflow
        self._settings = settings
        self._builder = builder or TrimmedAssetBuilder(
            output_dir=settings.trim.output_dir,
            mode=settings.trim.mode,
            hash_chunk_size=settings.storage.hash_chunk_size_bytes,
        )

    @property
    def workflow(self) -> WorkflowContext:
        return self._workflow

    def _new_asset(
        self,
        asset_id: str,
        file_path: str,
        content_hash: str,
        parent_asset_id: str | None = None,
    ) -> Asset:
        return Asset(
            id=asset_id,
            workflow_id=self._workflow.workflow_id,
            workflow_run_id=self._workflow.workflow_run_id,
            file_path=file_path,
            content_hash=content_hash,
            parent_asset_id=parent_asset_id,
        )

    def ingest(self, file_path: str | os.PathLike[str]) -> IngestResult:
        """Register a raw audio file as a new root asset.

        Hashes the file, decodes it to validate the container and extract
        metadata, then persists the asset.

        Raises:
            AudioInputError: File missing or unreadable.
            AudioFormatError: File is not valid integer PCM.
            AudioIOError: Reading failed part-way.
        """
        path = os.path.abspath(os.fspath(file_path))
        with workflow_log_context(self._workflow.workflow_id, self._workflow.workflow_run_id):
            content_hash = hash_file(path, self._settings.storage.hash_chunk_size_bytes)
            buffer = read_audio(path)
            metadata = AudioMetadata(
                sample_rate=buffer.sample_rate,
                channels=buffer.channels,
                duration_s=buffer.duration_s,
                bit_depth=buffer.bit_depth,
            )

            asset = self._new_asset(str(uuid.uuid4()), path, content_hash)
            self._store.add_asset(asset)
            logger.info(
                "asset_ingested",
                asset_id=asset.id,
                path=path,
                content_hash=content_hash,
                sample_rate=metadata.sample_rate,
                channels=metadata.channels,
                duration_s=round(metadata.duration_s, 3),
            )
        return IngestResult(asset=asset, metadata=metadata)

    def trim_silence(
        self,
        asset_id: str,
        *,
        silence_threshold: float | None = None,
        min_silence_duration: float | None = None,
    ) -> TrimResult:
        """Trim leading/trailing silence from a stored asset.

        When trimming produces new content, the trimmed file is registered as
        a child asset of ``asset_id``. A no-op registers nothing. The source
        file is hashed again on every call, so a file changed since ingest
        reports its current hash.

        Args:
            asset_id: Source asset.
            silence_threshold: Fraction of full scale. Default from settings.
            min_silence_duration: Seconds. Default from settings.
        """
        trim_settings = self._settings.trim
        with workflow_log_context(self._workflow.workflow_id, self._workflow.workflow_run_id):
            source = self._store.get_asset(asset_id)
            result = self._builder.build(
                source.file_path,
                silence_threshold=(
                    trim_settings.silence_threshold
                    if silence_threshold is None
                    else silence_threshold
                ),
                min_silence_duration=(
                    trim_settings.min_silence_duration_s
                    if min_silence_duration is None
                    else min_silence_duration
                ),
            )
            if result.no_op and result.content_hash != source.content_hash:
                logger.warning(
                    "source_changed_since_ingest",
                    asset_id=source.id,
                    path=source.file_path,
                    recorded_hash=source.content_hash,
                    current_hash=result.content_hash,
                )

            if result.new_asset_id is not None and result.output_path is not None:
                trimmed = self._new_asset(
                    result.new_asset_id,
                    result.output_path,
                    result.content_hash,
                    parent_asset_id=source.id,
                )
                self._store.add_asset(trimmed)
                logger.info(
                    "trimmed_asset_registered",
                    asset_id=trimmed.id,
                    parent_asset_id=source.id,
                    content_hash=trimmed.content_hash,
                )
        return result

    def compute_snr(
        self,
        file_path: str | os.PathLike[str],
        *,
        asset_id: str | None = None,
        noise_threshold: float | None = None,
        use_silent_segments: bool | None = None,
    ) -> SnrFeature:
        """Measure the SNR of an audio file.

        When ``asset_id`` is given, a new ``snr`` feature record is stored
        for that asset; earlier records are kept.

        Raises:
            AudioFormatError: The file decodes to zero samples.
        """
        snr_settings = self._settings.snr
        params = SnrParams(
            noise_threshold=(
                noise_threshold or snr_settings.noise_threshold or DEFAULT_NOISE_THRESHOLD
            ),
            use_silent_segments=(
                snr_settings.use_silent_segments
                if use_silent_segments is None
                else use_silent_segments
            ),
        )
        path = os.path.abspath(os.fspath(file_path))

        with workflow_log_context(self._workflow.workflow_id, self._workflow.workflow_run_id):
            buffer = read_audio(path)
            if len(buffer.samples) == 0:
                raise AudioFormatError(
                    f"'{path}' contains no samples "
                    f"(sample rate: {buffer.sample_rate}, channels: {buffer.channels})"
                )

            measurement = estimate_snr(
                buffer.samples,
                buffer.channels,
                params.noise_threshold,
                params.use_silent_segments,
                bit_depth=buffer.bit_depth,
            )
            feature = SnrFeature.from_measurement(measurement, params)
            logger.info(
                "snr_computed",
                path=path,
                asset_id=asset_id,
                snr_db=round(feature.snr, 3),
                noise_threshold=params.noise_threshold,
                use_silent_segments=params.use_silent_segments,
            )

            if asset_id is not None:
                record = feature.to_record(asset_id)
                self._store.add_feature(record)
                logger.info("snr_feature_stored", feature_id=record.id, asset_id=asset_id)
        return feature
