"""`wren ingest`, `wren trim` and `wren snr` commands.

Records go to a ``FileSystemAssetStore`` under ``--data-dir`` (default
``WREN_DATA_DIR`` or ``~/.wren``). Results are printed as JSON on stdout;
errors go to stderr with exit code 1.
"""

from __future__ import annotations

import json
import sys
import uuid
from dataclasses import asdict
from typing import Any

import click

from wren._types import WorkflowContext
from wren.cli.main import cli
from wren.config.settings import get_settings
from wren.exceptions import WrenError
from wren.service import AudioAssetService
from wren.store import FileSystemAssetStore


def _build_service(data_dir: str | None, run_id: str | None) -> AudioAssetService:
    settings = get_settings()
    base_dir = data_dir or str(settings.storage.data_path)
    workflow = WorkflowContext(
        workflow_id=settings.workflow.workflow_id,
        workflow_run_id=run_id or str(uuid.uuid4()),
    )
    return AudioAssetService(FileSystemAssetStore(base_dir), workflow, settings=settings)


def _emit(payload: dict[str, Any]) -> None:
    click.echo(json.dumps(payload, indent=2, sort_keys=True))


def _fail(err: WrenError) -> None:
    click.echo(f"Error: {err}", err=True)
    sys.exit(1)


_data_dir_option = click.option(
    "--data-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Record store directory (default: WREN_DATA_DIR or ~/.wren).",
)
_run_id_option = click.option(
    "--run-id",
    default=None,
    help="Workflow run id stamped on new assets (default: random).",
)


@cli.command()
@click.argument("file", type=click.Path(dir_okay=False))
@_data_dir_option
@_run_id_option
def ingest(file: str, data_dir: str | None, run_id: str | None) -> None:
    """Register FILE as a new asset."""
    try:
        service = _build_service(data_dir, run_id)
        result = service.ingest(file)
    except WrenError as err:
        _fail(err)
        return
    _emit({"asset": asdict(result.asset), "metadata": asdict(result.metadata)})


@cli.command()
@click.argument("asset_id")
@click.option(
    "--silence-threshold",
    type=click.FloatRange(0.0, 1.0),
    default=None,
    help="Fraction of full scale treated as silence (default 0.01).",
)
@click.option(
    "--min-silence-duration",
    type=click.FloatRange(min=0.0),
    default=None,
    help="Seconds of trailing silence for the approximate scan (default 0.1).",
)
@_data_dir_option
@_run_id_option
def trim(
    asset_id: str,
    silence_threshold: float | None,
    min_silence_duration: float | None,
    data_dir: str | None,
    run_id: str | None,
) -> None:
    """Trim leading/trailing silence from stored asset ASSET_ID."""
    try:
        service = _build_service(data_dir, run_id)
        result = service.trim_silence(
            asset_id,
            silence_threshold=silence_threshold,
            min_silence_duration=min_silence_duration,
        )
    except WrenError as err:
        _fail(err)
        return
    _emit(asdict(result))


@cli.command()
@click.argument("file", type=click.Path(dir_okay=False))
@click.option("--asset-id", default=None, help="Store the result as a feature of this asset.")
@click.option(
    "--noise-threshold",
    type=click.FloatRange(0.0, 1.0),
    default=None,
    help="Fraction of full scale treated as noise (default 0.01).",
)
@click.option(
    "--noise-mode",
    type=click.Choice(["samples", "segments"]),
    default=None,
    help="Estimate noise from quiet samples or from fully silent frames (default samples).",
)
@_data_dir_option
@_run_id_option
def snr(
    file: str,
    asset_id: str | None,
    noise_threshold: float | None,
    noise_mode: str | None,
    data_dir: str | None,
    run_id: str | None,
) -> None:
    """Compute the signal-to-noise ratio of FILE in dB."""
    try:
        service = _build_service(data_dir, run_id)
        feature = service.compute_snr(
            file,
            asset_id=asset_id,
            noise_threshold=noise_threshold,
            use_silent_segments=None if noise_mode is None else noise_mode == "segments",
        )
    except WrenError as err:
        _fail(err)
        return
    _emit(
        {
            "feature_type": feature.feature_type,
            "feature_data": feature.feature_data(),
            "computation_params": feature.computation_params(),
        }
    )
