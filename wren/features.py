"""Typed feature documents.

Each feature type is a closed, versioned pydantic model. The models
serialize to the flat ``feature_data`` / ``computation_params`` documents the
persistence layer stores verbatim, and can be rebuilt from them.
"""

from __future__ import annotations

import uuid
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from wren._audio_constants import DEFAULT_NOISE_THRESHOLD
from wren._types import Feature, SnrMeasurement

SNR_FEATURE_TYPE = "snr"
SNR_FEATURE_VERSION = 1


class SnrParams(BaseModel):
    """Inputs used to derive an SNR feature."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    noise_threshold: float = Field(default=DEFAULT_NOISE_THRESHOLD, ge=0.0, le=1.0)
    use_silent_segments: bool = False


class SnrFeature(BaseModel):
    """SNR feature, version 1."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    feature_type: Literal["snr"] = SNR_FEATURE_TYPE
    version: Literal[1] = SNR_FEATURE_VERSION
    snr: float
    signal_power: float
    noise_power: float
    signal_rms: float
    noise_rms: float
    params: SnrParams = Field(default_factory=SnrParams)

    @classmethod
    def from_measurement(cls, measurement: SnrMeasurement, params: SnrParams) -> SnrFeature:
        return cls(
            snr=measurement.snr,
            signal_power=measurement.signal_power,
            noise_power=measurement.noise_power,
            signal_rms=measurement.signal_rms,
            noise_rms=measurement.noise_rms,
            params=params,
        )

    def feature_data(self) -> dict[str, float]:
        """External ``feature_data`` document."""
        return self.model_dump(
            include={"snr", "signal_power", "noise_power", "signal_rms", "noise_rms"}
        )

    def computation_params(self) -> dict[str, Any]:
        """External ``computation_params`` document."""
        return self.params.model_dump()

    def to_record(self, asset_id: str, feature_id: str | None = None) -> Feature:
        """Build the immutable persistence record for ``asset_id``."""
        return Feature(
            id=feature_id or str(uuid.uuid4()),
            asset_id=asset_id,
            feature_type=self.feature_type,
            feature_data=self.feature_data(),
            computation_params=self.computation_params(),
        )

    @classmethod
    def from_record(cls, record: Feature) -> SnrFeature:
        """Rebuild the typed feature from a stored record."""
        if record.feature_type != SNR_FEATURE_TYPE:
            msg = f"Expected feature_type {SNR_FEATURE_TYPE!r}, got {record.feature_type!r}"
            raise ValueError(msg)
        return cls(
            **record.feature_data,
            params=SnrParams(**(record.computation_params or {})),
        )
