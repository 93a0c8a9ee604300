"""Asset and feature persistence.

``AssetStore`` is the seam to whatever database holds asset lineage and
feature history. Two implementations ship here: an in-memory store for tests
and embedding, and a filesystem store that keeps one JSON document per
record.

Records are append-only. Features are never updated in place, so
re-computing a feature adds a new record next to the old ones.
"""

from __future__ import annotations

import contextlib
import json
import os
import re
import tempfile
import threading
from abc import ABC, abstractmethod
from dataclasses import asdict
from typing import Any

from wren._types import Asset, Feature
from wren.exceptions import AssetNotFoundError, InvalidRequestError, StorageError
from wren.logging import get_logger

logger = get_logger("store")

_SAFE_RECORD_ID = re.compile(r"^[a-zA-Z0-9_-]+$")


def _validate_record_id(record_id: str) -> None:
    """Validate ids used as file names to prevent path traversal."""
    if not _SAFE_RECORD_ID.match(record_id):
        raise InvalidRequestError(f"Invalid record id format: {record_id!r}")


class AssetStore(ABC):
    """Abstract interface for asset/feature persistence."""

    @abstractmethod
    def add_asset(self, asset: Asset) -> None:
        """Persist a new asset record.

        Raises:
            StorageError: If an asset with the same id already exists.
            AssetNotFoundError: If ``parent_asset_id`` references an unknown asset.
        """
        ...

    @abstractmethod
    def get_asset(self, asset_id: str) -> Asset:
        """Retrieve an asset by id.

        Raises:
            AssetNotFoundError: If no such asset exists.
        """
        ...

    @abstractmethod
    def list_assets(self, parent_asset_id: str | None = None) -> list[Asset]:
        """List assets ordered by creation time, optionally only children of a parent."""
        ...

    @abstractmethod
    def add_feature(self, feature: Feature) -> None:
        """Persist a new feature record.

        Raises:
            AssetNotFoundError: If ``feature.asset_id`` references an unknown asset.
        """
        ...

    @abstractmethod
    def list_features(self, asset_id: str, feature_type: str | None = None) -> list[Feature]:
        """List an asset's features ordered by computation time."""
        ...


class InMemoryAssetStore(AssetStore):
    """Thread-safe dictionary-backed store."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._assets: dict[str, Asset] = {}
        self._features: dict[str, Feature] = {}

    def add_asset(self, asset: Asset) -> None:
        with self._lock:
            if asset.id in self._assets:
                raise StorageError(f"Asset '{asset.id}' already exists")
            if asset.parent_asset_id is not None and asset.parent_asset_id not in self._assets:
                raise AssetNotFoundError(asset.parent_asset_id)
            self._assets[asset.id] = asset

    def get_asset(self, asset_id: str) -> Asset:
        with self._lock:
            try:
                return self._assets[asset_id]
            except KeyError:
                raise AssetNotFoundError(asset_id) from None

    def list_assets(self, parent_asset_id: str | None = None) -> list[Asset]:
        with self._lock:
            assets = list(self._assets.values())
        if parent_asset_id is not None:
            assets = [a for a in assets if a.parent_asset_id == parent_asset_id]
        return sorted(assets, key=lambda a: a.created_at)

    def add_feature(self, feature: Feature) -> None:
        with self._lock:
            if feature.asset_id not in self._assets:
                raise AssetNotFoundError(feature.asset_id)
            if feature.id in self._features:
                raise StorageError(f"Feature '{feature.id}' already exists")
            self._features[feature.id] = feature

    def list_features(self, asset_id: str, feature_type: str | None = None) -> list[Feature]:
        with self._lock:
            features = [f for f in self._features.values() if f.asset_id == asset_id]
        if feature_type is not None:
            features = [f for f in features if f.feature_type == feature_type]
        return sorted(features, key=lambda f: f.computed_at)


class FileSystemAssetStore(AssetStore):
    """Filesystem-based store.

    Storage layout::

        {base_dir}/assets/{asset_id}.json
        {base_dir}/features/{asset_id}/{feature_id}.json

    Each record is written to a temporary file and hard-linked into place,
    so readers never observe a partially written document and an existing
    record is never overwritten.
    """

    def __init__(self, base_dir: str | os.PathLike[str]) -> None:
        self._base_dir = os.fspath(base_dir)
        self._assets_dir = os.path.join(self._base_dir, "assets")
        self._features_dir = os.path.join(self._base_dir, "features")

    @property
    def base_dir(self) -> str:
        return self._base_dir

    def _asset_path(self, asset_id: str) -> str:
        _validate_record_id(asset_id)
        return os.path.join(self._assets_dir, f"{asset_id}.json")

    @staticmethod
    def _write_json(path: str, payload: dict[str, Any]) -> None:
        try:
            document = json.dumps(payload, indent=2)
        except (TypeError, ValueError) as err:
            raise StorageError(f"Record for {path} is not JSON-serializable: {err}") from err

        directory = os.path.dirname(path)
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=".record-", suffix=".tmp", dir=directory)
        except OSError as err:
            raise StorageError(f"Failed to write {path}: {err}") from err
        try:
            with os.fdopen(fd, "w") as f:
                f.write(document)
            # link() fails if the record already exists.
            os.link(tmp_path, path)
        except FileExistsError:
            raise StorageError(f"Record already exists: {path}") from None
        except OSError as err:
            raise StorageError(f"Failed to write {path}: {err}") from err
        finally:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(tmp_path)

    @staticmethod
    def _read_json(path: str) -> dict[str, Any]:
        try:
            with open(path) as f:
                return json.load(f)  # type: ignore[no-any-return]
        except (OSError, json.JSONDecodeError) as err:
            raise StorageError(f"Failed to read {path}: {err}") from err

    def add_asset(self, asset: Asset) -> None:
        path = self._asset_path(asset.id)
        if asset.parent_asset_id is not None and not os.path.isfile(
            self._asset_path(asset.parent_asset_id)
        ):
            raise AssetNotFoundError(asset.parent_asset_id)
        self._write_json(path, asdict(asset))
        logger.debug("asset_saved", asset_id=asset.id, path=path)

    def get_asset(self, asset_id: str) -> Asset:
        path = self._asset_path(asset_id)
        if not os.path.isfile(path):
            raise AssetNotFoundError(asset_id)
        return Asset(**self._read_json(path))

    def list_assets(self, parent_asset_id: str | None = None) -> list[Asset]:
        if not os.path.isdir(self._assets_dir):
            return []
        assets = [
            Asset(**self._read_json(os.path.join(self._assets_dir, entry)))
            for entry in sorted(os.listdir(self._assets_dir))
            if entry.endswith(".json")
        ]
        if parent_asset_id is not None:
            assets = [a for a in assets if a.parent_asset_id == parent_asset_id]
        return sorted(assets, key=lambda a: a.created_at)

    def add_feature(self, feature: Feature) -> None:
        if not os.path.isfile(self._asset_path(feature.asset_id)):
            raise AssetNotFoundError(feature.asset_id)
        _validate_record_id(feature.id)
        path = os.path.join(self._features_dir, feature.asset_id, f"{feature.id}.json")
        self._write_json(path, asdict(feature))
        logger.debug(
            "feature_saved",
            feature_id=feature.id,
            asset_id=feature.asset_id,
            feature_type=feature.feature_type,
        )

    def list_features(self, asset_id: str, feature_type: str | None = None) -> list[Feature]:
        _validate_record_id(asset_id)
        asset_dir = os.path.join(self._features_dir, asset_id)
        if not os.path.isdir(asset_dir):
            return []
        features = [
            Feature(**self._read_json(os.path.join(asset_dir, entry)))
            for entry in sorted(os.listdir(asset_dir))
            if entry.endswith(".json")
        ]
        if feature_type is not None:
            features = [f for f in features if f.feature_type == feature_type]
        return sorted(features, key=lambda f: f.computed_at)
