"""Shared loading behaviour for the reference data providers."""

import json
import logging
from pathlib import Path
from typing import Callable, Generic, TypeVar

from ..config import config
from ..exceptions import DataLoadError

logger = logging.getLogger(__name__)

T = TypeVar("T")

Loader = Callable[[], list[dict]]


def json_file_loader(path: Path, collection_keys: tuple[str, ...]) -> Loader:
    """Build a loader reading one or more top-level lists from a JSON file.

    Args:
        path: JSON file in the dataset directory.
        collection_keys: Top-level keys whose lists are concatenated in order.
            Missing keys are skipped.
    """
    def load() -> list[dict]:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        records: list[dict] = []
        for key in collection_keys:
            records.extend(data.get(key) or [])
        return records

    return load


class ReferenceProvider(Generic[T]):
    """Read-only record collection loaded lazily from a loader callable.

    Subclasses set ``kind``, ``data_file``, ``collection_keys`` and implement
    ``_build`` to turn a raw dict into a model instance.
    """

    kind = "record"
    data_file = ""
    collection_keys: tuple[str, ...] = ()

    def __init__(self, loader: Loader | None = None, data_dir: Path | None = None):
        if loader is None:
            path = Path(data_dir or config.DATA_DIR) / self.data_file
            loader = json_file_loader(path, self.collection_keys)
        self._loader = loader
        self._records: list[T] = []
        self._loaded = False

    def _build(self, data: dict) -> T:
        raise NotImplementedError

    def load(self, force: bool = False) -> list[T]:
        """Load the collection, reusing the in-memory copy unless forced.

        Raises:
            DataLoadError: The loader failed or returned malformed records.
        """
        if self._loaded and not force:
            return self._records

        try:
            raw = self._loader()
            records = [self._build(item) for item in raw]
        except DataLoadError:
            raise
        except Exception as e:
            raise DataLoadError(f"Failed to load {self.kind} database: {e}") from e

        self._records = records
        self._loaded = True
        logger.info(f"Loaded {len(records)} {self.kind} records")
        return self._records

    @property
    def records(self) -> list[T]:
        """Current collection; empty while the data cannot be loaded.

        Load failures are logged here and left to the sync orchestrator,
        which retries them and records the error.
        """
        if not self._loaded:
            try:
                self.load()
            except DataLoadError as e:
                logger.warning(f"{self.kind.capitalize()} data unavailable: {e}")
        return self._records

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def replace(self, records: list[T]) -> None:
        """Install an already-built collection (used when restoring a cache)."""
        self._records = list(records)
        self._loaded = True

    def restore(self, raw: list[dict]) -> None:
        """Rebuild the collection from serialized records.

        Raises:
            DataLoadError: A serialized record could not be rebuilt.
        """
        try:
            records = [self._build(item) for item in raw]
        except Exception as e:
            raise DataLoadError(f"Failed to restore {self.kind} records: {e}") from e
        self.replace(records)

    def clear(self) -> None:
        self._records = []
        self._loaded = False
