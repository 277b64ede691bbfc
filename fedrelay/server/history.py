import json
import re
import secrets
from pathlib import Path
from typing import Any, Sequence

import aiofiles

from fedrelay.core.exceptions import HistoryLogError
from fedrelay.core.types import AggregationRecord
from fedrelay.utils import Logger, file_timestamp, get_current_time

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9._-]")


def _safe_dir_name(model_name: str) -> str:
    return _UNSAFE_CHARS.sub("_", model_name) or "_"


def new_record(
    model_name: str,
    contributor_ids: Sequence[str],
    round_number: int,
    config: dict[str, Any],
) -> AggregationRecord:
    """Build an audit record with a fresh random id."""
    return AggregationRecord(
        timestamp=get_current_time(),
        id=secrets.token_hex(4),
        model_name=model_name,
        num_updates=len(contributor_ids),
        contributor_ids=list(contributor_ids),
        round=round_number,
        config=config,
    )


class FileHistorySink:
    """Writes one JSON file per aggregation under ``base_dir/<model>/``."""

    def __init__(self, base_dir: Path) -> None:
        self._base_dir = base_dir
        self._logger = Logger()

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    def _model_dir(self, model_name: str) -> Path:
        return self._base_dir / _safe_dir_name(model_name)

    async def append(self, record: AggregationRecord) -> None:
        model_dir = self._model_dir(record.model_name)
        filename = f"{file_timestamp(record.timestamp)}_{record.id}.json"
        path = model_dir / filename

        try:
            model_dir.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, "w") as f:
                await f.write(json.dumps(record.to_dict(), indent=2))
        except OSError as e:
            raise HistoryLogError(
                f"Failed to save aggregation history: {str(e)}",
                details={"path": str(path)},
            ) from e

        self._logger.info(f"Saved aggregation history to {path}")

    def list_records(self, model_name: str) -> list[AggregationRecord]:
        """Records for `model_name`, oldest first."""
        model_dir = self._model_dir(model_name)
        if not model_dir.exists():
            return []

        records = []
        for path in sorted(model_dir.glob("*.json")):
            with open(path) as f:
                records.append(AggregationRecord.from_dict(json.load(f)))
        return sorted(records, key=lambda r: r.timestamp)


class FileBackupStore:
    """Keeps local copies of merged models under ``base_dir/<model>/models``.

    Parameters
    ----------
    base_dir : Path
        History root directory.
    max_backups : int
        Backups kept per model; older files are pruned after each write.
        0 keeps everything.
    """

    def __init__(self, base_dir: Path, max_backups: int = 10) -> None:
        self._base_dir = base_dir
        self._max_backups = max_backups
        self._logger = Logger()

    def _backup_dir(self, model_name: str) -> Path:
        return self._base_dir / _safe_dir_name(model_name) / "models"

    def list_backups(self, model_name: str) -> list[Path]:
        """Backup files for `model_name`, oldest first."""
        backup_dir = self._backup_dir(model_name)
        if not backup_dir.exists():
            return []
        return sorted(
            backup_dir.glob("global_model_r*.bin"),
            key=lambda p: (p.stat().st_mtime_ns, p.name),
        )

    async def save_backup(
        self, model_name: str, round_number: int, data: bytes
    ) -> None:
        backup_dir = self._backup_dir(model_name)
        path = backup_dir / (
            f"global_model_r{round_number}_{file_timestamp()}.bin"
        )

        try:
            backup_dir.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, "wb") as f:
                await f.write(data)
            self._prune(model_name)
        except OSError as e:
            raise HistoryLogError(
                f"Unable to save model backup: {str(e)}",
                details={"path": str(path)},
            ) from e

        self._logger.info(f"Saved backup of model to {path}")

    def _prune(self, model_name: str) -> None:
        if self._max_backups <= 0:
            return
        backups = self.list_backups(model_name)
        for stale in backups[: max(len(backups) - self._max_backups, 0)]:
            stale.unlink(missing_ok=True)
            self._logger.debug(f"Pruned old backup {stale}")
