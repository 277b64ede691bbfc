import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping

from fedrelay.config import Settings
from fedrelay.core import (
    AggregationResult,
    AggregatorProtocol,
    BackupStoreProtocol,
    BaselineMismatchPolicy,
    FedRelayError,
    HistorySinkProtocol,
    InvalidParameterError,
    ModelUpdate,
    RetryExhaustedError,
    StorageError,
    StorageWriteError,
    WeightVector,
    decode_weights,
    encode_weights,
)
from fedrelay.server import (
    AsyncFedAvgAggregator,
    FileBackupStore,
    FileHistorySink,
    new_record,
)
from fedrelay.storage import StorageProtocol, StorageResponse, global_model_key
from fedrelay.utils import (
    KeyedLock,
    Logger,
    get_current_time,
    linear_backoff,
    log_exec,
    retry_async,
)


@dataclass(slots=True, frozen=True)
class CoordinatorConfig:
    """Persistence coordinator configuration.

    Parameters
    ----------
    learning_rate : float
        Weight of the incoming update against the stored baseline, in (0, 1].
    max_retries : int
        Maximum attempts to write the merged model.
    retry_delay : float
        Base delay in seconds; attempt ``n`` is followed by ``n * retry_delay``.
    save_history : bool
        Append an audit record after every successful write.
    backup_enabled : bool
        Keep a local copy of every merged model.
    baseline_mismatch : BaselineMismatchPolicy
        What to do with a stored baseline of a different length.
    """

    learning_rate: float = 0.1
    max_retries: int = 3
    retry_delay: float = 1.0
    save_history: bool = True
    backup_enabled: bool = True
    baseline_mismatch: BaselineMismatchPolicy = BaselineMismatchPolicy.STRICT

    def __post_init__(self) -> None:
        if not 0.0 < self.learning_rate <= 1.0:
            raise InvalidParameterError(
                f"learning_rate must be in (0, 1], got {self.learning_rate}"
            )
        if self.max_retries < 1:
            raise InvalidParameterError(
                f"max_retries must be at least 1, got {self.max_retries}"
            )
        if self.retry_delay < 0:
            raise InvalidParameterError(
                f"retry_delay must be non-negative, got {self.retry_delay}"
            )

    @classmethod
    def from_settings(cls, settings: Settings) -> "CoordinatorConfig":
        return cls(
            learning_rate=settings.learning_rate,
            max_retries=settings.max_retries,
            retry_delay=settings.retry_delay,
            save_history=settings.save_history,
            backup_enabled=settings.backup_enabled,
            baseline_mismatch=settings.baseline_mismatch,
        )

    def snapshot(self, baseline_present: bool) -> dict[str, Any]:
        """Configuration as recorded in audit entries."""
        return {
            "learningRate": self.learning_rate,
            "maxRetries": self.max_retries,
            "saveHistory": self.save_history,
            "backupEnabled": self.backup_enabled,
            "baselineMismatch": self.baseline_mismatch.value,
            "isAsyncUpdate": True,
            "aggregationType": "fedavg",
            "currentGlobalModel": "present" if baseline_present else "absent",
        }


@dataclass(slots=True)
class WriteProgress:
    """Persist attempts made so far for one update."""

    attempts: int = 0

class PersistenceCoordinator:
    """Fetch-merge-write cycle against an external model store.

    Each call re-reads the global model, so no model state is kept between
    calls. Calls for the same model key are serialized by a per-key lock;
    calls for different keys run concurrently.

    Parameters
    ----------
    storage : StorageProtocol
        Store holding the global models.
    config : CoordinatorConfig | None
        Coordinator configuration, defaults to ``CoordinatorConfig()``.
    aggregator : AggregatorProtocol | None
        Merge strategy. Defaults to an AsyncFedAvgAggregator using
        ``config.baseline_mismatch``.
    history_sink : HistorySinkProtocol | None
        Destination for audit records. Nothing is logged without one.
    backup_store : BackupStoreProtocol | None
        Destination for local model backups.

    Examples
    --------
    >>> coordinator = PersistenceCoordinator(InMemoryStorage())
    >>> location = await coordinator.process_update(
    ...     "digits", 1, payload, {"contributor_id": "alice"}
    ... )
    """

    def __init__(
        self,
        storage: StorageProtocol,
        config: CoordinatorConfig | None = None,
        aggregator: AggregatorProtocol | None = None,
        history_sink: HistorySinkProtocol | None = None,
        backup_store: BackupStoreProtocol | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._storage = storage
        self._config = config or CoordinatorConfig()
        self._aggregator = aggregator or AsyncFedAvgAggregator(
            self._config.baseline_mismatch
        )
        self._history_sink = history_sink
        self._backup_store = backup_store
        self._sleep = sleep
        self._locks = KeyedLock()
        self._logger = Logger()

        self._logger.info(
            f"Persistence coordinator ready, learning rate "
            f"{self._config.learning_rate}"
        )

    @property
    def config(self) -> CoordinatorConfig:
        return self._config

    @property
    def storage(self) -> StorageProtocol:
        return self._storage

    async def fetch_baseline(self, model_key: str) -> WeightVector | None:
        """Current global model, or None if there is none to use.

        Never raises: read failures degrade to "no baseline".
        """
        with self._logger.context("coordinator", "fetch"):
            try:
                data = await self._storage.get(model_key)
            except Exception as e:
                self._logger.warning(
                    f"Error downloading global model {model_key}: {str(e)}. "
                    f"Proceeding without a baseline"
                )
                return None

            if data is None:
                self._logger.info(
                    f"No existing global model at {model_key}, creating new model"  # noqa
                )
                return None
            if len(data) == 0:
                self._logger.info(
                    "Current global model exists but is empty, treating as new model"  # noqa
                )
                return None

            try:
                baseline = decode_weights(data)
            except FedRelayError as e:
                self._logger.warning(
                    f"Stored global model is unreadable: {str(e)}. "
                    f"Proceeding without a baseline"
                )
                return None

            self._logger.info(
                f"Downloaded current global model ({len(data)} bytes)"
            )
            return baseline

    def _headers(self, round_number: int, num_updates: int) -> dict[str, str]:
        return {
            "Content-Type": "application/octet-stream",
            "X-Aggregation-Round": str(round_number),
            "X-Aggregation-Type": "fedavg",
            "X-Updates-Count": str(num_updates),
            "X-Async-Update": "true",
            "X-Timestamp": get_current_time().isoformat(),
        }

    async def persist(
        self,
        model_id: str,
        model_key: str,
        round_number: int,
        data: bytes,
        num_updates: int = 1,
        progress: WriteProgress | None = None,
    ) -> str:
        """Write `data` with bounded linear-backoff retries.

        Attempts are counted on `progress` when one is given, so a caller
        that gives up early still knows how far the write got.

        Raises
        ------
        StorageWriteError
            If all ``max_retries`` attempts failed.
        """
        if progress is None:
            progress = WriteProgress()
        headers = self._headers(round_number, num_updates)
        max_retries = self._config.max_retries

        async def attempt_put() -> StorageResponse:
            progress.attempts += 1
            self._logger.info(
                f"Attempt {progress.attempts}/{max_retries} to save global model"  # noqa
            )
            response = await self._storage.put(model_key, data, headers)
            if not response.ok:
                raise StorageError(
                    f"Failed with status {response.status}: {response.reason}",
                    details={"status": response.status},
                )
            return response

        def on_retry(attempt: int, error: Exception, delay: float) -> None:
            self._logger.error(f"Save attempt {attempt} failed: {str(error)}")
            self._logger.info(f"Waiting {delay:.1f}s before retry")

        with self._logger.context("coordinator", "persist"):
            try:
                response = await retry_async(
                    attempt_put,
                    max_attempts=max_retries,
                    delay_fn=linear_backoff(self._config.retry_delay),
                    on_retry=on_retry,
                    sleep=self._sleep,
                )
            except RetryExhaustedError as e:
                self._logger.error(f"All {max_retries} save attempts failed")
                raise StorageWriteError(
                    f"Failed to save global model for {model_id!r} "
                    f"round {round_number} after {e.attempts} attempts: "
                    f"{str(e.last_error)}",
                    details={
                        "model_id": model_id,
                        "round": round_number,
                        "attempts": e.attempts,
                    },
                ) from e

            self._logger.info(
                f"Successfully saved global model to {response.location}"
            )
            return response.location

    async def _fetch_merge_persist(
        self,
        model_id: str,
        model_key: str,
        update: ModelUpdate,
        progress: WriteProgress,
    ) -> tuple[str, AggregationResult]:
        async with self._locks.acquire(model_key):
            baseline = await self.fetch_baseline(model_key)
            result = self._aggregator.aggregate(
                [update], baseline, self._config.learning_rate
            )
            location = await self.persist(
                model_id,
                model_key,
                update.round,
                encode_weights(result.weights),
                result.num_updates,
                progress=progress,
            )
            return location, result

    async def _record_history(
        self, model_id: str, result: AggregationResult
    ) -> None:
        state = result.state()

        if self._config.save_history and self._history_sink is not None:
            record = new_record(
                model_id,
                result.contributor_ids,
                state.round,
                self._config.snapshot(result.used_baseline),
            )
            try:
                await self._history_sink.append(record)
            except Exception as e:
                self._logger.warning(
                    f"Failed to save aggregation history: {str(e)}"
                )

        if self._config.backup_enabled and self._backup_store is not None:
            try:
                await self._backup_store.save_backup(
                    model_id, state.round, encode_weights(state.weights)
                )
            except Exception as e:
                self._logger.warning(f"Unable to save model backup: {str(e)}")

    @log_exec
    async def process_update(
        self,
        model_id: str,
        round_number: int,
        raw_update: bytes,
        metadata: Mapping[str, str],
        timeout: float | None = None,
    ) -> str:
        """Merge one raw update into the global model and store the result.

        Parameters
        ----------
        model_id : str
            Model name; mapped to a storage key.
        round_number : int
            Contributor's training round, at least 1.
        raw_update : bytes
            Little-endian float32 weight payload.
        metadata : Mapping[str, str]
            Submission metadata; ``contributor_id`` names the contributor.
        timeout : float | None
            Deadline in seconds covering the wait for the model's lock as
            well as fetch, merge and persist. On expiry the stored model is
            left as it was and StorageWriteError is raised.

        Returns
        -------
        str
            Location of the newly written global model.
        """
        if round_number < 1:
            raise InvalidParameterError(
                f"round must be a positive integer, got {round_number}"
            )
        model_key = global_model_key(model_id)
        contributor_id = metadata.get("contributor_id", "anonymous")

        with self._logger.context("coordinator", model_id):
            self._logger.info(
                f"Processing update from {contributor_id} for {model_id}, "
                f"round {round_number}"
            )
            update = ModelUpdate(
                contributor_id=contributor_id,
                weights=decode_weights(raw_update),
                round=round_number,
                submitted_at=get_current_time(),
            )

            progress = WriteProgress()
            try:
                location, result = await asyncio.wait_for(
                    self._fetch_merge_persist(
                        model_id, model_key, update, progress
                    ),
                    timeout,
                )
            except asyncio.TimeoutError as e:
                self._logger.error(
                    f"Update for {model_id} round {round_number} timed out "
                    f"after {timeout}s ({progress.attempts} save attempts)"
                )
                raise StorageWriteError(
                    f"Timed out after {timeout}s saving global model "
                    f"for {model_id!r} round {round_number}",
                    details={
                        "model_id": model_id,
                        "round": round_number,
                        "attempts": progress.attempts,
                        "timed_out": True,
                    },
                ) from e

            await self._record_history(model_id, result)
            return location


def build_coordinator(
    storage: StorageProtocol, settings: Settings
) -> PersistenceCoordinator:
    """Coordinator with file-based history and backups from `settings`."""
    Logger().configure(
        level=settings.log_level,
        json_output=settings.log_json,
        log_file=settings.log_file,
    )
    return PersistenceCoordinator(
        storage,
        config=CoordinatorConfig.from_settings(settings),
        history_sink=FileHistorySink(settings.history_dir),
        backup_store=FileBackupStore(
            settings.history_dir, max_backups=settings.max_backups
        ),
    )
