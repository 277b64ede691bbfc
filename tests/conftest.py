import numpy as np
import pytest
import torch

from fedrelay.core import encode_weights
from fedrelay.orchestration import CoordinatorConfig, PersistenceCoordinator
from fedrelay.privacy import NoiseCalibrator, SecureGaussianNoiseGenerator
from tests.helpers.entropy import ZERO_NOISE
from tests.helpers.storage import (
    FlakyStorage,
    RecordingBackupStore,
    RecordingHistorySink,
    RecordingSleep,
)


def to_bytes(values: list[float]) -> bytes:
    return np.asarray(values, dtype="<f4").tobytes()


@pytest.fixture
def payload_factory():
    """Build wire payloads from Python floats."""
    return to_bytes


@pytest.fixture
def tensor_payload():
    return lambda values: encode_weights(torch.tensor(values))


@pytest.fixture
def storage() -> FlakyStorage:
    return FlakyStorage()


@pytest.fixture
def history_sink() -> RecordingHistorySink:
    return RecordingHistorySink()


@pytest.fixture
def backup_store() -> RecordingBackupStore:
    return RecordingBackupStore()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def coordinator_config() -> CoordinatorConfig:
    return CoordinatorConfig(learning_rate=0.5, max_retries=3, retry_delay=1.0)


@pytest.fixture
def coordinator(
    storage, coordinator_config, history_sink, backup_store, recording_sleep
) -> PersistenceCoordinator:
    return PersistenceCoordinator(
        storage,
        config=coordinator_config,
        history_sink=history_sink,
        backup_store=backup_store,
        sleep=recording_sleep,
    )


@pytest.fixture
def noiseless_calibrator() -> NoiseCalibrator:
    """Calibrator whose noise draws are all exactly zero."""
    return NoiseCalibrator(SecureGaussianNoiseGenerator(entropy=ZERO_NOISE))
