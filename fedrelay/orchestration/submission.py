from dataclasses import dataclass

from fedrelay.core import (
    InvalidParameterError,
    UpdateSubmitterProtocol,
    decode_weights,
    encode_weights,
    validate_payload,
)
from fedrelay.privacy import (
    HeuristicAccountant,
    NoiseCalibrator,
    PrivacyBudgetExceededError,
    PrivacyParameters,
    PrivacySpent,
    estimate_privacy_cost,
)
from fedrelay.utils import Logger


@dataclass(slots=True, frozen=True)
class SubmissionResult:
    """Outcome of one submitted update."""

    location: str
    privacy_applied: bool
    privacy_spent: PrivacySpent | None = None


def _validate_submission(
    model_id: str, round_number: int, contributor_id: str, weight_bytes: bytes
) -> None:
    if not model_id or not model_id.strip():
        raise InvalidParameterError("model_id is required")
    if isinstance(round_number, bool) or not isinstance(round_number, int):
        raise InvalidParameterError(
            f"round must be an integer, got {type(round_number).__name__}"
        )
    if round_number < 1:
        raise InvalidParameterError(
            f"round must be a positive integer, got {round_number}"
        )
    if not contributor_id or not contributor_id.strip():
        raise InvalidParameterError("contributor_id is required")
    validate_payload(weight_bytes)


def _privatize(
    calibrator: NoiseCalibrator, weight_bytes: bytes, params: PrivacyParameters
) -> bytes:
    weights = decode_weights(weight_bytes)
    return encode_weights(calibrator.apply_privacy(weights, params))


async def submit_update(
    coordinator: UpdateSubmitterProtocol,
    model_id: str,
    round_number: int,
    contributor_id: str,
    weight_bytes: bytes,
    privacy_params: PrivacyParameters | None = None,
    calibrator: NoiseCalibrator | None = None,
    timeout: float | None = None,
) -> SubmissionResult:
    """Validate, optionally privatize and hand an update to the coordinator.

    When `privacy_params` is given the weights are clipped and noised before
    they leave this function, and the returned ``privacy_spent`` holds the
    heuristic cost of `round_number` such releases (guidance only).

    Raises
    ------
    InvalidParameterError
        For malformed identifiers, rounds, payloads or privacy parameters.
    StorageWriteError
        If the merged model could not be stored.
    """
    _validate_submission(model_id, round_number, contributor_id, weight_bytes)

    payload = weight_bytes
    spent = None
    if privacy_params is not None:
        payload = _privatize(
            calibrator or NoiseCalibrator(), weight_bytes, privacy_params
        )
        spent = estimate_privacy_cost(
            privacy_params.epsilon,
            privacy_params.delta,
            round_number,
            privacy_params.sample_rate,
        )

    metadata = {
        "contributor_id": contributor_id,
        "model_id": model_id,
        "round": str(round_number),
        "privacy_applied": str(privacy_params is not None).lower(),
    }
    location = await coordinator.process_update(
        model_id, round_number, payload, metadata, timeout=timeout
    )

    return SubmissionResult(
        location=location,
        privacy_applied=privacy_params is not None,
        privacy_spent=spent,
    )


class SubmissionService:
    """Contributor-side submission with running privacy accounting.

    Parameters
    ----------
    coordinator : UpdateSubmitterProtocol
        Where updates are sent.
    calibrator : NoiseCalibrator | None
        Noise calibrator for private submissions.
    epsilon_budget : float | None
        Refuse private submissions whose cumulative heuristic epsilon for a
        model would exceed this value.
    """

    def __init__(
        self,
        coordinator: UpdateSubmitterProtocol,
        calibrator: NoiseCalibrator | None = None,
        epsilon_budget: float | None = None,
    ) -> None:
        if epsilon_budget is not None and epsilon_budget <= 0:
            raise InvalidParameterError(
                f"epsilon_budget must be positive, got {epsilon_budget}"
            )
        self._coordinator = coordinator
        self._calibrator = calibrator or NoiseCalibrator()
        self._epsilon_budget = epsilon_budget
        self._accountants: dict[str, HeuristicAccountant] = {}
        self._logger = Logger()

    def privacy_spent(self, model_id: str) -> PrivacySpent:
        accountant = self._accountants.get(model_id)
        if accountant is None:
            return PrivacySpent(0.0, 0.0)
        return accountant.get_privacy_spent()

    async def submit(
        self,
        model_id: str,
        round_number: int,
        contributor_id: str,
        weight_bytes: bytes,
        privacy_params: PrivacyParameters | None = None,
        timeout: float | None = None,
    ) -> SubmissionResult:
        with self._logger.context("submission", model_id):
            accountant = self._accountants.setdefault(
                model_id, HeuristicAccountant()
            )

            if privacy_params is not None and self._epsilon_budget is not None:
                projected = accountant.preview(
                    privacy_params.epsilon,
                    privacy_params.delta,
                    privacy_params.sample_rate,
                )
                if not projected.validate(self._epsilon_budget):
                    raise PrivacyBudgetExceededError(
                        f"Submission would spend epsilon "
                        f"{projected.epsilon_spent:.3f}, budget is "
                        f"{self._epsilon_budget}",
                        details={
                            "model_id": model_id,
                            "epsilon_spent": projected.epsilon_spent,
                            "epsilon_budget": self._epsilon_budget,
                        },
                    )

            result = await submit_update(
                self._coordinator,
                model_id,
                round_number,
                contributor_id,
                weight_bytes,
                privacy_params=privacy_params,
                calibrator=self._calibrator,
                timeout=timeout,
            )

            if privacy_params is None:
                return result

            accountant.add_noise_event(
                privacy_params.epsilon,
                privacy_params.delta,
                privacy_params.sample_rate,
            )
            spent = accountant.get_privacy_spent()
            self._logger.info(
                f"Cumulative privacy spent for {model_id}: "
                f"epsilon={spent.epsilon_spent:.3f}, delta={spent.delta_spent}"
            )
            return SubmissionResult(
                location=result.location,
                privacy_applied=True,
                privacy_spent=spent,
            )
