from typing import Any, Mapping

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
)

from fedrelay.core.exceptions import InvalidParameterError

from .constants import (
    DEFAULT_DELTA,
    DEFAULT_EPSILON,
    DEFAULT_L2_NORM_CLIP,
    DEFAULT_SAMPLE_RATE,
)


class PrivacyParameters(BaseModel):
    """Gaussian mechanism parameters for one submission.

    Parameters
    ----------
    epsilon : float
        Privacy budget (ε), strictly positive. Smaller is more private.
    delta : float
        Failure probability (δ), in the open interval (0, 1).
    l2_norm_clip : float
        L2 norm threshold applied before noise is added.
    sample_rate : float
        Fraction of local data sampled per round, in (0, 1]. Only used for
        privacy cost estimates.
    """

    epsilon: float = Field(
        default=DEFAULT_EPSILON,
        description="Privacy parameter epsilon (ε)",
        gt=0,
    )
    delta: float = Field(
        default=DEFAULT_DELTA,
        description="Privacy parameter delta (δ)",
        gt=0,
        lt=1,
    )
    l2_norm_clip: float = Field(
        default=DEFAULT_L2_NORM_CLIP,
        description="Maximum L2 norm of a single update",
        gt=0,
        validation_alias=AliasChoices("l2_norm_clip", "l2NormClip"),
    )
    sample_rate: float = Field(
        default=DEFAULT_SAMPLE_RATE,
        description="Training data sampling rate",
        gt=0,
        le=1,
        validation_alias=AliasChoices("sample_rate", "sampleRate"),
    )

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @classmethod
    def parse(cls, data: Mapping[str, Any]) -> "PrivacyParameters":
        """Build parameters, reporting bad values as InvalidParameterError."""
        try:
            return cls.model_validate(dict(data))
        except ValidationError as e:
            raise InvalidParameterError(
                f"Invalid privacy parameters: {e.error_count()} error(s)",
                details={
                    ".".join(str(p) for p in err["loc"]): err["msg"]
                    for err in e.errors()
                },
            ) from e
