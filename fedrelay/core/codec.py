"""Wire codec for weight payloads.

Payloads are flat arrays of little-endian IEEE-754 float32 values with no
header and no length prefix.
"""

from typing import Final

import numpy as np
import torch

from .exceptions import InvalidParameterError, ShapeMismatchError
from .types import WeightVector

BYTES_PER_WEIGHT: Final[int] = 4
WIRE_DTYPE: Final[np.dtype] = np.dtype("<f4")


def validate_payload(data: bytes) -> int:
    """Check payload framing and return the number of weights it holds."""
    if not data:
        raise InvalidParameterError("Weight payload is empty")
    if len(data) % BYTES_PER_WEIGHT != 0:
        raise InvalidParameterError(
            f"Weight payload length {len(data)} is not a multiple of "
            f"{BYTES_PER_WEIGHT}",
            details={"num_bytes": len(data)},
        )
    return len(data) // BYTES_PER_WEIGHT


def decode_weights(data: bytes) -> WeightVector:
    """Decode a wire payload into a 1-D float32 tensor."""
    validate_payload(data)
    array = np.frombuffer(data, dtype=WIRE_DTYPE).astype(np.float32)
    return torch.from_numpy(array)


def encode_weights(weights: WeightVector) -> bytes:
    """Encode a 1-D tensor into its wire payload."""
    if weights.dim() != 1:
        raise ShapeMismatchError(
            f"Expected a 1-D weight vector, got shape {tuple(weights.shape)}"
        )
    if weights.numel() == 0:
        raise InvalidParameterError("Cannot encode an empty weight vector")
    array = weights.detach().cpu().to(torch.float32).numpy()
    return array.astype(WIRE_DTYPE, copy=False).tobytes()
