from typing import Callable, Literal, TypeAlias

import torch

PrivacyBudget: TypeAlias = dict[Literal["epsilon", "delta"], float]
Shape: TypeAlias = tuple[int, ...]
Tensor: TypeAlias = torch.Tensor
EntropySource: TypeAlias = Callable[[int], bytes]
