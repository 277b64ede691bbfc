import pytest

from fedrelay.core import InvalidParameterError
from fedrelay.storage import (
    GLOBAL_MODEL_FILE,
    global_model_key,
    model_folder_key,
    safe_model_name,
)


@pytest.mark.parametrize(
    "name, expected",
    [
        ("digits", "digits"),
        ("my model", "my-model"),
        ("  spaced\tout  name ", "spaced-out-name"),
        ("weird/name?v=1", "weirdnamev1"),
        ("résumé net", "rsum-net"),
    ],
)
def test_safe_model_name(name, expected):
    assert safe_model_name(name) == expected


@pytest.mark.parametrize("name", ["", "   ", "///", "$$"])
def test_unusable_model_name(name):
    with pytest.raises(InvalidParameterError):
        safe_model_name(name)


def test_keys():
    assert model_folder_key("my model") == "my-model/"
    assert global_model_key("my model") == f"my-model/{GLOBAL_MODEL_FILE}"
    assert GLOBAL_MODEL_FILE == "globalModel.bin"
