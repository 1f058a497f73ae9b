from __future__ import annotations

import pytest

from collectionpool.core.curve_dispatch import (
    CURVE_TAG_EXPONENTIAL,
    CURVE_TAG_LINEAR,
    curve_for_tag,
    normalize_curve_tag,
    supported_curve_tags,
)
from collectionpool.core.exponential_curve import ExponentialCurve
from collectionpool.core.linear_curve import LinearCurve


def test_default_tag_is_linear() -> None:
    assert normalize_curve_tag(None) == CURVE_TAG_LINEAR
    assert isinstance(curve_for_tag(None), LinearCurve)


def test_tags_are_case_insensitive() -> None:
    assert isinstance(curve_for_tag(" exponential "), ExponentialCurve)
    assert curve_for_tag("linear") is curve_for_tag("LINEAR")


def test_unknown_tag_fails_closed() -> None:
    with pytest.raises(ValueError):
        curve_for_tag("SIGMOID")
    with pytest.raises(ValueError):
        normalize_curve_tag("")
    with pytest.raises(ValueError):
        normalize_curve_tag(3)


def test_supported_tags() -> None:
    assert supported_curve_tags() == (CURVE_TAG_EXPONENTIAL, CURVE_TAG_LINEAR)
