"""
Curve selection by tag.

Pools are configured with a curve tag ("LINEAR", "EXPONENTIAL"). Curves are
stateless, so one shared instance per tag is enough. Unknown tags fail closed.
"""

from __future__ import annotations

from typing import Dict, Optional

from .curve import Curve
from .exponential_curve import ExponentialCurve
from .linear_curve import LinearCurve

CURVE_TAG_LINEAR = LinearCurve.tag
CURVE_TAG_EXPONENTIAL = ExponentialCurve.tag

_CURVES: Dict[str, Curve] = {
    CURVE_TAG_LINEAR: LinearCurve(),
    CURVE_TAG_EXPONENTIAL: ExponentialCurve(),
}


def normalize_curve_tag(curve_tag: Optional[object]) -> str:
    """Canonicalize a curve tag to upper-case; LINEAR when omitted."""
    tag_raw = CURVE_TAG_LINEAR if curve_tag is None else curve_tag
    if not isinstance(tag_raw, str) or not tag_raw.strip():
        raise ValueError("curve_tag must be a non-empty string")
    tag = tag_raw.strip().upper()
    if tag not in _CURVES:
        raise ValueError(f"unsupported curve_tag: {tag!r}")
    return tag


def curve_for_tag(curve_tag: Optional[object]) -> Curve:
    return _CURVES[normalize_curve_tag(curve_tag)]


def supported_curve_tags() -> tuple[str, ...]:
    return tuple(sorted(_CURVES))
