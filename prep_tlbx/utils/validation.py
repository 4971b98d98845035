"""Parameter checks shared by the analyzers and the pipeline config."""

import math
from numbers import Integral, Real

from prep_tlbx.errors import InvalidParameter


def check_flag(name: str, value: object) -> bool:
    """Require a real ``bool`` (``0``/``1`` and strings are rejected)."""
    if not isinstance(value, bool):
        raise InvalidParameter(name, value, "must be a bool")
    return value


def check_k(k: object) -> int:
    """Neighbor count: an integer ``>= 1``."""
    if isinstance(k, bool) or not isinstance(k, Integral) or k < 1:
        raise InvalidParameter("k", k, "must be an integer >= 1")
    return int(k)


def check_freq_cut(freq_cut: object) -> float:
    if isinstance(freq_cut, bool) or not isinstance(freq_cut, Real) or not math.isfinite(freq_cut) or freq_cut < 1:
        raise InvalidParameter("freq_cut", freq_cut, "must be a finite number >= 1")
    return float(freq_cut)


def check_unique_cut(unique_cut: object) -> float:
    if isinstance(unique_cut, bool) or not isinstance(unique_cut, Real) or not 0 < unique_cut <= 100:
        raise InvalidParameter("unique_cut", unique_cut, "must be a percentage in (0, 100]")
    return float(unique_cut)


__all__ = ["check_flag", "check_freq_cut", "check_k", "check_unique_cut"]
