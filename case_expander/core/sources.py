"""Value source constructors.

Sources are registered explicitly by reference. There is no lookup of
value-producing members by name, so a typo fails at import time rather
than at expansion time.
"""
from __future__ import annotations

import math
import random
from enum import Enum
from typing import Any, Callable, Iterable, Optional, Sequence

from case_expander.core.errors import ConfigurationError
from case_expander.core.model import ParameterSlot, ParameterSource

_FLOAT_SLACK = 1e-9


def values(*items: Any, label: Optional[str] = None) -> ParameterSource:
    return ParameterSource(values=tuple(items), label=label)


def value_range(
    start: int | float,
    stop: int | float,
    step: int | float = 1,
    *,
    label: Optional[str] = None,
) -> ParameterSource:
    """Inclusive arithmetic range: value_range(1, 3) -> (1, 2, 3).

    Float ranges are built by multiplication to avoid accumulating error,
    and include `stop` when it is reached within rounding error.
    """
    if step == 0:
        raise ConfigurationError(code="E_INVALID_RANGE", message="range step must be non-zero")
    if (stop - start) * step < 0:
        raise ConfigurationError(
            code="E_INVALID_RANGE",
            message=f"range step {step} does not move from {start} towards {stop}",
        )

    if all(isinstance(x, int) for x in (start, stop, step)):
        count = (stop - start) // step + 1
    else:
        # tolerate rounding so 0.3 is reached from 0 in steps of 0.1
        count = math.floor((stop - start) / step + _FLOAT_SLACK) + 1
    out = tuple(start + i * step for i in range(count))
    return ParameterSource(values=out, label=label or f"range({start}, {stop}, {step})")


def random_values(
    count: int,
    low: int | float,
    high: int | float,
    *,
    seed: int = 0,
    label: Optional[str] = None,
) -> ParameterSource:
    """Reproducible pseudo-random values in [low, high].

    Ints when both bounds are ints, floats otherwise. The seed is fixed so
    that re-expanding the same declaration yields the same cases.
    """
    if count < 1:
        raise ConfigurationError(code="E_INVALID_RANGE", message="random count must be >= 1")
    if high < low:
        raise ConfigurationError(
            code="E_INVALID_RANGE",
            message=f"random bounds are inverted: min={low} max={high}",
        )

    rng = random.Random(seed)
    if isinstance(low, int) and isinstance(high, int):
        out: list[int | float] = [rng.randint(low, high) for _ in range(count)]
    else:
        out = [rng.uniform(low, high) for _ in range(count)]
    return ParameterSource(values=tuple(out), label=label or f"random({count}, {low}, {high})")


def enum_values(enum_cls: type[Enum], *, label: Optional[str] = None) -> ParameterSource:
    return ParameterSource(values=tuple(enum_cls), label=label or enum_cls.__name__)


def bool_values(*, label: Optional[str] = None) -> ParameterSource:
    return ParameterSource(values=(False, True), label=label or "bool")


def from_callable(fn: Callable[[], Iterable[Any]], *, label: Optional[str] = None) -> ParameterSource:
    """Call fn once and freeze what it yields.

    Works for module-level functions, closures and bound methods alike.
    """
    produced = fn()
    return ParameterSource(
        values=tuple(produced),
        label=label or getattr(fn, "__qualname__", None) or repr(fn),
    )


def slot(index: int, *sources: ParameterSource | Sequence[Any], name: Optional[str] = None) -> ParameterSlot:
    """Build a slot; plain sequences are wrapped as literal sources."""
    return ParameterSlot(index=index, sources=tuple(_as_source(s) for s in sources), name=name)


def slots_from(*value_lists: Sequence[Any]) -> list[ParameterSlot]:
    """One single-source slot per list, indexed left to right."""
    return [slot(i, vals) for i, vals in enumerate(value_lists)]


def _as_source(src: ParameterSource | Sequence[Any]) -> ParameterSource:
    if isinstance(src, ParameterSource):
        return src
    if isinstance(src, (str, bytes)):
        raise TypeError("a bare string is not a value sequence; wrap it in a list or use values()")
    return ParameterSource(values=tuple(src))
