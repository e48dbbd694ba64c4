"""
Progress reporting for long gene set runs.

Progress is advisory only. The driver calls ``advance(units_done,
units_total)`` with cumulative predicted work, where a set of size m
costs m**2 units (correlation estimation and ranking both scale
quadratically with set size).

``progressbar=True`` draws a tqdm bar on stderr. ``LoggingProgress`` is
available for batch jobs where a bar would clutter log files.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from tqdm import tqdm

logger = logging.getLogger(__name__)


@runtime_checkable
class ProgressCallback(Protocol):
    """Observer receiving cumulative work updates.

    One observer may be reused across several runs (``zenith_gsa`` passes
    it to every coefficient). Each run ends with ``units_done ==
    units_total`` and the next run starts counting from zero.
    """

    def advance(self, units_done: float, units_total: float) -> None:
        ...


class NullProgress:
    """Discards all updates."""

    def advance(self, units_done: float, units_total: float) -> None:
        return None


class TqdmProgress:
    """tqdm progress bar over predicted work units.

    A bar is created on the first update of each run, once the total is
    known, and closed when that run is complete.
    """

    def __init__(self, label: str = "zenith") -> None:
        self.label = label
        self._bar: tqdm | None = None

    def advance(self, units_done: float, units_total: float) -> None:
        if self._bar is None:
            self._bar = tqdm(total=units_total, desc=self.label, unit="work", leave=False)
        self._bar.update(units_done - self._bar.n)
        if units_done >= units_total:
            self._bar.close()
            self._bar = None


class LoggingProgress:
    """Logs percentage complete at INFO level.

    Args:
        label: Prefix for each message, e.g. the coefficient being tested.
        logger_: Logger to write to; defaults to this module's logger.
    """

    def __init__(self, label: str = "zenith", logger_: logging.Logger | None = None) -> None:
        self.label = label
        self._logger = logger_ or logger
        self._last_pct = -1

    def advance(self, units_done: float, units_total: float) -> None:
        pct = 100 if units_total <= 0 else int(100 * units_done / units_total)
        if pct == self._last_pct:
            return
        self._last_pct = pct
        self._logger.info("%s: %d%% of predicted work complete", self.label, pct)
        if pct >= 100:
            self._last_pct = -1


def make_progress(
    progressbar: bool | ProgressCallback,
    label: str = "zenith",
) -> ProgressCallback:
    """Resolve a ``progressbar`` argument to a callback.

    ``True`` gives a TqdmProgress, ``False`` a NullProgress, and any
    object with an ``advance`` method is used as-is.
    """
    if isinstance(progressbar, bool):
        return TqdmProgress(label) if progressbar else NullProgress()
    if isinstance(progressbar, ProgressCallback):
        return progressbar
    raise TypeError(
        f"progressbar must be a bool or provide advance(), got {type(progressbar).__name__}"
    )


__all__ = [
    "ProgressCallback",
    "NullProgress",
    "TqdmProgress",
    "LoggingProgress",
    "make_progress",
]
