"""Descriptive statistics for duration comparisons.

These describe the observed set of projects rather than estimate a wider
population, so the standard deviation divides by ``n``.
"""

import math
import statistics
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Sequence


@dataclass(frozen=True)
class StatisticsSummary:
    """Summary of a list of durations. All zero when ``count == 0``."""
    mean: float = 0.0
    median: float = 0.0
    range: float = 0.0
    standard_deviation: float = 0.0
    skewness: float = 0.0
    min: float = 0.0
    max: float = 0.0
    count: int = 0

    @property
    def is_empty(self) -> bool:
        return self.count == 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            'mean': self.mean,
            'median': self.median,
            'range': self.range,
            'standard_deviation': self.standard_deviation,
            'skewness': self.skewness,
            'min': self.min,
            'max': self.max,
            'count': self.count,
        }


def _as_list(values: Iterable[float]) -> List[float]:
    if values is None:
        raise TypeError("values must be an iterable of numbers, not None")
    return list(values)


def calculate_mean(values: Sequence[float]) -> float:
    values = _as_list(values)
    if not values:
        return 0.0
    return statistics.fmean(values)


def calculate_median(values: Sequence[float]) -> float:
    values = _as_list(values)
    if not values:
        return 0.0
    return statistics.median(values)


def calculate_range(values: Sequence[float]) -> float:
    values = _as_list(values)
    if len(values) <= 1:
        return 0.0
    return max(values) - min(values)


def calculate_standard_deviation(values: Sequence[float]) -> float:
    """Population standard deviation."""
    values = _as_list(values)
    if not values:
        return 0.0
    return statistics.pstdev(values)


def calculate_skewness(values: Sequence[float]) -> float:
    """Adjusted Fisher-Pearson standardized third moment.

    Defined as 0 for fewer than three values or when every value is equal.
    """
    values = _as_list(values)
    n = len(values)
    if n < 3:
        return 0.0

    mean = calculate_mean(values)
    std_dev = calculate_standard_deviation(values)
    if std_dev == 0 or math.isclose(std_dev, 0.0, abs_tol=1e-12):
        return 0.0

    skew_sum = sum(((value - mean) / std_dev) ** 3 for value in values)
    return (n / ((n - 1) * (n - 2))) * skew_sum


def summarize(values: Iterable[float]) -> StatisticsSummary:
    """Compute every descriptive measure for ``values``."""
    values = _as_list(values)
    if not values:
        return StatisticsSummary()

    return StatisticsSummary(
        mean=calculate_mean(values),
        median=calculate_median(values),
        range=calculate_range(values),
        standard_deviation=calculate_standard_deviation(values),
        skewness=calculate_skewness(values),
        min=min(values),
        max=max(values),
        count=len(values),
    )
