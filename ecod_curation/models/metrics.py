#!/usr/bin/env python3
"""
Nullable cluster metrics

A metric read from the database is either a known fraction in [0, 1] or
unknown. The two cases are separate types so a missing value can never be
mistaken for zero.
"""
import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional, Union

from ecod_curation.exceptions import ValidationError

OUT_OF_RANGE_POLICIES = ('reject', 'clamp')


@dataclass(frozen=True)
class Known:
    """A metric with an observed value in [0, 1]"""
    value: float

    is_known = True

    def __post_init__(self):
        if not isinstance(self.value, float):
            if isinstance(self.value, bool) or not isinstance(self.value, (int, Decimal)):
                raise ValidationError(f"Metric value must be a number, got {self.value!r}",
                                      {"value": self.value})
            object.__setattr__(self, 'value', float(self.value))
        if math.isnan(self.value) or not 0.0 <= self.value <= 1.0:
            raise ValidationError(f"Metric value must be within [0, 1], got {self.value}")

    def value_or(self, default: Any) -> float:
        return self.value

    def __str__(self) -> str:
        return f"{self.value:.2f}"


@dataclass(frozen=True)
class Unknown:
    """A metric that was not measured"""

    is_known = False

    def value_or(self, default: Any) -> Any:
        return default

    def __str__(self) -> str:
        return "unknown"


UNKNOWN = Unknown()

Metric = Union[Known, Unknown]


def metric_from_value(value: Optional[Any], name: str = "metric",
                      out_of_range: str = "reject") -> Metric:
    """Convert a raw nullable number into a Metric

    Args:
        value: Raw value (None, int, float or Decimal)
        name: Metric name used in error messages
        out_of_range: 'reject' raises for values outside [0, 1],
            'clamp' pulls them back into range

    Returns:
        Known or UNKNOWN

    Raises:
        ValidationError: For non-numeric, NaN or (when rejecting)
            out-of-range values
    """
    if out_of_range not in OUT_OF_RANGE_POLICIES:
        raise ValidationError(f"Unknown out-of-range policy: {out_of_range}",
                              {"allowed": list(OUT_OF_RANGE_POLICIES)})

    if value is None or isinstance(value, Unknown):
        return UNKNOWN
    if isinstance(value, Known):
        return value

    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise ValidationError(f"{name} must be a number, got {type(value).__name__}",
                              {"metric": name, "value": value})

    number = float(value)
    if math.isnan(number):
        raise ValidationError(f"{name} is NaN", {"metric": name})

    if not 0.0 <= number <= 1.0:
        if out_of_range == 'reject':
            raise ValidationError(f"{name} out of range [0, 1]: {number}",
                                  {"metric": name, "value": number})
        number = min(1.0, max(0.0, number))

    return Known(number)


def metric_to_value(metric: Metric) -> Optional[float]:
    """Convert a Metric back to a nullable float for serialization"""
    return metric.value if isinstance(metric, Known) else None
