"""
Matching parameters for PatchMatch stereo.

This module defines the validated parameter block consumed by every stage
of the matching engine. Validation happens once, eagerly, so the engine
itself never has to re-check its inputs.
"""

import math
from dataclasses import dataclass, asdict, fields
from typing import Dict, Any, Mapping, Optional

from utils.exceptions import ConfigurationError


REQUIRED_FIELDS = ('alpha', 'gamma', 'tau_c', 'tau_g', 'winsize', 'max_disparity', 'niters')


@dataclass(frozen=True)
class PatchMatchParameters:
    """
    Parameter block for the PatchMatch stereo engine.

    ``alpha`` weights the gradient term of the matching cost and
    ``1 - alpha`` the colour term.
    """

    # Required
    alpha: float
    gamma: float
    tau_c: float
    tau_g: float
    winsize: int
    max_disparity: int
    niters: int

    # Optional
    max_slant: float = 0.5
    min_refine_range: float = 0.1
    consistency_threshold: float = 1.0
    median_filter_invalid_only: bool = False
    seed: Optional[int] = None

    def __post_init__(self):
        self._validate()

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> 'PatchMatchParameters':
        """
        Build parameters from a configuration mapping.

        Unknown keys are ignored so a full toolkit configuration can be
        passed directly.

        Raises:
            ConfigurationError: If a required field is missing or invalid
        """
        for name in REQUIRED_FIELDS:
            if name not in mapping or mapping[name] is None:
                raise ConfigurationError(name)

        known = {f.name for f in fields(cls)}
        values = {key: value for key, value in mapping.items() if key in known}
        values['median_filter_invalid_only'] = _as_bool(
            values.get('median_filter_invalid_only', False)
        )
        return cls(**values)

    def _validate(self) -> None:
        _check_real('alpha', self.alpha, low=0.0, high=1.0)
        _check_real('gamma', self.gamma, low=0.0, strict_low=True)
        _check_real('tau_c', self.tau_c, low=0.0)
        _check_real('tau_g', self.tau_g, low=0.0)
        _check_positive_int('winsize', self.winsize)
        _check_positive_int('max_disparity', self.max_disparity)
        _check_positive_int('niters', self.niters)
        _check_real('max_slant', self.max_slant, low=0.0)
        _check_real('min_refine_range', self.min_refine_range, low=0.0, strict_low=True)
        _check_real('consistency_threshold', self.consistency_threshold, low=0.0, strict_low=True)
        if self.seed is not None and (isinstance(self.seed, bool) or not isinstance(self.seed, int)):
            raise ConfigurationError('seed', f"seed must be an integer or null, got {self.seed!r}")

    @property
    def max_cost(self) -> float:
        """Cost of one window pixel whose match falls outside the valid range."""
        return (1.0 - self.alpha) * self.tau_c + self.alpha * self.tau_g

    @property
    def window_size(self) -> int:
        return 2 * self.winsize + 1

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _as_bool(value: Any) -> bool:
    # JSON configs in this toolkit spell flags as "True"/"False" strings
    if isinstance(value, str):
        return value.strip().lower() == 'true'
    return bool(value)


def _check_real(name: str, value: Any, low: float = None, high: float = None,
                strict_low: bool = False) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise ConfigurationError(name, f"{name} must be a finite real number, got {value!r}")
    if low is not None:
        if strict_low and value <= low:
            raise ConfigurationError(name, f"{name} must be greater than {low}, got {value}")
        if not strict_low and value < low:
            raise ConfigurationError(name, f"{name} must be at least {low}, got {value}")
    if high is not None and value > high:
        raise ConfigurationError(name, f"{name} must be at most {high}, got {value}")


def _check_positive_int(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigurationError(name, f"{name} must be a positive integer, got {value!r}")
