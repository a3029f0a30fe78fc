"""
Dual Julia set definition and render parameter management.

This module defines the immutable viewport configuration shared by every
worker, and the reference (single pixel) evaluation of the two related
Julia sets that make up a render.
"""

from typing import Dict, Any, Optional, Tuple
from dataclasses import dataclass, asdict, replace
import logging
import math
import numbers

from .math_functions import ComplexPlane
from ..exceptions import ConfigError
from ..acceleration.numba_backend import escape_time_kernel, blend_kernel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ViewportConfig:
    """Configuration of a single render, read-only for its whole lifetime."""

    # Image parameters
    width: int = 1200
    height: int = 1200
    offset: Tuple[float, float] = (0.0, 0.0)
    scale: float = 1.5

    # Fractal parameters
    power: int = 2
    complex_param: complex = complex(-0.4, 0.6)
    diverge: float = 0.01
    factor: float = -0.25

    # Coloring and post-processing
    intensity: float = 3.0
    inverse: bool = False
    blur: float = 1.0

    # Performance
    threads: Optional[int] = None

    def validate(self) -> None:
        """Validate configuration parameters."""
        for name in ('width', 'height', 'power', 'threads'):
            value = getattr(self, name)
            if name == 'threads' and value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, numbers.Integral):
                raise ConfigError(f"{name} must be an integer, got {value!r}")

        if self.width <= 0 or self.height <= 0:
            raise ConfigError("Width and height must be positive")

        if not math.isfinite(self.scale) or self.scale <= 0:
            raise ConfigError("Scale must be a positive finite number")

        if not 1 <= self.power <= 255:
            raise ConfigError("Power must be between 1 and 255")

        if len(self.offset) != 2 or not all(math.isfinite(v) for v in self.offset):
            raise ConfigError("Offset must be two finite numbers")

        for name in ('diverge', 'factor', 'intensity'):
            if not math.isfinite(getattr(self, name)):
                raise ConfigError(f"{name} must be a finite number")

        c = complex(self.complex_param)
        if not (math.isfinite(c.real) and math.isfinite(c.imag)):
            raise ConfigError("Complex parameter must be finite")

        if not math.isfinite(self.blur) or self.blur < 0:
            raise ConfigError("Blur must be a non-negative finite number")

        if self.threads is not None and self.threads < 0:
            raise ConfigError("Thread count cannot be negative")

    def create_plane(self) -> ComplexPlane:
        """Create the complex plane covered by this viewport."""
        return ComplexPlane(self.width, self.height, self.offset, self.scale)

    def with_changes(self, **changes) -> 'ViewportConfig':
        """Return a validated copy with some fields changed."""
        config = replace(self, **changes)
        config.validate()
        return config

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        data = asdict(self)
        c = complex(self.complex_param)
        data['complex_param'] = [c.real, c.imag]
        data['offset'] = list(self.offset)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ViewportConfig':
        """Create a configuration from a dictionary produced by ``to_dict``."""
        data = dict(data)
        if 'complex_param' in data and not isinstance(data['complex_param'], complex):
            re, im = data['complex_param']
            data['complex_param'] = complex(re, im)
        if 'offset' in data:
            data['offset'] = tuple(data['offset'])
        config = cls(**data)
        config.validate()
        return config


def diverged_constants(c: complex, diverge: float) -> Tuple[complex, complex]:
    """
    Get the constants of the primary and secondary Julia sets.

    The secondary constant has ``diverge`` added to its real part and
    subtracted from its imaginary part.
    """
    c = complex(c)
    return c, complex(c.real + diverge, c.imag - diverge)


def escape_value(point: complex, c: complex, power: int) -> float:
    """
    Smoothed escape value of ``point`` under z -> z^power + c.

    Args:
        point: Starting value of the orbit
        c: Julia set constant
        power: Exponent of the iteration

    Returns:
        Escape value in [0, MAX_ITERATIONS]
    """
    point = complex(point)
    c = complex(c)
    return escape_time_kernel(point.real, point.imag, c.real, c.imag, int(power))


def evaluate_pixel(config: ViewportConfig, px: int, py: int,
                   plane: Optional[ComplexPlane] = None) -> float:
    """
    Composite value of a single pixel.

    This is the scalar counterpart of the band kernel used by the renderer
    and yields identical values.
    """
    if plane is None:
        plane = config.create_plane()

    point = plane.pixel_to_complex(px, py)
    primary, secondary = diverged_constants(config.complex_param, config.diverge)

    a = escape_value(point, primary, config.power)
    b = escape_value(point, secondary, config.power)

    return blend_kernel(a, b, float(config.factor), float(config.intensity))


# Predefined interesting Julia set constants
JULIA_PRESETS = {
    'dragon': complex(-0.75, 0.1),
    'spiral': complex(-0.4, 0.6),
    'dendrite': complex(-0.235125, 0.827215),
    'lightning': complex(-0.8, 0.156),
    'rabbit': complex(-0.123, 0.745),
    'airplane': complex(-1.25, 0.0),
    'san_marco': complex(-0.75, 0.0),
    'siegel_disk': complex(-0.391, -0.587),
}
