"""
Core mathematical definitions for Julia/Fatou iteration.

This module holds the iteration constants shared by every backend and the
mapping between pixel coordinates and the complex plane.
"""

from typing import Tuple
import logging
import math

from ..exceptions import ConfigError

logger = logging.getLogger(__name__)

# Iteration cap for a single escape-time evaluation
MAX_ITERATIONS = 1024

# Squared escape radius (|z| > sqrt(5))
ESCAPE_RADIUS_SQ = 5.0

# Composite values are normalized against this range before the gradient lookup
GRADIENT_DOMAIN = 255.0


class ComplexPlane:
    """Maps pixel coordinates of an image onto a region of the complex plane.

    The shorter image side spans ``2 * scale`` with both end pixels placed on
    the boundary; the longer side uses the same step so the aspect ratio of
    the plane is preserved. The view is centered on ``-offset``: increasing
    offsets move the view up/left.
    """

    def __init__(self, width: int, height: int,
                 offset: Tuple[float, float] = (0.0, 0.0), scale: float = 1.5):
        """
        Initialize the plane.

        Args:
            width, height: Image resolution in pixels
            offset: View offset (x, y)
            scale: Half-span of the shorter image side
        """
        if width <= 0 or height <= 0:
            raise ConfigError("Width and height must be positive")
        if not math.isfinite(scale) or scale <= 0:
            raise ConfigError("Scale must be a positive finite number")

        self.width = int(width)
        self.height = int(height)
        self.scale = float(scale)
        self.center_re = -float(offset[0])
        self.center_im = -float(offset[1])

        # Same step on both axes so circles stay circles
        short_side = min(self.width, self.height)
        self.step = 2.0 * self.scale / max(short_side - 1, 1)

        self.half_width = (self.width - 1) / 2.0
        self.half_height = (self.height - 1) / 2.0

    def pixel_to_complex(self, px: int, py: int) -> complex:
        """Convert pixel coordinates to a complex number."""
        real = self.center_re + (px - self.half_width) * self.step
        imag = self.center_im + (py - self.half_height) * self.step
        return complex(real, imag)

    def extent(self) -> Tuple[float, float, float, float]:
        """Get the plane bounds covered by the pixel centers (re_min, re_max, im_min, im_max)."""
        re_min = self.pixel_to_complex(0, 0).real
        re_max = self.pixel_to_complex(self.width - 1, 0).real
        im_min = self.pixel_to_complex(0, 0).imag
        im_max = self.pixel_to_complex(0, self.height - 1).imag
        return re_min, re_max, im_min, im_max

    def kernel_arguments(self) -> Tuple[float, float, float, float, float]:
        """Mapping parameters in the order the compiled kernels expect them."""
        return self.center_re, self.center_im, self.step, self.half_width, self.half_height
