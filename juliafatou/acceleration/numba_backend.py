"""
Numba JIT compilation backend for the escape-time computation.

This module provides the compiled per-pixel kernels. All kernels are compiled
with ``nogil=True`` so that row bands evaluated from worker threads run in
parallel, and without ``fastmath`` so that results are bit-for-bit
reproducible regardless of how the image is partitioned.
"""

import numpy as np
import logging
import math
import time

import numba
from numba import jit

from ..core.math_functions import MAX_ITERATIONS, ESCAPE_RADIUS_SQ

logger = logging.getLogger(__name__)

LN_2 = math.log(2.0)


@jit(nopython=True, nogil=True, cache=True)
def complex_power(zr, zi, power):
    """
    Raise a complex number to a positive integer power.

    Uses exponentiation by squaring on the real and imaginary parts.

    Args:
        zr: Real component
        zi: Imaginary component
        power: Exponent (>= 1)

    Returns:
        Tuple of (real, imag)
    """
    rr = 1.0
    ri = 0.0
    br = zr
    bi = zi
    p = power

    while p > 0:
        if p & 1:
            rr, ri = rr * br - ri * bi, rr * bi + ri * br
        p >>= 1
        if p > 0:
            br, bi = br * br - bi * bi, 2.0 * br * bi

    return rr, ri


@jit(nopython=True, nogil=True, cache=True)
def smooth_escape(norm_sq, n):
    """
    Fractional escape value for an orbit that left the escape radius.

    Args:
        norm_sq: Squared magnitude of z at escape
        n: Iteration at which the escape was detected

    Returns:
        Smoothed escape value in [0, MAX_ITERATIONS]
    """
    # Overflow or NaN: escaped at this iteration, no smoothing
    if not math.isfinite(norm_sq):
        return float(n)

    value = n + 2.0 - math.log(math.log(norm_sq)) / LN_2

    if value < 0.0:
        return 0.0
    if value > MAX_ITERATIONS:
        return float(MAX_ITERATIONS)
    return value


@jit(nopython=True, nogil=True, cache=True)
def escape_time_kernel(zr, zi, cr, ci, power):
    """
    JIT-compiled escape-time evaluation of z -> z^power + c.

    Args:
        zr: Real component of the starting value
        zi: Imaginary component of the starting value
        cr: Real component of the constant
        ci: Imaginary component of the constant
        power: Exponent of the iteration

    Returns:
        Smoothed escape value, MAX_ITERATIONS for bounded orbits
    """
    for n in range(MAX_ITERATIONS):
        norm_sq = zr * zr + zi * zi

        # Written so that NaN counts as escaped
        if not norm_sq <= ESCAPE_RADIUS_SQ:
            return smooth_escape(norm_sq, n)

        zr, zi = complex_power(zr, zi, power)
        zr += cr
        zi += ci

    return float(MAX_ITERATIONS)


@jit(nopython=True, nogil=True, cache=True)
def blend_kernel(primary, secondary, factor, intensity):
    """Combine two escape values into one composite value."""
    value = (primary + factor * secondary) * intensity
    if not math.isfinite(value):
        return 0.0
    return value


@jit(nopython=True, nogil=True, cache=True)
def composite_band_kernel(row_start, rows, width,
                          center_re, center_im, step, half_width, half_height,
                          c1_real, c1_imag, c2_real, c2_imag,
                          power, factor, intensity):
    """
    JIT-compiled dual Julia set kernel for a band of image rows.

    Every pixel is mapped from its global coordinates, used as the starting
    value of both iterations, and the two escape values are blended.

    Args:
        row_start: Global index of the first row of the band
        rows: Number of rows in the band
        width: Image width
        center_re, center_im, step, half_width, half_height: Plane mapping
        c1_real, c1_imag: Constant of the primary set
        c2_real, c2_imag: Constant of the secondary set
        power: Exponent of the iteration
        factor: Weight of the secondary set
        intensity: Overall multiplication factor

    Returns:
        Composite field of shape (rows, width)
    """
    field = np.empty((rows, width), dtype=np.float64)

    for i in range(rows):
        zi = center_im + ((row_start + i) - half_height) * step

        for j in range(width):
            zr = center_re + (j - half_width) * step

            a = escape_time_kernel(zr, zi, c1_real, c1_imag, power)
            b = escape_time_kernel(zr, zi, c2_real, c2_imag, power)

            field[i, j] = blend_kernel(a, b, factor, intensity)

    return field


def compile_kernels():
    """Compile (or load from cache) all kernels before worker threads start."""
    start_time = time.time()
    composite_band_kernel(0, 1, 1, 0.0, 0.0, 1.0, 0.0, 0.0,
                          0.0, 0.0, 0.0, 0.0, 2, 0.0, 1.0)
    logger.debug(f"Numba {numba.__version__} kernels ready in {time.time() - start_time:.2f}s")
