"""
Thread-pool backend for parallel Julia/Fatou computation.

The image is split into contiguous row bands, one per worker thread. Every
worker computes the composite field and the colors of its own band; the
compiled kernels release the GIL so bands are evaluated concurrently.
"""

import numpy as np
from typing import List, Optional, Tuple
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
import logging
import os
import time

from ..core.math_functions import ComplexPlane
from ..core.fractal_types import ViewportConfig, diverged_constants
from ..rendering.coloring import GradientTable, PixelMapper
from .numba_backend import composite_band_kernel, compile_kernels

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BandSpec:
    """Specification for a single row band."""
    band_id: int
    row_start: int
    row_end: int
    width: int

    @property
    def rows(self) -> int:
        return self.row_end - self.row_start


@dataclass
class BandResult:
    """Result from processing a single band."""
    band_id: int
    row_start: int
    field: np.ndarray
    pixels: Optional[np.ndarray]
    processing_time: float


def get_optimal_thread_count() -> int:
    """Get the available parallelism of this machine."""
    if hasattr(os, 'sched_getaffinity'):
        return max(1, len(os.sched_getaffinity(0)))
    return max(1, os.cpu_count() or 1)


def resolve_thread_count(requested: Optional[int], height: int) -> int:
    """
    Clamp a requested thread count.

    ``None`` or 0 select the available parallelism; the result is never
    larger than the available parallelism or the number of rows.
    """
    available = get_optimal_thread_count()

    if not requested:
        threads = available
    elif requested > available:
        logger.warning(f"Requested {requested} threads, only {available} available")
        threads = available
    else:
        threads = requested

    return max(1, min(threads, height))


def create_band_grid(width: int, height: int, num_bands: int) -> List[BandSpec]:
    """
    Split the rows of an image into contiguous bands.

    Every band has ``height // num_bands`` rows; the last band also takes
    the remaining rows.

    Args:
        width: Image width
        height: Image height
        num_bands: Number of bands (1 <= num_bands <= height)

    Returns:
        List of BandSpec objects in row order
    """
    num_bands = max(1, min(num_bands, height))
    rows_per_band = height // num_bands

    bands = []
    for band_id in range(num_bands):
        row_start = band_id * rows_per_band
        row_end = height if band_id == num_bands - 1 else row_start + rows_per_band
        bands.append(BandSpec(band_id, row_start, row_end, width))

    logger.info(f"Created {len(bands)} bands of {rows_per_band} rows")
    return bands


def process_band(band: BandSpec, plane: ComplexPlane, config: ViewportConfig,
                 mapper: Optional[PixelMapper] = None) -> BandResult:
    """
    Compute the composite field and the colors of one band.

    Args:
        band: Band to compute
        plane: Complex plane of the whole image
        config: Render configuration
        mapper: Pixel mapper holding the gradient, None to skip coloring

    Returns:
        BandResult object
    """
    start_time = time.time()

    primary, secondary = diverged_constants(config.complex_param, config.diverge)
    center_re, center_im, step, half_width, half_height = plane.kernel_arguments()

    field = composite_band_kernel(
        band.row_start, band.rows, band.width,
        center_re, center_im, step, half_width, half_height,
        primary.real, primary.imag, secondary.real, secondary.imag,
        int(config.power), float(config.factor), float(config.intensity)
    )

    pixels = mapper.map_field(field) if mapper is not None else None

    processing_time = time.time() - start_time
    logger.debug(f"Band {band.band_id} (rows {band.row_start}-{band.row_end}) "
                 f"done in {processing_time:.3f}s")

    return BandResult(band.band_id, band.row_start, field, pixels, processing_time)


def assemble_bands(band_results: List[BandResult], width: int,
                   height: int) -> Tuple[np.ndarray, Optional[np.ndarray]]:
    """
    Assemble band results into the complete field and raster.

    Args:
        band_results: BandResult objects
        width: Image width
        height: Image height

    Returns:
        Tuple of (field, raster); raster is None for uncolored bands
    """
    colored = all(r.pixels is not None for r in band_results)

    field = np.zeros((height, width), dtype=np.float64)
    raster = np.zeros((height, width, 3), dtype=np.uint8) if colored else None

    for result in sorted(band_results, key=lambda r: r.band_id):
        rows = result.field.shape[0]
        field[result.row_start:result.row_start + rows] = result.field
        if colored:
            raster[result.row_start:result.row_start + rows] = result.pixels

    return field, raster


class BandAccelerator:
    """Thread-based parallel computation over row bands."""

    def __init__(self, num_threads: Optional[int] = None):
        """
        Initialize the accelerator.

        Args:
            num_threads: Number of worker threads (None for available parallelism)
        """
        self.requested_threads = num_threads

        # Thread count actually used by the last run
        self.num_threads: Optional[int] = None

    def _run(self, config: ViewportConfig,
             mapper: Optional[PixelMapper]) -> Tuple[np.ndarray, Optional[np.ndarray]]:
        start_time = time.time()

        plane = config.create_plane()
        logger.debug(f"Plane extent: {plane.extent()}")
        self.num_threads = resolve_thread_count(self.requested_threads, config.height)
        bands = create_band_grid(config.width, config.height, self.num_threads)

        compile_kernels()

        logger.info(f"Processing {len(bands)} bands with {self.num_threads} threads")

        with ThreadPoolExecutor(max_workers=self.num_threads) as executor:
            futures = [executor.submit(process_band, band, plane, config, mapper)
                       for band in bands]

            band_results = []
            for band, future in zip(bands, futures):
                try:
                    band_results.append(future.result())
                except Exception:
                    logger.error(f"Band {band.band_id} failed, aborting render")
                    raise

        field, raster = assemble_bands(band_results, config.width, config.height)

        total_time = time.time() - start_time
        total_processing_time = sum(r.processing_time for r in band_results)

        logger.info(f"Parallel computation complete: {total_time:.2f}s total, "
                    f"{total_processing_time:.2f}s processing time")

        return field, raster

    def compute_field(self, config: ViewportConfig) -> np.ndarray:
        """
        Compute the composite field of a whole image without coloring it.

        Args:
            config: Validated render configuration

        Returns:
            float64 array (height, width)
        """
        field, _ = self._run(config, None)
        return field

    def render_parallel(self, config: ViewportConfig,
                        gradient: GradientTable) -> Tuple[np.ndarray, np.ndarray]:
        """
        Compute the composite field and raster of a whole image.

        Args:
            config: Validated render configuration
            gradient: Gradient used to color the field

        Returns:
            Tuple of (field, raster) before post-processing
        """
        return self._run(config, PixelMapper(gradient, config.inverse))
