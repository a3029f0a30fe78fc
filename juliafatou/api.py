"""
Main API for Julia/Fatou rendering.

This module provides the high-level interface combining the parallel
compositor, the gradient builder and the post-processing filter.
"""

import numpy as np
from typing import Optional, Union, Sequence
from pathlib import Path
import logging
import time

from .core.fractal_types import ViewportConfig
from .rendering.coloring import GradientTable, ColorStyle, build_gradient
from .rendering.image_output import ImageExporter, ImageProcessor, RenderMetadata
from .acceleration.parallel import BandAccelerator

logger = logging.getLogger(__name__)

GradientSource = Union[GradientTable, ColorStyle, str, Sequence[Sequence[int]]]


class JuliaFatouRenderer:
    """Main Julia/Fatou rendering engine."""

    def __init__(self, config: Optional[ViewportConfig] = None):
        """
        Initialize the renderer.

        Args:
            config: Render configuration (uses defaults if None)
        """
        self.config = config or ViewportConfig()
        self.config.validate()

        self.image_processor = ImageProcessor()

        # Thread count used by the last compute_field or render call
        self.last_thread_count: Optional[int] = None

        logger.info(f"JuliaFatouRenderer initialized: {self.config.width}x{self.config.height}, "
                    f"c={self.config.complex_param}, power={self.config.power}")

    def _threads(self, threads: Optional[int]) -> Optional[int]:
        return threads if threads is not None else self.config.threads

    def compute_field(self, threads: Optional[int] = None) -> np.ndarray:
        """
        Compute the composite field of the configured viewport.

        Args:
            threads: Worker threads, overrides the configured count

        Returns:
            float64 array (height, width)
        """
        accelerator = BandAccelerator(self._threads(threads))
        field = accelerator.compute_field(self.config)
        self.last_thread_count = accelerator.num_threads
        return field

    def render(self, gradient: GradientSource = ColorStyle.GREYSCALE,
               threads: Optional[int] = None,
               output_path: Optional[Path] = None,
               rng: Optional[np.random.Generator] = None) -> np.ndarray:
        """
        Render the configured viewport.

        Args:
            gradient: GradientTable, color style, or three RGB triples
            threads: Worker threads, overrides the configured count
            output_path: Optional output file path
            rng: Random source for the 'random' color style

        Returns:
            uint8 RGB raster (height, width, 3)
        """
        start_time = time.time()

        # Fails before any worker is started
        gradient = build_gradient(gradient, rng=rng)
        exporter = ImageExporter()
        if output_path:
            exporter.check_format(output_path)

        logger.info(f"Starting render with '{gradient.name}' gradient")

        accelerator = BandAccelerator(self._threads(threads))
        _, raster = accelerator.render_parallel(self.config, gradient)
        self.last_thread_count = accelerator.num_threads

        raster = self.image_processor.apply_blur(raster, self.config.blur)

        render_time = time.time() - start_time
        logger.info(f"Render complete: {render_time:.2f}s")

        if output_path:
            metadata = RenderMetadata(
                resolution=(self.config.width, self.config.height),
                color_style=gradient.name,
                parameters=self.config.to_dict(),
                render_time_seconds=render_time,
                threads=self.last_thread_count,
            )
            exporter.save_image(raster, output_path, metadata)

        return raster


def render(config: ViewportConfig, gradient: GradientSource,
           threads: Optional[int] = None) -> np.ndarray:
    """
    Render a Julia/Fatou image.

    Args:
        config: Render configuration
        gradient: GradientTable, color style, or three RGB triples
        threads: Worker threads (None uses the configured count)

    Returns:
        uint8 RGB raster (height, width, 3)
    """
    return JuliaFatouRenderer(config).render(gradient, threads)


__all__ = ["JuliaFatouRenderer", "render", "build_gradient"]
