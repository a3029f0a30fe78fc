"""
Julia/Fatou set renderer.

Renders still images of two related Julia sets blended into one composite
field, colored through an interpolated gradient and softened by a blur.

Key Features:
- Deterministic float64 results independent of the number of threads
- Row-band parallelism with Numba kernels that release the GIL
- Built-in, file supplied and random color gradients
- Gaussian post-filter with replicated edges

Example usage:
    >>> from juliafatou import ViewportConfig, render
    >>> config = ViewportConfig(width=800, height=600, complex_param=-0.4+0.6j)
    >>> image = render(config, "plasma")
"""

__version__ = "1.0.0"
__author__ = "juliafatou contributors"

from juliafatou.exceptions import ConfigError
from juliafatou.core.math_functions import ComplexPlane, MAX_ITERATIONS
from juliafatou.core.fractal_types import ViewportConfig, JULIA_PRESETS, escape_value, evaluate_pixel
from juliafatou.rendering.coloring import ColorStyle, GradientTable, PixelMapper, build_gradient
from juliafatou.rendering.image_output import ImageExporter, ImageProcessor, blur_image

# Main API
from juliafatou.api import JuliaFatouRenderer, render

__all__ = [
    "JuliaFatouRenderer",
    "render",
    "build_gradient",
    "ViewportConfig",
    "ConfigError",
    "ComplexPlane",
    "MAX_ITERATIONS",
    "JULIA_PRESETS",
    "escape_value",
    "evaluate_pixel",
    "ColorStyle",
    "GradientTable",
    "PixelMapper",
    "ImageExporter",
    "ImageProcessor",
    "blur_image",
]
