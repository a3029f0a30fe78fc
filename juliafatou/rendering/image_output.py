"""
Image post-processing and export for Julia/Fatou renders.

This module provides the blur post-filter applied to finished rasters and
image export (PNG, TIFF, JPEG) with the render parameters embedded as
metadata.
"""

import numpy as np
from typing import Dict, Any, Optional, Tuple
from pathlib import Path
from dataclasses import dataclass, asdict, field
import json
import logging
import math
from datetime import datetime

from PIL import Image, PngImagePlugin
from scipy.ndimage import gaussian_filter1d

from ..exceptions import ConfigError

logger = logging.getLogger(__name__)


@dataclass
class RenderMetadata:
    """Metadata for Julia/Fatou renders."""

    # Render parameters
    resolution: Tuple[int, int]  # width, height
    color_style: str
    parameters: Dict[str, Any] = field(default_factory=dict)

    # Timing and performance
    render_time_seconds: float = 0.0
    threads: int = 1

    # Generation info
    timestamp: str = ""
    software_version: str = ""

    def __post_init__(self):
        """Set default timestamp and version if not provided."""
        if not self.timestamp:
            self.timestamp = datetime.now().isoformat()

        if not self.software_version:
            from .. import __version__
            self.software_version = __version__

    def to_dict(self) -> Dict[str, Any]:
        """Convert metadata to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RenderMetadata':
        """Create metadata from dictionary."""
        data = dict(data)
        data['resolution'] = tuple(data['resolution'])
        return cls(**data)

    def to_json(self, indent: int = 2) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, json_str: str) -> 'RenderMetadata':
        """Create metadata from JSON string."""
        return cls.from_dict(json.loads(json_str))


class ImageExporter:
    """Image export with metadata support."""

    def __init__(self):
        """Initialize image exporter."""
        self.supported_formats = {
            '.png': self._save_png,
            '.tiff': self._save_tiff,
            '.tif': self._save_tiff,
            '.jpg': self._save_jpeg,
            '.jpeg': self._save_jpeg,
        }

    def check_format(self, filepath: Path) -> str:
        """Get the lowercase suffix of ``filepath``, raising ValueError if it cannot be written."""
        suffix = Path(filepath).suffix.lower()

        if suffix not in self.supported_formats:
            supported = ', '.join(self.supported_formats.keys())
            raise ValueError(f"Unsupported format '{suffix}'. Supported: {supported}")

        return suffix

    def save_image(self, image_array: np.ndarray, filepath: Path,
                   metadata: Optional[RenderMetadata] = None,
                   quality: int = 95) -> Path:
        """
        Save an RGB raster to file with metadata.

        Args:
            image_array: uint8 RGB raster (height, width, 3)
            filepath: Output file path
            metadata: Render metadata to embed
            quality: JPEG quality (1-100)

        Returns:
            Path of the written file
        """
        filepath = Path(filepath)
        suffix = self.check_format(filepath)

        if image_array.ndim != 3 or image_array.shape[2] != 3:
            raise ValueError(f"Expected RGB image array (H, W, 3), got {image_array.shape}")

        pil_image = Image.fromarray(np.ascontiguousarray(image_array, dtype=np.uint8))

        save_method = self.supported_formats[suffix]
        save_method(pil_image, filepath, metadata, quality)

        logger.info(f"Saved image: {filepath} ({pil_image.size[0]}x{pil_image.size[1]})")
        return filepath

    def _save_png(self, pil_image: Image.Image, filepath: Path,
                  metadata: Optional[RenderMetadata], quality: int) -> None:
        """Save as PNG with metadata."""
        pnginfo = PngImagePlugin.PngInfo()

        if metadata:
            pnginfo.add_text("Software", f"juliafatou v{metadata.software_version}")
            pnginfo.add_text("Creation Time", metadata.timestamp)
            pnginfo.add_text("JuliaFatouMetadata", metadata.to_json())

        pil_image.save(filepath, "PNG", pnginfo=pnginfo)

    def _save_tiff(self, pil_image: Image.Image, filepath: Path,
                   metadata: Optional[RenderMetadata], quality: int) -> None:
        """Save as TIFF."""
        pil_image.save(filepath, format='TIFF', compression='tiff_lzw')
        if metadata:
            self._save_companion_json(filepath, metadata)

    def _save_jpeg(self, pil_image: Image.Image, filepath: Path,
                   metadata: Optional[RenderMetadata], quality: int) -> None:
        """Save as JPEG with a companion metadata file."""
        pil_image.save(filepath, "JPEG", quality=quality, optimize=True)
        if metadata:
            self._save_companion_json(filepath, metadata)

    def _save_companion_json(self, filepath: Path, metadata: RenderMetadata) -> None:
        json_path = filepath.with_suffix('.json')
        with open(json_path, 'w') as f:
            f.write(metadata.to_json())
        logger.info(f"Saved metadata: {json_path}")

    def extract_metadata_from_image(self, filepath: Path) -> Optional[RenderMetadata]:
        """
        Extract render metadata from a saved image.

        Args:
            filepath: Path to image file

        Returns:
            Extracted metadata or None
        """
        filepath = Path(filepath)

        with Image.open(filepath) as img:
            text = getattr(img, 'text', {})
            if 'JuliaFatouMetadata' in text:
                return RenderMetadata.from_json(text['JuliaFatouMetadata'])

        json_path = filepath.with_suffix('.json')
        if json_path.exists():
            with open(json_path, 'r') as f:
                return RenderMetadata.from_json(f.read())

        return None


class ImageProcessor:
    """Post-processing operations for finished rasters."""

    def __init__(self, truncate: float = 4.0):
        """
        Initialize image processor.

        Args:
            truncate: Kernel radius in standard deviations
        """
        self.truncate = truncate

    def apply_blur(self, image_array: np.ndarray, sigma: float) -> np.ndarray:
        """
        Apply a Gaussian blur to an RGB raster.

        The kernel is separable and applied along rows and columns; edge
        pixels are replicated so the output has the input's dimensions.

        Args:
            image_array: uint8 RGB raster (height, width, 3)
            sigma: Standard deviation of the kernel, 0 for no blur

        Returns:
            Blurred uint8 raster
        """
        if not math.isfinite(sigma) or sigma < 0:
            raise ConfigError("Blur sigma must be a non-negative finite number")

        if sigma == 0:
            return image_array.copy()

        blurred = image_array.astype(np.float64)
        for axis in (0, 1):
            blurred = gaussian_filter1d(blurred, sigma=sigma, axis=axis,
                                        mode='nearest', truncate=self.truncate)

        return np.clip(np.rint(blurred), 0, 255).astype(np.uint8)


def blur_image(image_array: np.ndarray, sigma: float) -> np.ndarray:
    """Blur a raster with the default processor."""
    return ImageProcessor().apply_blur(image_array, sigma)
