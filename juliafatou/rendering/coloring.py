"""
Color gradients and composite-value coloring for Julia/Fatou renders.

This module builds interpolated gradient lookup tables from a few control
colors (built-in palettes, colors read from a CSV file, or random colors)
and maps composite field values onto them.
"""

import numpy as np
from typing import Dict, List, Tuple, Union, Optional, Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
import logging

from ..core.math_functions import GRADIENT_DOMAIN
from ..exceptions import ConfigError

logger = logging.getLogger(__name__)

# Number of entries of the dense lookup table
TABLE_SIZE = 1024

# Color file used by the 'config' style when no path is given
DEFAULT_COLORS_FILE = "colors.csv"


@dataclass(frozen=True)
class ColorRGB:
    """8-bit RGB color representation."""
    r: int
    g: int
    b: int

    def __post_init__(self):
        """Validate RGB values."""
        for component in (self.r, self.g, self.b):
            try:
                value = int(component)
            except (TypeError, ValueError):
                raise ConfigError(f"RGB components must be integers, got {component!r}") from None
            if isinstance(component, bool) or value != component:
                raise ConfigError(f"RGB components must be integers, got {component!r}")
            if not 0 <= value <= 255:
                raise ConfigError(f"RGB components must be between 0 and 255, got {component}")

    def to_tuple(self) -> Tuple[int, int, int]:
        """Convert to RGB tuple."""
        return (int(self.r), int(self.g), int(self.b))

    @classmethod
    def from_sequence(cls, values: Sequence) -> 'ColorRGB':
        """Create a color from an (r, g, b) sequence."""
        if isinstance(values, ColorRGB):
            return values
        if len(values) != 3:
            raise ConfigError(f"A color needs exactly three channels, got {len(values)}")
        return cls(*values)


class ColorStyle(Enum):
    """Selectable color gradients."""
    BOOKWORM = 'bookworm'
    JELLYFISH = 'jellyfish'
    TEN = 'ten'
    ELEVEN = 'eleven'
    MINT = 'mint'
    GREYSCALE = 'greyscale'
    CHRISTMAS = 'christmas'
    CHAMELEON = 'chameleon'
    PLASMA = 'plasma'
    PLASMA2 = 'plasma2'
    CONFIG = 'config'
    RANDOM = 'random'

    @classmethod
    def parse(cls, name: Union[str, 'ColorStyle']) -> 'ColorStyle':
        """Get a style from its name."""
        if isinstance(name, cls):
            return name
        try:
            return cls(str(name).lower())
        except ValueError:
            available = ', '.join(style.value for style in cls)
            raise ConfigError(f"Unknown color style '{name}'. Available: {available}") from None


# Control colors of the built-in palettes
BUILTIN_PALETTES: Dict[ColorStyle, List[Tuple[int, int, int]]] = {
    ColorStyle.BOOKWORM: [(5, 71, 92), (10, 120, 115), (184, 216, 215)],
    ColorStyle.JELLYFISH: [(38, 0, 24), (90, 25, 63), (198, 70, 72)],
    ColorStyle.TEN: [(4, 62, 185), (2, 123, 230), (105, 254, 255)],
    ColorStyle.ELEVEN: [(2, 70, 217), (1, 214, 244), (209, 229, 254)],
    ColorStyle.MINT: [(21, 21, 21), (137, 184, 70), (214, 214, 214)],
    ColorStyle.GREYSCALE: [(255, 255, 255), (127, 127, 127), (0, 0, 0)],
    ColorStyle.CHRISTMAS: [(31, 56, 35), (209, 27, 79), (250, 219, 82)],
    ColorStyle.CHAMELEON: [(11, 127, 109), (35, 145, 108), (21, 155, 110)],
    ColorStyle.PLASMA: [(35, 37, 83), (36, 102, 156), (219, 135, 75)],
    ColorStyle.PLASMA2: [(0, 87, 139), (0, 147, 235), (249, 249, 249)],
}


class GradientTable:
    """Control colors and the densely interpolated lookup table built from them."""

    def __init__(self, colors: Sequence[Union[ColorRGB, Sequence[int]]],
                 name: str = "Custom", size: int = TABLE_SIZE):
        """
        Initialize the gradient.

        Args:
            colors: Control colors, first color at index 0
            name: Human-readable name for the gradient
            size: Number of entries of the lookup table
        """
        self.name = name

        control = [ColorRGB.from_sequence(color).to_tuple() for color in colors]

        if len(control) < 2:
            raise ConfigError("A gradient must contain at least 2 colors")
        if len(set(control)) < 2:
            raise ConfigError("A gradient must contain at least 2 distinct colors")
        if size < len(control):
            raise ConfigError(f"Lookup table size {size} is smaller than the number of colors")

        self.colors = np.array(control, dtype=np.uint8)
        self.table = self._interpolate(self.colors, size)

        self.colors.setflags(write=False)
        self.table.setflags(write=False)

    @staticmethod
    def _interpolate(colors: np.ndarray, size: int) -> np.ndarray:
        """Linear RGB interpolation between evenly spaced control colors."""
        anchors = np.linspace(0.0, 1.0, len(colors))
        positions = np.linspace(0.0, 1.0, size)

        table = np.empty((size, 3), dtype=np.uint8)
        for channel in range(3):
            values = np.interp(positions, anchors, colors[:, channel].astype(np.float64))
            table[:, channel] = np.clip(np.rint(values), 0, 255).astype(np.uint8)

        return table

    @property
    def size(self) -> int:
        """Number of entries of the lookup table."""
        return self.table.shape[0]

    @classmethod
    def from_style(cls, style: Union[str, ColorStyle], size: int = TABLE_SIZE) -> 'GradientTable':
        """Create a gradient from a built-in palette."""
        style = ColorStyle.parse(style)
        if style not in BUILTIN_PALETTES:
            raise ConfigError(f"Color style '{style.value}' is not a built-in palette")
        return cls(BUILTIN_PALETTES[style], name=style.value, size=size)

    @classmethod
    def from_config_colors(cls, colors: Sequence[Sequence[int]],
                           size: int = TABLE_SIZE) -> 'GradientTable':
        """Create a gradient from exactly three externally supplied colors."""
        colors = list(colors)
        if len(colors) != 3:
            raise ConfigError(f"Expected exactly 3 colors, got {len(colors)}")
        return cls(colors, name=ColorStyle.CONFIG.value, size=size)

    @classmethod
    def random(cls, rng: Optional[np.random.Generator] = None,
               size: int = TABLE_SIZE) -> 'GradientTable':
        """
        Create a gradient from three random colors.

        Args:
            rng: Random source, a fresh unseeded generator if None
            size: Number of entries of the lookup table
        """
        if rng is None:
            rng = np.random.default_rng()

        colors = rng.integers(0, 256, size=(3, 3), dtype=np.uint8)

        # Same layout as a color file, so the gradient can be reused with --config
        rows = '\n'.join(','.join(str(v) for v in color) for color in colors)
        logger.info(f"Random colors:\nR,G,B\n{rows}")

        return cls(colors.tolist(), name=ColorStyle.RANDOM.value, size=size)

    def save_to_file(self, filepath: Path) -> None:
        """Save the control colors as a color CSV file."""
        with open(filepath, 'w') as f:
            f.write("R,G,B\n")
            for r, g, b in self.colors.tolist():
                f.write(f"{r},{g},{b}\n")


def load_colors_from_file(filepath: Optional[Union[str, Path]] = None) -> List[Tuple[int, int, int]]:
    """
    Read three colors from a CSV file.

    The first row is a header and is ignored; it must be followed by exactly
    three ``r,g,b`` rows.

    Args:
        filepath: Color file, ``colors.csv`` if None

    Returns:
        List of three RGB tuples
    """
    filepath = Path(filepath if filepath is not None else DEFAULT_COLORS_FILE)
    logger.info(f"Color file: '{filepath}'")

    try:
        with open(filepath, 'r') as f:
            lines = [line.strip() for line in f.readlines()[1:]]
    except OSError as e:
        raise ConfigError(f"Could not read color file {filepath}: {e}") from e

    lines = [line for line in lines if line]
    if len(lines) != 3:
        raise ConfigError(f"Color file {filepath} must contain exactly 3 colors, found {len(lines)}")

    colors = []
    for number, line in enumerate(lines, start=2):
        parts = [part.strip() for part in line.split(',')]
        if len(parts) != 3:
            raise ConfigError(f"{filepath}:{number}: expected 'r,g,b', got '{line}'")
        try:
            color = ColorRGB(*(int(part) for part in parts))
        except ValueError as e:
            raise ConfigError(f"{filepath}:{number}: {e}") from e
        colors.append(color.to_tuple())

    return colors


def build_gradient(source: Union[str, ColorStyle, Sequence[Sequence[int]], GradientTable],
                   rng: Optional[np.random.Generator] = None,
                   config_path: Optional[Union[str, Path]] = None,
                   size: int = TABLE_SIZE) -> GradientTable:
    """
    Build a gradient from a palette selector or from three colors.

    Args:
        source: Color style (or its name), or a sequence of three RGB triples
        rng: Random source for the 'random' style
        config_path: Color file for the 'config' style
        size: Number of entries of the lookup table

    Returns:
        GradientTable
    """
    if isinstance(source, GradientTable):
        return source

    if isinstance(source, (str, ColorStyle)):
        style = ColorStyle.parse(source)
        if style is ColorStyle.CONFIG:
            return GradientTable.from_config_colors(load_colors_from_file(config_path), size)
        if style is ColorStyle.RANDOM:
            return GradientTable.random(rng, size)
        return GradientTable.from_style(style, size)

    return GradientTable.from_config_colors(source, size)


class PixelMapper:
    """Maps composite field values to colors of a gradient."""

    def __init__(self, gradient: GradientTable, inverse: bool = False,
                 domain: float = GRADIENT_DOMAIN):
        """
        Initialize the mapper.

        Args:
            gradient: Gradient lookup table
            inverse: Run through the gradient in reverse
            domain: Composite value mapped to the last table entry
        """
        self.gradient = gradient
        self.inverse = inverse
        self.domain = domain

    def normalize(self, field: np.ndarray) -> np.ndarray:
        """Normalize composite values to [0, 1], inverted if configured."""
        field = np.nan_to_num(np.asarray(field, dtype=np.float64), nan=0.0, posinf=0.0, neginf=0.0)
        t = np.clip(field / self.domain, 0.0, 1.0)
        if self.inverse:
            t = 1.0 - t
        return t

    def indices(self, field: np.ndarray) -> np.ndarray:
        """Table indices for composite values."""
        t = self.normalize(field)
        return np.rint(t * (self.gradient.size - 1)).astype(np.intp)

    def map_field(self, field: np.ndarray) -> np.ndarray:
        """
        Color a composite field.

        Args:
            field: Composite values of any shape

        Returns:
            uint8 array with a trailing RGB axis
        """
        return self.gradient.table[self.indices(field)]

    def map_value(self, value: float) -> Tuple[int, int, int]:
        """Color a single composite value."""
        return tuple(int(v) for v in self.map_field(np.array([value]))[0])
