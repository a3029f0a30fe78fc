"""
Exception types raised by the rendering core.
"""


class ConfigError(ValueError):
    """Invalid render configuration or gradient definition.

    Raised before any worker is started, so a failing render never
    produces a partial image.
    """
