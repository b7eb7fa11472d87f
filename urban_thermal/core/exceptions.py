"""
Exception hierarchy for the urban thermal analysis component.

"No valid result" outcomes (empty time windows, fully masked regions,
degenerate regressions) are not exceptions: reductions return ``None``.
The classes below cover contract violations and collaborator failures.

Author: Urban Thermal Analysis Team
"""


class UrbanThermalError(Exception):
    """Base class for all urban thermal pipeline errors."""


class GridMismatchError(UrbanThermalError, ValueError):
    """Rasters combined or compared do not share CRS, transform and shape."""


class ConfigurationError(UrbanThermalError, ValueError):
    """Invalid season, sensor table, bitfield or other configuration value."""


class ImagerySourceError(UrbanThermalError):
    """The imagery collaborator could not deliver the requested scenes."""


class ExportError(UrbanThermalError):
    """The export collaborator could not persist a raster."""


class SceneNotFoundError(ImagerySourceError):
    """No scene or band matches the request; another attempt would not change that."""
