"""
Visualization collaborators: map previews of rasters and NDVI-LST scatter charts.

Visualization is one-way. Nothing drawn here feeds back into results.

Figures are built on the object-oriented :class:`~matplotlib.figure.Figure`
API with an Agg canvas and never registered with pyplot, so units rendering
on worker threads share no global figure state.

Author: Urban Thermal Analysis Team
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Sequence, Union

import numpy as np
import pandas as pd
import seaborn as sns
from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.colors import LinearSegmentedColormap
from matplotlib.figure import Figure

from shared_utils import ensure_directory, get_logger

from .raster import Raster
from .region_statistics import LinearFit

logger = get_logger('visualization')


def _slug(title: str) -> str:
    return ''.join(c if c.isalnum() else '_' for c in title).strip('_')


def _new_axes(figsize):
    fig = Figure(figsize=figsize)
    FigureCanvasAgg(fig)
    return fig, fig.subplots()


class Visualizer(ABC):
    """Displays rasters and scatter charts."""

    @abstractmethod
    def show_raster(self, raster: Raster, vmin: float, vmax: float,
                    palette: Sequence[str], title: str) -> None:
        ...

    @abstractmethod
    def scatter_chart(self, samples: pd.DataFrame, fit: Optional[LinearFit], title: str) -> None:
        ...


class NullVisualizer(Visualizer):
    """Discards every request."""

    def show_raster(self, raster, vmin, vmax, palette, title):
        logger.debug(f"Visualization disabled, skipping '{title}'")

    def scatter_chart(self, samples, fit, title):
        logger.debug(f"Visualization disabled, skipping '{title}'")


class MatplotlibVisualizer(Visualizer):
    """
    Saves PNG figures to ``output_dir``.

    Args:
        output_dir: Figure directory
        dpi: Resolution of saved figures
    """

    def __init__(self, output_dir: Union[str, Path], dpi: int = 150):
        self.output_dir = Path(output_dir)
        self.dpi = dpi
        self.saved: List[Path] = []

    def _save(self, fig: Figure, title: str) -> Path:
        savepath = ensure_directory(self.output_dir) / f"{_slug(title)}.png"
        fig.savefig(savepath, dpi=self.dpi, bbox_inches='tight')
        self.saved.append(savepath)
        logger.info(f"Figure saved: {savepath}")
        return savepath

    def show_raster(self, raster: Raster, vmin: float, vmax: float,
                    palette: Sequence[str], title: str) -> None:
        cmap = LinearSegmentedColormap.from_list(_slug(title) or 'palette', list(palette))
        cmap.set_bad(alpha=0.0)

        left, bottom, right, top = raster.bounds
        fig, ax = _new_axes((8, 7))
        im = ax.imshow(raster.array[0], cmap=cmap, vmin=vmin, vmax=vmax,
                       extent=(left, right, bottom, top), interpolation='nearest')
        cbar = fig.colorbar(im, ax=ax, shrink=0.8)
        cbar.set_label(raster.band_names[0])
        ax.set_title(title)
        ax.set_axis_off()
        self._save(fig, title)

    def scatter_chart(self, samples: pd.DataFrame, fit: Optional[LinearFit], title: str) -> None:
        if samples.empty:
            logger.warning(f"No samples to plot for '{title}'")
            return

        x_name, y_name = samples.columns[:2]
        fig, ax = _new_axes((7, 6))
        ax.scatter(samples[x_name], samples[y_name], s=8, alpha=0.6, color='#2c7fb8',
                   edgecolor='none')

        if fit is not None:
            xs = np.linspace(samples[x_name].min(), samples[x_name].max(), 100)
            ax.plot(xs, fit.slope * xs + fit.intercept, color='#d7301f', linewidth=1.5)
            stats_text = (f"y = {fit.slope:.2f}x + {fit.intercept:.2f}\n"
                          f"R² = {fit.r_squared:.3f}\nn = {fit.n_pixels}")
            ax.text(0.05, 0.95, stats_text, transform=ax.transAxes,
                    verticalalignment='top', horizontalalignment='left',
                    bbox=dict(facecolor='white', alpha=0.8, edgecolor='none',
                              boxstyle='round,pad=0.4'),
                    fontsize=9)

        ax.set_xlabel(x_name)
        ax.set_ylabel(f"{y_name} (°C)")
        ax.set_title(title)
        ax.grid(False)
        sns.despine(ax=ax)
        self._save(fig, title)
