"""Map layers and PNG rendering of risk, fire-history, and forest rasters."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any

import numpy as np
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
from matplotlib.colors import LinearSegmentedColormap, ListedColormap
from matplotlib.patches import Patch

from firerisk.raster import Raster
from firerisk.region import Region

RISK_STYLE = {'palette': 'blue', 'opacity': 0.5}
BURNED_STYLE = {'palette': 'red', 'opacity': 0.5}
FOREST_STYLE = {'palette': 'green', 'opacity': 0.5}


@dataclass(frozen=True, eq=False)
class Layer:
    """A raster ready for display: style is {'palette': ..., 'opacity': ...}."""

    raster: Raster
    style: dict[str, Any] = field(default_factory=lambda: dict(RISK_STYLE))
    name: str = ''


def high_risk_layer(risk: Raster, color: str = 'blue') -> Layer:
    return Layer(risk, {**RISK_STYLE, 'palette': color}, 'High Risk Shrubland')


def burned_layer(frp: Raster, days: int = 365) -> Layer:
    return Layer(frp, dict(BURNED_STYLE), f'Areas burned within {days} days')


def forest_layer(forest: Raster, color: str = 'green') -> Layer:
    return Layer(forest, {**FOREST_STYLE, 'palette': color}, 'Forest Cover')


def _colormap(palette: str | list[str], categorical: bool):
    if isinstance(palette, str):
        if categorical:
            return ListedColormap([palette])
        palette = ['white', palette]
    return LinearSegmentedColormap.from_list('layer', palette)


def _draw_layer(ax, layer: Layer, extent: tuple[float, float, float, float]):
    r = layer.raster
    palette = layer.style.get('palette', 'blue')
    alpha = layer.style.get('opacity', 1.0)
    if r.is_empty:
        return None, None
    if r.is_mask:
        # Only at-risk cells are painted; False and no-data stay transparent.
        shown = np.ma.masked_where(~r.true_cells(), np.ones(r.grid.shape))
        ax.imshow(shown, extent=extent, aspect='equal', interpolation='nearest',
                  cmap=_colormap(palette, categorical=True), alpha=alpha,
                  vmin=0, vmax=1)
        color = palette if isinstance(palette, str) else palette[-1]
        return None, Patch(facecolor=color, alpha=alpha, label=layer.name)

    shown = np.ma.masked_where(~r.valid, r.values)
    vmin = layer.style.get('min')
    vmax = layer.style.get('max')
    im = ax.imshow(shown, extent=extent, aspect='equal', interpolation='nearest',
                   cmap=_colormap(palette, categorical=False), alpha=alpha,
                   vmin=vmin, vmax=vmax)
    return im, None


def render_layers(layers: list[Layer], region: Region, outpath: str,
                  title: str = '', notes: list[str] | None = None) -> str:
    """Render layers over the region outline and save a PNG.

    Args:
        layers: drawn in order, first at the bottom.
        region: outline drawn on top; also sets the map extent.
        outpath: PNG path; parent directories are created.
        title: figure title.
        notes: lines for the stats box in the upper-left corner.

    Returns:
        outpath.
    """
    fig, ax = plt.subplots(figsize=(12, 10))
    handles = []
    for layer in layers:
        g = layer.raster.grid
        extent = (g.lon_min, g.lon_max, g.lat_min, g.lat_max)
        im, handle = _draw_layer(ax, layer, extent)
        if im is not None:
            cbar = plt.colorbar(im, ax=ax, fraction=0.03, pad=0.02)
            cbar.set_label(layer.name)
        if handle is not None:
            handles.append(handle)

    ring = np.array(region.vertices + (region.vertices[0],))
    ax.plot(ring[:, 0], ring[:, 1], color='#222', linewidth=1.0)

    lat_min, lat_max, lon_min, lon_max = region.bounds
    pad_lat = 0.02 * max(lat_max - lat_min, 1e-6)
    pad_lon = 0.02 * max(lon_max - lon_min, 1e-6)
    ax.set_xlim(lon_min - pad_lon, lon_max + pad_lon)
    ax.set_ylim(lat_min - pad_lat, lat_max + pad_lat)

    if notes:
        ax.text(0.02, 0.98, '\n'.join(notes),
                transform=ax.transAxes, fontsize=11,
                verticalalignment='top', family='monospace',
                bbox=dict(boxstyle='round', facecolor='white',
                          alpha=0.92, edgecolor='gray'))
    if handles:
        ax.legend(handles=handles, loc='lower right')

    ax.set_title(title, fontsize=14, fontweight='bold')
    ax.set_xlabel('Longitude')
    ax.set_ylabel('Latitude')

    plt.tight_layout()
    os.makedirs(os.path.dirname(outpath) or '.', exist_ok=True)
    plt.savefig(outpath, dpi=150, bbox_inches='tight')
    plt.close(fig)
    return outpath
