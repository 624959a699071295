"""
Map rendering for single-geography elevation surfaces.

A static matplotlib figure (raster layer plus polygon outline) and an
interactive folium map with the same layers.
"""
import logging
import math
from pathlib import Path

import folium
import geopandas as gpd
import numpy as np

try:
    import matplotlib
    import matplotlib.pyplot as plt
except ImportError as e:
    logging.error(f"Matplotlib not available: {e}")
    raise

from fips_elevation.assemble import ElevationSurface
from fips_elevation.zonal_stats import align_to_raster, wrap_geometry
from fips_elevation.zoom_table import lookup

ELEVATION_CMAP = "viridis"
OUTLINE_COLOR = "white"


def map_subtitle(zoom: int) -> str:
    return f"Arc resolution: {lookup(zoom)}"


def build_map(surface: ElevationSurface, zoom: int):
    """
    Render the elevation surface as a static map.

    Args:
        surface: Assembled single-geography surface
        zoom: Zoom level the raster was fetched at (subtitle only)

    Returns:
        matplotlib Figure with the raster color-mapped, the polygon outlined,
        the geography name as title and nominal resolution as subtitle
    """
    raster = surface.raster
    west, south, east, north = raster.bounds

    fig, ax = plt.subplots(figsize=(8, 8))
    image = ax.imshow(
        np.ma.masked_invalid(raster.data),
        extent=(west, east, south, north),
        origin="upper",
        cmap=ELEVATION_CMAP,
        interpolation="nearest",
    )
    outline = align_to_raster(surface.geography.to_frame(), raster).geometry
    outline.boundary.plot(ax=ax, color=OUTLINE_COLOR, linewidth=1)

    # Geographic coordinates: shrink longitude so shapes are not stretched
    mid_lat = (south + north) / 2.0
    ax.set_aspect(1.0 / max(math.cos(math.radians(mid_lat)), 1e-6))
    ax.set_axis_off()

    colorbar = fig.colorbar(image, ax=ax, shrink=0.7)
    colorbar.set_label("Elevation (m)")
    fig.suptitle(surface.geography.display_name, fontsize=14, fontweight="bold")
    ax.set_title(map_subtitle(zoom), fontsize=10)

    # Detach from pyplot's figure registry; the figure stays renderable
    plt.close(fig)
    return fig


def build_interactive_map(surface: ElevationSurface, zoom: int) -> folium.Map:
    """
    Render the elevation surface as an interactive folium map.

    The raster becomes a semi-transparent image overlay and the polygon a
    GeoJson outline on an OpenTopoMap base layer.
    """
    raster = surface.raster
    west, south, east, north = raster.bounds

    m = folium.Map(
        location=[(south + north) / 2.0, (west + east) / 2.0],
        tiles='https://{s}.tile.opentopomap.org/{z}/{x}/{y}.png',
        attr='Map data: &copy; <a href="https://www.openstreetmap.org/copyright">OpenStreetMap</a> contributors, <a href="http://viewfinderpanoramas.org">SRTM</a> | Map style: &copy; <a href="https://opentopomap.org">OpenTopoMap</a> (<a href="https://creativecommons.org/licenses/by-sa/3.0/">CC-BY-SA</a>)'
    )

    data = raster.data
    finite = np.isfinite(data)
    if finite.any():
        low, high = float(np.nanmin(data)), float(np.nanmax(data))
        scaled = (data - low) / (high - low) if high > low else np.zeros_like(data)
        rgba = matplotlib.colormaps[ELEVATION_CMAP](np.nan_to_num(scaled))
        rgba[~finite, 3] = 0.0
        folium.raster_layers.ImageOverlay(
            image=rgba,
            bounds=[[south, west], [north, east]],
            opacity=0.7,
            mercator_project=True,
            name=f"Elevation ({low:.0f} - {high:.0f} m)",
        ).add_to(m)

    outline = gpd.GeoSeries([surface.geography.geometry], crs=surface.geography.crs).to_crs("EPSG:4326")
    outline = gpd.GeoSeries([wrap_geometry(g, raster) for g in outline], crs=outline.crs)
    folium.GeoJson(
        outline.__geo_interface__,
        name="Boundary",
        style_function=lambda feature: {'fill': False, 'color': OUTLINE_COLOR, 'weight': 2},
        tooltip=surface.geography.display_name,
    ).add_to(m)

    folium.LayerControl().add_to(m)
    m.fit_bounds([[south, west], [north, east]])

    title_html = f'''
    <div style="position: fixed; top: 10px; left: 50px; z-index: 1000;
                background: white; border: 2px solid #ccc; border-radius: 5px;
                padding: 6px 10px; font-family: Arial, sans-serif;">
        <b>{surface.geography.display_name}</b><br>
        <span style="font-size: 12px;">{map_subtitle(zoom)} | mean {surface.elevation_mean:.1f} m</span>
    </div>
    '''
    m.get_root().html.add_child(folium.Element(title_html))
    return m


def save_map(fig, output_file: Path) -> Path:
    """Write a static map to disk (format from the file extension)."""
    fig.savefig(output_file, dpi=150, bbox_inches="tight")
    logging.info(f"Saved map: {output_file}")
    return output_file
