"""
Plotting Module for the UC Enrollment Streamgraph

Draws a computed StreamLayout onto a matplotlib figure:
1. Figure sized in pixels, one axes placed at the margins (the drawing group)
2. Year axis with fixed tick values and grey tick lines, no domain line
3. One filled polygon per band, colored by campus
4. Axis title and a hidden label used by the hover controller

The axes use pixel coordinates with y increasing downward, so band outlines
from stream_layout can be drawn as-is.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Tuple

import matplotlib.pyplot as plt
from matplotlib.patches import Polygon
from matplotlib.text import Text

from stream_layout import StreamLayout
from stream_shared import BG, TEXT_COLOR, TICK_COLOR, LayoutConfig, px_to_pt

# Version stamp
CODE_VERSION = "v2025.11.02-STREAMGRAPH"

DPI = 100


def _stamp(fig, y_pos=0.005):
    """Add version stamp to figure."""
    fig.text(0.995, y_pos, f"Code: {CODE_VERSION}", ha="right", va="bottom",
             fontsize=7, color="#666666")


def _draw_year_axis(ax, layout: StreamLayout, config: LayoutConfig):
    axis_y = config.height * config.tick_y_fraction
    tick_px = layout.x_scale(list(config.tick_values))

    # Tick lines run upward from the axis line across the drawing area
    ax.vlines(tick_px, axis_y - config.height * config.tick_size_fraction, axis_y,
              colors=TICK_COLOR, linewidth=1.0, zorder=1)

    ax.set_xticks(tick_px, labels=[f"{int(t):d}" for t in config.tick_values])
    ax.spines["bottom"].set_position(("data", axis_y))
    ax.tick_params(axis="x", length=0, pad=4, labelcolor=TICK_COLOR, labelsize=px_to_pt(10, DPI))
    ax.set_yticks([])
    for s in ax.spines.values():
        s.set_visible(False)


def render_streamgraph(layout: StreamLayout, config: LayoutConfig) -> Tuple[plt.Figure, plt.Axes, Dict[str, Polygon], Text]:
    """
    Draw every band of `layout`.

    Returns (fig, ax, band_artists, label); band_artists is keyed by category
    in category-set order and label is the hover text (opacity 0).
    """
    fig = plt.figure(figsize=(config.outer_width / DPI, config.outer_height / DPI), dpi=DPI)
    fig.patch.set_facecolor(BG)
    m = config.margin
    ax = fig.add_axes([
        m.left / config.outer_width,
        m.bottom / config.outer_height,
        config.width / config.outer_width,
        config.height / config.outer_height,
    ])
    ax.set_facecolor(BG)
    ax.set_xlim(0, config.width)
    ax.set_ylim(config.height, 0)

    _draw_year_axis(ax, layout, config)

    ax.text(config.width - 50, config.height - 5, config.axis_title,
            ha="right", va="baseline", color=TEXT_COLOR, family="sans-serif",
            fontsize=px_to_pt(14, DPI), zorder=4)

    band_artists: Dict[str, Polygon] = {}
    for band in layout.bands:
        patch = Polygon(layout.outlines[band.key], closed=True,
                        facecolor=layout.colors[band.key], edgecolor="none",
                        linewidth=0.0, alpha=1.0, zorder=2, label=band.key)
        ax.add_patch(patch)
        band_artists[band.key] = patch

    lx, ly = config.label_anchor
    label = ax.text(lx, ly, "", ha="left", va="baseline", color=TEXT_COLOR,
                    family="sans-serif", fontsize=px_to_pt(config.label_font_px, DPI),
                    alpha=0.0, clip_on=False, zorder=5)

    _stamp(fig)
    return fig, ax, band_artists, label


def save_streamgraph(fig, out_path: Path):
    """Write the figure; format follows the file suffix (png/svg/pdf)."""
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(out_path, dpi=DPI, facecolor=fig.get_facecolor())
    print(f"[OK] Saved {str(out_path)}")
    return out_path
