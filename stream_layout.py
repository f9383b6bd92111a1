"""
Streamgraph layout engine.

Turns a Series Table (years x categories) into stacked bands:
1. Order: pick the vertical arrangement of categories (default inside-out,
   earliest peaks innermost, weight balanced on both sides).
2. Offset: pick the baseline of the lowest band at each year (default wiggle,
   which minimizes the weighted slope change of all layers).
3. Stack: each band sits on the topline of the band below it.

Path generation maps the bands through linear year/value scales into closed
pixel outlines ready to fill.

Everything here is pure: no I/O, no plotting, no module state.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Tuple

import numpy as np
import pandas as pd
from scipy.interpolate import make_interp_spline

from stream_shared import LayoutConfig, build_color_map, category_set

SPLINE_SAMPLES = 8  # points per year interval for curve="spline"


# ---------------- Order policies ----------------
# Each takes values shaped (n_categories, n_years) and returns category indices
# bottom -> top.

def order_none(values: np.ndarray) -> np.ndarray:
    return np.arange(values.shape[0])


def order_reverse(values: np.ndarray) -> np.ndarray:
    return np.arange(values.shape[0])[::-1]


def order_ascending(values: np.ndarray) -> np.ndarray:
    return np.argsort(values.sum(axis=1), kind="stable")


def order_descending(values: np.ndarray) -> np.ndarray:
    return order_ascending(values)[::-1]


def order_appearance(values: np.ndarray) -> np.ndarray:
    """Rank by the year index of each category's peak (first maximum)."""
    if values.shape[1] == 0:
        return order_none(values)
    peaks = np.argmax(values, axis=1)
    return np.argsort(peaks, kind="stable")


def order_inside_out(values: np.ndarray) -> np.ndarray:
    """
    Earliest peak innermost; the rest alternate outward.

    Categories are taken in appearance order and each is appended to whichever
    side (top or bottom) currently carries less total weight. Ties go to the
    bottom. The bottom side is reversed so its first entry ends up adjacent to
    the first entry on the top side.
    """
    sums = values.sum(axis=1)
    top, bottom = 0.0, 0.0
    tops: List[int] = []
    bottoms: List[int] = []
    for j in order_appearance(values):
        if top < bottom:
            top += sums[j]
            tops.append(int(j))
        else:
            bottom += sums[j]
            bottoms.append(int(j))
    return np.array(bottoms[::-1] + tops, dtype=int)


ORDER_POLICIES: Dict[str, Callable[[np.ndarray], np.ndarray]] = {
    "none": order_none,
    "reverse": order_reverse,
    "ascending": order_ascending,
    "descending": order_descending,
    "appearance": order_appearance,
    "inside_out": order_inside_out,
}


# ---------------- Offset policies ----------------
# Each takes values already in stacking order (bottom -> top) and returns the
# baseline of the lowest band at every year. Band thickness is never changed.

def offset_none(ordered: np.ndarray) -> np.ndarray:
    return np.zeros(ordered.shape[1])


def offset_silhouette(ordered: np.ndarray) -> np.ndarray:
    return -ordered.sum(axis=0) / 2.0


def offset_wiggle(ordered: np.ndarray) -> np.ndarray:
    """
    Baseline that minimizes weighted wiggle (Byron & Wattenberg).

    For step j: s1 = sum of values at j, s2 = sum over layers of
    value * (own change / 2 + change of every layer below). The baseline moves
    by -s2/s1; a year with zero total keeps the previous baseline.
    """
    m = ordered.shape[1]
    baseline = np.zeros(m)
    if m < 2:
        return baseline
    cur = ordered[:, 1:]
    dv = cur - ordered[:, :-1]
    below = np.cumsum(dv, axis=0) - dv
    s1 = cur.sum(axis=0)
    s2 = (cur * (dv / 2.0 + below)).sum(axis=0)
    safe = np.where(s1 != 0, s1, 1.0)
    step = np.where(s1 != 0, s2 / safe, 0.0)
    baseline[1:] = -np.cumsum(step)
    return baseline


OFFSET_POLICIES: Dict[str, Callable[[np.ndarray], np.ndarray]] = {
    "none": offset_none,
    "silhouette": offset_silhouette,
    "wiggle": offset_wiggle,
}


# ---------------- Stack computation ----------------
@dataclass(frozen=True)
class StackedBand:
    key: str
    index: int       # position in the category set
    position: int    # position in the stack, 0 = bottom
    years: np.ndarray
    baseline: np.ndarray
    topline: np.ndarray

    @property
    def thickness(self) -> np.ndarray:
        return self.topline - self.baseline


def _policy(registry: Dict[str, Callable], name: str, kind: str) -> Callable:
    if name not in registry:
        raise ValueError(f"Unknown {kind} policy '{name}'. Available: {sorted(registry)}")
    return registry[name]


def stack_series(table: pd.DataFrame, order: str = "inside_out", offset: str = "wiggle") -> List[StackedBand]:
    """
    Stack every category of `table` into bands.

    Bands come back in category-set order (matching the table's columns); each
    band's `position` records where it sits in the stack.
    """
    order_fn = _policy(ORDER_POLICIES, order, "order")
    offset_fn = _policy(OFFSET_POLICIES, offset, "offset")
    if table is None or table.empty or table.shape[1] == 0:
        raise ValueError("Cannot stack an empty table.")

    keys = category_set(table)
    years = table.index.to_numpy()
    values = table.to_numpy(dtype=float).T

    stack_order = np.asarray(order_fn(values), dtype=int)
    stacked = values[stack_order]
    tops = offset_fn(stacked) + np.cumsum(stacked, axis=0)
    bottoms = tops - stacked

    bands: List[StackedBand | None] = [None] * len(keys)
    for pos, idx in enumerate(stack_order):
        bands[idx] = StackedBand(
            key=keys[idx], index=int(idx), position=pos,
            years=years, baseline=bottoms[pos], topline=tops[pos],
        )
    return bands


def stack_order_keys(bands: List[StackedBand]) -> List[str]:
    """Category names bottom -> top."""
    return [b.key for b in sorted(bands, key=lambda b: b.position)]


# ---------------- Scales ----------------
class LinearScale:
    """Linear map from a numeric domain onto a pixel range."""

    def __init__(self, domain: Tuple[float, float], range_: Tuple[float, float]):
        d0, d1 = float(domain[0]), float(domain[1])
        if d0 == d1:
            raise ValueError(f"Scale domain has zero width: {domain}")
        self.domain = (d0, d1)
        self.range = (float(range_[0]), float(range_[1]))

    def __call__(self, v):
        (d0, d1), (r0, r1) = self.domain, self.range
        return r0 + (np.asarray(v, dtype=float) - d0) * (r1 - r0) / (d1 - d0)

    def __repr__(self) -> str:
        return f"LinearScale(domain={self.domain}, range={self.range})"


def band_extent(bands: List[StackedBand]) -> Tuple[float, float]:
    lo = min(float(np.min(b.baseline)) for b in bands)
    hi = max(float(np.max(b.topline)) for b in bands)
    if lo == hi:
        hi = lo + 1.0
    return lo, hi


# ---------------- Path generation ----------------
def _smooth(years: np.ndarray, vals: np.ndarray, xs: np.ndarray) -> np.ndarray:
    k = min(3, len(years) - 1)
    return make_interp_spline(years, vals, k=k)(xs)


def stack_edges(bands: List[StackedBand], curve: str = "linear") -> Tuple[np.ndarray, np.ndarray]:
    """
    Every boundary of the stack, bottom -> top, shape (n_bands + 1, N).

    Row p is the baseline of the band at position p and row p+1 its topline,
    so neighbouring bands share one edge. With curve="spline" each edge is
    smoothed and then clamped to stay at or above the edge below it.
    Returns (years, edges).
    """
    if curve not in ("linear", "spline"):
        raise ValueError(f"Unknown curve '{curve}'. Use 'linear' or 'spline'.")
    ordered = sorted(bands, key=lambda b: b.position)
    years = np.asarray(ordered[0].years, dtype=float)
    edges = np.vstack([ordered[0].baseline] + [b.topline for b in ordered])
    if curve == "spline" and len(years) >= 2:
        xs = np.linspace(years[0], years[-1], (len(years) - 1) * SPLINE_SAMPLES + 1)
        edges = np.maximum.accumulate(np.vstack([_smooth(years, e, xs) for e in edges]), axis=0)
        years = xs
    return years, edges


def band_outlines(bands: List[StackedBand], x_scale: LinearScale, y_scale: LinearScale,
                  curve: str = "linear") -> Dict[str, np.ndarray]:
    """
    Closed outline of every band in pixel coordinates, each shaped (N, 2).

    Topline left -> right, then baseline right -> left. The first vertex is not
    repeated at the end.
    """
    years, edges = stack_edges(bands, curve)
    px = x_scale(years)
    outlines = {}
    for b in bands:
        top = np.column_stack([px, y_scale(edges[b.position + 1])])
        bottom = np.column_stack([px, y_scale(edges[b.position])])[::-1]
        outlines[b.key] = np.vstack([top, bottom])
    return outlines


# ---------------- Whole layout ----------------
@dataclass(frozen=True)
class StreamLayout:
    categories: List[str]
    colors: Dict[str, str]
    bands: List[StackedBand]
    x_scale: LinearScale
    y_scale: LinearScale
    outlines: Dict[str, np.ndarray]

    def band(self, key: str) -> StackedBand:
        return self.bands[self.categories.index(key)]


def compute_layout(table: pd.DataFrame, config: LayoutConfig = LayoutConfig()) -> StreamLayout:
    """Stack `table`, build both scales and every band outline for `config`."""
    bands = stack_series(table, order=config.order, offset=config.offset)
    categories = category_set(table)
    years = table.index.to_numpy()

    year_lo, year_hi = float(years.min()), float(years.max())
    if year_lo == year_hi:
        year_hi = year_lo + 1.0
    x_scale = LinearScale((year_lo, year_hi), (0, config.width))
    y_domain = config.y_domain if config.y_domain is not None else band_extent(bands)
    y_scale = LinearScale(y_domain, (config.height, 0))

    outlines = band_outlines(bands, x_scale, y_scale, curve=config.curve)
    return StreamLayout(
        categories=categories,
        colors=build_color_map(categories, config.palette),
        bands=bands,
        x_scale=x_scale,
        y_scale=y_scale,
        outlines=outlines,
    )


def layout_to_frame(layout: StreamLayout) -> pd.DataFrame:
    """Tidy table of every (year, category) triple for QA export."""
    rows = []
    for b in layout.bands:
        for yr, lo, hi in zip(b.years, b.baseline, b.topline):
            rows.append((int(yr), b.key, b.position, float(hi - lo), float(lo), float(hi)))
    out = pd.DataFrame(rows, columns=["year", "category", "position", "value", "baseline", "topline"])
    return out.sort_values(["year", "position"]).reset_index(drop=True)
