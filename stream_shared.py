from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

# ---------------- Paths ----------------
DATA_DIR = Path("./data")
OUTPUT_DIR = Path("./output")
DATA_FILE = DATA_DIR / "ucenrollmentdata.csv"
DEFAULT_OUT = OUTPUT_DIR / "ucenrollment_streamgraph.png"

# ---------------- Palette ----------------
# ColorBrewer RdPu, 9 classes (light -> dark); reused cyclically past 9 categories
RDPU_9 = [
    "#fff7f3", "#fde0dd", "#fcc5c0", "#fa9fb5", "#f768a1",
    "#dd3497", "#ae017e", "#7a0177", "#49006a",
]

BG = "#1b1b1b"
TICK_COLOR = "#b8b8b8"
TEXT_COLOR = "white"
HIGHLIGHT_STROKE = "#121212"

# Year column names accepted by the loader (case-insensitive)
YEAR_KEYS = ("year",)


class SchemaMismatchError(ValueError):
    """Raised when an input table does not have the year + categories layout."""


# ---------------- Layout configuration ----------------
@dataclass(frozen=True)
class Margin:
    top: int = 20
    right: int = 30
    bottom: int = 0
    left: int = 80


@dataclass(frozen=True)
class LayoutConfig:
    """
    Everything that shapes one streamgraph render.

    outer_width/outer_height are the full surface in pixels; the drawing area
    (width/height) is what remains inside the margins. tick_y_fraction places
    the year axis as a fraction of the drawing height, measured from the top.
    """
    outer_width: int = 1060
    outer_height: int = 800
    margin: Margin = field(default_factory=Margin)
    tick_values: Tuple[int, ...] = (1961, 1970, 1980, 1990, 2000, 2009)
    tick_y_fraction: float = 0.98
    tick_size_fraction: float = 1.7
    y_domain: Optional[Tuple[float, float]] = (-100000.0, 100000.0)
    order: str = "inside_out"
    offset: str = "wiggle"
    curve: str = "linear"
    palette: Tuple[str, ...] = tuple(RDPU_9)
    dim_opacity: float = 0.2
    highlight_stroke: str = HIGHLIGHT_STROKE
    highlight_linewidth: float = 1.0
    label_anchor: Tuple[float, float] = (5.0, 0.0)
    label_font_px: float = 20.0
    axis_title: str = "Time (year)"

    @property
    def width(self) -> int:
        return self.outer_width - self.margin.left - self.margin.right

    @property
    def height(self) -> int:
        return self.outer_height - self.margin.top - self.margin.bottom


PRESETS: Dict[str, LayoutConfig] = {
    "full": LayoutConfig(),
    "compact": LayoutConfig(outer_width=760, outer_height=560, tick_y_fraction=0.96),
}


def get_preset(name: str) -> LayoutConfig:
    try:
        return PRESETS[name]
    except KeyError:
        raise ValueError(f"Unknown preset '{name}'. Available: {sorted(PRESETS)}") from None


# ---------------- Loaders ----------------
def find_year_column(df: pd.DataFrame) -> str:
    name_map = {str(c).strip().lower(): c for c in df.columns}
    for key in YEAR_KEYS:
        if key in name_map:
            return name_map[key]
    raise SchemaMismatchError(f"Could not find a year column. Found columns: {list(df.columns)[:20]}")


def _to_number(series: pd.Series) -> pd.Series:
    if not pd.api.types.is_numeric_dtype(series):
        series = series.astype(str).str.replace(",", "", regex=False).str.strip()
    return pd.to_numeric(series, errors="coerce")


def validate_series_table(raw: pd.DataFrame) -> pd.DataFrame:
    """
    Turn a raw (year, category...) frame into a Series Table.

    Returns a float DataFrame indexed by integer year (ascending), one column per
    category in file order. Raises SchemaMismatchError when any row is missing
    a category value, a value is non-numeric or negative, or years repeat.
    """
    raw = raw.loc[:, ~raw.columns.duplicated()].copy()
    raw.columns = [str(c).strip() for c in raw.columns]
    raw = raw.dropna(how="all")
    ycol = find_year_column(raw)
    categories = [c for c in raw.columns if c != ycol and not c.lower().startswith("unnamed:")]
    if not categories:
        raise SchemaMismatchError("Table has a year column but no category columns.")
    if raw.empty:
        raise SchemaMismatchError("Table has no rows.")

    years = _to_number(raw[ycol])
    if years.isna().any() or not np.all(np.mod(years, 1) == 0):
        bad = raw.loc[years.isna() | (np.mod(years.fillna(0), 1) != 0), ycol].tolist()
        raise SchemaMismatchError(f"Non-integer year values: {bad[:10]}")
    if years.duplicated().any():
        raise SchemaMismatchError(f"Duplicate years: {sorted(set(years[years.duplicated()].astype(int)))}")

    values = pd.DataFrame({c: _to_number(raw[c]) for c in categories})
    bad_cols = [c for c in categories if values[c].isna().any()]
    if bad_cols:
        raise SchemaMismatchError(f"Missing or non-numeric values in columns: {bad_cols}")
    inf_cols = [c for c in categories if (~np.isfinite(values[c])).any()]
    if inf_cols:
        raise SchemaMismatchError(f"Infinite values in columns: {inf_cols}")
    neg_cols = [c for c in categories if (values[c] < 0).any()]
    if neg_cols:
        raise SchemaMismatchError(f"Negative values in columns: {neg_cols}")

    values.index = pd.Index(years.astype(int).to_numpy(), name="year")
    return values.astype(float).sort_index()


def load_series_table(path: Path, sheet: str | int | None = None) -> pd.DataFrame:
    """Read a CSV (or .xlsx via openpyxl) and validate it into a Series Table."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Data file not found: {path}")
    suffix = path.suffix.lower()
    if suffix in (".xlsx", ".xlsm"):
        raw = pd.read_excel(path, sheet_name=sheet if sheet is not None else 0, engine="openpyxl")
    else:
        raw = pd.read_csv(path, sep="\t" if suffix in (".tsv", ".tab") else ",")
    return validate_series_table(raw)


def category_set(table: pd.DataFrame) -> List[str]:
    return [str(c) for c in table.columns]


# ---------------- Color map ----------------
def build_color_map(categories: List[str], palette: Tuple[str, ...] | List[str] = tuple(RDPU_9)) -> Dict[str, str]:
    palette = list(palette)
    if not palette:
        raise ValueError("Palette must contain at least one color.")
    return {cat: palette[i % len(palette)] for i, cat in enumerate(categories)}


def px_to_pt(px: float, dpi: float = 100.0) -> float:
    return px * 72.0 / dpi


def norm_label(s: str) -> str:
    return re.sub(r"\s+", " ", str(s or "").strip()).lower()
