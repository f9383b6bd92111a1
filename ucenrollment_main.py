#!/usr/bin/env python3
"""
UC Undergraduate Enrollment Streamgraph

Builds a streamgraph of University of California undergraduate enrollment by
campus (1961-2009, all campuses except UCSF).

FLOW
1) LOAD: read the year x campus table (CSV, or .xlsx via openpyxl).
2) LAYOUT: inside-out stacking order + wiggle baseline, pixel outlines per band.
3) RENDER: draw bands, year axis and labels with matplotlib.
4) SAVE: write the image (png/svg/pdf by suffix) and optionally the layout CSV.
   With --show, open a window where hovering a band highlights it.

USAGE
  python ucenrollment_main.py \
      --input data/ucenrollmentdata.csv \
      --preset full \
      --out output/ucenrollment_streamgraph.png

Data source: https://accountability.universityofcalifornia.edu/2010/index/1
"""

from __future__ import annotations

import argparse
import dataclasses
import sys
from pathlib import Path

import matplotlib.pyplot as plt
import pandas as pd

from stream_interaction import HoverController
from stream_layout import ORDER_POLICIES, OFFSET_POLICIES, compute_layout, layout_to_frame, stack_order_keys
from stream_plots import render_streamgraph, save_streamgraph
from stream_shared import DATA_FILE, DEFAULT_OUT, PRESETS, get_preset, load_series_table


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Streamgraph of UC undergraduate enrollment by campus.")
    p.add_argument("--input", default=str(DATA_FILE), help=f"Path to CSV/XLSX table (default: {DATA_FILE})")
    p.add_argument("--sheet", default=None, help="Worksheet name for .xlsx input (default: first sheet)")
    p.add_argument("--preset", choices=sorted(PRESETS), default="full", help="Surface size preset (default: full)")
    p.add_argument("--order", choices=sorted(ORDER_POLICIES), default=None, help="Stacking order policy")
    p.add_argument("--offset", choices=sorted(OFFSET_POLICIES), default=None, help="Baseline offset policy")
    p.add_argument("--curve", choices=["linear", "spline"], default=None, help="Band edge interpolation")
    p.add_argument("--auto-ydomain", action="store_true",
                   help="Fit the value axis to the stacked extent instead of the fixed +/-100,000")
    p.add_argument("--out", default=str(DEFAULT_OUT), help=f"Output image path (default: {DEFAULT_OUT})")
    p.add_argument("--layout-csv", default=None, help="Optional CSV of computed baseline/topline per year and campus")
    p.add_argument("--show", action="store_true", help="Open an interactive window with hover highlighting")
    return p


def config_from_args(args):
    config = get_preset(args.preset)
    overrides = {k: getattr(args, k) for k in ("order", "offset", "curve") if getattr(args, k)}
    if args.auto_ydomain:
        overrides["y_domain"] = None
    return dataclasses.replace(config, **overrides) if overrides else config


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    config = config_from_args(args)

    print("=" * 60)
    print("UC Undergraduate Enrollment Streamgraph")
    print("=" * 60)

    print("\n[1/4] Loading data...")
    try:
        table = load_series_table(Path(args.input), sheet=args.sheet)
    except (FileNotFoundError, ValueError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        print(f"[ERROR] {e}")
        return 1
    print(f"  Loaded {len(table)} years x {table.shape[1]} campuses")
    print(f"  Years available: {table.index.min()} to {table.index.max()}")

    print("\n[2/4] Computing layout...")
    layout = compute_layout(table, config)
    print(f"  Order ({config.order}), bottom -> top: {', '.join(stack_order_keys(layout.bands))}")
    print(f"  Offset: {config.offset} | curve: {config.curve} | surface: {config.outer_width}x{config.outer_height}px")

    print("\n[3/4] Rendering...")
    fig, ax, band_artists, label = render_streamgraph(layout, config)
    controller = HoverController(layout.categories, config).bind(band_artists, label)

    print("\n[4/4] Saving...")
    save_streamgraph(fig, Path(args.out))
    if args.layout_csv:
        out_csv = Path(args.layout_csv)
        out_csv.parent.mkdir(parents=True, exist_ok=True)
        layout_to_frame(layout).to_csv(out_csv, index=False)
        print(f"[OK] Saved {out_csv}")

    if args.show:
        controller.connect(fig)
        plt.show()
    else:
        plt.close(fig)
    return 0


if __name__ == "__main__":
    sys.exit(main())
