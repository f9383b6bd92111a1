"""Tests for streamgraph rendering and the command-line pipeline."""
from __future__ import annotations

import matplotlib
matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import pytest
from matplotlib.colors import to_rgba

from stream_layout import compute_layout
from stream_plots import render_streamgraph, save_streamgraph
from stream_shared import PRESETS, LayoutConfig
import ucenrollment_main

TICKS = [1961, 1970, 1980, 1990, 2000, 2009]


def wide_table(first=1950, last=2020, n_cats=4):
    years = np.arange(first, last + 1)
    rng = np.random.default_rng(7)
    vals = rng.uniform(1000, 20000, size=(len(years), n_cats))
    return pd.DataFrame(vals, columns=[f"C{i}" for i in range(n_cats)],
                        index=pd.Index(years, name="year"))


@pytest.fixture
def drawn():
    config = LayoutConfig()
    layout = compute_layout(wide_table(), config)
    fig, ax, artists, label = render_streamgraph(layout, config)
    yield config, layout, fig, ax, artists, label
    plt.close(fig)


def test_surface_size_matches_config(drawn):
    config, layout, fig, *_ = drawn
    w, h = fig.get_size_inches() * fig.dpi
    assert (round(w), round(h)) == (config.outer_width, config.outer_height)


def test_axis_ticks_are_fixed_regardless_of_data(drawn):
    config, layout, fig, ax, *_ = drawn
    fig.canvas.draw()
    np.testing.assert_allclose(ax.get_xticks(), layout.x_scale(TICKS))
    assert [t.get_text() for t in ax.get_xticklabels()] == [str(t) for t in TICKS]


def test_axis_line_sits_at_tick_fraction(drawn):
    config, layout, fig, ax, *_ = drawn
    assert ax.spines["bottom"].get_position() == ("data", config.height * config.tick_y_fraction)
    assert not ax.spines["bottom"].get_visible()


def test_one_filled_band_per_category(drawn):
    config, layout, fig, ax, artists, label = drawn
    assert list(artists) == layout.categories
    for cat, patch in artists.items():
        assert patch.get_facecolor() == pytest.approx(to_rgba(layout.colors[cat]))
        assert patch.get_linewidth() == 0.0
        np.testing.assert_allclose(patch.get_xy()[: len(layout.outlines[cat])], layout.outlines[cat])


def test_label_starts_hidden(drawn):
    config, layout, fig, ax, artists, label = drawn
    assert label.get_alpha() == 0.0
    assert label.get_position() == config.label_anchor


def test_save_png_and_svg(drawn, tmp_path):
    *_, fig, ax, artists, label = drawn
    png = save_streamgraph(fig, tmp_path / "nested" / "stream.png")
    svg = save_streamgraph(fig, tmp_path / "stream.svg")
    assert png.exists() and png.stat().st_size > 0
    assert svg.read_text(encoding="utf-8").lstrip().startswith("<?xml")


def test_compact_preset_renders(tmp_path):
    config = PRESETS["compact"]
    layout = compute_layout(wide_table(1961, 2009), config)
    fig, ax, artists, label = render_streamgraph(layout, config)
    try:
        assert ax.get_xlim() == (0.0, float(config.width))
        assert ax.get_ylim() == (float(config.height), 0.0)
    finally:
        plt.close(fig)


# ---------------- CLI ----------------
def write_csv(tmp_path):
    table = wide_table(1961, 2009, n_cats=9)
    path = tmp_path / "ucenrollmentdata.csv"
    table.round(0).reset_index().to_csv(path, index=False)
    return path


def test_main_writes_image_and_layout_csv(tmp_path, capsys):
    src = write_csv(tmp_path)
    out_png = tmp_path / "out" / "stream.png"
    out_csv = tmp_path / "out" / "layout.csv"
    code = ucenrollment_main.main([
        "--input", str(src), "--out", str(out_png), "--layout-csv", str(out_csv),
        "--preset", "compact", "--curve", "spline",
    ])
    assert code == 0
    assert out_png.exists()
    frame = pd.read_csv(out_csv)
    assert len(frame) == 49 * 9
    assert "[OK] Saved" in capsys.readouterr().out


def test_main_reports_missing_input(tmp_path, capsys):
    code = ucenrollment_main.main(["--input", str(tmp_path / "missing.csv"),
                                   "--out", str(tmp_path / "x.png")])
    assert code == 1
    assert "[ERROR]" in capsys.readouterr().out
    assert not (tmp_path / "x.png").exists()


@pytest.mark.parametrize("name, text", [
    ("empty.csv", ""),
    ("ragged.csv", 'year,A\n1961,"1\n'),
    ("bad.csv", "year,A\n1961,1\n1961,2\n"),
])
def test_main_reports_unreadable_input(tmp_path, capsys, name, text):
    src = tmp_path / name
    src.write_text(text, encoding="utf-8")
    code = ucenrollment_main.main(["--input", str(src), "--out", str(tmp_path / "x.png")])
    assert code == 1
    assert "[ERROR]" in capsys.readouterr().out
    assert not (tmp_path / "x.png").exists()


def test_main_reports_missing_sheet(tmp_path, capsys):
    src = tmp_path / "enrollment.xlsx"
    wide_table(1961, 1965).reset_index().to_excel(src, sheet_name="Enrollment", index=False, engine="openpyxl")
    code = ucenrollment_main.main(["--input", str(src), "--sheet", "Missing",
                                   "--out", str(tmp_path / "x.png")])
    assert code == 1
    assert "[ERROR]" in capsys.readouterr().out
    assert not (tmp_path / "x.png").exists()


def test_config_from_args_overrides():
    args = ucenrollment_main.build_parser().parse_args(
        ["--order", "none", "--offset", "silhouette", "--auto-ydomain"])
    config = ucenrollment_main.config_from_args(args)
    assert config.order == "none"
    assert config.offset == "silhouette"
    assert config.y_domain is None
    assert config.outer_width == PRESETS["full"].outer_width
