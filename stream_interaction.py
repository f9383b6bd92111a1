"""
Hover highlighting for the streamgraph.

HoverController is a two-state machine: Idle (nothing hovered) or
Hovering(category). It owns the category set and, once bound, the band
artists and the label text, and restyles them on every transition.
"""

from __future__ import annotations

from typing import Dict, List, NamedTuple, Optional, Union

from matplotlib.patches import Polygon
from matplotlib.text import Text

from stream_shared import LayoutConfig, norm_label

BandId = Union[int, str]


class BandStyle(NamedTuple):
    opacity: float
    stroke: Optional[str]


class HoverController:
    """
    Hover highlighting for the streamgraph bands.

    Two states: Idle (`hovered` is None, every band opaque, label hidden) and
    Hovering one band (that band opaque with a stroke, the rest dimmed to
    `config.dim_opacity`, label showing its name). `on_enter`, `on_move` and
    `on_leave` drive the transitions; the state lives on the instance so it
    can be checked without a figure. `bind` attaches the band patches and
    label so every transition restyles them, and `connect` wires the
    transitions to matplotlib motion and leave events.
    """

    def __init__(self, categories: List[str], config: LayoutConfig = LayoutConfig()):
        self.categories = list(categories)
        self.config = config
        self.hovered: Optional[str] = None
        self.label_text = ""
        self.label_opacity = 0.0
        self._band_artists: Dict[str, Polygon] = {}
        self._label: Optional[Text] = None
        self._figure = None
        self._cids: List[int] = []

    # ---------------- State ----------------
    @property
    def is_idle(self) -> bool:
        return self.hovered is None

    def resolve(self, band_id: BandId) -> str:
        """Map a category-set index or name to the category name."""
        if isinstance(band_id, str):
            if band_id in self.categories:
                return band_id
            match = next((c for c in self.categories if norm_label(c) == norm_label(band_id)), None)
            if match is None:
                raise KeyError(f"Unknown band: {band_id!r}")
            return match
        return self.categories[int(band_id)]

    def band_style(self, category: BandId) -> BandStyle:
        cat = self.resolve(category)
        if self.hovered is None:
            return BandStyle(1.0, None)
        if cat == self.hovered:
            return BandStyle(1.0, self.config.highlight_stroke)
        return BandStyle(self.config.dim_opacity, None)

    # ---------------- Transitions ----------------
    def on_enter(self, band_id: BandId) -> None:
        """Highlight one band and dim the rest; works from Idle or another band."""
        self.hovered = self.resolve(band_id)
        self.label_text = self.hovered
        self.label_opacity = 1.0
        self._apply()

    def on_move(self, band_id: BandId) -> None:
        """Set the label to the band under the pointer; band styles stay as they are."""
        self.label_text = self.resolve(band_id)
        self._apply_label()

    def on_leave(self) -> None:
        """Back to Idle: every band opaque and unstroked, label hidden."""
        self.hovered = None
        self.label_opacity = 0.0
        self._apply()

    # ---------------- Artists ----------------
    def bind(self, band_artists: Dict[str, Polygon], label: Optional[Text] = None) -> "HoverController":
        missing = [c for c in band_artists if c not in self.categories]
        if missing:
            raise KeyError(f"Artists for unknown categories: {missing}")
        self._band_artists = dict(band_artists)
        self._label = label
        self._apply()
        return self

    def _apply_label(self) -> None:
        if self._label is None:
            return
        self._label.set_text(self.label_text)
        self._label.set_alpha(self.label_opacity)
        self._redraw()

    def _apply(self) -> None:
        for cat, patch in self._band_artists.items():
            style = self.band_style(cat)
            patch.set_alpha(style.opacity)
            if style.stroke is None:
                patch.set_edgecolor("none")
                patch.set_linewidth(0.0)
            else:
                patch.set_edgecolor(style.stroke)
                patch.set_linewidth(self.config.highlight_linewidth)
        self._apply_label()
        if self._label is None:
            self._redraw()

    def _redraw(self) -> None:
        if self._figure is not None:
            self._figure.canvas.draw_idle()

    # ---------------- Event wiring ----------------
    def band_at(self, event) -> Optional[str]:
        """Topmost band under the pointer, or None."""
        drawn = sorted(self._band_artists.items(), key=lambda kv: kv[1].get_zorder())
        for cat, patch in reversed(drawn):
            hit, _ = patch.contains(event)
            if hit:
                return cat
        return None

    def handle_motion(self, event) -> None:
        cat = self.band_at(event) if event.inaxes is not None else None
        if cat is None:
            if not self.is_idle:
                self.on_leave()
            return
        if cat != self.hovered:
            self.on_enter(cat)
        self.on_move(cat)

    def handle_leave(self, _event=None) -> None:
        if not self.is_idle:
            self.on_leave()

    def connect(self, figure) -> List[int]:
        """Hook pointer events of `figure` to this controller."""
        self.disconnect()
        self._figure = figure
        canvas = figure.canvas
        self._cids = [
            canvas.mpl_connect("motion_notify_event", self.handle_motion),
            canvas.mpl_connect("axes_leave_event", self.handle_leave),
            canvas.mpl_connect("figure_leave_event", self.handle_leave),
        ]
        return list(self._cids)

    def disconnect(self) -> None:
        if self._figure is not None:
            for cid in self._cids:
                self._figure.canvas.mpl_disconnect(cid)
        self._cids = []
