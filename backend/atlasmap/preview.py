"""Static PNG preview of a layout document.

A quick look at a batch run without the interactive renderer: one dot per
item coloured by its community hue, edges as faint segments, and the primary
label of each community at its centroid.
"""

from __future__ import annotations

import colorsys
import logging
from collections import defaultdict
from pathlib import Path

import matplotlib

matplotlib.use("Agg")
import matplotlib.patheffects as pe
import matplotlib.pyplot as plt
from matplotlib.collections import LineCollection

from atlasmap.models.document import LayoutDocument

logger = logging.getLogger(__name__)

# ── Style ───────────────────────────────────────────────────────────

BG = "#0f0f1a"
EDGE = "#ffffff"
TEXT = "#eee"

stroke = [pe.withStroke(linewidth=3, foreground=BG)]


def hue_to_rgb(hue: float, saturation: float = 0.7, lightness: float = 0.6) -> tuple[float, float, float]:
    """HSL hue in degrees to an RGB triple in [0, 1]."""
    return colorsys.hls_to_rgb((hue % 360) / 360.0, lightness, saturation)


def render_preview(
    document: LayoutDocument,
    out_png: Path | str,
    labels: dict[int, str] | None = None,
    size_inches: float = 12.0,
    max_edges: int = 20000,
) -> Path:
    """Draw ``document`` to ``out_png``; ``labels`` maps community id to a caption."""
    out_png = Path(out_png)
    positions = {item.id: (item.x, item.y) for item in document.items}

    fig, ax = plt.subplots(figsize=(size_inches, size_inches), facecolor=BG)
    ax.set_facecolor(BG)
    ax.set_xlim(0, document.bounds.width)
    # Screen space: y grows downwards
    ax.set_ylim(document.bounds.height, 0)
    ax.set_aspect("equal")
    ax.axis("off")

    # Heaviest edges first when the edge set is too large to draw in full
    edges = sorted(document.edges, key=lambda e: -e[2])[:max_edges]
    segments = [
        (positions[s], positions[t]) for s, t, _ in edges if s in positions and t in positions
    ]
    if segments:
        ax.add_collection(LineCollection(segments, colors=EDGE, linewidths=0.3, alpha=0.08, zorder=1))

    sizes = [4 + min(40.0, item.p / 500.0) for item in document.items]
    ax.scatter(
        [item.x for item in document.items],
        [item.y for item in document.items],
        s=sizes,
        c=[hue_to_rgb(item.h) for item in document.items],
        linewidths=0,
        zorder=2,
    )

    if labels:
        members: dict[int, list[tuple[int, int]]] = defaultdict(list)
        for item in document.items:
            members[item.c].append((item.x, item.y))
        for cid, points in members.items():
            if cid not in labels:
                continue
            cx = sum(p[0] for p in points) / len(points)
            cy = sum(p[1] for p in points) / len(points)
            ax.text(cx, cy, labels[cid], color=TEXT, fontsize=9, ha="center", va="center",
                    path_effects=stroke, zorder=3)

    out_png.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(str(out_png), dpi=100, facecolor=BG)
    plt.close(fig)
    logger.info("Wrote preview of %d items to %s", len(document.items), out_png)
    return out_png
