from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Tuple
import io
import logging
import math
import os

import numpy as np
import matplotlib.pyplot as plt
from matplotlib import colors as mcolors
from matplotlib import patches
from matplotlib.path import Path as MplPath
from PIL import Image

from plotting.surface import (
    Circle,
    Ellipse,
    Line,
    Path,
    Polygon,
    RadialGradient,
    RenderSurface,
    Text,
)

logger = logging.getLogger(__name__)

ARC_SAMPLES = 48
GRADIENT_RINGS = 32
_HALIGN = {"start": "left", "middle": "center", "end": "right"}
_VALIGN = {"hanging": "top", "middle": "center", "central": "center", "baseline": "baseline", "auto": "baseline"}


# ---- Style translation ----

def _rgba(color: Any, alpha: float) -> Any:
    if color is None or color == "none":
        return "none"
    return mcolors.to_rgba(color, alpha=max(0.0, min(1.0, float(alpha))))


def _dashes(style: Dict[str, Any], width: float) -> Any:
    dash = style.get("stroke_dasharray")
    if not dash:
        return "solid"
    parts = [float(v) for v in str(dash).replace(",", " ").split()]
    if not parts or width <= 0:
        return "solid"
    # matplotlib dash lengths are multiples of the line width
    return (0, tuple(v / width for v in parts))


def _patch_kwargs(style: Dict[str, Any], px: float, default_fill: Any = "none") -> Dict[str, Any]:
    opacity = float(style.get("opacity", 1.0))
    fill_alpha = opacity * float(style.get("fill_opacity", 1.0))
    stroke_alpha = opacity * float(style.get("stroke_opacity", 1.0))
    width = float(style.get("stroke_width", 1.0 if style.get("stroke") else 0.0))
    return {
        "facecolor": _rgba(style.get("fill", default_fill), fill_alpha),
        "edgecolor": _rgba(style.get("stroke"), stroke_alpha),
        "linewidth": width * px,
        "linestyle": _dashes(style, width),
    }


def _gradient_id(fill: Any) -> Optional[str]:
    if isinstance(fill, str) and fill.startswith("url(#") and fill.endswith(")"):
        return fill[5:-1]
    return None


# ---- Path commands ----

def arc_center(x1: float, y1: float, rx: float, ry: float, phi_deg: float,
               large_arc: int, sweep: int, x2: float, y2: float) -> Optional[Tuple[float, float, float, float, float, float]]:
    """
    Endpoint-to-centre conversion for an SVG elliptical arc.
    Returns (cx, cy, rx, ry, theta1, dtheta) in radians, or None for a
    degenerate arc (zero radius or coincident endpoints).
    """
    if (x1 == x2 and y1 == y2) or rx == 0 or ry == 0:
        return None
    rx, ry = abs(rx), abs(ry)
    phi = math.radians(phi_deg)
    c, s = math.cos(phi), math.sin(phi)
    dx, dy = (x1 - x2) / 2.0, (y1 - y2) / 2.0
    x1p = c * dx + s * dy
    y1p = -s * dx + c * dy
    lam = (x1p / rx) ** 2 + (y1p / ry) ** 2
    if lam > 1.0:
        rx, ry = rx * math.sqrt(lam), ry * math.sqrt(lam)
    num = rx * rx * ry * ry - rx * rx * y1p * y1p - ry * ry * x1p * x1p
    den = rx * rx * y1p * y1p + ry * ry * x1p * x1p
    coef = math.sqrt(max(0.0, num / den)) if den else 0.0
    if large_arc == sweep:
        coef = -coef
    cxp = coef * rx * y1p / ry
    cyp = -coef * ry * x1p / rx
    cx = c * cxp - s * cyp + (x1 + x2) / 2.0
    cy = s * cxp + c * cyp + (y1 + y2) / 2.0

    def _angle(ux: float, uy: float, vx: float, vy: float) -> float:
        return math.atan2(ux * vy - uy * vx, ux * vx + uy * vy)

    ux, uy = (x1p - cxp) / rx, (y1p - cyp) / ry
    vx, vy = (-x1p - cxp) / rx, (-y1p - cyp) / ry
    theta1 = _angle(1.0, 0.0, ux, uy)
    dtheta = _angle(ux, uy, vx, vy)
    if not sweep and dtheta > 0:
        dtheta -= 2.0 * math.pi
    elif sweep and dtheta < 0:
        dtheta += 2.0 * math.pi
    return cx, cy, rx, ry, theta1, dtheta


def _arc_points(x1: float, y1: float, command: Sequence[Any]) -> List[Tuple[float, float]]:
    _, rx, ry, phi, large_arc, sweep, x2, y2 = command
    solved = arc_center(x1, y1, float(rx), float(ry), float(phi), int(large_arc), int(sweep), float(x2), float(y2))
    if solved is None:
        return [(float(x2), float(y2))]
    cx, cy, rx, ry, theta1, dtheta = solved
    c, s = math.cos(math.radians(float(phi))), math.sin(math.radians(float(phi)))
    ts = theta1 + dtheta * np.linspace(0.0, 1.0, ARC_SAMPLES)[1:]
    ex, ey = rx * np.cos(ts), ry * np.sin(ts)
    return list(zip((cx + c * ex - s * ey).tolist(), (cy + s * ex + c * ey).tolist()))


def path_to_mpl(commands: Sequence[Sequence[Any]]) -> MplPath:
    """
    Translate M/L/Q/A/Z command tuples into a matplotlib Path.
    Arcs are sampled into line segments.
    """
    verts: List[Tuple[float, float]] = []
    codes: List[int] = []
    current = (0.0, 0.0)
    start = (0.0, 0.0)
    for cmd in commands:
        op = cmd[0]
        if op == "M":
            current = start = (float(cmd[1]), float(cmd[2]))
            verts.append(current)
            codes.append(MplPath.MOVETO)
        elif op == "L":
            current = (float(cmd[1]), float(cmd[2]))
            verts.append(current)
            codes.append(MplPath.LINETO)
        elif op == "Q":
            verts.extend([(float(cmd[1]), float(cmd[2])), (float(cmd[3]), float(cmd[4]))])
            codes.extend([MplPath.CURVE3, MplPath.CURVE3])
            current = verts[-1]
        elif op == "A":
            pts = _arc_points(current[0], current[1], cmd)
            verts.extend(pts)
            codes.extend([MplPath.LINETO] * len(pts))
            current = pts[-1]
        elif op == "Z":
            verts.append(start)
            codes.append(MplPath.CLOSEPOLY)
            current = start
        else:
            raise ValueError(f"Unknown path command {op!r}")
    return MplPath(verts, codes)


# ---- Gradients ----

def _gradient_colors(gradient: RadialGradient, ts: np.ndarray, opacity: float) -> List[Tuple[float, float, float, float]]:
    offsets = np.array([s.offset for s in gradient.stops], dtype=float)
    rgba = np.array([mcolors.to_rgba(s.color, alpha=s.opacity) for s in gradient.stops], dtype=float)
    channels = [np.interp(ts, offsets, rgba[:, k]) for k in range(4)]
    out = np.stack(channels, axis=1)
    out[:, 3] *= opacity
    return [tuple(row) for row in out]


def _draw_gradient(ax, clip: patches.Patch, gradient: RadialGradient,
                   x0: float, y0: float, w: float, h: float, opacity: float, zorder: float) -> None:
    # Object-bounding-box units: centre and radius are fractions of the shape's box.
    fx, fy = x0 + gradient.cx * w, y0 + gradient.cy * h
    ts = np.linspace(1.0, 0.0, GRADIENT_RINGS)
    for t, color in zip(ts, _gradient_colors(gradient, ts, opacity)):
        ring = patches.Ellipse((fx, fy), 2.0 * max(t, 1e-3) * gradient.r * w, 2.0 * max(t, 1e-3) * gradient.r * h,
                               facecolor=color, edgecolor="none", zorder=zorder)
        ax.add_patch(ring)
        ring.set_clip_path(clip)


# ---- Primitive drawing ----

def _add_patch(ax, surface: RenderSurface, patch: patches.Patch, style: Dict[str, Any],
               bbox: Tuple[float, float, float, float], px: float, zorder: float) -> None:
    gradient_id = _gradient_id(style.get("fill"))
    if gradient_id is None:
        patch.update(_patch_kwargs(style, px, default_fill="#000000"))
        patch.set_zorder(zorder)
        ax.add_patch(patch)
        return
    gradient = surface.definition(gradient_id)
    kwargs = _patch_kwargs({**style, "fill": "none"}, px)
    patch.update(kwargs)
    patch.set_zorder(zorder + 0.5)
    ax.add_patch(patch)
    if gradient is None:
        logger.warning("Fill references undefined gradient %r", gradient_id)
        return
    opacity = float(style.get("opacity", 1.0)) * float(style.get("fill_opacity", 1.0))
    _draw_gradient(ax, patch, gradient, *bbox, opacity=opacity, zorder=zorder)


def _draw_text(ax, prim: Text, px: float, zorder: float) -> None:
    style = prim.style
    family = [f.strip() for f in str(style.get("font_family", "sans-serif")).split(",") if f.strip()]
    ax.text(
        prim.x, prim.y, prim.text,
        rotation=-prim.rotation,  # y axis is inverted
        rotation_mode="anchor",
        ha=_HALIGN.get(prim.anchor, "center"),
        va=_VALIGN.get(prim.baseline, "center"),
        fontsize=float(style.get("font_size", 12)) * px,
        fontweight=style.get("font_weight", "normal"),
        family=family,
        color=_rgba(style.get("fill", "#000000"), float(style.get("opacity", 1.0))),
        zorder=zorder,
    )


def draw_surface_on_axis(ax, surface: RenderSurface, width: Optional[float] = None,
                         height: Optional[float] = None, px: float = 1.0) -> None:
    """
    Draw every primitive of `surface` onto a matplotlib axis in order.

    The axis is given SVG orientation (y grows downward). When width/height
    are omitted the view is fitted to the drawn data. `px` converts surface
    units to points for line widths and font sizes.
    """
    for z, prim in enumerate(surface):
        if isinstance(prim, Line):
            width_px = float(prim.style.get("stroke_width", 1.0))
            alpha = float(prim.style.get("opacity", 1.0)) * float(prim.style.get("stroke_opacity", 1.0))
            ax.plot([prim.x1, prim.x2], [prim.y1, prim.y2],
                    color=_rgba(prim.style.get("stroke", "#000000"), alpha),
                    linewidth=width_px * px, linestyle=_dashes(prim.style, width_px),
                    solid_capstyle="butt", zorder=z)
        elif isinstance(prim, Polygon):
            pts = np.asarray(prim.points, dtype=float)
            if pts.shape[0] < 2:
                continue
            (x0, y0), (x1, y1) = pts.min(axis=0), pts.max(axis=0)
            _add_patch(ax, surface, patches.Polygon(pts, closed=True), prim.style,
                       (x0, y0, x1 - x0, y1 - y0), px, z)
        elif isinstance(prim, Circle):
            _add_patch(ax, surface, patches.Circle((prim.cx, prim.cy), prim.r), prim.style,
                       (prim.cx - prim.r, prim.cy - prim.r, 2 * prim.r, 2 * prim.r), px, z)
        elif isinstance(prim, Ellipse):
            patch = patches.Ellipse((prim.cx, prim.cy), 2 * prim.rx, 2 * prim.ry, angle=prim.rotation)
            _add_patch(ax, surface, patch, prim.style,
                       (prim.cx - prim.rx, prim.cy - prim.ry, 2 * prim.rx, 2 * prim.ry), px, z)
        elif isinstance(prim, Path):
            if not prim.commands:
                continue
            mpl_path = path_to_mpl(prim.commands)
            (x0, y0), (x1, y1) = mpl_path.vertices.min(axis=0), mpl_path.vertices.max(axis=0)
            style = {"fill": "none", **prim.style}
            _add_patch(ax, surface, patches.PathPatch(mpl_path), style, (x0, y0, x1 - x0, y1 - y0), px, z)
        elif isinstance(prim, Text):
            _draw_text(ax, prim, px, z)
        else:
            logger.debug("Skipping unknown primitive %r", type(prim).__name__)

    ax.set_aspect("equal")
    if width is not None and height is not None:
        ax.set_xlim(0, width)
        ax.set_ylim(height, 0)
    else:
        ax.autoscale_view()
        if not ax.yaxis_inverted():
            ax.invert_yaxis()
    ax.axis("off")


def _figure_for(surface: RenderSurface, width: float, height: float, dpi: float, background: str):
    fig = plt.figure(figsize=(width / dpi, height / dpi), dpi=dpi)
    ax = fig.add_axes([0.0, 0.0, 1.0, 1.0])
    fig.patch.set_facecolor(background)
    # one surface unit = one output pixel
    draw_surface_on_axis(ax, surface, width=width, height=height, px=72.0 / dpi)
    return fig


def render_to_file(
    surface: RenderSurface,
    out_path: str,
    width: float = 400.0,
    height: float = 300.0,
    dpi: float = 100.0,
    format: Optional[str] = None,
    background: str = "white",
) -> None:
    """
    Preview a surface as PNG/SVG/PDF via matplotlib. The format follows the
    file extension unless given explicitly.
    """
    fmt = format or os.path.splitext(out_path)[1].lstrip(".").lower() or "png"
    directory = os.path.dirname(out_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    fig = _figure_for(surface, width, height, dpi, background)
    fig.savefig(out_path, format=fmt, dpi=dpi, facecolor=background)
    plt.close(fig)
    logger.info("Wrote %s", out_path)


def render_to_image(
    surface: RenderSurface,
    width: float = 400.0,
    height: float = 300.0,
    dpi: float = 100.0,
    background: str = "white",
) -> Image.Image:
    """
    In-memory PNG render of a surface, returned as a PIL image.
    """
    fig = _figure_for(surface, width, height, dpi, background)
    buffer = io.BytesIO()
    fig.savefig(buffer, format="png", dpi=dpi, facecolor=background)
    plt.close(fig)
    buffer.seek(0)
    image = Image.open(buffer)
    image.load()
    return image
