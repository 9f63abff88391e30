from __future__ import annotations

import argparse
import logging
import os
from typing import Callable, Dict

import numpy as np

from plotting.diagram import Diagram
from plotting.renderer import render_to_file
from shapes import (
    Arc,
    Chord,
    Circle,
    CompositeOperation,
    CompositeShape,
    Cone,
    Cylinder,
    IrregularPolygon,
    Pyramid,
    Rectangle,
    Reflection,
    ReflectionAxis,
    RectangularPrism,
    RegularPolygon,
    Sector,
    Sphere,
    Tangent,
    Triangle,
    apply_transformation,
)

logger = logging.getLogger(__name__)

_LOGGER_CONFIGURED = False


def setup_logging(level: int = logging.INFO) -> None:
    """Console logging for the demo script; later calls are no-ops."""
    global _LOGGER_CONFIGURED
    if _LOGGER_CONFIGURED:
        return
    root = logging.getLogger()
    root.setLevel(level)
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    root.addHandler(handler)
    _LOGGER_CONFIGURED = True


# ---- Sample diagrams ----

def rectangle_diagram(d: Diagram, rng: np.random.Generator) -> Diagram:
    rect = Rectangle.from_length_width(160, 90)
    rect.add_measurement("width").add_measurement("height").add_measurement("diagonal", offset=0)
    d.add(rect).center(rect)
    return d


def triangle_diagram(d: Diagram, rng: np.random.Generator) -> Diagram:
    tri = Triangle.right_triangle(150, 110)
    tri.add_measurement("base").add_measurement("height").add_measurement("side1", offset=30)
    d.add(tri).center(tri)
    return d


def circle_diagram(d: Diagram, rng: np.random.Generator) -> Diagram:
    circle = Circle(80).show_center()
    circle.add_measurement("radius", angle=-30).add_measurement("circumference")
    d.add(circle).center(circle)
    return d


def polygon_diagram(d: Diagram, rng: np.random.Generator) -> Diagram:
    hexagon = RegularPolygon.hexagon(60, x=110, y=150)
    hexagon.add_measurement("side").add_measurement("area")
    blob = IrregularPolygon(rng=rng, x=300, y=150).set_show_vertex_labels()
    blob.add_measurement("side", side_index=2).add_measurement("perimeter")
    return d.add(hexagon).add(blob)


def composite_diagram(d: Diagram, rng: np.random.Generator) -> Diagram:
    group = CompositeShape()
    group.add_shape(Rectangle(180, 120))
    group.add_shape(Circle(40, x=50, y=20), CompositeOperation.SUBTRACT)
    group.add_shape(Rectangle(60, 60, x=130, y=70), CompositeOperation.INTERSECT)
    group.add_measurement("width").add_measurement("height")
    d.add(group).center(group)
    return d


def circle_parts_diagram(d: Diagram, rng: np.random.Generator) -> Diagram:
    arc = Arc(50, 200, 340, x=80, y=160)
    arc.add_measurement("arc-length").add_measurement("central-angle")
    sector = Sector(50, 0, 120, x=200, y=140)
    sector.add_measurement("sector-area")
    chord = Chord(50, 20, 140, x=320, y=140)
    chord.add_measurement("chord-length")
    tangent = Tangent(40, angle=45, length=90, x=200, y=250)
    return d.add(arc).add(sector).add(chord).add(tangent)


def transform_diagram(d: Diagram, rng: np.random.Generator) -> Diagram:
    tri = Triangle(100, 80, x=70, y=60)
    mirrored = apply_transformation(tri, Reflection(ReflectionAxis.LINE, m=0.0, b=150.0))
    mirrored.set_style(fill="#e67e22", stroke="#d35400")
    return d.add(tri).add(mirrored)


def prism_diagram(d: Diagram, rng: np.random.Generator) -> Diagram:
    prism = RectangularPrism(120, 80, 90)
    for kind in ("width", "height", "depth"):
        prism.add_measurement(kind)
    d.add(prism).center(prism)
    return d


def pyramid_diagram(d: Diagram, rng: np.random.Generator) -> Diagram:
    pyramid = Pyramid(100, 120, x=120, y=220)
    pyramid.add_measurement("base").add_measurement("height")
    cone = Cone(45, 110, x=300, y=220).set_projection("isometric", angle=20)
    cone.add_measurement("slant-height")
    return d.add(pyramid).add(cone)


def round_solids_diagram(d: Diagram, rng: np.random.Generator) -> Diagram:
    cylinder = Cylinder(45, 110, x=120, y=220)
    cylinder.add_measurement("radius").add_measurement("height")
    sphere = Sphere(60, x=300, y=150)
    sphere.add_measurement("radius").add_measurement("volume")
    return d.add(cylinder).add(sphere)


DIAGRAMS: Dict[str, Callable[[Diagram, np.random.Generator], Diagram]] = {
    "rectangle": rectangle_diagram,
    "triangle": triangle_diagram,
    "circle": circle_diagram,
    "polygons": polygon_diagram,
    "composite": composite_diagram,
    "circle_parts": circle_parts_diagram,
    "transform": transform_diagram,
    "prism": prism_diagram,
    "pyramid": pyramid_diagram,
    "round_solids": round_solids_diagram,
}


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Render sample geometry diagrams with measurements.")
    p.add_argument("names", nargs="*", default=sorted(DIAGRAMS), help="diagrams to render (default: all)")
    p.add_argument("--outdir", type=str, default="plots/diagrams", help="output directory")
    p.add_argument("--format", type=str, default="png", choices=["png", "svg", "pdf"], help="output format")
    p.add_argument("--width", type=float, default=400.0, help="canvas width (default: 400)")
    p.add_argument("--height", type=float, default=300.0, help="canvas height (default: 300)")
    p.add_argument("--units", type=str, default="units", help="unit word used in labels")
    p.add_argument("--no-measurements", action="store_true", help="draw shapes only")
    p.add_argument("--hidden-edges", action="store_true", help="dash edges hidden behind solids")
    p.add_argument("--seed", type=int, default=42, help="seed for random polygons")
    p.add_argument("--log-level", type=str, default="INFO", help="logging level (default: INFO)")
    return p.parse_args()


def main() -> None:
    args = parse_args()
    setup_logging(getattr(logging, args.log_level.upper(), logging.INFO))
    unknown = [n for n in args.names if n not in DIAGRAMS]
    if unknown:
        raise ValueError(f"Unknown diagram(s): {', '.join(unknown)}. Choose from {', '.join(sorted(DIAGRAMS))}.")
    os.makedirs(args.outdir, exist_ok=True)
    options = {
        "show_measurements": not args.no_measurements,
        "show_hidden_edges": args.hidden_edges,
        "units": args.units,
    }
    rng = np.random.default_rng(args.seed)
    for name in args.names:
        diagram = DIAGRAMS[name](Diagram(args.width, args.height, options=options), rng)
        surface = diagram.render()
        out_path = os.path.join(args.outdir, f"{name}.{args.format}")
        logger.info("Rendering %s (%d primitives) -> %s", name, len(surface), out_path)
        render_to_file(surface, out_path, width=args.width, height=args.height, format=args.format)
    logger.info("All diagrams written to %s", args.outdir)


if __name__ == "__main__":
    main()
