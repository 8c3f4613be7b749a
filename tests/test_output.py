from __future__ import annotations

from pathlib import Path
import tempfile
import unittest

import numpy as np
from PIL import Image

from mediascope_plot.marks import Mark, Scene
from mediascope_plot.raster import RasterRenderer, blit, draw_hline, new_canvas
from mediascope_plot.svg import save_svg, to_svg


BLACK = "#000000"


def _scene(*marks: Mark, width: float = 20.0, height: float = 10.0) -> Scene:
    return Scene(width=width, height=height, marks=marks, background=BLACK)


class CanvasTests(unittest.TestCase):
    def test_blit_clips_and_composites(self) -> None:
        dst = new_canvas(4, 4)
        src = np.zeros((2, 2, 4), dtype=np.uint8)
        src[:, :] = (255, 0, 0, 255)
        blit(dst, src, 3, -1)
        self.assertEqual(tuple(dst[0, 3]), (255, 0, 0, 255))
        self.assertEqual(tuple(dst[1, 3]), (0, 0, 0, 255))
        self.assertEqual(tuple(dst[0, 2]), (0, 0, 0, 255))

    def test_hline_is_clipped(self) -> None:
        dst = new_canvas(5, 2)
        draw_hline(dst, -3, 10, 1, (0, 255, 0, 255))
        self.assertTrue(np.all(dst[1, :, 1] == 255))
        self.assertTrue(np.all(dst[0, :, 1] == 0))
        draw_hline(dst, 0, 4, 7, (0, 255, 0, 255))


class RasterRendererTests(unittest.TestCase):
    def test_frame_shape_and_background(self) -> None:
        frame = RasterRenderer().render(_scene())
        self.assertEqual(frame.shape, (10, 20, 4))
        self.assertEqual(tuple(frame[5, 5]), (0, 0, 0, 255))

    def test_empty_scene_has_empty_frame(self) -> None:
        self.assertEqual(RasterRenderer().render(_scene(width=0.0)).shape, (10, 0, 4))

    def test_rect_fill(self) -> None:
        rect = Mark("r", "rect", {"x": 2.0, "y": 2.0, "width": 5.0, "height": 5.0, "fill": "#ff0000", "opacity": 1.0})
        frame = RasterRenderer().render(_scene(rect))
        self.assertEqual(tuple(frame[4, 4]), (255, 0, 0, 255))
        self.assertEqual(tuple(frame[4, 12]), (0, 0, 0, 255))

    def test_invisible_marks_are_skipped(self) -> None:
        rect = Mark("r", "rect", {"x": 0.0, "y": 0.0, "width": 20.0, "height": 10.0, "fill": "#ff0000", "opacity": 0.0})
        frame = RasterRenderer().render(_scene(rect))
        self.assertFalse(np.any(frame[:, :, 0]))

    def test_translucent_fill_blends(self) -> None:
        rect = Mark("r", "rect", {"x": 0.0, "y": 0.0, "width": 20.0, "height": 10.0, "fill": "#ffffff", "opacity": 0.5})
        frame = RasterRenderer().render(_scene(rect))
        self.assertAlmostEqual(int(frame[5, 5, 0]), 128, delta=1)

    def test_polygon_hole_stays_empty(self) -> None:
        outer = ((1.0, 1.0), (19.0, 1.0), (19.0, 19.0), (1.0, 19.0))
        hole = ((6.0, 6.0), (14.0, 6.0), (14.0, 14.0), (6.0, 14.0))
        poly = Mark("p", "polygon", {"rings": (outer, hole), "fill": "#00ff00", "stroke": None, "opacity": 1.0})
        frame = RasterRenderer().render(_scene(poly, width=20.0, height=20.0))
        self.assertEqual(int(frame[3, 3, 1]), 255)
        self.assertEqual(int(frame[10, 10, 1]), 0)

    def test_arc_and_circle(self) -> None:
        arc = Mark(
            "a",
            "arc",
            {"cx": 10.0, "cy": 10.0, "inner_radius": 0.0, "outer_radius": 9.0, "start_angle": 0.0, "end_angle": 3.14159, "fill": "#ffffff"},
        )
        frame = RasterRenderer().render(_scene(arc, width=20.0, height=20.0))
        self.assertEqual(int(frame[10, 15, 0]), 255)
        self.assertEqual(int(frame[10, 4, 0]), 0)

        dot = Mark("c", "circle", {"cx": 10.0, "cy": 10.0, "r": 4.0, "fill": "#0000ff"})
        frame = RasterRenderer().render(_scene(dot, width=20.0, height=20.0))
        self.assertEqual(int(frame[10, 10, 2]), 255)
        self.assertEqual(int(frame[1, 1, 2]), 0)

    def test_text_draws_pixels(self) -> None:
        text = Mark("t", "text", {"x": 10.0, "y": 15.0, "text": "Hi", "fill": "#ffffff", "font_size": 14.0, "baseline": "middle"})
        frame = RasterRenderer().render(_scene(text, width=60.0, height=30.0))
        self.assertTrue(np.any(frame[:, :, 0] > 0))

    def test_save_png(self) -> None:
        rect = Mark("r", "rect", {"x": 2.0, "y": 2.0, "width": 5.0, "height": 5.0, "fill": "#ff0000"})
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertLogs("mediascope_plot.raster.renderer", level="INFO"):
                path = RasterRenderer().save_png(_scene(rect), Path(tmp) / "nested" / "chart.png")
            with Image.open(path) as image:
                self.assertEqual(image.size, (20, 10))
                self.assertEqual(image.mode, "RGBA")


class SvgTests(unittest.TestCase):
    def test_document_carries_size_background_and_keys(self) -> None:
        rect = Mark("bar:A", "rect", {"x": 1.0, "y": 2.5, "width": 3.0, "height": 4.0, "fill": "#ff0000", "rx": 2.0})
        svg = to_svg(_scene(rect))
        self.assertTrue(svg.startswith("<svg "))
        self.assertIn('width="20" height="10"', svg)
        self.assertIn(f'fill="{BLACK}"', svg)
        self.assertIn('<rect data-key="bar:A" x="1" y="2.5" width="3" height="4" rx="2" fill="#ff0000"/>', svg)
        self.assertTrue(svg.endswith("</svg>"))

    def test_invisible_marks_are_omitted(self) -> None:
        svg = to_svg(_scene(Mark("gone", "circle", {"cx": 1.0, "cy": 1.0, "r": 1.0, "opacity": 0.0})))
        self.assertNotIn("gone", svg)

    def test_polygon_rings_become_even_odd_path(self) -> None:
        square = ((0.0, 0.0), (4.0, 0.0), (4.0, 4.0))
        svg = to_svg(_scene(Mark("p", "polygon", {"rings": (square, square), "fill": "#ffffff", "stroke": "#000000"})))
        self.assertIn('d="M0,0 L4,0 L4,4Z M0,0 L4,0 L4,4Z"', svg)
        self.assertIn('fill-rule="evenodd"', svg)
        self.assertIn('stroke="#000000" stroke-width="1"', svg)

    def test_text_is_escaped_and_rotated(self) -> None:
        text = Mark("t", "text", {"x": 5.0, "y": 6.0, "text": "a<b & c", "fill": "#ffffff", "rotate": -90, "bold": True, "anchor": "middle"})
        svg = to_svg(_scene(text))
        self.assertIn("a&lt;b &amp; c", svg)
        self.assertIn('transform="rotate(-90,5,6)"', svg)
        self.assertIn('font-weight="bold"', svg)
        self.assertIn('text-anchor="middle"', svg)

    def test_gradient_rect_references_a_definition(self) -> None:
        rect = Mark("legend:bar", "rect", {"x": 0.0, "y": 0.0, "width": 10.0, "height": 2.0, "gradient": ("#000000", "#ffffff")})
        svg = to_svg(_scene(rect))
        self.assertIn('<linearGradient id="grad0"', svg)
        self.assertIn('fill="url(#grad0)"', svg)
        self.assertIn('<stop offset="100%" stop-color="#ffffff"/>', svg)

    def test_partial_opacity_and_transform(self) -> None:
        dot = Mark("d", "circle", {"cx": 1.0, "cy": 1.0, "r": 2.0, "fill": "#ffffff", "opacity": 0.5, "transform": (2.0, 10.0, 0.0)})
        svg = to_svg(_scene(dot))
        self.assertIn('opacity="0.5"', svg)
        self.assertIn('transform="translate(10,0) scale(2)"', svg)

    def test_save_svg(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = save_svg(_scene(), Path(tmp) / "chart.svg")
            self.assertIn("<svg", path.read_text(encoding="utf-8"))


if __name__ == "__main__":
    unittest.main()
