from __future__ import annotations

import unittest

from panelplot.render import SvgDocument, flatten_on_white, parse_transform, rasterize, scene_to_svg, text_metrics
from panelplot.render.svg import SvgCircle, SvgPath, SvgText
from panelplot.scene import Box, Element, Transform, apply, bounding_box, path_points


def _fixed_measure(text: str, size: float, bold: bool) -> tuple[float, float, float]:
    return 10.0 * len(text), 8.0, 2.0


class SceneTests(unittest.TestCase):
    def test_transform_attr_round_trips_through_parser(self) -> None:
        transform = Transform(translate=(10.0, 20.0), scale=2.0, rotate=90.0)
        self.assertEqual(transform.to_attr(), "translate(10,20) scale(2) rotate(90)")
        parsed = parse_transform(transform.to_attr())
        for got, want in zip(parsed, transform.matrix()):
            self.assertAlmostEqual(got, want)
        x, y = apply(parsed, 1.0, 0.0)
        self.assertAlmostEqual(x, 10.0)
        self.assertAlmostEqual(y, 22.0)
        self.assertEqual(Transform().to_attr(), "")

    def test_path_points_split_on_move(self) -> None:
        self.assertEqual(
            path_points("M0,300L100,200M300,100L400,0"),
            [[(0.0, 300.0), (100.0, 200.0)], [(300.0, 100.0), (400.0, 0.0)]],
        )
        self.assertEqual(path_points(""), [])

    def test_bounding_box_includes_transforms_and_text(self) -> None:
        group = Element("g", transform=Transform(translate=(100.0, 50.0)))
        group.append("rect", attrs={"x": 0, "y": 0, "width": 20, "height": 10})
        group.append("text", attrs={"x": 30, "y": 5, "alignment-baseline": "central"}, text="abc")
        box = bounding_box(group, _fixed_measure)
        self.assertEqual(box, Box(100.0, 50.0, 60.0, 10.0))

    def test_text_anchor_end(self) -> None:
        node = Element("text", attrs={"x": 0, "y": 0, "text-anchor": "end"}, text="ab")
        self.assertEqual(bounding_box(node, _fixed_measure), Box(-20.0, -8.0, 20.0, 10.0))

    def test_hidden_nodes_have_no_box(self) -> None:
        node = Element("rect", attrs={"width": 5, "height": 5}, style={"display": "none"})
        self.assertIsNone(bounding_box(node, _fixed_measure))

    def test_raise_and_clone(self) -> None:
        root = Element("g")
        a = root.append("g", cls="data", id="a")
        root.append("g", cls="data", id="b")
        a.raise_()
        self.assertEqual([c.id for c in root.children], ["b", "a"])
        copied = a.clone()
        self.assertIsNone(copied.parent)
        self.assertIs(a.parent, root)
        copied.attrs["x"] = 1
        self.assertNotIn("x", a.attrs)
        self.assertIs(root.find("data", "a"), a)
        a.remove()
        self.assertEqual([c.id for c in root.children], ["b"])


class SvgTests(unittest.TestCase):
    def test_serialize_and_parse(self) -> None:
        root = Element("svg", attrs={"viewBox": "0 0 200 100"}, style={"font-family": "Helvetica"})
        g = root.append("g", cls="plot", transform=Transform(translate=(10.0, 10.0)))
        g.append("circle", attrs={"cx": 5, "cy": 5, "r": 2.5, "fill": "#1f77b4"})
        g.append("path", attrs={"d": "M0,0L10,10", "stroke": "#ff7f0e", "fill": "none"})
        g.append("text", attrs={"x": 1, "y": 2}, style={"font-size": 18}, text="hi")
        g.append("rect", attrs={"width": 5, "height": 5}, style={"display": "none"})
        markup = scene_to_svg(root)
        self.assertIn('xmlns="http://www.w3.org/2000/svg"', markup)
        self.assertIn("font-size:18px", markup)

        document = SvgDocument.from_markup(markup)
        self.assertEqual(document.viewbox, (0.0, 0.0, 200.0, 100.0))
        kinds = [type(item) for item in document.items]
        self.assertEqual(kinds, [SvgCircle, SvgPath, SvgText])
        circle = document.items[0]
        self.assertEqual(circle.fill, (31, 119, 180, 255))
        self.assertEqual(apply(circle.matrix, circle.cx, circle.cy), (15.0, 15.0))
        self.assertEqual(document.items[2].font_size, 18.0)
        self.assertEqual(document.items[2].font_family, "Helvetica")

    def test_rasterize_fits_viewbox(self) -> None:
        markup = (
            '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 20 10">'
            '<rect x="10" y="0" width="10" height="10" fill="rgb(255, 0, 0)"/></svg>'
        )
        image = rasterize(SvgDocument.from_markup(markup), width=40, height=20)
        self.assertEqual(image.size, (40, 20))
        self.assertEqual(image.getpixel((30, 10)), (255, 0, 0, 255))
        self.assertEqual(image.getpixel((5, 10))[3], 0)
        flat = flatten_on_white(image)
        self.assertEqual(flat.getpixel((5, 10)), (255, 255, 255))
        with self.assertRaises(ValueError):
            rasterize(SvgDocument.from_markup(markup), width=0, height=10)

    def test_text_metrics_scale_with_size(self) -> None:
        width, ascent, descent = text_metrics("Period", 18.0)
        self.assertGreater(width, 0.0)
        self.assertGreater(ascent, 0.0)
        self.assertGreaterEqual(descent, 0.0)
        self.assertEqual(text_metrics("", 18.0)[0], 0.0)


if __name__ == "__main__":
    unittest.main()
