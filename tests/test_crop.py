from __future__ import annotations

import random
import unittest

from core.crop import CropInteraction, CropPhase, clamp_crop_rect, drag_edge, hit_test_edge
from core.state import CropRect, Edge

EPS = 1e-9


class HitTestTests(unittest.TestCase):
    def setUp(self) -> None:
        self.rect = CropRect(10, 10, 100, 80)

    def test_each_edge(self) -> None:
        self.assertEqual(hit_test_edge(self.rect, 12, 50), Edge.LEFT)
        self.assertEqual(hit_test_edge(self.rect, 105, 50), Edge.RIGHT)
        self.assertEqual(hit_test_edge(self.rect, 60, 4), Edge.TOP)
        self.assertEqual(hit_test_edge(self.rect, 60, 95), Edge.BOTTOM)

    def test_corners_prefer_vertical_edges(self) -> None:
        self.assertEqual(hit_test_edge(self.rect, 10, 10), Edge.LEFT)
        self.assertEqual(hit_test_edge(self.rect, 110, 10), Edge.RIGHT)
        self.assertEqual(hit_test_edge(self.rect, 110, 90), Edge.RIGHT)

    def test_tolerance_is_inclusive(self) -> None:
        self.assertEqual(hit_test_edge(self.rect, 18, 50), Edge.LEFT)
        self.assertIsNone(hit_test_edge(self.rect, 18.5, 50))

    def test_interior_and_outside_miss(self) -> None:
        self.assertIsNone(hit_test_edge(self.rect, 60, 50))
        # Beside the left edge but above the rect's row span.
        self.assertIsNone(hit_test_edge(self.rect, 10, -5))


class DragAndClampTests(unittest.TestCase):
    def test_drag_adjusts_the_matching_bound(self) -> None:
        r = CropRect(10, 10, 100, 80)
        self.assertEqual(drag_edge(r, Edge.LEFT, 5, 99).as_tuple(), (15, 10, 95, 80))
        self.assertEqual(drag_edge(r, Edge.RIGHT, -5, 99).as_tuple(), (10, 10, 95, 80))
        self.assertEqual(drag_edge(r, Edge.TOP, 99, 7).as_tuple(), (10, 17, 100, 73))
        self.assertEqual(drag_edge(r, Edge.BOTTOM, 99, 7).as_tuple(), (10, 10, 100, 87))
        self.assertEqual(r.as_tuple(), (10, 10, 100, 80))

    def test_clamp_enforces_minimum_and_bounds(self) -> None:
        self.assertEqual(clamp_crop_rect(CropRect(-5, 3, 4, 200), 100, 80).as_tuple(), (0, 3, 20, 77))
        self.assertEqual(clamp_crop_rect(CropRect(95, 70, 50, 1), 100, 80).as_tuple(), (80, 60, 20, 20))

    def test_clamp_on_canvas_smaller_than_minimum(self) -> None:
        r = clamp_crop_rect(CropRect(3, 0, 1, 1), 10, 12)
        self.assertEqual(r.as_tuple(), (0, 0, 10, 12))


class CropInteractionTests(unittest.TestCase):
    def test_enter_covers_canvas(self) -> None:
        crop = CropInteraction()
        self.assertEqual(crop.phase, CropPhase.IDLE)
        rect = crop.enter(120, 90)
        self.assertEqual(rect.as_tuple(), (0, 0, 120, 90))
        self.assertEqual(crop.phase, CropPhase.ACTIVE)
        self.assertTrue(crop.is_active)

    def test_pointer_down_off_edge_is_ignored(self) -> None:
        crop = CropInteraction()
        crop.enter(120, 90)
        self.assertIsNone(crop.pointer_down(60, 45))
        self.assertEqual(crop.phase, CropPhase.ACTIVE)
        self.assertFalse(crop.pointer_move(70, 45))

    def test_pointer_down_while_idle_is_ignored(self) -> None:
        crop = CropInteraction()
        self.assertIsNone(crop.pointer_down(0, 0))
        self.assertEqual(crop.phase, CropPhase.IDLE)

    def test_drag_right_edge_then_release(self) -> None:
        crop = CropInteraction()
        crop.enter(120, 90)
        self.assertEqual(crop.pointer_down(119, 40), Edge.RIGHT)
        self.assertTrue(crop.is_dragging)
        self.assertTrue(crop.pointer_move(100, 40))
        self.assertTrue(crop.pointer_move(79, 42))
        self.assertEqual(crop.rect.as_tuple(), (0, 0, 80, 90))
        crop.pointer_up()
        self.assertEqual(crop.phase, CropPhase.ACTIVE)
        self.assertIsNone(crop.edge)
        self.assertEqual(crop.rect.as_tuple(), (0, 0, 80, 90))

    def test_drag_left_and_top_edges(self) -> None:
        crop = CropInteraction()
        crop.enter(120, 90)
        crop.pointer_down(2, 45)
        crop.pointer_move(32, 45)
        crop.pointer_up()
        crop.pointer_down(60, 1)
        crop.pointer_move(60, 11)
        crop.pointer_up()
        self.assertEqual(crop.rect.as_tuple(), (30, 10, 90, 80))

    def test_dragging_past_minimum_stops_at_minimum(self) -> None:
        crop = CropInteraction()
        crop.enter(120, 90)
        crop.pointer_down(0, 45)
        crop.pointer_move(500, 45)
        r = crop.rect
        self.assertEqual(r.width, 20)
        self.assertEqual(r.x, 100)

    def test_rect_property_is_a_copy(self) -> None:
        crop = CropInteraction()
        crop.enter(50, 50)
        crop.rect.width = 1
        self.assertEqual(crop.rect.width, 50)

    def test_cancel_returns_to_idle(self) -> None:
        crop = CropInteraction()
        crop.enter(50, 50)
        crop.pointer_down(0, 10)
        crop.cancel()
        self.assertEqual(crop.phase, CropPhase.IDLE)
        self.assertIsNone(crop.rect)
        self.assertIsNone(crop.edge_at(0, 10))

    def test_cursor_feedback(self) -> None:
        crop = CropInteraction()
        crop.enter(100, 100)
        self.assertEqual(crop.cursor_for(0, 50), "ew-resize")
        self.assertEqual(crop.cursor_for(50, 100), "ns-resize")
        self.assertEqual(crop.cursor_for(50, 50), "default")

    def test_custom_tolerance_and_minimum(self) -> None:
        crop = CropInteraction(edge_tolerance=2, min_size=40)
        crop.enter(100, 100)
        self.assertIsNone(crop.pointer_down(5, 50))
        crop.pointer_down(99, 50)
        crop.pointer_move(0, 50)
        self.assertEqual(crop.rect.width, 40)

    def test_random_drags_keep_rect_inside_canvas(self) -> None:
        rng = random.Random(1234)
        canvas_w, canvas_h = 160, 90
        grab = {
            Edge.LEFT: lambda r: (r.x, r.y + r.height / 2),
            Edge.RIGHT: lambda r: (r.right, r.y + r.height / 2),
            Edge.TOP: lambda r: (r.x + r.width / 2, r.y),
            Edge.BOTTOM: lambda r: (r.x + r.width / 2, r.bottom),
        }
        crop = CropInteraction()
        crop.enter(canvas_w, canvas_h)
        for _ in range(300):
            x, y = grab[rng.choice(list(Edge))](crop.rect)
            if crop.pointer_down(x, y) is None:
                continue
            for _ in range(rng.randint(1, 6)):
                x += rng.uniform(-200, 200)
                y += rng.uniform(-200, 200)
                crop.pointer_move(x, y)
                r = crop.rect
                self.assertGreaterEqual(r.width, 20 - EPS)
                self.assertGreaterEqual(r.height, 20 - EPS)
                self.assertGreaterEqual(r.x, 0)
                self.assertGreaterEqual(r.y, 0)
                self.assertLessEqual(r.right, canvas_w + EPS)
                self.assertLessEqual(r.bottom, canvas_h + EPS)
            crop.pointer_up()


if __name__ == "__main__":
    unittest.main()
