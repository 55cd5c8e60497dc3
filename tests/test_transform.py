"""
Tests for the affine transform algebra.
"""

import math
import random

import pytest

from pdf_composer.transform import IDENTITY, Transform, compose


def random_transform(rng):
    return Transform(*(rng.uniform(-10, 10) for _ in range(6)))


class TestTransformConstruction:
    """Constructors produce the expected matrices."""

    def test_identity(self):
        """Identity is the default matrix."""
        assert Transform.identity().to_matrix() == (1.0, 0.0, 0.0, 1.0, 0.0, 0.0)
        assert Transform.identity().is_identity()

    def test_translate(self):
        """Translation moves points."""
        assert Transform.translate(5, -3).apply(1, 1) == (6, -2)

    def test_scale_uniform_and_axis(self):
        """Scale defaults sy to sx."""
        assert Transform.scale(2).to_matrix() == (2, 0.0, 0.0, 2, 0.0, 0.0)
        assert Transform.scale(2, 3).apply(1, 1) == (2, 3)

    def test_rotate_quarter_turn(self):
        """Rotation is counter-clockwise."""
        x, y = Transform.rotate(90).apply(1, 0)
        assert x == pytest.approx(0, abs=1e-12)
        assert y == pytest.approx(1)

    def test_full_matches_scale_rotate_translate(self):
        """full() scales, then rotates, then translates."""
        expected = compose(compose(Transform.scale(2, 3), Transform.rotate(30)), Transform.translate(7, 11))
        assert Transform.full(7, 11, 2, 3, 30).almost_equal(expected)

    def test_full_matrix_layout(self):
        """full() matrix entries."""
        cos, sin = math.cos(math.radians(30)), math.sin(math.radians(30))
        matrix = Transform.full(7, 11, 2, 3, 30).to_matrix()
        assert matrix == pytest.approx((2 * cos, 2 * sin, -3 * sin, 3 * cos, 7, 11))

    def test_translate_scale(self):
        """translate_scale() is full() without rotation."""
        assert Transform.translate_scale(10, 20, 0.5).to_matrix() == pytest.approx((0.5, 0, 0, 0.5, 10, 20))

    def test_translate_scale_xy(self):
        """translate_scale_xy() scales each axis separately."""
        assert Transform.translate_scale_xy(10, 20, 2, 3).to_matrix() == pytest.approx((2, 0, 0, 3, 10, 20))

    def test_from_matrix(self):
        """from_matrix() round-trips to_matrix()."""
        transform = Transform(1, 2, 3, 4, 5, 6)
        assert Transform.from_matrix(transform.to_matrix()) == transform

    def test_to_operation(self):
        """to_operation() emits cm with six operands."""
        operation = Transform.translate(1, 2).to_operation()
        assert operation.operator == "cm"
        assert operation.operands == (1.0, 0.0, 0.0, 1.0, 1, 2)


class TestTransformComposition:
    """Composition algebra."""

    def test_compose_order(self):
        """compose(a, b) applies a first."""
        moved_then_scaled = compose(Transform.translate(1, 0), Transform.scale(2))
        assert moved_then_scaled.apply(0, 0) == (2, 0)
        scaled_then_moved = Transform.scale(2).then(Transform.translate(1, 0))
        assert scaled_then_moved.apply(0, 0) == (1, 0)

    def test_compose_matches_sequential_application(self):
        """Applying a composed transform equals applying the parts in order."""
        rng = random.Random(7)
        for _ in range(50):
            first, second = random_transform(rng), random_transform(rng)
            x, y = rng.uniform(-5, 5), rng.uniform(-5, 5)
            expected = second.apply(*first.apply(x, y))
            assert compose(first, second).apply(x, y) == pytest.approx(expected)

    def test_associativity(self):
        """compose is associative for random transforms."""
        rng = random.Random(42)
        for _ in range(100):
            a, b, c = random_transform(rng), random_transform(rng), random_transform(rng)
            left = compose(compose(a, b), c)
            right = compose(a, compose(b, c))
            assert left.almost_equal(right, tolerance=1e-7)

    def test_identity_is_neutral(self):
        """Identity is neutral on both sides."""
        rng = random.Random(3)
        for _ in range(20):
            t = random_transform(rng)
            assert compose(IDENTITY, t).almost_equal(t)
            assert compose(t, IDENTITY).almost_equal(t)

    def test_nan_propagates(self):
        """Non-finite inputs are not sanitized."""
        transform = compose(Transform.translate(float("nan"), 0), Transform.scale(2))
        assert math.isnan(transform.e)
        assert math.isinf(Transform.scale(float("inf")).a)

    def test_apply_rect_bounding_box(self):
        """apply_rect() returns the axis-aligned bounds."""
        from pdf_composer.geometry import Rect

        rect = Transform.rotate(90).apply_rect(Rect(0, 0, 10, 20))
        assert rect.left == pytest.approx(-20)
        assert rect.bottom == pytest.approx(0, abs=1e-9)
        assert rect.width == pytest.approx(20)
        assert rect.height == pytest.approx(10)
