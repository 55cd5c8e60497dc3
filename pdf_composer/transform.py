"""2D affine transforms in PDF matrix form.

A transform is the six-number matrix ``[a b c d e f]`` used by the ``cm``
operator. Points are row vectors, so a point ``(x, y)`` maps to
``(a*x + c*y + e, b*x + d*y + f)``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple

from .geometry import Rect
from .objects.content import Operation


@dataclass(frozen=True)
class Transform:
    a: float = 1.0
    b: float = 0.0
    c: float = 0.0
    d: float = 1.0
    e: float = 0.0
    f: float = 0.0

    @classmethod
    def identity(cls) -> "Transform":
        return cls()

    @classmethod
    def translate(cls, tx: float, ty: float) -> "Transform":
        return cls(e=tx, f=ty)

    @classmethod
    def scale(cls, sx: float, sy: float | None = None) -> "Transform":
        return cls(a=sx, d=sx if sy is None else sy)

    @classmethod
    def rotate(cls, degrees: float) -> "Transform":
        """Counter-clockwise rotation about the origin."""
        radians = math.radians(degrees)
        cos, sin = math.cos(radians), math.sin(radians)
        return cls(a=cos, b=sin, c=-sin, d=cos)

    @classmethod
    def translate_scale(cls, tx: float, ty: float, scale: float) -> "Transform":
        return cls.full(tx, ty, scale, scale, 0.0)

    @classmethod
    def translate_scale_xy(cls, tx: float, ty: float, sx: float, sy: float) -> "Transform":
        return cls.full(tx, ty, sx, sy, 0.0)

    @classmethod
    def full(cls, tx: float, ty: float, sx: float, sy: float, degrees: float) -> "Transform":
        """Scale, then rotate, then translate.

        Equivalent to ``compose(compose(scale(sx, sy), rotate(degrees)),
        translate(tx, ty))``.
        """
        radians = math.radians(degrees)
        cos, sin = math.cos(radians), math.sin(radians)
        return cls(sx * cos, sx * sin, -sy * sin, sy * cos, tx, ty)

    @classmethod
    def from_matrix(cls, matrix) -> "Transform":
        a, b, c, d, e, f = (float(v) for v in matrix)
        return cls(a, b, c, d, e, f)

    def then(self, other: "Transform") -> "Transform":
        """Apply ``self`` first, then ``other``."""
        return compose(self, other)

    def apply(self, x: float, y: float) -> Tuple[float, float]:
        return (self.a * x + self.c * y + self.e, self.b * x + self.d * y + self.f)

    def apply_rect(self, rect: Rect) -> Rect:
        """Axis-aligned bounding box of a transformed rectangle."""
        corners = [
            self.apply(rect.left, rect.bottom),
            self.apply(rect.right, rect.bottom),
            self.apply(rect.left, rect.top),
            self.apply(rect.right, rect.top),
        ]
        xs = [p[0] for p in corners]
        ys = [p[1] for p in corners]
        return Rect(min(xs), min(ys), max(xs) - min(xs), max(ys) - min(ys))

    def to_matrix(self) -> Tuple[float, float, float, float, float, float]:
        return (self.a, self.b, self.c, self.d, self.e, self.f)

    def to_operation(self) -> Operation:
        """The ``cm`` operation that concatenates this transform to the CTM."""
        return Operation("cm", self.to_matrix())

    def is_identity(self) -> bool:
        return self == IDENTITY

    def almost_equal(self, other: "Transform", tolerance: float = 1e-9) -> bool:
        return all(
            math.isclose(mine, theirs, rel_tol=tolerance, abs_tol=tolerance)
            for mine, theirs in zip(self.to_matrix(), other.to_matrix())
        )


def compose(first: Transform, second: Transform) -> Transform:
    """Transform that applies ``first`` and then ``second``."""
    return Transform(
        a=first.a * second.a + first.b * second.c,
        b=first.a * second.b + first.b * second.d,
        c=first.c * second.a + first.d * second.c,
        d=first.c * second.b + first.d * second.d,
        e=first.e * second.a + first.f * second.c + second.e,
        f=first.e * second.b + first.f * second.d + second.f,
    )


IDENTITY = Transform()
