"""
Axis aligned bounds of pythonopenscad shape trees.

BoundsRenderer is called back by each node's renderObj() the same way
pythonopenscad's M3dRenderer is, but it only tracks the vertices that bound
each node. Round shapes are bounded by the polygon OpenSCAD generates for
them, so a $fn=3 cylinder is bounded as a triangular prism.

The result is exact for primitives, transforms, unions, hulls, extrusions and
outward offsets (radial, mitred or chamfered) of circles, squares, polygons
and 2D hulls. Outward offsets of a 2D union are bounded by offsetting each
operand. A difference takes the bounds of its first operand, an intersection
intersects the operand boxes and an inward offset shrinks the 2D box. These
are conservative. A mitred offset of an outline that is not known, e.g. a 2D
difference, raises UnsupportedNodeError.
"""

import itertools
import logging
import math

import numpy as np
from datatrees import datatree, dtfield
from pythonopenscad.modifier import (
    PoscBaseException,
    RenderContextBase,
    RendererBase,
    get_fragments_from_fn_fa_fs,
)

log = logging.getLogger(__name__)


# OpenSCAD passes this miter_limit to Clipper for offset(delta=...).
MITER_LIMIT = 1000000.0
_MITER_MIN_R = 2 / (MITER_LIMIT * MITER_LIMIT)
GRID_FINE = 0.00000095367431640625


class UnsupportedNodeError(PoscBaseException):
    """The node type cannot be bounded."""


class InvalidGeometryError(PoscBaseException):
    """The node describes geometry OpenSCAD would reject."""


@datatree
class BoundingBox:
    """3D bounding box with min and max points."""

    min_point: np.ndarray = dtfield(
        default_factory=lambda: np.array([float("inf"), float("inf"), float("inf")])
    )
    max_point: np.ndarray = dtfield(
        default_factory=lambda: np.array([float("-inf"), float("-inf"), float("-inf")])
    )

    @classmethod
    def of_points(cls, points: np.ndarray) -> "BoundingBox":
        if len(points) == 0:
            return cls()
        return cls(min_point=points.min(axis=0), max_point=points.max(axis=0))

    @property
    def is_empty(self) -> bool:
        return bool(np.any(self.min_point > self.max_point))

    @property
    def size(self) -> np.ndarray:
        """Get the size of the bounding box as a 3D vector."""
        if self.is_empty:
            return np.zeros(3)
        return self.max_point - self.min_point

    @property
    def center(self) -> np.ndarray:
        """Get the center of the bounding box."""
        if self.is_empty:
            return np.array([0.0, 0.0, 0.0])
        return (self.max_point + self.min_point) / 2.0

    def corners(self) -> np.ndarray:
        if self.is_empty:
            return np.zeros((0, 3))
        return np.array(list(itertools.product(*zip(self.min_point, self.max_point))))

    def union(self, other: "BoundingBox") -> "BoundingBox":
        """Compute the union of this bounding box with another."""
        if self.is_empty:
            return other
        if other.is_empty:
            return self

        return BoundingBox(
            min_point=np.minimum(self.min_point, other.min_point),
            max_point=np.maximum(self.max_point, other.max_point),
        )

    def intersection(self, other: "BoundingBox") -> "BoundingBox":
        """The common region of both boxes, possibly empty."""
        if self.is_empty or other.is_empty:
            return BoundingBox()
        return BoundingBox(
            min_point=np.maximum(self.min_point, other.min_point),
            max_point=np.minimum(self.max_point, other.max_point),
        )

    def expanded(self, amount: float, axes=(0, 1)) -> "BoundingBox":
        """A box grown (or shrunk for negative amount) along the given axes."""
        if self.is_empty:
            return self
        delta = np.zeros(3)
        delta[list(axes)] = amount
        return BoundingBox(min_point=self.min_point - delta, max_point=self.max_point + delta)

    def contains(self, other: "BoundingBox", tolerance: float = 1e-9) -> bool:
        """True if other lies within this box."""
        if other.is_empty:
            return True
        if self.is_empty:
            return False
        return bool(
            np.all(other.min_point >= self.min_point - tolerance)
            and np.all(other.max_point <= self.max_point + tolerance)
        )

    def contains_point(self, point: np.ndarray) -> bool:
        """Check if a point is inside the bounding box."""
        if self.is_empty:
            return False
        return bool(np.all(point >= self.min_point) and np.all(point <= self.max_point))


@datatree(frozen=True)
class PointsContext(RenderContextBase):
    """Bounding vertices of a rendered node."""

    points: np.ndarray = dtfield(doc="Bounding vertices, shape (N, 3).")
    is_2d: bool = dtfield(default=False, doc="True if the node is a 2D shape in the z=0 plane.")
    outlines: tuple | None = dtfield(
        default=None,
        doc="Closed loops, (k, 3) arrays, of a 2D shape whose outline is known. "
        "None when it is not.")

    def bounding_box(self) -> BoundingBox:
        return BoundingBox.of_points(self.points)

    def transformed(self, matrix: np.ndarray, offset=None) -> "PointsContext":
        matrix = np.asarray(matrix, dtype=float)

        def apply(points):
            points = points @ matrix.T
            if offset is not None:
                points = points + np.asarray(offset, dtype=float)
            return points

        outlines = None
        if self.outlines is not None:
            outlines = tuple(apply(o) for o in self.outlines)
        return PointsContext(apply(self.points), self.is_2d, outlines)


EMPTY = np.zeros((0, 3))


def _combine(contexts: list[PointsContext]) -> PointsContext:
    if not contexts:
        return PointsContext(EMPTY, False)
    points = np.vstack([c.points for c in contexts])
    outlines = None
    if all(c.outlines is not None for c in contexts):
        outlines = tuple(itertools.chain.from_iterable(c.outlines for c in contexts))
    return PointsContext(points, all(c.is_2d for c in contexts), outlines)


def _lift(points_2d: np.ndarray) -> np.ndarray:
    """(N, 2) points to (N, 3) points in the z=0 plane."""
    return np.column_stack((points_2d, np.zeros(len(points_2d))))


def circle_points(r: float, fragments: int, z: float = 0.0) -> np.ndarray:
    """Vertices of the polygon OpenSCAD generates for a circle."""
    angles = np.arange(fragments) * (2 * math.pi / fragments)
    return np.column_stack(
        (r * np.cos(angles), r * np.sin(angles), np.full(fragments, float(z))))


def convex_hull_2d(points) -> np.ndarray:
    """Counter clockwise convex hull of the x, y coordinates of points (monotone chain)."""
    pts = sorted(set(map(tuple, np.asarray(points, dtype=float)[:, :2].tolist())))
    if len(pts) <= 2:
        return np.array(pts, dtype=float).reshape(-1, 2)

    def cross(o, a, b):
        return (a[0] - o[0]) * (b[1] - o[1]) - (a[1] - o[1]) * (b[0] - o[0])

    lower = []
    for p in pts:
        while len(lower) >= 2 and cross(lower[-2], lower[-1], p) <= 0:
            lower.pop()
        lower.append(p)
    upper = []
    for p in reversed(pts):
        while len(upper) >= 2 and cross(upper[-2], upper[-1], p) <= 0:
            upper.pop()
        upper.append(p)
    return np.array(lower[:-1] + upper[:-1], dtype=float)


def _counter_clockwise_loop(loop) -> np.ndarray | None:
    """The x, y coordinates of a closed loop without repeated vertices, counter clockwise.
    None if fewer than three distinct vertices remain."""
    pts = np.asarray(loop, dtype=float)[:, :2]
    keep = np.linalg.norm(pts - np.roll(pts, 1, axis=0), axis=1) > GRID_FINE
    pts = pts[keep]
    if len(pts) < 3:
        return None
    x, y = pts[:, 0], pts[:, 1]
    if np.dot(x, np.roll(y, -1)) - np.dot(np.roll(x, -1), y) < 0:
        pts = pts[::-1]
    return pts


def _perp(normals: np.ndarray) -> np.ndarray:
    """Edge directions for the given outward normals of a counter clockwise loop."""
    return np.column_stack((-normals[:, 1], normals[:, 0]))


def offset_outline_points(loop, delta: float, chamfer: bool = False) -> np.ndarray:
    """Vertices of a closed loop offset outwards by delta > 0, as OpenSCAD's
    offset(delta=...) builds them with Clipper.

    Convex corners are mitred, or cut off square at delta from the original
    vertex when chamfer is set (or the mitre would exceed MITER_LIMIT).
    Concave corners keep both offset edge ends, which lie inside the result.
    Returns (N, 2) points.
    """
    pts = _counter_clockwise_loop(loop)
    if pts is None:
        return np.zeros((0, 2))
    edges = np.roll(pts, -1, axis=0) - pts
    normals = np.column_stack((edges[:, 1], -edges[:, 0]))
    normals = normals / np.linalg.norm(normals, axis=1)[:, None]
    n_in = np.roll(normals, 1, axis=0)
    n_out = normals

    result = [pts + delta * n_in, pts + delta * n_out]
    cos_a = np.einsum('ij,ij->i', n_in, n_out)
    sin_a = n_in[:, 0] * n_out[:, 1] - n_in[:, 1] * n_out[:, 0]
    r = 1 + cos_a
    convex = sin_a > 0
    if chamfer:
        mitred = np.zeros_like(convex)
    else:
        mitred = convex & (r >= _MITER_MIN_R)
    squared = convex & ~mitred

    if np.any(mitred):
        result.append(
            pts[mitred] + (n_in[mitred] + n_out[mitred]) * (delta / r[mitred])[:, None])
    if np.any(squared):
        dx = np.tan(np.arctan2(sin_a[squared], cos_a[squared]) / 4)[:, None]
        result.append(pts[squared] + delta * (n_in[squared] + dx * _perp(n_in[squared])))
        result.append(pts[squared] + delta * (n_out[squared] - dx * _perp(n_out[squared])))
    return np.vstack(result)


def rotation_matrix(a, v=None) -> np.ndarray:
    """The OpenSCAD rotate() matrix.

    A scalar a rotates about v (default z). A vector a rotates about x, then y,
    then z.
    """
    if isinstance(a, (tuple, list)):
        ax, ay, az = (math.radians(x) for x in a)
        rx = np.array([[1, 0, 0], [0, math.cos(ax), -math.sin(ax)], [0, math.sin(ax), math.cos(ax)]])
        ry = np.array([[math.cos(ay), 0, math.sin(ay)], [0, 1, 0], [-math.sin(ay), 0, math.cos(ay)]])
        rz = np.array([[math.cos(az), -math.sin(az), 0], [math.sin(az), math.cos(az), 0], [0, 0, 1]])
        return rz @ ry @ rx
    axis = np.array(v if v is not None else (0.0, 0.0, 1.0), dtype=float)
    norm = np.linalg.norm(axis)
    if norm == 0:
        return np.identity(3)
    x, y, z = axis / norm
    angle = math.radians(a)
    c, s = math.cos(angle), math.sin(angle)
    k = np.array([[0, -z, y], [z, 0, -x], [-y, x, 0]])
    return np.identity(3) + s * k + (1 - c) * (k @ k)


def mirror_matrix(v) -> np.ndarray:
    """Reflection across the plane through the origin with normal v."""
    n = np.array(v, dtype=float)
    nn = n @ n
    if nn == 0:
        return np.identity(3)
    return np.identity(3) - 2 * np.outer(n, n) / nn


class BoundsRenderer(RendererBase):
    """Renders pythonopenscad nodes to their bounding vertices."""

    def cube(self, posc_obj, size, center: bool = False) -> PointsContext:
        size = np.broadcast_to(np.asarray(size, dtype=float), (3,))
        corners = np.array(list(itertools.product(*((0.0, s) for s in size))))
        if center:
            corners = corners - size / 2
        return PointsContext(corners)

    def cylinder(self, posc_obj, h: float, r_base: float, r_top: float, fn: int,
                 center: bool) -> PointsContext:
        z0 = -h / 2 if center else 0.0
        points = np.vstack(
            (circle_points(r_base, fn, z0), circle_points(r_top, fn, z0 + h)))
        return PointsContext(points)

    def sphere(self, posc_obj, radius: float, fragments: int) -> PointsContext:
        rings = (fragments + 1) // 2
        phis = (np.arange(rings) + 0.5) * (math.pi / rings)
        return PointsContext(np.vstack([
            circle_points(radius * math.sin(phi), fragments, radius * math.cos(phi))
            for phi in phis]))

    def polyhedron(self, posc_obj, verts, faces=None, triangles=None) -> PointsContext:
        return PointsContext(np.asarray(verts, dtype=float).reshape(-1, 3))

    def circle(self, posc_obj, radius: float, fn: int) -> PointsContext:
        points = circle_points(radius, fn)
        return PointsContext(points, True, (points,))

    def square(self, posc_obj, size, center: bool = False) -> PointsContext:
        sx, sy = np.broadcast_to(np.asarray(size, dtype=float), (2,))
        points = np.array([[0, 0, 0], [sx, 0, 0], [sx, sy, 0], [0, sy, 0]], dtype=float)
        if center:
            points = points - np.array([sx / 2, sy / 2, 0])
        return PointsContext(points, True, (points,))

    def polygon(self, posc_obj, points, paths=None, convexity=None) -> PointsContext:
        pts = _lift(np.asarray(points, dtype=float).reshape(-1, 2))
        if not paths:
            return PointsContext(pts, True, (pts,))
        outlines = tuple(pts[list(path)] for path in paths)
        used = np.unique(np.concatenate([np.asarray(path, dtype=int) for path in paths]))
        return PointsContext(pts[used], True, outlines)

    def translate(self, posc_obj, v) -> PointsContext:
        return _combine(self.renderChildren(posc_obj)).transformed(np.identity(3), v)

    def rotate(self, posc_obj, a, v=None) -> PointsContext:
        return _combine(self.renderChildren(posc_obj)).transformed(rotation_matrix(a, v))

    def mirror(self, posc_obj, v) -> PointsContext:
        return _combine(self.renderChildren(posc_obj)).transformed(mirror_matrix(v))

    def scale(self, posc_obj, v) -> PointsContext:
        factors = np.broadcast_to(np.asarray(v, dtype=float), (3,))
        return _combine(self.renderChildren(posc_obj)).transformed(np.diag(factors))

    def multmatrix(self, posc_obj, m) -> PointsContext:
        m = np.asarray(m, dtype=float)
        return _combine(self.renderChildren(posc_obj)).transformed(m[:3, :3], m[:3, 3])

    def union(self, posc_obj) -> PointsContext:
        return _combine(self.renderChildren(posc_obj))

    def color(self, posc_obj, c=None, alpha=None) -> PointsContext:
        return self.union(posc_obj)

    def render(self, posc_obj, convexity=None) -> PointsContext:
        return self.union(posc_obj)

    def fill(self, posc_obj) -> PointsContext:
        return self.union(posc_obj)

    def hull(self, posc_obj) -> PointsContext:
        # The hull of a set of points has the same bounds as the points.
        context = _combine(self.renderChildren(posc_obj))
        if not context.is_2d or len(context.points) == 0:
            return PointsContext(context.points, context.is_2d)
        outline = _lift(convex_hull_2d(context.points))
        return PointsContext(outline, True, (outline,))

    def minkowski(self, posc_obj) -> PointsContext:
        contexts = self.renderChildren(posc_obj)
        if not contexts:
            return PointsContext(EMPTY, False)
        lo = np.zeros(3)
        hi = np.zeros(3)
        for context in contexts:
            box = context.bounding_box()
            if box.is_empty:
                return PointsContext(EMPTY, False)
            lo = lo + box.min_point
            hi = hi + box.max_point
        box = BoundingBox(min_point=lo, max_point=hi)
        return PointsContext(box.corners(), all(c.is_2d for c in contexts))

    def difference(self, posc_obj) -> PointsContext:
        children = posc_obj.children()
        if not children:
            return PointsContext(EMPTY, False)
        context = children[0].renderObj(self)
        return PointsContext(context.points, context.is_2d)

    def intersection(self, posc_obj) -> PointsContext:
        contexts = self.renderChildren(posc_obj)
        if not contexts:
            return PointsContext(EMPTY, False)
        box = contexts[0].bounding_box()
        for context in contexts[1:]:
            box = box.intersection(context.bounding_box())
        return PointsContext(box.corners(), all(c.is_2d for c in contexts))

    def projection(self, posc_obj, cut=None) -> PointsContext:
        points = _combine(self.renderChildren(posc_obj)).points.copy()
        points[:, 2] = 0.0
        return PointsContext(points, True)

    def linear_extrude(self, posc_obj, height: float, center: bool = False, convexity=None,
                       twist=None, slices=None, scale=None, fn=None) -> PointsContext:
        if twist:
            raise UnsupportedNodeError('cannot bound a twisted linear_extrude')
        base = _combine(self.renderChildren(posc_obj)).points
        z0 = -height / 2 if center else 0.0
        bottom = base.copy()
        bottom[:, 2] = z0
        top = base.copy()
        top[:, 2] = z0 + height
        if scale is not None:
            top[:, :2] = top[:, :2] * np.broadcast_to(np.asarray(scale, dtype=float), (2,))
        return PointsContext(np.vstack((bottom, top)))

    def rotate_extrude(self, posc_obj, angle: float, convexity=None, fn=None, fa=None,
                       fs=None) -> PointsContext:
        profile = _combine(self.renderChildren(posc_obj)).points
        if len(profile) == 0:
            return PointsContext(EMPTY, False)
        xs = profile[:, 0]
        if np.any(xs < 0) and np.any(xs > 0):
            raise InvalidGeometryError(
                'rotate_extrude profile must lie on one side of the Y axis')
        radii = np.abs(xs)
        fragments = get_fragments_from_fn_fa_fs(float(radii.max()), fn, fa, fs)
        if abs(angle) >= 360:
            angles = np.arange(fragments) * (2 * math.pi / fragments)
        else:
            segments = max(int(math.ceil(fragments * abs(angle) / 360)), 1)
            angles = np.linspace(0, math.radians(angle), segments + 1)
        cos_a = np.cos(angles)
        sin_a = np.sin(angles)
        points = np.column_stack((
            np.outer(radii, cos_a).ravel(),
            np.outer(radii, sin_a).ravel(),
            np.repeat(profile[:, 1], len(angles)),
        ))
        return PointsContext(points)

    def offset(self, posc_obj, r, delta, chamfer=False, fn=None, fa=None,
               fs=None) -> PointsContext:
        context = _combine(self.renderChildren(posc_obj))
        if len(context.points) == 0:
            return context
        if r is not None and r > 0:
            fragments = get_fragments_from_fn_fa_fs(r, fn, fa, fs)
            ring = circle_points(r, fragments)
            points = (context.points[:, None, :] + ring[None, :, :]).reshape(-1, 3)
            return PointsContext(points, context.is_2d)

        amount = r if r is not None else delta
        if amount > 0:
            use_chamfer = bool(chamfer) and r is None
            if context.outlines:
                points = np.vstack([
                    offset_outline_points(o, amount, use_chamfer) for o in context.outlines])
                return PointsContext(_lift(points), context.is_2d)
            if not use_chamfer:
                raise UnsupportedNodeError(
                    'cannot bound a mitred offset(delta=%r) of an unknown outline' % amount)
            # A chamfered corner is at most delta / cos(45) from its vertex.
            amount = amount * math.sqrt(2)

        box = context.bounding_box().expanded(amount)
        if box.is_empty:
            log.debug('offset of %r removes the whole shape', amount)
        return PointsContext(box.corners(), context.is_2d)

    def _unsupported(self, posc_obj, *args, **kwds):
        raise UnsupportedNodeError(
            'cannot bound %s nodes' % posc_obj.OSC_API_SPEC.openscad_name)

    text = _unsupported
    import_file = _unsupported
    surface = _unsupported
    resize = _unsupported


def bounds_of(shape) -> BoundingBox:
    """Returns the axis aligned bounding box of the given shape tree."""
    try:
        context = shape.renderObj(BoundsRenderer())
    except NotImplementedError as e:
        raise UnsupportedNodeError('cannot bound %s: %s' % (type(shape).__name__, e)) from e
    return context.bounding_box()
