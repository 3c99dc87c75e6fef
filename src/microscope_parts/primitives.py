"""
Geometric building blocks shared by the part generators.

All of these are pure functions returning new pythonopenscad trees. The
children passed in are shared between parents, never modified.
"""

from pythonopenscad import (
    Circle,
    Cube,
    Cylinder,
    Hull,
    Linear_Extrude,
    Mirror,
    Offset,
    Square,
    Translate,
    Union,
)

# Thickness of the slabs used as cross sections in lofts.
SLAB = 0.05


def reflect(v, *children):
    """Union of the children with their mirror image across the plane with normal v.

    The mirrored copy is always the last child of the returned Union.
    """
    return Union()(*children, Mirror(v)(*children))


def repeat(delta, count, *children):
    """Union of count copies of the children, each one translated by delta from the last."""
    return Union()(*(
        Translate([i * d for d in delta])(*children) for i in range(count)
    ))


def sequential_hull(*shapes):
    """Union of the hulls of each consecutive pair of shapes, a loft through the
    shapes in the order given."""
    if len(shapes) < 2:
        return Union()(*shapes)
    return Union()(*(Hull()(a, b) for a, b in zip(shapes, shapes[1:])))


def slab(size, z=0.0):
    """A thin cuboid centred on the z axis at height z, used as a loft cross section.
    Args:
        size: (x, y) size of the section.
        z: height of the section.
    """
    return Translate((0, 0, z))(Cube((size[0], size[1], SLAB), center=True))


def rounded_square(size, r, fn=None):
    """2D rectangle centred on the origin with corners rounded to radius r.

    The corners are the hull of four circles, so the outline spans exactly
    size[0] by size[1]. A radius of zero gives a plain square.
    """
    w, b = size
    if r <= 0:
        return Square((w, b), center=True)
    corner = Translate((w / 2 - r, b / 2 - r))(Circle(r=r, _fn=fn))
    return Hull()(reflect((1, 0, 0), reflect((0, 1, 0), corner)))


def rounded_box(size, r, fn=None):
    """Rounded rectangle of size[0] by size[1] extruded from z=0 to size[2]."""
    return Linear_Extrude(height=size[2])(rounded_square(size[:2], r, fn))


def sloped_roof_clearance(outline, height, roof):
    """Clearance for a 2D footprint with a sloped ceiling.

    Hull of the outline extruded to height and the outline shrunk by roof
    extruded to height + roof. The 45 degree ceiling prints without supports.
    """
    return Hull()(
        Linear_Extrude(height=height)(outline),
        Linear_Extrude(height=height + roof)(Offset(delta=-roof)(outline)),
    )


def trylinder(h, r=None, r1=None, r2=None, center=False):
    """A three sided cylinder or frustum. Round screws self tap into the flats.

    Give either r, or r1 and r2 for a frustum.
    """
    if r1 is None and r2 is None:
        return Cylinder(h=h, r=r, center=center, _fn=3)
    # r defaults to 1.0, clear it so a frustum is written with r1 and r2 only.
    return Cylinder(h=h, r=None, r1=r1, r2=r2, center=center, _fn=3)
