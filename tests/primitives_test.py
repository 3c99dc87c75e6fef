"""Tests for the shared geometric building blocks."""

import numpy as np
import pytest
import pythonopenscad as posc

from microscope_parts.bounds import bounds_of
from microscope_parts.primitives import (
    SLAB,
    reflect,
    repeat,
    rounded_box,
    rounded_square,
    sequential_hull,
    slab,
    sloped_roof_clearance,
    trylinder,
)


def test_reflect_is_union_of_child_and_mirror():
    child = posc.Translate((3, 0, 0))(posc.Cube(1))
    shape = reflect((1, 0, 0), child)
    assert isinstance(shape, posc.Union)
    original, mirrored = shape.children()
    assert original is child
    assert str(mirrored) == str(posc.Mirror((1, 0, 0))(child))


def test_reflect_leaves_child_unchanged():
    child = posc.Translate((3, 0, 0))(posc.Cube(1))
    before = str(child)
    reflect((1, 0, 0), child)
    assert str(child) == before


def test_reflect_bounds_symmetric():
    child = posc.Translate((3, 1, 0))(posc.Cube(1))
    box = bounds_of(reflect((1, 0, 0), child))
    np.testing.assert_allclose(box.min_point, [-4, 1, 0], atol=1e-9)
    np.testing.assert_allclose(box.max_point, [4, 2, 1], atol=1e-9)


def test_repeat():
    shape = repeat((0, 2, 0), 3, posc.Cube(1))
    offsets = [c.v for c in shape.children()]
    assert offsets == [[0.0, 0.0, 0.0], [0.0, 2.0, 0.0], [0.0, 4.0, 0.0]]


def test_sequential_hull_pairs():
    a, b, c = posc.Cube(1), posc.Cube(2), posc.Cube(3)
    shape = sequential_hull(a, b, c)
    hulls = shape.children()
    assert all(isinstance(hull, posc.Hull) for hull in hulls)
    assert [[id(x) for x in hull.children()] for hull in hulls] == [
        [id(a), id(b)], [id(b), id(c)]]


def test_sequential_hull_script():
    shape = sequential_hull(posc.Cube(1), posc.Cube(2))
    assert str(shape) == '\n'.join((
        'union() {',
        '  hull() {',
        '    cube(size=1.0);',
        '    cube(size=2.0);',
        '  }',
        '}\n',
    ))


@pytest.mark.parametrize('count', [0, 1])
def test_sequential_hull_degenerate(count):
    shapes = [posc.Cube(1)] * count
    assert str(sequential_hull(*shapes)) == str(posc.Union()(*shapes))


def test_slab():
    box = bounds_of(slab((4, 2), 3))
    np.testing.assert_allclose(box.min_point, [-2, -1, 3 - SLAB / 2])
    np.testing.assert_allclose(box.max_point, [2, 1, 3 + SLAB / 2])


def test_rounded_square_zero_radius_is_square():
    assert str(rounded_square((4, 3), 0)) == str(posc.Square((4, 3), center=True))


@pytest.mark.parametrize('size, r', [((4, 3), 0.5), ((10, 2), 0.99), ((5, 5), 2)])
def test_rounded_square_bounds(size, r):
    box = bounds_of(rounded_square(size, r, fn=16))
    np.testing.assert_allclose(box.size[:2], size, atol=1e-9)
    np.testing.assert_allclose(box.center, [0, 0, 0], atol=1e-9)


def test_rounded_box():
    box = bounds_of(rounded_box((6, 4, 2), 1, fn=8))
    np.testing.assert_allclose(box.min_point, [-3, -2, 0], atol=1e-9)
    np.testing.assert_allclose(box.max_point, [3, 2, 2], atol=1e-9)


def test_sloped_roof_clearance():
    outline = posc.Square((4, 2), center=True)
    shape = sloped_roof_clearance(outline, 1.5, 0.5)
    low, high = shape.children()
    assert str(low) == str(posc.Linear_Extrude(height=1.5)(outline))
    assert str(high) == str(
        posc.Linear_Extrude(height=2.0)(posc.Offset(delta=-0.5)(outline)))

    box = bounds_of(shape)
    np.testing.assert_allclose(box.min_point, [-2, -1, 0], atol=1e-9)
    np.testing.assert_allclose(box.max_point, [2, 1, 2], atol=1e-9)


def test_trylinder_frustum():
    shape = trylinder(h=2, r1=3, r2=0)
    assert shape._fn == 3
    assert shape.r is None
    assert shape.get_r1() == 3
    assert shape.get_r2() == 0
    assert str(shape) == 'cylinder(h=2.0, r1=3.0, r2=0.0, center=false, $fn=3);\n'


def test_trylinder_straight():
    shape = trylinder(h=4, r=1.5, center=True)
    assert str(shape) == 'cylinder(h=4.0, r=1.5, center=true, $fn=3);\n'
    assert repr(shape) == 'cylinder(h=4.0, r=1.5, center=True, _fn=3)\n'
