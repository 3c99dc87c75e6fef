"""Tests for the printable part generators."""

import importlib.util

import numpy as np
import pytest
import pythonopenscad as posc

from microscope_parts.bounds import bounds_of
from microscope_parts.parts import (
    PARTS,
    board_outline,
    bottom_mounting_posts,
    camera_board,
    camera_cover,
    camera_gripper,
    camera_mount,
    lens_gripper,
)
from microscope_parts.picamera import PICAMERA_V2, PiCameraV2Dims


def assert_box(shape, min_point, max_point):
    box = bounds_of(shape)
    np.testing.assert_allclose(box.min_point, min_point, atol=1e-9)
    np.testing.assert_allclose(box.max_point, max_point, atol=1e-9)


def find_all(shape, clazz):
    if isinstance(shape, clazz):
        yield shape
    for child in shape.children():
        yield from find_all(child, clazz)


@pytest.mark.parametrize('w, b, roc', [
    (25, 24, 0),
    (25, 24, 1),
    (25, 24, 11.9),
    (10, 30, 4.99),
    (24.5, 23.5, 1),
])
def test_board_outline_bounds(w, b, roc):
    box = bounds_of(board_outline(w, b, roc))
    np.testing.assert_allclose(box.size[:2], (w, b), atol=1e-9)
    np.testing.assert_allclose(box.center, (0, 0, 0), atol=1e-9)


def test_board_outline_square_corners():
    outline = board_outline(25, 24)
    assert isinstance(outline, posc.Square)
    assert outline.getMetadataName() == 'board_outline'


def test_camera_board():
    assert_box(camera_board(), [-12.5, -9.6, -1], [12.5, 14.4, 2.9])


def test_bottom_mounting_posts():
    assert_box(bottom_mounting_posts(), [-12.5, -2, 0], [12.5, 14.5, 4.5])
    posts = list(find_all(bottom_mounting_posts(), posc.Difference))
    assert len(posts) == 4


def test_bottom_mounting_posts_cutouts_only():
    assert_box(
        bottom_mounting_posts(outers=False),
        [-11.6, -1.1, -0.05], [11.6, 13.6, 4.55])


def test_bottom_mounting_posts_nothing():
    assert bounds_of(bottom_mounting_posts(outers=False, cutouts=False)).is_empty


def test_bottom_mounting_posts_sizes():
    assert_box(
        bottom_mounting_posts(height=6, radius=3, cutouts=False),
        [-13.5, -3, 0], [13.5, 15.5, 6])


def test_camera_mount():
    mount = camera_mount()
    assert isinstance(mount, posc.Difference)
    assert_box(mount, [-12.5, -9.6, 0], [12.5, 14.4, 4.5])
    cutout = mount.children()[1]
    assert cutout.getMetadataName() == 'push_fit_cutout'


def test_camera_mount_beam_length():
    beams = [c for c in find_all(camera_mount(20), posc.Cylinder)
             if c.getMetadataName() == 'beam_clearance']
    assert [c.h for c in beams] == [20]


def test_camera_mount_custom_board():
    dims = PiCameraV2Dims(board_size=(30.0, 30.0), board_offset=(0.0, 0.0))
    assert_box(camera_mount(dims=dims), [-15, -15, 0], [15, 15, 4.5])


def test_camera_cover():
    assert_box(camera_cover(), [-14.3, -11.4, -4.5], [14.3, 16.2, 0])


def test_camera_cover_holes_match_posts():
    cover_pattern = camera_cover().children()[3]
    post_pattern = bottom_mounting_posts(outers=False)
    np.testing.assert_allclose(
        bounds_of(cover_pattern).center[:2], bounds_of(post_pattern).center[:2])


def test_camera_gripper():
    gripper = camera_gripper()
    assert_box(gripper, [-8.05, -8.05, 0], [8.05, 8.05, 3])

    pocket = bounds_of(gripper.children()[1])
    expected = PICAMERA_V2.housing_width - PICAMERA_V2.gripper_interference
    np.testing.assert_allclose(pocket.size[:2], (expected, expected))
    assert pocket.size[0] < PICAMERA_V2.housing_width


def test_camera_gripper_slots_on_four_sides():
    slots = bounds_of(camera_gripper().children()[2])
    np.testing.assert_allclose(slots.min_point[:2], -slots.max_point[:2], atol=1e-9)
    assert slots.max_point[0] == pytest.approx(4.95 + PICAMERA_V2.finger_gap)


def test_lens_gripper():
    tool = lens_gripper()
    assert_box(tool, [-6, -6, 0], [6, 6, 2.5])
    teeth = [c for c in tool.children() if isinstance(c, posc.Rotate)]
    assert len(teeth) == PICAMERA_V2.lens_tool_teeth


def test_parts_registry():
    assert set(PARTS) == {
        'push_fit_cutout', 'camera_mount', 'camera_board', 'camera_cover',
        'bottom_mounting_posts', 'camera_gripper', 'lens_gripper',
    }
    with pytest.raises(TypeError):
        PARTS['extra'] = camera_mount


@pytest.mark.parametrize('name', sorted(PARTS))
def test_parts_build(name):
    shape = PARTS[name](dims=PICAMERA_V2)
    assert isinstance(shape, posc.PoscBase)
    assert shape.getMetadataName() == name
    assert str(shape) == str(PARTS[name]())
    assert str(shape).startswith(f"// '{name}'\n")
    assert not bounds_of(shape).is_empty


def test_package_builds_on_pythonopenscad():
    import microscope_parts
    assert importlib.util.find_spec('microscope_parts.base') is None
    assert importlib.util.find_spec('microscope_parts.modifier') is None
    assert not hasattr(microscope_parts, 'Cube')
    assert isinstance(camera_mount().children()[1], posc.Union)
