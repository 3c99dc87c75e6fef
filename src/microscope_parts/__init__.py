"""Parametric CSG models of the Raspberry Pi camera v2 mount parts for a 3D printed
microscope.

The parts are pythonopenscad trees, written out as OpenSCAD scripts for
rendering and export.
"""

from microscope_parts.bounds import (
    BoundingBox,
    InvalidGeometryError,
    UnsupportedNodeError,
    bounds_of,
)
from microscope_parts.primitives import (
    reflect,
    repeat,
    rounded_box,
    rounded_square,
    sequential_hull,
    sloped_roof_clearance,
    trylinder,
)
from microscope_parts.picamera import PICAMERA_V2, PiCameraV2Dims, push_fit_cutout
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

__all__ = [
    'BoundingBox', 'InvalidGeometryError', 'UnsupportedNodeError', 'bounds_of',
    'reflect', 'repeat', 'rounded_box', 'rounded_square', 'sequential_hull',
    'sloped_roof_clearance', 'trylinder',
    'PICAMERA_V2', 'PiCameraV2Dims', 'push_fit_cutout',
    'PARTS', 'board_outline', 'bottom_mounting_posts', 'camera_board', 'camera_cover',
    'camera_gripper', 'camera_mount', 'lens_gripper',
]
