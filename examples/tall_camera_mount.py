"""
tall_camera_mount.py: A camera mount variant for a longer optics tube.

The dimension table is frozen, a variant is a new table with the fields that
change. Here the mount block is raised to 8mm and the beam clearance is
lengthened to match the tube.

How to run this example:

- To write tall_camera_mount.scad into the current directory:
  python examples/tall_camera_mount.py

- To also log its bounding box:
  python examples/tall_camera_mount.py --bounds
"""

import dataclasses
import logging
import sys

from microscope_parts import PICAMERA_V2, camera_mount
from microscope_parts.main import PartsMainRunner


def tall_camera_mount(dims=PICAMERA_V2):
    tall = dataclasses.replace(dims, mount_height=8.0, beam_length=25.0)
    return camera_mount(dims=tall).setMetadataName('tall_camera_mount')


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    sys.exit(PartsMainRunner({'tall_camera_mount': tall_camera_mount}).run())
