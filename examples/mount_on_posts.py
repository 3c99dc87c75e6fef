"""
mount_on_posts.py: The camera mount with screw posts underneath.

The posts are placed with the same hole pattern as the board so the mount
can be bolted to a base plate. The Python form of the tree is written next to
the OpenSCAD script.

How to run this example:

  python examples/mount_on_posts.py --python --output-dir build
"""

import logging
import sys

from pythonopenscad import Translate

from microscope_parts import PICAMERA_V2, bottom_mounting_posts, camera_mount
from microscope_parts.main import PartsMainRunner


def mount_on_posts(dims=PICAMERA_V2):
    posts = bottom_mounting_posts(dims=dims)
    return (
        Translate((0, 0, dims.mount_height))(camera_mount(dims=dims)) + posts
    ).setMetadataName('mount_on_posts')


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    sys.exit(PartsMainRunner({'mount_on_posts': mount_on_posts}).run())
