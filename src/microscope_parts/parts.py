'''
Printable parts built around the Pi camera v2 module.

Every generator here is the same few combinators applied to a dimension
table, PiCameraV2Dims. Coordinates follow picamera.py: the optical axis is the
z axis and z=0 is the front face of the camera PCB.
'''

from frozendict import frozendict

from pythonopenscad import (
    Cube,
    Cylinder,
    Difference,
    Linear_Extrude,
    Offset,
    Polygon,
    Rotate,
    Rotate_Extrude,
    Translate,
    Union,
)
from microscope_parts.picamera import PICAMERA_V2, PiCameraV2Dims, push_fit_cutout
from microscope_parts.primitives import (
    SLAB,
    reflect,
    repeat,
    rounded_box,
    rounded_square,
)


def board_outline(w, b, roc=0.0, fn=PICAMERA_V2.fn):
    '''2D outline of a board, w by b, centred on the origin with corners of radius roc.

    The bounding box is exactly w by b for 0 <= roc < min(w, b) / 2 when fn
    is a multiple of 4.
    '''
    return rounded_square((w, b), roc, fn).setMetadataName('board_outline')


def mounting_hole_pattern(child, dims: PiCameraV2Dims=PICAMERA_V2):
    '''Places a copy of child at each of the four mounting holes.'''
    return repeat(
        (0, dims.screw_row_pitch, 0),
        2,
        reflect((1, 0, 0), Translate((dims.screw_spacing / 2, 0, 0))(child)),
    )


def camera_board(dims: PiCameraV2Dims=PICAMERA_V2):
    '''Model of the camera module: the PCB below z=0 and the housing above it.'''
    w, b = dims.board_size
    t = dims.board_thickness
    pcb = Translate((dims.board_offset[0], dims.board_offset[1], -t))(
        Linear_Extrude(height=t)(board_outline(w, b, dims.board_corner_r, dims.fn)))
    hole = Translate((0, 0, -t - SLAB))(
        Cylinder(h=t + 2 * SLAB, r=dims.screw_hole_r, _fn=12))
    housing = Translate((0, 0, dims.camera_height / 2))(
        Cube((dims.housing_width, dims.housing_width, dims.camera_height), center=True))
    return Union()(
        Difference()(pcb, mounting_hole_pattern(hole, dims)),
        housing,
    ).setMetadataName('camera_board')


def bottom_mounting_posts(
        height=None, radius=None, outers=True, cutouts=True,
        dims: PiCameraV2Dims=PICAMERA_V2):
    '''Posts to screw the camera board to from below.

    Args:
        height: Post height, defaults to dims.mount_height.
        radius: Post radius, defaults to dims.post_radius.
        outers: Include the solid posts.
        cutouts: Include the screw holes, on their own these can be
            subtracted from another part.
    '''
    h = dims.mount_height if height is None else height
    r = dims.post_radius if radius is None else radius
    parts = []
    if outers:
        parts.append(Cylinder(h=h, r=r, _fn=12))
    if cutouts:
        parts.append(Translate((0, 0, -SLAB))(
            Cylinder(h=h + 2 * SLAB, r=dims.screw_hole_r, _fn=12)))
    if outers and cutouts:
        post = Difference()(*parts)
    else:
        post = Union()(*parts)
    return mounting_hole_pattern(post, dims).setMetadataName('bottom_mounting_posts')


def camera_mount(beam_length=None, dims: PiCameraV2Dims=PICAMERA_V2):
    '''A block with the footprint of the board that the camera push fits into.'''
    w, b = dims.board_size
    block = Translate((dims.board_offset[0], dims.board_offset[1], 0))(
        rounded_box((w, b, dims.mount_height), dims.board_corner_r, dims.fn))
    return Difference()(
        block, push_fit_cutout(beam_length, dims)
    ).setMetadataName('camera_mount')


def camera_cover(dims: PiCameraV2Dims=PICAMERA_V2):
    '''A tray that slips over the back of the camera board.

    It is held by the same screws as the mount and leaves a slot for the flex
    cable connector.
    '''
    w, b = dims.board_size
    t = dims.board_thickness
    c = dims.cover_clearance
    pocket_depth = dims.cover_depth + t
    total = dims.cover_floor + pocket_depth
    ox, oy = dims.board_offset

    pocket_outline = rounded_square((w + 2 * c, b + 2 * c), dims.board_corner_r + c, dims.fn)
    body = Translate((ox, oy, -total))(
        Linear_Extrude(height=total)(Offset(r=dims.cover_wall, _fn=dims.fn)(pocket_outline)))
    pocket = Translate((ox, oy, -pocket_depth))(
        Linear_Extrude(height=pocket_depth + SLAB)(pocket_outline))

    edge_y = oy - b / 2
    slot_start = edge_y - c - dims.cover_wall - 1
    slot = Translate((-dims.connector_width / 2, slot_start, -pocket_depth))(
        Cube((dims.connector_width,
              edge_y + dims.connector_depth - slot_start,
              pocket_depth + SLAB)))
    hole = Translate((0, 0, -total - SLAB))(
        Cylinder(h=dims.cover_floor + 2 * SLAB, r=dims.screw_hole_r, _fn=12))

    return Difference()(
        body, pocket, slot, mounting_hole_pattern(hole, dims)
    ).setMetadataName('camera_cover')


def camera_gripper(dims: PiCameraV2Dims=PICAMERA_V2):
    '''A plate that grips the camera housing so the lens can be unscrewed safely.

    The pocket is a little smaller than the housing. Each side of the pocket is a
    finger, a thin strip between the pocket and a slot, that flexes outwards as
    the housing is pushed in.
    '''
    pocket = dims.housing_width - dims.gripper_interference
    slot_offset = pocket / 2 + dims.finger_thickness
    outer = 2 * (slot_offset + dims.finger_gap + dims.gripper_wall)
    h = dims.gripper_height

    plate = rounded_box((outer, outer, h), dims.gripper_corner_r, dims.fn)
    hole = Translate((-pocket / 2, -pocket / 2, -SLAB))(Cube((pocket, pocket, h + 2 * SLAB)))
    slot = Translate((slot_offset, -dims.finger_length / 2, -SLAB))(
        Cube((dims.finger_gap, dims.finger_length, h + 2 * SLAB)))
    slots = Union()(
        reflect((1, 0, 0), slot),
        Rotate(90)(reflect((1, 0, 0), slot)),
    )
    return Difference()(plate, hole, slots).setMetadataName('camera_gripper')


def lens_gripper(dims: PiCameraV2Dims=PICAMERA_V2):
    '''A ring with teeth that engage the notches in the lens, for unscrewing it.'''
    ri = dims.lens_tool_inner_r
    ro = dims.lens_tool_outer_r
    h = dims.lens_tool_height
    ch = dims.lens_tool_chamfer
    profile = Polygon(((ri, 0), (ro, 0), (ro, h - ch), (ro - ch, h), (ri, h)))
    tooth = Translate((ri, 0, 0))(Cylinder(h=h, r=dims.lens_tooth_r, _fn=8))
    n = dims.lens_tool_teeth
    teeth = [Rotate(360 * i / n)(tooth) for i in range(n)]
    return Union()(
        Rotate_Extrude(_fn=dims.fn)(profile), *teeth
    ).setMetadataName('lens_gripper')


# Name to generator, each takes a dims keyword argument.
PARTS = frozendict({
    'push_fit_cutout': push_fit_cutout,
    'camera_mount': camera_mount,
    'camera_board': camera_board,
    'camera_cover': camera_cover,
    'bottom_mounting_posts': bottom_mounting_posts,
    'camera_gripper': camera_gripper,
    'lens_gripper': lens_gripper,
})
