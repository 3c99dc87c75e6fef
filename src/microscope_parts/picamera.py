'''
Push fit mount geometry for the Raspberry Pi camera module v2.

The camera module is a small PCB with the camera housing (and lens) on the
front, a flex cable running to a connector at the bottom edge, and four
mounting holes. The push fit cutout is subtracted from the bottom of a block
so that the module can be pushed in from below: the z=0 plane is the bottom
face of the block and the front face of the PCB, the optical axis is the z
axis.
'''

import logging

from datatrees import datatree, dtfield

from pythonopenscad import Cylinder, Polygon, Rotate, Translate, Union
from microscope_parts.primitives import (
    SLAB,
    reflect,
    sequential_hull,
    slab,
    sloped_roof_clearance,
    trylinder,
)

log = logging.getLogger(__name__)


# Minimum material between a screw void and the edge of the board.
SCREW_VOID_EDGE_MARGIN = 0.2


@datatree(frozen=True)
class PiCameraV2Dims:
    '''Dimensions (mm) of the Pi camera v2 module and the clearances printed around it.

    Several of these are tuned on printed parts rather than derived, change them
    with care.
    '''
    camera_width: float = dtfield(
        default=8.5 + 1.0, doc='Side of the cutout for the camera housing, 1mm loose.')
    housing_width: float = dtfield(default=8.5, doc='Side of the camera housing itself.')
    camera_height: float = dtfield(
        default=2.9, doc='Height of the camera housing including the foam pad.')
    fit_allowance: float = dtfield(
        default=0.5, doc='Extra play at the entrance of the push fit aperture.')
    entry_depth: float = dtfield(
        default=1.0, doc='Depth below z=0 of the oversized entrance section.')
    aperture_radius: float = dtfield(default=4.3, doc='Radius of the optical aperture.')
    beam_length: float = dtfield(
        default=15.0, doc='Default length of the beam clearance along the optical axis.')

    flex_outline: tuple = dtfield(
        default=(
            (-4.75, 0.0), (4.75, 0.0), (4.75, -4.0), (6.5, -6.0),
            (6.5, -8.5), (-6.5, -8.5), (-6.5, -6.0), (-4.75, -4.0)),
        doc='Footprint of the flex cable and the components next to it.')
    flex_height: float = dtfield(default=1.5, doc='Height of the flex and components.')
    roof_slope: float = dtfield(
        default=0.5, doc='Inset of the clearance roof, gives a 45 degree ceiling.')
    led_outline: tuple = dtfield(
        default=((-10.0, 5.0), (-7.0, 5.0), (-7.0, 7.5), (-10.0, 7.5)),
        doc='Footprint of the LED on early board revisions.')
    led_height: float = dtfield(default=1.0, doc='Height of the legacy LED.')

    screw_spacing: float = dtfield(
        default=21.0, doc='Distance between the left and right mounting holes.')
    screw_row_pitch: float = dtfield(
        default=12.5, doc='Distance between the two rows of mounting holes.')
    screw_chamfer_r: float = dtfield(
        default=3.0, doc='Vertex radius of the triangular chamfer at the screw entry.')
    screw_chamfer_h: float = dtfield(default=3.0, doc='Height of the screw entry chamfer.')
    screw_bore_r: float = dtfield(
        default=1.5, doc='Vertex radius of the triangular bore, the flats are at half this.')
    screw_bore_h: float = dtfield(default=12.0, doc='Length of the screw bore, centred on z=0.')
    screw_hole_r: float = dtfield(default=1.1, doc='Radius of clearance holes for the screws.')

    board_size: tuple = dtfield(default=(25.0, 24.0), doc='Width and breadth of the PCB.')
    board_thickness: float = dtfield(default=1.0, doc='Thickness of the PCB.')
    board_corner_r: float = dtfield(default=1.0, doc='Corner radius of the PCB.')
    board_offset: tuple = dtfield(
        default=(0.0, 2.4), doc='Centre of the PCB relative to the optical axis.')

    mount_height: float = dtfield(default=4.5, doc='Height of the mounting posts and block.')
    post_radius: float = dtfield(default=2.0, doc='Outer radius of the mounting posts.')

    connector_width: float = dtfield(default=17.0, doc='Width of the flex connector slot.')
    connector_depth: float = dtfield(
        default=5.5, doc='Distance the connector reaches in from the board edge.')
    cover_wall: float = dtfield(default=1.5, doc='Wall thickness of the cover.')
    cover_floor: float = dtfield(default=1.0, doc='Floor thickness of the cover.')
    cover_depth: float = dtfield(
        default=2.5, doc='Space under the PCB for the components on its back.')
    cover_clearance: float = dtfield(default=0.3, doc='Gap between the PCB and the cover.')

    gripper_interference: float = dtfield(
        default=0.2, doc='How much smaller the gripper pocket is than the housing.')
    gripper_height: float = dtfield(default=3.0, doc='Thickness of the gripper plate.')
    gripper_wall: float = dtfield(default=2.5, doc='Material outside the finger slots.')
    gripper_corner_r: float = dtfield(default=2.0, doc='Corner radius of the gripper plate.')
    finger_thickness: float = dtfield(default=0.8, doc='Thickness of the flexing fingers.')
    finger_gap: float = dtfield(default=0.6, doc='Width of the slots behind the fingers.')
    finger_length: float = dtfield(default=7.0, doc='Free length of the fingers.')

    lens_tool_inner_r: float = dtfield(default=4.7 / 2, doc='Inner radius of the lens tool.')
    lens_tool_outer_r: float = dtfield(default=6.0, doc='Outer radius of the lens tool.')
    lens_tool_height: float = dtfield(default=2.5, doc='Height of the lens tool.')
    lens_tool_chamfer: float = dtfield(default=0.5, doc='Chamfer on the top outer edge.')
    lens_tool_teeth: int = dtfield(default=6, doc='Number of teeth gripping the lens.')
    lens_tooth_r: float = dtfield(default=0.5, doc='Radius of each tooth.')

    fn: int = dtfield(default=48, doc='Number of segments for round features.')


PICAMERA_V2 = PiCameraV2Dims()


def aperture_cross_sections(dims: PiCameraV2Dims=PICAMERA_V2):
    '''The cross sections of the tapered aperture, lowest first.

    An oversized square at the entrance, the true sized square at z=0 and at
    the top of the housing, then the circular aperture. The circle sits above
    the housing by the step from the square to the circle, so the hull between
    them is a 45 degree shoulder that prints without supports. The footprint
    never grows with height so the camera is guided in.
    '''
    cw = dims.camera_width
    ch = dims.camera_height
    r = dims.aperture_radius
    return (
        slab((cw + dims.fit_allowance, cw + dims.fit_allowance), -dims.entry_depth),
        slab((cw, cw), 0),
        slab((cw, cw), ch),
        Translate((0, 0, ch + cw / 2 - r))(Cylinder(h=SLAB, r=r, _fn=dims.fn)),
    )


def tapered_aperture(dims: PiCameraV2Dims=PICAMERA_V2):
    return sequential_hull(*aperture_cross_sections(dims)).setMetadataName(
        'tapered_aperture')


def flex_clearance(dims: PiCameraV2Dims=PICAMERA_V2):
    '''Room for the flex cable and the small components beside it.'''
    return sloped_roof_clearance(
        Polygon(dims.flex_outline), dims.flex_height, dims.roof_slope
    ).setMetadataName('flex_clearance')


def legacy_led_clearance(dims: PiCameraV2Dims=PICAMERA_V2):
    '''Room for the LED fitted to early revisions of the board.'''
    return sloped_roof_clearance(
        Polygon(dims.led_outline), dims.led_height, dims.roof_slope
    ).setMetadataName('legacy_led_clearance')


def beam_clearance(beam_length, dims: PiCameraV2Dims=PICAMERA_V2):
    return Cylinder(
        h=beam_length, r=dims.aperture_radius, _fn=dims.fn
    ).setMetadataName('beam_clearance')


def screw_void(dims: PiCameraV2Dims=PICAMERA_V2):
    '''A triangular bore with a chamfered entry for one self tapping screw.'''
    return Union()(
        trylinder(h=dims.screw_chamfer_h, r1=dims.screw_chamfer_r, r2=0),
        trylinder(h=dims.screw_bore_h, r=dims.screw_bore_r, center=True),
    )


def screw_voids(dims: PiCameraV2Dims=PICAMERA_V2):
    '''The two screw voids either side of the camera, mirror images across x=0.

    Rotating by 60 degrees puts a flat of each triangle towards the board edge.
    '''
    return reflect(
        (1, 0, 0),
        Translate((dims.screw_spacing / 2, 0, 0))(Rotate(60)(screw_void(dims))),
    ).setMetadataName('screw_voids')


def push_fit_cutout(beam_length=None, dims: PiCameraV2Dims=PICAMERA_V2, legacy_led=True):
    '''Space to subtract from a block so the camera module push fits into it.

    Args:
        beam_length: Length of the clearance cylinder along the optical axis.
            Defaults to dims.beam_length. Not validated, OpenSCAD reports
            degenerate values.
        dims: Camera dimensions.
        legacy_led: Include clearance for the LED on early board revisions.
    '''
    if beam_length is None:
        beam_length = dims.beam_length
    log.debug('building push fit cutout, beam_length=%r legacy_led=%r', beam_length, legacy_led)

    parts = [tapered_aperture(dims), flex_clearance(dims)]
    if legacy_led:
        parts.append(legacy_led_clearance(dims))
    parts.append(beam_clearance(beam_length, dims))
    parts.append(screw_voids(dims))
    return Union()(*parts).setMetadataName('push_fit_cutout')
