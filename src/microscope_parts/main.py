import argparse
import logging
import os
import sys
from typing import Callable, List

from datatrees import datatree, dtfield

from pythonopenscad import PoscBase
from microscope_parts.bounds import bounds_of
from microscope_parts.parts import PARTS
from microscope_parts.picamera import PICAMERA_V2, PiCameraV2Dims

log = logging.getLogger(__name__)


@datatree
class PartModel:
    """Wraps a part generator, building the shape tree on first use."""
    name: str
    factory: Callable[..., PoscBase]
    dims: PiCameraV2Dims = PICAMERA_V2
    _shape: PoscBase | None = dtfield(default=None, init=False)

    def get_shape(self) -> PoscBase:
        if self._shape is None:
            self._shape = self.factory(dims=self.dims)
        return self._shape

    def write_scad(self, output_dir: str) -> str:
        filename = os.path.join(output_dir, f"{self.name}.scad")
        self.get_shape().write(filename)
        return filename

    def write_python(self, output_dir: str) -> str:
        filename = os.path.join(output_dir, f"{self.name}.py")
        # repr() ends a parent node with "),", the list keeps that valid.
        with open(filename, 'w', encoding='utf-8') as fp:
            fp.write('from pythonopenscad.base import *\n')
            fp.write('from pythonopenscad.modifier import *\n\n')
            fp.write(f'{self.name} = [\n')
            fp.write(repr(self.get_shape()))
            fp.write('][0]\n')
        return filename


def add_bool_arg(parser, name, help_text, default=False):
    parser.add_argument(
        f"--{name}",
        action="store_true",
        help=help_text
    )

    parser.add_argument(
        f"--no-{name}",
        action="store_false",
        dest=name.replace('-', '_'),
        help=f"Disable: {help_text}"
    )
    parser.set_defaults(**{name.replace('-', '_'): default})


@datatree
class PartsMainRunner:
    """Parses arguments and writes scripts for the selected parts."""
    parts: dict
    argv: List[str] | None = None
    _args: argparse.Namespace | None = dtfield(default=None, init=False)
    models: List[PartModel] = dtfield(default_factory=list, init=False)
    parser: argparse.ArgumentParser | None = dtfield(
        self_default=lambda s: s._make_parser(), init=False)
    default_scad: bool = True
    default_python: bool = False
    default_bounds: bool = False
    default_output_dir: str = '.'

    @property
    def args(self) -> argparse.Namespace:
        if self._args is None:
            self.parse_args()
        return self._args

    def _make_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            description="Write OpenSCAD scripts for the microscope camera parts.")

        parser.add_argument(
            "--part",
            action="append",
            choices=sorted(self.parts),
            default=None,
            help="Part to generate, may be repeated. Defaults to all parts."
        )
        parser.add_argument(
            "--list",
            action="store_true",
            help="List the available parts and exit."
        )
        parser.add_argument(
            "--output-dir",
            type=str,
            default=self.default_output_dir,
            help="Directory the generated files are written to."
        )
        parser.add_argument(
            "--beam-length",
            type=float,
            default=None,
            help=f"Length of the beam clearance in mm (default {PICAMERA_V2.beam_length})."
        )
        parser.add_argument(
            "-v", "--verbose",
            action="store_true",
            help="Log debug output."
        )

        add_bool_arg(parser, "scad", "Write an OpenSCAD script for each part.",
                     default=self.default_scad)
        add_bool_arg(parser, "python", "Write the Python expression for each part.",
                     default=self.default_python)
        add_bool_arg(parser, "bounds", "Log the bounding box of each part.",
                     default=self.default_bounds)
        return parser

    def parse_args(self):
        self._args = self.parser.parse_args(self.argv)

    def _make_dims(self) -> PiCameraV2Dims:
        if self.args.beam_length is None:
            return PICAMERA_V2
        return PiCameraV2Dims(beam_length=self.args.beam_length)

    def _prepare_models(self):
        dims = self._make_dims()
        names = self.args.part or sorted(self.parts)
        self.models = [PartModel(name, self.parts[name], dims) for name in names]

    def run(self) -> int:
        if self.args.list:
            for name in sorted(self.parts):
                print(name)
            return 0

        actions_requested = self.args.scad or self.args.python or self.args.bounds
        if not actions_requested:
            log.error("No action specified. Use --scad, --python or --bounds.")
            return 1

        self._prepare_models()
        if (self.args.scad or self.args.python) and not os.path.isdir(self.args.output_dir):
            os.makedirs(self.args.output_dir)

        for model in self.models:
            if self.args.scad:
                try:
                    filename = model.write_scad(self.args.output_dir)
                except OSError:
                    log.exception("Failed writing SCAD for %s", model.name)
                    raise
                log.info("Exported SCAD: %s", filename)

            if self.args.python:
                filename = model.write_python(self.args.output_dir)
                log.info("Exported Python: %s", filename)

            if self.args.bounds:
                box = bounds_of(model.get_shape())
                log.info(
                    "%s bounds min=%s max=%s size=%s",
                    model.name,
                    box.min_point.round(3).tolist(),
                    box.max_point.round(3).tolist(),
                    box.size.round(3).tolist(),
                )
        return 0


def main(argv: List[str] | None = None) -> int:
    """Command line entry point."""
    runner = PartsMainRunner(dict(PARTS), argv)
    logging.basicConfig(
        level=logging.DEBUG if runner.args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    return runner.run()


if __name__ == "__main__":
    sys.exit(main())
