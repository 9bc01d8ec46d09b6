"""
Model Rocket Flight Simulation - CLI

Runs one flight of the reference rocket (or a modified one), prints the
summary, and optionally writes the plots.
"""

import argparse
import logging
import os
import sys
from dataclasses import replace

from . import constants as C
from .config import create_default_config
from .design import (
    DEFAULT_DESIGN_PARAMS,
    FinMaterial,
    NoseShape,
    WindProfile,
    default_design,
    default_environment,
)
from .landing import run_simulation_with_landing
from .validation import ValidationError

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Model rocket flight simulation",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    env = parser.add_argument_group("launch environment")
    env.add_argument("--motor", default=C.DEFAULT_MOTOR, choices=sorted(C.MOTOR_THRUST_DATA),
                     help="Motor designation")
    env.add_argument("--parachute", default=C.DEFAULT_PARACHUTE,
                     help="Parachute size (φ300 or phi300)")
    env.add_argument("--angle", type=float, default=0.0,
                     help="Launch angle from vertical (deg)")
    env.add_argument("--wind", type=float, default=0.0,
                     help="Wind speed at reference height (m/s), positive toward +x")
    env.add_argument("--profile", default=WindProfile.UNIFORM.value,
                     choices=[p.value for p in WindProfile], help="Wind profile")

    design = parser.add_argument_group("rocket design")
    design.add_argument("--nose-shape", default=DEFAULT_DESIGN_PARAMS['nose_shape'],
                        choices=[s.value for s in NoseShape])
    design.add_argument("--fin-material", default=DEFAULT_DESIGN_PARAMS['fin_material'],
                        choices=[m.value for m in FinMaterial])
    design.add_argument("--fin-count", type=int, default=DEFAULT_DESIGN_PARAMS['fin_count'],
                        choices=[3, 4])
    design.add_argument("--weight", type=float, default=DEFAULT_DESIGN_PARAMS['weight'],
                        help="Lift-off mass (g)")
    design.add_argument("--cg", type=float, default=DEFAULT_DESIGN_PARAMS['center_of_gravity'],
                        help="Center of gravity from the nose tip (mm)")

    sim = parser.add_argument_group("simulation")
    sim.add_argument("--enhanced-attitude", action="store_true",
                     help="Enable the weathercocking attitude controller")
    sim.add_argument("--wind-angle-limit", action="store_true",
                     help="Limit the heading to within 90° of the wind while under thrust")
    sim.add_argument("--verbose", "-v", action="store_true",
                     help="Log a status row every simulated second")
    sim.add_argument("--quiet", "-q", action="store_true",
                     help="Only log warnings and errors")

    out = parser.add_argument_group("output")
    out.add_argument("--output-dir", "-o", type=str, default="plots",
                     help="Directory to save output plots")
    out.add_argument("--no-plots", action="store_true", help="Skip plot generation")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Main execution flow."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        design = default_design(nose_shape=args.nose_shape, fin_material=args.fin_material,
                                fin_count=args.fin_count, weight=args.weight,
                                center_of_gravity=args.cg)
        environment = default_environment(launch_angle=args.angle, wind_speed=args.wind,
                                          wind_profile=args.profile, motor=args.motor,
                                          parachute=args.parachute)
    except ValidationError as e:
        logger.error(f"Invalid input: {e}")
        return 2

    config = replace(
        create_default_config(),
        enhanced_attitude_control=args.enhanced_attitude,
        wind_angle_limitation=args.wind_angle_limit,
        verbose=args.verbose,
    )

    result = run_simulation_with_landing(design, environment, config)
    print(result.summary())

    if not args.no_plots and result.samples:
        from .plotting import generate_all_plots

        plot_dir = args.output_dir
        if not os.path.isabs(plot_dir):
            plot_dir = os.path.join(os.getcwd(), plot_dir)
        logger.info(f"Generating plots in {plot_dir}")
        for path in generate_all_plots(result, plot_dir):
            print(f"  {os.path.basename(path)}")

    return 1 if result.is_error else 0


if __name__ == "__main__":
    sys.exit(main())
