"""
Flight audit report: phase timeline of one flight plus a launch angle × wind sweep.
"""

from __future__ import annotations

import argparse
from pathlib import Path
import sys

if __package__ in (None, ""):
    sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from rocketsim.config import create_default_config
from rocketsim.design import default_design, default_environment
from rocketsim.landing import run_simulation_with_landing
from rocketsim.sweep import angle_wind_grid, run_sweep


def _phase_transitions(samples):
    out = []
    prev = None
    for s in samples:
        if s.phase != prev:
            out.append((s.time, s.phase, s.y, s.speed))
            prev = s.phase
    return out


def _floats(text):
    return [float(v) for v in text.split(",") if v.strip()]


def main():
    parser = argparse.ArgumentParser(description="Run a reference flight and a sweep, print an audit summary.")
    parser.add_argument("--motor", default="A8-3", help="Motor designation")
    parser.add_argument("--parachute", default="φ300", help="Parachute size")
    parser.add_argument("--angle", type=float, default=0.0, help="Reference launch angle (deg)")
    parser.add_argument("--wind", type=float, default=0.0, help="Reference wind speed (m/s)")
    parser.add_argument("--angles", default="-10,-5,0,5,10", help="Sweep launch angles (deg)")
    parser.add_argument("--winds", default="-4,0,4", help="Sweep wind speeds (m/s)")
    parser.add_argument("--executor", default="thread", choices=["thread", "process", "serial"])
    parser.add_argument("--workers", type=int, default=None, help="Sweep pool size")
    args = parser.parse_args()

    cfg = create_default_config()
    design = default_design()
    env = default_environment(launch_angle=args.angle, wind_speed=args.wind,
                              motor=args.motor, parachute=args.parachute)
    result = run_simulation_with_landing(design, env, cfg)

    print("=" * 88)
    print("FLIGHT AUDIT")
    print("=" * 88)
    print(f"Motor / parachute: {env.motor.designation} / {env.parachute.designation}")
    print(f"Termination:       {result.termination_reason}")
    print("-" * 88)
    print("Phase Transitions:")
    for t, phase, h, v in _phase_transitions(result.samples):
        print(f"  t={t:6.2f}s | {phase:22s} | h={h:7.2f} m | v={v:6.2f} m/s")
    print("-" * 88)
    print("Key Points:")
    for name, point in result.key_points.as_dict().items():
        if point is not None:
            print(f"  {name:22s} t={point.time:6.2f}s h={point.height:7.2f} m "
                  f"x={point.x:7.2f} m")
    if result.error is not None:
        print(f"ERROR: {result.error.message}")

    print("-" * 88)
    cases = angle_wind_grid(design, _floats(args.angles), _floats(args.winds),
                            motor=args.motor, parachute=args.parachute)
    sweep = run_sweep(cases, cfg, max_workers=args.workers, executor=args.executor)
    print(f"{'case':24s} {'h_max':>8s} {'v_max':>8s} {'land_x':>8s} {'t_tot':>7s}  status")
    for run in sweep.runs:
        status = run.error or ("SAFE" if run.is_safe else "UNSAFE")
        print(f"{run.label:24s} {run.max_height:8.2f} {run.max_speed:8.2f} "
              f"{run.landing_x:8.2f} {run.total_flight_time:7.2f}  {status}")
    print("-" * 88)
    print(sweep.summary())
    print("=" * 88)


if __name__ == "__main__":
    main()
