"""
Model Rocket Flight Simulation - Parameter Sweeps

Runs many independent flights (for example a launch angle × wind grid)
and collects per-run scalars and their statistics. Each flight owns its
own state, so runs are dispatched to a concurrent.futures pool.
"""

import itertools
import logging
import time
from concurrent.futures import ProcessPoolExecutor, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

import numpy as np

from .config import SimulationConfig, create_default_config
from .design import Environment, RocketDesign, default_environment
from .landing import run_simulation_with_landing
from .types import StatisticSummary

logger = logging.getLogger(__name__)

EXECUTORS = ("thread", "process", "serial")


@dataclass(frozen=True)
class SweepCase:
    """One flight of a sweep."""
    design: RocketDesign
    environment: Environment
    label: str = ""


@dataclass
class SweepRunResult:
    """Scalars from a single flight of a sweep."""
    run_index: int
    label: str
    launch_angle: float
    wind_speed: float
    max_height: float = 0.0
    max_speed: float = 0.0
    max_distance: float = 0.0
    max_fin_deflection: float = 0.0
    landing_x: float = 0.0
    total_flight_time: float = 0.0
    max_angle_change: float = 0.0
    max_absolute_angle: float = 0.0
    is_safe: bool = False
    termination_reason: str = ""
    error: Optional[str] = None


@dataclass
class SweepResults:
    """Aggregated results of a sweep."""
    runs: List[SweepRunResult] = field(default_factory=list)
    config: Optional[SimulationConfig] = None
    wall_time_s: float = 0.0

    @property
    def n_runs(self) -> int:
        return len(self.runs)

    @property
    def n_failed(self) -> int:
        return sum(1 for r in self.runs if r.error is not None)

    @property
    def n_safe(self) -> int:
        return sum(1 for r in self.runs if r.is_safe)

    def get_statistic(self, attr: str) -> StatisticSummary:
        """Compute mean/std/min/max for a scalar attribute across completed runs."""
        values = [getattr(r, attr) for r in self.runs
                  if r.error is None and hasattr(r, attr)]
        if not values:
            return StatisticSummary(mean=0.0, std=0.0, min=0.0, max=0.0)
        arr = np.array(values, dtype=np.float64)
        return StatisticSummary(
            mean=float(np.mean(arr)),
            std=float(np.std(arr)),
            min=float(np.min(arr)),
            max=float(np.max(arr)),
        )

    def summary(self) -> str:
        """Return a formatted summary string."""
        lines = [f"Sweep Results: {self.n_runs} runs in {self.wall_time_s:.1f}s "
                 f"({self.n_safe} safe, {self.n_failed} failed)"]
        for attr in ['max_height', 'max_speed', 'max_distance', 'landing_x',
                     'total_flight_time', 'max_fin_deflection']:
            stats = self.get_statistic(attr)
            lines.append(f"  {attr:20s}: mean={stats['mean']:.2f} std={stats['std']:.2f} "
                         f"min={stats['min']:.2f} max={stats['max']:.2f}")
        return '\n'.join(lines)


def _run_case(index: int, case: SweepCase, config: SimulationConfig) -> SweepRunResult:
    env = case.environment
    run = SweepRunResult(run_index=index, label=case.label,
                         launch_angle=env.launch_angle, wind_speed=env.wind_speed)
    result = run_simulation_with_landing(case.design, env, config)

    run.max_height = result.max_height
    run.max_speed = result.max_speed
    run.max_distance = result.max_distance
    run.max_fin_deflection = result.max_fin_deflection
    run.max_angle_change = result.stability.max_angle_change
    run.max_absolute_angle = result.stability.max_absolute_angle
    run.is_safe = result.verdict.is_safe
    run.termination_reason = result.termination_reason
    run.total_flight_time = result.total_flight_time
    if result.landing is not None:
        run.landing_x = result.landing.landing_x
    if result.error is not None:
        run.error = result.error.message
    return run


def _run_case_safely(index: int, case: SweepCase, config: SimulationConfig) -> SweepRunResult:
    """Run one case; a failure is recorded on the run instead of propagating."""
    try:
        return _run_case(index, case, config)
    except Exception as e:
        logger.warning(f"Sweep run {index} ({case.label}) failed: {e}")
        return SweepRunResult(
            run_index=index, label=case.label,
            launch_angle=case.environment.launch_angle,
            wind_speed=case.environment.wind_speed,
            termination_reason="error",
            error=f"ERROR: {e}",
        )


def run_sweep(cases: Iterable[SweepCase], config: SimulationConfig = None,
              max_workers: Optional[int] = None, executor: str = "thread",
              verbose: bool = False) -> SweepResults:
    """
    Run a batch of independent flights.

    Args:
        cases: Flights to run
        config: Shared simulation configuration
        max_workers: Pool size (None lets concurrent.futures decide)
        executor: "thread", "process" or "serial"
        verbose: Log progress every tenth of the batch

    Returns:
        SweepResults with one run per case, in input order
    """
    if executor not in EXECUTORS:
        raise ValueError(f"executor must be one of {EXECUTORS}, got {executor!r}")
    if config is None:
        config = create_default_config()

    cases = list(cases)
    n_runs = len(cases)
    results = SweepResults(config=config)
    start = time.time()
    logger.info(f"Starting sweep: {n_runs} runs ({executor})")

    if executor == "serial":
        runs = []
        for i, case in enumerate(cases):
            runs.append(_run_case_safely(i, case, config))
            if verbose and (i + 1) % max(1, n_runs // 10) == 0:
                logger.info(f"  Sweep run {i+1}/{n_runs} ({time.time() - start:.1f}s)")
    else:
        pool_cls = ThreadPoolExecutor if executor == "thread" else ProcessPoolExecutor
        with pool_cls(max_workers=max_workers) as pool:
            futures = [pool.submit(_run_case_safely, i, case, config)
                       for i, case in enumerate(cases)]
            runs = [f.result() for f in futures]

    results.runs = runs
    results.wall_time_s = time.time() - start
    logger.info(results.summary())
    return results


def angle_wind_grid(design: RocketDesign, angles: Iterable[float], winds: Iterable[float],
                    **environment) -> List[SweepCase]:
    """
    Cartesian grid of launch angles and wind speeds for one design.

    Extra keyword arguments (motor, parachute, wind_profile) are passed to
    every environment.
    """
    cases = []
    for angle, wind in itertools.product(angles, winds):
        env = default_environment(launch_angle=angle, wind_speed=wind, **environment)
        cases.append(SweepCase(design, env, label=f"angle={angle:g} wind={wind:g}"))
    return cases
