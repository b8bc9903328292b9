"""Command line front end for the free-flyer reaching simulation.

Runs one configuration (a named preset plus optional overrides), prints a
summary of the terminal status and optionally shows or saves the error
plot, the trajectory plot and the replay animation.
"""

from __future__ import annotations

import argparse
import logging
from typing import List, Optional

from .config import PRESETS, ConfigurationError, SimulationConfig
from .simulation import FreeFlyerSimulation, SimulationResult, SimulationStatus


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Free-flying spacecraft with a 2-link manipulator reaching a target point"
    )
    parser.add_argument("--preset", default="limited", choices=sorted(PRESETS),
                        help="Named parameter set (default: limited)")
    parser.add_argument("--max-steps", type=int, default=None, help="Step budget")
    parser.add_argument("--dt", type=float, default=None, help="Integration step [s]")
    parser.add_argument("--kp", type=float, default=None, help="End-effector proportional gain")
    parser.add_argument("--kd", type=float, default=None, help="End-effector derivative gain")
    parser.add_argument("--thrust", type=float, default=None, help="Thruster force [N]")
    parser.add_argument("--target", type=float, nargs=2, metavar=("X", "Y"), default=None,
                        help="Target position [m]")
    parser.add_argument("--plot", action="store_true", help="Show error and trajectory plots")
    parser.add_argument("--animate", action="store_true", help="Replay the run as an animation")
    parser.add_argument("--save-figure", default=None, metavar="PATH",
                        help="Save the error / trajectory figure to PATH")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable info logging")
    return parser


def config_from_args(args: argparse.Namespace) -> SimulationConfig:
    overrides = {}
    if args.max_steps is not None:
        overrides["max_steps"] = args.max_steps
    if args.dt is not None:
        overrides["dt"] = args.dt
    if args.kp is not None:
        overrides["Kp"] = args.kp
    if args.kd is not None:
        overrides["Kd"] = args.kd
    if args.thrust is not None:
        overrides["thruster_force"] = args.thrust
    if args.target is not None:
        overrides["target_position"] = tuple(args.target)
    return SimulationConfig.from_preset(args.preset, **overrides)


def print_summary(result: SimulationResult) -> None:
    cfg = result.config
    print("=" * 60)
    print("FREE-FLYER SIMULATION SUMMARY")
    print("=" * 60)
    print(f"  Controller:       {cfg.controller} (coupled dynamics: {cfg.coupled_dynamics})")
    print(f"  Gains:            Kp={cfg.Kp}, Kd={cfg.Kd}")
    print(f"  Target:           ({cfg.target_position[0]:.2f}, {cfg.target_position[1]:.2f}) m")
    print(f"  Status:           {result.status.value.upper()}")
    print(f"  Steps:            {result.steps} / {cfg.max_steps}")
    print(f"  Simulated time:   {result.steps * cfg.dt:.1f} s")
    print(f"  Final error:      {result.final_error_norm:.4f} m")
    if result.status is SimulationStatus.CONVERGED:
        print("End effector reached the target!")
    elif result.status is SimulationStatus.ERROR:
        print(f"Simulation aborted: {result.error}")


def _make_figure(result: SimulationResult):
    import matplotlib.pyplot as plt

    from .visualization import plot_end_effector_error, plot_trajectory

    fig, (ax_traj, ax_err) = plt.subplots(1, 2, figsize=(14, 6))
    plot_trajectory(result, ax=ax_traj)
    plot_end_effector_error(result, ax=ax_err)
    fig.tight_layout()
    return fig


def main(argv: Optional[List[str]] = None) -> int:
    """Parse arguments, run the simulation and report. Returns an exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = config_from_args(args)
    except ConfigurationError as exc:
        parser.error(str(exc))

    result = FreeFlyerSimulation(config).run()
    print_summary(result)

    if args.save_figure or args.plot:
        fig = _make_figure(result)
        if args.save_figure:
            fig.savefig(args.save_figure, dpi=150)
            print(f"Figure saved to {args.save_figure}")

    if args.animate and len(result.history):
        from .visualization import animate_simulation

        anim = animate_simulation(result)  # noqa: F841  keep alive while shown

    if args.plot or args.animate:
        import matplotlib.pyplot as plt

        plt.show()

    return 1 if result.status is SimulationStatus.ERROR else 0
