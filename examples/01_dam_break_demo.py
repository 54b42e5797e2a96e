#!/usr/bin/env python3
"""
Dam break demo.

Drops a jittered block of fluid particles into the default container and
advances it with RK4 and step-doubling step control, printing the kinetic
energy and centre of mass as the column collapses.

Run from project root:
    python examples/01_dam_break_demo.py
"""

from pathlib import Path

from fluid_sph import System, SystemConfig
from fluid_sph.config import load_config
from fluid_sph.forces import GravityForce, default_fluid_forces
from fluid_sph.ICs import LatticeBlock
from fluid_sph.integration import RK4Solver


def build_system(config: SystemConfig) -> System:
    """Column of 4 x 8 x 4 particles resting just above the floor."""
    system = System(RK4Solver(), config)

    for force in default_fluid_forces(config):
        system.add_force(force)
    system.add_force(GravityForce())

    block = LatticeBlock(spacing=0.05)
    for p in block.generate((4, 8, 4), origin=(-0.18, -1.95, -0.18), jitter=0.05,
                            seed=config.random_seed):
        system.add_particle(p)

    return system


def demo_dam_break(t_end: float = 0.05):
    print("=" * 70)
    print("DAM BREAK")
    print("=" * 70)

    config_path = Path(__file__).parent.parent / "configs" / "dam_break.yaml"
    if config_path.exists():
        config = load_config(config_path)
        print(f"Loaded {config_path.name}")
    else:
        config = SystemConfig(adaptive=True, verbose=True, log_interval=50)
        print("Using default configuration")

    system = build_system(config)
    print(system)
    print(f"State dimension: {system.get_dim()}")
    print(f"Initial E_kin: {system.kinetic_energy():.4e}")
    print(f"Initial centre of mass: {system.center_of_mass()}")
    print()

    n_steps = system.run(t_end)

    print()
    print(f"Steps taken: {n_steps}")
    print(f"Final time: {system.time:.4f}, dt: {system.dt:.3e}")
    print(f"Final E_kin: {system.kinetic_energy():.4e}")
    print(f"Final centre of mass: {system.center_of_mass()}")

    data = system.draw(draw_velocity=True)
    print(f"Drawing data for {len(data['particles'])} particles")


if __name__ == "__main__":
    demo_dam_break()
