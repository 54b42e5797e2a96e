"""
Pressure force.

Pushes each target particle down the pressure gradient,

    f_i = -∇p(x_i) = -Σ_j m_j (p_j / ρ_j) ∇W_spiky(x_i - x_j),

using the System's pressure field. Pressures must already hold
k (ρ - ρ_rest) for the current configuration when this force is applied.
"""

from fluid_sph.core.interfaces import Force


class PressureForce(Force):
    """Negative pressure gradient evaluated through the pressure field."""

    def apply(self, system) -> None:
        for pi in self.particles:
            pi.force -= system.pressure_field.d_eval(pi.position)
