"""
Random-variate kernels for precipitating-electron primaries.

Closed-form samplers take their uniform draws as arguments, so they are
deterministic functions of u and can be checked at the end points. Only the
sine² rejection sampler needs a live generator (anything with .random()).

Pitch angles are measured from the -z axis (downgoing along the field line).
"""

import numpy as np
import numba
from typing import Tuple


@numba.njit(cache=True)
def disk_position(u_theta: float, u_radius: float, radius: float) -> Tuple[float, float]:
    """
    Area-uniform point on a disk.

    r = R sqrt(u) avoids the centre clustering of r = R u.

    Parameters:
        u_theta: Uniform draw for the polar angle
        u_radius: Uniform draw for the radius
        radius: Disk radius [km]

    Returns:
        (x, y) [km]
    """
    theta = u_theta * 2.0 * np.pi
    r = radius * np.sqrt(u_radius)
    return r * np.cos(theta), r * np.sin(theta)


@numba.njit(cache=True)
def sine_pitch_angle(u: float, max_pitch_angle: float) -> float:
    """
    Inverse-CDF draw from p(α) ∝ sin(α) on [0, max_pitch_angle].

    CDF(α) = (1 - cos α) / (1 - cos α_max), so
        α = acos(u (cos α_max - 1) + 1)

    u = 0 gives 0, u = 1 gives max_pitch_angle.
    """
    arg = u * (np.cos(max_pitch_angle) - 1.0) + 1.0
    # rounding can push arg a hair outside [-1, 1]
    arg = min(1.0, max(-1.0, arg))
    return np.arccos(arg)


@numba.njit(cache=True)
def uniform_pitch_angle(u: float, max_pitch_angle: float) -> float:
    """Uniform pitch angle on [0, max_pitch_angle]."""
    return u * max_pitch_angle


@numba.njit(cache=True)
def sine_squared_acceptance(pitch_angle: float, max_pitch_angle: float) -> float:
    """Rejection envelope: (2/α_max) sin²(α π / (2 α_max))."""
    return 2.0 / max_pitch_angle * np.sin(pitch_angle * np.pi / (2.0 * max_pitch_angle)) ** 2


def sine_squared_pitch_angle(rng, max_pitch_angle: float) -> float:
    """
    Rejection draw from p(α) ∝ sin²(α π / (2 α_max)) on [0, α_max].

    Candidate α = u α_max is accepted when 2u' falls below the envelope.
    Consumes two uniforms per trial.

    For α_max < 1 rad the envelope exceeds 2 near α_max, so the density
    there is flattened to uniform.

    Parameters:
        rng: Uniform source with a .random() method
        max_pitch_angle: Upper bound [rad]

    Returns:
        Pitch angle [rad]
    """
    while True:
        pitch_angle = rng.random() * max_pitch_angle
        if rng.random() * 2.0 < sine_squared_acceptance(pitch_angle, max_pitch_angle):
            return pitch_angle


@numba.njit(cache=True)
def exponential_energy(u: float, e0: float) -> float:
    """
    Inverse-CDF draw from an exponential with folding energy e0.

    E = -e0 ln(u); u -> 0+ gives +inf, u -> 1- gives 0.
    """
    return -e0 * np.log(u)


@numba.njit(cache=True)
def direction_from_angles(pitch_angle: float,
                          gyrophase: float) -> Tuple[float, float, float]:
    """
    Unit vector from (pitch angle, gyrophase) with the polar axis along -z.

    Returns:
        (dx, dy, dz)
    """
    sin_a = np.sin(pitch_angle)
    return sin_a * np.cos(gyrophase), sin_a * np.sin(gyrophase), -np.cos(pitch_angle)


@numba.njit(cache=True)
def tilt_direction_legacy(dx: float, dy: float, dz: float,
                          tilt: float) -> Tuple[float, float, float]:
    """
    Historical y-z tilt: the new z is built from the already-rotated y.

        y' = cos t y - sin t z
        z' = sin t y' + cos t z

    This is not a rotation: |d| is not preserved. It is the default;
    tilt_rotation='rigid' selects tilt_direction_rigid instead.
    """
    cos_t = np.cos(tilt)
    sin_t = np.sin(tilt)
    new_dy = cos_t * dy - sin_t * dz
    new_dz = sin_t * new_dy + cos_t * dz
    return dx, new_dy, new_dz


@numba.njit(cache=True)
def tilt_direction_rigid(dx: float, dy: float, dz: float,
                         tilt: float) -> Tuple[float, float, float]:
    """Proper rotation by `tilt` in the y-z plane (norm preserving)."""
    cos_t = np.cos(tilt)
    sin_t = np.sin(tilt)
    return dx, cos_t * dy - sin_t * dz, sin_t * dy + cos_t * dz
