"""
Dipole approximation of Earth's magnetic field.

Only the vertical component varies:
    z  = R_earth + z_km + offset/2
    Bz = -(M / z³) * sqrt(1 + 3 sin²(λ))

where M is the dipole moment [T km³] and λ the geomagnetic latitude of the
site. The horizontal components and the electric field are identically zero.

The world volume is centred half-way up a column of height `offset`, hence
the offset/2 shift.

References:
    - Kivelson & Russell, Introduction to Space Physics, ch. 2
"""

import numpy as np
import numba

from precip_mc.config import DipoleFieldConfig
from precip_mc.exceptions import FieldSingularityError


@numba.njit(cache=True)
def dipole_bz(z_km: float, dipole_moment: float, geomag_lat_rad: float) -> float:
    """
    Vertical field component at radial distance z_km.

    Parameters:
        z_km: Radial distance from the dipole centre [km]
        dipole_moment: Dipole moment [T km³]
        geomag_lat_rad: Geomagnetic latitude [rad]

    Returns:
        Bz [T] (inf/NaN at z_km == 0; callers guard)
    """
    inclination = np.sqrt(1.0 + 3.0 * np.sin(geomag_lat_rad) ** 2)
    return -dipole_moment / z_km ** 3 * inclination


@numba.njit(cache=True)
def dipole_field_map(z_km: np.ndarray, dipole_moment: float,
                     geomag_lat_rad: float) -> np.ndarray:
    """
    Field vectors for an array of radial distances.

    Returns:
        (N, 6) array of (Bx, By, Bz, Ex, Ey, Ez) [T]
    """
    n = len(z_km)
    out = np.zeros((n, 6))
    for i in range(n):
        out[i, 2] = dipole_bz(z_km[i], dipole_moment, geomag_lat_rad)
    return out


class EarthDipoleField:
    """
    Field object queried by the transport engine's stepper.

    Usage:
        bfield = EarthDipoleField()
        B = bfield.get_field_value((0.0, 0.0, 100.0, 0.0))   # km, time ignored
        Bz = B[2]                                               # tesla
    """

    def __init__(self, dipole_moment: float = 8.0e6, geomag_latitude_deg: float = 70.0,
                 earth_radius_km: float = 6371.0, vertical_offset_km: float = 1020.0):
        """
        Parameters:
            dipole_moment: Dipole moment [T km³]
            geomag_latitude_deg: Geomagnetic latitude [deg]
            earth_radius_km: Planetary radius [km]
            vertical_offset_km: Height of the world volume [km]
        """
        # Validates ranges
        self.config = DipoleFieldConfig(dipole_moment, geomag_latitude_deg,
                                        earth_radius_km, vertical_offset_km)
        self.dipole_moment = float(dipole_moment)
        self.geomag_latitude_deg = float(geomag_latitude_deg)
        self.earth_radius_km = float(earth_radius_km)
        self.vertical_offset_km = float(vertical_offset_km)
        self._geomag_lat_rad = np.radians(self.geomag_latitude_deg)

    @classmethod
    def from_config(cls, config: DipoleFieldConfig) -> 'EarthDipoleField':
        return cls(config.dipole_moment, config.geomag_latitude_deg,
                   config.earth_radius_km, config.vertical_offset_km)

    def radial_distance(self, z_km):
        """Distance from the dipole centre for world-volume height z_km [km]."""
        return self.earth_radius_km + (z_km + self.vertical_offset_km / 2.0)

    def get_field_value(self, point) -> np.ndarray:
        """
        Field at a single space-time point.

        Parameters:
            point: (x, y, z, t), position in km; x, y and t are ignored

        Returns:
            ndarray(6): (Bx, By, Bz, Ex, Ey, Ez), B in tesla

        Raises:
            FieldSingularityError: if the point sits on the dipole centre
        """
        z = self.radial_distance(float(point[2]))
        if z == 0.0:
            raise FieldSingularityError(
                f"Dipole field is singular at z_km={point[2]} (radial distance 0)")

        field = np.zeros(6)
        field[2] = dipole_bz(z, self.dipole_moment, self._geomag_lat_rad)
        return field

    def field_map(self, points: np.ndarray) -> np.ndarray:
        """
        Vectorised get_field_value.

        Parameters:
            points: (N, 3) or (N, 4) array of positions [km]

        Returns:
            (N, 6) array of field vectors
        """
        points = np.atleast_2d(np.asarray(points, dtype=np.float64))
        if points.shape[1] < 3:
            raise ValueError(f"Expected (N, 3) or (N, 4) points, got shape {points.shape}")

        z = self.radial_distance(points[:, 2])
        if np.any(z == 0.0):
            bad = points[z == 0.0, 2]
            raise FieldSingularityError(
                f"Dipole field is singular at z_km={bad[0]} (radial distance 0)")

        return dipole_field_map(np.ascontiguousarray(z), self.dipole_moment,
                                self._geomag_lat_rad)

    def field_strength(self, z_km) -> np.ndarray:
        """|B| [T] along the vertical profile (x = y = 0)."""
        z_km = np.atleast_1d(np.asarray(z_km, dtype=np.float64))
        points = np.zeros((len(z_km), 3))
        points[:, 2] = z_km
        return np.abs(self.field_map(points)[:, 2])

    def __repr__(self) -> str:
        return (f"EarthDipoleField(M={self.dipole_moment:.3g} T km^3, "
                f"lat={self.geomag_latitude_deg} deg, R={self.earth_radius_km} km)")


# ============================================================================
# Example usage
# ============================================================================

if __name__ == "__main__":
    bfield = EarthDipoleField()
    print(f"\n{bfield}")
    print(f"\nVertical field profile:")
    for z_km in (-500.0, -250.0, 0.0, 250.0, 500.0):
        B = bfield.get_field_value((0.0, 0.0, z_km, 0.0))
        altitude = z_km + bfield.vertical_offset_km / 2.0
        print(f"  alt={altitude:7.1f} km: Bz = {B[2]*1e9:9.1f} nT")
