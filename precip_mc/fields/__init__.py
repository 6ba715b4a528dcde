"""Fields module: Magnetic field models."""

from precip_mc.fields.dipole import EarthDipoleField

__all__ = ["EarthDipoleField"]
