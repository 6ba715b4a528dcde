"""Core module: Primary particle state and particle gun."""

from precip_mc.core.particle import (ParticleSample, ParticleArray, ParticleGun,
                                     Event, PrimaryVertex, PRIMARY_DTYPE)

__all__ = ["ParticleSample", "ParticleArray", "ParticleGun", "Event",
           "PrimaryVertex", "PRIMARY_DTYPE"]
