"""
PRECIP_MC: Electron precipitation primaries and geomagnetic field

Plugin components for a Monte Carlo transport engine studying auroral and
radiation-belt electron precipitation.

Modules:
    core: Primary particle samples, batches and particle gun
    fields: Dipole approximation of Earth's magnetic field
    source: Primary generator, sampling distributions, replay sources
    config: Generator/field settings and YAML loading
    io: HDF5 persistence of sampled primaries
"""

__version__ = "0.1.0"

from precip_mc.config import (GeneratorConfig, DipoleFieldConfig, SimulationConfig,
                              SourceType, EnergyDistribution, PitchAngleDistribution,
                              load_config)
from precip_mc.core.particle import ParticleSample, ParticleArray, ParticleGun, Event
from precip_mc.fields.dipole import EarthDipoleField
from precip_mc.source.generator import PrimaryGenerator
from precip_mc.exceptions import InvalidConfigurationError

__all__ = [
    "GeneratorConfig",
    "DipoleFieldConfig",
    "SimulationConfig",
    "SourceType",
    "EnergyDistribution",
    "PitchAngleDistribution",
    "load_config",
    "ParticleSample",
    "ParticleArray",
    "ParticleGun",
    "Event",
    "EarthDipoleField",
    "PrimaryGenerator",
    "InvalidConfigurationError",
]
