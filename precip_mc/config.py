"""
Generator and field configuration.

Mode flags arrive as plain integers (from a macro command or a YAML file) and
are converted once, at construction, into closed enums. An unknown flag
raises InvalidConfigurationError before any sample can be produced.

YAML layout:
    generator:
        source_type: 0
        energy_dist_type: 1
        e0_kev: 100.0
        ...
    field:
        geomag_latitude_deg: 70.0
        ...
"""

from dataclasses import dataclass, fields, replace, asdict
from dataclasses import field as dataclass_field
from enum import IntEnum
import numbers
from pathlib import Path
from typing import Optional, Union

import yaml

from precip_mc.exceptions import InvalidConfigurationError


class SourceType(IntEnum):
    """Primary source spectra."""
    ELECTRONS = 0
    SOLAR_SPECTRA = 1
    CXB = 2


class EnergyDistribution(IntEnum):
    """Electron energy distributions."""
    EXPONENTIAL = 0      # folding energy e0_kev
    MONOENERGETIC = 1    # exactly e0_kev
    FILE = 2             # replayed from energy_file [keV]


class PitchAngleDistribution(IntEnum):
    """Electron pitch-angle distributions on [0, max_pitch_angle]."""
    SINE = 0
    SINE_SQUARED = 1
    UNIFORM = 2
    FIXED = 3
    FILE = 4             # replayed from pitch_angle_file [deg]


TILT_ROTATIONS = ('legacy', 'rigid')
REPLAY_MODES = ('reread', 'stream')


def _to_enum(enum_cls, parameter: str, value):
    valid = [int(m) for m in enum_cls]
    # Exact integers only: 1.9 must not truncate to 1, True is not a flag
    if isinstance(value, bool):
        exact = False
    elif isinstance(value, numbers.Integral):
        exact = True
    else:
        exact = isinstance(value, float) and value.is_integer()
    if not exact or int(value) not in valid:
        raise InvalidConfigurationError(parameter, value, f"expected one of {valid}")
    return enum_cls(int(value))


@dataclass(frozen=True)
class GeneratorConfig:
    """
    Primary generator settings.

    Parameters:
        source_type: SourceType flag
        energy_dist_type: EnergyDistribution flag
        pitch_angle_dist_type: PitchAngleDistribution flag
        e0_kev: Folding (mode 0) or fixed (mode 1) energy [keV]
        max_pitch_angle_deg: Upper pitch-angle bound [deg]
        initial_particle_alt_km: Injection altitude [km]
        disk_radius_km: Radius of the injection disk [km]
        volume_center_alt_km: Altitude of the world volume origin [km]
        tilt_angle_deg: Field inclination tilt in the y-z plane [deg]
        tilt_rotation: 'legacy' reproduces the historical coupled rotation,
                       'rigid' applies a proper rotation matrix
        pitch_angle_file: Replay file for pitch-angle mode 4 [deg]
        energy_file: Replay file for energy mode 2 [keV]
        replay_mode: 'reread' returns the first token of the file on every
                     event, 'stream' consumes one token per event
        seed: Seed for the default random generator (None = entropy)
    """

    source_type: SourceType = SourceType.ELECTRONS
    energy_dist_type: EnergyDistribution = EnergyDistribution.EXPONENTIAL
    pitch_angle_dist_type: PitchAngleDistribution = PitchAngleDistribution.SINE
    e0_kev: float = 100.0
    max_pitch_angle_deg: float = 40.0
    initial_particle_alt_km: float = 500.0
    disk_radius_km: float = 0.01
    volume_center_alt_km: float = 500.0
    tilt_angle_deg: float = 12.682
    tilt_rotation: str = 'legacy'
    pitch_angle_file: str = 'pitchAngleFile.csv'
    energy_file: str = 'energyFile.csv'
    replay_mode: str = 'reread'
    seed: Optional[int] = None

    def __post_init__(self):
        # frozen: normalise through object.__setattr__
        object.__setattr__(self, 'source_type',
                           _to_enum(SourceType, 'source_type', self.source_type))
        object.__setattr__(self, 'energy_dist_type',
                           _to_enum(EnergyDistribution, 'energy_dist_type',
                                    self.energy_dist_type))
        object.__setattr__(self, 'pitch_angle_dist_type',
                           _to_enum(PitchAngleDistribution, 'pitch_angle_dist_type',
                                    self.pitch_angle_dist_type))

        if not self.e0_kev > 0:
            raise InvalidConfigurationError('e0_kev', self.e0_kev, "must be > 0")
        if not 0.0 < self.max_pitch_angle_deg <= 180.0:
            raise InvalidConfigurationError('max_pitch_angle_deg', self.max_pitch_angle_deg,
                                            "must be in (0, 180]")
        if not self.disk_radius_km >= 0:
            raise InvalidConfigurationError('disk_radius_km', self.disk_radius_km,
                                            "must be >= 0")
        if self.tilt_rotation not in TILT_ROTATIONS:
            raise InvalidConfigurationError('tilt_rotation', self.tilt_rotation,
                                            f"expected one of {list(TILT_ROTATIONS)}")
        if self.replay_mode not in REPLAY_MODES:
            raise InvalidConfigurationError('replay_mode', self.replay_mode,
                                            f"expected one of {list(REPLAY_MODES)}")

    def with_updates(self, **changes) -> 'GeneratorConfig':
        """Return a validated copy with the given fields replaced."""
        _check_keys(type(self), changes, 'generator')
        return replace(self, **changes)

    def to_dict(self) -> dict:
        """Plain-type dict (enums as ints), suitable for YAML or HDF5 attrs."""
        d = asdict(self)
        for key in ('source_type', 'energy_dist_type', 'pitch_angle_dist_type'):
            d[key] = int(d[key])
        return d


@dataclass(frozen=True)
class DipoleFieldConfig:
    """
    Dipole field constants.

    Parameters:
        dipole_moment: Dipole moment [T km³]
        geomag_latitude_deg: Geomagnetic latitude of the site [deg]
        earth_radius_km: Planetary radius [km]
        vertical_offset_km: World-volume height; half is added to z [km]
    """

    dipole_moment: float = 8.0e6
    geomag_latitude_deg: float = 70.0
    earth_radius_km: float = 6371.0
    vertical_offset_km: float = 1020.0

    def __post_init__(self):
        if not -90.0 <= self.geomag_latitude_deg <= 90.0:
            raise InvalidConfigurationError('geomag_latitude_deg', self.geomag_latitude_deg,
                                            "must be in [-90, 90]")


@dataclass(frozen=True)
class SimulationConfig:
    """Top-level config: one generator section, one field section."""
    generator: GeneratorConfig = dataclass_field(default_factory=GeneratorConfig)
    field: DipoleFieldConfig = dataclass_field(default_factory=DipoleFieldConfig)

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> 'SimulationConfig':
        data = dict(data or {})
        _check_keys(cls, data, 'top level')
        gen = data.get('generator') or {}
        fld = data.get('field') or {}
        _check_keys(GeneratorConfig, gen, 'generator')
        _check_keys(DipoleFieldConfig, fld, 'field')
        return cls(generator=GeneratorConfig(**gen), field=DipoleFieldConfig(**fld))


def _check_keys(dc, data: dict, section: str):
    known = {f.name for f in fields(dc)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise InvalidConfigurationError(section, unknown,
                                        f"unknown keys; available: {sorted(known)}")


def load_config(path: Union[str, Path]) -> SimulationConfig:
    """
    Load a SimulationConfig from a YAML file.

    Parameters:
        path: YAML file with optional 'generator' and 'field' sections

    Returns:
        Validated SimulationConfig
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, 'r') as f:
        data = yaml.safe_load(f)

    if data is not None and not isinstance(data, dict):
        raise InvalidConfigurationError(str(path), type(data).__name__,
                                        "expected a mapping at top level")
    return SimulationConfig.from_dict(data)


def save_config(config: SimulationConfig, path: Union[str, Path]):
    """Write a SimulationConfig as YAML (round-trips through load_config)."""
    data = {
        'generator': config.generator.to_dict(),
        'field': asdict(config.field),
    }
    with open(path, 'w') as f:
        yaml.safe_dump(data, f, sort_keys=False)
