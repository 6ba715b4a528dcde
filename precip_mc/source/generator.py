"""
Primary generator for electron-precipitation runs.

Called once per event by the transport engine's event loop:
    - samples initial position on a small disk at the injection altitude
    - samples pitch angle and gyrophase, tilts into the inclined field frame
    - samples kinetic energy
    - configures the particle gun and generates the primary vertex

Uniform draws per electron, in order: disk angle, disk radius, gyrophase,
pitch angle (0, 1 or 2+ draws depending on mode), energy (0 or 1 draw).
"""

import numpy as np
from typing import Optional

from tqdm import tqdm

from precip_mc.config import (GeneratorConfig, SourceType, EnergyDistribution,
                              PitchAngleDistribution)
from precip_mc.core.particle import ParticleSample, ParticleArray, ParticleGun, Event
from precip_mc.exceptions import InvalidConfigurationError
from precip_mc.source.distributions import (
    disk_position,
    sine_pitch_angle,
    uniform_pitch_angle,
    sine_squared_pitch_angle,
    exponential_energy,
    direction_from_angles,
    tilt_direction_legacy,
    tilt_direction_rigid,
)
from precip_mc.source.sequences import SequenceSource, open_replay_source


class PrimaryGenerator:
    """
    Samples one ParticleSample per event and pushes it to a ParticleGun.

    Handles:
        - Source-type dispatch (electrons; other spectra not implemented)
        - Five pitch-angle and three energy distributions
        - File or injected replay sources for collocation runs

    Example:
        gen = PrimaryGenerator(GeneratorConfig(energy_dist_type=1, e0_kev=100.0), seed=1)
        event = Event(event_id=0)
        gen.generate_primaries(event)
        batch = gen.generate_batch(10000)
    """

    def __init__(self, config: Optional[GeneratorConfig] = None, rng=None,
                 gun: Optional[ParticleGun] = None,
                 pitch_angle_source: Optional[SequenceSource] = None,
                 energy_source: Optional[SequenceSource] = None,
                 seed: Optional[int] = None):
        """
        Initialize generator.

        Parameters:
            config: Generator settings (defaults if None)
            rng: Uniform source with .random() (numpy Generator if None)
            gun: Particle gun to configure (a fresh 'e-' gun if None)
            pitch_angle_source: Replay source for pitch-angle mode 4 [deg]
            energy_source: Replay source for energy mode 2 [keV]
            seed: Overrides config.seed for the default generator
        """
        self.config = config if config is not None else GeneratorConfig()
        if seed is None:
            seed = self.config.seed
        # An injected rng is never replaced by reconfigure(seed=...)
        self._owns_rng = rng is None
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.gun = gun if gun is not None else ParticleGun('e-')

        self._pitch_angle_source = pitch_angle_source
        self._energy_source = energy_source

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def reconfigure(self, **changes):
        """
        Apply new settings between events.

        The new config is validated as a whole before it replaces the old
        one. File-backed replay sources are reopened if their file changes.
        Passing seed restarts the default generator from that seed, so the
        draws match a fresh generator built with the same config. An rng
        injected at construction is left alone.
        """
        new_config = self.config.with_updates(**changes)

        if 'seed' in changes and self._owns_rng:
            self.rng = np.random.default_rng(new_config.seed)

        if (new_config.pitch_angle_file != self.config.pitch_angle_file
                or new_config.replay_mode != self.config.replay_mode):
            self._pitch_angle_source = None
        if (new_config.energy_file != self.config.energy_file
                or new_config.replay_mode != self.config.replay_mode):
            self._energy_source = None

        self.config = new_config

    @property
    def pitch_angle_source(self) -> SequenceSource:
        if self._pitch_angle_source is None:
            self._pitch_angle_source = open_replay_source(self.config.pitch_angle_file,
                                                          self.config.replay_mode)
        return self._pitch_angle_source

    @property
    def energy_source(self) -> SequenceSource:
        if self._energy_source is None:
            self._energy_source = open_replay_source(self.config.energy_file,
                                                     self.config.replay_mode)
        return self._energy_source

    @property
    def max_pitch_angle(self) -> float:
        """Upper pitch-angle bound [rad]."""
        return np.radians(self.config.max_pitch_angle_deg)

    # ------------------------------------------------------------------
    # Component samplers
    # ------------------------------------------------------------------

    def sample_position(self):
        """Area-uniform point on the injection disk, (x, y, z) [km]."""
        x, y = disk_position(self.rng.random(), self.rng.random(),
                             self.config.disk_radius_km)
        # World-volume origin sits at volume_center_alt_km
        z = self.config.initial_particle_alt_km - self.config.volume_center_alt_km
        return x, y, z

    def sample_pitch_angle(self) -> float:
        """Pitch angle [rad] for the configured distribution."""
        mode = self.config.pitch_angle_dist_type
        max_angle = self.max_pitch_angle

        if mode == PitchAngleDistribution.SINE:
            return sine_pitch_angle(self.rng.random(), max_angle)
        elif mode == PitchAngleDistribution.SINE_SQUARED:
            return sine_squared_pitch_angle(self.rng, max_angle)
        elif mode == PitchAngleDistribution.UNIFORM:
            return uniform_pitch_angle(self.rng.random(), max_angle)
        elif mode == PitchAngleDistribution.FIXED:
            return max_angle
        elif mode == PitchAngleDistribution.FILE:
            return np.radians(self.pitch_angle_source.next_value())

        raise InvalidConfigurationError('pitch_angle_dist_type', mode,
                                        "select a pitch angle distribution")

    def sample_energy(self) -> float:
        """
        Kinetic energy [keV] for the configured distribution.

        Exponential draws use u in (0, 1): a draw of exactly 0 is redrawn,
        so the energy is always finite. Replayed energies must be finite
        and >= 0, otherwise InvalidConfigurationError is raised before the
        gun sees any part of the sample.
        """
        mode = self.config.energy_dist_type
        e0 = self.config.e0_kev

        if mode == EnergyDistribution.EXPONENTIAL:
            u = self.rng.random()
            while u == 0.0:
                u = self.rng.random()
            return exponential_energy(u, e0)
        elif mode == EnergyDistribution.MONOENERGETIC:
            return e0
        elif mode == EnergyDistribution.FILE:
            energy = self.energy_source.next_value()
            if not (np.isfinite(energy) and energy >= 0.0):
                raise InvalidConfigurationError('energy_file', energy,
                                                "replayed energy must be finite and >= 0 keV")
            return energy

        raise InvalidConfigurationError('energy_dist_type', mode,
                                        "select an energy distribution")

    def tilt(self, direction):
        """Rotate a field-aligned direction into the inclined field frame."""
        tilt = np.radians(self.config.tilt_angle_deg)
        if self.config.tilt_rotation == 'legacy':
            return tilt_direction_legacy(direction[0], direction[1], direction[2], tilt)
        return tilt_direction_rigid(direction[0], direction[1], direction[2], tilt)

    # ------------------------------------------------------------------
    # Sources
    # ------------------------------------------------------------------

    def generate_electrons(self) -> ParticleSample:
        """
        Sample one precipitating electron.

        With replay_mode='stream' and both replay modes active, the pitch
        angle token is consumed before the energy token. If the energy
        source then fails, the pitch-angle file has advanced one token
        further than the energy file, and the pair is out of step for the
        rest of the run. Treat such an error as fatal to the run.
        """
        position = self.sample_position()

        gyrophase = self.rng.random() * 2.0 * np.pi
        pitch_angle = self.sample_pitch_angle()

        direction = self.tilt(direction_from_angles(pitch_angle, gyrophase))

        energy = self.sample_energy()

        return ParticleSample(
            position=tuple(float(v) for v in position),
            direction=tuple(float(v) for v in direction),
            energy=float(energy),
            pitch_angle=float(pitch_angle),
            gyrophase=float(gyrophase),
        )

    def generate_solar_spectra(self) -> ParticleSample:
        # TODO: solar X-ray spectrum source
        raise NotImplementedError("Solar spectra source (source_type=1) is not implemented")

    def generate_cxb(self) -> ParticleSample:
        # TODO: cosmic X-ray background source
        raise NotImplementedError("CXB source (source_type=2) is not implemented")

    def sample(self) -> ParticleSample:
        """Sample one primary for the configured source type."""
        source = self.config.source_type

        if source == SourceType.ELECTRONS:
            return self.generate_electrons()
        elif source == SourceType.SOLAR_SPECTRA:
            return self.generate_solar_spectra()
        elif source == SourceType.CXB:
            return self.generate_cxb()

        raise InvalidConfigurationError('source_type', source, "enter a valid source type")

    def generate_primaries(self, event: Event) -> ParticleSample:
        """
        Transport-engine entry point: one primary vertex per event.

        The gun is only touched once the sample is complete.

        Returns:
            The ParticleSample used (already consumed by the gun)
        """
        sample = self.sample()

        self.gun.set_particle_position(sample.position)
        self.gun.set_particle_momentum_direction(sample.direction)
        self.gun.set_particle_energy(sample.energy)

        self.gun.generate_primary_vertex(event)
        return sample

    def generate_batch(self, n_particles: int, verbose: bool = True) -> ParticleArray:
        """
        Sample many primaries without a transport engine.

        Parameters:
            n_particles: Number of primaries
            verbose: Print settings and show a progress bar

        Returns:
            ParticleArray with one record per primary
        """
        cfg = self.config

        if verbose:
            print(f"\nGenerating {n_particles:,} primaries...")
            print(f"  Source: {cfg.source_type.name}")
            print(f"  Energy: {cfg.energy_dist_type.name} (E0 = {cfg.e0_kev} keV)")
            print(f"  Pitch angle: {cfg.pitch_angle_dist_type.name} "
                  f"(max = {cfg.max_pitch_angle_deg} deg)")
            print(f"  Altitude: {cfg.initial_particle_alt_km} km")

        batch = ParticleArray(n_particles)
        for i in tqdm(range(n_particles), desc="primaries", disable=not verbose):
            batch.set_sample(i, self.sample())

        if verbose:
            print(f"\nGeneration complete: {batch}")

        return batch

    def __repr__(self) -> str:
        cfg = self.config
        return (f"PrimaryGenerator(source={cfg.source_type.name}, "
                f"energy={cfg.energy_dist_type.name}, "
                f"pitch={cfg.pitch_angle_dist_type.name})")
