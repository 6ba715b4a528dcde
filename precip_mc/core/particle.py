"""
Primary particle state: single samples, batches, and the particle gun.

Batches use a NumPy structured array so they can be written straight to HDF5.
Units throughout: position [km], energy [keV], angles [rad].
"""

import numpy as np
from scipy import stats
from dataclasses import dataclass, field
from typing import List, Tuple


# Batch record for sampled primaries
PRIMARY_DTYPE = np.dtype([
    ('position', np.float64, 3),      # x, y, z [km]
    ('direction', np.float64, 3),     # post-tilt, not renormalised
    ('energy', np.float64),           # keV
    ('pitch_angle', np.float64),      # pre-tilt [rad]
    ('gyrophase', np.float64),        # [rad]
])


@dataclass
class ParticleSample:
    """
    Initial conditions for one primary.

    Created per event, handed to the particle gun, then discarded.
    The direction is kept exactly as produced by the tilt rotation.
    """
    position: Tuple[float, float, float]
    direction: Tuple[float, float, float]
    energy: float
    pitch_angle: float = 0.0
    gyrophase: float = 0.0

    def to_record(self) -> np.ndarray:
        """Convert to a 1-element PRIMARY_DTYPE array."""
        record = np.zeros(1, dtype=PRIMARY_DTYPE)
        record['position'][0] = self.position
        record['direction'][0] = self.direction
        record['energy'][0] = self.energy
        record['pitch_angle'][0] = self.pitch_angle
        record['gyrophase'][0] = self.gyrophase
        return record


class ParticleArray:
    """Batch of sampled primaries."""

    def __init__(self, n_particles: int):
        """
        Parameters:
            n_particles: Number of primaries to allocate
        """
        self.particles = np.zeros(n_particles, dtype=PRIMARY_DTYPE)
        self.n_particles = n_particles

    @classmethod
    def from_records(cls, records: np.ndarray) -> 'ParticleArray':
        """Wrap an existing PRIMARY_DTYPE array (no copy)."""
        if records.dtype != PRIMARY_DTYPE:
            raise ValueError(f"Expected PRIMARY_DTYPE records, got {records.dtype}")
        batch = cls(0)
        batch.particles = records
        batch.n_particles = len(records)
        return batch

    def set_sample(self, index: int, sample: ParticleSample):
        """Store one sample at the given index."""
        self.particles[index] = sample.to_record()[0]

    def get_sample(self, index: int) -> ParticleSample:
        row = self.particles[index]
        return ParticleSample(
            position=tuple(float(v) for v in row['position']),
            direction=tuple(float(v) for v in row['direction']),
            energy=float(row['energy']),
            pitch_angle=float(row['pitch_angle']),
            gyrophase=float(row['gyrophase']),
        )

    def get_statistics(self) -> dict:
        """Summary statistics of the batch."""
        energies = self.particles['energy']
        pitch = np.degrees(self.particles['pitch_angle'])
        radius = np.hypot(self.particles['position'][:, 0],
                          self.particles['position'][:, 1])
        empty = len(energies) == 0

        return {
            'n_total': self.n_particles,
            'mean_energy': 0.0 if empty else float(np.mean(energies)),
            'max_energy': 0.0 if empty else float(np.max(energies)),
            'min_energy': 0.0 if empty else float(np.min(energies)),
            'mean_pitch_angle_deg': 0.0 if empty else float(np.mean(pitch)),
            'max_radius_km': 0.0 if empty else float(np.max(radius)),
        }

    def folding_energy(self) -> float:
        """
        Maximum-likelihood folding energy of the batch [keV].

        Fits an exponential with location fixed at 0; for an exponential
        batch this recovers E0.
        """
        if self.n_particles == 0:
            raise ValueError("Cannot fit folding energy of an empty batch")
        _, scale = stats.expon.fit(self.particles['energy'], floc=0.0)
        return float(scale)

    def __len__(self) -> int:
        return self.n_particles

    def __repr__(self) -> str:
        summary = self.get_statistics()
        return (f"ParticleArray(n={summary['n_total']}, "
                f"<E>={summary['mean_energy']:.1f} keV, "
                f"<alpha>={summary['mean_pitch_angle_deg']:.1f} deg)")


@dataclass(frozen=True)
class PrimaryVertex:
    """Snapshot of the gun state when a vertex was generated."""
    particle: str
    position: Tuple[float, float, float]
    direction: Tuple[float, float, float]
    energy: float


@dataclass
class Event:
    """Minimal event record: the transport engine owns the real one."""
    event_id: int = 0
    primaries: List[PrimaryVertex] = field(default_factory=list)


class ParticleGun:
    """
    Single-particle source configured once per event.

    Mirrors the three setter calls the transport engine's gun exposes,
    followed by generate_primary_vertex().
    """

    def __init__(self, particle: str = 'e-'):
        self.particle = particle
        self.position = (0.0, 0.0, 0.0)
        self.direction = (0.0, 0.0, -1.0)
        self.energy = 0.0

    def set_particle_position(self, position: Tuple[float, float, float]):
        self.position = tuple(float(v) for v in position)

    def set_particle_momentum_direction(self, direction: Tuple[float, float, float]):
        self.direction = tuple(float(v) for v in direction)

    def set_particle_energy(self, energy: float):
        if energy < 0:
            raise ValueError(f"Particle energy must be >= 0, got {energy}")
        self.energy = float(energy)

    def generate_primary_vertex(self, event: Event) -> PrimaryVertex:
        """Append a vertex built from the current gun state to the event."""
        vertex = PrimaryVertex(self.particle, self.position, self.direction, self.energy)
        event.primaries.append(vertex)
        return vertex
