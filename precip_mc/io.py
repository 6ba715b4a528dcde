"""
Saving and loading sampled primaries.

HDF5 layout (one dataset per PRIMARY_DTYPE field):
    /primaries/position     (N, 3) [km]
    /primaries/direction    (N, 3)
    /primaries/energy       (N,)   [keV]
    /primaries/pitch_angle  (N,)   [rad]
    /primaries/gyrophase    (N,)   [rad]
    /primaries.attrs        generator config (enums as ints)
"""

import numpy as np
import h5py
from pathlib import Path
from typing import Iterable, Optional, Tuple, Union

from precip_mc.config import GeneratorConfig
from precip_mc.core.particle import ParticleArray, PRIMARY_DTYPE


GROUP = 'primaries'


def save_primaries(path: Union[str, Path], batch: ParticleArray,
                   config: Optional[GeneratorConfig] = None):
    """
    Write a batch of primaries to HDF5.

    Parameters:
        path: Output .h5 file (overwritten)
        batch: Sampled primaries
        config: Generator settings stored as group attributes
    """
    with h5py.File(path, 'w') as f:
        group = f.create_group(GROUP)
        for name in PRIMARY_DTYPE.names:
            group.create_dataset(name, data=batch.particles[name], compression='gzip')

        if config is not None:
            for key, value in config.to_dict().items():
                # HDF5 attributes cannot hold None
                group.attrs[key] = '' if value is None else value


def load_primaries(path: Union[str, Path]) -> Tuple[ParticleArray, dict]:
    """
    Read primaries written by save_primaries.

    Returns:
        (batch, attrs) where attrs holds the stored generator settings;
        GeneratorConfig(**attrs) rebuilds the config that was saved
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Primaries file not found: {path}")

    with h5py.File(path, 'r') as f:
        group = f[GROUP]
        n = group['energy'].shape[0]
        records = np.zeros(n, dtype=PRIMARY_DTYPE)
        for name in PRIMARY_DTYPE.names:
            records[name] = group[name][()]
        attrs = {key: _to_python(value) for key, value in group.attrs.items()}

    # save_primaries stores None as ''
    if attrs.get('seed') == '':
        attrs['seed'] = None

    return ParticleArray.from_records(records), attrs


def _to_python(value):
    if isinstance(value, bytes):
        return value.decode()
    if isinstance(value, np.generic):
        return value.item()
    return value


def write_replay_file(path: Union[str, Path], values: Iterable[float]):
    """
    Write a replay file for collocation runs, one value per line.

    Read back with FileSequence (stream) or FileValueSource (first value).
    """
    with open(path, 'w') as f:
        for value in values:
            f.write(f"{float(value)!r}\n")
