"""
Configuration and I/O Test Suite

Tests:
    - GeneratorConfig validation and enum conversion
    - YAML loading of the example configs
    - Replay sequence sources
    - HDF5 persistence of sampled primaries

Run with pytest, or directly as a script.
"""

import numpy as np
import sys
import tempfile
from pathlib import Path

import pytest

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from precip_mc.config import (GeneratorConfig, DipoleFieldConfig, SimulationConfig,
                              SourceType, EnergyDistribution, PitchAngleDistribution,
                              load_config, save_config)
from precip_mc.core.particle import ParticleArray, ParticleSample
from precip_mc.exceptions import (InvalidConfigurationError, SequenceExhaustedError,
                                  SequenceParseError)
from precip_mc.io import save_primaries, load_primaries, write_replay_file
from precip_mc.source.generator import PrimaryGenerator
from precip_mc.source.sequences import (FileValueSource, FileSequence, CannedSequence,
                                        open_replay_source)

CONFIG_DIR = Path(__file__).parent.parent / 'configs'


def test_defaults():
    """Defaults match the historical generator settings"""
    cfg = GeneratorConfig()
    assert cfg.source_type is SourceType.ELECTRONS
    assert cfg.energy_dist_type is EnergyDistribution.EXPONENTIAL
    assert cfg.pitch_angle_dist_type is PitchAngleDistribution.SINE
    assert cfg.e0_kev == 100.0
    assert cfg.max_pitch_angle_deg == 40.0
    assert cfg.initial_particle_alt_km == 500.0
    assert cfg.tilt_rotation == 'legacy'


def test_integer_flags_become_enums():
    cfg = GeneratorConfig(source_type=0, energy_dist_type=2, pitch_angle_dist_type=4)
    assert cfg.energy_dist_type is EnergyDistribution.FILE
    assert cfg.pitch_angle_dist_type is PitchAngleDistribution.FILE
    assert cfg.to_dict()['energy_dist_type'] == 2


@pytest.mark.parametrize("kwargs", [
    {'e0_kev': 0.0},
    {'e0_kev': -5.0},
    {'max_pitch_angle_deg': 0.0},
    {'max_pitch_angle_deg': 181.0},
    {'disk_radius_km': -1.0},
    {'tilt_rotation': 'fixed'},
    {'replay_mode': 'cached'},
    {'energy_dist_type': 'exponential'},
    {'energy_dist_type': 1.9},
    {'pitch_angle_dist_type': 3.7},
    {'source_type': True},
    {'energy_dist_type': float('nan')},
])
def test_invalid_values(kwargs):
    with pytest.raises(InvalidConfigurationError):
        GeneratorConfig(**kwargs)


def test_integral_float_flags_accepted():
    """YAML may hand back 2.0 for a flag; exact integers still convert"""
    cfg = GeneratorConfig(energy_dist_type=2.0, pitch_angle_dist_type=np.int64(3))
    assert cfg.energy_dist_type is EnergyDistribution.FILE
    assert cfg.pitch_angle_dist_type is PitchAngleDistribution.FIXED


def test_fractional_flag_in_yaml():
    """A fractional flag in a config file is rejected, not truncated"""
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / 'run.yaml'
        path.write_text("generator:\n  energy_dist_type: 1.9\n")
        with pytest.raises(InvalidConfigurationError) as excinfo:
            load_config(path)
    assert excinfo.value.parameter == 'energy_dist_type'
    assert excinfo.value.value == 1.9


def test_error_is_value_error():
    """Callers catching ValueError also see configuration errors"""
    with pytest.raises(ValueError) as excinfo:
        GeneratorConfig(energy_dist_type=99)
    assert excinfo.value.parameter == 'energy_dist_type'
    assert excinfo.value.value == 99


def test_with_updates():
    cfg = GeneratorConfig()
    new = cfg.with_updates(e0_kev=30.0, pitch_angle_dist_type=2)

    assert cfg.e0_kev == 100.0
    assert new.e0_kev == 30.0
    assert new.pitch_angle_dist_type is PitchAngleDistribution.UNIFORM

    with pytest.raises(InvalidConfigurationError):
        cfg.with_updates(folding_energy=30.0)


def test_load_example_configs():
    """Shipped YAML configs load and validate"""
    config = load_config(CONFIG_DIR / 'exponential_sine.yaml')
    assert config.generator.seed == 12345
    assert config.field.geomag_latitude_deg == 70.0

    replay = load_config(CONFIG_DIR / 'collocation_replay.yaml')
    assert replay.generator.energy_dist_type is EnergyDistribution.FILE
    assert replay.generator.pitch_angle_dist_type is PitchAngleDistribution.FILE
    assert replay.field == DipoleFieldConfig()


def test_yaml_save_and_load():
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / 'run.yaml'
        config = SimulationConfig(
            generator=GeneratorConfig(energy_dist_type=1, e0_kev=12.0, tilt_rotation='rigid'),
            field=DipoleFieldConfig(geomag_latitude_deg=65.77),
        )
        save_config(config, path)
        assert load_config(path) == config


def test_yaml_errors():
    with tempfile.TemporaryDirectory() as tmp:
        with pytest.raises(FileNotFoundError):
            load_config(Path(tmp) / 'missing.yaml')

        path = Path(tmp) / 'typo.yaml'
        path.write_text("generator:\n  e0: 100\n")
        with pytest.raises(InvalidConfigurationError):
            load_config(path)

        path.write_text("detector:\n  size: 1\n")
        with pytest.raises(InvalidConfigurationError):
            load_config(path)

        path.write_text("- 1\n- 2\n")
        with pytest.raises(InvalidConfigurationError):
            load_config(path)

        path.write_text("")
        assert load_config(path) == SimulationConfig()


def test_canned_sequence():
    seq = CannedSequence([1, 2.5])
    assert seq.next_value() == 1.0
    assert seq.remaining == 1
    assert seq.next_value() == 2.5
    with pytest.raises(SequenceExhaustedError):
        seq.next_value()


def test_file_value_source():
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / 'pitchAngleFile.csv'

        path.write_text("\n\n  12.5 99\n")
        source = FileValueSource(path)
        assert source.next_value() == 12.5
        assert source.next_value() == 12.5

        path.write_text("")
        with pytest.raises(SequenceExhaustedError):
            source.next_value()

        path.write_text("1e-3x\n")
        with pytest.raises(SequenceParseError):
            source.next_value()

        path.unlink()
        with pytest.raises(FileNotFoundError):
            source.next_value()


def test_file_sequence_and_replay_writer():
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / 'energyFile.csv'
        values = [0.5, 17.25, 1000.0]
        write_replay_file(path, values)

        seq = open_replay_source(path, mode='stream')
        assert isinstance(seq, FileSequence)
        assert [seq.next_value() for _ in values] == values
        assert seq.n_consumed == 3
        with pytest.raises(SequenceExhaustedError):
            seq.next_value()

        assert isinstance(open_replay_source(path), FileValueSource)
        with pytest.raises(ValueError):
            open_replay_source(path, mode='random')


def test_hdf5_round_trip():
    """Saved primaries and config attributes load back unchanged"""
    config = GeneratorConfig(e0_kev=40.0, seed=8)
    batch = PrimaryGenerator(config).generate_batch(200, verbose=False)

    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / 'primaries.h5'
        save_primaries(path, batch, config)
        loaded, attrs = load_primaries(path)

    assert len(loaded) == 200
    for name in batch.particles.dtype.names:
        assert np.array_equal(loaded.particles[name], batch.particles[name])

    assert attrs['e0_kev'] == 40.0
    assert attrs['energy_dist_type'] == 0
    assert attrs['tilt_rotation'] == 'legacy'

    with pytest.raises(FileNotFoundError):
        load_primaries(Path(tmp) / 'primaries.h5')


def test_hdf5_attrs_rebuild_config():
    """Stored attrs feed straight back into GeneratorConfig, seed=None included"""
    config = GeneratorConfig(energy_dist_type=1, e0_kev=20.0)
    batch = PrimaryGenerator(config, seed=5).generate_batch(10, verbose=False)

    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / 'primaries.h5'
        save_primaries(path, batch, config)
        _, attrs = load_primaries(path)

    assert attrs['seed'] is None
    assert GeneratorConfig(**attrs) == config


def test_particle_array_helpers():
    batch = ParticleArray(2)
    sample = ParticleSample((0.001, -0.002, 0.0), (0.1, 0.2, -0.97), 55.0, 0.3, 1.2)
    batch.set_sample(1, sample)

    assert batch.get_sample(1) == sample
    assert batch.get_statistics()['max_energy'] == 55.0

    with pytest.raises(ValueError):
        ParticleArray.from_records(np.zeros(3))
    with pytest.raises(ValueError):
        ParticleArray(0).folding_energy()


def run_all_tests():
    """Run complete test suite"""
    print("\n" + "="*70)
    print("CONFIGURATION AND I/O TEST SUITE")
    print("="*70)

    tests = [
        ("Defaults", test_defaults),
        ("Enum flags", test_integer_flags_become_enums),
        ("Invalid e0", lambda: test_invalid_values({'e0_kev': 0.0})),
        ("Invalid tilt", lambda: test_invalid_values({'tilt_rotation': 'fixed'})),
        ("Fractional flag", lambda: test_invalid_values({'energy_dist_type': 1.9})),
        ("Boolean flag", lambda: test_invalid_values({'source_type': True})),
        ("Integral float flags", test_integral_float_flags_accepted),
        ("Fractional flag (YAML)", test_fractional_flag_in_yaml),
        ("ValueError", test_error_is_value_error),
        ("with_updates", test_with_updates),
        ("Example configs", test_load_example_configs),
        ("YAML save/load", test_yaml_save_and_load),
        ("YAML errors", test_yaml_errors),
        ("Canned sequence", test_canned_sequence),
        ("File value source", test_file_value_source),
        ("File sequence", test_file_sequence_and_replay_writer),
        ("HDF5", test_hdf5_round_trip),
        ("HDF5 attrs -> config", test_hdf5_attrs_rebuild_config),
        ("ParticleArray", test_particle_array_helpers),
    ]

    results = []
    for name, test in tests:
        try:
            test()
            results.append((name, True))
        except Exception as e:
            print(f"\n  {name} FAILED ✗: {e}")
            results.append((name, False))

    print("\n" + "="*70)
    print("TEST SUMMARY")
    print("="*70)
    for name, passed in results:
        status = "✓ PASSED" if passed else "✗ FAILED"
        print(f"  {status:10s} {name}")

    n_passed = sum(1 for _, passed in results if passed)
    print(f"\n  Total: {n_passed}/{len(results)} tests passed\n")
    return n_passed == len(results)


if __name__ == "__main__":
    success = run_all_tests()
    sys.exit(0 if success else 1)
