"""
Precipitating Electron Source - Example

Samples primaries from a YAML configuration, saves them to HDF5 and plots:
    - energy spectrum against the exponential with folding energy E0
    - pitch-angle distribution against the sine-weighted density
    - injection footprint on the disk
    - vertical profile of the dipole field

Expected results for the default config (E0 = 100 keV, sine up to 40 deg):
    - fitted folding energy within ~2% of 100 keV for 20k primaries
    - all positions inside r = 0.01 km
"""

import numpy as np
import matplotlib.pyplot as plt
from pathlib import Path
import sys

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from precip_mc.config import load_config
from precip_mc.fields.dipole import EarthDipoleField
from precip_mc.source.generator import PrimaryGenerator
from precip_mc.io import save_primaries

CONFIG_DIR = Path(__file__).parent.parent / 'configs'


def simulate_source(config_path: Path, n_particles: int = 20000):
    """
    Generate a batch of primaries from a config file.

    Parameters:
        config_path: YAML configuration
        n_particles: Number of primaries

    Returns:
        config, batch
    """
    print(f"\n{'='*70}")
    print(f"Precipitating Electron Source")
    print(f"{'='*70}")
    print(f"  Config: {config_path.name}")
    print(f"  Primaries: {n_particles:,}")
    print(f"{'='*70}")

    config = load_config(config_path)
    generator = PrimaryGenerator(config.generator)
    batch = generator.generate_batch(n_particles, verbose=True)

    stats = batch.get_statistics()
    e0_fit = batch.folding_energy()

    print(f"\n{'='*70}")
    print(f"Results:")
    print(f"{'='*70}")
    print(f"  Mean energy: {stats['mean_energy']:.2f} keV")
    print(f"  Fitted folding energy: {e0_fit:.2f} keV "
          f"(configured: {config.generator.e0_kev} keV)")
    print(f"  Mean pitch angle: {stats['mean_pitch_angle_deg']:.2f} deg")
    print(f"  Max radius: {stats['max_radius_km']*1000:.2f} m")
    print(f"{'='*70}\n")

    return config, batch


def plot_source(config, batch, save_path=None):
    """
    Four-panel summary of the sampled primaries.

    Parameters:
        config: SimulationConfig used for sampling
        batch: ParticleArray
        save_path: Path to save figure (optional)
    """
    gen_cfg = config.generator
    p = batch.particles

    fig, axes = plt.subplots(2, 2, figsize=(12, 10))

    # Energy spectrum
    ax = axes[0, 0]
    e_max = np.percentile(p['energy'], 99.5)
    bins = np.linspace(0, e_max, 60)
    ax.hist(p['energy'], bins=bins, density=True, alpha=0.6, label='Sampled')
    e = np.linspace(0, e_max, 200)
    ax.plot(e, np.exp(-e / gen_cfg.e0_kev) / gen_cfg.e0_kev, 'r-', linewidth=2,
            label=f'exp(-E/{gen_cfg.e0_kev:g}) / E0')
    ax.set_xlabel('Energy [keV]', fontsize=12, fontweight='bold')
    ax.set_ylabel('Density [1/keV]', fontsize=12)
    ax.set_yscale('log')
    ax.legend()
    ax.grid(True, alpha=0.3, linestyle='--')

    # Pitch angles
    ax = axes[0, 1]
    alpha_max = np.radians(gen_cfg.max_pitch_angle_deg)
    ax.hist(np.degrees(p['pitch_angle']), bins=50, density=True, alpha=0.6, label='Sampled')
    a = np.linspace(0, alpha_max, 200)
    # sin(a) / (1 - cos(a_max)) per radian -> per degree
    density = np.sin(a) / (1.0 - np.cos(alpha_max)) * np.pi / 180.0
    ax.plot(np.degrees(a), density, 'r-', linewidth=2, label='sine-weighted')
    ax.set_xlabel('Pitch angle [deg]', fontsize=12, fontweight='bold')
    ax.set_ylabel('Density [1/deg]', fontsize=12)
    ax.legend()
    ax.grid(True, alpha=0.3, linestyle='--')

    # Footprint
    ax = axes[1, 0]
    ax.scatter(p['position'][:, 0] * 1000, p['position'][:, 1] * 1000, s=1, alpha=0.3)
    circle = plt.Circle((0, 0), gen_cfg.disk_radius_km * 1000, fill=False, color='r')
    ax.add_patch(circle)
    ax.set_aspect('equal')
    ax.set_xlabel('x [m]', fontsize=12, fontweight='bold')
    ax.set_ylabel('y [m]', fontsize=12, fontweight='bold')

    # Field profile
    ax = axes[1, 1]
    bfield = EarthDipoleField.from_config(config.field)
    half = bfield.vertical_offset_km / 2.0
    z = np.linspace(-half, half, 200)
    ax.plot(z + half, bfield.field_strength(z) * 1e9, 'b-', linewidth=2)
    ax.set_xlabel('Altitude [km]', fontsize=12, fontweight='bold')
    ax.set_ylabel('|B| [nT]', fontsize=12, fontweight='bold')
    ax.grid(True, alpha=0.3, linestyle='--')

    fig.suptitle(f'{gen_cfg.energy_dist_type.name} / {gen_cfg.pitch_angle_dist_type.name}',
                 fontsize=16, fontweight='bold')
    fig.tight_layout()

    if save_path:
        fig.savefig(save_path, dpi=300, bbox_inches='tight')
        print(f"Figure saved: {save_path}")

    return fig


# ============================================================================
# Main Execution
# ============================================================================

if __name__ == "__main__":
    config, batch = simulate_source(CONFIG_DIR / 'exponential_sine.yaml', n_particles=20000)

    save_primaries('primaries_exponential_sine.h5', batch, config.generator)
    print("Primaries saved: primaries_exponential_sine.h5")

    fig = plot_source(config, batch, save_path='precipitation_source.png')
    plt.show()

    print("\n" + "="*70)
    print("Example complete!")
    print("="*70 + "\n")
