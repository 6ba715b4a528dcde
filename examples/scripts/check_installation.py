#!/usr/bin/env python3
"""
Quick check that the installation works.

Run this after setting up the environment: imports the stack, compiles the
numba kernels once, and samples a few primaries.
"""

import sys
import time
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

print("="*70)
print("PRECIP_MC Installation Check")
print("="*70)

# Check 1: Third-party stack
print("\n1. Checking imports...")
for module_name in ('numpy', 'numba', 'scipy', 'h5py', 'yaml', 'tqdm', 'matplotlib'):
    try:
        module = __import__(module_name)
        print(f"   ✓ {module_name}: {getattr(module, '__version__', '?')}")
    except ImportError as e:
        print(f"   ✗ {module_name} failed: {e}")
        sys.exit(1)

# Check 2: Package
print("\n2. Checking precip_mc imports...")
try:
    from precip_mc.fields.dipole import EarthDipoleField
    from precip_mc.source.generator import PrimaryGenerator
    from precip_mc.config import GeneratorConfig
    print("   ✓ EarthDipoleField, PrimaryGenerator, GeneratorConfig imported")
except ImportError as e:
    print(f"   ✗ Failed: {e}")
    sys.exit(1)

# Check 3: Field
print("\n3. Checking dipole field...")
bfield = EarthDipoleField()
B = bfield.get_field_value((0.0, 0.0, 0.0, 0.0))
print(f"   ✓ Bz at 510 km: {B[2]*1e9:.1f} nT")

# Check 4: Numba JIT compilation + sampling
print("\n4. Checking generator (triggers JIT compilation)...")
start = time.time()
generator = PrimaryGenerator(GeneratorConfig(seed=0))
batch = generator.generate_batch(1000, verbose=False)
elapsed = time.time() - start
print(f"   ✓ {batch}")
print(f"   ✓ First 1000 primaries (incl. compilation): {elapsed*1000:.0f} ms")

start = time.time()
generator.generate_batch(1000, verbose=False)
elapsed = time.time() - start
print(f"   ✓ Next 1000 primaries: {elapsed*1000:.1f} ms")

print("\n" + "="*70)
print("Installation check complete!")
print("="*70)
print("\nNext steps:")
print("  1. Run examples/scripts/precipitation_source.py")
print("  2. Run pytest examples/scripts")
