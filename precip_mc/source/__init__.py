"""Source module: Primary generator, distributions and replay sources."""

from precip_mc.source.generator import PrimaryGenerator
from precip_mc.source.sequences import (FileValueSource, FileSequence, CannedSequence,
                                        open_replay_source)

__all__ = ["PrimaryGenerator", "FileValueSource", "FileSequence", "CannedSequence",
           "open_replay_source"]
