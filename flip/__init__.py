"""Hybrid FLIP/PIC fluid solver: particles on a staggered grid for real-time water."""

from . import core
from . import physics
from . import scenarios

from .config import FluidConfig
from .core import CellType, MACGrid, ParticleArrays, SpatialHash
from .simulation import FlipFluidSim

__version__ = "0.1.0"

__all__ = [
    # Modules
    'core',
    'physics',
    'scenarios',

    # Core classes
    'FlipFluidSim',
    'FluidConfig',
    'CellType',
    'MACGrid',
    'ParticleArrays',
    'SpatialHash',
]
