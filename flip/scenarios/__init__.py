"""Fluid tank scenarios."""

from .presets import (
    create_wave_tank,
    create_still_tank,
    create_small_tank,
    create_scenario,
    SCENARIOS
)

__all__ = [
    'create_wave_tank',
    'create_still_tank',
    'create_small_tank',
    'create_scenario',
    'SCENARIOS'
]
