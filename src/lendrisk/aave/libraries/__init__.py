from . import (
    emode_logic,
    generic_logic,
    math_utils,
    percentage_math,
    reserve_configuration,
    reserve_logic,
    user_configuration,
    wad_ray_math,
)

__all__ = (
    "emode_logic",
    "generic_logic",
    "math_utils",
    "percentage_math",
    "reserve_configuration",
    "reserve_logic",
    "user_configuration",
    "wad_ray_math",
)
