"""Unit factors and ASE array names for structure conversion."""

from ase import units

# Length units accepted on the abstract side, expressed in Angstrom (ASE's unit)
LENGTH_UNITS = {
    'angstrom': units.Ang,
    'bohr': units.Bohr,
    'nm': units.nm,
}

DEFAULT_LENGTH_UNIT = 'angstrom'

# Abstract velocities are <length>/fs; ASE time is 1 fs = units.fs
VELOCITY_TIME_UNIT = units.fs

# Spatial axes of an ase.Atoms object
EXTERNAL_DIMENSION = 3

# ASE array names
NUMBERS_ARRAY = 'numbers'
POSITIONS_ARRAY = 'positions'
MASSES_ARRAY = 'masses'

# Default name of the per-atom property written by attach_psp
PSEUDOPOTENTIAL_KIND = 'pseudopotential'


def length_factor(length_unit: str) -> float:
    """
    Return the factor converting ``length_unit`` to Angstrom.

    Raises
    ------
    ValueError
        If the unit is not one of ``LENGTH_UNITS``.
    """
    try:
        return LENGTH_UNITS[length_unit.lower()]
    except KeyError:
        raise ValueError(
            f"Unsupported length unit: {length_unit!r}. "
            f"Use one of {sorted(LENGTH_UNITS)}."
        )
