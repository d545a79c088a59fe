"""Species mapping between ``Species`` and ASE's atomic numbers and masses."""

from dataclasses import dataclass
from typing import Optional, Union

import numpy as np
from ase.data import atomic_masses, chemical_symbols

from .errors import UnknownElementError
from .system import Atom, Species


@dataclass(frozen=True)
class SpeciesDescriptor:
    """Species in ASE's terms: atomic number plus optional overrides."""

    atomic_number: int
    mass: Optional[float] = None
    symbol: Optional[str] = None


def _check_known(atomic_number: int) -> int:
    number = int(atomic_number)
    if not 0 < number < len(chemical_symbols):
        raise UnknownElementError(atomic_number=atomic_number)
    return number


def default_mass(atomic_number: int) -> float:
    """
    Return ASE's default mass for an element.

    Parameters
    ----------
    atomic_number : int
        Element number Z.

    Returns
    -------
    float
        Mass in amu.
    """
    return float(atomic_masses[_check_known(atomic_number)])


def to_external_species(atom: Union[Atom, Species]) -> SpeciesDescriptor:
    """
    Map an abstract atom (or its species) to an ASE species descriptor.

    An explicit isotope mass is passed through as a mass override; without
    one no override is emitted and ASE's default mass applies. A symbol
    label is carried on the descriptor only; ASE Atoms keep canonical
    symbols.

    Raises
    ------
    UnknownElementError
        If the atomic number is not a known element.
    """
    species = atom.species if isinstance(atom, Atom) else atom
    number = _check_known(species.atomic_number)
    return SpeciesDescriptor(
        atomic_number=number,
        mass=species.mass,
        symbol=species.symbol,
    )


def to_abstract_species(descriptor: SpeciesDescriptor) -> Species:
    """
    Map an ASE species descriptor back to a ``Species``.

    A mass that differs from ASE's default for the element becomes an
    explicit isotope mass; a default mass is omitted.

    Raises
    ------
    UnknownElementError
        If the atomic number is not a known element.
    """
    number = _check_known(descriptor.atomic_number)
    mass = descriptor.mass
    if mass is not None and np.isclose(mass, atomic_masses[number]):
        mass = None
    symbol = descriptor.symbol
    if symbol == chemical_symbols[number]:
        symbol = None
    return Species(number, mass=mass, symbol=symbol)
