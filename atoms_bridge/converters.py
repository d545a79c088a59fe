"""Structure converters between AbstractSystem and ASE Atoms."""

import logging
from typing import Any, Union

import numpy as np
from ase import Atoms

from .attributes import (
    export_attributes,
    export_system_properties,
    import_attributes,
    import_system_properties,
)
from .cell import to_abstract_cell, to_external_cell
from .constants import DEFAULT_LENGTH_UNIT, MASSES_ARRAY, length_factor
from .species import SpeciesDescriptor, default_mass, to_abstract_species, to_external_species
from .system import AbstractSystem, Atom

logger = logging.getLogger(__name__)


def to_ase(system: AbstractSystem) -> Atoms:
    """
    Convert an AbstractSystem to ASE Atoms.

    Parameters
    ----------
    system : AbstractSystem
        Input system. Must have exactly three boundary axes.

    Returns
    -------
    ase.Atoms
        New Atoms object with positions and cell in Angstrom. Atom order is
        preserved. Recognized per-atom properties become ASE arrays, isotope
        masses become the ``masses`` array and system properties go to
        ``atoms.info``. Unrecognized or partially set per-atom properties are
        dropped with a logged warning.

    Raises
    ------
    DimensionalityMismatchError
        If the system does not have three axes.
    UnknownElementError
        If an atom's atomic number is not a known element.
    """
    factor = length_factor(system.length_unit)
    cell, pbc = to_external_cell(system.cell, system.boundary_conditions, factor)

    descriptors = [to_external_species(atom) for atom in system]
    numbers = [d.atomic_number for d in descriptors]
    masses = np.array([
        d.mass if d.mass is not None else default_mass(d.atomic_number)
        for d in descriptors
    ], dtype=float)
    has_isotopes = any(d.mass is not None for d in descriptors)

    positions = system.positions * factor

    arrays, residual = export_attributes(system.atoms, masses=masses, factor=factor)

    atoms = Atoms(numbers=numbers, positions=positions, cell=cell, pbc=pbc)
    if has_isotopes:
        atoms.set_masses(masses)
    for name, values in arrays.items():
        atoms.set_array(name, values)
    atoms.info = export_system_properties(system.properties)

    logger.debug(
        "Converted %d atoms to ASE (pbc=%s, arrays=%s, dropped=%s)",
        len(atoms), pbc.tolist(), sorted(arrays), sorted(residual),
    )
    return atoms


def from_ase(atoms: Atoms, length_unit: str = DEFAULT_LENGTH_UNIT) -> AbstractSystem:
    """
    Convert ASE Atoms to an AbstractSystem.

    Parameters
    ----------
    atoms : ase.Atoms
        Input atoms. Not modified.
    length_unit : str
        Length unit of the returned system (default Angstrom).

    Returns
    -------
    AbstractSystem
        New system in the same atom order. Masses differing from the element
        default become isotope masses; every ASE array other than numbers,
        positions and masses becomes a per-atom property; ``atoms.info``
        becomes the system properties.

    Raises
    ------
    UnknownElementError
        If an atomic number is not a known element.
    """
    factor = length_factor(length_unit)
    cell, boundary = to_abstract_cell(np.array(atoms.get_cell()), atoms.get_pbc(), factor)

    numbers = atoms.get_atomic_numbers()
    mass_array = atoms.arrays.get(MASSES_ARRAY)
    species = [
        to_abstract_species(SpeciesDescriptor(
            atomic_number=int(number),
            mass=None if mass_array is None else float(mass_array[i]),
        ))
        for i, number in enumerate(numbers)
    ]

    per_atom = import_attributes(atoms.arrays, masses=atoms.get_masses(), factor=factor)
    positions = atoms.get_positions() / factor

    system = AbstractSystem(
        atoms=[
            Atom(position, sp, props)
            for position, sp, props in zip(positions, species, per_atom)
        ],
        cell=cell,
        boundary_conditions=boundary,
        properties=import_system_properties(atoms.info),
        length_unit=length_unit,
    )

    logger.debug("Converted %d ASE atoms to %r", len(atoms), system)
    return system


def detect_input_type(system: Any) -> str:
    """
    Detect which model an object belongs to.

    Returns
    -------
    str
        One of 'ase', 'abstract', 'unknown'.
    """
    if isinstance(system, Atoms):
        return 'ase'
    if isinstance(system, AbstractSystem):
        return 'abstract'
    return 'unknown'


def convert(system: Union[AbstractSystem, Atoms]) -> Union[Atoms, AbstractSystem]:
    """Convert to the other model: ASE Atoms -> AbstractSystem and vice versa."""
    input_type = detect_input_type(system)

    if input_type == 'ase':
        return from_ase(system)
    elif input_type == 'abstract':
        return to_ase(system)
    raise TypeError(
        f"Unsupported system type: {type(system)}. "
        "Use ASE Atoms or AbstractSystem."
    )
