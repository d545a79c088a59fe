"""
Generic atomistic system model.

An ``AbstractSystem`` is an ordered, immutable collection of ``Atom`` objects
with a cell and one boundary condition per spatial axis. Atoms carry an open
mapping of extra properties; the system carries another one for system-level
data. Any number of axes is allowed here; conversion to ASE requires three.
"""

import copy
from dataclasses import dataclass, field, replace as dc_replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
from ase.data import atomic_numbers, chemical_symbols

from .constants import DEFAULT_LENGTH_UNIT, length_factor
from .errors import UnknownElementError


class Boundary(str, Enum):
    """Boundary condition along one lattice direction."""

    PERIODIC = 'periodic'
    NON_PERIODIC = 'non-periodic'

    @classmethod
    def coerce(cls, value: Union['Boundary', bool, str]) -> 'Boundary':
        """Normalize a bool, string or ``Boundary`` to a ``Boundary``."""
        if isinstance(value, cls):
            return value
        if isinstance(value, (bool, np.bool_)):
            return cls.PERIODIC if value else cls.NON_PERIODIC
        if isinstance(value, str):
            return cls(value)
        raise TypeError(f"Cannot interpret {value!r} as a boundary condition.")

    @property
    def is_periodic(self) -> bool:
        return self is Boundary.PERIODIC


@dataclass(frozen=True)
class Species:
    """
    Chemical identity of an atom.

    Parameters
    ----------
    atomic_number : int
        Element number Z.
    mass : float, optional
        Isotope mass in amu. ``None`` means the element's default mass.
    symbol : str, optional
        Label overriding the canonical element symbol (e.g. ``'D'``).
    """

    atomic_number: int
    mass: Optional[float] = None
    symbol: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, 'atomic_number', int(self.atomic_number))
        if self.mass is not None:
            object.__setattr__(self, 'mass', float(self.mass))

    @classmethod
    def from_symbol(cls, symbol: str, mass: Optional[float] = None) -> 'Species':
        """Build a species from a canonical element symbol."""
        number = atomic_numbers.get(symbol, 0)
        if number == 0:
            raise UnknownElementError(symbol=symbol)
        return cls(number, mass=mass)

    @property
    def element_symbol(self) -> str:
        """Canonical element symbol, ignoring any label override."""
        if not 0 < self.atomic_number < len(chemical_symbols):
            raise UnknownElementError(atomic_number=self.atomic_number)
        return chemical_symbols[self.atomic_number]

    @property
    def label(self) -> str:
        """Symbol override if set, otherwise the element symbol."""
        return self.symbol if self.symbol is not None else self.element_symbol


def _frozen_array(values, dtype=float) -> np.ndarray:
    array = np.array(values, dtype=dtype)
    array.flags.writeable = False
    return array


def _frozen_properties(properties: Mapping[str, Any]) -> Mapping[str, Any]:
    # arrays become read-only copies, everything else a deep copy
    frozen = {}
    for name, value in properties.items():
        if isinstance(value, np.ndarray):
            value = _frozen_array(value, dtype=value.dtype)
        else:
            value = copy.deepcopy(value)
        frozen[name] = value
    return MappingProxyType(frozen)


@dataclass(frozen=True, eq=False)
class Atom:
    """
    A single atom: position, species and extra properties.

    Array-valued properties are stored as read-only copies and other values
    as deep copies, so later changes to the caller's objects do not leak in.
    """

    position: np.ndarray
    species: Species
    properties: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not isinstance(self.species, Species):
            raise TypeError(f"species must be a Species, got {type(self.species).__name__}")
        object.__setattr__(self, 'position', _frozen_array(self.position))
        object.__setattr__(self, 'properties', _frozen_properties(self.properties))

    @property
    def atomic_number(self) -> int:
        return self.species.atomic_number

    def with_properties(self, **updates) -> 'Atom':
        """Return a copy with ``updates`` merged into the properties."""
        merged = dict(self.properties)
        merged.update(updates)
        return dc_replace(self, properties=merged)


class AbstractSystem:
    """
    Immutable atomistic system with arbitrary per-atom and per-system data.

    Parameters
    ----------
    atoms : sequence of Atom
        Atoms in order.
    cell : array_like, optional
        (D, D) lattice vectors as rows, in ``length_unit``. ``None`` gives a
        zero cell.
    boundary_conditions : sequence
        One ``Boundary`` (or bool) per axis; its length sets the dimension D.
    properties : mapping, optional
        System-level extra properties.
    length_unit : str
        Unit of positions and cell, one of ``constants.LENGTH_UNITS``.
    """

    def __init__(
        self,
        atoms: Sequence[Atom],
        cell: Optional[Any] = None,
        boundary_conditions: Sequence[Union[Boundary, bool, str]] = (True, True, True),
        properties: Optional[Mapping[str, Any]] = None,
        length_unit: str = DEFAULT_LENGTH_UNIT,
    ):
        boundary = tuple(Boundary.coerce(b) for b in boundary_conditions)
        dimension = len(boundary)

        if cell is None:
            cell = np.zeros((dimension, dimension))
        cell = _frozen_array(cell)
        if cell.shape != (dimension, dimension):
            raise ValueError(
                f"Cell shape {cell.shape} does not match {dimension} boundary axes."
            )

        atoms = tuple(atoms)
        for i, atom in enumerate(atoms):
            if not isinstance(atom, Atom):
                raise TypeError(f"Atom {i} is a {type(atom).__name__}, not an Atom.")
            if atom.position.shape != (dimension,):
                raise ValueError(
                    f"Atom {i} position has shape {atom.position.shape}, "
                    f"expected ({dimension},)."
                )

        length_factor(length_unit)

        self._atoms = atoms
        self._cell = cell
        self._boundary = boundary
        self._properties = _frozen_properties(properties or {})
        self._length_unit = length_unit.lower()

    def __len__(self) -> int:
        return len(self._atoms)

    def __getitem__(self, index: int) -> Atom:
        return self._atoms[index]

    def __iter__(self) -> Iterator[Atom]:
        return iter(self._atoms)

    def __repr__(self) -> str:
        flags = ''.join('T' if b.is_periodic else 'F' for b in self._boundary)
        return (
            f"AbstractSystem(natoms={len(self)}, symbols={self.symbols!r}, "
            f"boundary={flags}, length_unit={self._length_unit!r})"
        )

    @property
    def atoms(self) -> Tuple[Atom, ...]:
        return self._atoms

    @property
    def cell(self) -> np.ndarray:
        return self._cell

    @property
    def boundary_conditions(self) -> Tuple[Boundary, ...]:
        return self._boundary

    @property
    def periodicity(self) -> Tuple[bool, ...]:
        return tuple(b.is_periodic for b in self._boundary)

    @property
    def dimension(self) -> int:
        return len(self._boundary)

    @property
    def properties(self) -> Mapping[str, Any]:
        return self._properties

    @property
    def length_unit(self) -> str:
        return self._length_unit

    @property
    def positions(self) -> np.ndarray:
        """(N, D) array of positions (a fresh copy)."""
        if not self._atoms:
            return np.zeros((0, self.dimension))
        return np.array([atom.position for atom in self._atoms])

    @property
    def atomic_numbers(self) -> List[int]:
        return [atom.atomic_number for atom in self._atoms]

    @property
    def symbols(self) -> List[str]:
        return [atom.species.label for atom in self._atoms]

    def has_atom_property(self, name: str) -> bool:
        """True if every atom carries ``name`` (and there is at least one atom)."""
        return bool(self._atoms) and all(name in atom.properties for atom in self._atoms)

    def replace(self, **changes) -> 'AbstractSystem':
        """Return a new system with the given constructor arguments replaced."""
        kwargs: Dict[str, Any] = {
            'atoms': self._atoms,
            'cell': self._cell,
            'boundary_conditions': self._boundary,
            'properties': self._properties,
            'length_unit': self._length_unit,
        }
        kwargs.update(changes)
        return AbstractSystem(**kwargs)
