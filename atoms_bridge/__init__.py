"""
atoms_bridge - Convert atomistic systems to and from ASE Atoms.

This package provides a generic, immutable ``AbstractSystem`` model with
arbitrary per-atom and per-system properties, lossless-where-possible
conversion to and from ``ase.Atoms``, and per-species metadata attachment
(e.g. pseudopotentials).
"""

from .system import AbstractSystem, Atom, Boundary, Species
from .species import SpeciesDescriptor, to_abstract_species, to_external_species
from .cell import to_abstract_cell, to_external_cell
from .attributes import RECOGNIZED_PROPERTIES, export_attributes, import_attributes
from .converters import convert, from_ase, to_ase
from .metadata import attach_metadata, attach_psp
from .errors import (
    ConversionError,
    DimensionalityMismatchError,
    InvalidMetadataKeyError,
    UnknownElementError,
)

__version__ = "0.1.0"

__all__ = [
    "AbstractSystem",
    "Atom",
    "Boundary",
    "Species",
    "SpeciesDescriptor",
    "to_external_species",
    "to_abstract_species",
    "to_external_cell",
    "to_abstract_cell",
    "RECOGNIZED_PROPERTIES",
    "export_attributes",
    "import_attributes",
    "to_ase",
    "from_ase",
    "convert",
    "attach_metadata",
    "attach_psp",
    "ConversionError",
    "UnknownElementError",
    "DimensionalityMismatchError",
    "InvalidMetadataKeyError",
]
