"""Attach per-species computational metadata (e.g. pseudopotentials) to a system."""

import logging
from typing import Any, Mapping

from .constants import PSEUDOPOTENTIAL_KIND
from .errors import InvalidMetadataKeyError
from .system import AbstractSystem

logger = logging.getLogger(__name__)


def attach_metadata(
    system: AbstractSystem,
    metadata: Mapping[str, Any],
    kind: str = PSEUDOPOTENTIAL_KIND,
) -> AbstractSystem:
    """
    Return a new system with per-species metadata attached to its atoms.

    Each atom whose species label is a key of ``metadata`` gets the payload
    as the per-atom property ``kind``. Atoms of species without an entry are
    left as they are. The input system is not modified.

    Parameters
    ----------
    system : AbstractSystem
        Input system.
    metadata : mapping
        Species symbol -> payload.
    kind : str
        Name of the per-atom property to set.

    Returns
    -------
    AbstractSystem
        New system with the metadata attached.

    Raises
    ------
    InvalidMetadataKeyError
        If a key names a species not present in the system.
    """
    present = []
    for symbol in system.symbols:
        if symbol not in present:
            present.append(symbol)

    for key in metadata:
        if key not in present:
            raise InvalidMetadataKeyError(key, present)

    atoms = [
        atom.with_properties(**{kind: metadata[atom.species.label]})
        if atom.species.label in metadata else atom
        for atom in system
    ]
    missing = [symbol for symbol in present if symbol not in metadata]
    if missing:
        logger.debug("No %s given for species %s", kind, ', '.join(missing))

    return system.replace(atoms=atoms)


def attach_psp(system: AbstractSystem, **pseudopotentials: Any) -> AbstractSystem:
    """
    Attach pseudopotential identifiers per species.

    Example: ``attach_psp(system, Mg="hgh/lda/mg-q2", O="hgh/lda/o-q6")``.
    """
    return attach_metadata(system, pseudopotentials, kind=PSEUDOPOTENTIAL_KIND)
