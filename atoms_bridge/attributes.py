"""
Per-atom and per-system attribute bridge.

ASE stores per-atom data as parallel arrays in ``atoms.arrays``. Only the
properties listed in ``RECOGNIZED_PROPERTIES`` have a conversion rule and are
exported; anything else on the abstract side is dropped on export. On import,
recognized arrays are converted back and every other array is copied through
verbatim as an extra per-atom property, unless its name is itself a recognized
property name, in which case it is skipped.

A recognized property must be present on every atom, with one consistent
shape and integral values for integer arrays, to be exported. Otherwise it
is dropped for the whole system so that no array ends up with undefined
entries.
"""

import copy
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from .constants import MASSES_ARRAY, NUMBERS_ARRAY, POSITIONS_ARRAY, VELOCITY_TIME_UNIT
from .species import default_mass

logger = logging.getLogger(__name__)

# (values, masses, length factor) -> converted values
Converter = Callable[[np.ndarray, np.ndarray, float], np.ndarray]


def _copy(values, masses, factor):
    return np.array(values)


def _velocity_to_momenta(values, masses, factor):
    # <length>/fs -> Angstrom/(ASE time), then times mass
    return values * (factor / VELOCITY_TIME_UNIT) * masses[:, np.newaxis]


def _momenta_to_velocity(values, masses, factor):
    return values / masses[:, np.newaxis] * (VELOCITY_TIME_UNIT / factor)


@dataclass(frozen=True)
class PropertyRule:
    """
    Two-way conversion rule for one recognized per-atom property.

    Parameters
    ----------
    name : str
        Per-atom property name on the abstract side.
    array : str
        Name of the matching array in ``ase.Atoms.arrays``.
    dtype : type
        Element type of the ASE array.
    shapes : tuple of tuple
        Accepted per-atom value shapes.
    to_external, to_abstract : callable
        Converters applied to the stacked (N, ...) values.
    needs_mass : bool
        Whether the conversion scales by per-atom mass.
    """

    name: str
    array: str
    dtype: type
    shapes: Tuple[Tuple[int, ...], ...]
    to_external: Converter = _copy
    to_abstract: Converter = _copy
    needs_mass: bool = False


RECOGNIZED_PROPERTIES: Tuple[PropertyRule, ...] = (
    PropertyRule('velocity', 'momenta', float, ((3,),),
                 _velocity_to_momenta, _momenta_to_velocity, needs_mass=True),
    PropertyRule('magnetic_moment', 'initial_magmoms', float, ((), (3,))),
    PropertyRule('charge', 'initial_charges', float, ((),)),
    PropertyRule('tag', 'tags', int, ((),)),
)

RULES_BY_NAME: Dict[str, PropertyRule] = {rule.name: rule for rule in RECOGNIZED_PROPERTIES}
RULES_BY_ARRAY: Dict[str, PropertyRule] = {rule.array: rule for rule in RECOGNIZED_PROPERTIES}

# Arrays the converters handle themselves
STRUCTURAL_ARRAYS = frozenset({NUMBERS_ARRAY, POSITIONS_ARRAY, MASSES_ARRAY})


def effective_masses(atoms: Sequence) -> np.ndarray:
    """Per-atom masses in amu: isotope override if set, else the element default."""
    return np.array([
        atom.species.mass if atom.species.mass is not None
        else default_mass(atom.species.atomic_number)
        for atom in atoms
    ], dtype=float)


def _stack(rule: PropertyRule, values: List[Any]) -> Optional[np.ndarray]:
    shapes = {np.shape(v) for v in values}
    if len(shapes) != 1 or next(iter(shapes)) not in rule.shapes:
        return None
    if rule.dtype is int:
        raw = np.asarray(values)
        if raw.dtype.kind == 'f':
            if not np.all(np.mod(raw, 1) == 0):
                return None
        elif raw.dtype.kind not in 'iub':
            return None
    return np.array(values, dtype=rule.dtype)


def export_attributes(
    atoms: Sequence,
    masses: Optional[np.ndarray] = None,
    factor: float = 1.0,
) -> Tuple[Dict[str, np.ndarray], Dict[str, List[Any]]]:
    """
    Build ASE arrays from the per-atom properties of abstract atoms.

    Parameters
    ----------
    atoms : sequence of Atom
        Atoms to export, in order.
    masses : np.ndarray, optional
        (N,) per-atom masses in amu used for velocity -> momenta. Computed
        from the species when omitted.
    factor : float
        Multiplier taking the abstract length unit to Angstrom.

    Returns
    -------
    arrays : dict
        ASE array name -> (N, ...) array, for each exported property.
    residual : dict
        Property name -> per-atom values (``None`` where absent) for every
        property that was not exported.
    """
    n_atoms = len(atoms)
    names: List[str] = []
    for atom in atoms:
        for name in atom.properties:
            if name not in names:
                names.append(name)

    arrays: Dict[str, np.ndarray] = {}
    residual: Dict[str, List[Any]] = {}

    for name in names:
        values = [atom.properties.get(name) for atom in atoms]
        rule = RULES_BY_NAME.get(name)

        if rule is None:
            residual[name] = values
            continue

        present = sum(name in atom.properties for atom in atoms)
        if present < n_atoms:
            logger.warning(
                "Property %r is set on %d of %d atoms; not exported for any atom.",
                name, present, n_atoms,
            )
            residual[name] = values
            continue

        stacked = _stack(rule, values)
        if stacked is None:
            logger.warning(
                "Property %r has inconsistent or unsupported values; not exported.", name
            )
            residual[name] = values
            continue

        if rule.needs_mass and masses is None:
            masses = effective_masses(atoms)
        arrays[rule.array] = rule.to_external(
            stacked, None if masses is None else np.asarray(masses, dtype=float), factor
        )

    unrecognized = [name for name in residual if name not in RULES_BY_NAME]
    if unrecognized:
        logger.warning(
            "ASE Atoms have no slot for per-atom properties %s; dropping them.",
            ', '.join(repr(name) for name in unrecognized),
        )

    return arrays, residual


def _per_atom_value(value: Any) -> Any:
    if np.ndim(value) == 0:
        return value.item() if hasattr(value, 'item') else value
    array = np.array(value)
    array.flags.writeable = False
    return array


def import_attributes(
    arrays: Mapping[str, np.ndarray],
    masses: Optional[np.ndarray] = None,
    factor: float = 1.0,
) -> List[Dict[str, Any]]:
    """
    Convert ASE per-atom arrays to per-atom property dicts.

    Parameters
    ----------
    arrays : mapping
        ``ase.Atoms.arrays`` or an equivalent mapping. Must contain
        ``'numbers'``.
    masses : np.ndarray, optional
        (N,) per-atom masses used for momenta -> velocity. Required when
        ``'momenta'`` is present.
    factor : float
        Multiplier taking the abstract length unit to Angstrom.

    Returns
    -------
    list of dict
        One property dict per atom, in atom order.
    """
    n_atoms = len(arrays[NUMBERS_ARRAY])
    per_atom: List[Dict[str, Any]] = [{} for _ in range(n_atoms)]

    for key, values in arrays.items():
        if key in STRUCTURAL_ARRAYS:
            continue

        rule = RULES_BY_ARRAY.get(key)
        if rule is None:
            if key in RULES_BY_NAME:
                logger.warning(
                    "ASE array %r shadows the recognized property of the same name; "
                    "skipping it.", key,
                )
                continue
            name = key
            converted = np.array(values)
        else:
            if rule.needs_mass and masses is None:
                raise ValueError("Masses are required to convert momenta to velocities.")
            name = rule.name
            converted = rule.to_abstract(
                np.asarray(values, dtype=rule.dtype),
                None if masses is None else np.asarray(masses, dtype=float),
                factor,
            )

        for props, value in zip(per_atom, converted):
            props[name] = _per_atom_value(value)

    return per_atom


def export_system_properties(properties: Mapping[str, Any]) -> Dict[str, Any]:
    """Copy system-level properties into a fresh ``atoms.info`` dict."""
    return copy.deepcopy(dict(properties))


def import_system_properties(info: Mapping[str, Any]) -> Dict[str, Any]:
    """Copy ``atoms.info`` into a fresh system-level properties dict."""
    return copy.deepcopy(dict(info))
