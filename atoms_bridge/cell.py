"""Cell and periodicity codec between per-axis boundaries and ASE's pbc triple."""

from typing import Sequence, Tuple, Union

import numpy as np

from .constants import EXTERNAL_DIMENSION
from .errors import DimensionalityMismatchError
from .system import Boundary


def to_external_cell(
    cell: np.ndarray,
    boundary_conditions: Sequence[Union[Boundary, bool]],
    factor: float = 1.0,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Convert an abstract cell and boundary conditions to ASE's form.

    Parameters
    ----------
    cell : np.ndarray
        (D, D) lattice vectors as rows.
    boundary_conditions : sequence
        One boundary condition per axis.
    factor : float
        Multiplier taking the abstract length unit to Angstrom.

    Returns
    -------
    cell : np.ndarray
        (3, 3) cell in Angstrom, rows in the original order.
    pbc : np.ndarray
        (3,) bool array, one flag per axis.

    Raises
    ------
    DimensionalityMismatchError
        If there are not exactly three axes. Axes are never padded or cut.
    """
    flags = [Boundary.coerce(b) for b in boundary_conditions]
    if len(flags) != EXTERNAL_DIMENSION:
        raise DimensionalityMismatchError(len(flags), EXTERNAL_DIMENSION)

    cell = np.asarray(cell, dtype=float)
    if cell.shape != (EXTERNAL_DIMENSION, EXTERNAL_DIMENSION):
        raise DimensionalityMismatchError(cell.shape[0] if cell.ndim else 0, EXTERNAL_DIMENSION)

    pbc = np.array([b.is_periodic for b in flags], dtype=bool)
    return cell * factor, pbc


def to_abstract_cell(
    cell: np.ndarray,
    pbc: Sequence[bool],
    factor: float = 1.0,
) -> Tuple[np.ndarray, Tuple[Boundary, Boundary, Boundary]]:
    """
    Convert ASE's cell and pbc flags to an abstract cell and boundaries.

    ``factor`` takes the abstract length unit to Angstrom, so the cell is
    divided by it. This direction is lossless.
    """
    cell = np.array(cell, dtype=float)
    pbc = np.asarray(pbc, dtype=bool)
    if pbc.shape == ():
        pbc = np.repeat(pbc, EXTERNAL_DIMENSION)
    if pbc.shape != (EXTERNAL_DIMENSION,):
        raise DimensionalityMismatchError(len(pbc), EXTERNAL_DIMENSION)

    boundary = tuple(Boundary.coerce(bool(flag)) for flag in pbc)
    return cell / factor, boundary
