#! /usr/bin/env python
r"""Rydberg Hamiltonian restricted to the blockade subspace.

.. math::
    H = \sum_k \Omega_k \left( e^{i\phi_k} |0\rangle\langle 1|_k
        + e^{-i\phi_k} |1\rangle\langle 0|_k \right)
        + \sum_k \Delta_k \sigma^z_k

with :math:`\sigma^z = |0\rangle\langle 0| - |1\rangle\langle 1|`.
Transitions leaving the blockade subspace are dropped, which is how
the blockade constraint enters the operator.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Tuple

import networkx as nx
import numpy as np
import scipy as sp
from scipy.sparse.linalg import LinearOperator

from . import utils
from .lattice import AtomList, unit_disk_graph
from .shared import DimensionMismatchError
from .subspace import Subspace, blockade_subspace

logger = logging.getLogger(__name__)

Triplets = Tuple[np.ndarray, np.ndarray, np.ndarray]


class Parameter(ABC):
    """A per-atom quantity given either uniformly or atom by atom."""

    @abstractmethod
    def value_at(self, k: int) -> float:
        """Value for atom `k`."""

    @abstractmethod
    def check(self, num_atoms: int, name: str = "parameter") -> None:
        """Raise `DimensionMismatchError` if not usable with `num_atoms` atoms."""

    @abstractmethod
    def to_array(self, num_atoms: int) -> np.ndarray:
        """Values of all `num_atoms` atoms."""


def _check_finite(values):
    if not np.all(np.isfinite(values)):
        raise ValueError(f"Parameter values need to be finite, got {values}.")


@dataclass(frozen=True)
class Uniform(Parameter):
    """The same value for every atom.

    >>> Uniform(2.0).to_array(3)
    array([2., 2., 2.])
    """

    value: float

    def __post_init__(self):
        object.__setattr__(self, "value", float(self.value))
        _check_finite([self.value])

    def value_at(self, k: int) -> float:
        return self.value

    def check(self, num_atoms: int, name: str = "parameter") -> None:
        """A uniform value fits any number of atoms."""

    def to_array(self, num_atoms: int) -> np.ndarray:
        return np.full(num_atoms, self.value)


@dataclass(frozen=True)
class PerParticle(Parameter):
    """One value for each atom.

    >>> PerParticle([1.0, 2.0]).value_at(1)
    2.0
    >>> PerParticle([1.0, 2.0]).to_array(3)
    Traceback (most recent call last):
    ...
    rydbergpy.shared.DimensionMismatchError: `parameter` has 2 values for 3 atoms.
    """

    values: Tuple[float, ...]

    def __post_init__(self):
        object.__setattr__(self, "values", tuple(float(v) for v in self.values))
        _check_finite(self.values)

    def value_at(self, k: int) -> float:
        return self.values[k]

    def check(self, num_atoms: int, name: str = "parameter") -> None:
        if len(self.values) != num_atoms:
            raise DimensionMismatchError(
                f"`{name}` has {len(self.values)} values for {num_atoms} atoms."
            )

    def to_array(self, num_atoms: int) -> np.ndarray:
        self.check(num_atoms)
        return np.array(self.values)


def as_parameter(value) -> Parameter:
    """Wrap a scalar or a sequence into a `Parameter`.

    >>> as_parameter(1.5)
    Uniform(value=1.5)
    >>> as_parameter([0, 1])
    PerParticle(values=(0.0, 1.0))
    """
    if isinstance(value, Parameter):
        return value
    if np.ndim(value) == 0:
        return Uniform(value)
    values = np.asarray(value, dtype=float)
    if values.ndim != 1:
        raise ValueError("A per-atom parameter needs to be a flat sequence.")
    return PerParticle(tuple(values.tolist()))


def value_at(parameter, k: int) -> float:
    """Value of `parameter` for atom `k`.

    >>> value_at(0.5, 3), value_at([0.1, 0.2], 1)
    (0.5, 0.2)
    """
    return as_parameter(parameter).value_at(k)


class HermitianMatrix(LinearOperator):
    """Sparse Hermitian operator stored as its upper triangle.

    Only the entries with `i <= j` are kept in `upper` (a CSR
    matrix); every entry below the diagonal is the complex conjugate
    of its mirror image.  The stored diagonal needs to be real.

    >>> H = HermitianMatrix(sp.sparse.csr_matrix([[1.0, 2j], [0, -1.0]]))
    >>> H.toarray()
    array([[ 1.+0.j,  0.+2.j],
           [ 0.-2.j, -1.+0.j]])
    """

    def __init__(self, upper):
        upper = sp.sparse.csr_matrix(upper)
        if upper.shape[0] != upper.shape[1]:
            raise ValueError(f"A Hermitian matrix needs to be square, got {upper.shape}.")
        if sp.sparse.tril(upper, k=-1).nnz:
            raise ValueError("Only the upper triangle of a Hermitian matrix may be stored.")
        if np.any(np.imag(upper.diagonal()) != 0):
            raise ValueError("The diagonal of a Hermitian matrix needs to be real.")
        self.upper = upper
        self._lower = sp.sparse.triu(upper, k=1).conj().T.tocsr()
        super().__init__(dtype=upper.dtype, shape=upper.shape)

    def __repr__(self) -> str:
        m, n = self.shape
        return f"<{m}x{n} HermitianMatrix with {self.nnz} stored elements>"

    def _matvec(self, x):
        return self.upper @ x + self._lower @ x

    def _matmat(self, X):
        return self.upper @ X + self._lower @ X

    def _adjoint(self):
        return self

    @property
    def nnz(self) -> int:
        """Number of stored (upper triangle) entries."""
        return self.upper.nnz

    def diagonal(self) -> np.ndarray:
        return self.upper.diagonal()

    def tocsr(self) -> sp.sparse.csr_matrix:
        """Full matrix with both triangles."""
        return (self.upper + self._lower).tocsr()

    def toarray(self) -> np.ndarray:
        return self.tocsr().toarray()


def _concat(parts, dtype) -> np.ndarray:
    return np.concatenate(parts).astype(dtype) if parts else np.zeros(0, dtype=dtype)


def sigma_x_term(subspace: Subspace, omega, phi) -> Triplets:
    """Coupling (off-diagonal) entries of the upper triangle.

    For basis state `lhs` (at index `i`) and each atom `k` not excited
    in `lhs`, the state with atom `k` excited is looked up in the
    subspace.  If it is there (at index `j > i`), the entry `(i, j)`
    is `omega[k] * exp(1j * phi[k])`, otherwise the transition is
    blockaded and no entry is written.  The de-excitation entries are
    the mirror images in the lower triangle.

    Args:
        subspace (Subspace): The blockade subspace.
        omega: Rabi frequencies (scalar or per atom).
        phi: Laser phases (scalar or per atom).

    Returns:
        (np.ndarray, np.ndarray, np.ndarray): Row indices, column
        indices and values in coordinate format.
    """
    n = subspace.num_atoms
    omega = as_parameter(omega).to_array(n)
    phi = as_parameter(phi).to_array(n)
    states = subspace.states
    rows, cols, values = [], [], []
    for k in range(n):
        mask = np.int64(1) << k
        lhs = np.nonzero((states & mask) == 0)[0]
        rhs = subspace.indices(states[lhs] | mask)
        allowed = rhs >= 0
        rows.append(lhs[allowed])
        cols.append(rhs[allowed])
        values.append(np.full(np.count_nonzero(allowed), omega[k] * np.exp(1j * phi[k])))
    return (
        _concat(rows, np.int64),
        _concat(cols, np.int64),
        _concat(values, np.complex128),
    )


def sigma_z_term(subspace: Subspace, delta) -> Triplets:
    """Detuning (diagonal) entries.

    The entry of basis state `lhs` is the sum of `delta[k]` over the
    atoms in the ground state minus the sum over the excited atoms.

    >>> rows, cols, values = sigma_z_term(Subspace(2, [0, 1, 2]), [1.0, 3.0])
    >>> values.real
    array([ 4.,  2., -2.])
    """
    n = subspace.num_atoms
    delta = as_parameter(delta).to_array(n)
    diagonal = ((1 - 2 * subspace.occupations()) * delta).sum(axis=1)
    idx = np.arange(len(subspace), dtype=np.int64)
    return idx, idx, diagonal.astype(np.complex128)


def to_matrix(subspace: Subspace, omega, phi, delta=None) -> HermitianMatrix:
    """Assemble the Hamiltonian on the blockade subspace.

    Args:
        subspace (Subspace): The blockade subspace (`m` states).
        omega: Rabi frequencies (scalar or per atom).
        phi: Laser phases (scalar or per atom).
        delta: Detunings (scalar or per atom).  Without it only the
            coupling term is assembled.

    Returns:
        HermitianMatrix: The `m x m` operator (upper triangle stored).

    A single atom is a two-level system:

    >>> from rydbergpy.subspace import subspace as make_subspace
    >>> H = to_matrix(make_subspace(1, [{0}]), [1.0], [0.0], [0.0])
    >>> H.toarray().real
    array([[0., 1.],
           [1., 0.]])
    """
    n = subspace.num_atoms
    params = dict(omega=as_parameter(omega), phi=as_parameter(phi))
    if delta is not None:
        params["delta"] = as_parameter(delta)
    for name, param in params.items():
        param.check(n, name)

    terms = [sigma_x_term(subspace, params["omega"], params["phi"])]
    if delta is not None:
        terms.append(sigma_z_term(subspace, params["delta"]))
    rows, cols, values = (np.concatenate(parts) for parts in zip(*terms))

    m = len(subspace)
    upper = sp.sparse.coo_matrix(
        (values, (rows, cols)), shape=(m, m), dtype=np.complex128
    ).tocsr()
    logger.debug("Assembled %dx%d Hamiltonian with %d stored entries", m, m, upper.nnz)
    return HermitianMatrix(upper)


@dataclass(frozen=True, repr=False)
class RydbergHamiltonian:
    """Parameters of the Rydberg Hamiltonian of an atom array.

    Args:
        C (float): van der Waals interaction coefficient
            (rad/µs·µm⁶).
        omega: Rabi frequencies (rad/µs), scalar or per atom.
        phi: Laser phases (rad), scalar or per atom.
        delta: Detunings (rad/µs), scalar or per atom.
        atoms (AtomList): Atom positions (µm).
        radius (float): Blockade radius (µm) used to derive the
            interaction graph.  Defaults to the blockade radius
            :math:`(C / \\max_k |\\Omega_k|)^{1/6}`.

    The values are immutable; per-atom parameters are checked against
    the number of atoms on construction.

    >>> RydbergHamiltonian(C=64.0, omega=1.0, phi=0.0, delta=[0.5, -0.5],
    ...                    atoms=[(0.0, 0.0), (1.5, 0.0)], radius=2.0)
    RydbergHamiltonian
      C: 64.0
      Omega: Uniform(value=1.0)
      phi: Uniform(value=0.0)
      Delta: PerParticle(values=(0.5, -0.5))
      Number of atoms: 2
      Blockade radius: 2.0

    >>> RydbergHamiltonian(C=64.0, omega=[1.0, 1.0], phi=0.0, delta=0.0,
    ...                    atoms=[(0.0, 0.0), (1.5, 0.0), (3.0, 0.0)])
    Traceback (most recent call last):
    ...
    rydbergpy.shared.DimensionMismatchError: `omega` has 2 values for 3 atoms.
    """

    C: float
    omega: Parameter
    phi: Parameter
    delta: Parameter
    atoms: AtomList
    radius: Optional[float] = None

    def __post_init__(self):
        atoms = self.atoms if isinstance(self.atoms, AtomList) else AtomList(self.atoms)
        object.__setattr__(self, "atoms", atoms)
        object.__setattr__(self, "C", float(self.C))
        if not np.isfinite(self.C):
            raise ValueError(f"The interaction coefficient needs to be finite, got {self.C}.")
        for name in ("omega", "phi", "delta"):
            param = as_parameter(getattr(self, name))
            param.check(len(atoms), name)
            object.__setattr__(self, name, param)
        if self.radius is not None:
            object.__setattr__(self, "radius", float(self.radius))
            if not self.radius >= 0:
                raise ValueError("The blockade radius needs to be non-negative.")
        elif self.num_atoms > 1 and not np.any(self.omega.to_array(self.num_atoms)):
            raise ValueError(
                "Omega is zero, the blockade radius is undefined: pass `radius` explicitly."
            )

    def __repr__(self) -> str:
        return "\n".join(
            [
                "RydbergHamiltonian",
                f"  C: {self.C}",
                f"  Omega: {self.omega}",
                f"  phi: {self.phi}",
                f"  Delta: {self.delta}",
                f"  Number of atoms: {self.num_atoms}",
                f"  Blockade radius: {self.blockade_radius}",
            ]
        )

    @property
    def num_atoms(self) -> int:
        return len(self.atoms)

    @property
    def blockade_radius(self) -> float:
        if self.radius is not None:
            return self.radius
        omega_max = np.max(np.abs(self.omega.to_array(self.num_atoms)), initial=0.0)
        if omega_max == 0:
            # a single atom has no neighbours to blockade
            return 0.0
        return utils.blockade_radius(self.C, omega_max)

    def graph(self) -> nx.Graph:
        """Interaction (unit disk) graph of the atoms."""
        return unit_disk_graph(self.atoms, self.blockade_radius)

    def subspace(self) -> Subspace:
        """Blockade subspace of the interaction graph."""
        return blockade_subspace(self.graph())

    def to_matrix(self) -> HermitianMatrix:
        """Assemble the Hamiltonian on its blockade subspace.

        The subspace and the matrix are rebuilt on every call.
        """
        return to_matrix(self.subspace(), self.omega, self.phi, self.delta)
