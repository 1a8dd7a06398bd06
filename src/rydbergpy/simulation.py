#! /usr/bin/env python
"""Time evolution of Rydberg atom arrays in the blockade subspace."""
import logging
from typing import Callable, Iterable, Union

import numpy as np

from .expmv import DEFAULT_KRYLOV_DIM, DEFAULT_TOLERANCE, expmv
from .hamiltonian import RydbergHamiltonian
from .lattice import AtomList, unit_disk_graph
from .shared import DimensionMismatchError, constants
from .subspace import Subspace, blockade_subspace

logger = logging.getLogger(__name__)


def n_atoms(h: RydbergHamiltonian) -> int:
    """Number of atoms described by the Hamiltonian."""
    return h.num_atoms


def timestep(
    state: np.ndarray,
    h: RydbergHamiltonian,
    t: float,
    dt: float,
    krylov_dim: int = DEFAULT_KRYLOV_DIM,
    tol: float = DEFAULT_TOLERANCE,
) -> np.ndarray:
    """Evolve a state under a constant Hamiltonian (in place).

    Overwrites `state` with :math:`e^{-iHt}` `state`, where `H` is
    rebuilt from `h` on every call.  The exponential action is
    computed with `rydbergpy.expmv.expmv`.

    Args:
        state (np.ndarray): Complex state vector on the blockade
            subspace of `h`; updated in place.
        h (RydbergHamiltonian): The Hamiltonian parameters.
        t (float): Evolution time (µs).
        dt (float): Reserved for adaptive stepping.  It needs to be
            positive but does not subdivide `t`; the Krylov method
            chooses its own internal steps.
        krylov_dim (int): Dimension of the Krylov subspace.
        tol (float): Error tolerance of the Krylov propagation.

    Returns:
        np.ndarray: The updated `state`.
    """
    if not np.iscomplexobj(state):
        raise TypeError("The state needs to be a complex array, it is updated in place.")
    if not np.isfinite(t):
        raise ValueError(f"The evolution time needs to be finite, got {t}.")
    if not (np.isfinite(dt) and dt > 0):
        raise ValueError(f"The time step needs to be positive, got {dt}.")
    H = h.to_matrix()
    if state.shape != (H.shape[0],):
        raise DimensionMismatchError(
            f"State of shape {state.shape} does not match the subspace dimension {H.shape[0]}."
        )
    state[:] = expmv(-1j * t, H, state, krylov_dim=krylov_dim, tol=tol)
    return state


def zero_state(subspace: Subspace) -> np.ndarray:
    """All atoms in the ground state."""
    return product_state(subspace, 0)


def product_state(subspace: Subspace, bits: Union[int, Iterable[int]]) -> np.ndarray:
    """Basis state as a state vector.

    Args:
        subspace (Subspace): The blockade subspace.
        bits (int or Iterable[int]): Either the basis state as an
            integer, or the occupation (0 or 1) of each atom.

    Returns:
        np.ndarray: Complex state vector with a single 1.

    >>> from rydbergpy.subspace import Subspace
    >>> product_state(Subspace(2, [0, 1, 2]), [0, 1]).real
    array([0., 0., 1.])
    """
    if not np.isscalar(bits):
        bits = list(bits)
        if len(bits) != subspace.num_atoms:
            raise DimensionMismatchError(
                f"{len(bits)} occupations given for {subspace.num_atoms} atoms."
            )
        bits = sum(int(b) << k for k, b in enumerate(bits))
    state = np.zeros(len(subspace), dtype=complex)
    try:
        state[subspace.index(bits)] = 1
    except KeyError as e:
        raise ValueError(f"Basis state {bits:b} violates the blockade.") from e
    return state


def probabilities(state: np.ndarray) -> np.ndarray:
    """Probability of each basis state."""
    return np.abs(state) ** 2


def rydberg_density(state: np.ndarray, subspace: Subspace) -> np.ndarray:
    """Excitation probability of each atom.

    Args:
        state (np.ndarray): State vector of shape `(m,)`, or a stack
            of them of shape `(T, m)`.
        subspace (Subspace): The blockade subspace.

    Returns:
        np.ndarray: Shape `(n,)` (or `(T, n)`).

    >>> from rydbergpy.subspace import Subspace
    >>> state = np.array([0, 1, 1j]) / np.sqrt(2)
    >>> np.round(rydberg_density(state, Subspace(2, [0, 1, 2])), 6)
    array([0.5, 0.5])
    """
    if np.shape(state)[-1] != len(subspace):
        raise DimensionMismatchError(
            f"State of shape {np.shape(state)} does not match the subspace dimension {len(subspace)}."
        )
    return probabilities(state) @ subspace.occupations()


class RydbergSimulation:
    """Rydberg atom array with a fixed blockade graph.

    Args:
        atoms (AtomList): Atom positions (µm).
        radius (float): Blockade radius (µm).  Atoms closer than this
            cannot be excited simultaneously.

    The blockade subspace is built once and shared by every
    Hamiltonian created with `RydbergSimulation.hamiltonian`, so that
    time-dependent parameters keep the state dimension fixed.

    >>> RydbergSimulation([(0, 0), (5, 0), (10, 0)], radius=6.0)
    Number of atoms: 3
    Blockade radius: 6.0
    Blockaded pairs: [(0, 1), (1, 2)]
    Subspace dimension: 5
    """

    def __init__(self, atoms: AtomList, radius: float):
        self.atoms = atoms if isinstance(atoms, AtomList) else AtomList(atoms)
        self.radius = float(radius)
        self.graph = unit_disk_graph(self.atoms, self.radius)
        self.subspace = blockade_subspace(self.graph)

    def __repr__(self) -> str:
        return "\n".join(
            [
                f"Number of atoms: {self.num_atoms}",
                f"Blockade radius: {self.radius}",
                f"Blockaded pairs: {sorted(self.graph.edges)}",
                f"Subspace dimension: {len(self.subspace)}",
            ]
        )

    @property
    def num_atoms(self) -> int:
        return len(self.atoms)

    def hamiltonian(
        self,
        omega,
        phi=0.0,
        delta=0.0,
        C: float = 2 * np.pi * constants.C6_Rb87_70S,
    ) -> RydbergHamiltonian:
        """Hamiltonian on the geometry of the simulation.

        Args:
            omega: Rabi frequencies (rad/µs), scalar or per atom.
            phi: Laser phases (rad), scalar or per atom.
            delta: Detunings (rad/µs), scalar or per atom.
            C (float): van der Waals coefficient (rad/µs·µm⁶),
                defaults to the 87Rb 70S state.

        Returns:
            RydbergHamiltonian: The Hamiltonian parameters.
        """
        return RydbergHamiltonian(C, omega, phi, delta, self.atoms, self.radius)

    def zero_state(self) -> np.ndarray:
        return zero_state(self.subspace)

    def product_state(self, bits) -> np.ndarray:
        return product_state(self.subspace, bits)

    def _check_hamiltonian(self, h: RydbergHamiltonian):
        if h.atoms != self.atoms or h.blockade_radius != self.radius:
            raise ValueError(
                "The Hamiltonian describes a different geometry, "
                "create it with `RydbergSimulation.hamiltonian`."
            )

    def time_evolution(
        self,
        init_state: np.ndarray,
        time: np.ndarray,
        hamiltonian: Union[RydbergHamiltonian, Callable[[float], RydbergHamiltonian]],
        krylov_dim: int = DEFAULT_KRYLOV_DIM,
        tol: float = DEFAULT_TOLERANCE,
    ) -> np.ndarray:
        """Evolve the system through time.

        Args:
            init_state (np.ndarray): Initial state vector (not
                modified).
            time (np.ndarray): Strictly increasing time points (µs);
                the initial state belongs to `time[0]`.
            hamiltonian: Either a constant `RydbergHamiltonian` or a
                function returning the Hamiltonian at a given time.
                A function is sampled at the midpoint of each
                interval.
            krylov_dim (int): Dimension of the Krylov subspace.
            tol (float): Error tolerance of the Krylov propagation.

        Returns:
            np.ndarray: States of shape `(len(time), m)`.
        """
        time = np.asarray(time, dtype=float)
        if time.ndim != 1 or len(time) == 0:
            raise ValueError("`time` needs to be a non-empty 1D array.")
        if np.any(np.diff(time) <= 0):
            raise ValueError("`time` needs to be strictly increasing.")
        state = np.array(init_state, dtype=complex)
        if state.shape != (len(self.subspace),):
            raise DimensionMismatchError(
                f"State of shape {state.shape} does not match the subspace dimension {len(self.subspace)}."
            )

        states = np.zeros((len(time), len(state)), dtype=complex)
        states[0] = state
        for i in range(1, len(time)):
            dt = time[i] - time[i - 1]
            if callable(hamiltonian):
                h = hamiltonian(time[i - 1] + dt / 2)
            else:
                h = hamiltonian
            self._check_hamiltonian(h)
            timestep(state, h, dt, dt, krylov_dim=krylov_dim, tol=tol)
            states[i] = state
        logger.debug("Evolved %d states over %d time points", len(state), len(time))
        return states

    def rydberg_densities(self, states: np.ndarray) -> np.ndarray:
        """Excitation probability of each atom for each state."""
        return rydberg_density(states, self.subspace)
