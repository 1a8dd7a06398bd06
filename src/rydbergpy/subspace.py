#! /usr/bin/env python
"""Blockade subspace of a Rydberg atom array.

A basis state is an integer whose bit `k` is set when atom `k` is in
the Rydberg (excited) state.  The blockade subspace contains every
basis state whose excited atoms form an independent set of the
interaction graph.
"""
import logging
from typing import Iterable, Iterator

import networkx as nx
import numpy as np

from .shared import EmptySubspaceError

logger = logging.getLogger(__name__)

MAX_ATOMS = 63
"""Largest number of atoms representable by `np.int64` basis states."""


class Subspace:
    """Ordered basis of the blockade subspace.

    Args:
        num_atoms (int): Number of atoms `n`.
        states (Iterable[int]): Strictly ascending basis states.

    The position of a state in `states` is its index in the subspace
    (and in every state vector and matrix built on it), which is in
    general different from its integer value.

    >>> s = Subspace(2, [0, 1, 2])
    >>> s
    Subspace: 2 atoms, dimension 3
      0: 00
      1: 01
      2: 10
    >>> s.index(2)
    2
    >>> 3 in s
    False
    """

    def __init__(self, num_atoms: int, states: Iterable[int]):
        _check_num_atoms(num_atoms)
        states = np.array(list(states), dtype=np.int64)
        if states.ndim != 1:
            raise ValueError("Basis states need to be a flat sequence of integers.")
        if len(states) == 0:
            raise EmptySubspaceError("The subspace needs at least one basis state.")
        if np.any(np.diff(states) <= 0):
            raise ValueError("Basis states need to be strictly ascending.")
        if (states[0] < 0 or states[-1] >= (1 << num_atoms)):
            raise ValueError(f"Basis states need to fit into {num_atoms} bits.")
        states.flags.writeable = False
        self.num_atoms = num_atoms
        self.states = states

    @classmethod
    def from_independent_sets(
        cls, num_atoms: int, independent_sets: Iterable[Iterable[int]]
    ) -> "Subspace":
        """Enumerate the subspace spanned by maximal independent sets.

        See `subspace`.
        """
        _check_num_atoms(num_atoms)
        if num_atoms == 0:
            return cls(0, [0])
        blocks = [_masked_states(num_atoms, mis) for mis in independent_sets]
        if not blocks:
            raise EmptySubspaceError(
                f"No independent set given for {num_atoms} atoms, the subspace is empty."
            )
        states = np.unique(np.concatenate(blocks))
        logger.debug(
            "Subspace of %d atoms from %d independent sets has dimension %d",
            num_atoms,
            len(blocks),
            len(states),
        )
        return cls(num_atoms, states)

    def __repr__(self) -> str:
        lines = [f"Subspace: {self.num_atoms} atoms, dimension {len(self)}"]
        width = max(self.num_atoms, 1)
        lines += [f"  {i}: {int(s):0{width}b}" for i, s in enumerate(self.states)]
        return "\n".join(lines)

    def __len__(self) -> int:
        return len(self.states)

    def __iter__(self) -> Iterator[int]:
        return (int(s) for s in self.states)

    def __getitem__(self, idx: int) -> int:
        return int(self.states[idx])

    def __contains__(self, value) -> bool:
        return bool(self.indices([value])[0] >= 0)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Subspace):
            return NotImplemented
        return self.num_atoms == other.num_atoms and np.array_equal(
            self.states, other.states
        )

    def __hash__(self) -> int:
        return hash((self.num_atoms, self.states.tobytes()))

    def index(self, value: int) -> int:
        """Return the position of the basis state `value`.

        Raises:
            KeyError: When `value` is not in the subspace.
        """
        idx = int(self.indices([value])[0])
        if idx < 0:
            raise KeyError(f"{value} is not in the subspace")
        return idx

    def indices(self, values) -> np.ndarray:
        """Positions of several basis states (`-1` where absent).

        >>> Subspace(2, [0, 1, 2]).indices([2, 3, 0])
        array([ 2, -1,  0])
        """
        values = np.asarray(values, dtype=np.int64)
        idx = np.searchsorted(self.states, values)
        found = idx < len(self.states)
        found[found] = self.states[idx[found]] == values[found]
        return np.where(found, idx, -1)

    def occupations(self) -> np.ndarray:
        """Occupation table of the basis.

        Returns:
            np.ndarray: `(m, n)` array, entry `[i, k]` is 1 when atom
            `k` is excited in basis state `i`.

        >>> Subspace(2, [0, 1, 2]).occupations()
        array([[0, 0],
               [1, 0],
               [0, 1]])
        """
        shifts = np.arange(self.num_atoms, dtype=np.int64)
        return (self.states[:, None] >> shifts) & 1


def _check_num_atoms(num_atoms: int):
    if num_atoms < 0:
        raise ValueError("The number of atoms needs to be non-negative.")
    if num_atoms > MAX_ATOMS:
        raise ValueError(f"At most {MAX_ATOMS} atoms are supported, got {num_atoms}.")


def _masked_states(num_atoms: int, independent_set: Iterable[int]) -> np.ndarray:
    # every bit pattern over the atoms of the set, all other bits zero
    atoms = np.array(sorted(set(independent_set)), dtype=np.int64)
    if len(atoms) and (atoms[0] < 0 or atoms[-1] >= num_atoms):
        raise ValueError(
            f"Independent set {sorted(atoms.tolist())} refers to atoms outside 0..{num_atoms - 1}."
        )
    codes = np.arange(1 << len(atoms), dtype=np.int64)
    bits = (codes[:, None] >> np.arange(len(atoms), dtype=np.int64)) & 1
    return (bits << atoms).sum(axis=1, dtype=np.int64)


def subspace(num_atoms: int, independent_sets: Iterable[Iterable[int]]) -> Subspace:
    """Create the subspace from the maximal independent sets.

    Every subset of every maximal independent set is an allowed
    occupation pattern.  The union of these patterns, deduplicated and
    sorted, is the blockade subspace.

    Args:
        num_atoms (int): Number of atoms `n`.
        independent_sets (Iterable): Maximal independent sets of the
            interaction graph, as collections of atom indices.

    Returns:
        Subspace: The ordered blockade subspace.

    Two atoms blockading each other never share an independent set,
    so the doubly excited state `0b11` is missing:

    >>> subspace(2, [{0}, {1}]).states
    array([0, 1, 2])

    >>> subspace(3, [{0, 2}, {1}]).states
    array([0, 1, 2, 4, 5])
    """
    return Subspace.from_independent_sets(num_atoms, independent_sets)


def blockade_subspace(graph: nx.Graph) -> Subspace:
    """Create the blockade subspace of an interaction graph.

    The maximal independent sets of `graph` are the maximal cliques of
    its complement.

    Args:
        graph (nx.Graph): Interaction graph with nodes `0..n-1`.

    Returns:
        Subspace: The ordered blockade subspace.

    >>> blockade_subspace(nx.path_graph(3)).states
    array([0, 1, 2, 4, 5])
    """
    num_atoms = graph.number_of_nodes()
    if sorted(graph.nodes) != list(range(num_atoms)):
        raise ValueError("Graph nodes need to be the atom indices 0..n-1.")
    independent_sets = nx.find_cliques(nx.complement(graph))
    return subspace(num_atoms, independent_sets)
