#! /usr/bin/env python
"""Atom positions and the interaction graph derived from them."""
from typing import Iterable, Iterator

import networkx as nx
import numpy as np
from scipy.spatial import distance


class AtomList:
    """Positions of the atoms in the array (in µm).

    Args:
        positions (Iterable): One coordinate tuple per atom.  All
            tuples need to have the same length (1, 2 or 3
            dimensions).

    >>> atoms = AtomList([(0, 0), (5, 0), (12, 0)])
    >>> atoms
    AtomList: 3 atoms in 2D
      (0.0, 0.0)
      (5.0, 0.0)
      (12.0, 0.0)
    >>> len(atoms)
    3
    >>> atoms[1]
    (5.0, 0.0)

    A list of scalars is read as a 1D chain:

    >>> AtomList([0.0, 4.5]).dims
    1
    """

    def __init__(self, positions: Iterable):
        positions = np.array(list(positions), dtype=float)
        if positions.ndim == 1:
            positions = positions.reshape(-1, 1)
        if positions.size == 0:
            positions = positions.reshape(0, 1)
        if positions.ndim != 2:
            raise ValueError("Atom positions need to be a list of coordinate tuples.")
        if not np.all(np.isfinite(positions)):
            raise ValueError("Atom positions need to be finite.")
        positions.flags.writeable = False
        self.positions = positions

    def __repr__(self) -> str:
        lines = [f"AtomList: {len(self)} atoms in {self.dims}D"]
        lines += [f"  {pos}" for pos in self]
        return "\n".join(lines)

    def __len__(self) -> int:
        return self.positions.shape[0]

    def __getitem__(self, idx: int) -> tuple:
        return tuple(float(x) for x in self.positions[idx])

    def __iter__(self) -> Iterator[tuple]:
        return (self[i] for i in range(len(self)))

    def __eq__(self, other) -> bool:
        if not isinstance(other, AtomList):
            return NotImplemented
        return self.positions.shape == other.positions.shape and bool(
            np.all(self.positions == other.positions)
        )

    def __hash__(self) -> int:
        return hash((self.positions.shape, self.positions.tobytes()))

    @property
    def dims(self) -> int:
        return self.positions.shape[1]

    def distances(self) -> np.ndarray:
        """Pairwise distances between the atoms.

        Returns:
            np.ndarray: Symmetric `(n, n)` matrix of distances (µm).
        """
        if len(self) < 2:
            return np.zeros((len(self), len(self)))
        return distance.squareform(distance.pdist(self.positions))


def unit_disk_graph(atoms: AtomList, radius: float) -> nx.Graph:
    """Create the unit disk graph of the atoms.

    Two atoms are connected when their distance is at most `radius`,
    i.e. when they cannot be excited at the same time.

    Args:
        atoms (AtomList): The atom positions.
        radius (float): The blockade radius (µm).

    Returns:
        nx.Graph: Graph with the atom indices `0..n-1` as nodes.

    >>> g = unit_disk_graph(AtomList([(0, 0), (5, 0), (12, 0)]), 6.0)
    >>> sorted(g.edges)
    [(0, 1)]
    """
    if radius < 0:
        raise ValueError("The blockade radius needs to be non-negative.")
    graph = nx.Graph()
    graph.add_nodes_from(range(len(atoms)))
    dist = atoms.distances()
    rows, cols = np.nonzero(np.triu(dist <= radius, k=1))
    graph.add_edges_from(zip(rows.tolist(), cols.tolist()))
    return graph
