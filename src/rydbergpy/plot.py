#! /usr/bin/env python

import matplotlib.pyplot as plt
import numpy as np

from .lattice import AtomList, unit_disk_graph


def atoms(atom_list: AtomList, radius=None, ax=None):
    """Draw the atoms and, given `radius`, the blockaded pairs.

    Each atom gets a disk of diameter `radius`: two disks overlap
    exactly when the atoms blockade each other.
    """
    if ax is None:
        _, ax = plt.subplots()
    xy = np.zeros((len(atom_list), 2))
    xy[:, : min(atom_list.dims, 2)] = atom_list.positions[:, :2]

    if radius is not None:
        for i, j in unit_disk_graph(atom_list, radius).edges:
            ax.plot(*xy[[i, j]].T, color="red", linewidth=1, zorder=1)
        for x, y in xy:
            disk = plt.Circle((x, y), radius / 2, color="tab:blue", alpha=0.15)
            ax.add_patch(disk)

    ax.scatter(*xy.T, s=80, color="tab:blue", zorder=2)
    for k, (x, y) in enumerate(xy):
        ax.annotate(str(k), (x, y), textcoords="offset points", xytext=(6, 6))
    ax.set_aspect("equal")
    ax.set_xlabel("x ($\\mu m$)")
    ax.set_ylabel("y ($\\mu m$)")
    return ax


def rydberg_densities(time: np.ndarray, densities: np.ndarray, ax=None):
    if ax is None:
        _, ax = plt.subplots()
    densities = np.asarray(densities)
    for k in range(densities.shape[1]):
        ax.plot(time, densities[:, k], linewidth=2, label=f"atom {k}")
    ax.set_xlabel("Time ($\\mu s$)")
    ax.set_ylabel("Rydberg density")
    ax.set_ylim([0, 1])
    ax.legend()
    return ax
