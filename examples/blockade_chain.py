#! /usr/bin/env python

import matplotlib.pyplot as plt
import numpy as np

import rydbergpy as ry


def main():
    C = 2 * np.pi * ry.shared.constants.C6_Rb87_70S
    omega = 2 * np.pi * 2.0
    radius = ry.utils.blockade_radius(C, omega)
    atoms = ry.lattice.AtomList([(5.5 * k, 0) for k in range(9)])

    sim = ry.simulation.RydbergSimulation(atoms, radius)
    print(sim)
    print(f"Full Hilbert space dimension: {2 ** sim.num_atoms}")

    time = np.linspace(0, 3, 301)
    H = sim.hamiltonian(omega=omega, delta=0.0, C=C)
    states = sim.time_evolution(sim.zero_state(), time, H)
    densities = sim.rydberg_densities(states)

    fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(12, 4))
    ry.plot.atoms(atoms, radius=radius, ax=ax1)
    ry.plot.rydberg_densities(time, densities[:, :5], ax=ax2)
    plt.show()


if __name__ == "__main__":
    main()
