#! /usr/bin/env python

import matplotlib.pyplot as plt
import numpy as np

import rydbergpy as ry


def main():
    # Sweeping the detuning from negative to positive prepares the Z2
    # ordered state of a blockaded chain.
    atoms = [(5.0 * k, 0.0) for k in range(7)]
    sim = ry.simulation.RydbergSimulation(atoms, radius=7.0)
    omega_max = 2 * np.pi * 1.0
    delta_max = 2 * np.pi * 3.0
    T = 4.0

    def hamiltonian(t):
        ramp = np.sin(np.pi * t / T) ** 2
        return sim.hamiltonian(
            omega=omega_max * ramp,
            delta=delta_max * (2 * t / T - 1),
        )

    time = np.linspace(0, T, 401)
    states = sim.time_evolution(sim.zero_state(), time, hamiltonian)
    densities = sim.rydberg_densities(states)

    z2 = sim.product_state([1, 0, 1, 0, 1, 0, 1])
    fidelity = np.abs(np.vdot(z2, states[-1])) ** 2
    print(f"Z2 state fidelity: {fidelity:.4f}")

    plt.imshow(densities.T, aspect="auto", extent=[0, T, len(atoms) - 0.5, -0.5])
    plt.xlabel("Time ($\\mu s$)")
    plt.ylabel("Atom")
    plt.colorbar(label="Rydberg density")
    plt.show()


if __name__ == "__main__":
    main()
