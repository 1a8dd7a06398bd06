#! /usr/bin/env python

import matplotlib.pyplot as plt
import numpy as np

import rydbergpy as ry


def main():
    # Two atoms inside each other's blockade radius share one excitation,
    # which oscillates sqrt(2) times faster than a single atom.
    omega = ry.utils.to_angular_frequency(ry.Q_(1, "MHz"))
    C = 2 * np.pi * ry.shared.constants.C6_Rb87_53S
    radius = ry.utils.blockade_radius(C, omega)
    print(f"Blockade radius of 87Rb 53S at 1 MHz: {radius:.2f} um")
    time = np.linspace(0, 2, 401)

    for positions, label in [([(0, 0)], "1 atom"), ([(0, 0), (3, 0)], "2 atoms")]:
        sim = ry.simulation.RydbergSimulation(positions, radius=radius)
        H = sim.hamiltonian(omega=omega, C=C)
        states = sim.time_evolution(sim.zero_state(), time, H)
        density = sim.rydberg_densities(states).sum(axis=1)

        frequency, fit_result, fit_error, R2 = ry.utils.rabi_fit(time, density)
        print(f"{label}: Rabi frequency {frequency / omega:.4f} Omega (R2 = {R2:.6f})")

        plt.plot(time, density, linewidth=2, label=label)
        plt.plot(time, fit_result, "k--", linewidth=1)

    plt.xlabel("Time ($\\mu s$)")
    plt.ylabel("Rydberg excitations")
    plt.legend()
    plt.show()


if __name__ == "__main__":
    main()
