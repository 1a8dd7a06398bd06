#! /usr/bin/env python

"""Utility functions."""
from typing import Tuple

import numpy as np
from scipy.fft import rfft, rfftfreq
from scipy.optimize import curve_fit
from sklearn.metrics import r2_score

from .shared import ureg


def blockade_radius(C: float, omega: float) -> float:
    """Blockade radius of a Rydberg atom.

    The distance at which the van der Waals interaction equals the
    Rabi frequency.

    Args:
            C (float): van der Waals coefficient (rad/µs·µm⁶).
            omega (float): Rabi frequency (rad/µs).

    Returns:
            float: The blockade radius (µm).

    >>> round(blockade_radius(2 * np.pi * 862690, 2 * np.pi * 4), 4)
    7.744
    """
    if C < 0:
        raise ValueError("The interaction coefficient needs to be non-negative.")
    if omega == 0:
        raise ValueError("The blockade radius is undefined for zero Rabi frequency.")
    return float((C / abs(omega)) ** (1 / 6))


def to_angular_frequency(frequency) -> float:
    """Convert a frequency to angular frequency in rad/µs.

    Args:
            frequency (pint.Quantity or float): The frequency.  Plain
                numbers are taken to be in MHz.

    Returns:
            float: The angular frequency (rad/µs).

    >>> round(to_angular_frequency(ureg.Quantity(500, "kHz")), 6)
    3.141593
    """
    if not isinstance(frequency, ureg.Quantity):
        frequency = ureg.Quantity(frequency, "MHz")
    return float(2 * np.pi * frequency.to("MHz").magnitude)


def rabi_oscillation(
    t: np.ndarray, amplitude: float, frequency: float, offset: float
) -> np.ndarray:
    """Damping-free Rabi oscillation of an excitation probability.

    Args:
            t (np.ndarray): Time (µs).
            amplitude (float): Half of the peak-to-peak oscillation.
            frequency (float): Angular frequency of the oscillation
                (rad/µs).
            offset (float): Mean excitation probability.

    Returns:
            np.ndarray: `offset - amplitude * cos(frequency * t)`.
    """
    return offset - amplitude * np.cos(frequency * t)


def rabi_fit(
    time: np.ndarray, density: np.ndarray
) -> Tuple[float, np.ndarray, np.ndarray, float]:
    """Fit a Rabi oscillation to a Rydberg density trace.

    The initial frequency is taken from the peak of the Fourier
    spectrum of the trace.

    Args:
            time (np.ndarray): Equidistant time points (µs).
            density (np.ndarray): Rydberg density at each time point,
                e.g. one column of
                `rydbergpy.simulation.RydbergSimulation.rydberg_densities`.

    Returns:
            (float, np.ndarray, np.ndarray, float):
            - `frequency` (float): The fitted angular frequency (rad/µs).
            - `fit_result` (np.ndarray): y-axis from fit.
            - `fit_error` (np.ndarray): Standard errors of the fitted
              amplitude, frequency and offset.
            - `R2` (float): R-squared value for the fit.
    """
    time = np.asarray(time, dtype=float)
    density = np.asarray(density, dtype=float)
    if len(time) < 4 or len(time) != len(density):
        raise ValueError("Need at least 4 (time, density) points of equal length.")

    spectrum = np.abs(rfft(density - density.mean()))
    freqs = 2 * np.pi * rfftfreq(len(time), time[1] - time[0])
    guess = freqs[np.argmax(spectrum[1:]) + 1]
    p0 = [(density.max() - density.min()) / 2, guess, density.mean()]

    popt, pcov = curve_fit(rabi_oscillation, time, density, p0=p0, maxfev=100000)
    fit_error = np.sqrt(np.diag(pcov))
    fit_result = rabi_oscillation(time, *popt)
    R2 = r2_score(density, fit_result)
    return abs(popt[1]), fit_result, fit_error, R2
