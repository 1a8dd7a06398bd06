#! /usr/bin/env python
"""Action of the matrix exponential on a vector.

`expmv` approximates :math:`e^{tA} v` in a Krylov subspace built by
the Arnoldi process, following the time-stepping scheme of Expokit
(R. B. Sidje, ACM Trans. Math. Softw. 24, 130 (1998)).  The matrix
`A` is only used through products `A @ x`, so it can be a sparse
matrix or a `scipy.sparse.linalg.LinearOperator`; neither the
exponential nor a dense copy of `A` is ever formed.
"""
import logging
from typing import Optional, Tuple

import numpy as np
import scipy as sp
from scipy.linalg import expm

logger = logging.getLogger(__name__)

DEFAULT_KRYLOV_DIM = 30
"""Default dimension of the Krylov subspace."""

DEFAULT_TOLERANCE = 1e-7
"""Default local error tolerance of a Krylov step."""

MAX_REJECTIONS = 10
BREAKDOWN_TOLERANCE = 1e-7


def arnoldi(
    A, v: np.ndarray, m: int, breakdown_tol: float = BREAKDOWN_TOLERANCE
) -> Tuple[np.ndarray, np.ndarray, int]:
    """Arnoldi process with modified Gram-Schmidt.

    Args:
        A: Matrix or linear operator of shape `(n, n)`.
        v (np.ndarray): Start vector (normalised internally).
        m (int): Maximal dimension of the Krylov subspace.
        breakdown_tol (float): A new basis vector with a norm below
            this is taken as a breakdown.  It is measured in the units
            of `A`, so pass a value proportional to the norm of `A`.

    Returns:
        (np.ndarray, np.ndarray, int):
        - `V` (np.ndarray): `(n, m + 1)` matrix whose first `k`
          columns are an orthonormal basis of the Krylov subspace.
        - `H` (np.ndarray): `(m + 1, m)` upper Hessenberg matrix with
          `A @ V[:, :k] = V[:, :k + 1] @ H[:k + 1, :k]`.
        - `k` (int): Dimension actually reached; smaller than `m` on
          a breakdown (an invariant subspace was found).
    """
    n = len(v)
    V = np.zeros((n, m + 1), dtype=np.result_type(v.dtype, A.dtype, np.complex128))
    H = np.zeros((m + 1, m), dtype=V.dtype)
    V[:, 0] = v / np.linalg.norm(v)
    for j in range(m):
        p = A @ V[:, j]
        for i in range(j + 1):
            H[i, j] = np.vdot(V[:, i], p)
            p = p - H[i, j] * V[:, i]
        s = np.linalg.norm(p)
        if s < breakdown_tol:
            return V, H, j + 1
        H[j + 1, j] = s
        V[:, j + 1] = p / s
    return V, H, m


def operator_norm(A) -> float:
    """Infinity norm of `A` (1-norm estimate for generic operators)."""
    if hasattr(A, "tocsr"):
        return float(sp.sparse.linalg.norm(A.tocsr(), np.inf))
    if isinstance(A, np.ndarray):
        return float(np.linalg.norm(A, np.inf))
    return float(sp.sparse.linalg.onenormest(A))


def _round_step(t: float) -> float:
    # keep two significant digits, rounded up
    s = 10.0 ** (np.floor(np.log10(t)) - 1)
    return float(np.ceil(t / s) * s)


def expmv(
    t: complex,
    A,
    v: np.ndarray,
    krylov_dim: int = DEFAULT_KRYLOV_DIM,
    tol: float = DEFAULT_TOLERANCE,
    anorm: Optional[float] = None,
) -> np.ndarray:
    """Compute :math:`e^{tA} v` without forming :math:`e^{tA}`.

    The interval `[0, |t|]` is covered by adaptive steps.  On every
    step an Arnoldi basis of dimension `krylov_dim` is built, the
    small Hessenberg matrix is exponentiated densely and the step is
    shrunk until its local error estimate is below its share of `tol`.
    Time is measured in units of `1 / anorm`, so scaling `A` by a
    factor and `t` by its inverse gives the same result.

    Args:
        t (complex): Scalar factor, e.g. `-1j * time` for
            Schrödinger evolution.
        A: Square matrix or linear operator.
        v (np.ndarray): Vector to act on.
        krylov_dim (int): Dimension of the Krylov subspace, at least 2.
        tol (float): Tolerance of the error of the result, distributed
            over the steps in proportion to their length.
        anorm (float): Norm of `A`, estimated when not given.

    Returns:
        np.ndarray: Approximation of :math:`e^{tA} v` (a new array).

    >>> A = np.array([[0.0, 1.0], [1.0, 0.0]])
    >>> w = expmv(-1j * np.pi / 2, A, np.array([1.0, 0.0]))
    >>> np.allclose(w, [0, -1j])
    True
    """
    v = np.asarray(v)
    n = len(v)
    if A.shape != (n, n):
        raise ValueError(f"Operator of shape {A.shape} cannot act on a vector of length {n}.")
    if krylov_dim < 2:
        raise ValueError("The Krylov dimension needs to be at least 2.")
    if not tol > 0:
        raise ValueError("The tolerance needs to be positive.")

    w = v.astype(np.result_type(v.dtype, A.dtype, np.complex128), copy=True)
    beta = np.linalg.norm(w)
    if anorm is None:
        anorm = operator_norm(A)
    if t == 0 or beta == 0 or anorm == 0:
        return w

    # e^{tA} = e^{t_out B} with B = (t / |t|) A / anorm and t_out = |t| anorm;
    # steps, breakdowns and errors are measured on this dimensionless clock
    t_out = abs(t) * anorm
    scale = t / abs(t) / anorm
    step_tol = tol / t_out
    m = min(krylov_dim, n)
    gamma, delta = 0.9, 1.2
    rndoff = np.finfo(float).eps

    fact = ((m + 1) / np.e) ** (m + 1) * np.sqrt(2 * np.pi * (m + 1))
    xm = 1 / m
    t_new = _round_step(((fact * step_tol) / (4 * beta)) ** xm)

    t_now = 0.0
    nsteps = nrejected = 0
    total_error = 0.0
    while t_now < t_out:
        t_step = min(t_out - t_now, t_new)
        V, H, k = arnoldi(A, w, m, BREAKDOWN_TOLERANCE * anorm)
        H = scale * H
        # a zero subdiagonal in the last column is a breakdown as well
        happy = k < m or H[m, m - 1] == 0

        if happy:
            t_step = t_out - t_now
            F = expm(t_step * H[:k, :k])
            err_loc = BREAKDOWN_TOLERANCE
        else:
            # augmented matrix for the error estimate
            Hbar = np.zeros((m + 2, m + 2), dtype=H.dtype)
            Hbar[: m + 1, :m] = H
            Hbar[m + 1, m] = 1.0
            avnorm = np.linalg.norm(A @ V[:, m]) / anorm
            for ireject in range(MAX_REJECTIONS + 1):
                F = expm(t_step * Hbar)
                phi1 = abs(beta * F[m, 0])
                phi2 = abs(beta * F[m + 1, 0] * avnorm)
                if phi1 > 10 * phi2:
                    err_loc, xm = phi2, 1 / m
                elif phi1 > phi2:
                    err_loc, xm = (phi1 * phi2) / (phi1 - phi2), 1 / m
                else:
                    err_loc, xm = phi1, 1 / max(m - 1, 1)
                if err_loc <= delta * t_step * step_tol:
                    break
                if ireject == MAX_REJECTIONS:
                    raise RuntimeError(
                        f"Krylov step rejected {MAX_REJECTIONS} times, "
                        f"the tolerance {tol} is too tight for krylov_dim={krylov_dim}."
                    )
                nrejected += 1
                t_step = _round_step(gamma * t_step * (t_step * step_tol / err_loc) ** xm)
            k = m + 1

        w = V[:, :k] @ (beta * F[:k, 0])
        beta = np.linalg.norm(w)
        t_now += t_step
        nsteps += 1
        err_loc = max(err_loc, rndoff)
        t_new = _round_step(gamma * t_step * (t_step * step_tol / err_loc) ** xm)
        total_error += err_loc

    logger.debug(
        "expmv: |t|=%g in %d steps (%d rejected), error estimate %g",
        abs(t),
        nsteps,
        nrejected,
        total_error,
    )
    return w
