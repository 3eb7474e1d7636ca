"""
Slow O(D) scattering kernels with the Boffetta-Osborne transfer matrices.

For a piecewise constant potential the transfer matrix of one sample is exact:
T = exp(eps_t * A) with A = [[-1j * xi, q_n], [r_n, 1j * xi]].
Since A^2 = k^2 I with k^2 = q_n * r_n - xi^2,

:math:`T = \\cosh(k \\varepsilon_t) I + \\frac{\\sinh(k \\varepsilon_t)}{k} A`

These kernels are used to refine bound states with Newton's method, to compute
norming constants with the bi-directional algorithm and as a reference
transform for the fast one.
"""
import cmath

import numpy as np
from numba import njit

NEWTON_TOL = 1e-6
EPS = np.finfo(np.float64).eps


@njit
def _bo_coefficients(q_n, r_n, xi, dt):
    # c = cosh(k dt), s = sinh(k dt) / k, g = (dt c - s) / k^2
    k = cmath.sqrt(q_n * r_n - xi * xi)
    kdt = k * dt
    if abs(kdt) < 1e-2:
        x = kdt * kdt
        c = 1.0 + x / 2.0 + x * x / 24.0 + x * x * x / 720.0
        s = dt * (1.0 + x / 6.0 + x * x / 120.0)
        g = dt ** 3 * (1.0 / 3.0 + x / 30.0 + x * x / 840.0)
    else:
        c = cmath.cosh(kdt)
        s = cmath.sinh(kdt) / k
        g = (dt * c - s) / (k * k)
    return c, s, g


@njit
def _bo_step(psi_1, psi_2, q_n, r_n, xi, dt):
    c, s, _ = _bo_coefficients(q_n, r_n, xi, dt)
    new_1 = (c - 1.0j * xi * s) * psi_1 + s * q_n * psi_2
    new_2 = s * r_n * psi_1 + (c + 1.0j * xi * s) * psi_2
    return new_1, new_2


@njit
def _bo_scatter(q, r, t0, t1, xi):
    n_q = len(q)
    dt = (t1 - t0) / (n_q - 1)
    t_start = t0 - dt / 2.0
    t_end = t1 + dt / 2.0

    psi_1 = cmath.exp(-1.0j * xi * t_start)
    psi_2 = 0.0j
    dpsi_1 = -1.0j * t_start * psi_1
    dpsi_2 = 0.0j

    for n in range(n_q):
        c, s, g = _bo_coefficients(q[n], r[n], xi, dt)
        t_11 = c - 1.0j * xi * s
        t_12 = s * q[n]
        t_21 = s * r[n]
        t_22 = c + 1.0j * xi * s

        # dT = -xi dt s I - xi g A + s diag(-1j, 1j)
        dt_11 = -xi * dt * s - xi * g * (-1.0j * xi) - 1.0j * s
        dt_12 = -xi * g * q[n]
        dt_21 = -xi * g * r[n]
        dt_22 = -xi * dt * s - xi * g * (1.0j * xi) + 1.0j * s

        new_d1 = t_11 * dpsi_1 + t_12 * dpsi_2 + dt_11 * psi_1 + dt_12 * psi_2
        new_d2 = t_21 * dpsi_1 + t_22 * dpsi_2 + dt_21 * psi_1 + dt_22 * psi_2
        new_1 = t_11 * psi_1 + t_12 * psi_2
        new_2 = t_21 * psi_1 + t_22 * psi_2

        psi_1, psi_2, dpsi_1, dpsi_2 = new_1, new_2, new_d1, new_d2

    phase = cmath.exp(1.0j * xi * t_end)
    a = psi_1 * phase
    ad = (dpsi_1 + 1.0j * t_end * psi_1) * phase
    b = psi_2 / phase

    return a, ad, b


@njit
def _bo_bidirectional(q, r, t0, t1, xi, split_index):
    n_q = len(q)
    dt = (t1 - t0) / (n_q - 1)
    t_start = t0 - dt / 2.0
    t_end = t1 + dt / 2.0

    # left Jost solution, forward up to the split point
    phi_1 = cmath.exp(-1.0j * xi * t_start)
    phi_2 = 0.0j
    for n in range(split_index):
        phi_1, phi_2 = _bo_step(phi_1, phi_2, q[n], r[n], xi, dt)

    # right Jost solution, backward down to the split point
    psi_1 = 0.0j
    psi_2 = cmath.exp(1.0j * xi * t_end)
    for n in range(n_q - 1, split_index - 1, -1):
        psi_1, psi_2 = _bo_step(psi_1, psi_2, q[n], r[n], xi, -dt)

    norm = psi_1.conjugate() * psi_1 + psi_2.conjugate() * psi_2
    return (psi_1.conjugate() * phi_1 + psi_2.conjugate() * phi_2) / norm


@njit
def _newton_refine(q, r, t0, t1, guesses, niter, tol):
    n_guesses = len(guesses)
    points = guesses.copy()
    diverged = np.zeros(n_guesses, dtype=np.bool_)

    for i in range(n_guesses):
        xi = points[i]
        step = 0.0j
        for _ in range(niter):
            a, ad, _b = _bo_scatter(q, r, t0, t1, xi)
            if ad == 0.0j or not cmath.isfinite(ad):
                step = np.inf + 0.0j
                break
            step = a / ad
            xi = xi - step
            if not cmath.isfinite(xi):
                break
            if abs(step) < 1e3 * EPS * max(1.0, abs(xi)):
                break

        points[i] = xi
        if not cmath.isfinite(xi) or not abs(step) <= tol * max(1.0, abs(xi)):
            diverged[i] = True

    return points, diverged


def _prepare(q, r):
    return np.ascontiguousarray(q, dtype=np.complex128), np.ascontiguousarray(r, dtype=np.complex128)


def bo_scatter(q, r, t_range, xi):
    """
    Scattering data at one spectral point.

    Args:
        q: signal samples
        r: second potential, r = -kappa * conj(q) for the NSE
        t_range: [T0, T1], positions of the first and last sample
        xi: complex spectral parameter

    Returns:
        a, ad, b

        - a -- coefficient :math:`a(\\xi)`
        - ad -- derivative :math:`\\partial a(\\xi) / \\partial \\xi`
        - b -- coefficient :math:`b(\\xi)`

    """
    q, r = _prepare(q, r)
    return _bo_scatter(q, r, float(t_range[0]), float(t_range[1]), complex(xi))


def bo_scatter_array(q, r, t_range, xi):
    """Arrays of a, ad and b for an array of spectral points. See bo_scatter."""
    q, r = _prepare(q, r)
    xi = np.atleast_1d(np.asarray(xi, dtype=np.complex128))
    a = np.zeros(len(xi), dtype=np.complex128)
    ad = np.zeros(len(xi), dtype=np.complex128)
    b = np.zeros(len(xi), dtype=np.complex128)
    for k in range(len(xi)):
        a[k], ad[k], b[k] = _bo_scatter(q, r, float(t_range[0]), float(t_range[1]), xi[k])

    return a, ad, b


def get_split_index(q):
    """Index where half of the l1 mass of q lies on each side."""
    mass = np.cumsum(np.absolute(q))
    if mass[-1] == 0:
        return len(q) // 2
    return int(np.searchsorted(mass, mass[-1] / 2.0))


def bo_bidirectional(q, r, t_range, xi, split_index=None):
    """
    Norming constant of a bound state with the bi-directional algorithm.

    The left Jost solution is propagated forward and the right one backward.
    They meet at split_index, where the norming constant b is the
    least squares solution of phi = b * psi. Both propagations stay bounded,
    so the result is stable even for large Im(xi) * (T1 - T0).

    Args:
        q: signal samples
        r: second potential
        t_range: [T0, T1]
        xi: bound state
        split_index: meeting point, by default the l1 mass midpoint of q

    Returns:
        norming constant b

    """
    q, r = _prepare(q, r)
    if split_index is None:
        split_index = get_split_index(q)
    return _bo_bidirectional(q, r, float(t_range[0]), float(t_range[1]), complex(xi), int(split_index))


def bo_bidirectional_array(q, r, t_range, xi, split_index=None):
    q, r = _prepare(q, r)
    if split_index is None:
        split_index = get_split_index(q)
    xi = np.atleast_1d(np.asarray(xi, dtype=np.complex128))
    b = np.zeros(len(xi), dtype=np.complex128)
    for k in range(len(xi)):
        b[k] = _bo_bidirectional(q, r, float(t_range[0]), float(t_range[1]), xi[k], int(split_index))

    return b


def newton_refine(q, r, t_range, guesses, niter, tol=NEWTON_TOL):
    """
    Refine zeros of a(xi) with Newton's method.

    Args:
        q: signal samples
        r: second potential
        t_range: [T0, T1]
        guesses: initial points
        niter: maximal number of iterations
        tol: a point counts as diverged if its last step exceeds tol * max(1, |xi|)

    Returns:
        points, diverged

        - points -- refined points
        - diverged -- boolean mask of diverged points

    """
    q, r = _prepare(q, r)
    guesses = np.atleast_1d(np.asarray(guesses, dtype=np.complex128)).copy()
    if len(guesses) == 0:
        return guesses, np.zeros(0, dtype=bool)
    return _newton_refine(q, r, float(t_range[0]), float(t_range[1]), guesses, int(niter), float(tol))
