"""
Discretizations of the Zakharov-Shabat scattering problem.

Every discretization approximates the transfer matrix of one sample,
exp(eps_t * [[-1j * xi, q_n], [r_n, 1j * xi]]), by a 2x2 matrix polynomial
G_n(z) in z = exp(1j * z_factor * eps_t * xi) (up to a power of z that is
accounted for in the boundary phases). The polynomial coefficients are stored
in descending order with shape (D, 2, 2, degree + 1).

References:
    - Wahls and Poor, "Fast numerical nonlinear Fourier transforms", IEEE Trans. Inform. Theor. 61(12), 2015.
    - Prins and Wahls, "Higher order exponential splittings for the fast non-linear Fourier transform
      of the KdV equation", Proc. ICASSP 2018.
    - Medvedev et al., "Exponential fourth order schemes for direct Zakharov-Shabat problem",
      Optics Express 28(1), 2020.
"""
import numpy as np
from dataclasses import dataclass
from typing import Callable

from .errwarn import InvalidScheme
from .misc import csinc


@dataclass(frozen=True)
class Discretization:
    name: str
    degree: int  # polynomial degree per sample
    z_factor: float  # z = exp(1j * z_factor * eps_t * xi)
    boundary_shift: float  # delta / eps_t in the phase of b(xi)
    order: int  # convergence order of the continuous spectrum
    builder: Callable
    description: str = ''


def expm_offdiag(u, v):
    """
    Exponential of [[0, u], [v, 0]] for arrays u and v.

    Uses M^2 = u * v * I, so exp(M) = cosh(s) I + sinh(s) / s M with s^2 = u * v.

    Args:
        u: upper right entries
        v: lower left entries

    Returns:
        array of shape (len(u), 2, 2)

    """
    u = np.asarray(u, dtype=np.complex128)
    v = np.asarray(v, dtype=np.complex128)
    s = np.sqrt(u * v)
    cosh_s = np.cosh(s)
    sinh_s_over_s = csinc(1.0j * s)

    e = np.empty((len(u), 2, 2), dtype=np.complex128)
    e[:, 0, 0] = cosh_s
    e[:, 0, 1] = sinh_s_over_s * u
    e[:, 1, 0] = sinh_s_over_s * v
    e[:, 1, 1] = cosh_s
    return e


# Helpers below work with ascending coefficient order.

def _const(m):
    return m[..., None]


def _zdiag(n, power):
    # diag(1, z^power)
    d = np.zeros((n, 2, 2, power + 1), dtype=np.complex128)
    d[:, 0, 0, 0] = 1.0
    d[:, 1, 1, power] = 1.0
    return d


def _mul(a, b):
    res = np.zeros(a.shape[:-1] + (a.shape[-1] + b.shape[-1] - 1,), dtype=np.complex128)
    for i in range(a.shape[-1]):
        for j in range(b.shape[-1]):
            res[..., i + j] += np.einsum('nik,nkj->nij', a[..., i], b[..., j])
    return res


def _lincomb(ca, a, cb, b):
    n = max(a.shape[-1], b.shape[-1])
    res = np.zeros(a.shape[:-1] + (n,), dtype=np.complex128)
    res[..., :a.shape[-1]] += ca * a
    res[..., :b.shape[-1]] += cb * b
    return res


def _split4b(q, r, eps_t):
    # 4/3 S(eps_t/2)^2 - 1/3 S(eps_t), S(tau) = exp(tau Q/2) E(tau) exp(tau Q/2)
    n = len(q)
    c_q = _const(expm_offdiag(eps_t / 4. * q, eps_t / 4. * r))
    c_h = _const(expm_offdiag(eps_t / 2. * q, eps_t / 2. * r))
    fine = _mul(_mul(_mul(_mul(c_q, _zdiag(n, 1)), c_h), _zdiag(n, 1)), c_q)
    coarse = _mul(_mul(c_h, _zdiag(n, 2)), c_h)
    return _lincomb(4. / 3., fine, -1. / 3., coarse)


def transfer_matrices_2split2_modal(q, r, eps_t):
    n = len(q)
    scl = 1.0 / np.sqrt(1.0 - eps_t ** 2 * q * r + 0.0j)
    c = np.empty((n, 2, 2), dtype=np.complex128)
    c[:, 0, 0] = scl
    c[:, 0, 1] = scl * eps_t * q
    c[:, 1, 0] = scl * eps_t * r
    c[:, 1, 1] = scl
    return _mul(_zdiag(n, 1), _const(c))


def transfer_matrices_2split2a(q, r, eps_t):
    n = len(q)
    return _mul(_zdiag(n, 1), _const(expm_offdiag(eps_t * q, eps_t * r)))


def transfer_matrices_2split4a(q, r, eps_t):
    # 4/3 S(eps_t/2)^2 - 1/3 S(eps_t), S(tau) = E(tau/2) exp(tau Q) E(tau/2)
    n = len(q)
    c_h = _const(expm_offdiag(eps_t / 2. * q, eps_t / 2. * r))
    c = _const(expm_offdiag(eps_t * q, eps_t * r))
    fine = _mul(_mul(c_h, _zdiag(n, 2)), c_h)
    coarse = _mul(_mul(_zdiag(n, 1), c), _zdiag(n, 1))
    return _mul(_zdiag(n, 2), _lincomb(4. / 3., fine, -1. / 3., coarse))


def transfer_matrices_2split4b(q, r, eps_t):
    return _split4b(q, r, eps_t)


def transfer_matrices_ftes4_4b(q, r, eps_t):
    # exp(S+) G_4b exp(S-), S+- = +-eps_t^2/12 Q' + eps_t^3/48 Q'' with finite differences
    q_ext = np.concatenate(([0.0], q, [0.0]))
    r_ext = np.concatenate(([0.0], r, [0.0]))
    dq_1 = q_ext[2:] - q_ext[:-2]
    dr_1 = r_ext[2:] - r_ext[:-2]
    dq_2 = q_ext[2:] - 2.0 * q_ext[1:-1] + q_ext[:-2]
    dr_2 = r_ext[2:] - 2.0 * r_ext[1:-1] + r_ext[:-2]

    e_plus = _const(expm_offdiag(eps_t / 24. * dq_1 + eps_t / 48. * dq_2,
                                 eps_t / 24. * dr_1 + eps_t / 48. * dr_2))
    e_minus = _const(expm_offdiag(-eps_t / 24. * dq_1 + eps_t / 48. * dq_2,
                                  -eps_t / 24. * dr_1 + eps_t / 48. * dr_2))

    return _mul(_mul(e_plus, _split4b(q, r, eps_t)), e_minus)


DISCRETIZATIONS = {d.name: d for d in (
    Discretization('2split2_modal', 1, 2.0, 0.5, 2, transfer_matrices_2split2_modal,
                   'Ablowitz-Ladik (modal) discretization'),
    Discretization('2split2a', 1, 2.0, 0.5, 2, transfer_matrices_2split2a,
                   'Strang splitting'),
    Discretization('2split4a', 4, 0.5, 0.25, 2, transfer_matrices_2split4a,
                   'extrapolated Strang splitting, exponentials of Q inside'),
    Discretization('2split4b', 2, 1.0, 0.0, 2, transfer_matrices_2split4b,
                   'extrapolated Strang splitting, exponentials of Q outside'),
    Discretization('ftes4_4b', 2, 1.0, 0.0, 4, transfer_matrices_ftes4_4b,
                   'fourth order exponential scheme with 2split4b inner step'),
)}


def discretization_names():
    return list(DISCRETIZATIONS.keys())


def get_discretization(discretization):
    """
    Look up a discretization.

    Args:
        discretization: name (case insensitive) or Discretization object

    Returns:
        Discretization object

    """
    if isinstance(discretization, Discretization):
        return discretization
    key = str(discretization).lower()
    if key not in DISCRETIZATIONS:
        raise InvalidScheme('unknown discretization ' + str(discretization))
    return DISCRETIZATIONS[key]


def discretization_degree(discretization):
    return get_discretization(discretization).degree


def get_transfer_matrices(q, r, eps_t, discretization):
    """
    Elementary transfer matrix polynomials of all samples.

    Args:
        q: signal samples
        r: second potential, r = -kappa * conj(q) for the NSE
        eps_t: time step
        discretization: name of the discretization

    Returns:
        array of shape (D, 2, 2, degree + 1), descending coefficient order

    """
    disc = get_discretization(discretization)
    q = np.asarray(q, dtype=np.complex128)
    r = np.asarray(r, dtype=np.complex128)
    g = disc.builder(q, r, eps_t)

    # pad to the nominal degree, structural zeros may be missing at the top
    g_full = np.zeros(g.shape[:-1] + (disc.degree + 1,), dtype=np.complex128)
    g_full[..., :g.shape[-1]] = g
    return np.flip(g_full, axis=-1)
