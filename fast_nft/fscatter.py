import numpy as np

from .errwarn import AllocationFailure, InvalidInput, NftError
from .discretization import get_discretization, get_transfer_matrices
from .misc import is_power_of_2
from .poly_fmult import poly_fmult2x2


def fscatter_numel(n_q, discretization):
    """
    Number of coefficients of the scattering polynomial for a signal of length n_q.

    Args:
        n_q: number of samples
        discretization: name of the discretization

    Returns:
        4 * (n_q * degree + 1), 0 if the discretization is unknown

    """
    try:
        disc = get_discretization(discretization)
    except NftError:
        return 0
    return 4 * (n_q * disc.degree + 1)


def fscatter(q, r, eps_t, discretization, normalize=True):
    """
    Polynomial approximation of the scattering matrix of the whole signal.

    The transfer matrix polynomials G_n(z) of all samples are multiplied as
    G_{D-1} ... G_0 with the fast binary tree algorithm.

    Args:
        q: signal samples, power of two length D
        r: second potential of the same length, r = -kappa * conj(q) for the NSE
        eps_t: time step
        discretization: name of the discretization
        normalize: scale intermediate products by powers of two

    Returns:
        Dictionary with the following keys

        - 'poly' -- array (2, 2, D * degree + 1), descending coefficient order
        - 'deg' -- degree of the polynomial, D * degree
        - 'W' -- scaling exponent, scattering matrix = poly * 2 ** W
        - 'deg1step' -- degree per sample
        - 'z_factor' -- z = exp(1j * z_factor * eps_t * xi)
        - 'boundary_shift' -- shift of the boundaries in units of eps_t

    """
    disc = get_discretization(discretization)
    q = np.asarray(q, dtype=np.complex128)
    r = np.asarray(r, dtype=np.complex128)
    if q.ndim != 1 or q.shape != r.shape:
        raise InvalidInput('q and r have to be vectors of the same length')
    n_q = len(q)
    if n_q < 2 or not is_power_of_2(n_q):
        raise InvalidInput('number of samples has to be a power of two >= 2')
    if not eps_t > 0:
        raise InvalidInput('eps_t has to be positive')

    try:
        g = get_transfer_matrices(q, r, eps_t, disc)
        poly, w = poly_fmult2x2(g, normalize=normalize)
    except MemoryError:
        raise AllocationFailure('not enough memory for ' + str(n_q) + ' samples')

    return {'poly': poly,
            'deg': n_q * disc.degree,
            'W': w,
            'deg1step': disc.degree,
            'z_factor': disc.z_factor,
            'boundary_shift': disc.boundary_shift * eps_t}
