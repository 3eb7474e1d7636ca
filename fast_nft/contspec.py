import numpy as np

from .errwarn import AllocationFailure, InvalidInput
from .misc import ldexp_complex


def get_xi_grid(xi1, xi2, m):
    """Uniform grid of m points from xi1 to xi2 (both included)."""
    if m < 1:
        raise InvalidInput('number of spectral points has to be positive')
    if m == 1:
        return np.array([xi1], dtype=np.float64)
    d_xi = (xi2 - xi1) / (m - 1)
    return np.array([xi1 + i * d_xi for i in range(m)])


def get_eps_t(t_range, n_q):
    return (t_range[1] - t_range[0]) / (n_q - 1)


def xi_to_z(fscatter_result, eps_t, xi):
    return np.exp(1.0j * fscatter_result['z_factor'] * eps_t * np.asarray(xi))


def phase_b(fscatter_result, t_range, eps_t, n_q, xi):
    """Phase factor turning P21(z) into b(xi)."""
    t_sum = t_range[0] + t_range[1] + n_q * eps_t + 2.0 * fscatter_result['boundary_shift']
    return np.exp(-1.0j * np.asarray(xi) * t_sum)


def _n_samples(fscatter_result):
    return fscatter_result['deg'] // fscatter_result['deg1step']


def poly_eval_ab(fscatter_result, t_range, xi, scaled=True):
    """
    Evaluate a(xi) and b(xi) from the scattering polynomial.

    Args:
        fscatter_result: dictionary returned by fscatter
        t_range: [T0, T1], positions of the first and last sample
        xi: real or complex spectral parameters
        scaled: if False, the common factor 2 ** W is not applied

    Returns:
        a, b

    """
    n_q = _n_samples(fscatter_result)
    eps_t = get_eps_t(t_range, n_q)
    poly = fscatter_result['poly']
    try:
        z = xi_to_z(fscatter_result, eps_t, xi)
        a = np.polyval(poly[0, 0], z)
        b = np.polyval(poly[1, 0], z) * phase_b(fscatter_result, t_range, eps_t, n_q, xi)
    except MemoryError:
        raise AllocationFailure('not enough memory to evaluate ' + str(np.size(xi)) + ' points')

    if scaled:
        a = ldexp_complex(a, fscatter_result['W'])
        b = ldexp_complex(b, fscatter_result['W'])
    return a, b


def poly_eval_ad(fscatter_result, t_range, xi):
    """
    Derivative da / dxi from the scattering polynomial.

    :math:`a'(\\xi) = 2^W P_{11}'(z) \\cdot i \\cdot z_{factor} \\varepsilon_t z`
    """
    n_q = _n_samples(fscatter_result)
    eps_t = get_eps_t(t_range, n_q)
    z = xi_to_z(fscatter_result, eps_t, xi)
    dz = 1.0j * fscatter_result['z_factor'] * eps_t * z
    ad = np.polyval(np.polyder(fscatter_result['poly'][0, 0]), z) * dz
    return ldexp_complex(ad, fscatter_result['W'])


def compute_contspec(fscatter_result, t_range, xi, contspec_type='reflection_coefficient'):
    """
    Continuous spectrum on the grid xi.

    Args:
        fscatter_result: dictionary returned by fscatter
        t_range: [T0, T1]
        xi: real spectral grid
        contspec_type: 'reflection_coefficient', 'ab' or 'both'

    Returns:
        Dictionary with 'cont_ref' and / or 'cont_a', 'cont_b'

    """
    if contspec_type not in ('reflection_coefficient', 'ab', 'both'):
        raise InvalidInput('unknown continuous spectrum type ' + str(contspec_type))

    a, b = poly_eval_ab(fscatter_result, t_range, xi, scaled=False)
    res = {}
    if contspec_type in ('reflection_coefficient', 'both'):
        # common scale cancels in the ratio
        res['cont_ref'] = b / a
    if contspec_type in ('ab', 'both'):
        res['cont_a'] = ldexp_complex(a, fscatter_result['W'])
        res['cont_b'] = ldexp_complex(b, fscatter_result['W'])

    return res
