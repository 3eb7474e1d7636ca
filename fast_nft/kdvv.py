"""
Fast nonlinear Fourier transform for the Korteweg-de Vries equation with vanishing boundaries.

For a real potential q(t) the Schroedinger problem
d^2 psi / dt^2 + (xi^2 + q(t)) psi = 0
is the AKNS system dv/dt = [[-1j * xi, q(t)], [-1, 1j * xi]] v with psi = v[1].
The scattering polynomial is built by the same fscatter as for the NSE with r = -1.

Outside of the signal the solutions are not multiples of the unit vectors, so a(xi)
and b(xi) are read off in the eigenbasis [1, 1 / (2j xi)], [0, 1 / (2j xi)] of the
free problem. The scalings are chosen such that b / a is the reflection coefficient
of psi and |a|^2 = 1 + |b|^2 for real xi.

References:
    - Prins and Wahls, "Higher order exponential splittings for the fast non-linear Fourier transform
      of the KdV equation", Proc. ICASSP 2018.
"""
import numpy as np
from datetime import datetime

from . import errwarn
from .errwarn import AllocationFailure, InvalidInput, InvalidScheme, NftError, SUCCESS
from .contspec import get_eps_t, get_xi_grid, phase_b, xi_to_z
from .discretization import get_discretization
from .fscatter import fscatter
from .misc import ldexp_complex, print_calc_time
from .nsev import _check_signal, _check_xi

# ftes4_4b pads the potentials with zeros, which is wrong for r = -1
KDVV_DISCRETIZATIONS = ('2split2_modal', '2split2a', '2split4a', '2split4b')


def get_default_kdvv_options():
    """
    Default options of the KdV transform.

    Returns:
        Dictionary with the following keys

        - 'discretization' -- '2split2_modal', '2split2a', '2split4a' or '2split4b'
        - 'contspec_type' -- 'reflection_coefficient', 'ab' or 'both'
        - 'normalization_flag' -- scale intermediate polynomial products

    """
    options = {'discretization': '2split4a',
               'contspec_type': 'reflection_coefficient',
               'normalization_flag': True}

    return options


def resolve_kdvv_options(options=None):
    resolved = get_default_kdvv_options()
    if options is None:
        return resolved
    for key in options:
        if key not in resolved:
            raise InvalidInput('unknown option ' + str(key))
    resolved.update(options)

    name = get_discretization(resolved['discretization']).name
    if name not in KDVV_DISCRETIZATIONS:
        raise InvalidScheme('discretization ' + name + ' is not supported for the KdV equation')
    resolved['discretization'] = name
    if resolved['contspec_type'] not in ('reflection_coefficient', 'ab', 'both'):
        raise InvalidInput('unknown contspec_type ' + str(resolved['contspec_type']))
    return resolved


def poly_eval_kdv_ab(fscatter_result, t_range, xi, scaled=True):
    """
    Evaluate a(xi) and b(xi) of the KdV problem from the scattering polynomial.

    With the polynomial matrix P(z), c = 1 / (2j xi) and the boundary shift delta

    :math:`a = P_{11} + c P_{12} e^{2 i \\xi \\delta}`,

    :math:`b = e^{-i \\xi phase_b} (2 i \\xi P_{21} + e^{2 i \\xi \\delta}(P_{22} - P_{11})
    - c P_{12} e^{4 i \\xi \\delta})`.

    Args:
        fscatter_result: dictionary returned by fscatter for r = -1
        t_range: [T0, T1], positions of the first and last sample
        xi: nonzero spectral parameters
        scaled: if False, the common factor 2 ** W is not applied

    Returns:
        a, b

    """
    n_q = fscatter_result['deg'] // fscatter_result['deg1step']
    eps_t = get_eps_t(t_range, n_q)
    poly = fscatter_result['poly']
    xi = np.asarray(xi)
    try:
        z = xi_to_z(fscatter_result, eps_t, xi)
        p11 = np.polyval(poly[0, 0], z)
        p12 = np.polyval(poly[0, 1], z)
        p21 = np.polyval(poly[1, 0], z)
        p22 = np.polyval(poly[1, 1], z)
    except MemoryError:
        raise AllocationFailure('not enough memory to evaluate ' + str(np.size(xi)) + ' points')

    c = 1.0 / (2.0j * xi)
    shift = np.exp(2.0j * xi * fscatter_result['boundary_shift'])
    a = p11 + c * p12 * shift
    b = (2.0j * xi * p21 + shift * (p22 - p11) - c * p12 * shift ** 2) * phase_b(fscatter_result, t_range,
                                                                                 eps_t, n_q, xi)
    if scaled:
        a = ldexp_complex(a, fscatter_result['W'])
        b = ldexp_complex(b, fscatter_result['W'])
    return a, b


def _kdvv(q, t, xi1, xi2, m, options, print_sys_message):
    q_raw = np.asarray(q)
    if np.iscomplexobj(q_raw) and np.any(q_raw.imag != 0):
        raise InvalidInput('the KdV potential q has to be real')
    q, t_range = _check_signal(q_raw, t, 1)
    options = resolve_kdvv_options(options)
    _check_xi(xi1, xi2, m)
    xi = get_xi_grid(xi1, xi2, m)
    if np.any(xi == 0):
        raise InvalidInput('the continuous spectrum of the KdV equation is not defined at xi = 0')

    start_time = datetime.now()
    r = -np.ones(len(q), dtype=np.complex128)
    fscatter_result = fscatter(q, r, get_eps_t(t_range, len(q)), options['discretization'],
                               options['normalization_flag'])
    a, b = poly_eval_kdv_ab(fscatter_result, t_range, xi, scaled=False)

    res = {'xi': xi, 'W': fscatter_result['W']}
    if options['contspec_type'] in ('reflection_coefficient', 'both'):
        res['cont_ref'] = b / a
    if options['contspec_type'] in ('ab', 'both'):
        res['cont_a'] = ldexp_complex(a, fscatter_result['W'])
        res['cont_b'] = ldexp_complex(b, fscatter_result['W'])
    if print_sys_message:
        print_calc_time(start_time, 'continuous spectrum')

    return res


def kdvv(q, t, xi1, xi2, m, options=None, print_sys_message=False):
    """
    Continuous spectrum of a real potential with respect to the KdV equation.

    Args:
        q: real signal samples, the number of samples D has to be a power of two
        t: time grid or [T0, T1], only the first and the last values are used
        xi1: first point of the continuous spectrum grid
        xi2: last point of the continuous spectrum grid
        m: number of points of the grid, the grid must not contain xi = 0
        options: dictionary of options, see get_default_kdvv_options
        print_sys_message: print calculation times

    Returns:
        Dictionary with the following keys

        - 'return_value' -- 0 on success, error code otherwise
        - 'error_message' -- description of the error
        - 'xi' -- continuous spectrum grid
        - 'cont_ref' -- reflection coefficient b(xi) / a(xi)
        - 'cont_a' -- a(xi)
        - 'cont_b' -- b(xi)
        - 'W' -- scaling exponent of the scattering polynomial

    Examples:
        >>> t = np.linspace(-16., 16., 1024)
        >>> res = kdvv(1.5 / np.cosh(t) ** 2, t, 0.25, 3., 64)

    """
    result = {'return_value': SUCCESS,
              'error_message': '',
              'xi': None,
              'cont_ref': None,
              'cont_a': None,
              'cont_b': None,
              'W': 0}
    try:
        result.update(_kdvv(q, t, xi1, xi2, m, options, print_sys_message))
    except MemoryError:
        errwarn.error('kdvv', 'out of memory')
        result['return_value'] = AllocationFailure.code
        result['error_message'] = 'out of memory'
    except NftError as e:
        errwarn.error('kdvv', str(e))
        result['return_value'] = e.code
        result['error_message'] = str(e)

    return result
