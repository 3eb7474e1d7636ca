"""
Fast nonlinear Fourier transform for the nonlinear Schroedinger equation with vanishing boundaries.

The transform works with the Zakharov-Shabat scattering problem
dv/dt = [[-1j * xi, q(t)], [-kappa * conj(q(t)), 1j * xi]] v,
where kappa = +1 is the focusing and kappa = -1 the defocusing case.

References:
    - Wahls and Poor, "Fast numerical nonlinear Fourier transforms", IEEE Trans. Inform. Theor. 61(12), 2015.
    - Wahls, Chimmalgi and Prins, "FNFT: A software library for computing nonlinear Fourier transforms",
      J. Open Source Software 3(23), 2018.
"""
import numpy as np
from datetime import datetime

from . import errwarn
from .errwarn import AllocationFailure, DegenerateInput, InvalidInput, NftError, SUCCESS
from .bound_states import ScatteringProblem, FILTERS, PRODUCERS, compute_discspec, find_bound_states
from .contspec import compute_contspec, get_xi_grid
from .discretization import get_discretization
from .misc import is_power_of_2, print_calc_time


def get_default_nsev_options():
    """
    Default options of the transform.

    Returns:
        Dictionary with the following keys

        - 'bound_state_filtering' -- 'none', 'basic' or 'full'
        - 'bound_state_localization' -- 'fast_eigenvalue', 'newton' or 'subsample_and_refine'
        - 'niter' -- number of Newton iterations
        - 'discspec_type' -- 'norming_constants', 'residues' or 'both'
        - 'contspec_type' -- 'reflection_coefficient', 'ab' or 'both'
        - 'normalization_flag' -- scale intermediate polynomial products
        - 'discretization' -- '2split2_modal', '2split2a', '2split4a', '2split4b' or 'ftes4_4b'
        - 'normconst_type' -- 'bi-direct' or 'poly'

    """
    options = {'bound_state_filtering': 'full',
               'bound_state_localization': 'subsample_and_refine',
               'niter': 10,
               'discspec_type': 'norming_constants',
               'contspec_type': 'reflection_coefficient',
               'normalization_flag': True,
               'discretization': '2split4b',
               'normconst_type': 'bi-direct'}

    return options


def check_nsev_options(options):
    if options['bound_state_filtering'] not in FILTERS:
        raise InvalidInput('unknown bound_state_filtering ' + str(options['bound_state_filtering']))
    if options['bound_state_localization'] not in PRODUCERS:
        raise InvalidInput('unknown bound_state_localization ' + str(options['bound_state_localization']))
    if isinstance(options['niter'], bool) or not isinstance(options['niter'], (int, np.integer)) \
            or options['niter'] < 0:
        raise InvalidInput('niter has to be a non-negative integer')
    if options['discspec_type'] not in ('norming_constants', 'residues', 'both'):
        raise InvalidInput('unknown discspec_type ' + str(options['discspec_type']))
    if options['contspec_type'] not in ('reflection_coefficient', 'ab', 'both'):
        raise InvalidInput('unknown contspec_type ' + str(options['contspec_type']))
    if options['normconst_type'] not in ('bi-direct', 'poly'):
        raise InvalidInput('unknown normconst_type ' + str(options['normconst_type']))
    get_discretization(options['discretization'])


def resolve_nsev_options(options=None):
    """User options merged over the defaults. Unknown keys are rejected."""
    resolved = get_default_nsev_options()
    if options is None:
        return resolved
    for key in options:
        if key not in resolved:
            raise InvalidInput('unknown option ' + str(key))
    resolved.update(options)
    resolved['discretization'] = get_discretization(resolved['discretization']).name
    check_nsev_options(resolved)
    return resolved


def nsev_max_k(n_q, options=None):
    """
    Maximal number of bound states the transform can return.

    Args:
        n_q: number of samples
        options: dictionary of options, defaults are used for missing keys

    Returns:
        n_q times the degree of the discretization, 0 on error

    """
    try:
        options = resolve_nsev_options(options)
    except NftError:
        return 0
    if n_q <= 0:
        return 0
    return n_q * get_discretization(options['discretization']).degree


def _check_signal(q, t, kappa):
    q = np.asarray(q)
    if q.ndim != 1:
        raise InvalidInput('q has to be a vector')
    if not np.issubdtype(q.dtype, np.number):
        raise InvalidInput('q has to be numeric')
    q = q.astype(np.complex128)
    n_q = len(q)
    if n_q < 2 or not is_power_of_2(n_q):
        raise InvalidInput('number of samples D = ' + str(n_q) + ' has to be a power of two >= 2')
    if not np.all(np.isfinite(q)):
        raise InvalidInput('q contains non-finite values')

    t = np.asarray(t, dtype=np.float64).ravel()
    if len(t) < 2:
        raise InvalidInput('t has to contain at least T0 and T1')
    t_range = (float(t[0]), float(t[-1]))
    if not t_range[0] < t_range[1]:
        raise DegenerateInput('T0 has to be smaller than T1')

    if isinstance(kappa, bool) or not isinstance(kappa, (int, np.integer)) or kappa not in (1, -1):
        raise InvalidInput('kappa has to be the integer +1 or -1')

    return q, t_range


def _check_xi(xi1, xi2, m):
    if xi1 is None or xi2 is None or m is None:
        raise InvalidInput('xi1, xi2 and m are needed for the continuous spectrum')
    if isinstance(m, bool) or not isinstance(m, (int, np.integer)) or m < 1:
        raise InvalidInput('m has to be a positive integer')
    if not xi1 < xi2:
        raise DegenerateInput('xi1 has to be smaller than xi2')


def _nsev(q, t, xi1, xi2, m, kappa, k, bound_states, options,
          skip_contspec, skip_bound_states, skip_normconsts, print_sys_message):

    # all arguments are checked before any numerical work
    q, t_range = _check_signal(q, t, kappa)
    options = resolve_nsev_options(options)
    if not skip_contspec:
        _check_xi(xi1, xi2, m)

    n_q = len(q)
    capacity = nsev_max_k(n_q, options) if k is None else k
    if isinstance(capacity, bool) or not isinstance(capacity, (int, np.integer)) or capacity < 0:
        raise InvalidInput('k has to be a non-negative integer')

    guesses = None
    if not skip_bound_states and options['bound_state_localization'] == 'newton':
        if bound_states is None:
            raise InvalidInput('initial guesses are needed for the newton localization')
        guesses = np.atleast_1d(np.asarray(bound_states, dtype=np.complex128))
        if guesses.ndim != 1:
            raise InvalidInput('initial guesses have to be a vector')

    r = -kappa * np.conj(q)
    problem = ScatteringProblem(q, r, t_range, kappa, options['discretization'], options['normalization_flag'])

    res = {}
    if not skip_contspec:
        start_time = datetime.now()
        xi = get_xi_grid(xi1, xi2, m)
        fscatter_result = problem.get_fscatter()
        res['xi'] = xi
        res.update(compute_contspec(fscatter_result, t_range, xi, options['contspec_type']))
        res['W'] = fscatter_result['W']
        if print_sys_message:
            print_calc_time(start_time, 'continuous spectrum')

    if not skip_bound_states:
        start_time = datetime.now()
        points = find_bound_states(problem, options, guesses, capacity)
        res['bound_states'] = points
        res['K'] = len(points)
        if print_sys_message:
            print_calc_time(start_time, 'bound states')

        if not skip_normconsts:
            start_time = datetime.now()
            res.update(compute_discspec(problem, points, options['discspec_type'], options['normconst_type']))
            if print_sys_message:
                print_calc_time(start_time, 'norming constants')

    if 'W' not in res and problem.fscatter_result is not None:
        res['W'] = problem.fscatter_result['W']

    return res


def _empty_result():
    return {'return_value': SUCCESS,
            'error_message': '',
            'xi': None,
            'cont_ref': None,
            'cont_a': None,
            'cont_b': None,
            'bound_states': None,
            'disc_norm': None,
            'disc_res': None,
            'K': 0,
            'W': 0}


def nsev(q, t, xi1=None, xi2=None, m=None, kappa=1, k=None, bound_states=None, options=None,
         skip_contspec=False, skip_bound_states=False, skip_normconsts=False, print_sys_message=False):
    """
    Nonlinear Fourier transform of the signal q.

    Args:
        q: complex signal samples, the number of samples D has to be a power of two
        t: time grid or [T0, T1], only the first and the last values are used
        xi1: first point of the continuous spectrum grid
        xi2: last point of the continuous spectrum grid
        m: number of points of the continuous spectrum grid
        kappa: +1 for the focusing and -1 for the defocusing case
        k: maximal number of bound states, default is nsev_max_k(D, options)
        bound_states: initial guesses for the 'newton' localization
        options: dictionary of options, see get_default_nsev_options
        skip_contspec: do not compute the continuous spectrum
        skip_bound_states: do not compute the discrete spectrum
        skip_normconsts: do not compute norming constants and residues
        print_sys_message: print calculation times

    Returns:
        Dictionary with the following keys

        - 'return_value' -- 0 on success, error code otherwise
        - 'error_message' -- description of the error
        - 'xi' -- continuous spectrum grid
        - 'cont_ref' -- reflection coefficient b(xi) / a(xi)
        - 'cont_a' -- a(xi)
        - 'cont_b' -- b(xi)
        - 'bound_states' -- bound states sorted by decreasing imaginary part
        - 'disc_norm' -- norming constants
        - 'disc_res' -- residues
        - 'K' -- number of bound states
        - 'W' -- scaling exponent of the scattering polynomial

    Examples:
        >>> t = np.linspace(-16., 16., 1024)
        >>> res = nsev(2.2 / np.cosh(t), t, -4., 4., 256)
        >>> res['bound_states']  # approximately [1.7j, 0.7j]

    """
    result = _empty_result()
    try:
        result.update(_nsev(q, t, xi1, xi2, m, kappa, k, bound_states, options,
                            skip_contspec, skip_bound_states, skip_normconsts, print_sys_message))
    except MemoryError:
        e = AllocationFailure('out of memory')
        errwarn.error('nsev', str(e))
        result = _empty_result()
        result['return_value'] = e.code
        result['error_message'] = str(e)
    except NftError as e:
        errwarn.error('nsev', str(e))
        result = _empty_result()
        result['return_value'] = e.code
        result['error_message'] = str(e)

    return result


def nsev_poly(q, t, kappa=1, options=None):
    """
    Polynomial approximation of the scattering data.

    With z = exp(1j * z_factor * eps_t * xi) the scattering coefficients are

    :math:`a(\\xi) = ampl\\_scale \\cdot coef\\_a(z)`, and
    :math:`b(\\xi) = ampl\\_scale \\cdot coef\\_b(z) e^{-i \\xi phase\\_b}`

    Args:
        q: complex signal samples, power of two length
        t: time grid or [T0, T1]
        kappa: +1 for the focusing and -1 for the defocusing case
        options: dictionary of options, only 'discretization' and 'normalization_flag' are used

    Returns:
        Dictionary with keys 'return_value', 'error_message', 'coef_a', 'coef_b', 'ampl_scale',
        'W', 'deg', 'deg1step', 'z_factor', 'eps_t', 'phase_b'

    """
    result = {'return_value': SUCCESS, 'error_message': ''}
    try:
        q, t_range = _check_signal(q, t, kappa)
        options = resolve_nsev_options(options)
        problem = ScatteringProblem(q, -kappa * np.conj(q), t_range, kappa,
                                    options['discretization'], options['normalization_flag'])
        fscatter_result = problem.get_fscatter()
    except MemoryError:
        errwarn.error('nsev_poly', 'out of memory')
        result['return_value'] = AllocationFailure.code
        result['error_message'] = 'out of memory'
        return result
    except NftError as e:
        errwarn.error('nsev_poly', str(e))
        result['return_value'] = e.code
        result['error_message'] = str(e)
        return result

    eps_t = problem.eps_t
    result['coef_a'] = fscatter_result['poly'][0, 0]
    result['coef_b'] = fscatter_result['poly'][1, 0]
    result['W'] = fscatter_result['W']
    result['ampl_scale'] = np.ldexp(1.0, fscatter_result['W'])
    result['deg'] = fscatter_result['deg']
    result['deg1step'] = fscatter_result['deg1step']
    result['z_factor'] = fscatter_result['z_factor']
    result['eps_t'] = eps_t
    result['phase_b'] = t_range[0] + t_range[1] + len(q) * eps_t + 2.0 * fscatter_result['boundary_shift']

    return result
