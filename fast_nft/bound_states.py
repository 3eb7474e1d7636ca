"""
Discrete spectrum of the Zakharov-Shabat problem.

Bound states are zeros of a(xi) in the upper half plane. They are localized
by one of the producers in PRODUCERS, cleaned up by one of the filters in
FILTERS, sorted by decreasing imaginary part and truncated to the capacity
given by the caller. Norming constants and residues are computed afterwards.
"""
import numpy as np
from dataclasses import dataclass
from scipy.linalg import companion, eigvals, LinAlgError

from . import errwarn
from .errwarn import InvalidInput, NumericFailure
from .contspec import poly_eval_ab, poly_eval_ad
from .fscatter import fscatter
from .misc import downsample, filter_box, l2norm2, merge
from .scatter import bo_bidirectional_array, newton_refine

EPS = np.finfo(np.float64).eps
MERGE_TOL = np.sqrt(EPS)


@dataclass
class ScatteringProblem:
    """Signal together with everything needed to localize its bound states."""
    q: np.ndarray
    r: np.ndarray
    t_range: tuple
    kappa: int
    discretization: str
    normalize: bool = True
    fscatter_result: dict = None

    @property
    def eps_t(self):
        return (self.t_range[1] - self.t_range[0]) / (len(self.q) - 1)

    def get_fscatter(self):
        if self.fscatter_result is None:
            self.fscatter_result = fscatter(self.q, self.r, self.eps_t, self.discretization, self.normalize)
        return self.fscatter_result


def poly_roots(coef):
    """
    Nonzero roots of a polynomial with descending coefficients.

    Negligible leading coefficients are dropped, trailing ones correspond
    to roots at zero and are dropped as well.
    """
    coef = np.asarray(coef, dtype=np.complex128)
    scl = np.max(np.absolute(coef)) if len(coef) > 0 else 0.0
    if scl == 0:
        return np.zeros(0, dtype=np.complex128)

    significant = np.flatnonzero(np.absolute(coef) > EPS * scl)
    coef = coef[significant[0]: significant[-1] + 1]
    if len(coef) < 2:
        return np.zeros(0, dtype=np.complex128)

    try:
        roots = eigvals(companion(coef), overwrite_a=True)
    except (LinAlgError, ValueError) as e:
        raise NumericFailure('eigenvalue computation failed: ' + str(e))

    return roots[roots != 0]


def z_to_xi(z, z_factor, eps_t):
    return -1.0j * np.log(z) / (z_factor * eps_t)


def localize_fast_eigenvalue(problem, options, guesses=None):
    """Bound state candidates as roots of the polynomial approximation of a(xi)."""
    fscatter_result = problem.get_fscatter()
    z = poly_roots(fscatter_result['poly'][0, 0])
    return z_to_xi(z, fscatter_result['z_factor'], problem.eps_t)


def localize_newton(problem, options, guesses=None):
    """Initial guesses refined by Newton's method, diverged ones are dropped."""
    if guesses is None:
        raise InvalidInput('Newton localization needs initial guesses')
    points, diverged = newton_refine(problem.q, problem.r, problem.t_range, guesses, options['niter'])
    if len(points) > 0 and np.all(diverged):
        errwarn.warn('localize_newton',
                     'Newton iteration did not converge for any of the ' + str(len(points)) + ' initial guesses',
                     errwarn.CONVERGENCE_WARNING)

    return points[~diverged]


def localize_subsample_and_refine(problem, options, guesses=None):
    """
    Fast eigenvalue method on a subsampled signal, refined with Newton on the full signal.

    The subsampled signal keeps every factor-th sample, so its time step is
    eps_t * factor and it ends at T0 + (Dsub - 1) * eps_t * factor.
    """
    q_sub, factor = downsample(problem.q)
    r_sub = np.asarray(problem.r)[::factor]
    t0 = problem.t_range[0]
    t_sub = (t0, t0 + (len(q_sub) - 1) * problem.eps_t * factor)
    sub_problem = ScatteringProblem(q_sub, r_sub, t_sub, problem.kappa, problem.discretization, problem.normalize)

    candidates = localize_fast_eigenvalue(sub_problem, options)
    # Newton runs on every surviving candidate, keep at least the basic filter
    if options['bound_state_filtering'] == 'full':
        candidates = filter_full(candidates, sub_problem)
    else:
        candidates = filter_basic(candidates, sub_problem)

    return localize_newton(problem, options, candidates)


def filter_none(points, problem):
    points = np.asarray(points, dtype=np.complex128)
    return points[np.isfinite(points)]


def filter_basic(points, problem):
    points = filter_none(points, problem)
    return merge(points[points.imag >= 0], MERGE_TOL)


def get_bounding_box(problem):
    """
    Region where bound states of the focusing problem can lie.

    Real parts beyond pi / (2 eps_t) are not resolved by the sampling. The
    trace formula bounds the imaginary part of every bound state by a quarter
    of the signal energy.
    """
    re_max = np.pi / (2.0 * problem.eps_t)
    im_max = 1.1 * l2norm2(problem.q, problem.t_range[0], problem.t_range[1]) / 4.0
    return [-re_max, re_max, MERGE_TOL, max(im_max, MERGE_TOL)]


def filter_full(points, problem):
    if problem.kappa == -1:
        return np.zeros(0, dtype=np.complex128)
    points = filter_none(points, problem)
    return merge(filter_box(points, get_bounding_box(problem)), MERGE_TOL)


PRODUCERS = {
    'fast_eigenvalue': localize_fast_eigenvalue,
    'newton': localize_newton,
    'subsample_and_refine': localize_subsample_and_refine,
}

FILTERS = {
    'none': filter_none,
    'basic': filter_basic,
    'full': filter_full,
}


def sort_by_imag(points):
    """Sort by decreasing imaginary part."""
    return -1j * np.sort_complex(1j * np.asarray(points, dtype=np.complex128))


def find_bound_states(problem, options, guesses=None, capacity=None):
    """
    Localize, filter, sort and truncate bound states.

    Args:
        problem: ScatteringProblem
        options: dictionary of nsev options
        guesses: initial guesses, used by the 'newton' localization
        capacity: maximal number of returned bound states, None for no limit

    Returns:
        bound states sorted by decreasing imaginary part

    """
    localization = options['bound_state_localization']
    filtering = options['bound_state_filtering']
    if localization not in PRODUCERS:
        raise InvalidInput('unknown bound state localization ' + str(localization))
    if filtering not in FILTERS:
        raise InvalidInput('unknown bound state filtering ' + str(filtering))

    # defocusing signals have no bound states
    if problem.kappa == -1 and filtering == 'full':
        return np.zeros(0, dtype=np.complex128)

    points = PRODUCERS[localization](problem, options, guesses)
    points = sort_by_imag(FILTERS[filtering](points, problem))

    if capacity is not None and len(points) > capacity:
        errwarn.warn('find_bound_states',
                     'found ' + str(len(points)) + ' bound states, only ' + str(capacity) + ' are returned',
                     errwarn.CAPACITY_EXCEEDED)
        points = points[:capacity]

    return points


def get_norming_constants(problem, points, normconst_type='bi-direct'):
    """
    Norming constants b_k of the bound states.

    Args:
        problem: ScatteringProblem
        points: bound states
        normconst_type: 'bi-direct' (stable) or 'poly' (evaluation of the scattering polynomial,
            loses accuracy when Im(xi) * (T1 - T0) is large)

    Returns:
        array of norming constants

    """
    points = np.asarray(points, dtype=np.complex128)
    if len(points) == 0:
        return np.zeros(0, dtype=np.complex128)

    if normconst_type == 'bi-direct':
        return bo_bidirectional_array(problem.q, problem.r, problem.t_range, points)
    elif normconst_type == 'poly':
        _, b = poly_eval_ab(problem.get_fscatter(), problem.t_range, points)
        return np.atleast_1d(b)
    else:
        raise InvalidInput('unknown norming constant type ' + str(normconst_type))


def get_a_derivative(problem, points):
    points = np.asarray(points, dtype=np.complex128)
    if len(points) == 0:
        return np.zeros(0, dtype=np.complex128)
    return np.atleast_1d(poly_eval_ad(problem.get_fscatter(), problem.t_range, points))


def compute_discspec(problem, points, discspec_type='norming_constants', normconst_type='bi-direct'):
    """
    Norming constants and / or residues b_k / a'(xi_k).

    Returns:
        Dictionary with 'disc_norm' and / or 'disc_res'

    """
    if discspec_type not in ('norming_constants', 'residues', 'both'):
        raise InvalidInput('unknown discrete spectrum type ' + str(discspec_type))

    norm = get_norming_constants(problem, points, normconst_type)
    res = {}
    if discspec_type in ('norming_constants', 'both'):
        res['disc_norm'] = norm
    if discspec_type in ('residues', 'both'):
        res['disc_res'] = norm / get_a_derivative(problem, points)

    return res
