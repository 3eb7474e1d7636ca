import numpy as np
from contextlib import nullcontext

from .errwarn import AllocationFailure, DegenerateInput, InvalidInput, NftError, NumericFailure, printf_redirected
from .misc import is_power_of_2
from .nsev import get_default_nsev_options, nsev, nsev_max_k

_ERRORS = {InvalidInput.code: InvalidInput,
           AllocationFailure.code: AllocationFailure,
           NumericFailure.code: NumericFailure}

# flags without a value, mapped to (option key, option value)
_OPTION_FLAGS = {
    'bsloc_fasteigen': ('bound_state_localization', 'fast_eigenvalue'),
    'bsloc_subsamp_refine': ('bound_state_localization', 'subsample_and_refine'),
    'bsfilt_none': ('bound_state_filtering', 'none'),
    'bsfilt_basic': ('bound_state_filtering', 'basic'),
    'bsfilt_full': ('bound_state_filtering', 'full'),
    'discr_modal': ('discretization', '2split2_modal'),
    'discr_2split2A': ('discretization', '2split2a'),
    'discr_2split4A': ('discretization', '2split4a'),
    'discr_2split4B': ('discretization', '2split4b'),
    'discr_FTES4_4B': ('discretization', 'ftes4_4b'),
    'dstype_residues': ('discspec_type', 'residues'),
    'dstype_both': ('discspec_type', 'both'),
    'cstype_ab': ('contspec_type', 'ab'),
    'cstype_both': ('contspec_type', 'both'),
}


def _parse_args(args):
    options = get_default_nsev_options()
    flags = {'skip_contspec': False, 'skip_bound_states': False, 'skip_normconsts': False, 'quiet': False}
    guesses = None

    k = 0
    while k < len(args):
        arg = args[k]
        if not isinstance(arg, str):
            raise InvalidInput(str(k + 5) + 'th input should be a string')

        if arg in _OPTION_FLAGS:
            key, value = _OPTION_FLAGS[arg]
            options[key] = value
        elif arg == 'bsloc_newton':
            options['bound_state_localization'] = 'newton'
            if k + 1 == len(args) or isinstance(args[k + 1], str):
                raise InvalidInput("'bsloc_newton' should be followed by a vector of initial guesses")
            guesses = np.atleast_1d(np.asarray(args[k + 1], dtype=np.complex128))
            if guesses.ndim != 1 or len(guesses) < 1:
                raise InvalidInput("'bsloc_newton' should be followed by a vector of initial guesses")
            k += 1
        elif arg == 'bsloc_niter':
            if k + 1 == len(args) or not np.isscalar(args[k + 1]) or isinstance(args[k + 1], str) \
                    or args[k + 1] < 0:
                raise InvalidInput("'bsloc_niter' should be followed by a non-negative real scalar")
            options['niter'] = int(args[k + 1])
            k += 1
        elif arg == 'skip_cs':
            flags['skip_contspec'] = True
        elif arg == 'skip_bs':
            # norming constants need bound states
            flags['skip_bound_states'] = True
            flags['skip_normconsts'] = True
        elif arg == 'skip_nc':
            flags['skip_normconsts'] = True
        elif arg == 'quiet':
            flags['quiet'] = True
        else:
            raise InvalidInput(str(k + 5) + 'th input has invalid value ' + arg)
        k += 1

    return options, flags, guesses


def _check_range(value, name):
    value = np.asarray(value)
    if value.shape != (2,) or not np.isrealobj(value):
        raise InvalidInput(name + ' should be a real vector with two entries')
    if not value[0] < value[1]:
        raise DegenerateInput(name + '[0] >= ' + name + '[1]')
    return float(value[0]), float(value[1])


def fnft_nsev(q, T, XI, kappa, *args):
    """
    Nonlinear Fourier transform with string flags.

    The continuous spectrum is computed on D points from XI[0] to XI[1].

    Args:
        q: complex signal, power of two length D
        T: [T0, T1], positions of the first and the last sample
        XI: [XI0, XI1], range of the continuous spectrum
        kappa: +1 for the focusing and -1 for the defocusing case
        *args: flags, for example 'discr_2split4A', 'bsloc_newton', guesses, 'bsloc_niter', 20, 'quiet'

    Returns:
        contspec, bound_states, normconsts_or_residues

        - contspec -- reflection coefficient, [a, b] for 'cstype_ab', [ref, a, b] for 'cstype_both'
        - bound_states -- bound states
        - normconsts_or_residues -- norming constants or residues, both concatenated for 'dstype_both'

        Skipped parts are empty arrays.

    Examples:
        >>> contspec, bound_states, normconsts = fnft_nsev(q, [-16., 16.], [-4., 4.], 1, 'discr_FTES4_4B', 'quiet')

    """
    q = np.asarray(q)
    if q.ndim != 1 or not np.issubdtype(q.dtype, np.number):
        raise InvalidInput('first input q should be a complex vector')
    n_q = len(q)
    if n_q < 1 or not is_power_of_2(n_q):
        raise InvalidInput('length of the first input q should be a positive power of two')
    t_range = _check_range(T, 'T')
    xi_range = _check_range(XI, 'XI')
    if isinstance(kappa, bool) or not np.isscalar(kappa) or kappa not in (1, -1):
        raise InvalidInput('fourth input kappa should be +1 or -1')

    options, flags, guesses = _parse_args(args)

    k = None
    if not flags['skip_bound_states']:
        k = len(guesses) if guesses is not None else nsev_max_k(n_q, options)
        if k == 0:
            raise InvalidInput('nsev_max_k returned zero')

    with printf_redirected(None) if flags['quiet'] else nullcontext():
        res = nsev(q, t_range, xi_range[0], xi_range[1], n_q, kappa=int(kappa), k=k, bound_states=guesses,
                   options=options, skip_contspec=flags['skip_contspec'],
                   skip_bound_states=flags['skip_bound_states'], skip_normconsts=flags['skip_normconsts'])

    if res['return_value'] != 0:
        error_class = _ERRORS.get(res['return_value'], NftError)
        raise error_class('fnft_nsev failed (error code ' + str(res['return_value']) + '): ' + res['error_message'])

    empty = np.zeros(0, dtype=np.complex128)

    contspec = empty
    if not flags['skip_contspec']:
        parts = {'reflection_coefficient': ['cont_ref'],
                 'ab': ['cont_a', 'cont_b'],
                 'both': ['cont_ref', 'cont_a', 'cont_b']}[options['contspec_type']]
        contspec = np.concatenate([res[key] for key in parts])

    bound_states = empty if flags['skip_bound_states'] else res['bound_states']

    normconsts = empty
    if not flags['skip_normconsts']:
        parts = {'norming_constants': ['disc_norm'],
                 'residues': ['disc_res'],
                 'both': ['disc_norm', 'disc_res']}[options['discspec_type']]
        normconsts = np.concatenate([res[key] for key in parts])

    return contspec, bound_states, normconsts
