import numpy as np
import matplotlib.pyplot as plt
from tqdm import tqdm

from fast_nft import errwarn
from fast_nft.discretization import get_discretization
from fast_nft.nsev import nsev, nsev_poly
from fast_nft.misc import rel_err
from fast_nft.scatter import bo_bidirectional_array, bo_scatter_array
from . import signals


def get_default_xi_grid(t, xi_upsampling=1):
    n_xi = xi_upsampling * len(t)
    dt = t[1] - t[0]
    xi_span = np.pi / dt
    d_xi = xi_span / n_xi
    return np.array([i * d_xi - xi_span / 2. for i in range(n_xi)])


def get_scattering_array(q, t, xi, kappa=1):
    """
    Slow O(D) per point calculation of a(xi) and b(xi) with Boffetta-Osborne transfer matrices.

    Args:
        q: signal points on the time grid
        t: time grid
        xi: array of spectral points
        kappa: +1 for the focusing and -1 for the defocusing case

    Returns:
        a, b

    """
    a, _, b = bo_scatter_array(q, -kappa * np.conj(q), [t[0], t[-1]], xi)
    return a, b


def get_continuous_spectrum(q, t, xi=None, type='fnft', xi_upsampling=1, discretization='2split4b', kappa=1,
                            res_poly=None):
    """
    Continuous spectrum of the signal.

    Args:
        q: signal on time grid q(t_n)
        t: time grid
        xi: default = None, array of spectral points xi
        type: calculation type

            - 'fnft' -- fast transform on a uniform real grid xi[0] ... xi[-1]
            - 'fnftpoly' -- evaluation of the scattering polynomial, xi can be arbitrary (complex) points
            - 'slow' -- Boffetta-Osborne transfer matrices, O(D) per point

        xi_upsampling: upsampling factor for number of points in spectral space, used if xi is None
        discretization: discretization of the fast transform
        kappa: +1 for the focusing and -1 for the defocusing case
        res_poly: default = None. If nsev_poly has been calculated before, we can use it

    Returns:
        Dictionary with 'xi', 'a', 'b', 'r'

    """
    if xi is None:
        xi = get_default_xi_grid(t, xi_upsampling)
    xi = np.asarray(xi)
    n_xi = len(xi)

    # define zero arrays
    a = np.zeros(n_xi, dtype=np.complex128)
    b = np.zeros(n_xi, dtype=np.complex128)

    if type == 'fnft':
        # this calculates only continuous spectrum on real xi axis
        # to calculate continuous spectrum on an arbitrary contour use 'fnftpoly'
        res = nsev(q, t, xi[0], xi[-1], n_xi, kappa=kappa, skip_bound_states=True,
                   options={'contspec_type': 'ab', 'discretization': discretization})

        if res['return_value'] != 0:
            errwarn.error('get_continuous_spectrum', 'fast transform failed')
        else:
            a = res['cont_a']
            b = res['cont_b']

    elif type == 'fnftpoly':

        if res_poly is None:
            res_poly = nsev_poly(q, t, kappa=kappa, options={'discretization': discretization})
        if res_poly['return_value'] != 0:
            errwarn.error('get_continuous_spectrum', 'fast transform failed')
        else:
            # spectral parameter z = e ^ (1j * z_factor * xi * dt)
            z = np.exp(1.0j * res_poly['z_factor'] * xi * res_poly['eps_t'])
            a = res_poly['ampl_scale'] * np.polyval(res_poly['coef_a'], z)
            b = res_poly['ampl_scale'] * np.polyval(res_poly['coef_b'], z) * np.exp(-1.0j * xi * res_poly['phase_b'])

    elif type == 'slow':
        a, b = get_scattering_array(q, t, xi, kappa)

    else:
        errwarn.error('get_continuous_spectrum', 'wrong type ' + str(type))

    with np.errstate(divide='ignore', invalid='ignore'):
        r = b / a

    return {'xi': xi, 'a': a, 'b': b, 'r': r}


def get_discrete_spectrum_coefficients(q, t, discrete_points, type='bi-direct', discretization='2split4b', kappa=1,
                                       res_poly=None):
    """
    Calculates spectral coefficients (:math:`r(\\xi_n)` and :math:`b(\\xi_n)`) for given discrete spectrum points.

    Args:
        q: signal
        t: time grid
        discrete_points: discrete spectrum points for given signal
        type: type of calculation

            - 'bi-direct' -- bi-directional algorithm with Boffetta-Osborne transfer matrices
            - 'fnftpoly' -- use the scattering polynomial (unstable for b-coefficient)

        discretization: discretization for type='fnftpoly'
        kappa: +1 for the focusing and -1 for the defocusing case
        res_poly: default = None. Use precomputed results for type='fnftpoly'.

    Returns:
        Dictionary with bd, rd, ad

        {'bd': bd,
        'rd': rd,
        'ad': ad}

    """
    discrete_points = np.atleast_1d(np.asarray(discrete_points, dtype=np.complex128))
    bd = np.zeros(0, dtype=np.complex128)
    rd = np.zeros(0, dtype=np.complex128)
    ad = np.zeros(0, dtype=np.complex128)

    if type == 'bi-direct':
        r = -kappa * np.conj(q)
        t_range = [t[0], t[-1]]
        bd = bo_bidirectional_array(q, r, t_range, discrete_points)
        _, ad, _ = bo_scatter_array(q, r, t_range, discrete_points)
        rd = bd / ad

    elif type == 'fnftpoly':

        if res_poly is None:
            res_poly = nsev_poly(q, t, kappa=kappa, options={'discretization': discretization})
        if res_poly['return_value'] != 0:
            errwarn.error('get_discrete_spectrum_coefficients', 'fast transform failed')
        else:
            dz = 1.0j * res_poly['z_factor'] * res_poly['eps_t']
            z = np.exp(dz * discrete_points)
            ad = res_poly['ampl_scale'] * np.polyval(np.polyder(res_poly['coef_a']), z) * z * dz
            bd = res_poly['ampl_scale'] * np.polyval(res_poly['coef_b'], z) * \
                 np.exp(-1.0j * discrete_points * res_poly['phase_b'])
            rd = bd / ad

    else:
        errwarn.error('get_discrete_spectrum_coefficients', 'wrong type ' + str(type))

    return {'bd': bd,
            'rd': rd,
            'ad': ad}


def get_discrete_spectrum(q, t, localization='subsample_and_refine', discretization='2split4b', niter=10,
                          max_discrete_points=None, type_coef='bi-direct'):
    """
    Calculate discrete spectrum for given signal q(t) and spectral coefficients for it

    Args:
        q: signal points on time grid t
        t: time grid points
        localization: 'fast_eigenvalue' or 'subsample_and_refine'
        discretization: discretization of the fast transform
        niter: number of Newton iterations
        max_discrete_points: number of maximum discrete points to calculate, default is all
        type_coef: type of coefficient calculation, see get_discrete_spectrum_coefficients

    Returns:
        Discrete spectrum points and scattering coefficients

        {'spectrum': spectrum,
        'bd': bd,
        'rd': rd,
        'ad': ad,
        'return_value': return_value}

    """
    res = nsev(q, t, k=max_discrete_points, skip_contspec=True, skip_normconsts=True,
               options={'bound_state_localization': localization, 'discretization': discretization,
                        'niter': niter})
    spectrum = res['bound_states'] if res['return_value'] == 0 else np.zeros(0, dtype=np.complex128)

    result = get_discrete_spectrum_coefficients(q, t, spectrum, type=type_coef, discretization=discretization)
    result['spectrum'] = spectrum
    result['return_value'] = res['return_value']

    return result


def test_nft_convergence(ampl, chirp, t_span, n_t, n_grid, type='fnft', discretization='2split4b', xi=None,
                         plot_flag=False, show_progress=False):
    """
    Convergence study of the continuous spectrum for the sech signal.
    The signal a * sech(t) ^ (1 + 1j * c) is sampled with n_t * 2 ** k points, k = 0 ... n_grid - 1,
    and the spectrum is compared with the analytic one.

    Args:
        ampl: amplitude for sech shape
        chirp: chirp parameter
        t_span: length of full region in t domain, t in [-t_span/2; t_span/2]
        n_t: number of discretisation points in t domain, power of two
        n_grid: number of different n_t
        type: 'fnft', 'fnftpoly' or 'slow', see get_continuous_spectrum
        discretization: discretization of the fast transform
        xi: spectral grid, default is 128 points in [-pi / (2 dt); pi / (2 dt)] for the coarsest grid
        plot_flag: plot the errors against D together with the expected slope
        show_progress: show tqdm progress bar

    Returns:
        Dictionary with the following keys

        - 'xi' -- spectral grid
        - 'n_t' -- numbers of samples
        - 'err_a', 'err_b' -- relative errors of a(xi) and b(xi)
        - 'order' -- estimated orders log2(err[k - 1] / err[k]) of a(xi)

    """
    if xi is None:
        dt = t_span / (n_t - 1)
        xi_span = np.pi / dt
        n_xi = 2 ** 7
        d_xi = xi_span / (n_xi - 1)
        xi = np.array([i * d_xi - xi_span / 2. for i in range(n_xi)])
    xi = np.asarray(xi)
    n_xi = len(xi)

    _, a_xi, b_xi, _, _, _, _ = signals.get_sech(np.zeros(1), xi, a=ampl, c=chirp)

    a = np.zeros((n_grid, n_xi), dtype=np.complex128)
    b = np.zeros((n_grid, n_xi), dtype=np.complex128)
    n_t_list = np.array([n_t * 2 ** k for k in range(n_grid)])

    for k in tqdm(range(n_grid), disable=not show_progress):
        n_t_current = n_t_list[k]
        dt_current = t_span / (n_t_current - 1)
        t_current = np.array([i * dt_current - t_span / 2. for i in range(n_t_current)])
        q_current = signals.get_sech_shape(t_current, ampl, chirp)

        res = get_continuous_spectrum(q_current, t_current, xi, type=type, discretization=discretization)
        a[k] = res['a']
        b[k] = res['b']

    err_a = np.array([rel_err(a[k], a_xi) for k in range(n_grid)])
    err_b = np.array([rel_err(b[k], b_xi) for k in range(n_grid)])
    order = np.log2(err_a[:-1] / err_a[1:])

    if plot_flag:
        expected_order = 2 if type == 'slow' else get_discretization(discretization).order

        fig, ax = plt.subplots(1, 1, figsize=(10, 8))
        ax.loglog(n_t_list, err_a, 'o-', color='red', linewidth=2, label=r'$a(\xi)$')
        ax.loglog(n_t_list, err_b, 's-', color='blue', linewidth=2, label=r'$b(\xi)$')
        # reference slope through the first error of a
        ax.loglog(n_t_list, err_a[0] * (n_t_list / n_t_list[0]) ** (-float(expected_order)), '--',
                  color='xkcd:indigo', label='order ' + str(expected_order))
        ax.set_xlabel('D')
        ax.set_ylabel('relative error')
        ax.set_title(discretization + ', orders ' + ', '.join('%.2f' % o for o in order))
        ax.grid(True)
        ax.legend()

    return {'xi': xi,
            'n_t': n_t_list,
            'err_a': err_a,
            'err_b': err_b,
            'order': order}
