import numpy as np
from scipy.special import gamma

##################################################
# Test signals with known nonlinear spectrum     #
##################################################


def get_sech_bound_state_number(a, c, kappa=1):
    """Number of bound states of a * sech(t) ^ (1 + 1j * c)."""
    if kappa != 1:
        return 0
    d2 = a ** 2 - c ** 2 / 4.0
    if d2 <= 0.25:
        return 0
    return int(np.ceil(np.sqrt(d2) - 0.5))


def get_sech(t, xi, a, c, kappa=1):
    """
    Chirped sech signal and its analytic nonlinear spectrum.

    :math:`q(t) = a \\cdot sech(t)^{1 + i c}`

    Args:
        t: time grid
        xi: real spectral grid
        a: amplitude
        c: chirp
        kappa: +1 for the focusing and -1 for the defocusing case

    Returns:
        q, a_xi, b_xi, xi_discr, b_discr, r_discr, ad_discr

        - q -- signal on the time grid
        - a_xi, b_xi -- continuous spectrum coefficients on the grid xi
        - xi_discr -- bound states
        - b_discr -- norming constants
        - r_discr -- residues
        - ad_discr -- derivative of a(xi) in the bound states

    """
    q = a * np.power(1.0 / np.cosh(t), (1.0 + 1.0j * c))
    d = np.sqrt(kappa * a ** 2 - c ** 2 / 4.0 + 0.0j)

    a_xi = gamma(0.5 - 1.0j * (xi + c / 2)) * gamma(0.5 - 1.0j * (xi - c / 2)) / \
           (gamma(0.5 - 1.0j * xi - d) * gamma(0.5 - 1.0j * xi + d))

    b_xi = get_sech_b_coef(xi, a, c, kappa)

    k = np.arange(get_sech_bound_state_number(a, c, kappa))

    xi_discr = 1.0j * (d.real - 0.5 - k)

    f = gamma(0.5 - 1.0j * (xi_discr + c / 2.0)) * gamma(0.5 - 1.0j * (xi_discr - c / 2.0)) / gamma(
        0.5 - 1.0j * xi_discr + d)

    # residue of gamma at -l is (-1)^l / l!, phi holds the inverse
    phi = np.ones(len(k), dtype=complex)
    for l in range(len(k) - 1):
        phi[l + 1] = -(l + 1) * phi[l]

    b_discr = get_sech_b_coef(xi_discr, a, c, kappa)
    ad_discr = f * phi / 1.0j
    r_discr = b_discr / ad_discr

    return q, a_xi, b_xi, xi_discr, b_discr, r_discr, ad_discr


def get_sech_shape(t, a, c):
    return a * np.power(1.0 / np.cosh(t), (1.0 + 1.0j * c))


def get_sech_b_coef(xi, a, c, kappa=1):
    d = np.sqrt(kappa * a ** 2 - c ** 2 / 4.0 + 0.0j)
    b_xi = 1.0 / (2.0 ** (1.0j * c) * a) * gamma(0.5 - 1.0j * (xi + c / 2)) * gamma(0.5 + 1.0j * (xi - c / 2)) / \
           (gamma(-0.5j * c - d) * gamma(-0.5j * c + d))

    return b_xi


def get_rect(t, a, t1, t2):
    """Rectangular pulse of height a on [t1, t2]."""
    q = np.zeros(len(t), dtype=np.complex128)
    q[(t >= t1) & (t <= t2)] = a
    return q


def get_kdv_sech(t, xi, u0):
    """
    Potential u0 * sech(t) ^ 2 of the Schroedinger problem and its analytic scattering data.

    With s = (sqrt(1 + 4 u0) - 1) / 2 the bound states are 1j * (s - k) for k < s and

    :math:`a(\\xi) = \\frac{\\Gamma(-i\\xi)\\Gamma(1 - i\\xi)}{\\Gamma(-s - i\\xi)\\Gamma(1 + s - i\\xi)}`,

    :math:`|b(\\xi) / a(\\xi)| = |\\cos(\\pi / 2 \\sqrt{1 + 4 u_0})| /
    \\sqrt{\\sinh^2(\\pi \\xi) + \\cos^2(\\pi / 2 \\sqrt{1 + 4 u_0})}`.

    Args:
        t: time grid
        xi: real nonzero spectral grid
        u0: amplitude

    Returns:
        q, a_xi, abs_ref, xi_discr

    """
    q = u0 / np.cosh(t) ** 2
    s = (np.sqrt(1.0 + 4.0 * u0) - 1.0) / 2.0

    a_xi = gamma(-1.0j * xi) * gamma(1.0 - 1.0j * xi) / (gamma(-s - 1.0j * xi) * gamma(1.0 + s - 1.0j * xi))

    c = np.cos(np.pi / 2.0 * np.sqrt(1.0 + 4.0 * u0))
    abs_ref = np.absolute(c) / np.sqrt(np.sinh(np.pi * xi) ** 2 + c ** 2)

    xi_discr = 1.0j * (s - np.arange(int(np.ceil(s))))

    return q, a_xi, abs_ref, xi_discr
