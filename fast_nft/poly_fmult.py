import numpy as np
from scipy.fft import fft, ifft

from .errwarn import InvalidInput, NumericFailure
from .misc import is_power_of_2, next_power_of_2


def fft_pow2(x):
    """FFT along the last axis. Only power of two lengths are accepted."""
    n = np.shape(x)[-1]
    if not is_power_of_2(n):
        raise NumericFailure('FFT length ' + str(n) + ' is not a power of two')
    return fft(x, axis=-1)


def ifft_pow2(x):
    n = np.shape(x)[-1]
    if not is_power_of_2(n):
        raise NumericFailure('FFT length ' + str(n) + ' is not a power of two')
    return ifft(x, axis=-1)


def normalize_poly(p):
    """
    Scale every matrix polynomial of the batch by a power of two.

    After scaling, the largest coefficient magnitude of each polynomial lies in
    [0.5, 1). Scaling by powers of two is exact.

    Args:
        p: array of shape (n, 2, 2, deg + 1)

    Returns:
        p_scaled, w

        - p_scaled -- scaled polynomials
        - w -- sum of the exponents, p = p_scaled * 2 ** w for the product of the batch

    """
    max_abs = np.max(np.absolute(p), axis=(1, 2, 3))
    _, exponents = np.frexp(max_abs)
    scale = np.ldexp(1.0, -exponents)

    return p * scale[:, None, None, None], int(np.sum(exponents))


def _pad(p, n):
    padded = np.zeros(p.shape[:-1] + (n,), dtype=np.complex128)
    padded[..., :p.shape[-1]] = p
    return padded


def poly_fmult2x2(p, normalize=True):
    """
    Product of a batch of 2x2 matrix polynomials.

    Computes p[n-1] @ p[n-2] @ ... @ p[0] by multiplying neighbours level by
    level (binary tree) with FFT convolution, which needs O(n log n) operations
    instead of O(n^2) for the sequential product.

    Args:
        p: array of shape (n, 2, 2, deg + 1), n has to be a power of two.
            Coefficients of each entry are ordered by descending powers.
        normalize: if True, intermediate products are scaled by powers of two

    Returns:
        result, w

        - result -- array of shape (2, 2, n * deg + 1)
        - w -- scaling exponent, the product equals result * 2 ** w

    """
    p = np.asarray(p, dtype=np.complex128)
    if p.ndim != 4 or p.shape[1:3] != (2, 2):
        raise InvalidInput('expected an array of shape (n, 2, 2, deg + 1)')
    if not is_power_of_2(p.shape[0]):
        raise InvalidInput('number of matrix polynomials has to be a power of two')

    w = 0
    if normalize:
        p, w = normalize_poly(p)

    while p.shape[0] > 1:
        len_prod = 2 * p.shape[-1] - 1
        n_fft = next_power_of_2(len_prod)

        # later samples act from the left
        left = fft_pow2(_pad(p[1::2], n_fft))
        right = fft_pow2(_pad(p[0::2], n_fft))
        p = ifft_pow2(np.einsum('nikl,nkjl->nijl', left, right))[..., :len_prod]

        if normalize:
            p, w_level = normalize_poly(p)
            w += w_level

    return p[0], w
