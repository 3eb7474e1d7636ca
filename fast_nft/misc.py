import numpy as np
from datetime import datetime

from .errwarn import InvalidInput


def next_power_of_2(x):
    return 1 if x == 0 else 2 ** (x - 1).bit_length()


def is_power_of_2(x):
    return x > 0 and (x & (x - 1)) == 0


def print_calc_time(start_time, type_of_calc=''):
    end_time = datetime.now()
    total_time = end_time - start_time
    print('Time to calculate ' + type_of_calc, total_time.total_seconds() * 1000, 'ms')


def rel_err(vec_numer, vec_exact):
    """
    Relative l1 error between two vectors.

    :math:`err = \\sum |numer_i - exact_i| / \\sum |exact_i|`

    Args:
        vec_numer: numerically computed values
        vec_exact: exact values

    Returns:
        real valued relative error

    """
    vec_numer = np.asarray(vec_numer)
    vec_exact = np.asarray(vec_exact)
    if vec_numer.shape != vec_exact.shape:
        raise InvalidInput('vectors have different shapes')

    return np.sum(np.absolute(vec_numer - vec_exact)) / np.sum(np.absolute(vec_exact))


def hausdorff_dist(vec_a, vec_b):
    """
    Hausdorff distance between two sets of complex numbers.

    Args:
        vec_a: first set
        vec_b: second set

    Returns:
        real valued distance, inf if exactly one of the sets is empty

    """
    vec_a = np.asarray(vec_a, dtype=np.complex128).ravel()
    vec_b = np.asarray(vec_b, dtype=np.complex128).ravel()
    if len(vec_a) == 0 and len(vec_b) == 0:
        return 0.0
    if len(vec_a) == 0 or len(vec_b) == 0:
        return np.inf

    dist = np.absolute(vec_a[:, None] - vec_b[None, :])
    return max(np.max(np.min(dist, axis=1)), np.max(np.min(dist, axis=0)))


def sech(z):
    return 1.0 / np.cosh(z)


def csinc(z):
    """
    Sinc function sin(z) / z for complex arguments.

    Args:
        z: scalar or array

    Returns:
        sin(z) / z, equals 1 at z = 0

    """
    z = np.asarray(z, dtype=np.complex128)
    small = np.absolute(z) < 1e-4
    z_safe = np.where(small, 1.0, z)
    z2 = z * z
    value = np.where(small, 1.0 - z2 / 6.0 + z2 * z2 / 120.0, np.sin(z_safe) / z_safe)
    if value.ndim == 0:
        return value[()]
    return value


def l2norm2(z, a, b):
    """
    Squared l2 norm of samples z taken on [a, b].

    :math:`val = \\frac{b-a}{2N}(|z_0|^2 + |z_{N-1}|^2) + \\sum_{i=1}^{N-2} \\frac{b-a}{N} |z_i|^2`

    Args:
        z: samples
        a: position of the first sample
        b: position of the last sample

    Returns:
        squared norm, NaN if len(z) < 2 or a >= b

    """
    z = np.asarray(z)
    n = len(z)
    if n < 2 or a >= b:
        return np.nan

    scl = (b - a) / n
    abs2 = np.power(np.absolute(z), 2)
    return scl * (np.sum(abs2[1:-1]) + 0.5 * (abs2[0] + abs2[-1]))


def _check_box(bounding_box):
    if len(bounding_box) != 4:
        raise InvalidInput('bounding box has to contain 4 values')
    if bounding_box[0] > bounding_box[1] or bounding_box[2] > bounding_box[3]:
        raise InvalidInput('bounding box is empty')


def _in_box(vals, bounding_box):
    return (vals.real >= bounding_box[0]) & (vals.real <= bounding_box[1]) & \
           (vals.imag >= bounding_box[2]) & (vals.imag <= bounding_box[3])


def filter_box(vals, bounding_box, rearrange_as_well=None):
    """
    Keep values inside the bounding box.

    Only values with bounding_box[0] <= real(val) <= bounding_box[1] and
    bounding_box[2] <= imag(val) <= bounding_box[3] survive. Order is preserved.

    Args:
        vals: complex values to be filtered
        bounding_box: [re_min, re_max, im_min, im_max]
        rearrange_as_well: optional array filtered together with vals

    Returns:
        filtered values, or (filtered values, filtered rearrange_as_well)

    """
    _check_box(bounding_box)
    vals = np.asarray(vals, dtype=np.complex128)
    mask = _in_box(vals, bounding_box)
    if rearrange_as_well is None:
        return vals[mask]
    return vals[mask], np.asarray(rearrange_as_well)[mask]


def filter_box_inv(vals, bounding_box, rearrange_as_well=None):
    """Keep values outside the bounding box. See filter_box."""
    _check_box(bounding_box)
    vals = np.asarray(vals, dtype=np.complex128)
    mask = ~_in_box(vals, bounding_box)
    if rearrange_as_well is None:
        return vals[mask]
    return vals[mask], np.asarray(rearrange_as_well)[mask]


def filter_nonreal(vals, tol_im):
    if tol_im < 0:
        raise InvalidInput('tol_im has to be non-negative')
    vals = np.asarray(vals, dtype=np.complex128)
    return vals[np.absolute(vals.imag) <= tol_im]


def merge(vals, tol):
    """
    Merge values closer than tol.

    A value is kept only if its distance to every value kept before it is at
    least tol. The result is pairwise separated by tol and merging it again
    changes nothing.

    Args:
        vals: complex values
        tol: merge tolerance

    Returns:
        merged values

    """
    if tol < 0:
        raise InvalidInput('tol has to be non-negative')
    vals = np.asarray(vals, dtype=np.complex128)
    kept = []
    for val in vals:
        if len(kept) == 0 or np.min(np.absolute(np.array(kept) - val)) >= tol:
            kept.append(val)

    return np.array(kept, dtype=np.complex128)


def downsample(q):
    """
    Subsampled version of the signal q.

    Dsub is the power of two closest from above to sqrt(D * log2(D)^2), but
    not larger than D, so that a quadratic root finder on the subsampled
    signal costs O(D log^2 D).

    Args:
        q: signal with power of two length D >= 2

    Returns:
        qsub, subsampling_factor

    """
    q = np.asarray(q)
    n_q = len(q)
    if n_q < 2 or not is_power_of_2(n_q):
        raise InvalidInput('signal length has to be a power of two >= 2')

    n_sub = np.sqrt(n_q * np.log2(n_q) ** 2)
    n_sub = int(2 ** np.ceil(np.log2(n_sub)))
    n_sub = min(max(n_sub, 2), n_q)
    factor = n_q // n_sub

    return q[::factor].copy(), factor


def ldexp_complex(x, w):
    """Return x * 2**w computed without intermediate overflow."""
    x = np.asarray(x, dtype=np.complex128)
    value = np.ldexp(x.real, w) + 1.0j * np.ldexp(x.imag, w)
    if value.ndim == 0:
        return value[()]
    return value
