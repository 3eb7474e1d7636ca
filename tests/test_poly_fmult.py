import numpy as np
import pytest

from fast_nft.errwarn import InvalidInput, NumericFailure
from fast_nft.poly_fmult import fft_pow2, normalize_poly, poly_fmult2x2


def sequential_product(p):
    result = p[0]
    for n in range(1, len(p)):
        prod = [[None, None], [None, None]]
        for i in range(2):
            for j in range(2):
                prod[i][j] = np.polymul(p[n][i][0], result[0][j]) + np.polymul(p[n][i][1], result[1][j])
        result = np.array(prod)
    return result


@pytest.fixture
def random_polys():
    rng = np.random.default_rng(7)
    return rng.standard_normal((8, 2, 2, 3)) + 1.0j * rng.standard_normal((8, 2, 2, 3))


@pytest.mark.parametrize("normalize", [True, False])
def test_fast_product_matches_sequential(random_polys, normalize):
    result, w = poly_fmult2x2(random_polys, normalize=normalize)
    expected = sequential_product(random_polys)

    assert result.shape == (2, 2, 8 * 2 + 1)
    if not normalize:
        assert w == 0
    scaled = result * 2.0 ** w
    assert np.max(np.absolute(scaled - expected)) <= 1e-10 * np.max(np.absolute(expected))


def test_normalize_poly_range(random_polys):
    scaled, w = normalize_poly(random_polys * 1e5)
    max_abs = np.max(np.absolute(scaled), axis=(1, 2, 3))
    assert np.all(max_abs >= 0.5) and np.all(max_abs < 1.0)
    assert isinstance(w, int)


def test_rejects_non_power_of_two_count():
    with pytest.raises(InvalidInput):
        poly_fmult2x2(np.ones((3, 2, 2, 2)))
    with pytest.raises(InvalidInput):
        poly_fmult2x2(np.ones((4, 3, 2, 2)))


def test_fft_length_check():
    with pytest.raises(NumericFailure):
        fft_pow2(np.ones(6))
    assert np.allclose(fft_pow2(np.ones(4)), [4.0, 0.0, 0.0, 0.0])
