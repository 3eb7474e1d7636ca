import numpy as np
import pytest

from fast_nft import misc
from fast_nft.errwarn import InvalidInput


def test_powers_of_two():
    assert misc.next_power_of_2(0) == 1
    assert misc.next_power_of_2(5) == 8
    assert misc.next_power_of_2(8) == 8
    assert misc.is_power_of_2(1024)
    assert not misc.is_power_of_2(0)
    assert not misc.is_power_of_2(12)


def test_rel_err():
    assert misc.rel_err([1.0, 2.0], [1.0, 2.0]) == 0.0
    assert misc.rel_err([1.5, 2.0], [1.0, 2.0]) == pytest.approx(0.5 / 3.0)
    with pytest.raises(InvalidInput):
        misc.rel_err([1.0, 2.0], [1.0, 2.0, 3.0])


def test_hausdorff_dist():
    assert misc.hausdorff_dist([0.0, 1.0j], [1.0j, 0.0]) == 0.0
    assert misc.hausdorff_dist([0.0], [0.0, 3.0]) == pytest.approx(3.0)
    assert misc.hausdorff_dist([], []) == 0.0
    assert misc.hausdorff_dist([1.0], []) == np.inf


def test_csinc():
    assert misc.csinc(0.0) == 1.0
    assert misc.csinc(1e-6) == pytest.approx(1.0)
    z = np.array([0.5, 2.0 + 1.0j, -3.0j])
    assert np.allclose(misc.csinc(z), np.sin(z) / z, rtol=1e-14)


def test_l2norm2():
    assert misc.l2norm2(np.ones(11), 0.0, 1.0) == pytest.approx(10.0 / 11.0)
    assert np.isnan(misc.l2norm2(np.ones(1), 0.0, 1.0))
    assert np.isnan(misc.l2norm2(np.ones(4), 1.0, 0.0))


def test_filter_box_and_inverse_are_complementary():
    vals = np.array([0.0, 1.0 + 1.0j, -2.0 + 0.5j, 0.5 - 1.0j])
    box = [-1.0, 1.0, 0.0, 2.0]
    inside = misc.filter_box(vals, box)
    outside = misc.filter_box_inv(vals, box)
    assert np.array_equal(inside, [0.0, 1.0 + 1.0j])
    assert np.array_equal(outside, [-2.0 + 0.5j, 0.5 - 1.0j])

    inside, labels = misc.filter_box(vals, box, rearrange_as_well=np.arange(4))
    assert np.array_equal(labels, [0, 1])

    with pytest.raises(InvalidInput):
        misc.filter_box(vals, [1.0, -1.0, 0.0, 1.0])


def test_filter_nonreal():
    vals = np.array([1.0, 1.0 + 1e-12j, 2.0 + 0.1j])
    assert np.array_equal(misc.filter_nonreal(vals, 1e-9), vals[:2])


def test_merge_is_idempotent():
    vals = np.array([0.0, 1e-10, 1.0, 1.0 + 1e-10j, 2.0j])
    merged = misc.merge(vals, 1e-6)
    assert np.array_equal(merged, [0.0, 1.0, 2.0j])
    assert np.array_equal(misc.merge(merged, 1e-6), merged)

    dist = np.absolute(merged[:, None] - merged[None, :])
    assert np.all(dist[~np.eye(len(merged), dtype=bool)] >= 1e-6)


@pytest.mark.parametrize("n_q, n_sub", [(2, 2), (16, 16), (1024, 512), (4096, 1024)])
def test_downsample(n_q, n_sub):
    q = np.arange(n_q, dtype=np.complex128)
    q_sub, factor = misc.downsample(q)
    assert len(q_sub) == n_sub
    assert factor == n_q // n_sub
    assert np.array_equal(q_sub, q[::factor])


def test_downsample_rejects_bad_length():
    with pytest.raises(InvalidInput):
        misc.downsample(np.ones(12))


def test_ldexp_complex():
    assert misc.ldexp_complex(1.0 + 1.0j, 3) == 8.0 + 8.0j
    assert np.isfinite(misc.ldexp_complex(0.5 + 0.5j, 1024))
