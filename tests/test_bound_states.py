import numpy as np
import pytest

from fast_nft import bound_states as bs
from fast_nft.discretization import discretization_names
from fast_nft.errwarn import InvalidInput
from fast_nft.misc import hausdorff_dist
from fast_nft.nsev import get_default_nsev_options
from nft_analysis import signals

EXPECTED = np.array([1.7j, 0.7j])


def make_problem(t, q, kappa=1, discretization='2split4b'):
    return bs.ScatteringProblem(q, -kappa * np.conj(q), (t[0], t[-1]), kappa, discretization)


def make_options(**kwargs):
    options = get_default_nsev_options()
    options.update(kwargs)
    return options


def test_poly_roots():
    assert np.allclose(np.sort_complex(bs.poly_roots(np.poly([1.0, 2.0, 3.0]))), [1.0, 2.0, 3.0])
    # trailing zeros are roots at the origin
    assert np.allclose(np.sort_complex(bs.poly_roots([1.0, -3.0, 2.0, 0.0, 0.0])), [1.0, 2.0])
    # negligible leading coefficients are dropped
    assert np.allclose(bs.poly_roots([1e-300, 0.0, 1.0, -1.0]), [1.0])
    assert len(bs.poly_roots(np.zeros(4))) == 0
    assert len(bs.poly_roots([0.0, 2.0])) == 0


def test_sort_by_imag():
    points = bs.sort_by_imag([0.1j, 2.0j, 1.0 + 0.5j])
    assert np.array_equal(points, [2.0j, 1.0 + 0.5j, 0.1j])


def test_filters(sech_signal):
    t, q = sech_signal(256)
    problem = make_problem(t, q)
    points = np.array([1.0j, 1.0j + 1e-12, -0.5j, np.nan, 100.0 + 1.0j, 0.3j, 50.0j])

    assert len(bs.filter_none(points, problem)) == 6

    basic = bs.filter_basic(points, problem)
    assert np.array_equal(basic, [1.0j, 100.0 + 1.0j, 0.3j, 50.0j])
    assert np.array_equal(bs.filter_basic(basic, problem), basic)

    full = bs.filter_full(points, problem)
    assert np.array_equal(full, [1.0j, 0.3j])
    assert np.array_equal(bs.filter_full(full, problem), full)

    defocusing = make_problem(t, q, kappa=-1)
    assert len(bs.filter_full(points, defocusing)) == 0


@pytest.mark.parametrize("n_q", [256, 1024])
@pytest.mark.parametrize("discretization", discretization_names())
def test_fast_eigenvalue(sech_signal, discretization, n_q):
    t, q = sech_signal(n_q)
    problem = make_problem(t, q, discretization=discretization)
    points = bs.find_bound_states(problem, make_options(bound_state_localization='fast_eigenvalue'))

    assert len(points) == 2
    assert hausdorff_dist(points, EXPECTED) < 5e-2


def test_subsample_and_refine(sech_signal):
    t, q = sech_signal(1024)
    points = bs.find_bound_states(make_problem(t, q), make_options())

    assert len(points) == 2
    assert hausdorff_dist(points, EXPECTED) < 1e-2


def test_newton(sech_signal):
    t, q = sech_signal(1024)
    points = bs.find_bound_states(make_problem(t, q), make_options(bound_state_localization='newton'),
                                  guesses=[0.8j, 1.6j, 1.62j])

    assert len(points) == 2
    assert points[0].imag > points[1].imag
    assert hausdorff_dist(points, EXPECTED) < 1e-2


def test_newton_needs_guesses(sech_signal):
    t, q = sech_signal(64)
    with pytest.raises(InvalidInput):
        bs.find_bound_states(make_problem(t, q), make_options(bound_state_localization='newton'))


def test_capacity(sech_signal, messages):
    t, q = sech_signal(1024)
    points = bs.find_bound_states(make_problem(t, q), make_options(), capacity=1)

    assert len(points) == 1
    assert abs(points[0] - 1.7j) < 1e-2
    assert len(messages) == 1 and 'CapacityExceeded' in messages[0]


def test_all_newton_guesses_diverge(sech_signal, messages):
    t, q = sech_signal(256)
    points = bs.find_bound_states(make_problem(t, q), make_options(bound_state_localization='newton', niter=1),
                                  guesses=[3.0j])

    assert len(points) == 0
    assert len(messages) == 1 and 'ConvergenceWarning' in messages[0]


def test_defocusing_has_no_bound_states(sech_signal):
    t, q = sech_signal(256)
    assert len(bs.find_bound_states(make_problem(t, q, kappa=-1), make_options())) == 0


def test_norming_constants_and_residues(sech_signal):
    t, q = sech_signal(1024)
    problem = make_problem(t, q)
    points = bs.find_bound_states(problem, make_options())
    _, _, _, _, b_discr, r_discr, _ = signals.get_sech(t, np.zeros(1), 2.2, 0.0)

    res = bs.compute_discspec(problem, points, 'both')
    assert np.allclose(res['disc_norm'], b_discr, atol=1e-2)
    assert np.allclose(res['disc_res'], r_discr, rtol=5e-2)
    assert np.allclose(res['disc_res'] * bs.get_a_derivative(problem, points), res['disc_norm'], rtol=1e-12)

    assert set(bs.compute_discspec(problem, points, 'residues').keys()) == {'disc_res'}
    with pytest.raises(InvalidInput):
        bs.compute_discspec(problem, points, 'unknown')


def test_poly_and_bidirectional_norming_constants_agree(sech_signal):
    t, q = sech_signal(256, t_span=20., ampl=1.2)
    problem = make_problem(t, q)
    points = bs.find_bound_states(problem, make_options())
    assert len(points) == 1

    b_poly = bs.get_norming_constants(problem, points, 'poly')
    b_bidir = bs.get_norming_constants(problem, points, 'bi-direct')
    assert np.allclose(b_poly, b_bidir, atol=5e-2)
    assert np.allclose(b_bidir, [-1.0], atol=5e-2)
