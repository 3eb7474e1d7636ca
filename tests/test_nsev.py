import numpy as np
import pytest

from fast_nft import bound_states as bs_module
from fast_nft import errwarn
from fast_nft.misc import hausdorff_dist, rel_err
from fast_nft.nsev import (check_nsev_options, get_default_nsev_options, nsev, nsev_max_k, nsev_poly,
                           resolve_nsev_options)
from nft_analysis import signals

RESULT_KEYS = {'return_value', 'error_message', 'xi', 'cont_ref', 'cont_a', 'cont_b',
               'bound_states', 'disc_norm', 'disc_res', 'K', 'W'}


def test_default_options():
    options = get_default_nsev_options()
    assert options == {'bound_state_filtering': 'full',
                       'bound_state_localization': 'subsample_and_refine',
                       'niter': 10,
                       'discspec_type': 'norming_constants',
                       'contspec_type': 'reflection_coefficient',
                       'normalization_flag': True,
                       'discretization': '2split4b',
                       'normconst_type': 'bi-direct'}
    check_nsev_options(options)


def test_resolve_options():
    assert resolve_nsev_options({'discretization': '2SPLIT2A'})['discretization'] == '2split2a'
    with pytest.raises(errwarn.InvalidInput):
        resolve_nsev_options({'niter': -1})
    with pytest.raises(errwarn.InvalidInput):
        resolve_nsev_options({'colour': 'blue'})


def test_max_k():
    assert nsev_max_k(256) == 512
    assert nsev_max_k(256, {'discretization': '2split4a'}) == 1024
    assert nsev_max_k(256, {'discretization': 'modal'}) == 0
    assert nsev_max_k(0) == 0


@pytest.fixture
def no_numerics(monkeypatch):
    """Fails the test if any scattering polynomial is built."""
    def fail(*args, **kwargs):
        raise AssertionError('numerical work started before validation')
    monkeypatch.setattr(bs_module, 'fscatter', fail)


@pytest.mark.parametrize("kwargs", [
    dict(q=np.ones(3), t=[-1.0, 1.0], xi1=-1.0, xi2=1.0, m=8),
    dict(q=np.ones(1), t=[-1.0, 1.0], xi1=-1.0, xi2=1.0, m=8),
    dict(q=np.ones(8), t=[1.0, -1.0], xi1=-1.0, xi2=1.0, m=8),
    dict(q=np.ones(8), t=[-1.0, 1.0], xi1=1.0, xi2=-1.0, m=8),
    dict(q=np.ones(8), t=[-1.0, 1.0], xi1=-1.0, xi2=1.0, m=0),
    dict(q=np.ones(8), t=[-1.0, 1.0], xi1=-1.0, xi2=1.0, m=8, kappa=2),
    dict(q=np.ones(8), t=[-1.0, 1.0], xi1=-1.0, xi2=1.0, m=8, kappa=True),
    dict(q=np.ones(8), t=[-1.0, 1.0], xi1=-1.0, xi2=1.0, m=8, kappa=1.0),
    dict(q=np.ones(8), t=[-1.0, 1.0], xi1=-1.0, xi2=1.0, m=8, k=-1),
    dict(q=np.ones(8), t=[-1.0, 1.0], xi1=-1.0, xi2=1.0, m=8, options={'discretization': 'unknown'}),
    dict(q=np.ones(8), t=[-1.0, 1.0], skip_contspec=True, options={'bound_state_localization': 'newton'}),
    dict(q=np.ones((2, 4)), t=[-1.0, 1.0], skip_contspec=True),
])
def test_invalid_input_is_rejected_before_numerics(kwargs, no_numerics, messages):
    res = nsev(**kwargs)

    assert set(res.keys()) == RESULT_KEYS
    assert res['return_value'] == errwarn.EC_INVALID_ARGUMENT
    assert res['cont_ref'] is None and res['bound_states'] is None
    assert len(messages) == 1 and messages[0].startswith('[nsev] Error:')


def test_numeric_failure_is_reported(monkeypatch, sech_signal, messages):
    def fail(*args, **kwargs):
        raise errwarn.NumericFailure('eigenvalue computation failed')
    monkeypatch.setattr(bs_module, 'poly_roots', fail)

    t, q = sech_signal(256)
    res = nsev(q, t, skip_contspec=True)
    assert res['return_value'] == errwarn.EC_NUMERIC_FAILURE
    assert res['bound_states'] is None
    assert 'eigenvalue computation failed' in res['error_message']


def test_full_transform(sech_signal):
    t, q = sech_signal(1024)
    xi = np.linspace(-2.0, 2.0, 64)
    _, a_exact, b_exact, xi_discr, b_discr, r_discr, _ = signals.get_sech(t, xi, 2.2, 0.0)

    res = nsev(q, t, xi[0], xi[-1], len(xi), options={'contspec_type': 'both', 'discspec_type': 'both'})

    assert res['return_value'] == 0
    assert np.allclose(res['xi'], xi)
    assert rel_err(res['cont_ref'], b_exact / a_exact) < 1e-2
    assert rel_err(res['cont_a'], a_exact) < 1e-2
    assert np.allclose(res['cont_ref'], res['cont_b'] / res['cont_a'], rtol=1e-12)

    assert res['K'] == 2
    assert hausdorff_dist(res['bound_states'], xi_discr) < 1e-2
    assert np.allclose(res['disc_norm'], b_discr, atol=1e-2)
    assert np.allclose(res['disc_res'], r_discr, rtol=5e-2)


def test_time_grid_endpoints_are_enough(sech_signal):
    t, q = sech_signal(256)
    res_grid = nsev(q, t, -1.0, 1.0, 16, skip_bound_states=True)
    res_range = nsev(q, [t[0], t[-1]], -1.0, 1.0, 16, skip_bound_states=True)
    assert np.array_equal(res_grid['cont_ref'], res_range['cont_ref'])


def test_skip_flags(sech_signal):
    t, q = sech_signal(256)

    res = nsev(q, t, skip_contspec=True, skip_normconsts=True)
    assert res['cont_ref'] is None and res['xi'] is None
    assert res['K'] == 2 and res['disc_norm'] is None

    res = nsev(q, t, -1.0, 1.0, 16, skip_bound_states=True)
    assert len(res['cont_ref']) == 16
    assert res['bound_states'] is None and res['K'] == 0


def test_capacity_truncation(sech_signal, messages):
    t, q = sech_signal(1024)
    res = nsev(q, t, k=1, skip_contspec=True)

    assert res['return_value'] == 0
    assert res['K'] == 1 and len(res['disc_norm']) == 1
    assert abs(res['bound_states'][0] - 1.7j) < 1e-2
    assert any('CapacityExceeded' in message for message in messages)


def test_newton_localization(sech_signal):
    t, q = sech_signal(1024)
    res = nsev(q, t, skip_contspec=True, bound_states=[1.6j, 0.6j],
               options={'bound_state_localization': 'newton', 'niter': 20})
    assert res['K'] == 2
    assert hausdorff_dist(res['bound_states'], [1.7j, 0.7j]) < 1e-2


def test_defocusing(sech_signal):
    t = np.linspace(-24., 24., 1024)
    xi = np.linspace(-2.0, 2.0, 32)
    q, a_exact, b_exact, xi_discr, _, _, _ = signals.get_sech(t, xi, 1.0, 0.0, kappa=-1)

    res = nsev(q, t, xi[0], xi[-1], len(xi), kappa=-1, options={'contspec_type': 'ab'})
    assert res['return_value'] == 0
    assert len(xi_discr) == 0
    assert res['K'] == 0 and len(res['bound_states']) == 0
    assert rel_err(res['cont_a'], a_exact) < 1e-2
    assert rel_err(res['cont_b'], b_exact) < 1e-2


@pytest.mark.parametrize("discretization", ['2split2a', '2split4a', 'ftes4_4b'])
def test_poly_matches_contspec(discretization, sech_signal):
    t, q = sech_signal(256)
    xi = np.linspace(-1.0, 1.0, 8)
    options = {'discretization': discretization, 'contspec_type': 'ab'}
    res = nsev(q, t, xi[0], xi[-1], len(xi), skip_bound_states=True, options=options)
    poly = nsev_poly(q, t, options=options)

    assert poly['return_value'] == 0
    assert len(poly['coef_a']) == poly['deg'] + 1
    z = np.exp(1.0j * poly['z_factor'] * poly['eps_t'] * xi)
    a = poly['ampl_scale'] * np.polyval(poly['coef_a'], z)
    b = poly['ampl_scale'] * np.polyval(poly['coef_b'], z) * np.exp(-1.0j * xi * poly['phase_b'])
    assert np.allclose(a, res['cont_a'], rtol=1e-10)
    assert np.allclose(b, res['cont_b'], rtol=1e-10, atol=1e-14)


def test_poly_rejects_bad_input(messages):
    res = nsev_poly(np.ones(6), [-1.0, 1.0])
    assert res['return_value'] == errwarn.EC_INVALID_ARGUMENT
    assert 'coef_a' not in res
