import numpy as np
import pytest

from nft_analysis import signals


@pytest.fixture
def sech_signal():
    """Sampled a * sech(t) ^ (1 + 1j * c) on [-t_span / 2, t_span / 2]."""
    def make(n_q, t_span=48., ampl=2.2, chirp=0.):
        t = np.linspace(-t_span / 2., t_span / 2., n_q)
        return t, signals.get_sech_shape(t, ampl, chirp)
    return make


@pytest.fixture
def messages():
    """Collects everything written to the diagnostics sink of the current thread."""
    from fast_nft.errwarn import printf_redirected
    collected = []
    with printf_redirected(collected.append):
        yield collected
