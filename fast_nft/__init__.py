from . import errwarn
from . import misc
from . import poly_fmult
from . import discretization
from . import fscatter
from . import contspec
from . import scatter
from . import bound_states
from . import nsev
from . import interface
from . import kdvv

from .nsev import get_default_nsev_options, nsev_max_k, nsev_poly
from .interface import fnft_nsev

__all__ = [
    'errwarn',
    'misc',
    'poly_fmult',
    'discretization',
    'fscatter',
    'contspec',
    'scatter',
    'bound_states',
    'nsev',
    'interface',
    'kdvv',
    'get_default_nsev_options',
    'nsev_max_k',
    'nsev_poly',
    'fnft_nsev'
]
