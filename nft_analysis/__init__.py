from . import signals
from . import nft_analyse

__all__ = [
    'signals',
    'nft_analyse'
]
