from ._pooling import Pooling, maxpool_backward, maxpool_forward

__all__ = [
    Pooling.__name__,
    maxpool_forward.__name__,
    maxpool_backward.__name__,
]
