from ._fully_connected import FullyConnected, FullyConnectedGradient

__all__ = [
    FullyConnected.__name__,
    FullyConnectedGradient.__name__,
]
