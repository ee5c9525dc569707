"""
Optimizer public API.

Exports
-------
- SGD, Adam:
    Immutable optimizer configurations.
- apply_update_rule:
    Type-dispatched update rule used by layers.
- UpdateState:
    Running optimizer state stored inside layers.
"""

from ._sgd import SGD
from ._adam import Adam
from ._update import UpdateState, apply_update_rule

__all__ = [
    SGD.__name__,
    Adam.__name__,
    UpdateState.__name__,
    apply_update_rule.__name__,
]
