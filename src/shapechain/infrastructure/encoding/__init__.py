from ._binary import BinaryReader, BinaryWriter

__all__ = [
    BinaryReader.__name__,
    BinaryWriter.__name__,
]
