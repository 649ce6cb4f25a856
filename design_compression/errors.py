"""
Exceptions raised by the design compression engine.

Only StructuralMismatch is part of the normal control flow: the encoder catches
it per component group and keeps that group literal.
"""


class CompressionError(Exception):
    """Base class for all engine errors."""

    pass


class StructuralMismatch(CompressionError):
    """Instances of one component do not share the same subtree shape."""

    def __init__(self, indices: tuple[int, ...], reason: str):
        self.indices = indices
        self.reason = reason
        location = "".join(f"[{i}]" for i in indices) or "root"
        super().__init__(f"Structural mismatch at {location}: {reason}")


class MalformedDesignError(CompressionError, ValueError):
    """A serialized payload does not have the expected shape."""

    pass


__all__ = [
    "CompressionError",
    "StructuralMismatch",
    "MalformedDesignError",
]
