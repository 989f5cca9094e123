"""Backend shapes attached to IR nodes."""

from __future__ import annotations

from enum import StrEnum
from typing import Self

from pydantic import BaseModel, ConfigDict, model_validator

from ._hashing import HashT, string_hash


class _DocumentedStrEnum(StrEnum):
    """String enum whose members carry a docstring as a second value."""

    def __new__(cls, value: str, doc: str = "") -> Self:
        obj = str.__new__(cls, value)
        obj._value_ = value
        obj.__doc__ = doc
        return obj


class ElementType(_DocumentedStrEnum):
    """Primitive element type of an array shape, spelled as in HLO text."""

    PRED = "pred", "Boolean"
    S8 = "s8", "Signed 8-bit integer"
    S16 = "s16", "Signed 16-bit integer"
    S32 = "s32", "Signed 32-bit integer"
    S64 = "s64", "Signed 64-bit integer"
    U8 = "u8", "Unsigned 8-bit integer"
    U16 = "u16", "Unsigned 16-bit integer"
    U32 = "u32", "Unsigned 32-bit integer"
    U64 = "u64", "Unsigned 64-bit integer"
    F16 = "f16", "IEEE half precision float"
    BF16 = "bf16", "Brain floating point"
    F32 = "f32", "IEEE single precision float"
    F64 = "f64", "IEEE double precision float"
    C64 = "c64", "Complex of two f32"
    TUPLE = "tuple", "Tuple of other shapes"


class Shape(BaseModel):
    """An array shape or a tuple of shapes.

    Instances are immutable and hashable, so they can be shared between nodes
    and stored in the shape cache.

    Example:
        >>> str(Shape.array(ElementType.F32, (2, 3)))
        'f32[2,3]'
        >>> str(Shape.make_tuple([Shape.scalar(ElementType.S32), Shape.array(ElementType.F32, (4,))]))
        '(s32[], f32[4])'

    """

    model_config = ConfigDict(frozen=True)

    element_type: ElementType
    dimensions: tuple[int, ...] = ()
    tuple_shapes: tuple[Shape, ...] = ()

    @model_validator(mode="after")
    def check_layout(self) -> Self:
        if any(dim < 0 for dim in self.dimensions):
            msg = f"Shape dimensions must be non-negative, got {self.dimensions}"
            raise ValueError(msg)
        if self.element_type == ElementType.TUPLE:
            if self.dimensions:
                msg = "A tuple shape cannot have dimensions"
                raise ValueError(msg)
        elif self.tuple_shapes:
            msg = f"Only tuple shapes can have tuple elements, got element type '{self.element_type}'"
            raise ValueError(msg)
        return self

    @classmethod
    def scalar(cls, element_type: ElementType) -> Shape:
        return cls(element_type=element_type)

    @classmethod
    def array(cls, element_type: ElementType, dimensions: tuple[int, ...] | list[int]) -> Shape:
        return cls(element_type=element_type, dimensions=tuple(dimensions))

    @classmethod
    def make_tuple(cls, shapes: tuple[Shape, ...] | list[Shape]) -> Shape:
        return cls(element_type=ElementType.TUPLE, tuple_shapes=tuple(shapes))

    @property
    def is_tuple(self) -> bool:
        return self.element_type == ElementType.TUPLE

    @property
    def rank(self) -> int:
        return len(self.dimensions)

    @property
    def element_count(self) -> int:
        """Number of elements of an array shape (1 for scalars)."""
        if self.is_tuple:
            msg = "Tuple shapes have no element count"
            raise TypeError(msg)
        count = 1
        for dim in self.dimensions:
            count *= dim
        return count

    def tuple_shape(self, index: int) -> Shape:
        """Get the shape at a tuple position.

        Raises:
            IndexError: If this is not a tuple shape or the index is out of range.

        """
        if not self.is_tuple:
            msg = f"Shape {self} is not a tuple"
            raise IndexError(msg)
        if not 0 <= index < len(self.tuple_shapes):
            msg = f"Tuple index {index} out of range for {self}"
            raise IndexError(msg)
        return self.tuple_shapes[index]

    def hash(self) -> HashT:
        """Deterministic hash of the shape."""
        return string_hash(str(self))

    def __str__(self) -> str:
        if self.is_tuple:
            return "(" + ", ".join(str(shape) for shape in self.tuple_shapes) + ")"
        return f"{self.element_type}[{','.join(str(dim) for dim in self.dimensions)}]"
