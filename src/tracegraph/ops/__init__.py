"""Concrete node classes shared by tracers.

- Generic: Lowering supplied as a function
- Constant: A literal value
- Parameter: A named computation input
"""

from ._constant import CONSTANT_OP, Constant
from ._generic import Generic, LowerFn
from ._parameter import PARAMETER_OP, Parameter

__all__ = ["CONSTANT_OP", "PARAMETER_OP", "Constant", "Generic", "LowerFn", "Parameter"]
