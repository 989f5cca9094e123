"""Lowering module for tracegraph.

Lowering turns an IR graph into operations of a backend builder:

- LoweringContext: Walks the graph once per node, operands first
- Builder: What a backend must provide
- HloTextBuilder: Reference builder producing HLO-like text
"""

from ._builder import BackendOp, Builder, Computation, HloTextBuilder, Instruction
from ._context import LoweringContext, LoweringError, ParameterNode

__all__ = [
    "BackendOp",
    "Builder",
    "Computation",
    "HloTextBuilder",
    "Instruction",
    "LoweringContext",
    "LoweringError",
    "ParameterNode",
]
