"""Intermediate Representation (IR) module for tracegraph.

This module provides the graph data structures a tracer builds while recording
operations, independent of any particular frontend:

- OpKind: Interned operation identity
- Node: A traced operation with its operands, shape, hashes and metadata
- Value / Output: Owning and non-owning handles on a node's result slots
- ScopePusher: Nested naming scopes recorded on new nodes
- ShapeCache: Process-wide cache of shapes computed by shape functions
"""

from ._metadata import MetaData, SourceLocation
from ._node import DEFAULT_HASH_SEED, Node, as_value, make_node, node_cast
from ._op_kind import OpKind
from ._output import Output, Value
from ._scope import ScopePusher, active_scopes, current_scope, reset_scopes
from ._shape_cache import ShapeCache, get_shape_cache, reset_shape_cache

__all__ = [
    "DEFAULT_HASH_SEED",
    "MetaData",
    "Node",
    "OpKind",
    "Output",
    "ScopePusher",
    "ShapeCache",
    "SourceLocation",
    "Value",
    "active_scopes",
    "as_value",
    "current_scope",
    "get_shape_cache",
    "make_node",
    "node_cast",
    "reset_scopes",
    "reset_shape_cache",
]
