"""Computation-graph tracing and lowering engine."""

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_HASH_SEED",
    "BackendOp",
    "Builder",
    "Computation",
    "ConfigError",
    "Constant",
    "CycleError",
    "DependencyGraph",
    "ElementType",
    "Generic",
    "HloTextBuilder",
    "LoweringContext",
    "LoweringError",
    "MetaData",
    "Node",
    "OpKind",
    "Output",
    "Parameter",
    "ScopePusher",
    "Shape",
    "SourceLocation",
    "TraceConfig",
    "Value",
    "compute_post_order",
    "current_scope",
    "deduplicate",
    "get_trace_config",
    "make_node",
    "node_cast",
    "nodes_count",
    "reset_scopes",
    "reset_shape_cache",
    "to_dot",
    "to_text",
    "trace_config",
]

from ._config import ConfigError, TraceConfig
from ._context import get_trace_config, trace_config
from ._dump import to_dot, to_text
from ._graph import CycleError, DependencyGraph, compute_post_order, deduplicate, nodes_count
from ._ir import (
    DEFAULT_HASH_SEED,
    MetaData,
    Node,
    OpKind,
    Output,
    ScopePusher,
    SourceLocation,
    Value,
    current_scope,
    make_node,
    node_cast,
    reset_scopes,
    reset_shape_cache,
)
from ._lowering import BackendOp, Builder, Computation, HloTextBuilder, LoweringContext, LoweringError
from ._shape import ElementType, Shape
from .ops import Constant, Generic, Parameter
