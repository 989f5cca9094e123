"""The IR node: one traced operation and its outputs."""

from __future__ import annotations

import copy
import logging
import threading
from typing import TYPE_CHECKING, Any

from tracegraph._context import get_trace_config
from tracegraph._hashing import HashT, hash_many

from ._metadata import MetaData, capture_frames
from ._output import Output, Value
from ._scope import current_scope
from ._shape_cache import get_shape_cache

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator, Sequence

    from tracegraph._lowering import BackendOp, LoweringContext
    from tracegraph._shape import Shape

    from ._op_kind import OpKind

logger = logging.getLogger(__name__)

DEFAULT_HASH_SEED: HashT = 0x5A2D296E9

type ShapeFn = Callable[[], Shape]
type OperandLike = Value | Output | Node


def as_value(operand: OperandLike) -> Value:
    """Turn an operand reference into an owning ``Value``.

    A bare ``Node`` refers to its first output.
    """
    if isinstance(operand, Value):
        return operand
    if isinstance(operand, Output):
        return Value(operand.node, operand.index)
    if isinstance(operand, Node):
        return Value(operand, 0)
    msg = f"Expected a Value, Output or Node as operand, got {type(operand).__name__}"
    raise TypeError(msg)


class Node:
    """A vertex of the IR graph.

    Operations that need extra data for lowering subclass ``Node`` and add it
    as attributes; a constant stores its literal, a parameter its name. Every
    concrete subclass implements :meth:`lower`.

    The shape can be given directly or as ``shape_fn``. A shape function runs
    at most once, the first time the shape (or the hash, which covers the shape)
    is needed, and only if the process-wide shape cache has no entry for a
    structurally identical node. The cache key holds the operation, seed,
    output count and operand hashes, not the shape function, so ``hash_seed``
    must cover every attribute the shape function reads.

    Two hashes describe a node:

    - ``node_hash()`` covers the node itself: operation, shape and seed.
    - ``hash()`` additionally covers every operand's ``hash()`` in order, so it
      identifies the whole graph rooted at the node. Two distinct node objects
      with the same transitive structure have the same ``hash()``.

    Nodes are immutable once built. Use :meth:`clone` to get a copy with other
    operands.

    Example:
        >>> x = Parameter("x", Shape.array(ElementType.F32, (4,)))
        >>> y = Node(OpKind.get("neg"), [x], shape_fn=lambda: x.shape())
        >>> y.shape()
        Shape(element_type=<ElementType.F32: 'f32'>, dimensions=(4,), tuple_shapes=())

    """

    __slots__ = (
        "__weakref__",
        "_hash",
        "_hash_seed",
        "_lock",
        "_metadata",
        "_node_hash",
        "_num_outputs",
        "_operand_values",
        "_operands_as_outputs",
        "_shape",
        "_shape_fn",
        "op",
    )

    def __init__(
        self,
        op: OpKind,
        operands: Iterable[OperandLike] = (),
        shape: Shape | None = None,
        *,
        shape_fn: ShapeFn | None = None,
        num_outputs: int = 1,
        hash_seed: HashT = DEFAULT_HASH_SEED,
    ) -> None:
        if (shape is None) == (shape_fn is None):
            msg = "Exactly one of shape or shape_fn must be given"
            raise ValueError(msg)
        if num_outputs < 1:
            msg = f"A node must have at least one output, got num_outputs={num_outputs}"
            raise ValueError(msg)

        self.op = op
        self._num_outputs = num_outputs
        self._hash_seed = hash_seed
        self._lock = threading.Lock()
        self._node_hash: HashT | None = None
        self._hash: HashT | None = None
        self._set_operands(operands)

        self._shape: Shape | None = None
        self._shape_fn: ShapeFn | None = shape_fn
        if shape is not None:
            self._check_shape(shape)
            self._shape = shape

        config = get_trace_config()
        frames = capture_frames(config.max_frames) if config.capture_frames else ()
        self._metadata = MetaData(scope=current_scope(), frame_info=frames)

        if config.log_graph_changes:
            logger.info(
                "Created IR node %s with %d operand(s), scope=%r%s",
                self.op,
                len(self._operand_values),
                self._metadata.scope,
                "".join(f"\n  at {frame}" for frame in frames),
            )

    def _set_operands(self, operands: Iterable[OperandLike]) -> None:
        # The only place where operand ownership is established.
        values = tuple(as_value(operand) for operand in operands)
        self._operand_values = values
        self._operands_as_outputs = tuple(value.to_output() for value in values)

    # -- Shape ---------------------------------------------------------------

    def _check_shape(self, shape: Shape) -> None:
        # Tuple shape if and only if the node has several outputs.
        if shape.is_tuple != (self._num_outputs > 1):
            msg = f"Node {self.op} has {self._num_outputs} output(s), which does not match its shape {shape}"
            raise ValueError(msg)
        if self._num_outputs > 1 and len(shape.tuple_shapes) != self._num_outputs:
            msg = f"Node {self.op} has {self._num_outputs} outputs but its shape {shape} has {len(shape.tuple_shapes)}"
            raise ValueError(msg)

    def _shape_cache_key(self) -> HashT:
        """Hash of everything that determines the shape, computed without it."""
        return hash_many(
            self.op.hash(),
            self._hash_seed,
            self._num_outputs,
            *(value.hash() for value in self._operand_values),
        )

    def _resolve_shape(self, shape_fn: ShapeFn) -> Shape:
        cache = get_shape_cache()
        key = self._shape_cache_key()
        shape = cache.get(key)
        if shape is None:
            logger.debug("Shape cache miss for %s, running shape function", self.op)
            shape = shape_fn()
            self._check_shape(shape)
            shape = cache.add(key, shape)
        return shape

    def shape(self, output_index: int | None = None) -> Shape:
        """Get the full shape, or the shape of one output.

        The full shape of a multi-output node is a tuple. For a single-output
        node, only ``output_index=0`` is valid and returns the full shape.

        Raises:
            IndexError: If output_index is out of range.

        """
        shape = self._shape
        if shape is None:
            with self._lock:
                if self._shape is None:
                    shape_fn = self._shape_fn
                    if shape_fn is None:  # pragma: no cover - set in __init__
                        msg = f"Node {self.op} has neither a shape nor a shape function"
                        raise RuntimeError(msg)
                    self._shape = self._resolve_shape(shape_fn)
                    self._shape_fn = None
                shape = self._shape

        if output_index is None:
            return shape
        if not 0 <= output_index < self._num_outputs:
            msg = f"Output index {output_index} out of range for {self.op} with {self._num_outputs} output(s)"
            raise IndexError(msg)
        if self._num_outputs == 1:
            return shape
        return shape.tuple_shape(output_index)

    @property
    def is_shape_resolved(self) -> bool:
        return self._shape is not None

    # -- Queries ---------------------------------------------------------------

    def num_outputs(self) -> int:
        return self._num_outputs

    def operands(self) -> tuple[Output, ...]:
        """Operands as non-owning outputs."""
        return self._operands_as_outputs

    def operand(self, i: int) -> Output:
        """Get the i-th operand.

        Raises:
            IndexError: If the node has fewer than i + 1 operands.

        """
        return self._operands_as_outputs[i]

    def operand_values(self) -> tuple[Value, ...]:
        """Operands as owning values, keeping their output indices."""
        return self._operand_values

    def operand_nodes(self) -> tuple[Node, ...]:
        return tuple(value.node for value in self._operand_values)

    def hash_seed(self) -> HashT:
        return self._hash_seed

    def node_hash(self) -> HashT:
        """Hash of this node alone: operation, shape and seed."""
        if self._node_hash is None:
            self._node_hash = hash_many(self.op.hash(), self.shape().hash(), self._hash_seed)
        return self._node_hash

    def hash(self) -> HashT:
        """Hash of the graph rooted at this node."""
        if self._hash is None:
            # Operands first, so deep graphs never recurse through hash().
            for node in self._unhashed_post_order():
                node._hash = hash_many(node.node_hash(), *(value.hash() for value in node._operand_values))
        return self._hash  # type: ignore[return-value]

    def _unhashed_post_order(self) -> list[Node]:
        order: list[Node] = []
        seen: set[Node] = {self}
        stack: list[tuple[Node, Iterator[Value]]] = [(self, iter(self._operand_values))]
        while stack:
            node, pending = stack[-1]
            for value in pending:
                operand = value.node
                if operand._hash is None and operand not in seen:
                    seen.add(operand)
                    stack.append((operand, iter(operand._operand_values)))
                    break
            else:
                stack.pop()
                order.append(node)
        return order

    def metadata(self) -> MetaData:
        return self._metadata

    # -- Rewriting and lowering ---------------------------------------------------

    def clone(self, operands: Sequence[OperandLike]) -> Node:
        """Create a node identical to this one but for its operands.

        The copy keeps the concrete class, operation, shape, seed and metadata.
        Pass ``operand_values()``-style values to keep output indices; bare nodes
        refer to their first output.
        """
        shape = self.shape()
        clone = copy.copy(self)
        clone._lock = threading.Lock()
        clone._shape = shape
        clone._shape_fn = None
        clone._node_hash = self._node_hash
        clone._hash = None
        clone._set_operands(operands)
        return clone

    def lower(self, loctx: LoweringContext) -> list[BackendOp]:
        """Emit backend operations for this node.

        Implementations return one operation per output, normally through
        :meth:`return_op` or :meth:`return_ops`.
        """
        msg = f"Lowering not implemented for node: {self}"
        raise NotImplementedError(msg)

    def return_op(self, op: BackendOp, loctx: LoweringContext) -> list[BackendOp]:
        """Register the single output of this node with the lowering context."""
        if self._num_outputs != 1:
            msg = f"return_op used on {self.op} which has {self._num_outputs} outputs"
            raise ValueError(msg)
        loctx.assign_output_op(Output(self, 0), op)
        return [op]

    def return_ops(self, ops: Sequence[BackendOp], loctx: LoweringContext) -> list[BackendOp]:
        """Register every output of this node with the lowering context."""
        if len(ops) != self._num_outputs:
            msg = f"{self.op} has {self._num_outputs} outputs but {len(ops)} operations were returned"
            raise ValueError(msg)
        for index, op in enumerate(ops):
            loctx.assign_output_op(Output(self, index), op)
        return list(ops)

    def __str__(self) -> str:
        parts = [str(self.op), f"shape={self.shape()}"]
        if self._num_outputs > 1:
            parts.append(f"num_outputs={self._num_outputs}")
        if self._metadata.scope:
            parts.append(f"scope={self._metadata.scope}")
        return ", ".join(parts)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.op} at {id(self):#x}>"


def make_node[T: Node](cls: type[T], *args: Any, **kwargs: Any) -> T:
    """Create a node of a concrete class."""
    return cls(*args, **kwargs)


def node_cast[T: Node](node: Node, cls: type[T], op: OpKind) -> T | None:
    """Narrow a node to a concrete class, gated by its operation.

    Returns None when ``node.op`` is not ``op``. When the operation matches but
    the node is not a ``cls``, the graph was built inconsistently: this raises
    ``TypeError`` unless Python runs with ``-O``, where the check is skipped and
    None is returned.
    """
    if node.op != op:
        return None
    if not isinstance(node, cls):
        if __debug__:
            msg = f"Node with op {op} is a {type(node).__name__}, not a {cls.__name__}"
            raise TypeError(msg)
        return None
    return node
