"""A two-layer perceptron traced into an IR graph.

Try it with:

    tracegraph show examples/mlp.py
    tracegraph show examples/mlp.py --format tree
    tracegraph lower examples/mlp.py --name mlp
"""

from tracegraph import (
    DEFAULT_HASH_SEED,
    Constant,
    ElementType,
    Generic,
    OpKind,
    Parameter,
    ScopePusher,
    Shape,
    reset_scopes,
)


def _lower_as(opcode, **attributes):
    def lower_fn(node, loctx):
        op = loctx.builder.op(opcode, loctx.get_operand_ops(node), node.shape(), attributes or None)
        return node.return_op(op, loctx)

    return lower_fn


def dot(a, b):
    def shape_fn():
        (rows, _), (_, cols) = a.shape().dimensions, b.shape().dimensions
        return Shape.array(a.shape().element_type, (rows, cols))

    return Generic(
        OpKind.get("dot"),
        [a, b],
        shape_fn=shape_fn,
        hash_seed=DEFAULT_HASH_SEED,
        lower_fn=_lower_as("dot"),
    )


def add(a, b):
    return Generic(
        OpKind.get("add"),
        [a, b],
        shape_fn=a.shape,
        hash_seed=DEFAULT_HASH_SEED,
        lower_fn=_lower_as("add"),
    )


def maximum(a, b):
    return Generic(
        OpKind.get("maximum"),
        [a, b],
        shape_fn=a.shape,
        hash_seed=DEFAULT_HASH_SEED,
        lower_fn=_lower_as("maximum"),
    )


def broadcast(scalar, shape):
    return Generic(OpKind.get("broadcast"), [scalar], shape, lower_fn=_lower_as("broadcast", dimensions=()))


def dense(x, units, name):
    batch, features = x.shape().dimensions
    with ScopePusher(name):
        weight = Parameter(f"{name}.weight", Shape.array(ElementType.F32, (features, units)))
        bias = Parameter(f"{name}.bias", Shape.array(ElementType.F32, (batch, units)))
        return add(dot(x, weight), bias)


def relu(x):
    with ScopePusher("relu"):
        zero = broadcast(Constant(0.0, Shape.scalar(ElementType.F32)), x.shape())
        return maximum(x, zero)


reset_scopes()

x = Parameter("x", Shape.array(ElementType.F32, (8, 16)))
with ScopePusher("mlp"):
    hidden = relu(dense(x, 32, "dense0"))
    logits = dense(hidden, 4, "dense1")

roots = [logits]
