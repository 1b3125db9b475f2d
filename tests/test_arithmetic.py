import numpy as np
import pytest

from wengert_ad import Tape, Tensor, add, sub, mul, div, sigmoid, ShapeMismatchError
from wengert_ad.core.node import OpKind


def finite_diff(build, values, idx, eps=1e-6):
    """Central differences of sum(build(*tensors)) w.r.t. values[idx]."""
    def f(vals):
        tape = Tape()
        return float(np.sum(build(*[Tensor(v, tape) for v in vals]).value))

    grad = np.zeros_like(values[idx])
    for pos in np.ndindex(grad.shape):
        plus = [v.copy() for v in values]
        minus = [v.copy() for v in values]
        plus[idx][pos] += eps
        minus[idx][pos] -= eps
        grad[pos] = (f(plus) - f(minus)) / (2 * eps)
    return grad


def analytic(build, values):
    tape = Tape()
    tensors = [Tensor(v, tape) for v in values]
    g = build(*tensors).grad()
    return [g.get_value(t) for t in tensors]


@pytest.mark.parametrize("op", [add, sub, mul, div])
def test_binary_gradients_match_finite_differences(op):
    rng = np.random.default_rng(42)
    x = rng.normal(size=(3, 4))
    y = rng.uniform(0.5, 2.0, size=(3, 4))
    gx, gy = analytic(op, [x, y])
    np.testing.assert_allclose(gx, finite_diff(op, [x, y], 0), rtol=1e-5, atol=1e-6)
    np.testing.assert_allclose(gy, finite_diff(op, [x, y], 1), rtol=1e-5, atol=1e-6)


def test_sigmoid_gradient_matches_finite_differences():
    x = np.linspace(-4.0, 4.0, 6).reshape(2, 3)
    (gx,) = analytic(sigmoid, [x])
    np.testing.assert_allclose(gx, finite_diff(sigmoid, [x], 0), rtol=1e-5, atol=1e-7)


def test_product_scenario():
    tape = Tape()
    x = Tensor([[2.0]], tape)
    y = Tensor([[3.0]], tape)
    z = x * y
    np.testing.assert_array_equal(z.get_value(), [[6.0]])
    np.testing.assert_array_equal(z.grad().get_value(x), [[3.0]])
    np.testing.assert_array_equal(z.grad().get_value(y), [[2.0]])


def test_forward_values():
    tape = Tape()
    x = Tensor([[6.0, -1.0]], tape)
    y = Tensor([[2.0, 4.0]], tape)
    np.testing.assert_array_equal(add(x, y).value, [[8.0, 3.0]])
    np.testing.assert_array_equal(sub(x, y).value, [[4.0, -5.0]])
    np.testing.assert_array_equal(mul(x, y).value, [[12.0, -4.0]])
    np.testing.assert_array_equal(div(x, y).value, [[3.0, -0.25]])
    np.testing.assert_allclose(sigmoid(x).value, 1.0 / (1.0 + np.exp(-x.value)))


def test_stored_local_derivatives():
    tape = Tape()
    x = Tensor([[6.0, -1.0]], tape)
    y = Tensor([[2.0, 4.0]], tape)
    node = tape[sub(x, y).index]
    assert node.kind is OpKind.ELEMENTWISE
    assert node.dependencies == (x.index, y.index)
    np.testing.assert_array_equal(node.values[0], [[1.0, 1.0]])
    np.testing.assert_array_equal(node.values[1], [[-1.0, -1.0]])

    node = tape[div(x, y).index]
    np.testing.assert_array_equal(node.values[0], [[0.5, 0.25]])
    np.testing.assert_array_equal(node.values[1], [[-1.5, 0.0625]])


def test_division_by_zero_propagates():
    tape = Tape()
    x = Tensor([[1.0, 0.0]], tape)
    y = Tensor([[0.0, 0.0]], tape)
    z = div(x, y)
    assert z.is_valid()
    assert np.isinf(z.value[0, 0])
    assert np.isnan(z.value[0, 1])


def test_shape_mismatch_returns_invalid():
    tape = Tape()
    x = Tensor(np.ones((2, 3)), tape)
    y = Tensor(np.ones((3, 2)), tape)
    size = len(tape)
    for op in (add, sub, mul, div):
        out = op(x, y)
        assert out.tape is None
        assert out.shape == (0, 0)
        assert isinstance(out.error, ShapeMismatchError)
    assert len(tape) == size


def test_reused_operand_accumulates():
    tape = Tape()
    x = Tensor([[3.0, -2.0]], tape)
    g = (x * x + x).grad()
    np.testing.assert_array_equal(g.get_value(x), [[7.0, -3.0]])
