import logging

import numpy as np

from wengert_ad import Tape, Tensor, Gradient, backward, add, mul, sigmoid, mat_prod, squared_norm


def test_grad_equals_backward():
    tape = Tape()
    x = Tensor([[1.0, 2.0]], tape)
    y = mul(x, x)
    np.testing.assert_array_equal(y.grad().get_value(x), backward(y).get_value(x))


def test_seed_is_ones_for_root():
    tape = Tape()
    x = Tensor([[1.0, 2.0], [3.0, 4.0]], tape)
    g = x.grad()
    np.testing.assert_array_equal(g.get_value(x), np.ones((2, 2)))
    assert len(g) == 1


def test_lookup_after_root_is_empty():
    tape = Tape()
    x = Tensor([[2.0]], tape)
    y = sigmoid(x)
    later = Tensor([[5.0]], tape)
    g = y.grad()
    assert later not in g
    assert g.get_value(later).shape == (0, 0)
    assert y in g and x in g


def test_unreached_node_gets_zeros():
    tape = Tape()
    x = Tensor([[2.0, 3.0]], tape)
    unused = Tensor([[1.0], [1.0], [1.0]], tape)
    y = mul(x, x)
    g = y.grad()
    np.testing.assert_array_equal(g.get_value(unused), np.zeros((3, 1)))
    np.testing.assert_array_equal(g.get_value(x), [[4.0, 6.0]])


def test_other_tape_lookup_is_empty():
    tape, other = Tape(), Tape()
    x = Tensor([[2.0]], tape)
    stranger = Tensor([[2.0]], other)
    g = mul(x, x).grad()
    assert g.get_value(stranger).shape == (0, 0)


def test_invalid_and_stale_roots_give_empty_gradient():
    assert Tensor([[1.0]]).grad().is_empty()
    assert Tensor.invalid().grad().is_empty()

    tape = Tape()
    x = Tensor([[1.0]], tape)
    tape.reset()
    g = x.grad()
    assert g.is_empty()
    assert g.get_value(x).shape == (0, 0)


def test_stale_lookup_is_empty():
    tape = Tape()
    x = Tensor([[1.0]], tape)
    g = mul(x, x).grad()
    tape.reset()
    y = Tensor([[1.0]], tape)
    assert y.index == x.index
    assert g.get_value(y).shape == (0, 0)


def test_empty_gradient():
    g = Gradient()
    assert g.is_empty()
    assert len(g) == 0
    assert g.get_value(Tensor([[1.0]], Tape())).shape == (0, 0)


def test_diamond_accumulates_all_paths():
    tape = Tape()
    x = Tensor([[0.5, -1.5]], tape)
    a = sigmoid(x)
    b = mul(x, x)
    out = squared_norm(add(a, b))
    got = out.grad().get_value(x)

    s = 1.0 / (1.0 + np.exp(-x.value))
    expected = 2.0 * (s + x.value ** 2) * (s * (1.0 - s) + 2.0 * x.value)
    np.testing.assert_allclose(got, expected)


def test_successive_backward_passes_are_independent():
    tape = Tape()
    x = Tensor([[3.0]], tape)
    y = mul(x, x)
    z = mul(y, x)
    gy = y.grad()
    gz = z.grad()
    np.testing.assert_array_equal(gy.get_value(x), [[6.0]])
    np.testing.assert_array_equal(gz.get_value(x), [[27.0]])
    np.testing.assert_array_equal(y.grad().get_value(x), [[6.0]])
    assert gy.get_value(z).shape == (0, 0)


def test_gradient_values_are_read_only():
    tape = Tape()
    x = Tensor([[1.0]], tape)
    g = mul(x, x).grad()
    assert not g.get_value(x).flags.writeable


def test_gradient_keeps_tape_dtype():
    tape = Tape(np.float32)
    x = Tensor([[1.0, 2.0]], tape)
    w = Tensor([[1.0], [2.0]], tape)
    g = squared_norm(mat_prod(x, w)).grad()
    assert g.get_value(x).dtype == np.float32
    assert g.get_value(w).dtype == np.float32


def test_non_scalar_root_after_reduction_warns(caplog):
    tape = Tape()
    x = Tensor([[1.0, 2.0]], tape)
    w = Tensor([[1.0, 0.0], [0.0, 1.0]], tape)
    y = mat_prod(x, w)
    with caplog.at_level(logging.WARNING, logger="wengert_ad"):
        y.grad()
    assert any("non-scalar" in r.getMessage() for r in caplog.records)


def test_scalar_root_after_reduction_does_not_warn(caplog):
    tape = Tape()
    x = Tensor([[1.0, 2.0]], tape)
    with caplog.at_level(logging.WARNING, logger="wengert_ad"):
        squared_norm(x).grad()
    assert not caplog.records
