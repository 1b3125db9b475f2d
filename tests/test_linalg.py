import numpy as np

from wengert_ad import Tape, Tensor, mat_prod, squared_norm, sigmoid, ShapeMismatchError
from wengert_ad.core.node import OpKind


def test_mat_prod_forward_and_locals():
    tape = Tape()
    a = Tensor([[1.0, 2.0], [3.0, 4.0], [5.0, 6.0]], tape)
    b = Tensor([[1.0, 0.0, 2.0], [0.0, 1.0, 1.0]], tape)
    c = mat_prod(a, b)
    np.testing.assert_array_equal(c.value, a.value @ b.value)
    assert c.shape == (3, 3)
    node = tape[c.index]
    assert node.kind is OpKind.MATRIX_PRODUCT
    np.testing.assert_array_equal(node.values[0], b.value.T)
    np.testing.assert_array_equal(node.values[1], a.value.T)


def test_mat_prod_gradient_of_squared_norm():
    rng = np.random.default_rng(7)
    av = rng.normal(size=(3, 4))
    bv = rng.normal(size=(4, 2))
    tape = Tape()
    a = Tensor(av, tape)
    b = Tensor(bv, tape)
    c = mat_prod(a, b)
    g = squared_norm(c).grad()
    dc = 2.0 * (av @ bv)
    np.testing.assert_allclose(g.get_value(c), dc)
    np.testing.assert_allclose(g.get_value(a), dc @ bv.T)
    np.testing.assert_allclose(g.get_value(b), av.T @ dc)


def test_mat_prod_inner_dimension_mismatch():
    tape = Tape()
    a = Tensor(np.ones((2, 3)), tape)
    b = Tensor(np.ones((2, 3)), tape)
    out = mat_prod(a, b)
    assert out.tape is None
    assert out.shape == (0, 0)
    assert isinstance(out.error, ShapeMismatchError)
    assert tape.elementwise_only is True


def test_squared_norm_value_and_gradient():
    tape = Tape()
    x = Tensor([[1.0, -2.0], [3.0, 0.5]], tape)
    n = squared_norm(x)
    assert n.shape == (1, 1)
    np.testing.assert_allclose(n.value, [[14.25]])
    np.testing.assert_array_equal(n.grad().get_value(x), 2.0 * x.value)


def test_mlp_layer_gradient_matches_finite_differences():
    rng = np.random.default_rng(3)
    wv = rng.normal(size=(2, 3))
    xv = rng.normal(size=(3, 1))

    def loss(w):
        tape = Tape()
        return float(squared_norm(sigmoid(mat_prod(Tensor(w, tape), Tensor(xv, tape)))).value[0, 0])

    tape = Tape()
    w = Tensor(wv, tape)
    out = squared_norm(sigmoid(mat_prod(w, Tensor(xv, tape))))
    got = out.grad().get_value(w)

    eps = 1e-6
    expected = np.zeros_like(wv)
    for pos in np.ndindex(wv.shape):
        plus, minus = wv.copy(), wv.copy()
        plus[pos] += eps
        minus[pos] -= eps
        expected[pos] = (loss(plus) - loss(minus)) / (2 * eps)
    np.testing.assert_allclose(got, expected, rtol=1e-5, atol=1e-7)
