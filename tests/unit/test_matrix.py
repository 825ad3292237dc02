import copy

import numpy as np
import pytest

from matnet.core.errors import DimensionMismatchError
from matnet.core.matrix import FLOAT_MAX, Matrix, as_matrix, elementwise


def _m(rows):
    return Matrix.from_array(rows)


def test_explicit_construction_is_zero_filled():
    m = Matrix(2, 3)
    assert m.shape == (2, 3)
    assert m.size == 6
    assert m.to_list() == [[0.0, 0.0, 0.0], [0.0, 0.0, 0.0]]


@pytest.mark.parametrize("height,width", [(0, 1), (1, 0), (-2, 3)])
def test_non_positive_dimensions_rejected(height, width):
    with pytest.raises(ValueError):
        Matrix(height, width)


def test_from_array_rejects_ragged_and_empty():
    with pytest.raises(ValueError):
        Matrix.from_array([1.0, 2.0])
    with pytest.raises(ValueError):
        Matrix.from_array([[]])


def test_from_array_copies_input():
    source = np.ones((2, 2))
    m = Matrix.from_array(source)
    source[0, 0] = 5.0
    assert m[0, 0] == 1.0


def test_generator_and_supplier_constructors():
    m = Matrix.from_function(2, 3, lambda r, c: 10 * r + c)
    assert m.to_list() == [[0, 1, 2], [10, 11, 12]]

    counter = iter(range(6))
    s = Matrix.from_supplier(2, 3, lambda: next(counter))
    assert s.to_list() == [[0, 1, 2], [3, 4, 5]]


def test_copy_is_independent():
    m = _m([[1, 2], [3, 4]])
    clone = m.copy()
    clone.set(0, 0, 9.0)
    assert m[0, 0] == 1.0
    assert copy.deepcopy(m) == m
    assert copy.copy(m) is not m


def test_set_returns_previous_value():
    m = _m([[1, 2]])
    assert m.set(0, 1, 7.0) == 2.0
    assert m.get(0, 1) == 7.0
    m[0, 0] = 3.0
    assert m[0, 0] == 3.0


def test_data_view_writes_through():
    m = Matrix(1, 2)
    m.data[0, 1] = 4.0
    assert m[0, 1] == 4.0


def test_fill_variants():
    m = Matrix(2, 2)
    m.fill(1.5)
    assert list(m) == [1.5] * 4
    m.fill_with(lambda r, c: r - c)
    assert m.to_list() == [[0, -1], [1, 0]]


def test_assign_checks_shape():
    m = Matrix(2, 2)
    m.assign(np.eye(2))
    assert m == _m([[1, 0], [0, 1]])
    with pytest.raises(DimensionMismatchError):
        m.assign(np.ones((3, 2)))


def test_add_then_subtract_round_trips():
    rng = np.random.default_rng(0)
    a = _m(rng.standard_normal((3, 4)))
    b = _m(rng.standard_normal((3, 4)))
    assert (a + b - b).allclose(a)
    assert a.add(b).subtract(b).allclose(a)


def test_double_transpose_is_identity():
    a = _m([[1, 2, 3], [4, 5, 6]])
    assert a.transpose().shape == (3, 2)
    assert a.T.T == a


def test_matmul_values_and_shape_check():
    a = _m([[1, 2], [3, 4]])
    b = _m([[5], [6]])
    assert (a @ b).to_list() == [[17], [39]]
    with pytest.raises(DimensionMismatchError):
        b.matmul(a)


@pytest.mark.parametrize(
    "operation",
    ["add", "subtract", "multiply_elementwise", "divide_elementwise"],
)
def test_elementwise_operations_require_equal_shapes(operation):
    a = Matrix(2, 2)
    b = Matrix(2, 3)
    with pytest.raises(DimensionMismatchError):
        getattr(a, operation)(b)


def test_scalar_and_elementwise_products():
    a = _m([[1, -2], [3, 4]])
    assert (a * 2).to_list() == [[2, -4], [6, 8]]
    assert (0.5 * a).to_list() == [[0.5, -1], [1.5, 2]]
    assert (a * a).to_list() == [[1, 4], [9, 16]]
    assert (a / a).to_list() == [[1, 1], [1, 1]]
    assert (-a).to_list() == [[-1, 2], [-3, -4]]


def test_division_by_zero_follows_ieee():
    a = _m([[1.0, 0.0]])
    b = _m([[0.0, 0.0]])
    result = a / b
    assert result[0, 0] == float("inf")
    assert np.isnan(result[0, 1])


def test_operations_do_not_share_storage():
    a = _m([[1, 2]])
    b = a.add(Matrix(1, 2))
    b.set(0, 0, 100.0)
    assert a[0, 0] == 1.0


def test_column_sums_and_sum():
    a = _m([[1, 2], [3, 4], [5, 6]])
    assert a.column_sums().to_list() == [[9, 12]]
    assert a.sum() == 21.0


def test_apply_with_scalar_callable_is_vectorised():
    a = _m([[1, 4], [9, 16]])
    roots = a.apply(lambda x: x**0.5)
    assert roots.to_list() == [[1, 2], [3, 4]]
    assert a.to_list() == [[1, 4], [9, 16]]


def test_apply_with_operand_pairs_elements():
    a = _m([[1, 2]])
    b = _m([[10, 20]])
    assert a.apply(lambda x, y: x * 10 + y, b).to_list() == [[20, 40]]
    with pytest.raises(DimensionMismatchError):
        a.apply(lambda x, y: x, Matrix(2, 2))


def test_elementwise_marker_passes_whole_array():
    calls = []

    @elementwise
    def double(x):
        calls.append(x.shape)
        return 2 * x

    _m([[1, 2], [3, 4]]).apply(double)
    assert calls == [(2, 2)]


def test_for_each_mutates_in_place():
    a = _m([[1, 2]])
    a.for_each(lambda x: x + 1)
    assert a.to_list() == [[2, 3]]
    a.for_each(np.multiply, _m([[2, 2]]))
    assert a.to_list() == [[4, 6]]


def test_apply_broadcast_wraps_indices():
    rows = _m([[1, 2, 3], [4, 5, 6]])
    bias = _m([[10, 20, 30]])
    assert rows.apply_broadcast(bias, np.add).to_list() == [[11, 22, 33], [14, 25, 36]]

    column = _m([[1], [2]])
    wide = _m([[0, 10]])
    assert column.apply_broadcast(wide, lambda x, y: x + y).to_list() == [[1, 11], [2, 12]]


def test_randomize_respects_bounds_and_seed():
    a = Matrix(10, 10)
    a.randomize(-1.0, 1.0, rng=3)
    values = np.asarray(a)
    assert values.min() >= -1.0 and values.max() < 1.0

    b = Matrix(10, 10)
    b.randomize(-1.0, 1.0, rng=3)
    assert a == b


def test_randomize_default_range_is_finite():
    a = Matrix(4, 4)
    a.randomize(rng=0)
    values = np.asarray(a)
    assert np.all(np.isfinite(values))
    assert np.all(np.abs(values) <= FLOAT_MAX / 2)


def test_equality_and_conversion():
    a = _m([[1, 2]])
    assert a == _m([[1, 2]])
    assert a != _m([[1, 3]])
    assert a != _m([[1], [2]])
    assert np.array_equal(np.asarray(a), np.array([[1.0, 2.0]]))
    assert as_matrix(a) is a
    assert as_matrix([[1, 2]]) == a
    assert "1x2" in repr(a)
