import numpy as np
import pytest

from matnet.data import available_datasets, get_dataset, register_dataset
from matnet.data.registry import DatasetSpec, DataSpec
from matnet.data.synthetic import make_mean_dataset
from matnet.data.utils import ensure_2d, standardize


def test_builtin_datasets_registered():
    assert {"csv_regression", "mean", "sine"} <= set(available_datasets())


def test_mean_dataset_targets_are_row_means():
    spec = get_dataset("mean", n_points=50, seed=1)
    assert spec.inputs.shape == (50, 2)
    assert spec.outputs.shape == (50, 1)
    assert len(spec) == 50
    assert np.allclose(spec.outputs[:, 0], spec.inputs.mean(axis=1))
    assert spec.inputs.min() >= 0.0 and spec.inputs.max() < 10.0
    assert spec.provenance["seed"] == 1


def test_mean_dataset_integer_mode():
    x, y = make_mean_dataset(n_points=30, seed=2, integers=True)
    assert np.array_equal(x, np.floor(x))
    assert set(np.unique(x)) <= set(range(10))
    assert np.allclose(y[:, 0], x.mean(axis=1))


def test_mean_dataset_is_seeded():
    a = get_dataset("mean", n_points=8, seed=3)
    b = get_dataset("mean", n_points=8, seed=3)
    assert np.array_equal(a.inputs, b.inputs)


def test_sine_dataset_shape():
    spec = get_dataset("sine", n_points=16)
    assert spec.inputs.shape == (16, 1)
    assert spec.data_spec.d_in == 1 and spec.data_spec.d_out == 1


def test_csv_regression_fixture():
    spec = get_dataset("csv_regression")
    assert spec.data_spec.d_in == 2
    assert spec.outputs.shape[1] == 1
    assert np.allclose(spec.outputs[:, 0], spec.inputs.mean(axis=1))


def test_csv_regression_custom_file(tmp_path):
    path = tmp_path / "data.csv"
    path.write_text("a,b,y\n1,2,3\n4,5,9\n7,8,15\n")
    spec = get_dataset("csv_regression", csv_path=path, target_col="y", standardize_inputs=True)
    assert spec.inputs.shape == (3, 2)
    assert np.allclose(spec.inputs.mean(axis=0), 0.0)
    assert spec.outputs[:, 0].tolist() == [3.0, 9.0, 15.0]
    assert "inputs" in spec.data_spec.normalization


def test_csv_regression_missing_target(tmp_path):
    path = tmp_path / "data.csv"
    path.write_text("a,b\n1,2\n")
    with pytest.raises(KeyError):
        get_dataset("csv_regression", csv_path=path, target_col="y")


def test_unknown_dataset():
    with pytest.raises(KeyError, match="Available datasets"):
        get_dataset("imagenet")


def test_registry_validates_factories():
    def _bad(**_):
        return DatasetSpec(
            name="bad",
            inputs=np.ones((3, 2)),
            outputs=np.ones((2, 1)),
            data_spec=DataSpec(d_in=2, d_out=1),
            provenance={},
        )

    register_dataset("unit-bad", _bad)
    with pytest.raises(ValueError, match="rows"):
        get_dataset("unit-bad")


def test_utils():
    assert ensure_2d(np.arange(3)).shape == (3, 1)
    scaled, mean, std = standardize(np.array([[1.0, 5.0], [3.0, 5.0]]))
    assert np.allclose(scaled[:, 0], [-1.0, 1.0])
    assert np.allclose(scaled[:, 1], 0.0)
    assert std[0, 1] == 1.0
