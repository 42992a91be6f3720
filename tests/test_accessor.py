"""Tests for the typed weights accessor."""

import numpy as np
import pytest

from weights_loader import (
    Dimension,
    FormatKind,
    NotFoundError,
    OrientedMatrix,
    ParameterKind,
    ShapeMismatchError,
    WeightsAccessor,
    get_loader,
)

VECTOR_GETTERS = [
    ("get_convolutional_layer_biases", ParameterKind.CONV_BIAS, FormatKind.BIAS),
    ("get_batch_norm_layer_beta", ParameterKind.BN_BETA, FormatKind.BIAS),
    ("get_batch_norm_layer_gamma", ParameterKind.BN_GAMMA, FormatKind.VECTOR),
    ("get_batch_norm_layer_moving_mean", ParameterKind.BN_MOVING_MEAN, FormatKind.VECTOR),
    ("get_batch_norm_layer_moving_variance", ParameterKind.BN_MOVING_VARIANCE, FormatKind.VECTOR),
]


@pytest.fixture
def kernel(store):
    flat = np.arange(3 * 3 * 2 * 4, dtype=np.float32)
    store.put("conv1", flat)
    return flat


class TestConvolutionalWeights:
    def test_oriented_kernel(self, accessor, kernel):
        result = accessor.get_convolutional_layer_weights("conv1", 3, 3, 2, 4)

        assert isinstance(result, OrientedMatrix)
        assert result.parameter is ParameterKind.CONV_KERNEL
        assert result.format.kind is FormatKind.KERNEL
        assert (result.rows, result.columns) == (4, 18)
        expected = kernel.reshape(3, 3, 2, 4).transpose(3, 2, 0, 1).reshape(4, 18)
        np.testing.assert_array_equal(result.matrix, expected)

    def test_pointwise(self, accessor, store):
        store.put("conv2", np.arange(6))
        result = accessor.get_convolutional_layer_weights("conv2", 1, 1, 3, 2)

        assert result.format.column_dimensions == (Dimension.INPUT_DEPTH,)
        np.testing.assert_array_equal(result.matrix, np.arange(6).reshape(3, 2).T)

    def test_wrong_dimensions(self, accessor, kernel):
        with pytest.raises(ShapeMismatchError):
            accessor.get_convolutional_layer_weights("conv1", 3, 3, 2, 5)

    def test_result_is_owned_by_caller(self, accessor, kernel):
        result = accessor.get_convolutional_layer_weights("conv1", 3, 3, 2, 4)
        result.matrix[0, 0] = 100.0

        again = accessor.get_convolutional_layer_weights("conv1", 3, 3, 2, 4)
        assert again.matrix[0, 0] == 0.0


class TestVectors:
    @pytest.mark.parametrize("getter,parameter,kind", VECTOR_GETTERS)
    def test_column_vector(self, accessor, store, getter, parameter, kind):
        values = np.array([0.5, -1.0, 2.0, 3.5], dtype=np.float32)
        store.put("bn1", values)
        result = getattr(accessor, getter)("bn1", 4)

        assert result.parameter is parameter
        assert result.format.kind is kind
        assert result.matrix.shape == (4, 1)
        np.testing.assert_array_equal(result.matrix[:, 0], values)

    @pytest.mark.parametrize("getter,parameter,kind", VECTOR_GETTERS)
    def test_wrong_length(self, accessor, store, getter, parameter, kind):
        store.put("bn1", np.ones(4))
        with pytest.raises(ShapeMismatchError):
            getattr(accessor, getter)("bn1", 5)

    @pytest.mark.parametrize("getter,parameter,kind", VECTOR_GETTERS)
    def test_missing(self, accessor, getter, parameter, kind):
        with pytest.raises(NotFoundError):
            getattr(accessor, getter)("bn9", 4)


def test_missing_kernel(accessor):
    with pytest.raises(NotFoundError):
        accessor.get_convolutional_layer_weights("conv9", 3, 3, 2, 4)


def test_logger_receives_names(store, kernel):
    lines = []
    WeightsAccessor(store, logger=lines.append).get_convolutional_layer_weights("conv1", 3, 3, 2, 4)
    assert lines == ["Deserializing weights: conv1"]


def test_numpy_backend_is_writable_float32(accessor, kernel):
    m = accessor.get_convolutional_layer_weights("conv1", 3, 3, 2, 4).matrix
    assert isinstance(m, np.ndarray)
    assert m.dtype == np.float32
    assert m.flags.writeable and m.flags.c_contiguous


def test_unknown_backend(store):
    with pytest.raises(ValueError, match="Unknown backend"):
        WeightsAccessor(store, backend="jblas")


def test_mlx_backend(store, kernel):
    mx = pytest.importorskip("mlx.core")
    result = WeightsAccessor(store, backend="mlx").get_convolutional_layer_weights("conv1", 3, 3, 2, 4)

    assert isinstance(result.matrix, mx.array)
    assert tuple(result.matrix.shape) == (4, 18)


class TestGetLoader:
    def test_directory_store(self, tmp_path, store, kernel):
        loader = get_loader(root=str(tmp_path))
        assert loader.get_convolutional_layer_weights("conv1", 3, 3, 2, 4).rows == 4

    def test_namespace(self, tmp_path):
        loader = get_loader(root=str(tmp_path), namespace="darknet")
        assert loader.store.resolve("conv1").startswith("darknet/")
