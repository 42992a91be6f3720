"""Typed getters for pretrained convolution and batch-norm parameters."""

from __future__ import annotations

import dataclasses
from typing import Callable, Optional

from .backends import get_backend
from .config import DEFAULT_BACKEND, DEFAULT_NAMESPACE
from .formats import FormatKind, OrientedMatrix, ParameterKind
from .reshape import reshape_kernel, reshape_vector
from .store import FileWeightSource, PackageWeightSource, RawWeightStore

VECTOR_KINDS = {
    ParameterKind.CONV_BIAS: FormatKind.BIAS,
    ParameterKind.BN_BETA: FormatKind.BIAS,
    ParameterKind.BN_GAMMA: FormatKind.VECTOR,
    ParameterKind.BN_MOVING_MEAN: FormatKind.VECTOR,
    ParameterKind.BN_MOVING_VARIANCE: FormatKind.VECTOR,
}


class WeightsAccessor:
    def __init__(
        self,
        store: RawWeightStore,
        backend: str = DEFAULT_BACKEND,
        logger: Optional[Callable[[str], None]] = None,
    ):
        self.store = store
        self.backend = backend
        self._convert = get_backend(backend)
        self.logger = logger

    def _fetch(self, name: str):
        if self.logger:
            self.logger(f"Deserializing weights: {name}")
        return self.store.fetch(name)

    def _finish(self, oriented: OrientedMatrix, parameter: ParameterKind) -> OrientedMatrix:
        return dataclasses.replace(oriented, matrix=self._convert(oriented.matrix), parameter=parameter)

    def _vector(self, name: str, output_depth: int, parameter: ParameterKind) -> OrientedMatrix:
        oriented = reshape_vector(self._fetch(name), output_depth, VECTOR_KINDS[parameter])
        return self._finish(oriented, parameter)

    def get_convolutional_layer_weights(
        self, name: str, width: int, height: int, input_depth: int, output_depth: int
    ) -> OrientedMatrix:
        oriented = reshape_kernel(self._fetch(name), width, height, input_depth, output_depth)
        return self._finish(oriented, ParameterKind.CONV_KERNEL)

    def get_convolutional_layer_biases(self, name: str, output_depth: int) -> OrientedMatrix:
        return self._vector(name, output_depth, ParameterKind.CONV_BIAS)

    def get_batch_norm_layer_gamma(self, name: str, output_depth: int) -> OrientedMatrix:
        return self._vector(name, output_depth, ParameterKind.BN_GAMMA)

    def get_batch_norm_layer_beta(self, name: str, output_depth: int) -> OrientedMatrix:
        return self._vector(name, output_depth, ParameterKind.BN_BETA)

    def get_batch_norm_layer_moving_mean(self, name: str, output_depth: int) -> OrientedMatrix:
        return self._vector(name, output_depth, ParameterKind.BN_MOVING_MEAN)

    def get_batch_norm_layer_moving_variance(self, name: str, output_depth: int) -> OrientedMatrix:
        return self._vector(name, output_depth, ParameterKind.BN_MOVING_VARIANCE)


def get_loader(
    backend: str = DEFAULT_BACKEND,
    package: Optional[str] = None,
    root: Optional[str] = None,
    namespace: str = DEFAULT_NAMESPACE,
    logger: Optional[Callable[[str], None]] = None,
) -> WeightsAccessor:
    """Build an accessor over packaged resources, or a directory when no package is given."""
    if package is not None:
        source = PackageWeightSource(package)
    else:
        source = FileWeightSource(root or ".")
    return WeightsAccessor(RawWeightStore(source, namespace=namespace), backend=backend, logger=logger)
