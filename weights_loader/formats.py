"""
Format descriptors attached to loaded parameter tensors.

A descriptor records which logical dimensions span the rows and which span
the columns of a matrix, outer to inner, together with the size of each
dimension.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Tuple

from .errors import ShapeMismatchError


class Dimension(Enum):
    OUTPUT_DEPTH = "output_depth"
    INPUT_DEPTH = "input_depth"
    FILTER_HEIGHT = "filter_height"
    FILTER_WIDTH = "filter_width"


class Orientation(Enum):
    ROWS_SPAN_OUTPUT_DIMENSIONS = "rows_span_output_dimensions"
    COLUMN_VECTOR = "column_vector"


class FormatKind(Enum):
    KERNEL = "kernel"
    VECTOR = "vector"
    BIAS = "bias"


class ParameterKind(Enum):
    CONV_KERNEL = "conv_kernel"
    CONV_BIAS = "conv_bias"
    BN_GAMMA = "bn_gamma"
    BN_BETA = "bn_beta"
    BN_MOVING_MEAN = "bn_moving_mean"
    BN_MOVING_VARIANCE = "bn_moving_variance"


@dataclass(frozen=True)
class FormatDescriptor:
    kind: FormatKind
    row_dimensions: Tuple[Dimension, ...]
    column_dimensions: Tuple[Dimension, ...]
    orientation: Orientation
    sizes: Tuple[Tuple[Dimension, int], ...] = ()

    def size(self, dimension: Dimension) -> int:
        return dict(self.sizes)[dimension]

    def _count(self, dimensions: Tuple[Dimension, ...]) -> int:
        return math.prod(self.size(d) for d in dimensions)

    @property
    def row_count(self) -> int:
        return self._count(self.row_dimensions)

    @property
    def column_count(self) -> int:
        return self._count(self.column_dimensions)


def kernel_format(width: int, height: int, input_depth: int, output_depth: int) -> FormatDescriptor:
    sizes = (
        (Dimension.OUTPUT_DEPTH, output_depth),
        (Dimension.INPUT_DEPTH, input_depth),
        (Dimension.FILTER_HEIGHT, height),
        (Dimension.FILTER_WIDTH, width),
    )
    if width == 1 and height == 1:
        columns = (Dimension.INPUT_DEPTH,)
    else:
        columns = (Dimension.INPUT_DEPTH, Dimension.FILTER_HEIGHT, Dimension.FILTER_WIDTH)
    return FormatDescriptor(
        FormatKind.KERNEL,
        (Dimension.OUTPUT_DEPTH,),
        columns,
        Orientation.ROWS_SPAN_OUTPUT_DIMENSIONS,
        sizes,
    )


def vector_format(output_depth: int, kind: FormatKind = FormatKind.VECTOR) -> FormatDescriptor:
    if kind is FormatKind.KERNEL:
        raise ValueError("vector formats are tagged VECTOR or BIAS")
    return FormatDescriptor(
        kind,
        (Dimension.OUTPUT_DEPTH,),
        (),
        Orientation.COLUMN_VECTOR,
        ((Dimension.OUTPUT_DEPTH, output_depth),),
    )


@dataclass(frozen=True)
class OrientedMatrix:
    """A 2-D row-major matrix plus the format describing its axes."""

    matrix: Any
    format: FormatDescriptor
    parameter: Optional[ParameterKind] = None

    def __post_init__(self):
        expected = (self.format.row_count, self.format.column_count)
        shape = tuple(self.matrix.shape)
        if shape != expected:
            raise ShapeMismatchError(
                f"matrix shape {shape} does not match format {expected}"
            )

    @property
    def rows(self) -> int:
        return self.matrix.shape[0]

    @property
    def columns(self) -> int:
        return self.matrix.shape[1]
