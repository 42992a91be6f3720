"""
Layout transforms from flat stored weights to oriented matrices.

Kernels are stored flattened in (height, width, input_depth, output_depth)
order with output depth varying fastest. Downstream layers want one row per
output channel and columns nested (input_depth, height, width), width
fastest. The conversion is a pure index permutation; values are copied and
never altered.
"""

from __future__ import annotations

import numbers

import numpy as np

from .config import DEFAULT_LAYOUT, KERNEL_LAYOUTS
from .errors import ShapeMismatchError
from .formats import FormatKind, OrientedMatrix, kernel_format, vector_format

LOAD_DTYPE = np.float32


def _as_flat(flat) -> np.ndarray:
    weights = np.asarray(flat, dtype=LOAD_DTYPE)
    if weights.ndim != 1:
        raise ShapeMismatchError(f"Expected flat weights, got shape {weights.shape}")
    return weights


def _check_dims(**dims: int):
    for name, value in dims.items():
        if isinstance(value, bool) or not isinstance(value, numbers.Integral) or value < 1:
            raise ShapeMismatchError(f"{name} must be a positive integer, got {value!r}")


def reshape_kernel(flat, width: int, height: int, input_depth: int, output_depth: int) -> OrientedMatrix:
    """
    Reorient a stored convolution kernel.

    Source index ``o + O*(d + D*(w + W*h))`` lands at row ``o``,
    column ``d*H*W + h*W + w`` of the returned ``(O, D*H*W)`` matrix.
    """
    _check_dims(width=width, height=height, input_depth=input_depth, output_depth=output_depth)
    weights = _as_flat(flat)
    expected = width * height * input_depth * output_depth
    if weights.size != expected:
        raise ShapeMismatchError(
            f"Kernel {height}x{width}x{input_depth}x{output_depth} needs {expected} values, got {weights.size}"
        )

    # (H, W, D, O) -> (O, D, H, W); for 1x1 kernels this is the transpose of the (D, O) view
    hwio = weights.reshape(height, width, input_depth, output_depth)
    matrix = np.ascontiguousarray(np.transpose(hwio, (3, 2, 0, 1))).reshape(
        output_depth, input_depth * height * width
    )
    return OrientedMatrix(matrix, kernel_format(width, height, input_depth, output_depth))


def reshape_vector(flat, output_depth: int, kind: FormatKind = FormatKind.VECTOR) -> OrientedMatrix:
    """Wrap per-channel scalars into an ``(output_depth, 1)`` column vector."""
    _check_dims(output_depth=output_depth)
    weights = _as_flat(flat)
    if weights.size != output_depth:
        raise ShapeMismatchError(f"Vector needs {output_depth} values, got {weights.size}")
    return OrientedMatrix(weights.reshape(output_depth, 1).copy(), vector_format(output_depth, kind))


def to_store_order(kernel, layout: str = DEFAULT_LAYOUT) -> np.ndarray:
    """Flatten a 4-D checkpoint kernel into (H, W, I, O) store order."""
    if layout not in KERNEL_LAYOUTS:
        raise ValueError(f"Unknown kernel layout '{layout}'. Available: {', '.join(KERNEL_LAYOUTS)}")
    w = np.asarray(kernel, dtype=LOAD_DTYPE)
    if w.ndim != 4:
        raise ShapeMismatchError(f"Expected a 4-D kernel, got shape {w.shape}")
    return np.ascontiguousarray(np.transpose(w, KERNEL_LAYOUTS[layout])).ravel()
