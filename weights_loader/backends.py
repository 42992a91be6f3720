"""Final numeric backends for matrices handed back to callers."""

import numpy as np

try:
    import mlx.core as mx
except ImportError:  # pragma: no cover - optional dependency
    mx = None


def _to_numpy(matrix: np.ndarray) -> np.ndarray:
    return np.array(matrix, dtype=np.float32, order="C")


def _to_mlx(matrix: np.ndarray):
    if mx is None:
        raise RuntimeError("The 'mlx' backend requires mlx. Run `pip install mlx`.")
    return mx.array(matrix)


BACKENDS = {
    "numpy": _to_numpy,
    "mlx": _to_mlx,
}


def get_backend(name: str):
    try:
        return BACKENDS[name]
    except KeyError:
        raise ValueError(f"Unknown backend '{name}'. Available: {', '.join(BACKENDS)}") from None
