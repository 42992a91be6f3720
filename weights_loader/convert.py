#!/usr/bin/env python3
"""
Checkpoint converter for weights-loader.
Writes PyTorch (.pth/.pt) and NumPy (.npz) checkpoints into a versioned
flat-array store. 4-D kernels are permuted into (H, W, I, O) store order.
"""

import argparse
import os
import sys

import numpy as np
from rich.console import Console
from rich.theme import Theme
from tqdm import tqdm

from .config import DEFAULT_LAYOUT, DEFAULT_NAMESPACE, KERNEL_LAYOUTS, KEY_PREFIXES_TO_STRIP
from .errors import WeightsError
from .reshape import to_store_order
from .store import FileWeightSource, RawWeightStore

# Optional torch for .pth support
try:
    import torch
except ImportError:
    torch = None

custom_theme = Theme({
    "info": "cyan",
    "warning": "magenta",
    "danger": "bold red",
    "success": "bold green",
})
console = Console(theme=custom_theme)

TORCH_EXTENSIONS = [".pth", ".pt", ".tar"]


def convert_tensor(tensor):
    """Converts a tensor/array to a numpy array, keeping its dtype."""
    if torch is not None and isinstance(tensor, torch.Tensor):
        return tensor.cpu().detach().numpy()
    return np.asarray(tensor)


def clean_key(key):
    for prefix in KEY_PREFIXES_TO_STRIP:
        key = key.replace(prefix, "")
    return key


def dequantize(state):
    """
    Folds ``<key>_int8`` / ``<key>_scale`` pairs back into float ``<key>``
    entries. Other entries pass through unchanged.
    """
    out = {}
    for k, v in state.items():
        if k.endswith("_scale") and f"{k[:-len('_scale')]}_int8" in state:
            continue
        if k.endswith("_int8"):
            base = k[:-len("_int8")]
            scale = state.get(f"{base}_scale")
            if scale is not None:
                out[base] = v.astype(np.float32) * scale.astype(np.float32)
                continue
        out[k] = v
    return out


def load_checkpoint(filepath):
    ext = os.path.splitext(filepath)[1].lower()
    if ext == ".npz":
        with np.load(filepath, allow_pickle=False) as data:
            return {k: data[k] for k in data.files}
    if ext in TORCH_EXTENSIONS:
        if torch is None:
            raise RuntimeError("'torch' not installed. Run `pip install torch` to convert .pth files.")
        checkpoint = torch.load(filepath, map_location="cpu")
        if isinstance(checkpoint, dict) and "state_dict" in checkpoint:
            checkpoint = checkpoint["state_dict"]
        if not isinstance(checkpoint, dict):
            raise ValueError(f"Unknown checkpoint format in {filepath}")
        return {k: convert_tensor(v) for k, v in checkpoint.items()}
    raise ValueError(f"Unsupported checkpoint type '{ext}'")


def convert_checkpoint(filepath, dest, namespace=DEFAULT_NAMESPACE, layout=DEFAULT_LAYOUT):
    """Writes every floating tensor of ``filepath`` into the store at ``dest``. Returns the names written."""
    state = dequantize({clean_key(k): convert_tensor(v) for k, v in load_checkpoint(filepath).items()})
    store = RawWeightStore(FileWeightSource(dest), namespace=namespace)

    written = []
    for name, value in tqdm(sorted(state.items()), desc="Converting", unit="tensor"):
        if not np.issubdtype(value.dtype, np.floating):
            console.print(f"   [warning]Skipping {name} ({value.dtype})[/warning]")
            continue
        flat = to_store_order(value, layout) if value.ndim == 4 else value.ravel()
        store.put(name, flat)
        written.append(name)
    return written


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Convert checkpoints into a weights-loader store")
    p.add_argument("input", help="Checkpoint file (.npz, .pth, .pt)")
    p.add_argument("--dest", default="weights", help="Store root directory")
    p.add_argument("--namespace", default=DEFAULT_NAMESPACE, help="Store namespace")
    p.add_argument(
        "--layout",
        choices=sorted(KERNEL_LAYOUTS),
        default=DEFAULT_LAYOUT,
        help="Axis order of 4-D kernels in the checkpoint",
    )
    return p.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    if not os.path.isfile(args.input):
        console.print(f"[danger]❌ Checkpoint not found: {args.input}[/danger]")
        return 1

    console.print(f"[info]Processing {args.input}[/info]")
    try:
        written = convert_checkpoint(args.input, args.dest, namespace=args.namespace, layout=args.layout)
    except (WeightsError, ValueError, RuntimeError, OSError) as e:
        console.print(f"[danger]❌ Failed to convert {args.input}: {e}[/danger]")
        return 1

    console.print(f"[success]✅ Saved {len(written)} tensors to {args.dest}/{args.namespace}[/success]")
    return 0


if __name__ == "__main__":
    sys.exit(main())
