"""Configuration for the weights store and converter."""

# Top-level directory of every store.
DEFAULT_NAMESPACE = "yolov2weights"

# Element type persisted in the store. Part of the version tag.
STORE_DTYPE = "<f4"

# Bump when the on-disk encoding changes; old stores then resolve as missing.
FORMAT_REVISION = 1

WEIGHTS_SUFFIX = ".npy"

DEFAULT_BACKEND = "numpy"

# Axis permutation taking a 4-D kernel in the given layout to (H, W, I, O).
KERNEL_LAYOUTS = {
    "oihw": (2, 3, 1, 0),  # PyTorch
    "ohwi": (1, 2, 3, 0),  # MLX
    "hwio": (0, 1, 2, 3),  # TensorFlow / Keras / Darknet exports
}

DEFAULT_LAYOUT = "oihw"

# Checkpoint key artifacts removed before writing.
KEY_PREFIXES_TO_STRIP = ["module."]
