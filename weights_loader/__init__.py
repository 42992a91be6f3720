"""Load pretrained convolution and batch-norm weights in inference layout."""

from .accessor import WeightsAccessor, get_loader
from .errors import DecodeError, NotFoundError, ShapeMismatchError, WeightsError
from .formats import (
    Dimension,
    FormatDescriptor,
    FormatKind,
    Orientation,
    OrientedMatrix,
    ParameterKind,
)
from .reshape import reshape_kernel, reshape_vector, to_store_order
from .store import (
    FileWeightSource,
    HubWeightSource,
    PackageWeightSource,
    RawWeightStore,
    version_tag,
)

__all__ = [
    "WeightsAccessor",
    "get_loader",
    "RawWeightStore",
    "FileWeightSource",
    "PackageWeightSource",
    "HubWeightSource",
    "version_tag",
    "reshape_kernel",
    "reshape_vector",
    "to_store_order",
    "Dimension",
    "FormatDescriptor",
    "FormatKind",
    "Orientation",
    "OrientedMatrix",
    "ParameterKind",
    "WeightsError",
    "NotFoundError",
    "DecodeError",
    "ShapeMismatchError",
]
