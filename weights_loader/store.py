"""
Versioned flat-array weight store.

Each tensor lives at ``<namespace>/<version tag>/<name>.npy``. The version
tag hashes the stored element type and format revision, so a store written
with a different encoding resolves as missing instead of being parsed
leniently.
"""

from __future__ import annotations

import hashlib
import importlib.resources
import io
import math
import os
from typing import List, Optional

import numpy as np

from .config import DEFAULT_NAMESPACE, FORMAT_REVISION, STORE_DTYPE, WEIGHTS_SUFFIX
from .errors import DecodeError, NotFoundError

try:
    from huggingface_hub import hf_hub_download, list_repo_files
    from huggingface_hub.utils import EntryNotFoundError, RepositoryNotFoundError, RevisionNotFoundError

    HUB_NOT_FOUND = (EntryNotFoundError, RepositoryNotFoundError, RevisionNotFoundError)
except ImportError:  # pragma: no cover - optional dependency
    hf_hub_download = None
    list_repo_files = None
    HUB_NOT_FOUND = ()


def version_tag(dtype=STORE_DTYPE, revision: int = FORMAT_REVISION) -> str:
    return hashlib.sha1(f"{np.dtype(dtype).str}:{revision}".encode("ascii")).hexdigest()[:16]


HEADER_READERS = {
    (1, 0): np.lib.format.read_array_header_1_0,
    (2, 0): np.lib.format.read_array_header_2_0,
}


def _check_payload_size(stream):
    """
    Read the .npy header and make sure the stream holds as many bytes as the
    declared shape needs. numpy allocates the declared shape before reading
    any data. The stream is rewound afterwards.
    """
    start = stream.tell()
    version = np.lib.format.read_magic(stream)
    if version not in HEADER_READERS:
        raise ValueError(f"Unsupported .npy format version {version}")
    shape, _, dtype = HEADER_READERS[version](stream)
    header_end = stream.tell()
    available = stream.seek(0, io.SEEK_END) - header_end
    needed = math.prod(shape) * dtype.itemsize
    if needed > available:
        raise ValueError(f"Header declares {needed} bytes of data, only {available} present")
    stream.seek(start)


class FileWeightSource:
    """Byte source rooted at a filesystem directory."""

    def __init__(self, root: str = "."):
        self.root = os.fspath(root)

    def _path(self, address: str) -> str:
        return os.path.join(self.root, *address.split("/"))

    def open(self, address: str):
        try:
            return open(self._path(address), "rb")
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError) as exc:
            raise NotFoundError(f"No weights at {address} under {self.root}") from exc

    def create(self, address: str):
        path = self._path(address)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        return open(path, "wb")

    def list(self, prefix: str) -> List[str]:
        directory = self._path(prefix)
        if not os.path.isdir(directory):
            return []
        found = []
        for dirpath, _, filenames in os.walk(directory):
            rel = os.path.relpath(dirpath, directory)
            for f in filenames:
                found.append(f if rel == "." else "/".join(rel.split(os.sep) + [f]))
        return found


class PackageWeightSource:
    """Byte source reading resources packaged inside an importable package."""

    def __init__(self, package: str):
        self.package = package
        self._root = importlib.resources.files(package)

    def _resource(self, address: str):
        resource = self._root
        for part in address.split("/"):
            resource = resource / part
        return resource

    def open(self, address: str):
        resource = self._resource(address)
        if not resource.is_file():
            raise NotFoundError(f"No weights at {address} in package {self.package}")
        return resource.open("rb")

    def list(self, prefix: str) -> List[str]:
        directory = self._resource(prefix)
        if not directory.is_dir():
            return []
        found = []
        pending = [(directory, "")]
        while pending:
            node, head = pending.pop()
            for entry in node.iterdir():
                if entry.is_dir():
                    pending.append((entry, f"{head}{entry.name}/"))
                elif entry.is_file():
                    found.append(f"{head}{entry.name}")
        return found


class HubWeightSource:
    """Byte source downloading store files from a Hugging Face Hub repo."""

    def __init__(self, repo_id: str, revision: Optional[str] = None):
        if hf_hub_download is None:
            raise RuntimeError("HubWeightSource requires huggingface_hub. Run `pip install huggingface_hub`.")
        self.repo_id = repo_id
        self.revision = revision

    def open(self, address: str):
        try:
            path = hf_hub_download(repo_id=self.repo_id, filename=address, revision=self.revision)
        except HUB_NOT_FOUND as exc:
            raise NotFoundError(f"No weights at {address} in {self.repo_id}") from exc
        return open(path, "rb")

    def list(self, prefix: str) -> List[str]:
        files = list_repo_files(self.repo_id, revision=self.revision)
        head = prefix.rstrip("/") + "/"
        return [f[len(head):] for f in files if f.startswith(head)]


class RawWeightStore:
    def __init__(self, source, namespace: str = DEFAULT_NAMESPACE, dtype=STORE_DTYPE):
        self.source = source
        self.namespace = namespace
        self.dtype = np.dtype(dtype)
        self.tag = version_tag(self.dtype)

    @property
    def prefix(self) -> str:
        return f"{self.namespace}/{self.tag}"

    def resolve(self, name: str) -> str:
        parts = name.split("/")
        if not name or name.startswith("/") or any(p in ("", ".", "..") for p in parts):
            raise NotFoundError(f"Invalid weights name '{name}'")
        return f"{self.prefix}/{name}{WEIGHTS_SUFFIX}"

    def fetch(self, name: str) -> np.ndarray:
        address = self.resolve(name)
        with self.source.open(address) as stream:
            try:
                _check_payload_size(stream)
                weights = np.load(stream, allow_pickle=False)
            except (ValueError, OSError, EOFError) as exc:
                raise DecodeError(f"Could not decode {address}: {exc}") from exc
        if not isinstance(weights, np.ndarray) or weights.dtype != self.dtype:
            found = getattr(weights, "dtype", type(weights).__name__)
            raise DecodeError(f"{address} holds {found}, expected {self.dtype}")
        weights = weights.ravel()
        weights.flags.writeable = False
        return weights

    def put(self, name: str, weights) -> str:
        address = self.resolve(name)
        flat = np.ascontiguousarray(np.asarray(weights, dtype=self.dtype).ravel())
        with self.source.create(address) as stream:
            np.save(stream, flat, allow_pickle=False)
        return address

    def names(self) -> List[str]:
        return sorted(
            f[: -len(WEIGHTS_SUFFIX)] for f in self.source.list(self.prefix) if f.endswith(WEIGHTS_SUFFIX)
        )
