import io

import numpy as np
import pytest

from weights_loader import FileWeightSource, RawWeightStore, WeightsAccessor


class TrackingStream(io.BytesIO):
    """In-memory stream that can fail once ``fail_after`` bytes were read."""

    def __init__(self, payload, fail_after=None):
        super().__init__(payload)
        self.fail_after = fail_after

    def read(self, size=-1):
        if self.fail_after is not None and self.tell() + max(size, 0) > self.fail_after:
            raise OSError("stream dropped mid-read")
        return super().read(size)


class TrackingSource:
    """Byte source serving in-memory payloads and remembering every stream it opened."""

    def __init__(self, payloads=None, fail_after=None):
        self.payloads = dict(payloads or {})
        self.fail_after = fail_after
        self.opened = []

    def open(self, address):
        from weights_loader import NotFoundError

        if address not in self.payloads:
            raise NotFoundError(address)
        stream = TrackingStream(self.payloads[address], self.fail_after)
        self.opened.append(stream)
        return stream


def npy_bytes(array):
    buf = io.BytesIO()
    np.save(buf, array, allow_pickle=False)
    return buf.getvalue()


@pytest.fixture
def store(tmp_path):
    return RawWeightStore(FileWeightSource(tmp_path))


@pytest.fixture
def accessor(store):
    return WeightsAccessor(store)
