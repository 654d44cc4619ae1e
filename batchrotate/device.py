# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
device

Device contexts and the pixel buffers they own. A context is opened once per
process and handed explicitly to every pipeline invocation. Buffers are
zero-initialized, use a padded row pitch and are released exactly once, which
the `with` statement guarantees on every exit path.
"""

import logging
import contextlib

import numpy as np
import torch

from .errors import AllocationError, TransferError
from .image import Image


def align_up(value, alignment):
    return ((value + alignment - 1) // alignment) * alignment


class DeviceBuffer:
    """
    One rectangular 8-bit buffer owned by a `DeviceContext`. The storage is a
    torch tensor of shape (height, pitch) of which only the first `width`
    columns carry pixels.
    """

    def __init__(self, context, storage, width, height):
        self.context = context
        self.width = width
        self.height = height
        self._storage = storage

    @property
    def pitch(self):
        return self._storage.shape[1] if self._storage is not None else 0

    @property
    def size(self):
        return (self.width, self.height)

    @property
    def released(self):
        return self._storage is None

    @property
    def data(self):
        """
        The (height, width) pixel view of the buffer as a torch tensor.
        """
        if self._storage is None:
            raise ValueError("DeviceBuffer was already released.")
        return self._storage[:, : self.width]

    def release(self):
        """
        Frees the buffer. Calling it more than once is harmless.
        """
        if self._storage is not None:
            self.context._release(self)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.release()
        return False

    def __repr__(self):
        return "DeviceBuffer(%dx%d, pitch=%d, device=%s, released=%s)" % (
            self.width,
            self.height,
            self.pitch,
            self.context.device,
            self.released,
        )


class DeviceContext:
    """
    The process wide state of one execution device. It allocates, uploads,
    downloads and releases `DeviceBuffer` objects and keeps count of them so
    that leaks can be detected.
    """

    name = "device"
    row_alignment = 64

    def __init__(self, device, memory_limit=None):
        """
        Initializes a new instance of the `DeviceContext` class.
        :param device: A torch device specification, e.g. "cpu" or "cuda:0".
        :param memory_limit: Optional number of bytes this context may hold at once.
        """
        self.logger = logging.getLogger(__name__)
        self.device = torch.device(device)
        self.memory_limit = memory_limit
        self.allocations = 0
        self.releases = 0
        self.bytes_in_use = 0
        self.is_open = False

    @property
    def live_buffers(self):
        return self.allocations - self.releases

    def open(self):
        self.is_open = True
        return self

    def close(self):
        if self.live_buffers:
            self.logger.warning(
                "Closing the %s context with %d buffer(s) still allocated."
                % (self.name, self.live_buffers)
            )
        self.is_open = False

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()
        return False

    def synchronize(self):
        """
        Blocks until all the work issued to the device has completed.
        """
        pass

    def stream_scope(self):
        """
        Returns the context manager every device operation of this context runs
        in, so that allocations, copies and kernels are ordered on one stream.
        """
        return contextlib.nullcontext()

    def describe(self):
        """
        Returns a dictionary with version and device information to log at start-up.
        """
        return {
            "backend": self.name,
            "device": str(self.device),
            "pytorch_version": torch.__version__,
            "numpy_version": np.__version__,
        }

    def pitch_for(self, width):
        return align_up(width, self.row_alignment)

    def allocate(self, width, height):
        """
        Allocates a zero-initialized buffer of ``width`` x ``height`` samples.

        Raises:
            AllocationError: If the dimensions are invalid or the device is out of memory.
        """
        if width <= 0 or height <= 0:
            raise AllocationError(
                "Invalid buffer dimensions %dx%d." % (width, height)
            )

        pitch = self.pitch_for(width)
        nbytes = pitch * height
        if (
            self.memory_limit is not None
            and self.bytes_in_use + nbytes > self.memory_limit
        ):
            raise AllocationError(
                "Unable to allocate %d bytes on %s: %d of %d bytes are in use."
                % (nbytes, self.device, self.bytes_in_use, self.memory_limit)
            )

        try:
            with self.stream_scope():
                storage = torch.zeros(
                    (height, pitch), dtype=torch.uint8, device=self.device
                )
        except RuntimeError as e:
            raise AllocationError(
                "Unable to allocate %dx%d buffer on %s: %s"
                % (width, height, self.device, str(e))
            ) from e

        self.allocations += 1
        self.bytes_in_use += nbytes
        return DeviceBuffer(self, storage, width, height)

    def upload(self, image):
        """
        Copies a host `Image` into a newly allocated buffer of the same size.

        Raises:
            AllocationError: If the buffer cannot be allocated.
            TransferError: If the copy fails. The buffer is released in that case.
        """
        buffer = self.allocate(image.width, image.height)
        try:
            with self.stream_scope():
                buffer.data.copy_(torch.from_numpy(image.data))
            self.synchronize()
        except RuntimeError as e:
            buffer.release()
            raise TransferError("Unable to upload image: %s" % str(e)) from e
        return buffer

    def download(self, buffer):
        """
        Copies a buffer back into a newly allocated host `Image`.

        Raises:
            TransferError: If the copy fails.
        """
        try:
            self.synchronize()
            with self.stream_scope():
                host = buffer.data.cpu().numpy().copy()
        except (RuntimeError, ValueError) as e:
            raise TransferError("Unable to download buffer: %s" % str(e)) from e
        return Image(host)

    def _release(self, buffer):
        self.releases += 1
        self.bytes_in_use -= buffer.pitch * buffer.height
        buffer._storage = None


class HostContext(DeviceContext):
    """
    Keeps buffers in host memory. Used by the CPU reference backend.
    """

    name = "cpu"
    row_alignment = 64

    def __init__(self, memory_limit=None):
        super().__init__("cpu", memory_limit=memory_limit)
