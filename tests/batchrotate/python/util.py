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

import contextlib

import numpy as np
from PIL import Image as PILImage

from batchrotate.device import HostContext
from batchrotate.geometry import Region, compute_bounds, rotation_center
from batchrotate.image import Image
from batchrotate.kernels import CpuRotateKernel


def generate_data(shape, max_random=256, rng=None):
    """Generate 8-bit image data as numpy array

    Args:
        shape (tuple or list): Data shape (height, width)
        max_random (int): Exclusive upper bound of the random values
        rng (numpy random Generator): To fill data with random values

    Returns:
        numpy.array: The generated data, zeros if rng is None
    """
    if rng is None:
        return np.zeros(shape, dtype=np.uint8)
    return rng.integers(max_random, size=shape, dtype=np.uint8)


def create_image(width, height, max_random=256, rng=None):
    return Image(generate_data((height, width), max_random=max_random, rng=rng))


def gradient_image(width, height, dx=2, dy=3, base=10):
    """Create an image whose values grow linearly along x and y

    Linear interpolation reproduces such an image exactly, up to rounding.
    """
    ys, xs = np.mgrid[0:height, 0:width]
    return Image((base + dx * xs + dy * ys).astype(np.uint8))


def write_image(path, image):
    PILImage.fromarray(image.data).save(str(path))
    return str(path)


def read_image(path):
    with PILImage.open(str(path)) as pil_img:
        return np.array(pil_img)


def write_corrupt_file(path):
    with open(str(path), "wb") as f:
        f.write(b"this is not an image")
    return str(path)


class FaultyContext(HostContext):
    """
    A host context whose synchronization fails on demand.
    """

    def __init__(self, memory_limit=None):
        super().__init__(memory_limit=memory_limit)
        self.fail_sync = False

    def synchronize(self):
        if self.fail_sync:
            raise RuntimeError("injected synchronization failure")


class ScopedContext(HostContext):
    """
    A host context counting how often its device operations enter the stream
    scope.
    """

    def __init__(self, memory_limit=None):
        super().__init__(memory_limit=memory_limit)
        self.scope_entries = 0
        self.in_scope = False

    @contextlib.contextmanager
    def stream_scope(self):
        self.scope_entries += 1
        self.in_scope = True
        try:
            yield
        finally:
            self.in_scope = False


class ScopeCheckingKernel(CpuRotateKernel):
    def run(self, src, src_roi, dst, dst_roi, xform, interpolation):
        self.ran_in_scope = self.context.in_scope
        super().run(src, src_roi, dst, dst_roi, xform, interpolation)


class FailingKernel(CpuRotateKernel):
    def run(self, src, src_roi, dst, dst_roi, xform, interpolation):
        raise RuntimeError("injected kernel failure")


def rotate_on_host(context, kernel, image, angle, interpolation):
    """Rotate an image with a kernel into its bounding canvas

    Returns:
        tuple: (KernelStatus, Image)
    """
    out_w, out_h = compute_bounds(image.width, image.height, angle)
    with context.upload(image) as src, context.allocate(out_w, out_h) as dst:
        status = kernel(
            src,
            Region.full(image.width, image.height),
            dst,
            Region.full(out_w, out_h),
            angle,
            rotation_center(image.width, image.height),
            interpolation,
        )
        return status, context.download(dst)
