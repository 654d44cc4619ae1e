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
cuda_backend

The accelerator backend: a `DeviceContext` holding the primary CUDA context of
one GPU and a kernel that performs the rotation with CV-CUDA.
"""

# NOTE: One must import PyCuda driver first, before CVCUDA otherwise
# things may throw unexpected errors.
import pycuda.driver as cuda
import contextlib

import numpy as np
import cvcuda
import torch

from .device import DeviceContext
from .errors import DeviceUnavailableError
from .geometry import Interp
from .kernels import RotateKernel

CVCUDA_INTERP = {
    Interp.NEAREST: cvcuda.Interp.NEAREST,
    Interp.LINEAR: cvcuda.Interp.LINEAR,
}


class CudaContext(DeviceContext):
    """
    Keeps buffers in the memory of one CUDA device. Opening the context retains
    and pushes the primary context of the device and creates the CV-CUDA
    stream all the kernels run on.
    """

    name = "cuda"
    row_alignment = 256

    def __init__(self, device_id=0, memory_limit=None):
        super().__init__("cuda:%d" % device_id, memory_limit=memory_limit)
        self.device_id = device_id
        self.cuda_ctx = None
        self.cvcuda_stream = None
        self.torch_stream = None

    def open(self):
        if not torch.cuda.is_available():
            raise DeviceUnavailableError("No CUDA capable device is available.")
        if self.device_id >= torch.cuda.device_count():
            raise DeviceUnavailableError(
                "device_id must be a valid value from 0 to %d, got %d."
                % (torch.cuda.device_count() - 1, self.device_id)
            )

        try:
            cuda.init()
            cuda_device = cuda.Device(self.device_id)
            self.cuda_ctx = cuda_device.retain_primary_context()
            self.cuda_ctx.push()
        except cuda.Error as e:
            raise DeviceUnavailableError(
                "Unable to initialize CUDA device %d: %s" % (self.device_id, str(e))
            ) from e

        torch.cuda.set_device(self.device_id)
        self.cvcuda_stream = cvcuda.Stream()
        self.torch_stream = torch.cuda.ExternalStream(self.cvcuda_stream.handle)
        self.logger.info("Using CV-CUDA version: %s" % cvcuda.__version__)
        return super().open()

    def close(self):
        super().close()
        if self.cuda_ctx is not None:
            self.cuda_ctx.pop()
            self.cuda_ctx = None
        self.cvcuda_stream = None
        self.torch_stream = None

    def synchronize(self):
        torch.cuda.synchronize(self.device)

    @contextlib.contextmanager
    def stream_scope(self):
        # PyTorch shares the CV-CUDA stream, the zero fill of a buffer is then
        # ordered before the kernel writing into it.
        with self.cvcuda_stream, torch.cuda.stream(self.torch_stream):
            yield

    def describe(self):
        info = super().describe()
        driver_version = cuda.get_driver_version()
        info.update(
            {
                "cvcuda_version": cvcuda.__version__,
                "cuda_driver_version": "%d.%d"
                % (driver_version // 1000, (driver_version % 100) // 10),
                "cuda_runtime_version": torch.version.cuda,
                "device_name": torch.cuda.get_device_name(self.device_id),
                "compute_capability": "%d.%d"
                % torch.cuda.get_device_capability(self.device_id),
            }
        )
        return info


class CudaRotateKernel(RotateKernel):
    """
    Rotates with `cvcuda.warp_perspective_into`, handing it the inverse map so
    that every destination pixel is computed from its source position.
    """

    name = "cuda"

    def run(self, src, src_roi, dst, dst_roi, xform, interpolation):
        src_view = src.data[src_roi.y : src_roi.bottom, src_roi.x : src_roi.right]
        dst_view = dst.data[dst_roi.y : dst_roi.bottom, dst_roi.x : dst_roi.right]

        # CV-CUDA supports HWC image layouts only, single channel here.
        src_tensor = cvcuda.as_tensor(src_view.unsqueeze(-1), "HWC")
        dst_tensor = cvcuda.as_tensor(dst_view.unsqueeze(-1), "HWC")

        matrix = np.vstack([xform, [0.0, 0.0, 1.0]]).astype(np.float32)

        cvcuda.warp_perspective_into(
            dst=dst_tensor,
            src=src_tensor,
            xform=matrix,
            flags=CVCUDA_INTERP[interpolation] | cvcuda.Interp.WARP_INVERSE_MAP,
            border_mode=cvcuda.Border.CONSTANT,
            border_value=[0],
            stream=self.context.cvcuda_stream,
        )
