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

from .device import HostContext
from .errors import DeviceUnavailableError
from .kernels import CpuRotateKernel

SUPPORTED_BACKENDS = ["cuda", "cpu"]


def create_backend(backend, device_id=0, memory_limit=None):
    """
    Creates the device context and the rotate kernel of a backend.

    Args:
        backend (str): Either "cuda" or "cpu".
        device_id (int): The GPU to use with the "cuda" backend.
        memory_limit (int): Optional limit in bytes of the memory the context may hold.

    Returns:
        tuple: (DeviceContext, RotateKernel). The context is not opened yet.
    """
    if backend == "cpu":
        context = HostContext(memory_limit=memory_limit)
        return context, CpuRotateKernel(context)

    elif backend == "cuda":
        try:
            from . import cuda_backend
        except ImportError as e:
            raise DeviceUnavailableError(
                "The cuda backend needs the cvcuda and pycuda packages: %s" % str(e)
            ) from e

        context = cuda_backend.CudaContext(device_id, memory_limit=memory_limit)
        return context, cuda_backend.CudaRotateKernel(context)

    else:
        raise ValueError("Unknown backend: %s" % backend)
