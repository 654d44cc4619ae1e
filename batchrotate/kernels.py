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
kernels

The rotate-and-place capability. A kernel reads the source region of
interest, rotates it about a center point and writes the resampled pixels into
the destination region, leaving the rest of the destination untouched. The
exact center of the source region always lands on the exact center of the
destination region.
"""

import enum
import logging
from abc import ABC, abstractmethod

import numpy as np

from .geometry import Interp, affine_matrix, invert_affine, pivot_target

# Source coordinates are rounded to this many decimals before sampling so that
# quarter turns hit pixel centers exactly.
COORD_DECIMALS = 9


class KernelStatus(enum.IntEnum):
    SUCCESS = 0
    ROI_ERROR = 1
    INTERPOLATION_ERROR = 2
    BUFFER_ERROR = 3
    EXECUTION_ERROR = 4


def roi_inverse_matrix(angle_deg, center, src_roi, dst_roi):
    """
    Builds the inverse map of a rotation between two regions of interest.

    Args:
        angle_deg (float): Rotation angle in degrees.
        center (tuple): The rotation center (x, y) in source buffer coordinates.
        src_roi (Region): The source region of interest.
        dst_roi (Region): The destination region.

    Returns:
        numpy.array: A (2, 3) matrix mapping pixel indices local to ``dst_roi``
        onto pixel indices local to ``src_roi``.
    """
    target = pivot_target(angle_deg, center, src_roi.center, dst_roi.center)
    inverse = invert_affine(affine_matrix(angle_deg, center, target))

    local = inverse.copy()
    local[:, 2] = (
        inverse[:, :2] @ np.array([dst_roi.x, dst_roi.y], dtype=np.float64)
        + inverse[:, 2]
        - np.array([src_roi.x, src_roi.y], dtype=np.float64)
    )
    return local


class RotateKernel(ABC):
    """
    This is an abstract base class of the rotation backends. It validates the
    arguments, builds the transform and turns any backend failure into a status
    code. Concrete kernels only provide `run`.
    """

    name = "abstract"
    supported_interpolations = (Interp.NEAREST, Interp.LINEAR)

    def __init__(self, context):
        """
        Initializes a new instance of this class.
        :param context: The `DeviceContext` owning the buffers this kernel works on.
        """
        self.logger = logging.getLogger(__name__)
        self.context = context

    def __call__(
        self, src, src_roi, dst, dst_roi, angle_deg, center, interpolation=Interp.LINEAR
    ):
        """
        Rotates ``src_roi`` of ``src`` by ``angle_deg`` degrees about ``center``
        into ``dst_roi`` of ``dst``.
        :returns: A `KernelStatus`. Anything other than SUCCESS means nothing
         useful was written.
        """
        status = self.validate(src, src_roi, dst, dst_roi, interpolation)
        if status != KernelStatus.SUCCESS:
            self.logger.error(
                "Kernel %s rejected its arguments with status %s"
                % (self.__class__.__name__, status.name)
            )
            return status

        xform = roi_inverse_matrix(angle_deg, center, src_roi, dst_roi)

        try:
            with self.context.stream_scope():
                self.run(src, src_roi, dst, dst_roi, xform, Interp(interpolation))
            self.context.synchronize()
        except Exception as e:
            self.logger.error(
                "Unable to run the kernel %s due to error: %s"
                % (self.__class__.__name__, str(e))
            )
            return KernelStatus.EXECUTION_ERROR

        return KernelStatus.SUCCESS

    rotate = __call__

    def validate(self, src, src_roi, dst, dst_roi, interpolation):
        try:
            interpolation = Interp(interpolation)
        except ValueError:
            return KernelStatus.INTERPOLATION_ERROR
        if interpolation not in self.supported_interpolations:
            return KernelStatus.INTERPOLATION_ERROR

        for buffer in (src, dst):
            if buffer.released or buffer.context is not self.context:
                return KernelStatus.BUFFER_ERROR

        if not src_roi.within(src.width, src.height):
            return KernelStatus.ROI_ERROR
        if not dst_roi.within(dst.width, dst.height):
            return KernelStatus.ROI_ERROR

        return KernelStatus.SUCCESS

    @abstractmethod
    def run(self, src, src_roi, dst, dst_roi, xform, interpolation):
        """
        Resamples the source into the destination region.
        :param xform: A (2, 3) matrix mapping destination region pixel indices to
         source region pixel indices.
        :param interpolation: An `Interp` member.
        """
        pass


def _sample_nearest(patch, sx, sy):
    height, width = patch.shape
    ix = np.floor(sx + 0.5).astype(np.int64)
    iy = np.floor(sy + 0.5).astype(np.int64)
    valid = (ix >= 0) & (ix < width) & (iy >= 0) & (iy < height)

    out = np.zeros(sx.shape, dtype=np.uint8)
    out[valid] = patch[iy[valid], ix[valid]]
    return out


def _sample_linear(patch, sx, sy):
    height, width = patch.shape
    x0 = np.floor(sx)
    y0 = np.floor(sy)
    fx = sx - x0
    fy = sy - y0
    x0 = x0.astype(np.int64)
    y0 = y0.astype(np.int64)

    acc = np.zeros(sx.shape, dtype=np.float64)
    # Neighbors outside the source count as 0 (constant border).
    for dx, dy, weight in (
        (0, 0, (1.0 - fx) * (1.0 - fy)),
        (1, 0, fx * (1.0 - fy)),
        (0, 1, (1.0 - fx) * fy),
        (1, 1, fx * fy),
    ):
        xi = x0 + dx
        yi = y0 + dy
        valid = (xi >= 0) & (xi < width) & (yi >= 0) & (yi < height)
        acc[valid] += weight[valid] * patch[yi[valid], xi[valid]]

    return np.clip(np.rint(acc), 0, 255).astype(np.uint8)


class CpuRotateKernel(RotateKernel):
    """
    Reference implementation running on the host with numpy. It works on the
    buffers of a `HostContext`.
    """

    name = "cpu"

    def run(self, src, src_roi, dst, dst_roi, xform, interpolation):
        patch = src.data.numpy()[src_roi.y : src_roi.bottom, src_roi.x : src_roi.right]
        window = dst.data.numpy()[dst_roi.y : dst_roi.bottom, dst_roi.x : dst_roi.right]

        ys, xs = np.mgrid[0 : dst_roi.height, 0 : dst_roi.width].astype(np.float64)
        sx = xform[0, 0] * xs + xform[0, 1] * ys + xform[0, 2]
        sy = xform[1, 0] * xs + xform[1, 1] * ys + xform[1, 2]
        sx = np.round(sx, COORD_DECIMALS)
        sy = np.round(sy, COORD_DECIMALS)

        if interpolation == Interp.NEAREST:
            window[...] = _sample_nearest(patch, sx, sy)
        else:
            window[...] = _sample_linear(patch, sx, sy)
