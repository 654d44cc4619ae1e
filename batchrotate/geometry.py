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
geometry

Pure arithmetic shared by every rotation backend: the bounding box of a
rotated rectangle, the rotation center, the placement of the rotated content
inside the output canvas and the affine coefficients describing the transform.

Coordinates follow the image convention: x grows to the right, y grows
downwards and a pixel (i, j) covers the unit square [i, i+1) x [j, j+1).
A positive angle turns the picture counter-clockwise on screen.
"""

import enum
import math
from collections import namedtuple

import numpy as np

# Extents closer than this to an integer are treated as that integer, so that
# quarter turns produce exact dimensions despite cos(90) != 0 in floating point.
BOUNDS_SNAP_EPSILON = 1e-6


class Interp(enum.Enum):
    NEAREST = "nearest"
    LINEAR = "linear"


class Region(namedtuple("Region", ["x", "y", "width", "height"])):
    """
    An axis aligned rectangle inside a buffer. Used both as the region of
    interest of a source and as the placement rectangle of a destination.
    """

    __slots__ = ()

    def __new__(cls, x, y, width, height):
        if width <= 0 or height <= 0:
            raise ValueError(
                "Region dimensions must be positive, got %dx%d." % (width, height)
            )
        return super().__new__(cls, int(x), int(y), int(width), int(height))

    @classmethod
    def full(cls, width, height):
        return cls(0, 0, width, height)

    @property
    def right(self):
        return self.x + self.width

    @property
    def bottom(self):
        return self.y + self.height

    @property
    def size(self):
        return (self.width, self.height)

    @property
    def center(self):
        """
        The exact geometric center (x, y) of the region, not truncated.
        """
        return (self.x + self.width / 2.0, self.y + self.height / 2.0)

    def within(self, width, height):
        """
        Returns True if the region lies entirely inside a ``width`` x ``height`` buffer.
        """
        return (
            self.x >= 0
            and self.y >= 0
            and self.right <= width
            and self.bottom <= height
        )


class RotationRequest(
    namedtuple("RotationRequest", ["angle", "interpolation", "center"])
):
    """
    The immutable per-image rotation parameters.
    :param angle: The rotation angle in degrees. Any finite value is accepted.
    :param interpolation: An `Interp` member.
    :param center: The rotation center (x, y) in source coordinates.
    """

    __slots__ = ()

    @classmethod
    def for_image(cls, width, height, angle, interpolation=Interp.LINEAR):
        return cls(float(angle), Interp(interpolation), rotation_center(width, height))


def _rotation_terms(angle_deg):
    theta = math.radians(angle_deg % 360.0)
    return math.cos(theta), math.sin(theta)


def compute_bounds(width, height, angle_deg):
    """
    Computes the size of the smallest canvas holding a ``width`` x ``height``
    rectangle rotated by ``angle_deg`` degrees about its center.

    Args:
        width (int): Source width, must be positive.
        height (int): Source height, must be positive.
        angle_deg (float): Rotation angle in degrees.

    Returns:
        tuple: (out_width, out_height), each at least 1.
    """
    cos_a, sin_a = _rotation_terms(angle_deg)
    half_w = width / 2.0
    half_h = height / 2.0

    corners = np.array(
        [
            [-half_w, -half_h],
            [half_w, -half_h],
            [half_w, half_h],
            [-half_w, half_h],
        ],
        dtype=np.float64,
    )
    rotation = np.array([[cos_a, sin_a], [-sin_a, cos_a]], dtype=np.float64)
    rotated = corners @ rotation.T

    extent = rotated.max(axis=0) - rotated.min(axis=0)
    nearest = np.round(extent)
    extent = np.where(np.abs(extent - nearest) < BOUNDS_SNAP_EPSILON, nearest, extent)
    out_w, out_h = np.maximum(np.ceil(extent), 1).astype(np.int64)

    return int(out_w), int(out_h)


def rotation_center(width, height):
    """
    The pivot of a rotation: the geometric center of the source, truncated to
    integer coordinates.
    """
    return (width // 2, height // 2)


def placement_offset(src_size, dst_size, clamp=True):
    """
    Returns the offset (dx, dy) that moves the center of a ``src_size`` buffer
    onto the center of a ``dst_size`` buffer. Sizes are (width, height) pairs.
    When ``clamp`` is True, negative components are clamped to 0.
    """
    src_cx, src_cy = rotation_center(*src_size)
    dst_cx, dst_cy = rotation_center(*dst_size)
    dx = dst_cx - src_cx
    dy = dst_cy - src_cy
    if clamp:
        dx = max(dx, 0)
        dy = max(dy, 0)
    return (dx, dy)


def center_region(canvas_size, size):
    """
    The upright ``size`` window centered inside a canvas of ``canvas_size``.
    """
    dx, dy = placement_offset(size, canvas_size)
    return Region(dx, dy, size[0], size[1])


def _rotation_linear(angle_deg):
    cos_a, sin_a = _rotation_terms(angle_deg)
    return np.array([[cos_a, sin_a], [-sin_a, cos_a]], dtype=np.float64)


def pivot_target(angle_deg, center, src_center, dst_center):
    """
    Returns where ``center`` must land so that ``src_center`` lands exactly on
    ``dst_center`` after the rotation.

    Rotations about different pivots only differ by a translation, so the
    result does not depend on ``center``; quarter turns stay exact for any
    parity of the dimensions.

    Args:
        angle_deg (float): Rotation angle in degrees.
        center (tuple): The pivot (x, y) in source coordinates.
        src_center (tuple): The exact center (x, y) of the source region.
        dst_center (tuple): The exact center (x, y) of the destination region.

    Returns:
        tuple: The target (x, y) of the pivot in destination coordinates.
    """
    offset = np.subtract(center, src_center, dtype=np.float64)
    target = np.add(dst_center, _rotation_linear(angle_deg) @ offset)
    return (float(target[0]), float(target[1]))


def affine_matrix(angle_deg, center, target):
    """
    Builds the forward transform of a rotation as a 2x3 matrix acting on
    pixel indices (the center of pixel (i, j) is at (i, j)).

    Args:
        angle_deg (float): Rotation angle in degrees.
        center (tuple): The pivot (x, y) in source coordinates.
        target (tuple): Where the pivot lands (x, y) in destination coordinates.

    Returns:
        numpy.array: A float64 array of shape (2, 3).
    """
    linear = _rotation_linear(angle_deg)

    # Pixel indices sit half a pixel before the pixel centers.
    pivot = np.asarray(center, dtype=np.float64) - 0.5
    anchor = np.asarray(target, dtype=np.float64) - 0.5
    translation = anchor - linear @ pivot

    return np.hstack([linear, translation.reshape(2, 1)])


def invert_affine(matrix):
    """
    Inverts a 2x3 affine matrix.
    """
    full = np.vstack([np.asarray(matrix, dtype=np.float64), [0.0, 0.0, 1.0]])
    return np.linalg.inv(full)[:2]
