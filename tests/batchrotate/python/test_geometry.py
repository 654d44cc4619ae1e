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

import math

import numpy as np
import pytest as t

from batchrotate.geometry import (
    Interp,
    Region,
    RotationRequest,
    affine_matrix,
    center_region,
    compute_bounds,
    invert_affine,
    pivot_target,
    placement_offset,
    rotation_center,
)


RNG = np.random.default_rng(0)


def test_compute_bounds_45_degrees():
    theta = math.radians(45)
    expected = math.ceil(100 * math.cos(theta) + 50 * math.sin(theta))
    assert expected == 107
    assert compute_bounds(100, 50, 45) == (107, 107)


@t.mark.parametrize(
    "width, height, angle, expected",
    [
        (100, 50, 0, (100, 50)),
        (100, 50, 90, (50, 100)),
        (100, 50, 180, (100, 50)),
        (100, 50, 270, (50, 100)),
        (100, 50, 360, (100, 50)),
        (100, 50, -90, (50, 100)),
        (100, 50, 450, (50, 100)),
        (100, 50, -720, (100, 50)),
        (1, 1, 90, (1, 1)),
        (641, 479, 270, (479, 641)),
        (3, 7, -180, (3, 7)),
    ],
)
def test_compute_bounds_quarter_turns_are_exact(width, height, angle, expected):
    assert compute_bounds(width, height, angle) == expected


@t.mark.parametrize(
    "angle", [0.5, 17.0, 30.0, 45.0, 89.9, 123.4, -30.0, -271.5, 359.0, 1000.25]
)
def test_compute_bounds_is_periodic(angle):
    for width, height in [(100, 50), (37, 91), (1, 1), (640, 480)]:
        bounds = compute_bounds(width, height, angle)
        assert bounds == compute_bounds(width, height, angle + 360)
        assert bounds == compute_bounds(width, height, angle - 360)


def test_compute_bounds_is_never_degenerate():
    sizes = RNG.integers(1, 64, size=(50, 2))
    angles = RNG.uniform(-1000, 1000, size=50)
    for (width, height), angle in zip(sizes, angles):
        out_w, out_h = compute_bounds(int(width), int(height), float(angle))
        assert out_w >= 1
        assert out_h >= 1


def test_compute_bounds_covers_the_rotated_corners():
    width, height, angle = 37, 21, 33.0
    out_w, out_h = compute_bounds(width, height, angle)
    theta = math.radians(angle)
    diagonal_w = width * abs(math.cos(theta)) + height * abs(math.sin(theta))
    diagonal_h = width * abs(math.sin(theta)) + height * abs(math.cos(theta))
    assert diagonal_w <= out_w < diagonal_w + 1
    assert diagonal_h <= out_h < diagonal_h + 1


def test_compute_bounds_returns_python_ints():
    out_w, out_h = compute_bounds(100, 50, 45)
    assert type(out_w) is int
    assert type(out_h) is int


@t.mark.parametrize(
    "width, height, expected", [(100, 50, (50, 25)), (5, 4, (2, 2)), (1, 1, (0, 0))]
)
def test_rotation_center(width, height, expected):
    assert rotation_center(width, height) == expected


@t.mark.parametrize(
    "src_size, dst_size, clamp, expected",
    [
        ((100, 50), (107, 107), True, (3, 28)),
        ((100, 50), (100, 50), True, (0, 0)),
        ((100, 50), (50, 100), True, (0, 25)),
        ((100, 50), (50, 100), False, (-25, 25)),
        ((7, 5), (4, 4), False, (-1, 0)),
    ],
)
def test_placement_offset(src_size, dst_size, clamp, expected):
    assert placement_offset(src_size, dst_size, clamp=clamp) == expected


def test_center_region():
    assert center_region((58, 56), (40, 20)) == Region(9, 18, 40, 20)
    assert center_region((40, 20), (40, 20)) == Region(0, 0, 40, 20)


def test_affine_matrix_at_zero_degrees_is_identity():
    matrix = affine_matrix(0, (5, 3), (5, 3))
    np.testing.assert_allclose(matrix, [[1, 0, 0], [0, 1, 0]], atol=1e-12)


def test_affine_matrix_moves_the_center_onto_the_target():
    center = (10, 6)
    target = (31, 17)
    matrix = affine_matrix(63.0, center, target)
    # The pixel whose top left corner is the pivot has its center half a pixel away.
    pivot_index = np.array([center[0] - 0.5, center[1] - 0.5, 1.0])
    np.testing.assert_allclose(
        matrix @ pivot_index, [target[0] - 0.5, target[1] - 0.5], atol=1e-9
    )


def test_affine_matrix_turns_counter_clockwise_on_screen():
    # A point to the right of the pivot ends up above it (smaller y).
    matrix = affine_matrix(90, (0.5, 0.5), (0.5, 0.5))
    np.testing.assert_allclose(matrix @ [1.0, 0.0, 1.0], [0.0, -1.0], atol=1e-12)


def test_invert_affine():
    matrix = affine_matrix(-41.0, (12, 8), (20, 19))
    inverse = invert_affine(matrix)
    points = RNG.uniform(-50, 50, size=(10, 2))
    for point in points:
        forward = matrix @ np.append(point, 1.0)
        np.testing.assert_allclose(inverse @ np.append(forward, 1.0), point, atol=1e-9)


def test_region():
    r = Region(1, 2, 3, 4)
    assert r.x == 1
    assert r.y == 2
    assert r.width == 3
    assert r.height == 4
    assert r.right == 4
    assert r.bottom == 6
    assert r.size == (3, 4)
    assert Region.full(8, 9) == Region(0, 0, 8, 9)


@t.mark.parametrize("w, h", [(0, 5), (5, 0), (-1, 3)])
def test_region_rejects_empty(w, h):
    with t.raises(ValueError):
        Region(0, 0, w, h)


@t.mark.parametrize(
    "region, inside",
    [
        (Region(0, 0, 10, 10), True),
        (Region(2, 3, 8, 7), True),
        (Region(2, 3, 9, 7), False),
        (Region(-1, 0, 5, 5), False),
    ],
)
def test_region_within(region, inside):
    assert region.within(10, 10) == inside


def test_rotation_request():
    request = RotationRequest.for_image(11, 7, 30)
    assert request.angle == 30.0
    assert request.interpolation == Interp.LINEAR
    assert request.center == (5, 3)

    request = RotationRequest.for_image(11, 7, -400.5, "nearest")
    assert request.angle == -400.5
    assert request.interpolation == Interp.NEAREST

    with t.raises(AttributeError):
        request.angle = 10


def test_region_center_is_exact():
    assert Region(0, 0, 25, 15).center == (12.5, 7.5)
    assert Region(2, 3, 4, 6).center == (4.0, 6.0)


@t.mark.parametrize(
    "angle, center, expected",
    [
        (0, (12, 7), (14.0, 12.0)),
        (90, (12, 7), (14.0, 13.0)),
        (180, (12, 7), (15.0, 13.0)),
        (270, (12.5, 7.5), (14.5, 12.5)),
    ],
)
def test_pivot_target(angle, center, expected):
    # A 25x15 source inside a 29x25 canvas.
    target = pivot_target(angle, center, (12.5, 7.5), (14.5, 12.5))
    np.testing.assert_allclose(target, expected, atol=1e-12)
