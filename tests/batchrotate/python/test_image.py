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

import os

import numpy as np
import pytest as t
from PIL import Image as PILImage

import util
from batchrotate.errors import LoadError, SaveError
from batchrotate.image import Image, load_image, save_image


RNG = np.random.default_rng(0)


def test_image_properties():
    img = util.create_image(7, 5, rng=RNG)
    assert img.width == 7
    assert img.height == 5
    assert img.size == (7, 5)
    assert img.pitch == 7


def test_image_zeros():
    img = Image.zeros(4, 3)
    assert img.size == (4, 3)
    assert not img.data.any()


@t.mark.parametrize(
    "data",
    [
        np.zeros((5, 7, 3), np.uint8),
        np.zeros((5, 7), np.uint16),
        np.zeros((5,), np.uint8),
    ],
)
def test_image_rejects_invalid_data(data):
    with t.raises(ValueError):
        Image(data)


@t.mark.parametrize("extension", [".tiff", ".pgm", ".png", ".bmp"])
def test_save_load(tmp_path, extension):
    img = util.create_image(23, 16, rng=RNG)
    path = str(tmp_path / ("img" + extension))
    save_image(path, img)
    assert os.path.isfile(path)
    assert not os.path.exists(path + ".partial")

    loaded = load_image(path)
    assert loaded.size == (23, 16)
    np.testing.assert_array_equal(loaded.data, img.data)


def test_save_uppercase_extension(tmp_path):
    img = util.create_image(5, 4, rng=RNG)
    path = str(tmp_path / "IMG.TIFF")
    save_image(path, img)
    np.testing.assert_array_equal(load_image(path).data, img.data)


def test_load_missing_file(tmp_path):
    with t.raises(LoadError) as e:
        load_image(str(tmp_path / "missing.tiff"))
    assert e.value.stage == "load"


def test_load_corrupt_file(tmp_path):
    path = util.write_corrupt_file(tmp_path / "corrupt.tiff")
    with t.raises(LoadError) as e:
        load_image(path)
    assert e.value.path == path


def test_load_rejects_color_images(tmp_path):
    path = str(tmp_path / "color.png")
    PILImage.new("RGB", (8, 8)).save(path)
    with t.raises(LoadError):
        load_image(path)


def test_save_unknown_extension(tmp_path):
    path = str(tmp_path / "img.unknown")
    with t.raises(SaveError) as e:
        save_image(path, util.create_image(4, 4))
    assert e.value.stage == "save"
    assert not os.path.exists(path)


def test_save_into_missing_directory_leaves_nothing(tmp_path):
    path = str(tmp_path / "missing" / "img.tiff")
    with t.raises(SaveError):
        save_image(path, util.create_image(4, 4))
    assert not os.path.exists(path)
    assert not os.path.exists(path + ".partial")
