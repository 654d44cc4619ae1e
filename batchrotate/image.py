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
image

Host resident 8-bit single channel images and their file codec. Decoding and
encoding is done with Pillow, which reads and writes TIFF, PGM/PPM, PNG, BMP
and JPEG among others.
"""

import os
import logging

import numpy as np
from PIL import Image as PILImage
from PIL import UnidentifiedImageError

from .errors import LoadError, SaveError

logger = logging.getLogger(__name__)

# Pillow modes holding one 8-bit sample per pixel.
SINGLE_CHANNEL_MODES = ("L",)


class Image:
    """
    A rectangular grid of single byte samples living in host memory.
    """

    def __init__(self, data):
        """
        Initializes a new instance of the `Image` class.
        :param data: A 2D numpy array of dtype uint8 with shape (height, width).
        """
        data = np.asarray(data)
        if data.ndim != 2 or data.dtype != np.uint8:
            raise ValueError(
                "Image data must be a 2D uint8 array, got %s of shape %s."
                % (data.dtype, data.shape)
            )
        self.data = data

    @classmethod
    def zeros(cls, width, height):
        return cls(np.zeros((height, width), dtype=np.uint8))

    @property
    def width(self):
        return self.data.shape[1]

    @property
    def height(self):
        return self.data.shape[0]

    @property
    def size(self):
        return (self.width, self.height)

    @property
    def pitch(self):
        return self.data.strides[0]

    def __repr__(self):
        return "Image(%dx%d, pitch=%d)" % (self.width, self.height, self.pitch)


def load_image(path):
    """Load an 8-bit single channel image from disk

    Args:
        path (str): The file to read.

    Returns:
        Image: The decoded image.

    Raises:
        LoadError: If the file cannot be read, cannot be decoded or is not an
            8-bit single channel image.
    """
    try:
        with PILImage.open(path) as pil_img:
            if pil_img.mode not in SINGLE_CHANNEL_MODES:
                raise LoadError(
                    "Unsupported image mode %s, only 8-bit single channel images "
                    "are supported." % pil_img.mode,
                    path=path,
                )
            data = np.array(pil_img, dtype=np.uint8)
    except (OSError, UnidentifiedImageError) as e:
        raise LoadError("Unable to read image: %s" % str(e), path=path) from e

    logger.debug("Loaded %s with size %dx%d" % (path, data.shape[1], data.shape[0]))
    return Image(data)


def save_image(path, image):
    """Save an image to disk

    The file format follows the extension of ``path``. The image is written to a
    temporary file next to ``path`` first and renamed once encoding succeeded,
    so that a failed save never leaves a truncated output behind.

    Args:
        path (str): The file to write.
        image (Image): The image to encode.

    Raises:
        SaveError: If the extension is unknown or encoding/writing fails.
    """
    extension = os.path.splitext(path)[1].lower()
    file_format = PILImage.registered_extensions().get(extension)
    if file_format is None:
        raise SaveError("Unknown image file extension: %s" % extension, path=path)

    tmp_path = path + ".partial"
    try:
        PILImage.fromarray(np.ascontiguousarray(image.data)).save(
            tmp_path, format=file_format
        )
        os.replace(tmp_path, path)
    except (OSError, ValueError) as e:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise SaveError("Unable to write image: %s" % str(e), path=path) from e
