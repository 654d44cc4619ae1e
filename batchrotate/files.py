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
import logging

from .errors import NoInputFilesError
from .perf_utils import normalize_extension

logger = logging.getLogger(__name__)

# Tried in this order when nothing matches the requested extension.
FALLBACK_EXTENSIONS = [".pgm", ".ppm", ".jpg", ".png", ".bmp"]


def get_image_files(directory, extension):
    """Find all the files with a given extension below a directory

    Args:
        directory (str): The directory to search recursively.
        extension (str): The extension to match, compared case-insensitively.

    Returns:
        list: Sorted paths of the matching regular files. Empty if the directory
        does not exist.
    """
    extension = normalize_extension(extension)
    image_files = []

    if not os.path.isdir(directory):
        return image_files

    def on_error(e):
        logger.error("Filesystem error: %s" % str(e))

    for root, dirs, files in os.walk(directory, onerror=on_error):
        dirs.sort()
        for name in sorted(files):
            path = os.path.join(root, name)
            if os.path.isfile(path) and os.path.splitext(name)[1].lower() == extension:
                image_files.append(path)

    return image_files


def find_image_files(directory, extension, fallback_extensions=FALLBACK_EXTENSIONS):
    """Find the images to process, falling back to common image extensions

    Args:
        directory (str): The directory to search recursively.
        extension (str): The preferred extension.
        fallback_extensions (list): Extensions tried in order when nothing matches.

    Returns:
        tuple: (list of paths, the extension that matched).

    Raises:
        NoInputFilesError: If no file matches any of the extensions.
    """
    extension = normalize_extension(extension)
    image_files = get_image_files(directory, extension)
    if image_files:
        return image_files, extension

    logger.warning("No images found with extension %s in %s" % (extension, directory))
    logger.info("Trying alternative extensions...")
    for fallback in fallback_extensions:
        image_files = get_image_files(directory, fallback)
        if image_files:
            logger.info(
                "Found %d images with %s extension" % (len(image_files), fallback)
            )
            return image_files, fallback

    raise NoInputFilesError("No supported image files found in %s!" % directory)
