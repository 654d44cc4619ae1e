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
errors

Exceptions raised by the batch rotation pipeline. Image-local errors stop the
processing of a single image only; fatal errors stop the whole run.
"""


class BatchRotateError(Exception):
    pass


class ImageError(BatchRotateError):
    """
    Base class of all errors that are local to the processing of one image.
    The ``stage`` attribute names the pipeline stage that failed.
    """

    stage = "unknown"

    def __init__(self, message, path=None):
        super().__init__(message)
        self.path = path


class LoadError(ImageError):
    stage = "load"


class AllocationError(ImageError):
    stage = "allocate"


class TransferError(ImageError):
    stage = "transfer"


class RotationError(ImageError):
    stage = "rotate"

    def __init__(self, message, status=None, path=None):
        super().__init__(message, path=path)
        self.status = status


class SaveError(ImageError):
    stage = "save"


class FatalError(BatchRotateError):
    """
    Base class of the errors that terminate a run before any image is processed.
    """

    pass


class DeviceUnavailableError(FatalError):
    pass


class NoInputFilesError(FatalError):
    pass
