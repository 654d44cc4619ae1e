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

import logging

from .errors import ImageError, RotationError
from .geometry import Interp, Region, RotationRequest, compute_bounds
from .image import load_image, save_image
from .kernels import KernelStatus
from .perf_utils import RotatePerf


class ImagePipeline:
    """
    Rotates one image file into another: load, upload, compute the output
    bounds, allocate the destination, rotate, download and save. Both device
    buffers are released on every path out of `process`, and a failure in any
    stage only fails the current image.
    """

    def __init__(
        self,
        context,
        kernel,
        interpolation=Interp.LINEAR,
        perf=None,
        loader=load_image,
        saver=save_image,
    ):
        """
        Initializes a new instance of the `ImagePipeline` class.
        :param context: The opened `DeviceContext` buffers are allocated from.
        :param kernel: The `RotateKernel` bound to ``context``.
        :param interpolation: The `Interp` used to resample.
        :param perf: An optional `RotatePerf` receiving one range per stage. The
         default one only emits NVTX ranges and never records timings.
        :param loader: Callable reading an `Image` from a path.
        :param saver: Callable writing an `Image` to a path.
        """
        self.logger = logging.getLogger(__name__)
        self.context = context
        self.kernel = kernel
        self.interpolation = Interp(interpolation)
        if perf is None:
            perf = RotatePerf("image_pipeline", benchmark=False)
        self.perf = perf
        self.loader = loader
        self.saver = saver

    def __call__(self, input_path, output_path, angle):
        return self.process(input_path, output_path, angle)

    def process(self, input_path, output_path, angle):
        """
        Rotates ``input_path`` by ``angle`` degrees and writes it to ``output_path``.
        :returns: True if the output was written, False otherwise.
        """
        try:
            self._process(input_path, output_path, angle)
            return True
        except ImageError as e:
            self.logger.error(
                "  Stage '%s' failed for %s: %s" % (e.stage, input_path, str(e))
            )
            return False
        except Exception as e:
            self.logger.error(
                "  Unexpected error while processing %s: %s" % (input_path, str(e))
            )
            return False

    def _process(self, input_path, output_path, angle):
        with self.perf.range("load"):
            image = self.loader(input_path)

        request = RotationRequest.for_image(
            image.width, image.height, angle, self.interpolation
        )

        with self.perf.range("upload"):
            src = self.context.upload(image)

        with src:
            out_width, out_height = compute_bounds(src.width, src.height, request.angle)
            self.logger.debug(
                "  Output size for %dx%d at %g degrees: %dx%d"
                % (src.width, src.height, request.angle, out_width, out_height)
            )

            with self.perf.range("allocate"):
                dst = self.context.allocate(out_width, out_height)

            with dst:
                with self.perf.range("rotate"):
                    status = self.kernel(
                        src,
                        Region.full(src.width, src.height),
                        dst,
                        Region.full(out_width, out_height),
                        request.angle,
                        request.center,
                        request.interpolation,
                    )
                if status != KernelStatus.SUCCESS:
                    raise RotationError(
                        "Rotation kernel returned status %s" % status.name,
                        status=status,
                        path=input_path,
                    )

                with self.perf.range("download"):
                    result = self.context.download(dst)

        with self.perf.range("save"):
            self.saver(output_path, result)

        self.logger.info("  Saved: %s" % output_path)
        return result
