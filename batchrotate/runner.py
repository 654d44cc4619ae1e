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
import time
import logging

from .batch import BatchStats, ImageRecord
from .perf_utils import RotatePerf

OUTPUT_SUFFIX = "_rotated"


def output_path_for(input_path, output_dir, suffix=OUTPUT_SUFFIX):
    """
    Derives the output file of an input: <stem><suffix><extension> inside ``output_dir``.
    """
    stem, extension = os.path.splitext(os.path.basename(input_path))
    return os.path.join(output_dir, stem + suffix + extension)


class BatchRunner:
    """
    Runs an `ImagePipeline` over a list of files, one after the other, and
    collects the per-image outcome and timing in a `BatchStats`.
    """

    def __init__(self, pipeline, perf=None):
        self.logger = logging.getLogger(__name__)
        self.pipeline = pipeline
        self.perf = perf if perf is not None else pipeline.perf

    def run(self, file_list, output_dir, angle):
        """
        Processes every file of ``file_list`` in order. A failing file never
        prevents the next ones from being attempted.
        :returns: The `BatchStats` of the run.
        """
        stats = BatchStats()
        total = len(file_list)

        batch_start = time.perf_counter()
        with self.perf.range("batch"):
            for idx, input_path in enumerate(file_list):
                self.logger.info(
                    "[%d/%d] Processing: %s" % (idx + 1, total, input_path)
                )
                output_path = output_path_for(input_path, output_dir)

                with self.perf.range("image", batch_idx=idx):
                    start = time.perf_counter()
                    success = self.pipeline.process(input_path, output_path, angle)
                    elapsed_ms = int((time.perf_counter() - start) * 1000)

                self.logger.info("  Time: %d ms" % elapsed_ms)
                stats.record(
                    ImageRecord(idx, input_path, output_path, success, elapsed_ms)
                )

        stats.total_ms = int((time.perf_counter() - batch_start) * 1000)
        return stats
