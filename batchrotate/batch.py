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


class ImageRecord:
    """
    The outcome of one image of a batch: which file it came from, where its
    output went, whether it succeeded and how long it took.
    """

    def __init__(self, index, input_path, output_path, success, elapsed_ms):
        """
        Initializes a new instance of the `ImageRecord` class.
        :param index: A zero based int specifying the position of the image in the batch.
        :param input_path: The file the image was read from.
        :param output_path: The file the rotated image was (or would have been) written to.
        :param success: True if the image was processed successfully.
        :param elapsed_ms: The processing time of the image in whole milliseconds.
        """
        self.index = index
        self.input_path = input_path
        self.output_path = output_path
        self.success = success
        self.elapsed_ms = elapsed_ms


class BatchStats:
    """
    Aggregated results of a batch. Filled in by the `BatchRunner`, one record
    per attempted image, and read once the batch is over.
    """

    def __init__(self):
        self.records = []
        self.successes = 0
        self.failures = 0
        self.total_ms = 0

    @property
    def total(self):
        return len(self.records)

    @property
    def cumulative_ms(self):
        return sum(record.elapsed_ms for record in self.records)

    @property
    def average_ms(self):
        """
        The wall time of the whole batch divided by the number of images, in
        whole milliseconds. It is not derived from ``cumulative_ms``.
        """
        return self.total_ms // self.total if self.total else 0

    @property
    def files(self):
        return [record.input_path for record in self.records]

    def record(self, record):
        self.records.append(record)
        if record.success:
            self.successes += 1
        else:
            self.failures += 1

    def as_dict(self):
        return {
            "total": self.total,
            "successes": self.successes,
            "failures": self.failures,
            "total_ms": self.total_ms,
            "average_ms": self.average_ms,
        }
