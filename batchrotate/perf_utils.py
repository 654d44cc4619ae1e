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
import sys
import json
import math
import time
import logging
import argparse
import contextlib
from collections import deque

import numpy as np
import torch
import nvtx

from .geometry import Interp


class RotatePerf:
    """
    This class helps keep track of the run-time of the stages of the rotation
    pipeline. Every range is pushed as an NVTX range so that the stages show up
    when the batch is profiled with NVIDIA NSYS.

    When the BENCHMARK_PY environment variable is set, the wall time of every
    range is also recorded, keyed by the path of nested range names, and
    `finalize` writes it down to benchmark.json in the output directory.
    """

    def __init__(self, obj_name, default_args=None, output_dir=None, benchmark=None):
        """
        Initializes a new instance of the `RotatePerf` class.
        :param obj_name: The name of the object used for performance benchmarking.
        :param default_args: The command line arguments the batch was launched with.
        :param output_dir: Where benchmark.json goes. Defaults to default_args.output_dir.
        :param benchmark: Forces benchmarking mode on or off. By default it follows
         the BENCHMARK_PY environment variable.
        """
        self.obj_name = obj_name
        self.command_line_args = default_args

        if output_dir is None and hasattr(default_args, "output_dir"):
            output_dir = default_args.output_dir
        self.output_dir = output_dir

        self.logger = logging.getLogger(__name__)
        # We will use a stack to record the push/pop range operations.
        self.stack = deque()
        self.stack_path = self.obj_name
        # Wall times in milliseconds, one list per range path.
        self.timing_info = {}
        # Unless told otherwise, check whether the benchmark.py script was used
        # to run this: it is the only one setting BENCHMARK_PY.
        if benchmark is None:
            benchmark = bool(os.environ.get("BENCHMARK_PY"))

        if benchmark:
            self.should_benchmark = True
            self.logger.info("Benchmarking mode is turned on.")
        else:
            self.should_benchmark = False
            self.logger.debug("Benchmarking mode is turned off.")

    def push_range(
        self, message=None, color="blue", domain=None, category=None, batch_idx=None
    ):
        """
        Pushes a code range on to the stack for performance benchmarking.
        :param message: A message associated with the annotated code range.
        :param color: A color associated with the annotated code range.
        :param domain: Name of a domain under which the code range is scoped.
        :param category: A string or an integer specifying the category within the domain
        under which the code range is scoped.
        :param batch_idx: If this range is associated with one image of the batch, its index.
        """
        if batch_idx is not None:
            message += "_%d" % batch_idx

        nvtx.push_range(message, color, domain, category)

        if self.should_benchmark:
            self.stack.append((message, time.perf_counter()))
            self.stack_path = os.path.join(self.stack_path, message)

    def pop_range(self, domain=None):
        """
        Pops a code range off of the stack for performance benchmarking.
        :param domain: Name of a domain under which the code range is scoped.
        """
        if self.should_benchmark:
            _, start = self.stack.pop()
            elapsed_ms = (time.perf_counter() - start) * 1000.0
            self.timing_info.setdefault(self.stack_path, []).append(elapsed_ms)
            # Unwind the stack to point to the previous path, one level above.
            self.stack_path = os.path.dirname(self.stack_path)

        nvtx.pop_range(domain)

    @contextlib.contextmanager
    def range(self, message, **kwargs):
        """
        Pushes a range for the duration of a `with` block and pops it on every exit path.
        """
        self.push_range(message, **kwargs)
        try:
            yield
        finally:
            self.pop_range(kwargs.get("domain"))

    def finalize(self):
        """
        Saves the recorded timing information in the output folder as a JSON file.
        Returns the saved dictionary, or an empty one if benchmarking is off.
        """
        if not self.should_benchmark:
            return {}

        if len(self.stack):
            raise RuntimeError(
                "Unable to finalize timing info. The stack was non empty with %d"
                " item(s) still not popped." % len(self.stack)
            )

        # The data field stores the raw timings of every range path, the
        # mean_data field their mean and the meta field describes this run.
        benchmark_dict = {
            "data": self.timing_info,
            "mean_data": {
                path: float(np.mean(times)) for path, times in self.timing_info.items()
            },
            "meta": {
                "obj_name": self.obj_name,
                "measurement_unit": "milliseconds",
                "pytorch_version": torch.__version__,
                "python_version": sys.version,
                "args": {},
            },
        }
        if self.command_line_args:
            for arg in vars(self.command_line_args):
                value = getattr(self.command_line_args, arg)
                if isinstance(value, (bool, int, float, str, type(None))):
                    benchmark_dict["meta"]["args"][arg] = value

        if not self.output_dir:
            raise ValueError("output_dir must be known to write benchmark.json.")

        benchmark_file_path = os.path.join(self.output_dir, "benchmark.json")
        with open(benchmark_file_path, "w") as f:
            f.write(json.dumps(benchmark_dict, indent=4))
        self.logger.info("benchmark.json was written to: %s" % benchmark_file_path)

        return benchmark_dict


def get_default_arg_parser(
    message,
    input_dir="data/aerials",
    output_dir="output",
    angle=45.0,
    extension=".tiff",
    device_id=0,
    supported_backends=["cuda", "cpu"],
    backend="cuda",
    interpolation=Interp.LINEAR.value,
    log_level="info",
):
    """
    Prepares and returns an argparse command line argument parser for the batch
    rotation. Every flag has a default so that a bare invocation is valid.
    """
    parser = argparse.ArgumentParser(
        message,
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "-i",
        "--input_dir",
        default=input_dir,
        type=str,
        help="The directory searched recursively for images to rotate.",
    )

    parser.add_argument(
        "-o",
        "--output_dir",
        default=output_dir,
        type=str,
        help="The folder where the rotated images and the processing log are stored.",
    )

    parser.add_argument(
        "-a",
        "--angle",
        default=angle,
        type=float,
        help="The rotation angle in degrees. Positive values rotate counter-clockwise.",
    )

    parser.add_argument(
        "-e",
        "--extension",
        default=extension,
        type=str,
        help="Only files with this extension are processed. Case insensitive.",
    )

    parser.add_argument(
        "-d",
        "--device_id",
        default=device_id,
        type=int,
        help="The GPU device to use.",
    )

    parser.add_argument(
        "-bk",
        "--backend",
        type=str,
        choices=supported_backends,
        default=backend,
        help="The rotation backend to use. Currently supports %s."
        % ", ".join(supported_backends),
    )

    parser.add_argument(
        "-ip",
        "--interpolation",
        type=str,
        choices=[interp.value for interp in Interp],
        default=interpolation,
        help="The interpolation used to resample the rotated image.",
    )

    parser.add_argument(
        "-ll",
        "--log_level",
        type=str,
        choices=["info", "error", "debug", "warning"],
        default=log_level,
        help="Sets the desired logging level. Affects the std-out printed by the "
        "batch when it is run.",
    )

    return parser


def normalize_extension(extension):
    extension = extension.strip().lower()
    if not extension.startswith("."):
        extension = "." + extension
    return extension


def parse_validate_default_args(parser, argv=None):
    """
    Parses and validates the values of the default command line arguments.
    Unrecognized arguments do not stop the parsing, they are returned in
    ``args.unrecognized`` so that the caller can warn about them.
    """
    args, unrecognized = parser.parse_known_args(argv)
    args.unrecognized = unrecognized

    if not math.isfinite(args.angle):
        raise ValueError("angle must be a finite number, got %s." % args.angle)

    if args.device_id < 0:
        raise ValueError("device_id must be a value >=0.")

    if not args.extension.strip(". "):
        raise ValueError("extension must not be empty.")
    args.extension = normalize_extension(args.extension)

    return args
