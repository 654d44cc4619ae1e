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
import logging

from .backends import SUPPORTED_BACKENDS, create_backend
from .errors import FatalError
from .files import find_image_files
from .geometry import Interp
from .perf_utils import (
    RotatePerf,
    get_default_arg_parser,
    parse_validate_default_args,
)
from .pipeline import ImagePipeline
from .report import format_summary, write_processing_log
from .runner import BatchRunner

app_title = "Batch image rotation using CV-CUDA."


def run_sample(
    input_dir,
    output_dir,
    angle,
    extension,
    device_id,
    backend,
    interpolation,
    rotate_perf,
):
    """
    Rotates every image found below ``input_dir`` and writes the results, a
    summary and a processing log to ``output_dir``.
    :returns: The process exit code, 0 if every image succeeded.
    """
    logger = logging.getLogger("batchrotate")

    with rotate_perf.range("run_sample"):
        logger.info("Scanning directory: %s" % input_dir)
        logger.info("Looking for files with extension: %s" % extension)
        image_files, extension = find_image_files(input_dir, extension)

        logger.info("Found %d image(s) to process" % len(image_files))
        logger.info("Rotation angle: %g degrees" % angle)

        context, kernel = create_backend(backend, device_id)
        with context:
            for key, value in context.describe().items():
                logger.info("  %s: %s" % (key, value))

            os.makedirs(output_dir, exist_ok=True)

            pipeline = ImagePipeline(
                context, kernel, interpolation=Interp(interpolation), perf=rotate_perf
            )
            stats = BatchRunner(pipeline, rotate_perf).run(
                image_files, output_dir, angle
            )

    print(format_summary(stats, output_dir))

    log_path = write_processing_log(
        output_dir,
        {
            "input_dir": input_dir,
            "output_dir": output_dir,
            "angle": angle,
            "extension": extension,
        },
        stats,
    )
    logger.info("Log file saved: %s" % log_path)

    # Once everything is over, we need to finalize the perf-numbers.
    rotate_perf.finalize()

    return 0 if stats.failures == 0 else 1


def main(argv=None):
    parser = get_default_arg_parser(app_title, supported_backends=SUPPORTED_BACKENDS)
    logger = logging.getLogger("batchrotate")

    try:
        args = parse_validate_default_args(parser, argv)
    except ValueError as e:
        logging.basicConfig()
        logger.error("Invalid arguments: %s" % str(e))
        return 1

    logging.basicConfig(
        format="[%(name)s:%(lineno)d] %(asctime)s %(levelname)-6s %(message)s",
        level=getattr(logging, args.log_level.upper()),
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    for arg in args.unrecognized:
        logger.warning("Ignoring unrecognized argument: %s" % arg)

    rotate_perf = RotatePerf("batch_rotate", default_args=args)
    try:
        return run_sample(
            args.input_dir,
            args.output_dir,
            args.angle,
            args.extension,
            args.device_id,
            args.backend,
            args.interpolation,
            rotate_perf,
        )
    except FatalError as e:
        logger.error("Program error! The following exception occurred: %s" % str(e))
        logger.error("Aborting.")
        return 1


def cli():
    sys.exit(main())


if __name__ == "__main__":
    cli()
