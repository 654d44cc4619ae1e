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
from datetime import datetime

RULE = "=" * 50
LOG_FILE_NAME = "processing_log.txt"


def format_summary(stats, output_dir):
    """
    Returns the human readable summary block of a batch.
    """
    lines = [
        RULE,
        "PROCESSING SUMMARY",
        RULE,
        "Total images processed: %d" % stats.total,
        "Successful: %d" % stats.successes,
        "Failed: %d" % stats.failures,
        "Total time: %d ms" % stats.total_ms,
        "Average time per image: %d ms" % stats.average_ms,
        "Output directory: %s" % output_dir,
        RULE,
    ]
    return "\n".join(lines)


def write_processing_log(output_dir, config, stats, now=None):
    """Write the plain text log of a batch

    Args:
        output_dir (str): The directory the log is written to.
        config (dict): The run configuration with the keys input_dir, output_dir,
            angle and extension.
        stats (BatchStats): The results of the batch.
        now (datetime): The date printed in the log. Defaults to the current time.

    Returns:
        str: The path of the written log file.
    """
    now = now or datetime.now()
    log_path = os.path.join(output_dir, LOG_FILE_NAME)

    with open(log_path, "w") as log_file:
        log_file.write("Batch Image Rotation Processing Log\n")
        log_file.write("===================================\n\n")
        log_file.write("Date: %s\n" % now.strftime("%Y-%m-%d %H:%M:%S"))
        log_file.write("Input directory: %s\n" % config["input_dir"])
        log_file.write("Output directory: %s\n" % config["output_dir"])
        log_file.write("Rotation angle: %g degrees\n" % config["angle"])
        log_file.write("Extension filter: %s\n\n" % config["extension"])
        log_file.write("Results:\n")
        log_file.write("  Total images: %d\n" % stats.total)
        log_file.write("  Successful: %d\n" % stats.successes)
        log_file.write("  Failed: %d\n" % stats.failures)
        log_file.write("  Total time: %d ms\n" % stats.total_ms)
        log_file.write("  Average time: %d ms\n\n" % stats.average_ms)
        log_file.write("Processed files:\n")
        for path in stats.files:
            log_file.write("  - %s\n" % path)

    return log_path
