# SPDX-License-Identifier: Apache-2.0
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Parse and print the header information of an STM32 image.
"""
import os.path

import click
import yaml
from cryptography.hazmat.primitives import hashes

from .header import (
    Header, HEADER_SIZE, HASH_OFFSET, PADDING_OFFSET, OPTION_FLAG_SIGNED,
    OPTION_FLAG_NOT_SIGNED)
from .keys import CURVE_IDS

ALGORITHM_NAMES = dict((value, key) for key, value in CURVE_IDS.items())
OPTION_FLAGS = {
    OPTION_FLAG_SIGNED: 'signed',
    OPTION_FLAG_NOT_SIGNED: 'not signed',
}
_LINE_LENGTH = 60
_BYTES_PER_LINE = 16


def parse_algorithm(value):
    return "{} ({})".format(ALGORITHM_NAMES.get(value, "INVALID"), hex(value))


def parse_option_flags(value):
    return "{} ({})".format(OPTION_FLAGS.get(value, "UNKNOWN"), hex(value))


def format_bytes(data, indent):
    lines = []
    for i in range(0, len(data), _BYTES_PER_LINE):
        lines.append(data[i:i + _BYTES_PER_LINE].hex())
    return ("\n" + " " * indent).join(lines)


def print_in_frame(header_text, content):
    sepc = " "
    header = "#### " + header_text + sepc
    post_header = "#" * (_LINE_LENGTH - len(header))
    print(header + post_header)

    print("|", sepc * (_LINE_LENGTH - 2), "|", sep="")
    offset = (_LINE_LENGTH - len(content)) // 2
    pre = "|" + (sepc * (offset - 1))
    post = sepc * (_LINE_LENGTH - len(pre) - len(content) - 1) + "|"
    print(pre, content, post, sep="")
    print("|", sepc * (_LINE_LENGTH - 2), "|", sep="")
    print("#" * _LINE_LENGTH)


def print_in_row(row_text):
    row_text = "#### " + row_text + " "
    fill = "#" * (_LINE_LENGTH - len(row_text))
    print(row_text + fill)


def read_imginfo(imgfile):
    """Return the decoded header of imgfile, with the hash region digest."""
    try:
        with open(imgfile, "rb") as f:
            b = f.read()
    except FileNotFoundError:
        raise click.UsageError("Image file not found ({})".format(imgfile))
    except OSError as e:
        raise click.UsageError("Cannot open {}: {}".format(
            imgfile, e.strerror))

    if len(b) <= HEADER_SIZE:
        raise click.UsageError(
            "Image file too small for stm32 header ({} bytes)".format(len(b)))

    header = {}
    for key, value in Header(b).items():
        if key == "magic":
            value = value.decode('ascii', errors='replace')
        elif isinstance(value, bytes):
            value = value.hex()
        header[key] = value

    digest = hashes.Hash(hashes.SHA256())
    digest.update(b[HASH_OFFSET:])
    hash_region = {"offset": HASH_OFFSET,
                   "size": len(b) - HASH_OFFSET,
                   "sha256": digest.finalize().hex()}
    return {"header": header,
            "hash_region": hash_region,
            "file_size": len(b)}


def dump_imginfo(imgfile, outfile=None, silent=False):
    """Parse an image and print/save the header information."""
    imgdata = read_imginfo(imgfile)

    if outfile is not None:
        with open(outfile, "w") as outf:
            yaml.dump(imgdata, outf, sort_keys=False)

    if silent:
        return

    print("Printing content of image:", os.path.basename(imgfile), "\n")

    header = imgdata["header"]
    section_name = "Image header (offset: 0x0)"
    print_in_row(section_name)
    for key, value in header.items():
        if key == "magic":
            pass
        elif key == "ecdsa_algorithm":
            value = parse_algorithm(value)
        elif key == "option_flags":
            value = parse_option_flags(value)
        elif isinstance(value, int):
            value = hex(value)
        else:
            value = format_bytes(bytes.fromhex(value), 20)
        print(key, ":", " " * (19 - len(key)), value, sep="")
    print("#" * _LINE_LENGTH)

    hash_region = imgdata["hash_region"]
    section_name = "Hash region (offset: {})".format(
        hex(hash_region["offset"]))
    print_in_row(section_name)
    print("size:    ", hex(hash_region["size"]))
    print("sha256:  ", hash_region["sha256"])
    print("#" * _LINE_LENGTH)

    frame_header_text = "Padding and payload (offset: {})".format(
        hex(PADDING_OFFSET))
    frame_content = "not interpreted (size: {} Bytes)".format(
        hex(imgdata["file_size"] - PADDING_OFFSET))
    print_in_frame(frame_header_text, frame_content)

    footer = "End of Image "
    print_in_row(footer)
