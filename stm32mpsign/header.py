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
STM32MP1 image header layout.

The header is a packed little-endian structure at the start of the image.
Fields are accessed by name through `Header`, which reads and writes at the
offsets computed from `HEADER_LAYOUT` below.  The trailing padding (and
anything after it, such as the binary type byte some headers carry) is never
interpreted.
"""

import struct
from collections import namedtuple

HEADER_MAGIC = b'STM2'
HEADER_ENDIAN = '<'

# Name and struct format of each field, in order.
HEADER_LAYOUT = (
        ('magic',            '4s'),
        ('image_signature',  '64s'),
        ('image_checksum',   'I'),
        ('header_version',   '4s'),
        ('image_length',     'I'),
        ('entry_point',      'I'),
        ('reserved1',        'I'),
        ('load_address',     'I'),
        ('reserved2',        'I'),
        ('version_number',   'I'),
        ('option_flags',     'I'),
        ('ecdsa_algorithm',  'I'),
        ('ecdsa_public_key', '64s'),
)
HEADER_PADDING_SIZE = 83

HeaderField = namedtuple('HeaderField', ['name', 'offset', 'size', 'fmt'])


def _build_fields(layout):
    fields = {}
    offset = 0
    for name, fmt in layout:
        size = struct.calcsize(HEADER_ENDIAN + fmt)
        fields[name] = HeaderField(name, offset, size, fmt)
        offset += size
    return fields, offset


HEADER_FIELDS, PADDING_OFFSET = _build_fields(HEADER_LAYOUT)
HEADER_SIZE = PADDING_OFFSET + HEADER_PADDING_SIZE

# The boot ROM hashes from header_version to the end of the file.
HASH_OFFSET = HEADER_FIELDS['header_version'].offset

# option_flags values
OPTION_FLAG_SIGNED = 0
OPTION_FLAG_NOT_SIGNED = 1

SIGNATURE_COMPONENT_SIZE = HEADER_FIELDS['image_signature'].size // 2
PUBLIC_KEY_COMPONENT_SIZE = HEADER_FIELDS['ecdsa_public_key'].size // 2


def offset_of(name):
    return HEADER_FIELDS[name].offset


class Header:
    """
    Named access to the header fields of a buffer.

    `buf` can be anything supporting the buffer protocol (bytes, bytearray,
    mmap).  Writing requires a writable buffer.
    """
    def __init__(self, buf):
        if len(buf) < HEADER_SIZE:
            raise ValueError("Buffer too small for header: {} < {}".format(
                len(buf), HEADER_SIZE))
        self.buf = buf

    def __getitem__(self, name):
        field = HEADER_FIELDS[name]
        return struct.unpack_from(HEADER_ENDIAN + field.fmt, self.buf,
                                  field.offset)[0]

    def __setitem__(self, name, value):
        field = HEADER_FIELDS[name]
        # struct silently pads or truncates 's' fields
        if field.fmt.endswith('s') and len(value) != field.size:
            raise ValueError("{} must be {} bytes, got {}".format(
                name, field.size, len(value)))
        struct.pack_into(HEADER_ENDIAN + field.fmt, self.buf, field.offset,
                         value)

    def __iter__(self):
        return iter(HEADER_FIELDS)

    def items(self):
        return [(name, self[name]) for name in HEADER_FIELDS]

    def has_valid_magic(self):
        return self['magic'] == HEADER_MAGIC
