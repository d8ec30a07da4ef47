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
In-place image signing.

The image file is mapped shared and writable, so every header write goes
straight to the file.  Signing is not atomic: once the public key fields
have been written, a later failure leaves the image partially signed and
it must be restored from a copy before retrying.
"""

import mmap
import os

from . import keys
from .header import (
    Header, HEADER_SIZE, HASH_OFFSET, OPTION_FLAG_SIGNED,
    SIGNATURE_COMPONENT_SIZE)


class ImageError(Exception):
    pass


class ImageTooSmall(ImageError):
    pass


class BadMagic(ImageError):
    pass


class ImageIOError(ImageError):
    pass


def int_to_fixed_bytes(value, size):
    """Big-endian unsigned encoding of value, left padded to size bytes"""
    try:
        return value.to_bytes(size, byteorder='big')
    except OverflowError:
        raise keys.SigningError(
            "Signature component does not fit in {} bytes".format(size))


class Image:
    """
    A writable mapping of an STM32 image file.

    Use `Image.load()`; the returned object is a context manager which
    releases the mapping and the file on exit.
    """

    def __init__(self, path, fileobj, data):
        self.path = path
        self._file = fileobj
        self.data = data
        self.header = Header(data)

    def __repr__(self):
        return "<Image path={}, size=0x{:x}, closed={}>".format(
            self.path, len(self) if not self.closed else 0, self.closed)

    def __len__(self):
        return len(self.data)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    @property
    def closed(self):
        return self.data is None

    @classmethod
    def load(cls, path):
        """Map an image from a given file, checking size and magic"""
        try:
            f = open(path, 'r+b')
        except OSError as e:
            raise ImageIOError("Cannot open {}: {}".format(path, e.strerror))

        data = None
        try:
            size = os.fstat(f.fileno()).st_size
            if size <= HEADER_SIZE:
                raise ImageTooSmall(
                    "Image file too small for stm32 header: "
                    "{} bytes, need more than {}".format(size, HEADER_SIZE))
            try:
                data = mmap.mmap(f.fileno(), size, access=mmap.ACCESS_WRITE)
            except (OSError, ValueError) as e:
                raise ImageIOError("mmap failed: {}".format(e))
            header = Header(data)
            if not header.has_valid_magic():
                raise BadMagic("Invalid stm32 header magic: {!r}".format(
                    header["magic"]))
        except BaseException:
            if data is not None:
                data.close()
            f.close()
            raise
        return cls(path, f, data)

    def hash_region(self):
        """Bytes covered by the signature: header_version up to end of file"""
        return self.data[HASH_OFFSET:]

    def set_public_key(self, point, curve_id):
        """Write pubkey, signed flag and algorithm.  Mutates the image."""
        keys.check_public_point(point)
        self.header['ecdsa_public_key'] = bytes(point[1:])
        self.header['option_flags'] = OPTION_FLAG_SIGNED
        self.header['ecdsa_algorithm'] = curve_id

    def set_signature(self, r, s):
        self.header['image_signature'] = (
            int_to_fixed_bytes(r, SIGNATURE_COMPONENT_SIZE) +
            int_to_fixed_bytes(s, SIGNATURE_COMPONENT_SIZE))

    def sign(self, key):
        """Embed the public key of key and sign the image with it.

        The public key and curve are validated before anything is written.
        The signature covers the freshly written key fields.
        """
        point, curve_id = key.derive_public_key()
        self.set_public_key(point, curve_id)
        r, s = key.sign(self.hash_region())
        self.set_signature(r, s)

    def flush(self):
        try:
            self.data.flush()
        except OSError as e:
            raise ImageIOError("Unable to flush {}: {}".format(
                self.path, e.strerror))

    def close(self):
        if self.data is not None:
            self.data.close()
            self.data = None
            self.header = None
        if self._file is not None:
            self._file.close()
            self._file = None


def sign_image(imgfile, keyfile, passwd=None, password_source=None):
    """Sign imgfile in place with the private key in keyfile.

    Returns the curve id written to the header.
    """
    with Image.load(imgfile) as img:
        key = keys.load(keyfile, passwd, password_source=password_source)
        img.sign(key)
        img.flush()
        return img.header['ecdsa_algorithm']
