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

"""General key class."""

import contextlib
import sys

AUTOGEN_MESSAGE = "/* Autogenerated by stm32mpsign, do not edit. */"


@contextlib.contextmanager
def _output(file, mode):
    """Yield a stream for `file`, which is either a path or an open stream.

    Streams are left open; paths are opened and closed here.
    """
    if file is None:
        file = sys.stdout
    if isinstance(file, str):
        with open(file, mode) as f:
            yield f
    elif 'b' in mode:
        yield getattr(file, 'buffer', file)
    else:
        yield file


class KeyClass(object):
    def _emit(self, header, trailer, encoded_bytes, indent, file=None,
              len_format=None):
        with _output(file, 'w') as out:
            print(AUTOGEN_MESSAGE, file=out)
            print(header, end='', file=out)
            for count, b in enumerate(encoded_bytes):
                if count % 8 == 0:
                    print("\n" + indent, end='', file=out)
                else:
                    print(" ", end='', file=out)
                print("0x{:02x},".format(b), end='', file=out)
            print("\n" + trailer, file=out)
            if len_format is not None:
                print(len_format.format(len(encoded_bytes)), file=out)

    def _emit_raw(self, encoded_bytes, file=None):
        with _output(file, 'wb') as out:
            out.write(encoded_bytes)

    def emit_c_public(self, file=None):
        self._emit(
                header="const unsigned char {}_pub_key[] = {{"
                       .format(self.shortname()),
                trailer="};",
                encoded_bytes=self.get_public_bytes(),
                indent="    ",
                len_format="const unsigned int {}_pub_key_len = {{}};"
                           .format(self.shortname()),
                file=file)

    def emit_c_public_hash(self, file=None):
        self._emit(
                header="const unsigned char {}_pub_key_hash[] = {{"
                       .format(self.shortname()),
                trailer="};",
                encoded_bytes=self.get_public_hash(),
                indent="    ",
                len_format="const unsigned int {}_pub_key_hash_len = {{}};"
                           .format(self.shortname()),
                file=file)

    def emit_raw_public(self, file=None):
        self._emit_raw(self.get_public_bytes(), file=file)

    def emit_raw_public_hash(self, file=None):
        self._emit_raw(self.get_public_hash(), file=file)

    def emit_public_pem(self, file=None):
        with _output(file, 'wb') as out:
            out.write(self.get_public_pem())
