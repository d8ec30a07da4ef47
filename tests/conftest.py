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

import pytest
from cryptography.hazmat.primitives.asymmetric import ec, rsa

from stm32mpsign.header import HEADER_MAGIC
from tests.constants import (
    GEN_KEY_EXT, IMAGE_SIZE, KEY_PASSWORD, REJECTED_CURVES, SIGNING_CURVES,
    tmp_name, write_key)


@pytest.fixture(scope="session")
def tmp_path_persistent(tmp_path_factory):
    return tmp_path_factory.mktemp("keys")


@pytest.fixture(scope="session")
def ec_keys(tmp_path_persistent):
    """One plain PEM key file per signing or rejected curve"""
    curves = dict((name, curve) for name, (curve, _) in SIGNING_CURVES.items())
    curves.update(REJECTED_CURVES)
    key_files = {}
    for name, curve in curves.items():
        pk = ec.generate_private_key(curve())
        key_files[name] = write_key(
            tmp_name(tmp_path_persistent, name, GEN_KEY_EXT), pk)
    return key_files


@pytest.fixture(scope="session")
def encrypted_key(tmp_path_persistent):
    pk = ec.generate_private_key(ec.SECP256R1())
    return write_key(
        tmp_name(tmp_path_persistent, "prime256v1_passwd", GEN_KEY_EXT), pk,
        password=KEY_PASSWORD)


@pytest.fixture(scope="session")
def rsa_key(tmp_path_persistent):
    pk = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return write_key(tmp_name(tmp_path_persistent, "rsa-2048", GEN_KEY_EXT),
                     pk)


@pytest.fixture
def make_image(tmp_path):
    """Build an image file: magic, zeroed header, patterned payload"""
    def _make_image(size=IMAGE_SIZE, magic=HEADER_MAGIC, name="image.stm32"):
        data = bytearray(size)
        data[:len(magic)] = magic[:size]
        for i in range(256, size):
            data[i] = i & 0xff
        path = tmp_path / name
        path.write_bytes(bytes(data))
        return path
    return _make_image
