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

import hashlib

import pytest
import yaml
from click.testing import CliRunner

from stm32mpsign import keys
from stm32mpsign.header import HASH_OFFSET
from stm32mpsign.main import stm32mpsign
from tests.constants import file_digest

DUMPINFO_SUCCESS_LITERAL = "dumpinfo has run successfully"


class TestDumpInfo:
    runner = CliRunner()

    def test_dumpinfo_unsigned(self, make_image):
        path = make_image()
        digest = file_digest(path)
        result = self.runner.invoke(stm32mpsign, ["dumpinfo", str(path)])
        assert result.exit_code == 0
        assert DUMPINFO_SUCCESS_LITERAL in result.output
        assert "magic:" in result.output
        assert "STM2" in result.output
        assert "INVALID (0x0)" in result.output
        assert "Hash region (offset: 0x48)" in result.output
        assert file_digest(path) == digest

    def test_dumpinfo_signed(self, ec_keys, make_image):
        path = make_image()
        result = self.runner.invoke(
            stm32mpsign, ["sign", "-i", str(path),
                          "-k", str(ec_keys["brainpoolP256r1"])])
        assert result.exit_code == 0

        result = self.runner.invoke(stm32mpsign, ["dumpinfo", str(path)])
        assert result.exit_code == 0
        assert "brainpoolP256r1 (0x2)" in result.output
        assert "signed (0x0)" in result.output

    def test_dumpinfo_outfile(self, ec_keys, make_image, tmp_path):
        path = make_image()
        self.runner.invoke(
            stm32mpsign, ["sign", "-i", str(path),
                          "-k", str(ec_keys["prime256v1"])])
        outfile = tmp_path / "dump.yaml"

        result = self.runner.invoke(
            stm32mpsign, ["dumpinfo", "-s", "-o", str(outfile), str(path)])
        assert result.exit_code == 0
        assert "Image header" not in result.output

        with open(str(outfile)) as f:
            dump = yaml.safe_load(f)
        b = path.read_bytes()
        key = keys.load(str(ec_keys["prime256v1"]))
        assert dump["header"]["magic"] == "STM2"
        assert dump["header"]["ecdsa_algorithm"] == 1
        assert dump["header"]["option_flags"] == 0
        assert dump["header"]["ecdsa_public_key"] == \
            key.get_public_bytes().hex()
        assert dump["header"]["image_signature"] == b[4:68].hex()
        assert dump["hash_region"] == {
            "offset": HASH_OFFSET,
            "size": len(b) - HASH_OFFSET,
            "sha256": hashlib.sha256(b[HASH_OFFSET:]).hexdigest(),
        }
        assert dump["file_size"] == len(b)

    def test_dumpinfo_invalid(self, make_image, tmp_path):
        result = self.runner.invoke(
            stm32mpsign, ["dumpinfo", str(tmp_path / "invalid")])
        assert result.exit_code != 0
        assert DUMPINFO_SUCCESS_LITERAL not in result.output

        result = self.runner.invoke(
            stm32mpsign, ["dumpinfo", str(make_image(size=100))])
        assert result.exit_code != 0

    def test_dumpinfo_directory(self, tmp_path):
        result = self.runner.invoke(stm32mpsign, ["dumpinfo", str(tmp_path)])
        assert result.exit_code == 2
        assert "Cannot open" in result.output
        assert not isinstance(result.exception, IsADirectoryError)


class TestGetPub:
    runner = CliRunner()

    def test_getpub_raw(self, ec_keys, tmp_path):
        outfile = tmp_path / "pub.bin"
        result = self.runner.invoke(
            stm32mpsign, ["getpub", "-k", str(ec_keys["prime256v1"]),
                          "-e", "raw", "-o", str(outfile)])
        assert result.exit_code == 0
        key = keys.load(str(ec_keys["prime256v1"]))
        assert outfile.read_bytes() == key.get_public_point()[1:]

    def test_getpub_lang_c(self, ec_keys):
        result = self.runner.invoke(
            stm32mpsign, ["getpub", "-k", str(ec_keys["brainpoolP256r1"])])
        assert result.exit_code == 0
        assert "const unsigned char ecdsa_pub_key[] = {" in result.output
        assert "const unsigned int ecdsa_pub_key_len = 64;" in result.output

        key = keys.load(str(ec_keys["brainpoolP256r1"]))
        first = "0x{:02x},".format(key.get_public_bytes()[0])
        assert first in result.output

    def test_getpub_pem(self, ec_keys):
        result = self.runner.invoke(
            stm32mpsign, ["getpub", "-k", str(ec_keys["prime256v1"]),
                          "-e", "pem"])
        assert result.exit_code == 0
        assert "-----BEGIN PUBLIC KEY-----" in result.output

    @pytest.mark.parametrize("encoding", ("lang-c", "pem", "raw"))
    def test_getpub_unsupported_curve(self, ec_keys, encoding):
        result = self.runner.invoke(
            stm32mpsign, ["getpub", "-k", str(ec_keys["secp384r1"]),
                          "-e", encoding])
        assert result.exit_code != 0
        assert "Invalid EC curve" in result.output

    def test_getpubhash_raw(self, ec_keys, tmp_path):
        outfile = tmp_path / "pubhash.bin"
        result = self.runner.invoke(
            stm32mpsign, ["getpubhash", "-k", str(ec_keys["prime256v1"]),
                          "-e", "raw", "-o", str(outfile)])
        assert result.exit_code == 0
        key = keys.load(str(ec_keys["prime256v1"]))
        expected = hashlib.sha256(key.get_public_point()[1:]).digest()
        assert outfile.read_bytes() == expected

    def test_getpubhash_lang_c(self, ec_keys, tmp_path):
        outfile = tmp_path / "pubhash.h"
        result = self.runner.invoke(
            stm32mpsign, ["getpubhash", "-k", str(ec_keys["prime256v1"]),
                          "-o", str(outfile)])
        assert result.exit_code == 0
        content = outfile.read_text()
        assert "ecdsa_pub_key_hash[] = {" in content
        assert "const unsigned int ecdsa_pub_key_hash_len = 32;" in content

    def test_getpub_password(self, encrypted_key, monkeypatch):
        monkeypatch.setattr('getpass.getpass', lambda _: "12345")
        result = self.runner.invoke(
            stm32mpsign, ["getpub", "-k", str(encrypted_key)])
        assert result.exit_code == 0
        assert "ecdsa_pub_key" in result.output
