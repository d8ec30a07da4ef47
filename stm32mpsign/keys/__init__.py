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
Signing key loading for stm32mpsign.
"""

import getpass

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ec import (
    EllipticCurvePrivateKey)

from .ecdsa import (
    ECDSA256, KeyUsageError, UnsupportedCurve, PubkeyDerivationError,
    PubkeyFormatError, SigningError, CURVE_IDS, check_public_point)


class KeyLoadError(KeyUsageError):
    pass


class PasswordRequired(Exception):
    """Raised to indicate that the key is password protected, but a
    password was not specified."""
    pass


class PasswordSource(object):
    """Supplies the key password when none was given up front."""
    def prompt(self):
        raise NotImplementedError


class TerminalPassword(PasswordSource):
    def __init__(self, message="Privkey password: "):
        self.message = message

    def prompt(self):
        # Password must be bytes, always use UTF-8 for consistent
        # encoding.
        return getpass.getpass(self.message).encode('utf-8')


class FixedPassword(PasswordSource):
    def __init__(self, passwd):
        if isinstance(passwd, str):
            passwd = passwd.encode('utf-8')
        self.passwd = passwd

    def prompt(self):
        return self.passwd


def _load_private_key(raw, passwd):
    if b'-----BEGIN' in raw:
        loader = serialization.load_pem_private_key
    else:
        loader = serialization.load_der_private_key
    try:
        return loader(raw, password=passwd, backend=default_backend())
    # This is a bit nonsensical of an exception, but it is what
    # cryptography raises both when the password is needed and when one
    # was given for an unencrypted key.
    except TypeError:
        if passwd is None:
            raise PasswordRequired()
        return loader(raw, password=None, backend=default_backend())


def load(path, passwd=None, password_source=None):
    """Load an EC private key from the given path.

    If the key is encrypted and no password was given, one is requested from
    `password_source` (the terminal by default).
    """
    if isinstance(passwd, str):
        passwd = passwd.encode('utf-8')
    try:
        with open(path, 'rb') as f:
            raw = f.read()
    except OSError as e:
        raise KeyLoadError("Unable to load privkey {}: {}".format(
            path, e.strerror))

    try:
        try:
            pk = _load_private_key(raw, passwd)
        except PasswordRequired:
            if password_source is None:
                password_source = TerminalPassword()
            pk = _load_private_key(raw, password_source.prompt())
    except (TypeError, ValueError, UnsupportedAlgorithm) as e:
        raise KeyLoadError("Unable to load privkey {}: {}".format(path, e))

    if not isinstance(pk, EllipticCurvePrivateKey):
        raise KeyLoadError("Privkey {} is not an EC type".format(path))
    return ECDSA256(pk)


__all__ = [
    'ECDSA256', 'KeyUsageError', 'KeyLoadError', 'UnsupportedCurve',
    'PubkeyDerivationError', 'PubkeyFormatError', 'SigningError',
    'PasswordRequired', 'PasswordSource', 'TerminalPassword',
    'FixedPassword', 'CURVE_IDS', 'check_public_point', 'load',
]
