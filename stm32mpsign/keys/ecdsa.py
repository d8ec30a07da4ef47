"""
ECDSA key management
"""

# SPDX-License-Identifier: Apache-2.0

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, utils

from ..header import PUBLIC_KEY_COMPONENT_SIZE
from .general import KeyClass


class KeyUsageError(Exception):
    pass


class UnsupportedCurve(KeyUsageError):
    pass


class PubkeyDerivationError(KeyUsageError):
    pass


class PubkeyFormatError(KeyUsageError):
    pass


class SigningError(KeyUsageError):
    pass


# Value of the header's ecdsa_algorithm field for each accepted curve.
# Nothing outside this table may be used for signing.
CURVE_IDS = {
        ec.SECP256R1.name:       1,
        ec.BrainpoolP256R1.name: 2,
}

# 0x04 || X || Y
POINT_UNCOMPRESSED_TAG = 0x04
POINT_UNCOMPRESSED_LEN = 1 + 2 * PUBLIC_KEY_COMPONENT_SIZE


class ECDSA256(KeyClass):
    """
    Wrapper around an ECDSA private key on one of the 256-bit curves the
    STM32MP1 boot ROM accepts.
    """
    def __init__(self, key):
        """key should be an instance of EllipticCurvePrivateKey"""
        self.key = key

    def shortname(self):
        return "ecdsa"

    def curve_name(self):
        return self.key.curve.name

    @property
    def curve_id(self):
        try:
            return CURVE_IDS[self.curve_name()]
        except KeyError:
            raise UnsupportedCurve(
                "Invalid EC curve in use: {} (supported: {})".format(
                    self.curve_name(), ', '.join(CURVE_IDS)))

    def _get_public(self):
        return self.key.public_key()

    def get_public_point(self):
        """Return the public key as an X9.62 uncompressed point"""
        try:
            return self._get_public().public_bytes(
                    encoding=serialization.Encoding.X962,
                    format=serialization.PublicFormat.UncompressedPoint)
        except (ValueError, UnsupportedAlgorithm) as e:
            raise PubkeyDerivationError(
                "Unable to get EC pubkey: {}".format(e))

    def derive_public_key(self):
        """Return (point, curve_id), refusing curves outside CURVE_IDS"""
        curve_id = self.curve_id
        return self.get_public_point(), curve_id

    def get_public_bytes(self):
        """Return the validated X || Y, as embedded in the image header"""
        point, _ = self.derive_public_key()
        check_public_point(point)
        return point[1:]

    def get_public_hash(self):
        digest = hashes.Hash(hashes.SHA256())
        digest.update(self.get_public_bytes())
        return digest.finalize()

    def get_public_pem(self):
        return self._get_public().public_bytes(
                encoding=serialization.Encoding.PEM,
                format=serialization.PublicFormat.SubjectPublicKeyInfo)

    def sign(self, payload):
        """Sign the SHA-256 digest of payload, returning the integers (r, s)"""
        digest = hashes.Hash(hashes.SHA256())
        digest.update(payload)
        try:
            der = self.key.sign(
                    digest.finalize(),
                    ec.ECDSA(utils.Prehashed(hashes.SHA256())))
        except (ValueError, UnsupportedAlgorithm) as e:
            raise SigningError(
                "Unable to generate ECDSA signature: {}".format(e))
        return utils.decode_dss_signature(der)


def check_public_point(point):
    if (len(point) != POINT_UNCOMPRESSED_LEN or
            point[0] != POINT_UNCOMPRESSED_TAG):
        raise PubkeyFormatError(
            "EC pubkey invalid length or format: {} bytes, tag {:#04x}".format(
                len(point), point[0] if point else 0))
