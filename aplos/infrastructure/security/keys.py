"""Loading of the base64-encoded PKCS8 RSA keys issued by the Aplos UI"""

import base64
import binascii
import logging
from pathlib import Path

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey
from cryptography.hazmat.primitives.serialization import load_der_private_key

from aplos.domain.exceptions import DecodeError, InvalidKeyError, KeyFileError

logger = logging.getLogger(__name__)

_SEQUENCE = 0x30
_INTEGER = 0x02


def _skip_header(der: bytes, offset: int) -> tuple[int, int]:
    """Return (tag, offset of the content) for the DER element at offset"""
    tag = der[offset]
    length = der[offset + 1]
    offset += 2
    if length & 0x80:
        offset += length & 0x7F
    return tag, offset


def _is_pkcs8(der: bytes) -> bool:
    """
    Check for the PrivateKeyInfo layout: SEQUENCE { INTEGER version, SEQUENCE algorithm, ... }.

    Traditional PKCS1 and SEC1 keys carry an INTEGER or OCTET STRING after the
    version instead of the algorithm identifier.
    """
    try:
        tag, offset = _skip_header(der, 0)
        if tag != _SEQUENCE:
            return False
        tag, offset = _skip_header(der, offset)
        if tag != _INTEGER:
            return False
        offset += der[offset - 1]  # short-form version length
        tag, _ = _skip_header(der, offset)
        return tag == _SEQUENCE
    except IndexError:
        return False


def load_private_key(pkcs8_der: bytes) -> RSAPrivateKey:
    """
    Parse DER-encoded PKCS8 bytes into an RSA private key.

    Raises:
        InvalidKeyError: If the bytes are not an unencrypted PKCS8 key, or the key is not RSA
    """
    if not _is_pkcs8(pkcs8_der):
        raise InvalidKeyError("Failed to parse key as PKCS8: not a PrivateKeyInfo structure")

    try:
        key = load_der_private_key(pkcs8_der, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise InvalidKeyError(f"Failed to parse key as PKCS8: {e}") from e

    if not isinstance(key, RSAPrivateKey):
        raise InvalidKeyError(f"Key was not an RSA key, was {type(key).__name__}")

    return key


def load_private_key_from_base64(text: str | bytes) -> RSAPrivateKey:
    """
    Decode base64 text, as downloaded from the Aplos UI, into an RSA private key.

    Raises:
        DecodeError: If the text is not valid base64
        InvalidKeyError: If the decoded bytes are not a PKCS8 RSA key
    """
    if isinstance(text, str):
        text = text.encode("ascii", errors="replace")
    # Line breaks may appear anywhere, as in keys wrapped at 64 columns
    compact = text.strip().replace(b"\r", b"").replace(b"\n", b"")
    try:
        der = base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"Failed to base64 decode key: {e}") from e

    return load_private_key(der)


def load_private_key_from_file(path: str | Path) -> RSAPrivateKey:
    """
    Load a base64-encoded PKCS8 RSA key file from disk.

    The file is small and fixed-size, so it is read into memory in one go.

    Raises:
        KeyFileError: If the file cannot be read
        DecodeError: If the contents are not valid base64
        InvalidKeyError: If the decoded bytes are not a PKCS8 RSA key
    """
    try:
        data = Path(path).read_bytes()
    except OSError as e:
        raise KeyFileError(f"Failed to read key file {path}: {e}") from e

    logger.debug("Read key file", extra={"key_path": str(path)})
    return load_private_key_from_base64(data)
