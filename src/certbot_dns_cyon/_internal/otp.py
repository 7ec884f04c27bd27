"""Time-based one-time passwords for the cyon.ch second factor."""
import base64
import binascii
import time
from typing import Optional

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.twofactor import totp

from certbot_dns_cyon._internal import errors

TOTP_LENGTH = 6
TOTP_TIME_STEP = 30


def decode_secret(secret: str) -> bytes:
    """Decode a base32 shared secret as shown by authenticator apps.

    Lowercase letters, embedded spaces and missing ``=`` padding are accepted.

    :param str secret: The base32 encoded shared secret.
    :returns: The raw key.
    :rtype: bytes
    :raises .ConfigurationError: if the secret is not valid base32.
    """
    cleaned = ''.join(secret.split()).upper()
    cleaned += '=' * (-len(cleaned) % 8)
    try:
        key = base64.b32decode(cleaned)
    except (binascii.Error, ValueError):
        raise errors.ConfigurationError('The OTP secret is not a valid base32 string.')
    if not key:
        raise errors.ConfigurationError('The OTP secret is empty.')
    return key


def totp_code(secret: str, now: Optional[float] = None) -> str:
    """Compute the current TOTP code for ``secret``.

    :param str secret: The base32 encoded shared secret.
    :param float now: Unix time to compute the code for. Defaults to the current time.
    :returns: The six digit code.
    :rtype: str
    """
    generator = totp.TOTP(decode_secret(secret), TOTP_LENGTH, hashes.SHA1(), TOTP_TIME_STEP,
                          enforce_key_length=False)
    if now is None:
        now = time.time()
    return generator.generate(int(now)).decode('ascii')
