"""Resolution and persistence of cyon.ch login credentials."""
import base64
import binascii
import logging
from collections.abc import Callable
from collections.abc import Mapping
from typing import NamedTuple
from typing import Optional

import configobj

from certbot import util
from certbot.compat import os

from certbot_dns_cyon._internal import errors

logger = logging.getLogger(__name__)

ENV_USERNAME = 'CYON_USERNAME'
ENV_PASSWORD = 'CYON_PASSWORD'
ENV_PASSWORD_B64 = 'CYON_PASSWORD_B64'
ENV_OTP_SECRET = 'CYON_OTP_SECRET'

DEFAULT_ACCOUNT_CONF = os.path.join(os.path.expanduser('~'), '.certbot-dns-cyon',
                                    'account.conf')


class Credentials(NamedTuple):
    """Login credentials for the my.cyon.ch portal."""
    username: str
    password: str
    otp_secret: Optional[str] = None

    @property
    def password_b64(self) -> str:
        """The password in its at-rest form."""
        return encode_password(self.password)


def encode_password(password: str) -> str:
    """Encode a plaintext password for storage."""
    return base64.b64encode(password.encode('utf-8')).decode('ascii')


def decode_password(encoded: str) -> str:
    """Decode a stored password.

    :raises .ConfigurationError: if ``encoded`` is not valid base64.
    """
    try:
        return base64.b64decode(encoded.strip(), validate=True).decode('utf-8')
    except (binascii.Error, UnicodeDecodeError):
        raise errors.ConfigurationError('The stored cyon.ch password is not valid base64.')


def resolve_credentials(conf: Callable[[str], Optional[str]],
                        environ: Optional[Mapping[str, str]] = None) -> Credentials:
    """Build the credential set from a configuration store and the environment.

    Environment variables take precedence over stored values. For the password,
    a plaintext value takes precedence over an encoded one from the same source.

    :param callable conf: Looks up ``username``, ``password``, ``password-b64`` and
        ``otp-secret`` in the configuration store.
    :param dict environ: Environment to read overrides from, `os.environ` by default.
    :returns: The resolved credentials.
    :rtype: Credentials
    :raises .ConfigurationError: if the username or password is missing.
    """
    if environ is None:
        environ = os.environ

    username = environ.get(ENV_USERNAME) or conf('username')

    password = None
    for plain, encoded in ((environ.get(ENV_PASSWORD), environ.get(ENV_PASSWORD_B64)),
                           (conf('password'), conf('password-b64'))):
        if plain:
            password = plain
        elif encoded:
            password = decode_password(encoded)
        if password:
            break

    otp_secret = environ.get(ENV_OTP_SECRET) or conf('otp-secret') or None

    missing = []
    if not username:
        missing.append('username')
    if not password:
        missing.append('password')
    if missing:
        raise errors.ConfigurationError(
            "You haven't set your cyon.ch login credentials yet (missing {0}). Please set "
            "${1} and ${2}.".format(' and '.join(missing), ENV_USERNAME, ENV_PASSWORD))

    # Both were checked above, the asserts are for mypy.
    assert username is not None
    assert password is not None
    return Credentials(username, password, otp_secret)


def normalized_values(credentials: Credentials) -> dict[str, str]:
    """Return the at-rest form of ``credentials`` keyed by logical name."""
    values = {
        'username': credentials.username,
        'password-b64': credentials.password_b64,
    }
    if credentials.otp_secret:
        values['otp-secret'] = credentials.otp_secret
    return values


def update_config(confobj: configobj.ConfigObj, credentials: Credentials,
                  mapper: Callable[[str], str]) -> bool:
    """Write the normalized credentials into ``confobj``.

    Any plaintext password is dropped in favour of its encoded form.

    :returns: Whether ``confobj`` was modified.
    :rtype: bool
    """
    changed = False
    for var, value in normalized_values(credentials).items():
        key = mapper(var)
        if confobj.get(key) != value:
            confobj[key] = value
            changed = True
    plain_key = mapper('password')
    if plain_key in confobj:
        del confobj[plain_key]
        changed = True
    return changed


class AccountStore:
    """The key-value file in which the hook keeps the normalized credentials.

    Keys carry a ``cyon_`` prefix, e.g. ``cyon_password_b64``.
    """

    def __init__(self, path: str = DEFAULT_ACCOUNT_CONF) -> None:
        self.path = os.path.abspath(os.path.expanduser(path))
        try:
            self.confobj = configobj.ConfigObj(self.path, encoding='utf-8',
                                               default_encoding='utf-8')
        except (configobj.ConfigObjError, OSError) as e:
            logger.debug('Error reading account configuration %s', self.path, exc_info=True)
            raise errors.ConfigurationError(
                "Error parsing account configuration '{0}': {1}".format(self.path, e))

    @staticmethod
    def mapper(var: str) -> str:
        """Map a logical credential name to its key in the file."""
        return 'cyon_' + var.replace('-', '_')

    def conf(self, var: str) -> Optional[str]:
        """Look up a stored value by logical name."""
        return self.confobj.get(self.mapper(var))

    def save(self, credentials: Credentials) -> None:
        """Persist the normalized credentials, writing only if something changed."""
        if not update_config(self.confobj, credentials, self.mapper):
            logger.debug('Account configuration %s is up to date', self.path)
            return

        logger.debug('Saving credentials to %s', self.path)
        if not os.path.exists(self.path):
            util.make_or_verify_dir(os.path.dirname(self.path), 0o700)
            util.safe_open(self.path, 'wb', chmod=0o600).close()
        with open(self.path, 'wb') as f:
            self.confobj.write(outfile=f)
