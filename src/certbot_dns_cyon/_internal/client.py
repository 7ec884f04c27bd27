"""Client for the (non-public) AJAX endpoints of the my.cyon.ch portal."""
import enum
import logging
from typing import Optional
from urllib.parse import quote

import requests

from certbot_dns_cyon._internal import errors
from certbot_dns_cyon._internal import otp
from certbot_dns_cyon._internal import responses
from certbot_dns_cyon._internal.credentials import Credentials

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = 'https://my.cyon.ch'

LOGIN_PATH = '/auth/index/dologin-async'
OTP_PATH = '/auth/multi-factor/domultifactorauth-async'
ENVIRONMENT_PATH = '/user/environment/setdomain/d/{domain}/gik/{key}'
ADD_RECORD_PATH = '/domain/dnseditor/add-record-async'

RECORD_TTL = 900

# Present in the body when the portal served the second factor form instead.
MULTI_FACTOR_MARKER = 'multi_factor_form'


class State(enum.Enum):
    """Progress of one login session."""
    CREDENTIALS_LOADED = 'credentials loaded'
    LOGGED_IN = 'logged in'
    OTP_VERIFIED = 'OTP verified'
    CONTEXT_SET = 'domain environment set'
    RECORD_ADDED = 'record added'
    CLEANED_UP = 'cleaned up'


def parent_domain(fqdn: str) -> str:
    """Strip the leftmost label, e.g. ``_acme-challenge.example.com`` -> ``example.com``."""
    fqdn = fqdn.rstrip('.')
    if '.' not in fqdn:
        raise errors.CyonError('{0} has no parent domain'.format(fqdn))
    return fqdn.split('.', 1)[1]


class CyonClient:
    """
    Encapsulates one authenticated session with the my.cyon.ch portal.

    The session cookies only ever live in memory and are discarded by `close`.
    """

    def __init__(self, credentials: Credentials, endpoint: str = DEFAULT_ENDPOINT) -> None:
        self.credentials = credentials
        self.endpoint = endpoint.rstrip('/')
        self.session = requests.Session()
        self.session.headers['X-Requested-With'] = 'XMLHttpRequest'
        self.state = State.CREDENTIALS_LOADED

    def _url(self, path: str) -> str:
        return self.endpoint + path

    def _request(self, method: str, path: str, data: Optional[dict[str, str]] = None
                 ) -> requests.Response:
        self._require_open()
        url = self._url(path)
        logger.debug('%s %s', method, url)
        response = self.session.request(method, url, data=data)
        logger.debug('Response (HTTP %d): %s', response.status_code, response.text)
        return response

    def _require_open(self) -> None:
        if self.state is State.CLEANED_UP:
            raise errors.CyonError('The session has already been closed.')

    def _require_authenticated(self) -> None:
        self._require_open()
        if self.state is State.CREDENTIALS_LOADED:
            raise errors.CyonError('Not logged in to my.cyon.ch.')
        if self.credentials.otp_secret and self.state is State.LOGGED_IN:
            raise errors.MissedOTPError()

    @staticmethod
    def _check_multi_factor_miss(response: requests.Response) -> None:
        if MULTI_FACTOR_MARKER in response.text:
            raise errors.MissedOTPError()

    def login(self) -> None:
        """
        Log in with username and password, then verify the OTP code if configured.

        :raises .AuthenticationError: if either step is rejected.
        """
        if self.state is not State.CREDENTIALS_LOADED:
            raise errors.CyonError('Cannot log in from state "{0}".'.format(self.state.value))

        logger.info('Logging in to my.cyon.ch as %s...', self.credentials.username)
        response = self._request('POST', LOGIN_PATH, data={
            'username': self.credentials.username,
            'password': self.credentials.password,
            'pathname': '/',
        })
        result = responses.decode(responses.LoginResponse, response)
        if not result.succeeded:
            raise errors.AuthenticationError(result.message or 'Login failed.')
        self.state = State.LOGGED_IN
        logger.info('Logged in.')

        # The portal does not accept the OTP code unless the main page was
        # loaded after the login.
        self._request('GET', '/')

        if self.credentials.otp_secret:
            self.verify_otp()

    def verify_otp(self) -> None:
        """
        Submit the current TOTP code for the configured secret.

        :raises .AuthenticationError: if the code is rejected.
        """
        if self.state is not State.LOGGED_IN:
            raise errors.CyonError('Cannot verify OTP from state "{0}".'.format(self.state.value))
        if not self.credentials.otp_secret:
            raise errors.ConfigurationError('No OTP secret configured.')

        logger.info('Authorising with OTP code...')
        response = self._request('POST', OTP_PATH, data={
            'totpcode': otp.totp_code(self.credentials.otp_secret),
            'pathname': '/',
            'rememberme': '0',
        })
        result = responses.decode(responses.LoginResponse, response)
        if not result.succeeded:
            raise errors.AuthenticationError(result.message or 'OTP authentication failed.')
        self.state = State.OTP_VERIFIED
        logger.info('OTP code accepted.')

    def set_domain_environment(self, fqdn: str) -> None:
        """
        Select the domain environment of the parent domain of ``fqdn``.

        :param str fqdn: The fully qualified name of the record to be created.
        :raises .MissedOTPError: if the portal asks for the second factor.
        :raises .DomainEnvironmentError: if the environment was not selected.
        """
        self._require_authenticated()
        domain = parent_domain(fqdn)
        logger.info('Changing domain environment to %s...', domain)

        path = ENVIRONMENT_PATH.format(domain=domain, key=quote('domain:' + domain, safe=''))
        response = self._request('GET', path)
        self._check_multi_factor_miss(response)

        result = responses.decode(responses.EnvironmentResponse, response)
        if result.authenticated is not True:
            raise errors.DomainEnvironmentError(
                result.message or 'Could not change domain environment to {0}.'.format(domain))
        self.state = State.CONTEXT_SET
        logger.info('Domain environment set.')

    def add_txt_record(self, fqdn: str, value: str) -> None:
        """
        Add a TXT record.

        :param str fqdn: The record name (typically beginning with '_acme-challenge.').
        :param str value: The record content (typically the challenge validation).
        :raises .MissedOTPError: if the portal asks for the second factor.
        :raises .RecordError: if the record was not created.
        """
        self._require_authenticated()
        logger.info('Adding DNS TXT entry %s...', fqdn)
        data = {
            'zone': fqdn.rstrip('.') + '.',
            'ttl': str(RECORD_TTL),
            'type': 'TXT',
            'value': value,
        }
        response = self._request('POST', ADD_RECORD_PATH, data=data)
        self._check_multi_factor_miss(response)

        result = responses.decode(responses.RecordResponse, response)
        if not result.succeeded:
            raise errors.RecordError(result.error_message or 'Could not add TXT record.')
        self.state = State.RECORD_ADDED
        logger.info('TXT record added.')

    def close(self) -> None:
        """Discard the session cookies. Safe to call more than once."""
        if self.state is State.CLEANED_UP:
            return
        logger.debug('Discarding session cookies')
        self.session.cookies.clear()
        self.session.close()
        self.state = State.CLEANED_UP
        logger.info('Cleanup.')
