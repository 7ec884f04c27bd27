"""DNS Authenticator for cyon.ch."""
import logging
from collections.abc import Callable
from typing import Any
from typing import Optional

import configobj

from certbot import errors
from certbot.plugins import dns_common
from certbot.plugins.dns_common import CredentialsConfiguration

from certbot_dns_cyon._internal import client
from certbot_dns_cyon._internal import credentials as cyon_credentials
from certbot_dns_cyon._internal import hook
from certbot_dns_cyon._internal.credentials import Credentials

logger = logging.getLogger(__name__)


class Authenticator(dns_common.DNSAuthenticator):
    """DNS Authenticator for cyon.ch

    This Authenticator logs into the my.cyon.ch portal to fulfill a dns-01 challenge.
    """

    description = 'Obtain certificates using a DNS TXT record (if you are using cyon.ch for DNS).'
    ttl = client.RECORD_TTL

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.credentials: Optional[CredentialsConfiguration] = None
        self._cyon_credentials: Optional[Credentials] = None

    @classmethod
    def add_parser_arguments(cls, add: Callable[..., None],
                             default_propagation_seconds: int = 60) -> None:
        super().add_parser_arguments(add, default_propagation_seconds)
        add('credentials', help='cyon.ch credentials INI file.')
        add('skip-domain-environment', action='store_true', default=False,
            help="Don't select the domain environment before adding the record.")

    def more_info(self) -> str:
        return 'This plugin configures a DNS TXT record to respond to a dns-01 challenge using ' + \
               'the my.cyon.ch web portal.'

    def _validate_credentials(self, credentials: CredentialsConfiguration) -> None:
        try:
            cyon_credentials.resolve_credentials(credentials.conf)
        except errors.PluginError as e:
            raise errors.PluginError('{0}: {1}'.format(credentials.confobj.filename, e))

    def _setup_credentials(self) -> None:
        self.credentials = self._configure_credentials(
            'credentials',
            'cyon.ch credentials INI file',
            None,
            self._validate_credentials
        )
        self._cyon_credentials = cyon_credentials.resolve_credentials(self.credentials.conf)
        self._save_credentials(self.credentials.confobj, self._cyon_credentials)

    def _save_credentials(self, confobj: configobj.ConfigObj, credentials: Credentials) -> None:
        if not cyon_credentials.update_config(confobj, credentials, self.dest):
            return
        logger.debug('Saving normalized credentials to %s', confobj.filename)
        try:
            confobj.write()
        except (OSError, UnicodeError) as e:
            logger.warning('Unable to update credentials file %s: %s', confobj.filename, e)

    def _perform(self, domain: str, validation_name: str, validation: str) -> None:
        if not self._cyon_credentials:  # pragma: no cover
            raise errors.Error("Plugin has not been prepared.")
        hook.add_txt_record(validation_name, validation, self._cyon_credentials,
                            skip_domain_environment=bool(self.conf('skip-domain-environment')))

    def _cleanup(self, domain: str, validation_name: str, validation: str) -> None:
        logger.info('cyon.ch offers no way to remove records automatically. You may delete the '
                    'TXT record %s in the DNS editor of my.cyon.ch.', validation_name)
