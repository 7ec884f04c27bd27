"""Hook command adding a dns-01 challenge TXT record at cyon.ch.

Usable by any ACME client able to run a command with the record name and
value, or as Certbot's ``--manual-auth-hook``::

    certbot certonly --manual --preferred-challenges dns \\
      --manual-auth-hook certbot-dns-cyon-hook -d example.com

"""
import argparse
import contextlib
import logging
import sys
from collections.abc import Iterator
from collections.abc import Sequence
from typing import Optional

import requests

from certbot import errors
from certbot.compat import os

from certbot_dns_cyon._internal import credentials as cyon_credentials
from certbot_dns_cyon._internal.client import CyonClient
from certbot_dns_cyon._internal.client import DEFAULT_ENDPOINT
from certbot_dns_cyon._internal.credentials import Credentials

logger = logging.getLogger(__name__)

VALIDATION_PREFIX = '_acme-challenge.'


def add_txt_record(fqdn: str, value: str, credentials: Credentials,
                   skip_domain_environment: bool = False,
                   endpoint: str = DEFAULT_ENDPOINT) -> None:
    """Log in to my.cyon.ch and add a TXT record.

    The session is discarded afterwards, whether or not the record was added.

    :param str fqdn: The record name (typically beginning with '_acme-challenge.').
    :param str value: The record content (typically the challenge validation).
    :param Credentials credentials: Login credentials.
    :param bool skip_domain_environment: Don't select the domain environment first.
    :param str endpoint: Base URL of the portal.
    :raises .CyonError: if any step fails.
    """
    client = CyonClient(credentials, endpoint)
    logger.info('Adding DNS TXT entry to your cyon.ch domain')
    logger.info('  * Full Domain: %s', fqdn)
    logger.info('  * TXT Value:   %s', value)
    try:
        client.login()
        if not skip_domain_environment:
            client.set_domain_environment(fqdn)
        client.add_txt_record(fqdn, value)
    finally:
        client.close()


@contextlib.contextmanager
def _stderr_logging(verbose: bool) -> Iterator[None]:
    """Send log records to stderr until the block exits."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter('%(message)s'))
    root_logger = logging.getLogger()
    previous_level = root_logger.level
    root_logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    root_logger.addHandler(handler)
    try:
        yield
    finally:
        root_logger.removeHandler(handler)
        root_logger.setLevel(previous_level)


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='certbot-dns-cyon-hook',
        description='Add a dns-01 challenge TXT record to a domain hosted at cyon.ch.')
    parser.add_argument('fqdn', nargs='?',
                        help='Record name, e.g. _acme-challenge.example.com. Defaults to '
                             '_acme-challenge.$CERTBOT_DOMAIN.')
    parser.add_argument('value', nargs='?',
                        help='Record value. Defaults to $CERTBOT_VALIDATION.')
    parser.add_argument('--config', default=cyon_credentials.DEFAULT_ACCOUNT_CONF,
                        help='File in which the login credentials are kept '
                             '(default: %(default)s).')
    parser.add_argument('--skip-domain-environment', action='store_true',
                        help="Don't select the domain environment before adding the record.")
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Log the raw requests and responses.')
    return parser


def main(cli_args: Optional[Sequence[str]] = None) -> int:
    """Run the hook.

    :returns: Exit status, 0 if the record was added.
    :rtype: int
    """
    parser = _parser()
    args = parser.parse_args(cli_args)
    with _stderr_logging(args.verbose):
        return _run(parser, args)


def _run(parser: argparse.ArgumentParser, args: argparse.Namespace) -> int:
    fqdn = args.fqdn
    if not fqdn and os.environ.get('CERTBOT_DOMAIN'):
        fqdn = VALIDATION_PREFIX + os.environ['CERTBOT_DOMAIN']
    value = args.value or os.environ.get('CERTBOT_VALIDATION')
    if not fqdn or not value:
        parser.error('the record name and value are required (or set $CERTBOT_DOMAIN '
                     'and $CERTBOT_VALIDATION)')

    try:
        store = cyon_credentials.AccountStore(args.config)
        credentials = cyon_credentials.resolve_credentials(store.conf)
        store.save(credentials)
        add_txt_record(fqdn, value, credentials,
                       skip_domain_environment=args.skip_domain_environment)
    except errors.Error as e:
        logger.debug('Hook failed', exc_info=True)
        logger.error('%s', e)
        return 1
    except requests.exceptions.RequestException as e:
        logger.debug('Hook failed', exc_info=True)
        logger.error('Error communicating with my.cyon.ch: %s', e)
        return 1
    except OSError as e:
        logger.debug('Hook failed', exc_info=True)
        logger.error('Error saving credentials to %s: %s', args.config, e)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())  # pragma: no cover
