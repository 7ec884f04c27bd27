"""Tests for certbot_dns_cyon._internal.hook."""
import io
import logging
import re
import sys
from unittest import mock

import configobj
import pytest
import requests
import requests_mock

from certbot.compat import os
from certbot.tests import util as test_util

from certbot_dns_cyon._internal import client
from certbot_dns_cyon._internal import errors
from certbot_dns_cyon._internal import hook
from certbot_dns_cyon._internal.credentials import Credentials

ENDPOINT = client.DEFAULT_ENDPOINT
LOGIN_URL = ENDPOINT + '/auth/index/dologin-async'
OTP_URL = ENDPOINT + '/auth/multi-factor/domultifactorauth-async'
ENVIRONMENT_URL = re.compile(re.escape(ENDPOINT) + '/user/environment/setdomain/.*')
ADD_RECORD_URL = ENDPOINT + '/domain/dnseditor/add-record-async'

FQDN = '_acme-challenge.example.com'
TOKEN = 'abc123'
EXPECTED_BODY = 'zone=_acme-challenge.example.com.&ttl=900&type=TXT&value=abc123'

CREDENTIALS = Credentials('cyon-user', 'password')
OTP_CREDENTIALS = Credentials('cyon-user', 'password', 'JBSWY3DPEHPK3PXP')

MISSED_OTP_BODY = '{"authenticated": true, "html": "<div id=\\"multi_factor_form\\"></div>"}'


class _ScriptedPortalTestCase(test_util.TempDirTestCase):
    """Scripts every my.cyon.ch endpoint to succeed."""

    def setUp(self):
        super().setUp()
        self.portal = requests_mock.Mocker()
        self.portal.start()
        self.addCleanup(self.portal.stop)

        self.portal.post(LOGIN_URL, json={'onSuccess': 'success'})
        self.portal.get(ENDPOINT + '/', text='<html></html>')
        self.portal.post(OTP_URL, json={'onSuccess': 'success'})
        self.portal.get(ENVIRONMENT_URL, json={'authenticated': True})
        self.portal.post(ADD_RECORD_URL, json={'status': True, 'message': 'Saved'})

        self.close = mock.patch.object(client.CyonClient, 'close', autospec=True,
                                       side_effect=client.CyonClient.close).start()
        self.addCleanup(mock.patch.stopall)

    def _requests_to(self, url):
        return [r for r in self.portal.request_history if r.url == url]

    def assert_cleaned_up(self):
        assert self.close.call_count == 1
        closed_client = self.close.call_args[0][0]
        assert closed_client.state is client.State.CLEANED_UP
        assert len(closed_client.session.cookies) == 0


class AddTxtRecordTest(_ScriptedPortalTestCase):

    def test_success(self):
        hook.add_txt_record(FQDN, TOKEN, CREDENTIALS)

        assert self.portal.last_request.text == EXPECTED_BODY
        assert not self._requests_to(OTP_URL)
        self.assert_cleaned_up()

    @mock.patch('certbot_dns_cyon._internal.client.otp.totp_code', return_value='123456')
    def test_success_with_otp(self, unused_mock_totp):
        hook.add_txt_record(FQDN, TOKEN, OTP_CREDENTIALS)

        requests_made = [(r.method, r.url) for r in self.portal.request_history]
        assert requests_made == [
            ('POST', LOGIN_URL),
            ('GET', ENDPOINT + '/'),
            ('POST', OTP_URL),
            ('GET', ENDPOINT + '/user/environment/setdomain/d/example.com/gik/'
                    'domain%3Aexample.com'),
            ('POST', ADD_RECORD_URL),
        ]
        self.assert_cleaned_up()

    def test_skip_domain_environment(self):
        hook.add_txt_record(FQDN, TOKEN, CREDENTIALS, skip_domain_environment=True)

        assert not any(ENVIRONMENT_URL.match(r.url) for r in self.portal.request_history)
        assert self.portal.last_request.text == EXPECTED_BODY
        self.assert_cleaned_up()

    def test_login_failure(self):
        self.portal.post(LOGIN_URL, json={'onSuccess': 'error', 'message': 'Wrong password'})

        with pytest.raises(errors.AuthenticationError, match='Wrong password'):
            hook.add_txt_record(FQDN, TOKEN, CREDENTIALS)

        assert not self._requests_to(ADD_RECORD_URL)
        self.assert_cleaned_up()

    @mock.patch('certbot_dns_cyon._internal.client.otp.totp_code', return_value='123456')
    def test_otp_failure(self, unused_mock_totp):
        self.portal.post(OTP_URL, json={'onSuccess': 'error', 'message': 'Invalid code'})

        with pytest.raises(errors.AuthenticationError, match='Invalid code'):
            hook.add_txt_record(FQDN, TOKEN, OTP_CREDENTIALS)

        assert not any(ENVIRONMENT_URL.match(r.url) for r in self.portal.request_history)
        assert not self._requests_to(ADD_RECORD_URL)
        self.assert_cleaned_up()

    def test_domain_environment_failure(self):
        self.portal.get(ENVIRONMENT_URL, json={'authenticated': False, 'message': 'No access'})

        with pytest.raises(errors.DomainEnvironmentError, match='No access'):
            hook.add_txt_record(FQDN, TOKEN, CREDENTIALS)

        assert not self._requests_to(ADD_RECORD_URL)
        self.assert_cleaned_up()

    def test_record_failure(self):
        self.portal.post(ADD_RECORD_URL, json={'status': False, 'message': 'Invalid value'})

        with pytest.raises(errors.RecordError, match='Invalid value'):
            hook.add_txt_record(FQDN, TOKEN, CREDENTIALS)

        self.assert_cleaned_up()

    def test_connection_error(self):
        self.portal.post(ADD_RECORD_URL, exc=requests.exceptions.ConnectionError)

        with pytest.raises(requests.exceptions.ConnectionError):
            hook.add_txt_record(FQDN, TOKEN, CREDENTIALS)

        self.assert_cleaned_up()


class MainTest(_ScriptedPortalTestCase):

    def setUp(self):
        super().setUp()
        self.config_path = os.path.join(self.tempdir, 'account.conf')

        environ = mock.patch.dict(os.environ)
        environ.start()
        for var in ('CYON_USERNAME', 'CYON_PASSWORD', 'CYON_PASSWORD_B64', 'CYON_OTP_SECRET',
                    'CERTBOT_DOMAIN', 'CERTBOT_VALIDATION'):
            os.environ.pop(var, None)
        os.environ['CYON_USERNAME'] = 'cyon-user'
        os.environ['CYON_PASSWORD'] = 'password'

        self.stderr = mock.patch('sys.stderr', new_callable=io.StringIO).start()

    def _main(self, *args):
        return hook.main(list(args) + ['--config', self.config_path])

    def _diagnostics(self):
        return self.stderr.getvalue().splitlines()

    def test_end_to_end(self):
        assert self._main(FQDN, TOKEN) == 0

        assert self._requests_to(ADD_RECORD_URL)[0].text == EXPECTED_BODY
        self.assert_cleaned_up()

        saved = configobj.ConfigObj(self.config_path)
        assert saved['cyon_username'] == 'cyon-user'
        assert saved['cyon_password_b64'] == 'cGFzc3dvcmQ='
        assert 'cyon_password' not in saved

    def test_stored_credentials(self):
        assert self._main(FQDN, TOKEN) == 0
        del os.environ['CYON_USERNAME']
        del os.environ['CYON_PASSWORD']

        assert self._main(FQDN, TOKEN) == 0

        login = self._requests_to(LOGIN_URL)[-1]
        assert login.text == 'username=cyon-user&password=password&pathname=%2F'

    def test_certbot_environment(self):
        os.environ['CERTBOT_DOMAIN'] = 'example.com'
        os.environ['CERTBOT_VALIDATION'] = TOKEN

        assert self._main() == 0

        assert self._requests_to(ADD_RECORD_URL)[0].text == EXPECTED_BODY

    def test_missing_record(self):
        with pytest.raises(SystemExit) as excinfo:
            self._main()

        assert excinfo.value.code == 2
        assert not self.portal.called

    def test_missing_credentials(self):
        del os.environ['CYON_PASSWORD']

        assert self._main(FQDN, TOKEN) == 1

        assert not self.portal.called
        assert not os.path.exists(self.config_path)
        assert any('CYON_PASSWORD' in line for line in self._diagnostics())

    def test_login_failure(self):
        self.portal.post(LOGIN_URL, json={'onSuccess': 'error', 'message': 'Wrong password'})

        assert self._main(FQDN, TOKEN) == 1

        assert not self._requests_to(ADD_RECORD_URL)
        assert 'Wrong password' in self._diagnostics()
        self.assert_cleaned_up()

    def test_record_error_object(self):
        self.portal.post(ADD_RECORD_URL, json={'status': None, 'message': None,
                                               'error': {'message': 'zone already exists'}})

        assert self._main(FQDN, TOKEN) == 1

        assert self._diagnostics()[-1] == 'zone already exists'
        self.assert_cleaned_up()

    def test_malformed_record_error(self):
        self.portal.post(ADD_RECORD_URL, json={'status': None, 'error': 'zone already exists'})

        assert self._main(FQDN, TOKEN) == 1

        assert 'error is not an object' in self._diagnostics()[-1]
        self.assert_cleaned_up()

    def test_repeated_runs_do_not_stack_handlers(self):
        root_logger = logging.getLogger()
        handlers = list(root_logger.handlers)
        level = root_logger.level

        assert self._main(FQDN, TOKEN) == 0
        assert self._main(FQDN, TOKEN) == 0

        assert root_logger.handlers == handlers
        assert root_logger.level == level
        assert self._diagnostics().count('Cleanup.') == 2

    @mock.patch('certbot_dns_cyon._internal.client.otp.totp_code', return_value='123456')
    def test_missed_otp(self, unused_mock_totp):
        os.environ['CYON_OTP_SECRET'] = 'JBSWY3DPEHPK3PXP'
        self.portal.get(ENVIRONMENT_URL, text=MISSED_OTP_BODY)

        assert self._main(FQDN, TOKEN) == 1

        assert self._diagnostics()[-1] == 'missed OTP authentication'
        assert not self._requests_to(ADD_RECORD_URL)
        self.assert_cleaned_up()

    def test_connection_error(self):
        self.portal.post(LOGIN_URL, exc=requests.exceptions.ConnectionError('refused'))

        assert self._main(FQDN, TOKEN) == 1

        assert 'Error communicating with my.cyon.ch: refused' in self._diagnostics()
        self.assert_cleaned_up()


if __name__ == "__main__":
    sys.exit(pytest.main(sys.argv[1:] + [__file__]))  # pragma: no cover
