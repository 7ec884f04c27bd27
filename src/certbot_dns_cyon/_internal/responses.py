"""Response bodies returned by the my.cyon.ch AJAX endpoints.

None of these endpoints are documented, so every field is optional and may be
``null``. Unknown fields are ignored.
"""
import logging
from typing import Any
from typing import Optional
from typing import TypeVar

import josepy as jose
import requests

from certbot_dns_cyon._internal import errors

logger = logging.getLogger(__name__)

LOGIN_SUCCESS = 'success'

GenericResponse = TypeVar('GenericResponse', bound=jose.JSONObjectWithFields)


class LoginResponse(jose.JSONObjectWithFields):
    """Response of the login and multi-factor endpoints.

    :ivar str on_success: ``"success"`` if the credentials were accepted.
    :ivar str message: Human readable explanation of a failure.
    """
    on_success: Optional[str] = jose.field('onSuccess', omitempty=True)
    message: Optional[str] = jose.field('message', omitempty=True)

    @property
    def succeeded(self) -> bool:
        """Whether the server accepted the request."""
        return self.on_success == LOGIN_SUCCESS


class EnvironmentResponse(jose.JSONObjectWithFields):
    """Response of the domain environment switch."""
    authenticated: Optional[bool] = jose.field('authenticated', omitempty=True)
    message: Optional[str] = jose.field('message', omitempty=True)


class ErrorDetail(jose.JSONObjectWithFields):
    """Nested error object of a failed record request."""
    message: Optional[str] = jose.field('message', omitempty=True)


class RecordResponse(jose.JSONObjectWithFields):
    """Response of the DNS record editor.

    When ``status`` is ``null`` the explanation is found in ``error.message``
    instead of ``message``.
    """
    status: Optional[bool] = jose.field('status', omitempty=True)
    message: Optional[str] = jose.field('message', omitempty=True)
    error: Optional[ErrorDetail] = jose.field('error', omitempty=True)

    @error.decoder  # type: ignore
    def error(value: Any) -> Optional[ErrorDetail]:  # pylint: disable=no-self-argument,missing-function-docstring
        if value is None:
            return None
        if not isinstance(value, dict):
            raise jose.DeserializationError('error is not an object: {0!r}'.format(value))
        return ErrorDetail.from_json(value)

    @property
    def succeeded(self) -> bool:
        """Whether the record was created."""
        return self.status is True

    @property
    def error_message(self) -> Optional[str]:
        """The failure message, looked up where the server put it."""
        if self.status is None:
            return self.error.message if self.error is not None else None
        return self.message


def decode(response_cls: type[GenericResponse],
           response: requests.Response) -> GenericResponse:
    """Decode an HTTP response into ``response_cls``.

    :param type response_cls: The expected response shape.
    :param requests.Response response: The HTTP response to decode.
    :raises .CyonError: if the body is not a JSON object of the expected shape.
    """
    try:
        jobj = response.json()
    except ValueError:
        logger.debug('Non-JSON response (HTTP %d): %s', response.status_code, response.text)
        raise errors.CyonError('Unexpected non-JSON response from {0} (HTTP {1})'
                               .format(response.url, response.status_code))

    if not isinstance(jobj, dict):
        raise errors.CyonError('Unexpected response from {0}: {1}'.format(response.url, jobj))

    try:
        return response_cls.from_json(jobj)
    except jose.DeserializationError as e:
        raise errors.CyonError('Unexpected response from {0}: {1}'.format(response.url, e))
