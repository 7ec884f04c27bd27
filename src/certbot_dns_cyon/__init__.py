"""
The `~certbot_dns_cyon.dns_cyon` plugin automates the process of completing a
``dns-01`` challenge (`~acme.challenges.DNS01`) by logging into the my.cyon.ch
web portal and creating a TXT record through the portal's DNS editor.

cyon.ch has no official DNS API. The plugin uses the same requests as the
portal's own pages, so it may break whenever cyon.ch changes their portal.

.. note::
   cyon.ch offers no way to remove the challenge record again. You may delete
   it in the DNS editor once the certificate has been issued.

Named Arguments
---------------

=============================================  ================================
``--dns-cyon-credentials``                     cyon.ch credentials_ INI file.
                                               (Required)
``--dns-cyon-propagation-seconds``             The number of seconds to wait
                                               for DNS to propagate before
                                               asking the ACME server to verify
                                               the DNS record.
                                               (Default: 60)
``--dns-cyon-skip-domain-environment``         Don't select the domain
                                               environment before adding the
                                               record.
=============================================  ================================


Credentials
-----------

Use of this plugin requires a configuration file containing the login
credentials of your my.cyon.ch account. If your account is protected by two
factor authentication, the OTP secret (the base32 string behind the QR code)
is required as well.

.. code-block:: ini
   :name: credentials.ini
   :caption: Example credentials file:

   # cyon.ch credentials used by Certbot
   dns_cyon_username = your_cyon_username
   dns_cyon_password = your_cyon_password
   # Only required if using 2FA
   dns_cyon_otp_secret = JBSWY3DPEHPK3PXP

On first use, the plaintext ``dns_cyon_password`` is replaced by its base64
encoded form ``dns_cyon_password_b64``. Base64 is an encoding, not encryption.

The values may also be given by the environment variables ``CYON_USERNAME``,
``CYON_PASSWORD`` (or ``CYON_PASSWORD_B64``) and ``CYON_OTP_SECRET``, which
take precedence over the file.

The path to this file can be provided interactively or using the
``--dns-cyon-credentials`` command-line argument. Certbot records the path
to this file for use during renewal, but does not store the file's contents.

.. caution::
   You should protect these credentials as you would the password to your
   cyon.ch account. Users who can read this file can log into your account.

Certbot will emit a warning if it detects that the credentials file can be
accessed by other users on your system. The warning reads "Unsafe permissions
on credentials configuration file", followed by the path to the credentials
file.


Hook command
------------

``certbot-dns-cyon-hook`` runs the same steps for ACME clients which call an
external command with the record name and value. Run without arguments, it
reads ``$CERTBOT_DOMAIN`` and ``$CERTBOT_VALIDATION``, so it can be used as
Certbot's ``--manual-auth-hook``. Its credentials are kept in
``~/.certbot-dns-cyon/account.conf`` (``--config``) using the keys
``cyon_username``, ``cyon_password_b64`` and ``cyon_otp_secret``.

.. code-block:: bash
   :caption: To add a record from any ACME client

   CYON_USERNAME=me CYON_PASSWORD=secret \\
     certbot-dns-cyon-hook _acme-challenge.example.com "$TOKEN"


Examples
--------

.. code-block:: bash
   :caption: To acquire a certificate for ``example.com``

   certbot certonly \\
     --authenticator dns-cyon \\
     --dns-cyon-credentials ~/.secrets/certbot/cyon.ini \\
     -d example.com

.. code-block:: bash
   :caption: To acquire a certificate for ``example.com``, waiting 120 seconds
             for DNS propagation

   certbot certonly \\
     --authenticator dns-cyon \\
     --dns-cyon-credentials ~/.secrets/certbot/cyon.ini \\
     --dns-cyon-propagation-seconds 120 \\
     -d example.com

"""
