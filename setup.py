from setuptools import find_packages
from setuptools import setup

version = '1.0.0.dev0'

install_requires = [
    'acme>=2.0.0',
    'certbot>=2.0.0',
    'configobj>=5.0.6',
    'cryptography>=3.2',  # twofactor.totp with enforce_key_length
    'josepy>=1.13.0',
    'requests>=2.20.0',
]

test_extras = [
    'pytest',
    'requests-mock',
]

setup(
    name='certbot-dns-cyon',
    version=version,
    description="cyon.ch DNS Authenticator plugin for Certbot",
    url='https://github.com/certbot/certbot',
    author="Certbot Project",
    author_email='certbot-dev@eff.org',
    license='Apache License 2.0',
    python_requires='>=3.9.2',
    classifiers=[
        'Development Status :: 4 - Beta',
        'Environment :: Plugins',
        'Intended Audience :: System Administrators',
        'License :: OSI Approved :: Apache Software License',
        'Operating System :: POSIX :: Linux',
        'Programming Language :: Python',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Programming Language :: Python :: 3.13',
        'Topic :: Internet :: WWW/HTTP',
        'Topic :: Security',
        'Topic :: System :: Installation/Setup',
        'Topic :: System :: Networking',
        'Topic :: System :: Systems Administration',
        'Topic :: Utilities',
    ],

    packages=find_packages(where='src'),
    package_dir={'': 'src'},
    include_package_data=True,
    install_requires=install_requires,
    extras_require={
        'test': test_extras,
    },
    entry_points={
        'certbot.plugins': [
            'dns-cyon = certbot_dns_cyon._internal.dns_cyon:Authenticator',
        ],
        'console_scripts': [
            'certbot-dns-cyon-hook = certbot_dns_cyon._internal.hook:main',
        ],
    },
)
