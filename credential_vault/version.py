"""Credential Vault Meta information.
   Credential Vault keeps third-party secrets encrypted in process memory.
"""
__title__ = 'credential_vault'
__description__ = (
   'Passphrase-protected, in-memory vault for third-party '
   'credentials (AES-256-GCM).'
)
__version__ = '0.1.0'
__copyright__ = 'Copyright (c) 2023 Jesus Lara'
__author__ = 'Jesus Lara'
__author_email__ = 'jesuslarag@gmail.com'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/phenobarbital/credential-vault'
