"""ZeroVault Meta information.
   ZeroVault encrypts password-vault records on the client so the storage
   service only ever sees ciphertext.
"""
__title__ = 'zerovault'
__description__ = (
   'Zero-knowledge password vault client: key derivation, field '
   'encryption and bounded secret exposure.'
)
__version__ = '0.1.0'
__copyright__ = 'Copyright (c) 2026 ZeroVault contributors'
__author__ = 'ZeroVault contributors'
__license__ = 'Apache-2.0'
