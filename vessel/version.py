"""Vessel Vault Meta information.
   Vessel Vault keeps writing sessions encrypted at rest on the local device.
"""
__title__ = 'vessel_vault'
__description__ = (
   'Vessel Vault keeps writing sessions encrypted at rest '
   'behind an OS-held key and a vault passphrase.'
)
__version__ = '0.3.0'
__license__ = 'Apache-2.0'
