# *-* coding: utf-8 *-*


class SmimeError(Exception):
    pass


class SigningError(SmimeError):
    """Signature could not be produced; the message must not be sent as signed."""


class IdentityNotFoundError(SigningError):
    def __init__(self, alias):
        super().__init__('Could not retrieve signing identity for alias: %s' % alias)
        self.alias = alias


class KeyStoreError(SmimeError):
    pass
