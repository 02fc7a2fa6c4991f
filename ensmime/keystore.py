# *-* coding: utf-8 *-*
import os
import logging

import attr
from cryptography.hazmat.primitives.serialization import pkcs12

from ensmime.errors import KeyStoreError

logger = logging.getLogger(__name__)


@attr.s(frozen=True, slots=True)
class SigningIdentity(object):
    """Private key and certificate chain, signer certificate first."""

    key = attr.ib(repr=False)
    chain = attr.ib(converter=list)

    @chain.validator
    def _check_chain(self, attribute, value):
        if not value:
            raise ValueError("certificate chain must not be empty")

    @property
    def certificate(self):
        return self.chain[0]

    @property
    def othercerts(self):
        return self.chain[1:]


class BaseKeyStore:
    def identity(self, alias):
        """
        Look up a signing identity.

        :param alias: opaque identity name
        :return: SigningIdentity or None when the alias is unknown
        """
        raise NotImplementedError()


class MemoryKeyStore(BaseKeyStore):
    def __init__(self, identities=None):
        self.identities = dict(identities or {})

    def add(self, alias, key, chain):
        self.identities[alias] = SigningIdentity(key, chain)

    def identity(self, alias):
        found = self.identities.get(alias)
        if found is None:
            logger.warning("no signing identity for alias %r", alias)
        return found


class PKCS12KeyStore(BaseKeyStore):
    """
    Directory of ``<alias>.p12`` files.

    ``passwords`` maps an alias to its PKCS#12 password (str or bytes), aliases
    without an entry are opened without a password.
    """

    def __init__(self, directory, passwords=None):
        self.directory = directory
        self.passwords = dict(passwords or {})

    def path(self, alias):
        return os.path.join(self.directory, os.path.basename(alias) + ".p12")

    def identity(self, alias):
        fname = self.path(alias)
        if not os.path.exists(fname):
            logger.warning("no PKCS#12 file for alias %r", alias)
            return None
        password = self.passwords.get(alias)
        if isinstance(password, str):
            password = password.encode("utf-8")
        with open(fname, "rb") as fp:
            data = fp.read()
        try:
            key, cert, cas = pkcs12.load_key_and_certificates(data, password)
        except ValueError as ex:
            raise KeyStoreError("Could not open PKCS#12 file for alias %r" % alias) from ex
        if key is None or cert is None:
            logger.warning("PKCS#12 file for alias %r holds no key or certificate", alias)
            return None
        return SigningIdentity(key, [cert] + list(cas or ()))
