#!/usr/bin/env python3
# coding: utf-8
import unittest
import os
import tempfile

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.serialization import pkcs12

from ensmime.errors import KeyStoreError
from ensmime.keystore import MemoryKeyStore, PKCS12KeyStore, SigningIdentity

from . import test_cert


class KeyStoreTests(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.ca = test_cert.CA()
        self.key, self.cert = self.ca.USER('rsa')

    def tearDown(self):
        self.tmpdir.cleanup()

    def pk12_save(self, alias, password, key=None):
        data = pkcs12.serialize_key_and_certificates(
            name=b"USER cert",
            key=key,
            cert=self.cert,
            cas=self.ca.chain(),
            encryption_algorithm=serialization.BestAvailableEncryption(password.encode("utf8")),
        )
        with open(os.path.join(self.tmpdir.name, alias + '.p12'), 'wb') as fp:
            fp.write(data)

    def test_pkcs12(self):
        self.pk12_save('demo1', '1234', self.key)
        keystore = PKCS12KeyStore(self.tmpdir.name, {'demo1': '1234'})
        identity = keystore.identity('demo1')
        assert identity.certificate == self.cert
        assert identity.chain[0] == self.cert
        assert len(identity.othercerts) == 2
        assert identity.key.private_numbers() == self.key.private_numbers()

    def test_pkcs12_missing(self):
        keystore = PKCS12KeyStore(self.tmpdir.name)
        assert keystore.identity('nobody') is None

    def test_pkcs12_without_key(self):
        self.pk12_save('certonly', '1234')
        keystore = PKCS12KeyStore(self.tmpdir.name, {'certonly': '1234'})
        assert keystore.identity('certonly') is None

    def test_pkcs12_bad_password(self):
        self.pk12_save('demo1', '1234', self.key)
        keystore = PKCS12KeyStore(self.tmpdir.name, {'demo1': 'wrong'})
        with self.assertRaises(KeyStoreError):
            keystore.identity('demo1')

    def test_memory(self):
        keystore = MemoryKeyStore()
        keystore.add('demo1', self.key, [self.cert])
        assert keystore.identity('demo1').certificate == self.cert
        assert keystore.identity('demo1').othercerts == []
        assert keystore.identity('demo2') is None

    def test_identity_repr_hides_key(self):
        identity = SigningIdentity(self.key, [self.cert])
        assert 'key=' not in repr(identity)
        with self.assertRaises(ValueError):
            SigningIdentity(self.key, [])


if __name__ == '__main__':
    unittest.main()
