#!/usr/bin/env python3
# coding: utf-8
import unittest
import datetime

from asn1crypto import cms, core

from ensmime import identity, signer, verifier
from ensmime.errors import SigningError
from ensmime.results import SignatureError

from . import test_cert

DATAU = b'Content-Type: text/plain\r\n\r\nHello S/MIME\r\n'


def flip(data, pos=-3):
    data = bytearray(data)
    data[pos] ^= 0x01
    return bytes(data)


class SIGNERTests(unittest.TestCase):
    def _roundtrip(self, keytype, **kwargs):
        ca = test_cert.CA()
        key, cert = ca.USER(keytype)
        datas = signer.sign(DATAU, key, cert, ca.chain(), **kwargs)
        result = verifier.verify(datas, DATAU)
        assert result.valid, result
        assert result.error is None
        assert result.signer_certificate == cert
        assert result.signer_email == identity.email_for(cert)
        assert result.signer_email == 'demo1@ensmime.example'
        return datas, cert

    def test_roundtrip_rsa(self):
        self._roundtrip('rsa')

    def test_roundtrip_ec(self):
        self._roundtrip('ec')

    def test_roundtrip_ed25519(self):
        self._roundtrip('ed25519')

    def test_roundtrip_ed448(self):
        datas, cert = self._roundtrip('ed448')
        signed_data = cms.ContentInfo.load(datas)['content']
        signer_info = signed_data['signer_infos'][0]
        # RFC 8419: id-shake256-len with 512 bit output
        digest_algorithm = signer_info['digest_algorithm']
        assert digest_algorithm['algorithm'].native == 'shake256_len'
        assert digest_algorithm['parameters'].native == 512
        assert signed_data['digest_algorithms'][0]['algorithm'].native == 'shake256_len'
        assert signer_info['signature_algorithm']['algorithm'].native == 'ed448'

    def test_roundtrip_ed448_noattr(self):
        self._roundtrip('ed448', attrs=False)

    def test_signing_time_attribute(self):
        datas, cert = self._roundtrip('rsa')
        signer_info = cms.ContentInfo.load(datas)['content']['signer_infos'][0]
        types = [attr['type'].native for attr in signer_info['signed_attrs']]
        assert types == ['content_type', 'message_digest', 'signing_time', 'signing_certificate_v2']
        signed_time = signer_info['signed_attrs'][2]['values'].native[0]
        assert abs(signed_time - test_cert.utcnow()) < datetime.timedelta(minutes=5)

        datas, cert = self._roundtrip('rsa', signing_time=False)
        signer_info = cms.ContentInfo.load(datas)['content']['signer_infos'][0]
        types = [attr['type'].native for attr in signer_info['signed_attrs']]
        assert 'signing_time' not in types

    def test_roundtrip_rsa_pss(self):
        datas, cert = self._roundtrip('rsa', pss=True)
        signer_info = cms.ContentInfo.load(datas)['content']['signer_infos'][0]
        assert signer_info['signature_algorithm']['algorithm'].native == 'rsassa_pss'

    def test_roundtrip_noattr(self):
        datas, cert = self._roundtrip('rsa', attrs=False)
        signer_info = cms.ContentInfo.load(datas)['content']['signer_infos'][0]
        assert isinstance(signer_info['signed_attrs'], core.Void)

    def test_roundtrip_no_signing_time(self):
        self._roundtrip('ec', signing_time=False)

    def test_detached_with_chain(self):
        ca = test_cert.CA()
        key, cert = ca.USER('rsa')
        datas = signer.sign(DATAU, key, cert, ca.chain())
        signed_data = cms.ContentInfo.load(datas)['content']
        content = signed_data['encap_content_info']['content']
        assert content is None or isinstance(content, core.Void)
        assert len(signed_data['certificates']) == 3
        assert len(signed_data['signer_infos']) == 1
        sid = signed_data['signer_infos'][0]['sid'].chosen
        assert sid['serial_number'].native == cert.serial_number

    def test_tampered_content(self):
        for keytype in ('rsa', 'ec', 'ed25519', 'ed448'):
            ca = test_cert.CA()
            key, cert = ca.USER(keytype)
            datas = signer.sign(DATAU, key, cert, [])
            for pos in (0, 20, -1):
                result = verifier.verify(datas, flip(DATAU, pos))
                assert result.error == SignatureError.INVALID_SIGNATURE, (keytype, pos)
                assert result.signer_certificate == cert
                assert result.signer_email == 'demo1@ensmime.example'

    def test_tampered_content_noattr(self):
        ca = test_cert.CA()
        key, cert = ca.USER('rsa')
        datas = signer.sign(DATAU, key, cert, [], attrs=False)
        result = verifier.verify(datas, flip(DATAU))
        assert result.error == SignatureError.INVALID_SIGNATURE

    def test_expired_certificate(self):
        ca = test_cert.CA()
        now = test_cert.utcnow()
        key, cert = ca.USER(
            'rsa',
            not_before=now - datetime.timedelta(days=30),
            not_after=now - datetime.timedelta(days=1),
        )
        datas = signer.sign(DATAU, key, cert, [])
        result = verifier.verify(datas, DATAU)
        assert not result.valid
        assert result.error == SignatureError.EXPIRED_CERTIFICATE
        assert result.signer_certificate == cert
        assert result.signer_email == 'demo1@ensmime.example'

        # the signature itself is fine
        result = verifier.verify(datas, DATAU, now=now - datetime.timedelta(days=2))
        assert result.valid

    def test_not_yet_valid_certificate(self):
        ca = test_cert.CA()
        now = test_cert.utcnow()
        key, cert = ca.USER('ec', not_before=now + datetime.timedelta(days=1))
        datas = signer.sign(DATAU, key, cert, [])
        result = verifier.verify(datas, DATAU)
        assert result.error == SignatureError.EXPIRED_CERTIFICATE

    def test_expired_before_invalid(self):
        ca = test_cert.CA()
        key, cert = ca.USER('rsa')
        datas = signer.sign(DATAU, key, cert, [])
        later = test_cert.utcnow() + datetime.timedelta(days=3 * 365)
        result = verifier.verify(datas, flip(DATAU), now=later)
        assert result.error == SignatureError.EXPIRED_CERTIFICATE

    def test_malformed_signature(self):
        ca = test_cert.CA()
        key, cert = ca.USER('rsa')
        datas = signer.sign(DATAU, key, cert, [])
        for bad in (b'', b'not a signature', datas[:len(datas) // 2], b'\x30\x03\x02\x01\x01'):
            result = verifier.verify(bad, DATAU)
            assert result.error == SignatureError.PARSE_ERROR
            assert result.signer_certificate is None
            assert result.signer_email is None

    def test_missing_certificate(self):
        ca = test_cert.CA()
        key, cert = ca.USER('rsa')
        datas = signer.sign(DATAU, key, cert, ca.chain())
        content_info = cms.ContentInfo.load(datas)
        content_info['content']['certificates'] = [signer.cert2asn(c) for c in ca.chain()]
        result = verifier.verify(content_info.dump(force=True), DATAU)
        assert result.error == SignatureError.MISSING_CERTIFICATE
        assert result.signer_certificate is None

    def test_no_signer_infos(self):
        ca = test_cert.CA()
        key, cert = ca.USER('rsa')
        datas = signer.sign(DATAU, key, cert, [])
        content_info = cms.ContentInfo.load(datas)
        content_info['content']['signer_infos'] = []
        result = verifier.verify(content_info.dump(force=True), DATAU)
        assert result.error == SignatureError.MISSING_CERTIFICATE

    def test_key_certificate_mismatch(self):
        ca = test_cert.CA()
        key, cert = ca.USER('rsa')
        otherkey = ca.key_create('ec')
        with self.assertRaises(SigningError):
            signer.sign(DATAU, otherkey, cert, [])

    def test_unsupported_key_type(self):
        ca = test_cert.CA()
        key, cert = ca.USER(key=ca.key_create('dsa'))
        for pss in (False, True):
            with self.assertRaises(SigningError):
                signer.sign(DATAU, key, cert, [], pss=pss)

    def test_missing_key(self):
        ca = test_cert.CA()
        key, cert = ca.USER('rsa')
        with self.assertRaises(SigningError):
            signer.sign(DATAU, None, cert, [])
        with self.assertRaises(SigningError):
            signer.sign(DATAU, key, None, [])


if __name__ == '__main__':
    unittest.main()
