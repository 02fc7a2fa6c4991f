# *-* coding: utf-8 *-*
import logging
from datetime import datetime

from asn1crypto import cms, core, util
from cryptography import x509 as cx509
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding, ec, rsa, ed25519, ed448

from ensmime import algorithms, identity
from ensmime.results import SignatureError, SignatureResult

logger = logging.getLogger(__name__)


class VerifyData(object):
    def __init__(self, now=None):
        if now is None:
            now = datetime.now(tz=util.timezone.utc)
        elif now.tzinfo is None:
            now = now.replace(tzinfo=util.timezone.utc)
        self.now = now

    def parse(self, datas, datau):
        content_info = cms.ContentInfo.load(datas, strict=True)
        if content_info["content_type"].native != "signed_data":
            raise ValueError("not a SignedData structure")
        signed_data = content_info["content"]
        # walk the whole structure so malformed DER fails here
        signed_data.native
        encap = signed_data["encap_content_info"]["content"]
        if encap is not None and not isinstance(encap, core.Void):
            if encap.native != datau:
                raise ValueError("embedded content does not match detached content")
        return signed_data

    def find_certificate(self, signed_data, sid):
        if sid.name == "issuer_and_serial_number":
            issuer = sid.chosen["issuer"]
            serial = sid.chosen["serial_number"].native
        else:
            issuer = None
            key_identifier = sid.chosen.native
        certificates = signed_data["certificates"]
        if certificates is None or isinstance(certificates, core.Void):
            return None
        for choice in certificates:
            if choice.name != "certificate":
                continue
            cert = choice.chosen
            if issuer is not None:
                if cert.serial_number == serial and cert.issuer == issuer:
                    return cert
            elif cert.key_identifier == key_identifier:
                return cert
        return None

    def signed_bytes(self, signer_info, hashalgo, datau):
        attrs = signer_info["signed_attrs"]
        if attrs is None or isinstance(attrs, core.Void) or not len(attrs):
            return datau, True
        mdSigned = None
        for attr in attrs:
            if attr["type"].native == "message_digest":
                mdSigned = attr["values"].native[0]
        hashok = mdSigned == algorithms.digest(hashalgo, datau)
        signedData = attrs.dump()
        signedData = b"\x31" + signedData[1:]
        return signedData, hashok

    def check_signature(self, public_key, signer_info, hashalgo, signedData):
        signature = signer_info["signature"].native
        sigalgo = signer_info["signature_algorithm"]
        if isinstance(public_key, (ed25519.Ed25519PublicKey, ed448.Ed448PublicKey)):
            public_key.verify(signature, signedData)
        elif isinstance(public_key, ec.EllipticCurvePublicKey):
            public_key.verify(
                signature,
                signedData,
                ec.ECDSA(getattr(hashes, hashalgo.upper())()),
            )
        elif not isinstance(public_key, rsa.RSAPublicKey):
            raise ValueError("Unsupported public key type")
        elif sigalgo["algorithm"].native == "rsassa_pss":
            parameters = sigalgo["parameters"]
            salgo = parameters["hash_algorithm"].native["algorithm"].upper()
            mgf = getattr(
                padding, parameters["mask_gen_algorithm"].native["algorithm"].upper()
            )(getattr(hashes, salgo)())
            salt_length = parameters["salt_length"].native
            public_key.verify(
                signature,
                signedData,
                padding.PSS(mgf, salt_length),
                getattr(hashes, salgo)(),
            )
        elif sigalgo.signature_algo == "rsassa_pkcs1v15":
            public_key.verify(
                signature,
                signedData,
                padding.PKCS1v15(),
                getattr(hashes, hashalgo.upper())(),
            )
        else:
            raise ValueError("Unknown signature algorithm")

    def verify(self, datas, datau):
        try:
            signed_data = self.parse(datas, datau)
        except (ValueError, TypeError, KeyError) as ex:
            logger.warning("unparsable S/MIME signature: %s", ex)
            return SignatureResult.failure(SignatureError.PARSE_ERROR)

        signer_infos = signed_data["signer_infos"]
        if not len(signer_infos):
            return SignatureResult.failure(SignatureError.MISSING_CERTIFICATE)
        signer_info = signer_infos[0]

        asncert = self.find_certificate(signed_data, signer_info["sid"])
        if asncert is None:
            return SignatureResult.failure(SignatureError.MISSING_CERTIFICATE)

        cert = cx509.load_der_x509_certificate(asncert.dump())
        email = identity.email_for(cert)

        validity = asncert["tbs_certificate"]["validity"]
        not_before = validity["not_before"].native
        not_after = validity["not_after"].native
        if self.now < not_before or self.now > not_after:
            return SignatureResult.failure(SignatureError.EXPIRED_CERTIFICATE, cert, email)

        oid = signer_info["digest_algorithm"]["algorithm"].dotted
        hashalgo = algorithms.DIGEST_NAMES.get(oid)
        if hashalgo is None:
            raise ValueError("Unsupported digest algorithm %s" % oid)
        signedData, hashok = self.signed_bytes(signer_info, hashalgo, datau)
        if not hashok:
            return SignatureResult.failure(SignatureError.INVALID_SIGNATURE, cert, email)
        try:
            self.check_signature(cert.public_key(), signer_info, hashalgo, signedData)
        except InvalidSignature:
            return SignatureResult.failure(SignatureError.INVALID_SIGNATURE, cert, email)
        return SignatureResult.success(cert, email)


def verify(datas: bytes, datau: bytes, now: datetime = None) -> SignatureResult:
    """
    Verify a detached CMS signature.

    :param datas: DER encoded SignedData.
    :param datau: Content the signature was made over.
    :param now: Time used for the certificate validity check (timezone aware, default: now).
    :return: SignatureResult, never raises.
    """
    cls = VerifyData(now)
    try:
        return cls.verify(datas, datau)
    except Exception:
        logger.exception("Error verifying S/MIME signature")
        return SignatureResult.failure(SignatureError.PARSE_ERROR)
