# *-* coding: utf-8 *-*
import logging
from datetime import datetime

from asn1crypto import cms, algos, core, pem, tsp, x509, util
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, utils, ec, rsa, ed25519, ed448

from ensmime import algorithms
from ensmime.errors import SigningError

logger = logging.getLogger(__name__)


def cert2asn(cert):
    if isinstance(cert, x509.Certificate):
        return cert
    if isinstance(cert, bytes):
        cert_bytes = cert
    else:
        cert_bytes = cert.public_bytes(serialization.Encoding.DER)
    if pem.detect(cert_bytes):
        _, _, cert_bytes = pem.unarmor(cert_bytes)
    return x509.Certificate.load(cert_bytes)


def public_key_der(key):
    return key.public_bytes(
        serialization.Encoding.DER,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    )


def signing_certificate_v2(cert):
    return cms.CMSAttribute(
        {
            "type": cms.CMSAttributeType("signing_certificate_v2"),
            "values": [
                tsp.SigningCertificateV2(
                    {
                        "certs": [
                            tsp.ESSCertIDv2(
                                {
                                    "hash_algorithm": algos.DigestAlgorithm(
                                        {"algorithm": "sha256"}
                                    ),
                                    "cert_hash": algorithms.digest("sha256", cert.dump()),
                                    "issuer_serial": tsp.IssuerSerial(
                                        {
                                            "issuer": (
                                                x509.GeneralName(
                                                    {
                                                        "directory_name": cert.issuer,
                                                    }
                                                ),
                                            ),
                                            "serial_number": cert.serial_number,
                                        }
                                    ),
                                }
                            ),
                        ]
                    }
                ),
            ],
        }
    )


def signature_algorithm(sigalgo, hashalgo, key, pss):
    if sigalgo == "sha256_rsa" and pss:
        md = getattr(hashes, hashalgo.upper())
        salt_length = padding.calculate_max_pss_salt_length(key, md())
        params = algos.RSASSAPSSParams(
            {
                "hash_algorithm": algos.DigestAlgorithm({"algorithm": algorithms.digest_algorithm_id(hashalgo)}),
                "mask_gen_algorithm": algos.MaskGenAlgorithm(
                    {
                        "algorithm": algos.MaskGenAlgorithmId("mgf1"),
                        "parameters": {
                            "algorithm": algos.DigestAlgorithmId(hashalgo),
                        },
                    }
                ),
                "salt_length": algos.Integer(salt_length),
                "trailer_field": algos.TrailerField(1),
            }
        )
        return algos.SignedDigestAlgorithm({"algorithm": "rsassa_pss", "parameters": params}), salt_length
    if sigalgo == "sha256_rsa":
        return algos.SignedDigestAlgorithm({"algorithm": "rsassa_pkcs1v15"}), None
    return algos.SignedDigestAlgorithm({"algorithm": algorithms.signed_digest_algorithm_id(sigalgo)}), None


def raw_sign(key, tosign, hashalgo, salt_length=None):
    if isinstance(key, rsa.RSAPrivateKey):
        md = getattr(hashes, hashalgo.upper())
        if salt_length is not None:
            hasher = hashes.Hash(md())
            hasher.update(tosign)
            return key.sign(
                hasher.finalize(),
                padding.PSS(mgf=padding.MGF1(md()), salt_length=salt_length),
                utils.Prehashed(md()),
            )
        return key.sign(tosign, padding.PKCS1v15(), md())
    if isinstance(key, ec.EllipticCurvePrivateKey):
        return key.sign(tosign, ec.ECDSA(getattr(hashes, hashalgo.upper())()))
    if isinstance(key, (ed25519.Ed25519PrivateKey, ed448.Ed448PrivateKey)):
        return key.sign(tosign)
    raise SigningError("Unsupported private key type: %s" % type(key).__name__)


def sign(
    datau,
    key,
    cert,
    othercerts,
    attrs=True,
    pss=False,
    signing_time=True,
):
    """
    Create a detached CMS SignedData over datau.

    :param datau: content to sign (bytes)
    :param key: private key matching cert (cryptography private key)
    :param cert: signer certificate (cryptography x509.Certificate)
    :param othercerts: rest of the certificate chain, embedded in the output
    :param attrs: include signed attributes
    :param pss: use RSASSA-PSS for RSA keys
    :param signing_time: include the signing_time attribute
    :return: DER encoded ContentInfo
    """
    if cert is None:
        raise SigningError("Signer certificate is missing")
    if key is None:
        raise SigningError("Private key is missing")
    try:
        if public_key_der(key.public_key()) != public_key_der(cert.public_key()):
            raise SigningError("Private key does not match the signer certificate")
    except (AttributeError, TypeError, ValueError, UnsupportedAlgorithm) as ex:
        raise SigningError("Unusable private key or certificate") from ex

    sigalgo = algorithms.signature_algorithm_for(algorithms.public_key_algorithm(cert))
    hashalgo = algorithms.digest_algorithm_for(sigalgo)
    try:
        datas = signed_data(datau, key, cert, othercerts, sigalgo, hashalgo, attrs, pss, signing_time)
    except (KeyError, TypeError, ValueError, UnsupportedAlgorithm) as ex:
        raise SigningError("Signing with %s failed" % sigalgo) from ex
    logger.debug("signed %d bytes with %s/%s", len(datau), sigalgo, hashalgo)
    return datas


def signed_data(datau, key, cert, othercerts, sigalgo, hashalgo, attrs, pss, signing_time):
    signed_value = algorithms.digest(hashalgo, datau)
    signed_time = datetime.now(tz=util.timezone.utc)

    cert = cert2asn(cert)
    certificates = [cert]
    for certo in othercerts or ():
        certificates.append(cert2asn(certo))

    signature_algo, salt_length = signature_algorithm(sigalgo, hashalgo, key, pss)
    signer = {
        "version": "v1",
        "sid": cms.SignerIdentifier(
            {
                "issuer_and_serial_number": cms.IssuerAndSerialNumber(
                    {
                        "issuer": cert.issuer,
                        "serial_number": cert.serial_number,
                    }
                ),
            }
        ),
        "digest_algorithm": algorithms.digest_algorithm(hashalgo),
        "signature_algorithm": signature_algo,
        "signature": b"",
    }

    if attrs:
        signed_attrs = [
            cms.CMSAttribute(
                {
                    "type": cms.CMSAttributeType("content_type"),
                    "values": ("data",),
                }
            ),
            cms.CMSAttribute(
                {
                    "type": cms.CMSAttributeType("message_digest"),
                    "values": (signed_value,),
                }
            ),
        ]
        if signing_time:
            signed_attrs.append(
                cms.CMSAttribute(
                    {
                        "type": cms.CMSAttributeType("signing_time"),
                        "values": (cms.Time({"utc_time": core.UTCTime(signed_time)}),),
                    }
                )
            )
        signed_attrs.append(signing_certificate_v2(cert))
        signer["signed_attrs"] = signed_attrs

    datas = cms.ContentInfo(
        {
            "content_type": cms.ContentType("signed_data"),
            "content": cms.SignedData(
                {
                    "version": "v1",
                    "digest_algorithms": cms.DigestAlgorithms(
                        (algorithms.digest_algorithm(hashalgo),)
                    ),
                    "encap_content_info": {
                        "content_type": "data",
                    },
                    "certificates": certificates,
                    "signer_infos": [
                        signer,
                    ],
                }
            ),
        }
    )
    if attrs:
        tosign = datas["content"]["signer_infos"][0]["signed_attrs"].dump()
        tosign = b"\x31" + tosign[1:]
    else:
        tosign = datau

    datas["content"]["signer_infos"][0]["signature"] = raw_sign(key, tosign, hashalgo, salt_length)
    return datas.dump()
