# *-* coding: utf-8 *-*
import hashlib

from asn1crypto import algos, cms, core
from cryptography.hazmat.primitives.asymmetric import rsa, ec, ed25519, ed448

DEFAULT_SIGNATURE_ALGORITHM = 'sha256_rsa'
DEFAULT_MIC_ALGORITHM = 'sha-256'

SIGNATURE_ALGORITHMS = {
    'rsa': 'sha256_rsa',
    'ec': 'sha256_ecdsa',
    'ecdsa': 'sha256_ecdsa',
    'ed25519': 'ed25519',
    'ed448': 'ed448',
}

# RFC 8419: Ed25519 pairs with SHA-512, Ed448 with SHAKE256 (512 bit output)
DIGEST_ALGORITHMS = {
    'sha256_rsa': 'sha256',
    'sha256_ecdsa': 'sha256',
    'ed25519': 'sha512',
    'ed448': 'shake256',
}

DIGEST_OIDS = {
    'md5': '1.2.840.113549.2.5',
    'sha1': '1.3.14.3.2.26',
    'sha256': '2.16.840.1.101.3.4.2.1',
    'sha384': '2.16.840.1.101.3.4.2.2',
    'sha512': '2.16.840.1.101.3.4.2.3',
    'shake256': '2.16.840.1.101.3.4.2.12',
    'shake256_len': '2.16.840.1.101.3.4.2.18',
}
DIGEST_NAMES = dict((oid, name) for name, oid in DIGEST_OIDS.items())
# id-shake256-len carries the output length, only the 512 bit variant is produced
DIGEST_NAMES[DIGEST_OIDS['shake256_len']] = 'shake256'

# signature algorithms asn1crypto may not know by name
SIGNED_DIGEST_OIDS = {
    'ed25519': '1.3.101.112',
    'ed448': '1.3.101.113',
}

MIC_ALGORITHMS = {
    '2.16.840.1.101.3.4.2.1': 'sha-256',
    '2.16.840.1.101.3.4.2.2': 'sha-384',
    '2.16.840.1.101.3.4.2.3': 'sha-512',
    '1.2.840.113549.2.5': 'md5',
}


def public_key_algorithm(cert) -> str:
    """
    Name of the public key family of a certificate.

    :param cert: cryptography x509.Certificate
    :return: 'RSA', 'EC', 'Ed25519', 'Ed448' or the key class name
    """
    public_key = cert.public_key()
    if isinstance(public_key, rsa.RSAPublicKey):
        return 'RSA'
    if isinstance(public_key, ec.EllipticCurvePublicKey):
        return 'EC'
    if isinstance(public_key, ed25519.Ed25519PublicKey):
        return 'Ed25519'
    if isinstance(public_key, ed448.Ed448PublicKey):
        return 'Ed448'
    return type(public_key).__name__


def signature_algorithm_for(public_key_algorithm: str) -> str:
    """
    Map a public key family to the signature algorithm used for S/MIME signing.
    Unknown families fall back to SHA-256 with RSA.
    """
    if not isinstance(public_key_algorithm, str):
        return DEFAULT_SIGNATURE_ALGORITHM
    return SIGNATURE_ALGORITHMS.get(public_key_algorithm.lower(), DEFAULT_SIGNATURE_ALGORITHM)


def digest_algorithm_for(signature_algorithm: str) -> str:
    return DIGEST_ALGORITHMS.get(signature_algorithm, 'sha256')


def mic_label_for(digest_algorithm_oid: str) -> str:
    """
    Label for the micalg parameter of multipart/signed.

    :param digest_algorithm_oid: dotted digest algorithm OID
    :return: 'sha-256', 'sha-384', 'sha-512', 'md5'; 'sha-256' for anything else
    """
    return MIC_ALGORITHMS.get(digest_algorithm_oid, DEFAULT_MIC_ALGORITHM)


def mic_label_from_signature(datas: bytes) -> str:
    try:
        signed_data = cms.ContentInfo.load(datas)['content']
        signer_infos = signed_data['signer_infos']
        if not len(signer_infos):
            return DEFAULT_MIC_ALGORITHM
        oid = signer_infos[0]['digest_algorithm']['algorithm'].dotted
    except (ValueError, TypeError, KeyError):
        return DEFAULT_MIC_ALGORITHM
    return mic_label_for(oid)


def digest(hashalgo: str, data: bytes) -> bytes:
    if hashalgo == 'shake256':
        return hashlib.shake_256(data).digest(64)
    return getattr(hashlib, hashalgo)(data).digest()


def digest_algorithm_id(hashalgo: str) -> str:
    return DIGEST_OIDS.get(hashalgo, hashalgo)


def signed_digest_algorithm_id(sigalgo: str) -> str:
    return SIGNED_DIGEST_OIDS.get(sigalgo, sigalgo)


def digest_algorithm(hashalgo: str) -> algos.DigestAlgorithm:
    """
    DigestAlgorithm identifier for signer infos.

    RFC 8419: Ed448 signatures name SHAKE256 as id-shake256-len with 512 bit output.
    """
    if hashalgo == 'shake256':
        return algos.DigestAlgorithm({'algorithm': 'shake256_len', 'parameters': core.Integer(512)})
    return algos.DigestAlgorithm({'algorithm': digest_algorithm_id(hashalgo)})
