# *-* coding: utf-8 *-*
import io
import copy
import uuid
import base64
import quopri
import logging
from email import message_from_bytes, policy
from email.generator import BytesGenerator
from email.message import Message
from email.mime.application import MIMEApplication

from cryptography import x509
from cryptography.hazmat.primitives.asymmetric.types import PrivateKeyTypes

from ensmime import algorithms, signer
from ensmime.errors import IdentityNotFoundError, SigningError

logger = logging.getLogger(__name__)

SMIME_SIGNATURE_TYPE = 'application/pkcs7-signature'
SMIME_SIGNATURE_NAME = 'smime.p7s'
SMIME_PREAMBLE = 'This is an S/MIME signed message'

# one policy for signing and for writing the final message, header folding must not differ
SMIME_POLICY = policy.compat32.clone(linesep='\r\n')


def is_content_header(name):
    return name.lower().startswith('content-')


def serialize(part: Message) -> bytes:
    """
    CRLF serialization of a MIME entity.

    Boundaries of nested multiparts are fixed on the first call, later calls
    return the same bytes.
    """
    fp = io.BytesIO()
    g = BytesGenerator(fp, mangle_from_=False, policy=SMIME_POLICY)
    g.flatten(part)
    return fp.getvalue()


def payload_bytes(part):
    payload = part.get_payload()
    if isinstance(payload, bytes):
        return payload
    try:
        return payload.encode('ascii', 'surrogateescape')
    except UnicodeEncodeError:
        pass
    try:
        return payload.encode(part.get_content_charset() or 'utf-8', 'surrogateescape')
    except LookupError:
        return payload.encode('utf-8', 'surrogateescape')


def needs_encoding(part):
    cte = part.get('Content-Transfer-Encoding', '7bit').strip().lower()
    if cte in ('8bit', 'binary'):
        return True
    if cte != '7bit':
        return False
    payload = part.get_payload()
    if payload is None:
        return False
    if isinstance(payload, bytes):
        return True
    return not payload.isascii()


def encode_7bit(part):
    """Re-encode 8bit leaves, signed content has to survive 7bit transports."""
    for leaf in part.walk():
        if leaf.is_multipart() or not needs_encoding(leaf):
            continue
        raw = payload_bytes(leaf)
        del leaf['Content-Transfer-Encoding']
        if leaf.get_content_maintype() == 'text':
            leaf.set_payload(quopri.encodestring(raw).decode('ascii'))
            leaf['Content-Transfer-Encoding'] = 'quoted-printable'
        else:
            leaf.set_payload(base64.encodebytes(raw).decode('ascii'))
            leaf['Content-Transfer-Encoding'] = 'base64'


def canonicalize(message: Message) -> Message:
    """
    Body of message as a standalone MIME entity, the first part of multipart/signed.
    """
    body = Message()
    for name, value in message.items():
        if is_content_header(name):
            body[name] = value
    if body.get('Content-Type') is None:
        body['Content-Type'] = 'text/plain; charset="us-ascii"'
    # leaves are re-encoded below, the caller's parts stay untouched
    body.set_payload(copy.deepcopy(message.get_payload()))
    body.preamble = message.preamble
    body.epilogue = message.epilogue
    encode_7bit(body)
    return body


def make_boundary(text: bytes) -> str:
    while True:
        boundary = '----' + uuid.uuid4().hex.upper()
        if ('--' + boundary).encode('ascii') not in text:
            return boundary


def signature_part(datas):
    part = MIMEApplication(datas, 'pkcs7-signature', name=SMIME_SIGNATURE_NAME)
    del part['MIME-Version']
    part.add_header('Content-Disposition', 'attachment', filename=SMIME_SIGNATURE_NAME)
    return part


def attach_signature(message: Message, datas: bytes, micalg: str, body: Message = None) -> Message:
    """
    Turn message into multipart/signed holding its body and the detached signature.

    :param message: message to modify in place
    :param datas: DER encoded detached signature
    :param micalg: micalg parameter value
    :param body: first part as returned by canonicalize, the exact entity that was signed
    :return: message
    """
    if body is None:
        body = canonicalize(message)
    bodytext = serialize(body)
    boundary = make_boundary(bodytext)

    for name in set(name for name in message.keys() if is_content_header(name)):
        del message[name]
    if message.get('MIME-Version') is None:
        message['MIME-Version'] = '1.0'
    message['Content-Type'] = 'multipart/signed; protocol="%s"; micalg=%s; boundary="%s"' % (
        SMIME_SIGNATURE_TYPE, micalg, boundary
    )
    message.preamble = SMIME_PREAMBLE
    message.epilogue = None
    message.set_payload([body, signature_part(datas)])
    return message


def sign_message(
    message: Message,
    key: PrivateKeyTypes,
    cert: x509.Certificate,
    certs: list[x509.Certificate],
    attrs=True,
    pss=False,
) -> Message:
    """
    Sign message and repackage it as S/MIME multipart/signed, in place.

    :param message: email.message.Message to sign
    :param key: private key of the signer
    :param cert: signer certificate
    :param certs: rest of the certificate chain
    :param attrs: include signed attributes
    :param pss: use RSASSA-PSS for RSA keys
    :return: the signed message
    :raises SigningError: key and certificate unusable or not matching
    """
    body = canonicalize(message)
    datau = serialize(body)
    try:
        datas = signer.sign(datau, key, cert, certs, attrs=attrs, pss=pss)
    except SigningError as ex:
        logger.error("Error signing S/MIME message: %s", ex)
        raise
    micalg = algorithms.mic_label_from_signature(datas)
    return attach_signature(message, datas, micalg, body)


def sign_message_with_alias(message: Message, alias: str, keystore, attrs=True, pss=False) -> Message:
    identity = keystore.identity(alias)
    if identity is None:
        logger.error("Error signing S/MIME message: unknown alias %r", alias)
        raise IdentityNotFoundError(alias)
    return sign_message(message, identity.key, identity.certificate, identity.othercerts, attrs, pss)


def sign(datau: bytes, key: PrivateKeyTypes, cert: x509.Certificate, certs: list[x509.Certificate], attrs=True, pss=False) -> bytes:
    """
    Sign a raw email and encapsulate the result (data and signature) as S/MIME message.

    :param datau: Email to sign (bytes, headers and body).
    :param key: Private key to sign with (PrivateKeyTypes).
    :param cert: Certificate to sign with (x509.Certificate).
    :param certs: List of additional certificates (list of x509.Certificate).
    :param attrs: Whether to include attributes (bool, default True).
    :param pss: Whether to use PSS padding (bool, default False).
    :return: Signed email as bytes with CRLF line endings.
    """
    msg = message_from_bytes(datau)
    sign_message(msg, key, cert, certs, attrs, pss)
    return serialize(msg)
