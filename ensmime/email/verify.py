# *-* coding: utf-8 *-*
import re
import logging
from datetime import datetime
from email import message_from_bytes

from ensmime import verifier
from ensmime.results import SignatureError, SignatureResult

logger = logging.getLogger(__name__)

SIGNATURE_TYPES = (
    'application/pkcs7-signature',
    'application/x-pkcs7-signature',
)


def signed_content(data: bytes, boundary: str) -> bytes:
    """
    Exact bytes of the first body part of a multipart message, CRLF canonicalized.
    """
    data = re.sub(br'\r?\n', b'\r\n', data)
    delimiter = b'--' + boundary.encode('ascii')
    m = re.search(br'(?:^|\r\n)' + re.escape(delimiter) + br'[ \t]*\r\n', data)
    if m is None:
        raise ValueError('multipart boundary not found')
    start = m.end()
    end = data.find(b'\r\n' + delimiter, start)
    if end == -1:
        raise ValueError('multipart/signed has no signature part')
    return data[start:end]


def split(data: bytes) -> tuple[bytes, bytes]:
    """
    Split an S/MIME signed email into signed content and signature.

    :param data: Email data as bytes.
    :return: content, signature (DER)
    """
    msg = message_from_bytes(data)
    if msg.get_content_type() != 'multipart/signed':
        raise ValueError('not signed email')
    boundary = msg.get_boundary()
    parts = msg.get_payload()
    if boundary is None or not isinstance(parts, list) or len(parts) != 2:
        raise ValueError('not signed email')
    if parts[1].get_content_type() not in SIGNATURE_TYPES:
        raise ValueError('not signed email')
    sig = parts[1].get_payload(decode=True)
    return signed_content(data, boundary), sig


def verify(data: bytes, now: datetime = None) -> SignatureResult:
    """
    Verify S/MIME signed email.

    :param data: Email data as bytes.
    :param now: Time used for the certificate validity check (default: now).
    :return: SignatureResult, PARSE_ERROR if the message is not S/MIME signed.
    """
    try:
        content, sig = split(data)
    except (ValueError, UnicodeError) as ex:
        logger.warning('not an S/MIME signed message: %s', ex)
        return SignatureResult.failure(SignatureError.PARSE_ERROR)
    return verifier.verify(sig, content, now)
