# *-* coding: utf-8 *-*
import re
import logging

from cryptography import x509
from cryptography.x509.oid import NameOID

logger = logging.getLogger(__name__)

# one attribute of an RFC 4514 DN, escaped separators stay inside the component
COMPONENT_PATTERN = re.compile(r'(?:\\.|[^,+\\])+', re.DOTALL)
# attribute must start the component, otherwise TITLE=... would match as E=...
EMAIL_PATTERN = re.compile(r'\s*(?:EMAILADDRESS|E)=(.*)', re.IGNORECASE | re.DOTALL)
ESCAPE_PATTERN = re.compile(r'\\(?:([0-9A-Fa-f]{2})|(.))', re.DOTALL)


def subject_dn(cert: x509.Certificate) -> str:
    return cert.subject.rfc4514_string({NameOID.EMAIL_ADDRESS: 'EMAILADDRESS'})


def unescape(value: str) -> str:
    """Undo RFC 4514 escaping, \\hh pairs are UTF-8 octets."""
    raw = bytearray()
    pos = 0
    for match in ESCAPE_PATTERN.finditer(value):
        raw += value[pos:match.start()].encode('utf-8')
        if match.group(1) is not None:
            raw.append(int(match.group(1), 16))
        else:
            raw += match.group(2).encode('utf-8')
        pos = match.end()
    raw += value[pos:].encode('utf-8')
    return raw.decode('utf-8', 'replace')


def email_for(cert: x509.Certificate) -> str | None:
    """
    Email address of the certificate owner.

    The subject DN EMAILADDRESS (or E) attribute wins, the first rfc822Name
    of the Subject Alternative Name extension is used otherwise.

    :param cert: cryptography x509.Certificate
    :return: email address or None
    """
    try:
        dn = subject_dn(cert)
    except ValueError:
        dn = ''
    for component in COMPONENT_PATTERN.findall(dn):
        match = EMAIL_PATTERN.match(component)
        if match is None:
            continue
        value = unescape(match.group(1)).strip()
        if value:
            return value

    try:
        san = cert.extensions.get_extension_for_class(x509.SubjectAlternativeName)
    except x509.ExtensionNotFound:
        return None
    except ValueError as ex:
        logger.debug('unreadable certificate extensions: %s', ex)
        return None
    for name in san.value:
        if isinstance(name, x509.RFC822Name):
            return name.value
    return None
