# *-* coding: utf-8 *-*
from email.message import Message
from email.utils import collapse_rfc2231_value

APPLICATION_PKCS7_MIME = 'application/pkcs7-mime'
ENCRYPTED_SMIME_TYPES = ('enveloped-data', 'authenveloped-data')


def walk(part):
    """Depth first, document order, without recursion."""
    stack = [part]
    while stack:
        part = stack.pop()
        yield part
        if part.get_content_maintype() == 'multipart' and part.is_multipart():
            stack.extend(reversed(part.get_payload()))


def content_param(part, name):
    value = part.get_param(name, header='content-type')
    if value is None:
        return None
    return collapse_rfc2231_value(value)


class SmimeEncryptionDetector(object):

    def is_encrypted(self, part: Message) -> bool:
        """
        True if part or any part below it is S/MIME enveloped data.

        Parts are visited depth first in document order.
        """
        for child in walk(part):
            if self.is_encrypted_part(child):
                return True
        return False

    def is_encrypted_part(self, part):
        if part.get_content_type() != APPLICATION_PKCS7_MIME:
            return False
        smime_type = content_param(part, 'smime-type')
        # missing smime-type on application/pkcs7-mime defaults to enveloped-data
        if smime_type is None:
            return True
        return smime_type.lower() in ENCRYPTED_SMIME_TYPES
