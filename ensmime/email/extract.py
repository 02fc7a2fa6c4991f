# *-* coding: utf-8 *-*
from email.message import Message

from ensmime.email.detect import SmimeEncryptionDetector, content_param, walk
from ensmime.results import EncryptionResult


class EncryptionExtractor(object):
    def extract_encryption(self, message: Message) -> EncryptionResult | None:
        raise NotImplementedError()


class SmimeEncryptionExtractor(EncryptionExtractor):
    ENCRYPTION_TYPE = 'smime'

    def __init__(self, detector=None):
        if detector is None:
            detector = SmimeEncryptionDetector()
        self.detector = detector

    def extract_encryption(self, message):
        if self.detector.is_encrypted(message):
            return EncryptionResult(self.ENCRYPTION_TYPE, 0)
        return None


class PgpMimeEncryptionExtractor(EncryptionExtractor):
    """RFC 3156 multipart/encrypted structure, no decryption is attempted."""

    ENCRYPTION_TYPE = 'openpgp'

    def extract_encryption(self, message):
        for part in walk(message):
            if part.get_content_type() != 'multipart/encrypted':
                continue
            protocol = content_param(part, 'protocol')
            if protocol is not None and protocol.lower() == 'application/pgp-encrypted':
                return EncryptionResult(self.ENCRYPTION_TYPE, 0)
        return None


class CompositeEncryptionExtractor(EncryptionExtractor):
    """First extractor returning a result wins."""

    def __init__(self, extractors):
        self.extractors = list(extractors)

    def extract_encryption(self, message):
        for extractor in self.extractors:
            result = extractor.extract_encryption(message)
            if result is not None:
                return result
        return None
