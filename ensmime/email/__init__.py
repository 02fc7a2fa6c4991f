# *-* coding: utf-8 *-*
from .sign import sign, sign_message, sign_message_with_alias, attach_signature
from .verify import verify
from .detect import SmimeEncryptionDetector
from .extract import (
    EncryptionExtractor,
    SmimeEncryptionExtractor,
    PgpMimeEncryptionExtractor,
    CompositeEncryptionExtractor,
)
