#!/usr/bin/env python3
# *-* coding: utf-8 *-*
import sys
from email import message_from_binary_file

from ensmime.email import (
    CompositeEncryptionExtractor,
    PgpMimeEncryptionExtractor,
    SmimeEncryptionExtractor,
)


def main():
    extractor = CompositeEncryptionExtractor([
        PgpMimeEncryptionExtractor(),
        SmimeEncryptionExtractor(),
    ])
    for fname in sys.argv[1:]:
        with open(fname, 'rb') as fp:
            msg = message_from_binary_file(fp)
        result = extractor.extract_encryption(msg)
        print(fname, result.protocol_tag if result is not None else 'not encrypted')


main()
