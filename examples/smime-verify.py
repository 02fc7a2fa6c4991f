#!/usr/bin/env python3
# *-* coding: utf-8 *-*
from ensmime import email


def main():
    for fname in (
        'smime-signed-attr.txt',
        'smime-ssl-signed-attr.txt',
        'smime-ssl-signed-noattr.txt',
    ):
        print('*' * 20, fname)
        try:
            datas = open(fname, 'rb').read()
        except OSError:
            print('no such file')
            continue
        result = email.verify(datas)
        print('signature ok?', result.valid)
        print('error:', result.error)
        print('signer:', result.signer_email)


main()
