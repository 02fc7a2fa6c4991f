#!/usr/bin/env python3
# *-* coding: utf-8 *-*
import sys
import logging

from ensmime import email
from ensmime.keystore import PKCS12KeyStore


def main():
    logging.basicConfig(level=logging.INFO)
    keystore = PKCS12KeyStore('ca', {'demo2_user1': '1234'})
    identity = keystore.identity('demo2_user1')
    if identity is None:
        print('no such identity')
        sys.exit(1)
    datau = open('smime-unsigned.txt', 'rb').read()
    datas = email.sign(datau, identity.key, identity.certificate, identity.othercerts)
    open('smime-signed-attr.txt', 'wb').write(datas)


main()
