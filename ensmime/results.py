# *-* coding: utf-8 *-*
import enum

import attr


class SignatureError(enum.Enum):
    INVALID_SIGNATURE = 'invalid_signature'
    EXPIRED_CERTIFICATE = 'expired_certificate'
    MISSING_CERTIFICATE = 'missing_certificate'
    PARSE_ERROR = 'parse_error'


@attr.s(frozen=True, slots=True)
class SignatureResult(object):
    """
    Outcome of a signature verification.

    ``signer_certificate`` and ``signer_email`` are filled in whenever the
    signer certificate was found, including failed verifications.
    """

    valid = attr.ib()
    error = attr.ib(default=None)
    signer_certificate = attr.ib(default=None, repr=False)
    signer_email = attr.ib(default=None)

    @classmethod
    def success(cls, signer_certificate, signer_email=None):
        return cls(True, None, signer_certificate, signer_email)

    @classmethod
    def failure(cls, error, signer_certificate=None, signer_email=None):
        return cls(False, error, signer_certificate, signer_email)


@attr.s(frozen=True, slots=True)
class EncryptionResult(object):
    protocol_tag = attr.ib()
    metadata = attr.ib(default=0)
