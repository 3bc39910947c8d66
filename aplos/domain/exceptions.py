"""Client exceptions, one class per failure kind"""


class AplosError(Exception):
    """Base exception for the Aplos client"""

    pass


class NetworkError(AplosError):
    """Transport failed or the service answered with an error status"""

    pass


class RequestTimeoutError(NetworkError):
    """Request or call deadline elapsed before a response arrived"""

    pass


class APIStatusError(NetworkError):
    """Service returned a non-2xx HTTP status"""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


class DecodeError(AplosError, ValueError):
    """Response body or string did not match the expected shape"""

    pass


class CryptoError(AplosError):
    """Encrypted access token could not be decrypted"""

    pass


class InvalidKeyError(AplosError):
    """Key material is not PKCS8 or not an RSA key"""

    pass


class KeyFileError(AplosError, OSError):
    """Key file could not be read"""

    pass


class AuthError(AplosError):
    """Authentication handshake failed; the cause is chained"""

    pass
