class NimbusError(Exception):
    """Base class for every provisioning failure."""


class MalformedKey(NimbusError):
    pass


class InvalidLicense(NimbusError):
    pass


class NetworkUnavailable(NimbusError):
    pass


class TokenExchangeFailed(NimbusError):
    pass


class CredentialWriteFailed(NimbusError):
    pass


class InstallationFailed(NimbusError):
    pass


class VerificationFailed(NimbusError):
    pass


class LoadFailed(NimbusError):
    """
    Raised when the installed core cannot be imported.

    ``expected`` marks the transitional state right after installation, when the
    distribution metadata is present but the module is not importable yet.
    """

    def __init__(self, message: str, expected: bool = False):
        super().__init__(message)
        self.expected = expected
