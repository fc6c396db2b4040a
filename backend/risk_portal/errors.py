class PortalError(Exception):
    """Base class for errors raised by the portal services."""


class StoreUnavailable(PortalError):
    pass


class NarrativeUnavailable(PortalError):
    """The narrative service failed or returned something unusable."""


class DuplicateEmail(PortalError):
    pass


class InvalidStatusTransition(PortalError):
    pass


class AuthError(PortalError):
    status_code = 401


class UnknownIdentity(AuthError):
    pass


class BadCredentials(AuthError):
    pass


class RoleMismatch(AuthError):
    status_code = 403


class AccountPending(AuthError):
    status_code = 403


class AccountRejected(AuthError):
    status_code = 403
