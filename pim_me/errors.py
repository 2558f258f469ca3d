# ============================================================================
# ERRORS - Exception taxonomy for PIM operations
# ============================================================================


class PimError(Exception):
    """Base class for every error raised by pim_me."""


class TransportError(PimError):
    """The az CLI could not be run or exited with a failure."""


class AlreadyActivatedError(TransportError):
    """Azure rejected an activation because the assignment already exists."""


class ParseError(PimError):
    """Malformed JSON from a token, the REST API, or a config source."""


class IdentityError(PimError):
    """The signed-in user's object id could not be derived from the token."""


class ListError(PimError):
    """Listing eligible or active role instances failed."""


class NoMatchError(PimError):
    """No eligible role matches the requested name and scope."""

    def __init__(self, reference):
        self.reference = reference
        super().__init__(
            f'Could not find eligible role matching "{reference.name}" at scope "{reference.scope}"'
        )


class ConfigurationError(PimError):
    """Quick roles or a justification are missing."""
