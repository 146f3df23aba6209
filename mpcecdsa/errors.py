"""
Exceptions raised by the protocol engine.

Any ProtocolError aborts the current session. The key material it was
started from stays valid and can be reused for a fresh session.
"""


class MPCError(Exception):
    """Base class for every error raised by mpcecdsa."""


class ConfigurationError(MPCError, ValueError):
    """Bad threshold, share count or party set. Raised before round 1."""


class DomainError(MPCError, ValueError):
    """Out of range scalar, point not on the curve, bad ciphertext etc."""


class SessionStateError(MPCError):
    """A session method was called out of order."""


class NonceReuseError(MPCError):
    """A completed offline stage was used to sign a second message."""


class ProtocolError(MPCError):
    """
    A peer misbehaved (or a message never arrived).

    stage: name of the stage that detected the problem.
    party: index of the culprit when it can be determined.
    """

    def __init__(self, stage: str, reason: str, party: int = None):
        self.stage = stage
        self.reason = reason
        self.party = party
        message = f"{stage}: {reason}"
        if party is not None:
            message += f" (party {party})"
        super().__init__(message)


class InvalidProofError(ProtocolError):
    pass


class CommitmentMismatchError(ProtocolError):
    pass


class MissingMessageError(ProtocolError):
    pass
