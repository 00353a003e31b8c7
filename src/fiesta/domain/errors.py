"""Errors raised by the meal exchange."""


class ExchangeError(Exception):
    """Base class for meal exchange failures."""


class InvalidStateError(ExchangeError):
    """The meal or swap is not in the state the operation requires."""


class SelfClaimError(InvalidStateError):
    """A member tried to claim a meal they offered themselves."""


class NotAuthenticatedError(ExchangeError):
    """No acting user is signed in."""


class SwapRecordMissingError(ExchangeError):
    """An offered meal has no pending swap record (data-integrity fault)."""


class OfferExpiredError(ExchangeError):
    """The offer window closed before the claim arrived."""


class ClaimExpiredError(ExchangeError):
    """The claim deadline passed before consumption was confirmed."""


class AlreadyFeedbackProvidedError(ExchangeError):
    """Consumption feedback was already recorded for the meal."""


class StoreUnavailableError(ExchangeError):
    """The active store could not be reached or timed out."""


class EmailAlreadyRegisteredError(ExchangeError):
    """Another member already uses this email address."""


class UserNotFoundError(ExchangeError):
    """No member exists with the requested id."""


class MealNotFoundError(ExchangeError):
    """No meal exists with the requested id."""
