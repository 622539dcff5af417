"""Exceptions raised inside the translation subsystem.

None of these reach an end user: the orchestrator and the routes catch them
and fall back to serving original text or reporting error counts.
"""


class TranslationError(Exception):
    """Base class for translation failures."""


class ProviderRateLimited(TranslationError):
    """The provider answered with HTTP 429 or an equivalent quota error."""

    def __init__(self, message='Rate limited', retry_after=None):
        super().__init__(message)
        self.retry_after = retry_after


class ProviderUnavailable(TranslationError):
    """No backend produced a usable translation."""


class StoreWriteFailed(TranslationError):
    """A translation record could not be persisted."""


class InvalidTranslationFields(TranslationError, ValueError):
    """Translated fields do not match the schema of the content type."""


class ContentIdMalformed(TranslationError, ValueError):
    """A stable content identifier could not be built or parsed."""


class MalformedResponse(ProviderUnavailable):
    """The provider answered but the payload could not be parsed."""
