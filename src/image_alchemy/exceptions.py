"""Exceptions raised by the manipulation pipeline."""


class ImageAlchemyError(Exception):
    """Base class for every error raised by image_alchemy."""


class RateExceeded(ImageAlchemyError):
    """The client identity went over the throttler's limit."""

    def __init__(self, identity: str):
        super().__init__(f"There's a limit of requests per time unit. Identity: {identity}")
        self.identity = identity


class ResourceFetchFailed(ImageAlchemyError):
    """
    Base class fetchers may use for transfer errors.

    The processor never raises or catches it; whatever a fetcher raises is
    propagated unchanged.
    """


class ImageNotReadable(ImageAlchemyError):
    """The fetched resource could not be decoded as an image."""


class EngineFailure(ImageAlchemyError):
    """An engine primitive (decode, pixel operation, encode) failed."""
