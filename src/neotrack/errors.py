from __future__ import annotations


class DecodeError(ValueError):
    """A line of the 80 column format could not be decoded."""


class LengthError(DecodeError):
    pass


class DateError(DecodeError):
    pass


class AngleError(DecodeError):
    pass


class MagnitudeError(DecodeError):
    pass


class UnknownSiteError(DecodeError):
    def __init__(self, code: str):
        super().__init__(f"Unknown observatory code ({code!r})")
        self.code = code


class OffsetError(DecodeError):
    pass


class MismatchError(DecodeError):
    """A satellite continuation line does not match its first line."""


class ObscodeError(ValueError):
    pass
