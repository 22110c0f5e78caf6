"""Exceptions raised by the slope field core."""


class SlopeFieldError(Exception):
    """Base class for every error the package raises on purpose."""


class InputRejected(SlopeFieldError):
    """Equation text contains a character the front end does not accept."""

    def __init__(self, text: str, char: str):
        self.text = text
        self.char = char
        super().__init__(f"Unsupported character {char!r} in {text!r}")


class ExpressionError(SlopeFieldError):
    """The normalized equation could not be parsed or compiled."""

    def __init__(self, message: str, text: str = ""):
        self.text = text
        super().__init__(message)


class WindowError(SlopeFieldError, ValueError):
    pass


# Single message shown to the player for any rejected or broken equation.
USER_MESSAGE = "Try another function: invalid or unsupported expression."
