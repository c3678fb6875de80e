"""Restaurant order submission service: payment verification, order storage and notifications."""

__version__ = "1.0.0"
