from enum import Enum
from typing import Optional

from .capabilities import Feature


class ConnectionErrorMessage(str, Enum):
    """Generic, user-facing connection error messages.

    Drivers should return one of these from `humanize_error` whenever the raw
    backend message can be recognized.
    """

    CANNOT_CONNECT = "Hmm, we couldn't connect to the database. Make sure your host and port settings are correct."
    BAD_DB_NAME = "Looks like the database name is incorrect."
    INVALID_HOSTNAME = "It looks like your host is invalid. Please double-check it and try again."
    BAD_PASSWORD = "Looks like your password is incorrect."
    MISSING_PASSWORD = "Looks like you forgot to enter your password."
    BAD_USERNAME = "Looks like your username is incorrect."
    BAD_USERNAME_OR_PASSWORD = "Looks like the username or password is incorrect."


class DriverError(Exception):
    """Base class for errors raised by drivers."""


class UnsupportedFeatureError(DriverError):
    """Raised when a feature-gated operation is invoked on a driver that does not advertise it."""

    def __init__(self, driver_name: str, feature: Feature):
        self.driver_name = driver_name
        self.feature = feature
        super().__init__(f"Driver '{driver_name}' does not support the '{feature.value}' feature.")


class UnsupportedOperationError(DriverError):
    """Raised when an optional operation outside any feature tag is not implemented by a driver."""

    def __init__(self, driver_name: str, operation: str):
        self.driver_name = driver_name
        self.operation = operation
        super().__init__(f"Driver '{driver_name}' does not support '{operation}'.")


class DatabaseConnectionError(DriverError):
    """A connectivity check failed. The message is already humanized."""


class NativeQueryError(DriverError):
    """A native query failed. The message is the user-relevant part of the driver error."""

    def __init__(self, message: str, raw_message: Optional[str] = None):
        super().__init__(message)
        self.raw_message = raw_message or message
