from datetime import date


class ScheduleError(Exception):
    """Base class for errors surfaced to the user."""


class UnavailableDateError(ScheduleError):
    def __init__(self, day: date):
        self.day = day
        super().__init__(
            f"{day.isoformat()} is marked unavailable. Make the date available before adding appointments."
        )


class AuthError(ScheduleError):
    """Sign-up / sign-in rejected by the identity service."""


class NotAuthenticatedError(ScheduleError):
    def __init__(self) -> None:
        super().__init__("No active identity; sign in first")


class RenderError(ScheduleError):
    """Confirmation image could not be rasterized."""
