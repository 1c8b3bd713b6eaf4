"""Exceptions raised by the tournament engine."""


class TournamentError(Exception):
    """Base class for every engine error.

    ``status_code`` is the HTTP status the JSON API answers with.
    """

    status_code = 400


class NotFound(TournamentError):
    """An unknown tournament, team, player or match id was used."""

    status_code = 404


class InvalidFormatForTeamCount(TournamentError):
    """A format outside the team-count band was chosen.

    The configurator resolves this with its fallback format, so it never
    reaches the operator.
    """


class UnsupportedTeamCount(TournamentError):
    """The enrolled teams cannot be arranged in the requested format."""


class DestructiveRegeneration(TournamentError):
    """A fixture already exists and replacing it was not confirmed."""

    status_code = 409


class RoundIncomplete(TournamentError):
    """The current knockout round still has unplayed matches."""

    status_code = 409


class InvalidResult(TournamentError):
    """A reported score cannot be applied to the match."""


class PartialWriteFailure(TournamentError):
    """A batch of paired writes failed and was rolled back."""

    status_code = 500
