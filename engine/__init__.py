from engine.configurator import TournamentConfig
from engine.errors import (
    DestructiveRegeneration,
    InvalidFormatForTeamCount,
    InvalidResult,
    NotFound,
    PartialWriteFailure,
    RoundIncomplete,
    TournamentError,
    UnsupportedTeamCount,
)
from engine.service import TournamentService

__all__ = [
    'DestructiveRegeneration',
    'InvalidFormatForTeamCount',
    'InvalidResult',
    'NotFound',
    'PartialWriteFailure',
    'RoundIncomplete',
    'TournamentConfig',
    'TournamentError',
    'TournamentService',
    'UnsupportedTeamCount',
]
