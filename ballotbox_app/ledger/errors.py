from __future__ import annotations


class LedgerError(Exception):
    code = "ledger_error"


class ValidationError(LedgerError):
    code = "validation_error"


class InvalidWindowError(ValidationError):
    code = "invalid_window"


class InvalidFormatError(LedgerError):
    code = "invalid_format"


class PreconditionNotMetError(LedgerError):
    code = "precondition_not_met"


class ElectionNotOpenError(PreconditionNotMetError):
    code = "election_not_open"


class AlreadyVotedError(PreconditionNotMetError):
    code = "already_voted"


class UnknownVoterError(PreconditionNotMetError):
    code = "unknown_voter"


class UnknownCandidateError(PreconditionNotMetError):
    code = "unknown_candidate"


class NotFoundError(LedgerError):
    code = "not_found"


class ConflictError(LedgerError):
    code = "conflict"


class StorageUnavailableError(LedgerError):
    code = "storage_unavailable"
