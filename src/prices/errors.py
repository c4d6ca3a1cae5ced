"""Exception hierarchy for the import and export pipelines.

Every error carries the HTTP status it maps to, so the API layer needs a
single handler. ``BadRequest`` covers anything wrong with the client's
payload; ``InternalFailure`` covers storage and serialization problems.
"""


class PriceServiceError(Exception):
    status_code = 500


class BadRequest(PriceServiceError):
    status_code = 400


class InvalidArchive(BadRequest):
    """The payload is not a readable zip archive."""


class NoDataFile(BadRequest):
    """The archive holds no entry that qualifies as the data file."""


class MalformedRow(BadRequest):
    """A row has the wrong field count, an empty field, or is not valid CSV."""


class InvalidPrice(BadRequest):
    pass


class InvalidDate(BadRequest):
    pass


class EmptyBatch(BadRequest):
    """No data rows after the header."""


class InternalFailure(PriceServiceError):
    status_code = 500


class StorageFailed(InternalFailure):
    """Connection, transaction or insert failure."""


class QueryFailed(InternalFailure):
    pass


class SerializationFailed(InternalFailure):
    pass
