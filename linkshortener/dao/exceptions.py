from linkshortener.exceptions import LinkShortenerError


class DAOError(LinkShortenerError):
    """Generic base class for DAO-related exceptions."""

    error_code = 'dao:dao_error'


class EntryNotFoundError(DAOError):
    """Raised when an EntryModel is not found in the data store."""

    error_code = 'dao:entry_not_found_error'


class EntryAlreadyExistsError(DAOError):
    """Raised when inserting an EntryModel whose shortcode is already taken."""

    error_code = 'dao:entry_already_exists_error'


class DataStoreError(DAOError):
    """Raised when the data store encounters an error.

    Examples include connection issues, timeouts, and out-of-memory failures.
    """

    error_code = 'dao:data_store_error'


class CorruptRecordError(DataStoreError):
    """Raised when a stored record cannot be deserialized."""

    error_code = 'dao:corrupt_record_error'
