import logging

from linkshortener.dao.base import EntryBaseDAO
from linkshortener.dao.redis import EntryRedisDAO
from linkshortener.exceptions import BadConfigurationError
from linkshortener.utils.config import Settings


logger = logging.getLogger(__name__)

# Backend name (AppConfig "active_backend") -> DAO class
BACKENDS: dict[str, type[EntryBaseDAO]] = {
    'redis': EntryRedisDAO,
}


def create_entry_dao(settings: Settings) -> EntryBaseDAO:
    """Instantiate the DAO of the configured backend

    Backend options are passed as `<backend>_<option>` keyword arguments,
    e.g. {'host': 'redis.local'} becomes redis_host='redis.local'.

    Raises:
        BadConfigurationError:
            If the backend is unknown.
        DataStoreError:
            If the backend is unreachable.
    """
    dao_class = BACKENDS.get(settings.backend)
    if dao_class is None:
        raise BadConfigurationError(f"'{settings.backend}' is not a recognized backend.")

    options = {f'{settings.backend}_{k}': v for k, v in settings.backend_options.items()}
    logger.debug('Creating entry DAO.', extra={'backend': settings.backend, 'prefix': settings.prefix})
    return dao_class(**options, prefix=settings.prefix)
