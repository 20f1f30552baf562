import functools
from collections.abc import Callable


__all__ = ['RedisKeySchema']  # hide internal decorator prefix_key from imports


def prefix_key(func: Callable) -> Callable:
    @functools.wraps(func)
    def wrapper(self, *args, **kwargs) -> str:
        key = func(self, *args, **kwargs)
        return f'{self.prefix}:{key}' if self.prefix is not None else key

    return wrapper


class RedisKeySchema:
    """Provide standardized Redis keys for storing entries and their visitors.

    Without a prefix the keys match the historical layout of the service
    ("entry:<id>", "entry:visits:<id>"), so existing data stays readable.
    An optional prefix can be provided to namespace all generated keys,
    e.g. "linkshortener:prod" or "linkshortener:dev".
    """

    def __init__(self, prefix: str | None = None):
        if prefix is not None and not isinstance(prefix, str):
            raise TypeError(f'Prefix must be of type string (given type: {type(prefix)}).')

        self.prefix = prefix

    @prefix_key
    def entry_key(self, shortcode: str) -> str:
        return f'entry:{shortcode}'

    @prefix_key
    def entry_visits_key(self, shortcode: str) -> str:
        return f'entry:visits:{shortcode}'

    @prefix_key
    def entries_index_key(self) -> str:
        return 'entries'
