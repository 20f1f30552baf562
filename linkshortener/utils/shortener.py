"""Shortcode generation utility

This module provides a helper function for generating random, letters-only
shortcodes used as entry identifiers.

Functions:
    generate_shortcode(length=4):
        Generate a random shortcode suitable for use as a URL slug.

Example:
    >>> from linkshortener.utils import generate_shortcode
    >>> generate_shortcode(4)
    'qZeT'
"""

import secrets
import string


ALPHABET = string.ascii_letters  # 26 lowercase + 26 uppercase, no digits


def generate_shortcode(length: int = 4) -> str:
    """Generate a random shortcode of exactly `length` letters.

    Every character is drawn independently and uniformly from ALPHABET with a
    cryptographically secure random source, so shortcodes are not guessable from
    previously issued ones.

    Args:
        length (int, optional):
            Number of characters of the shortcode.
            Defaults to 4.

    Returns:
        str: A random shortcode made of ASCII letters only.

    Raises:
        TypeError: If length is not an integer.
        ValueError: If length is smaller than 1.

    NOTE:
        - Collisions are possible, especially with short lengths. Uniqueness is
          enforced by the data store (SET NX) and the EntryStore retries on collision.
        - 52**4 ~= 7.3M distinct shortcodes at the default length.
    """
    if not isinstance(length, int) or isinstance(length, bool):
        raise TypeError(f'Length must be of type integer (given type: {type(length)}).')
    if length < 1:
        raise ValueError(f'Length must be a positive integer (given value: {length}).')

    return ''.join(secrets.choice(ALPHABET) for _ in range(length))
