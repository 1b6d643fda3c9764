# Licensed under the GPLv3 - see LICENSE
"""Helpers for rendering values into fixed-width ASCII header fields."""
import numpy as np


__all__ = ['fixed_width', 'format_number']


def fixed_width(value, width):
    """Encode a string as ASCII, left-justified in a field of given width.

    Characters that cannot be represented in ASCII are replaced by '?'.
    Longer strings are truncated, shorter ones padded with spaces.

    Parameters
    ----------
    value : str
        Text to put in the field.
    width : int
        Number of bytes in the field.

    Returns
    -------
    field : bytes
        Exactly ``width`` bytes long.
    """
    return value.encode('ascii', 'replace')[:width].ljust(width, b' ')


def format_number(value, width):
    """Shortest decimal representation of a number fitting in ``width``.

    Integral values are written without a fractional part.  For other
    values, the precision is reduced until the text fits.

    Raises
    ------
    ValueError
        If even the integer part does not fit.
    """
    if isinstance(value, (int, np.integer)):
        text = str(int(value))
    else:
        value = float(value)
        if value.is_integer():
            text = str(int(value))
        else:
            text = repr(value)
            if len(text) > width or 'e' in text:
                # Fixed point, dropping decimals until it fits.
                decimals = width
                text = '{0:.{1}f}'.format(value, decimals)
                while len(text) > width and decimals > 0:
                    decimals -= 1
                    text = '{0:.{1}f}'.format(value, decimals)
                if '.' in text:
                    text = text.rstrip('0').rstrip('.')

    if len(text) > width:
        raise ValueError("{0} cannot be represented with {1} characters"
                         .format(value, width))
    return text
