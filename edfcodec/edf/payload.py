# Licensed under the GPLv3 - see LICENSE
"""
Definitions for EDF payloads.

Samples are stored as little-endian, two's complement 16-bit integers.
They are mapped linearly to physical values such that the digital minimum
and maximum of a signal correspond to its physical minimum and maximum.
"""
import numpy as np

from ..base.payload import PayloadBase


__all__ = ['digital_to_physical', 'physical_to_digital', 'EDFPayload']


def digital_to_physical(words, signal):
    """Convert stored digital values to physical values.

    Parameters
    ----------
    words : array-like of int
        Digital values.
    signal : `~edfcodec.edf.EDFSignalHeader`
        Provides the digital and physical ranges.

    Returns
    -------
    values : `~numpy.ndarray` of float
        All zero if the digital range is degenerate.
    """
    digital_min = signal['digital_min']
    values = np.asarray(words, dtype=np.float64) - digital_min
    values *= signal.gain
    if signal['digital_max'] != digital_min:
        values += signal['physical_min']
    return values


def physical_to_digital(values, signal):
    """Convert physical values to digital values.

    Values are rounded to the nearest integer, with halves rounded up, and
    clipped to the digital range of the signal (as well as to the 16-bit
    range).

    Parameters
    ----------
    values : array-like of float
        Physical values.
    signal : `~edfcodec.edf.EDFSignalHeader`
        Provides the digital and physical ranges.

    Returns
    -------
    words : `~numpy.ndarray` of int16
        All zero if the physical range is degenerate.
    """
    values = np.asarray(values, dtype=np.float64)
    physical_min = signal['physical_min']
    physical_range = signal['physical_max'] - physical_min
    if physical_range == 0:
        return np.zeros(values.shape, '<i2')

    digital_min = signal['digital_min']
    digital_max = signal['digital_max']
    digital = np.floor((values - physical_min) * (digital_max - digital_min)
                       / physical_range + digital_min + 0.5)
    low = max(digital_min, -32768)
    high = min(digital_max, 32767)
    return np.clip(digital, low, high).astype('<i2')


class EDFPayload(PayloadBase):
    """Container for decoding and encoding the samples of one signal.

    Parameters
    ----------
    words : `~numpy.ndarray` of int16
        Digital values.  Can be 2-dimensional, with records along the first
        axis, to hold the samples of a signal for several data records.
    header : `~edfcodec.edf.EDFSignalHeader`
        Description of the signal, used to convert between digital and
        physical values.
    """
    _dtype_word = np.dtype('<i2')

    def __init__(self, words, *, header):
        super().__init__(words, header=header)

    @property
    def digital(self):
        """Stored digital values."""
        return self.words.astype(int)

    def _decode(self, words):
        return digital_to_physical(words, self.header)

    def _encode(self, data):
        return physical_to_digital(data, self.header)
