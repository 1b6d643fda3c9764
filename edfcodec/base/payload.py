# Licensed under the GPLv3 - see LICENSE
"""
Payload base class.

A payload is the part of a data record taken by one signal.  `PayloadBase`
keeps its encoded words in a numpy array and decodes them when indexed.
"""
import numpy as np


__all__ = ['PayloadBase']


class PayloadBase:
    """Container for the encoded words of a signal.

    Subclasses define ``_dtype_word``, and ``_decode`` and ``_encode``
    methods that convert words to decoded values and back.

    Parameters
    ----------
    words : `~numpy.ndarray`
        Encoded words, of dtype ``_dtype_word``.  To hold a signal for
        several data records, use a 2-dimensional array with records along
        the first axis.
    header : signal header, optional
        If given, its ``payload_nbytes`` is used to check the length of the
        words, and subclasses can use it for decoding.
    """
    _dtype_word = np.dtype('u1')
    """Dtype of the encoded words."""

    def __init__(self, words, *, header=None):
        words = np.asanyarray(words)
        if words.dtype != self._dtype_word:
            raise ValueError("words should have dtype {0}, not {1}"
                             .format(self._dtype_word, words.dtype))
        if (header is not None and words.ndim > 0
                and words.shape[-1] * words.itemsize != header.payload_nbytes):
            raise ValueError("words should take {0} bytes per record"
                             .format(header.payload_nbytes))
        self.words = words
        self.header = header

    @classmethod
    def frombytes(cls, raw, header=None, **kwargs):
        """Create a payload viewing a byte buffer.

        Parameters
        ----------
        raw : bytes-like
            Encoded payload.  The words are read-only for immutable
            buffers.
        header : signal header, optional
            Used to check the size and to decode the payload.
        **kwargs
            Passed on to the initialiser.
        """
        return cls(np.frombuffer(raw, dtype=cls._dtype_word),
                   header=header, **kwargs)

    def tobytes(self):
        """Encoded payload."""
        return self.words.tobytes()

    @classmethod
    def fromdata(cls, data, header, **kwargs):
        """Create a payload by encoding data.

        Parameters
        ----------
        data : array-like
            Values to encode; should match the number of words implied by
            ``header.payload_nbytes``.
        header : signal header
            Gives the size of the payload, and how to encode it.
        **kwargs
            Passed on to the initialiser.
        """
        words = np.zeros(header.payload_nbytes // cls._dtype_word.itemsize,
                         cls._dtype_word)
        payload = cls(words, header=header, **kwargs)
        payload[:] = data
        return payload

    def __array__(self, dtype=None, copy=None):
        data = self.data
        return data if dtype is None else data.astype(dtype, copy=False)

    @property
    def nbytes(self):
        """Number of bytes taken by the encoded words."""
        return self.words.nbytes

    def __len__(self):
        return self.words.size

    @property
    def shape(self):
        """Shape of the decoded data (the same as that of the words)."""
        return self.words.shape

    @property
    def dtype(self):
        """Dtype of the decoded data."""
        return np.dtype(np.float64)

    def _decode(self, words):
        raise NotImplementedError  # pragma: no cover

    def _encode(self, data):
        raise NotImplementedError  # pragma: no cover

    def __getitem__(self, item=()):
        return self._decode(self.words[item])

    def __setitem__(self, item, data):
        self.words[item] = self._encode(np.asanyarray(data))

    data = property(__getitem__, doc="Decoded values of all words.")

    def __eq__(self, other):
        if type(self) is not type(other) or self.shape != other.shape:
            return False
        return self.words is other.words or bool(np.all(self.words
                                                        == other.words))
