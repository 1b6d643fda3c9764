# Licensed under the GPLv3 - see LICENSE
"""
Definitions for EDF and EDF+ headers.

The header consists of a fixed block of 256 ASCII bytes, followed by 256
bytes for every signal.  The signal blocks are not stored one after the
other: instead, each field occupies a contiguous run for all signals (all
labels, then all transducer types, etc.).  Here, each signal is held in its
own 256-byte block, with the fields in the order in which they appear, and
the interleaving is done when reading or writing the full header.

Specification: https://www.edfplus.info/specs/edf.html and
https://www.edfplus.info/specs/edfplus.html
"""
import datetime
import functools
import itertools

import astropy.units as u
from astropy.time import Time

from ..base.header import HeaderParser, ParsedHeaderBase
from ..base.utils import format_number


__all__ = ['ANNOTATION_LABEL', 'EDFSignalHeader', 'EDFHeader']


ANNOTATION_LABEL = 'EDF Annotations'
"""Label identifying the EDF+ annotation signal."""


def _int(text):
    try:
        return int(text)
    except ValueError:
        return int(float(text))


def _duration(value):
    return '{0:.6f}'.format(value)


def _two_digit_year(year):
    # No EDF recordings exist from before 1985.
    return 1900 + year if year >= 85 else 2000 + year


class EDFSignalHeader(ParsedHeaderBase):
    """Description of a single signal in an EDF header.

    Parameters
    ----------
    words : bytes, bytearray, or None
        The 256 bytes describing the signal, with its fields contiguous.
        If given as `bytes`, the header is immutable.  If `None`, set to
        blanks for later initialisation.
    verify : bool, optional
        Whether to do basic verification of integrity.  Default: `True`.
    """

    _nbytes = 256

    _header_parser = HeaderParser(
        (('label', (0, 16)),
         ('transducer', (16, 80)),
         ('physical_dimension', (96, 8)),
         ('physical_min', (104, 8, float,
                           functools.partial(format_number, width=8))),
         ('physical_max', (112, 8, float,
                           functools.partial(format_number, width=8))),
         ('digital_min', (120, 8, _int,
                          functools.partial(format_number, width=8), -32768)),
         ('digital_max', (128, 8, _int,
                          functools.partial(format_number, width=8), 32767)),
         ('prefiltering', (136, 80)),
         ('samples_per_record', (216, 8, _int,
                                 functools.partial(format_number, width=8))),
         ('reserved', (224, 32))))

    @property
    def is_annotation(self):
        """Whether this is an EDF+ annotation signal (checked by label)."""
        return ANNOTATION_LABEL in self['label']

    @property
    def payload_nbytes(self):
        """Number of bytes taken by the signal in each data record."""
        return (self['samples_per_record'] or 0) * 2

    @property
    def gain(self):
        """Physical units per digital unit; 0 for a degenerate range."""
        digital_range = self['digital_max'] - self['digital_min']
        if digital_range == 0:
            return 0.
        return (self['physical_max'] - self['physical_min']) / digital_range


class EDFHeader(ParsedHeaderBase):
    """EDF or EDF+ header.

    Parameters
    ----------
    words : bytes, bytearray, or None
        The fixed 256-byte part of the header.  If given as `bytes`, the
        header is immutable.  If `None`, set to blanks for later
        initialisation (and skip verification).
    signals : list of `EDFSignalHeader`, optional
        Descriptions of the signals, in the order in which they are stored.
    verify : bool, optional
        Whether to do basic verification of integrity.  Default: `True`.

    Notes
    -----
    A header can be created from values with, e.g.::

        EDFHeader.fromvalues(
            patient_id='X X X X', recording_id='Startdate X X X X',
            start_time=datetime.datetime(2023, 1, 1), data_records=10,
            record_duration=1., signals=[EDFSignalHeader.fromvalues(...)])

    The ``header_bytes`` and ``signal_count`` fields are always recomputed
    from the list of signals when encoding.
    """

    _nbytes = 256
    _signal_header_class = EDFSignalHeader

    _header_parser = HeaderParser(
        (('version', (0, 8, str, str, '0')),
         ('patient_id', (8, 80)),
         ('recording_id', (88, 80)),
         ('startdate', (168, 8)),
         ('starttime', (176, 8)),
         ('header_bytes', (184, 8, _int,
                           functools.partial(format_number, width=8))),
         ('reserved', (192, 44)),
         ('data_records', (236, 8, _int,
                           functools.partial(format_number, width=8))),
         ('record_duration', (244, 8, float, _duration)),
         ('signal_count', (252, 4, _int,
                           functools.partial(format_number, width=4)))))

    _properties = ('signals', 'start_time', 'time')

    def __init__(self, words, signals=(), verify=True):
        # Signals of an immutable header are kept in a tuple.
        self._signals = (tuple(signals) if isinstance(words, bytes)
                         else list(signals))
        super().__init__(words, verify=verify)

    def verify(self):
        super().verify()
        assert all(isinstance(signal, self._signal_header_class)
                   for signal in self.signals)

    @classmethod
    def frombytes(cls, raw, verify=True):
        """Decode a header, including the signal descriptions.

        Parameters
        ----------
        raw : bytes-like
            Buffer starting with the header; anything beyond it is ignored.
        verify : bool, optional
            Whether to do basic verification of integrity.  Default: `True`.

        Returns
        -------
        header : `EDFHeader`
            Immutable, as are its signal headers.

        Raises
        ------
        EOFError
            If the buffer is shorter than the header it declares.
        """
        raw = memoryview(raw).cast('B')
        if len(raw) < cls._nbytes:
            raise EOFError("buffer too short for an EDF header")
        fixed = cls(bytes(raw[:cls._nbytes]), verify=False)
        nsignal = fixed['signal_count'] or 0
        nbytes = cls._nbytes + nsignal * cls._signal_header_class._nbytes
        if len(raw) < nbytes:
            raise EOFError("buffer too short for header with {0} signals"
                           .format(nsignal))

        signals = []
        for index in range(nsignal):
            words = bytearray()
            for start, width in cls._signal_fields():
                offset = cls._nbytes + start * nsignal + width * index
                words += raw[offset:offset + width]
            signals.append(cls._signal_header_class(bytes(words),
                                                    verify=verify))

        return cls(fixed.words, signals=signals, verify=verify)

    def tobytes(self):
        """Encode the header, with the signal fields interleaved.

        The ``header_bytes`` and ``signal_count`` fields are set from the
        number of signals.
        """
        words = bytearray(self.words)
        setters = self._header_parser.setters
        setters['header_bytes'](words, self.nbytes)
        setters['signal_count'](words, len(self.signals))
        for start, width in self._signal_fields():
            for signal in self.signals:
                words += signal.words[start:start + width]
        return bytes(words)

    @classmethod
    def _signal_fields(cls):
        """Start and width of each field in a signal block, in order."""
        return [definition[:2] for definition in
                cls._signal_header_class._header_parser.values()]

    def copy(self, **kwargs):
        """Create a mutable and independent copy of the header and signals."""
        kwargs.setdefault('verify', False)
        return self.__class__(bytearray(self.words),
                              signals=[signal.copy()
                                       for signal in self.signals],
                              **kwargs)

    @property
    def signals(self):
        """Descriptions of the signals."""
        return self._signals

    @signals.setter
    def signals(self, signals):
        if not self.mutable:
            raise TypeError("cannot set signals of an immutable header; set "
                            "'.mutable' or use a copy.")
        self._signals = list(signals)
        self['signal_count'] = len(self._signals)
        self['header_bytes'] = self.nbytes

    @property
    def mutable(self):
        """Whether the header and its list of signals can be changed.

        Setting it also sets the mutability of all signal headers.
        """
        return isinstance(self.words, bytearray)

    @mutable.setter
    def mutable(self, mutable):
        for signal in self._signals:
            signal.mutable = mutable
        if mutable:
            self.words = bytearray(self.words)
            self._signals = list(self._signals)
        else:
            self.words = bytes(self.words)
            self._signals = tuple(self._signals)

    @property
    def nbytes(self):
        """Size of the full header in bytes."""
        return (self._nbytes
                + len(self.signals) * self._signal_header_class._nbytes)

    @property
    def labels(self):
        """Labels of all signals."""
        return [signal['label'] for signal in self.signals]

    @property
    def record_nbytes(self):
        """Size of a data record in bytes."""
        return sum(signal.payload_nbytes for signal in self.signals)

    @property
    def signal_offsets(self):
        """Byte offsets of the signals within a data record."""
        return tuple(itertools.accumulate(
            (signal.payload_nbytes for signal in self.signals[:-1]),
            initial=0))

    @property
    def annotation_index(self):
        """Index of the first annotation signal, or `None` if absent."""
        for index, signal in enumerate(self.signals):
            if signal.is_annotation:
                return index
        return None

    @property
    def edf_plus(self):
        """Whether the header declares the file to be EDF+."""
        return self['reserved'].startswith('EDF+')

    @property
    def discontinuous(self):
        """Whether the header declares an EDF+ discontinuous recording."""
        return self['reserved'].startswith('EDF+D')

    @property
    def start_time(self):
        """Start of the recording, as a naive `~datetime.datetime`.

        Two-digit years of 85 and above are taken to be in the 1900s.
        """
        day, month, year = (int(part) for part in self['startdate'].split('.'))
        hour, minute, second = (int(part)
                                for part in self['starttime'].split('.'))
        return datetime.datetime(_two_digit_year(year), month, day,
                                 hour, minute, second)

    @start_time.setter
    def start_time(self, start_time):
        self['startdate'] = start_time.strftime('%d.%m.%y')
        self['starttime'] = start_time.strftime('%H.%M.%S')

    @property
    def time(self):
        """Start of the recording, as an `~astropy.time.Time`.

        EDF does not store a time zone; the clock time is interpreted
        as UTC.
        """
        return Time(self.start_time, scale='utc')

    @time.setter
    def time(self, time):
        self.start_time = Time(time).datetime

    @property
    def sample_rates(self):
        """Number of samples per second for each signal."""
        samples = u.Quantity([signal['samples_per_record']
                              for signal in self.signals])
        return (samples / (self['record_duration'] * u.s)).to(u.Hz)

    @property
    def duration(self):
        """Nominal duration of the recording (ignoring any gaps)."""
        return self['data_records'] * self['record_duration'] * u.s

    def __eq__(self, other):
        return (super().__eq__(other)
                and len(self.signals) == len(other.signals)
                and all(mine == theirs for mine, theirs
                        in zip(self.signals, other.signals)))

    def __repr__(self):
        signals = ''.join(
            "\n  {0}: {1!r}".format(index, signal['label'])
            for index, signal in enumerate(self.signals))
        return super().__repr__()[:-1] + ",\n  signals:" + signals + ">"
