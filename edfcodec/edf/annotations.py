# Licensed under the GPLv3 - see LICENSE
"""
EDF+ annotations, stored as Time-stamped Annotation Lists (TALs).

In EDF+, annotations are stored as text in the data records of a signal
labelled 'EDF Annotations'.  Each record holds one or more TALs, each of
which has the form::

    +<onset>[\\x15<duration>]\\x14[<text>\\x14...]\\x00

where the onset is in seconds relative to the start of the recording and
carries an explicit sign.  The first TAL in every record has an empty first
text and only serves to give the onset of the record itself; this is needed
for discontinuous (EDF+D) recordings, in which records need not follow each
other in time.
"""
import math
import warnings
from collections import namedtuple

import numpy as np

from ..base.payload import PayloadBase


__all__ = ['TAL_TERMINATOR', 'TAL_SEPARATOR', 'DURATION_MARKER',
           'Annotation', 'TAL', 'iter_tals', 'parse_tal', 'encode_tal',
           'encode_record_annotations', 'bucket_annotations',
           'record_onset', 'AnnotationPayload']


TAL_TERMINATOR = '\x00'
TAL_SEPARATOR = '\x14'
DURATION_MARKER = '\x15'

_TERMINATOR = ord(TAL_TERMINATOR)
_SEPARATOR = ord(TAL_SEPARATOR)
_DURATION = ord(DURATION_MARKER)
_BLANK = b' \t\r\n'


Annotation = namedtuple('Annotation', 'onset text duration', defaults=(None,))
Annotation.__doc__ = """An EDF+ annotation.

Parameters
----------
onset : float
    Seconds since the start of the recording.
text : str
    Annotation text.
duration : float or None
    Duration in seconds, if given.
"""


class TAL(namedtuple('TAL', 'onset duration texts')):
    """A decoded Time-stamped Annotation List.

    Parameters
    ----------
    onset : float
        Seconds since the start of the recording.
    duration : float or None
        Duration in seconds, if given.
    texts : list of str
        All texts, including empty ones.
    """
    __slots__ = ()

    @property
    def timekeeping(self):
        """Whether this TAL only marks the onset of its data record."""
        return len(self.texts) > 0 and self.texts[0] == ''

    @property
    def annotations(self):
        """Annotations for all non-empty texts."""
        return [Annotation(self.onset, text, self.duration)
                for text in self.texts if text]


def _tokenize(raw):
    """Split annotation bytes into raw (onset, duration, texts) tokens.

    The scanner has three states: in the onset field, in the duration field
    (after a duration marker), and in the texts (after the first
    separator).  A terminator ends the TAL in any state.  TALs consisting
    only of blanks, such as the padding at the end of a record, are skipped.
    """
    onset, duration, texts = bytearray(), None, None
    current = onset
    blank = True
    for byte in raw:
        if byte == _TERMINATOR:
            if not blank:
                if texts is not None:
                    texts.append(bytes(current))
                yield bytes(onset), duration, texts or []
            onset, duration, texts = bytearray(), None, None
            current = onset
            blank = True
            continue

        if byte not in _BLANK:
            blank = False

        if byte == _SEPARATOR:
            if texts is None:
                texts = []
            else:
                texts.append(bytes(current))
            current = bytearray()
        elif byte == _DURATION and texts is None and duration is None:
            duration = current = bytearray()
        else:
            current.append(byte)

    if not blank:
        if texts is not None:
            texts.append(bytes(current))
        yield bytes(onset), duration, texts or []


def iter_tals(raw):
    """Decode the TALs contained in annotation bytes.

    TALs whose onset lacks an explicit sign, or whose onset or duration
    cannot be parsed, are skipped with a warning.  Note that some readers
    accept unsigned onsets, so annotations written by tools that leave
    out the sign are readable there but lost here.

    Parameters
    ----------
    raw : bytes-like
        Content of the annotation signal in one data record.

    Yields
    ------
    tal : `TAL`
    """
    for onset, duration, texts in _tokenize(bytes(raw)):
        onset = onset.decode('ascii', 'replace').strip()
        try:
            if onset[:1] not in ('+', '-'):
                raise ValueError("onset should start with '+' or '-'")
            onset = float(onset)
            duration = (float(duration.decode('ascii', 'replace'))
                        if duration else None)
        except ValueError as exc:
            warnings.warn("skipping malformed TAL with onset {0!r}: {1}"
                          .format(onset, exc))
            continue
        yield TAL(onset, duration,
                  [text.decode('utf-8', 'replace') for text in texts])


def parse_tal(tal):
    """Parse a single TAL into annotations.

    Empty texts (such as those of a timekeeping TAL) do not give
    annotations.

    Parameters
    ----------
    tal : str or bytes
        The TAL, with or without its terminator.

    Returns
    -------
    annotations : list of `Annotation`

    Examples
    --------
    >>> annotations = parse_tal(
    ...     '+24784\\x1517\\x14Central Apnea\\x14Another Event')
    >>> [annotation.text for annotation in annotations]
    ['Central Apnea', 'Another Event']
    >>> annotations[0].onset, annotations[0].duration
    (24784.0, 17.0)
    """
    if isinstance(tal, str):
        tal = tal.encode('utf-8')
    return [annotation for parsed in iter_tals(tal)
            for annotation in parsed.annotations]


def encode_tal(onset, texts=('',), duration=None):
    """Encode a TAL.

    Parameters
    ----------
    onset : float
        Seconds since the start of the recording.  Written with 3 decimals.
    texts : sequence of str, optional
        Annotation texts.  The default of a single empty text gives a
        timekeeping TAL.
    duration : float or None, optional
        Duration in seconds.  Written with 3 decimals if given.

    Returns
    -------
    tal : str
        Including the terminator.
    """
    tal = '{0:+.3f}'.format(onset)
    if duration is not None:
        tal += DURATION_MARKER + '{0:.3f}'.format(duration)
    return (tal + TAL_SEPARATOR
            + ''.join(text + TAL_SEPARATOR for text in texts)
            + TAL_TERMINATOR)


def encode_record_annotations(index, record_duration, annotations=()):
    """Encode the annotation text for one data record.

    The text starts with a timekeeping TAL for the nominal onset of the
    record, ``index * record_duration``, followed by one TAL per annotation.

    Parameters
    ----------
    index : int
        Index of the data record.
    record_duration : float
        Duration of a data record in seconds.
    annotations : iterable of `Annotation`, optional
        Annotations to encode in this record, in order.
    """
    return (encode_tal(index * record_duration)
            + ''.join(encode_tal(annotation.onset, (annotation.text,),
                                 annotation.duration)
                      for annotation in annotations))


def _record_index(onset, record_duration):
    index = math.floor(onset / record_duration)
    # Match the half-open windows [index * duration, (index + 1) * duration).
    while index > 0 and index * record_duration > onset:
        index -= 1
    while (index + 1) * record_duration <= onset:
        index += 1
    return index


def bucket_annotations(annotations, nrecord, record_duration):
    """Assign annotations to the data records their onsets fall in.

    Record ``i`` covers onsets in ``[i * record_duration, (i + 1) *
    record_duration)``.  Annotations outside the recording are dropped with
    a warning.

    Returns
    -------
    buckets : list of list of `Annotation`
        For each record, its annotations in input order.
    """
    buckets = [[] for _ in range(nrecord)]
    dropped = []
    for annotation in annotations:
        if record_duration > 0:
            index = _record_index(annotation.onset, record_duration)
        else:
            index = -1
        if 0 <= index < nrecord:
            buckets[index].append(annotation)
        else:
            dropped.append(annotation)

    if dropped:
        warnings.warn("dropping {0} annotation(s) with onsets outside the "
                      "recording: {1}".format(len(dropped), dropped))
    return buckets


def record_onset(tals, index, record_duration):
    """Determine the onset of a data record from its TALs.

    Uses the first timekeeping TAL.  If there is none, or if its onset is
    zero for any but the first record (as found in files with improperly
    zeroed timekeeping), the earliest non-zero onset among the TALs is
    used, and if there is none of those either, the onset of a continuous
    recording, ``index * record_duration``.

    Parameters
    ----------
    tals : iterable of `TAL`
        TALs decoded from the record.
    index : int
        Index of the data record.
    record_duration : float
        Duration of a data record in seconds.

    Returns
    -------
    onset : float
        Seconds since the start of the recording.
    """
    tals = list(tals)
    for tal in tals:
        if tal.timekeeping:
            if tal.onset != 0 or index == 0:
                return tal.onset
            break

    nonzero = [tal.onset for tal in tals if tal.onset != 0]
    if nonzero:
        return min(nonzero)

    return index * record_duration


class AnnotationPayload(PayloadBase):
    """Container for the annotation signal of one data record.

    Parameters
    ----------
    words : `~numpy.ndarray` of uint8
        Raw bytes of the annotation signal in the record.
    header : `~edfcodec.edf.EDFSignalHeader`, optional
        Description of the annotation signal, used to check the size.
    """
    _dtype_word = np.dtype('u1')

    @classmethod
    def fromdata(cls, data, header, **kwargs):
        """Encode annotation text as a payload.

        Parameters
        ----------
        data : str or bytes
            Annotation text for the record, as produced by
            `encode_record_annotations`.  It is truncated with a warning if
            it does not fit, and padded with zeros otherwise.
        header : `~edfcodec.edf.EDFSignalHeader`
            Provides the size of the payload.
        """
        if isinstance(data, str):
            data = data.encode('utf-8')
        nbytes = header.payload_nbytes
        if len(data) > nbytes:
            warnings.warn("annotations need {0} bytes but only {1} are "
                          "available; truncating".format(len(data), nbytes))
            data = data[:nbytes]
        words = np.zeros(nbytes, cls._dtype_word)
        words[:len(data)] = np.frombuffer(data, cls._dtype_word)
        return cls(words, header=header, **kwargs)

    @property
    def tals(self):
        """All TALs in the payload, including timekeeping ones."""
        return list(iter_tals(self.words.tobytes()))

    @property
    def annotations(self):
        """Annotations in the payload (excluding timekeeping TALs)."""
        return [annotation for tal in self.tals
                for annotation in tal.annotations]

    @property
    def dtype(self):
        return np.dtype(object)

    def __getitem__(self, item=()):
        annotations = self.annotations
        return annotations if item == () else annotations[item]

    def __setitem__(self, item, data):
        raise TypeError("annotation payloads are created with fromdata.")

    data = property(__getitem__, doc="Annotations in the payload.")

    def onset(self, index, record_duration):
        """Onset of the data record holding this payload.

        See `record_onset` for how the onset is determined.
        """
        return record_onset(self.tals, index, record_duration)
