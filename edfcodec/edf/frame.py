# Licensed under the GPLv3 - see LICENSE
"""
Definitions for EDF data records.

A data record holds, for every signal in the order given in the header, a
fixed number of samples (or, for the annotation signal, a fixed number of
bytes of text).
"""
import numpy as np

from .payload import EDFPayload
from .annotations import AnnotationPayload


__all__ = ['EDFRecord']


class EDFRecord:
    """Representation of an EDF data record, with one payload per signal.

    Parameters
    ----------
    header : `~edfcodec.edf.EDFHeader`
        Header of the recording, describing the signals.
    payloads : list of `~edfcodec.edf.EDFPayload` or
               `~edfcodec.edf.annotations.AnnotationPayload`
        One for each signal.
    verify : bool
        Whether to do basic verification of integrity.  Default: `True`.

    Notes
    -----
    The record can also be instantiated using class methods:

      frombytes : decode the payloads from the bytes of a record

      fromdata : encode data as payloads

    Of course, one can also do the opposite:

      tobytes : method to get the encoded record

      data : property that yields the decoded data for all signals

    Indexing the record with a signal index gives the decoded data for
    that signal.
    """

    _payload_class = EDFPayload
    _annotation_class = AnnotationPayload

    def __init__(self, header, payloads, verify=True):
        self.header = header
        self.payloads = list(payloads)
        if verify:
            self.verify()

    def verify(self):
        """Simple verification of the payloads against the header."""
        assert len(self.payloads) == len(self.header.signals)
        for signal, payload in zip(self.header.signals, self.payloads):
            expected = (self._annotation_class if signal.is_annotation
                        else self._payload_class)
            assert isinstance(payload, expected)
            assert payload.nbytes == signal.payload_nbytes

    @classmethod
    def frombytes(cls, raw, header, verify=True):
        """Decode a data record.

        Parameters
        ----------
        raw : bytes-like
            Encoded record; should be ``header.record_nbytes`` long.
        header : `~edfcodec.edf.EDFHeader`
            Header of the recording.
        verify : bool
            Whether to do basic verification of integrity.  Default: `True`.
        """
        raw = memoryview(raw).cast('B')
        if len(raw) != header.record_nbytes:
            raise EOFError("data record should have {0} bytes, got {1}"
                           .format(header.record_nbytes, len(raw)))
        payloads = []
        for signal, offset in zip(header.signals, header.signal_offsets):
            payload_class = (cls._annotation_class if signal.is_annotation
                             else cls._payload_class)
            payloads.append(payload_class.frombytes(
                raw[offset:offset + signal.payload_nbytes], header=signal))
        return cls(header, payloads, verify=verify)

    def tobytes(self):
        """Encoded data record."""
        return b''.join(payload.tobytes() for payload in self.payloads)

    @classmethod
    def fromdata(cls, data, header, verify=True):
        """Construct a data record from data for every signal.

        Parameters
        ----------
        data : list
            For each signal, the samples in physical units, or, for the
            annotation signal, the annotation text for the record (see
            `~edfcodec.edf.annotations.encode_record_annotations`).
        header : `~edfcodec.edf.EDFHeader`
            Header of the recording.
        verify : bool
            Whether to do basic verification of integrity.  Default: `True`.
        """
        if len(data) != len(header.signals):
            raise ValueError("need data for {0} signals, got {1}"
                             .format(len(header.signals), len(data)))
        payloads = [(cls._annotation_class if signal.is_annotation
                     else cls._payload_class).fromdata(item, signal)
                    for signal, item in zip(header.signals, data)]
        return cls(header, payloads, verify=verify)

    @property
    def nbytes(self):
        """Size of the data record in bytes."""
        return sum(payload.nbytes for payload in self.payloads)

    @property
    def annotations(self):
        """Annotations in all annotation signals of the record."""
        return [annotation for payload in self.payloads
                if isinstance(payload, self._annotation_class)
                for annotation in payload.annotations]

    def __len__(self):
        """Number of signals."""
        return len(self.payloads)

    def __getitem__(self, item):
        return self.payloads[item].data

    @property
    def data(self):
        """Decoded data for all signals."""
        return [payload.data for payload in self.payloads]

    def __eq__(self, other):
        return (type(self) is type(other)
                and self.header == other.header
                and len(self.payloads) == len(other.payloads)
                and all(np.all(mine == theirs) for mine, theirs
                        in zip(self.payloads, other.payloads)))
