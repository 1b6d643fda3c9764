# Licensed under the GPLv3 - see LICENSE
"""
Readers and writers for complete EDF and EDF+ recordings held in memory.
"""
import math
import operator
import warnings

import numpy as np
from astropy.utils import lazyproperty

from .header import ANNOTATION_LABEL, EDFHeader, EDFSignalHeader
from .payload import EDFPayload
from .annotations import (Annotation, AnnotationPayload, bucket_annotations,
                          encode_record_annotations)
from .frame import EDFRecord
from . import identifiers


__all__ = ['ShapeMismatchError', 'DataLengthError', 'DataTooLongError',
           'AnnotationOverflowError', 'EDFReader', 'EDFWriter']


class ShapeMismatchError(ValueError):
    """Number of data arrays differs from the number of signals."""
    pass


class DataLengthError(ValueError):
    """Length of the data for a signal does not fit the recording."""
    pass


class DataTooLongError(DataLengthError):
    """More samples given for a signal than the recording can hold."""
    pass


class AnnotationOverflowError(DataLengthError):
    """Data for the annotation signal exceeds its configured capacity."""
    pass


class EDFReader:
    """Decoder for an EDF or EDF+ recording held in a byte buffer.

    The header is decoded on first access, and the data records are
    exposed as a view on the buffer, so that any part of a signal can be
    decoded without copying the whole recording.

    Parameters
    ----------
    buffer : bytes-like
        Encoded recording.  It is not modified.

    Notes
    -----
    If the buffer holds fewer complete data records than the header
    declares, only the complete ones are exposed, with a warning.  If the
    number of records is declared unknown (-1), it is inferred from the
    size of the buffer.
    """

    def __init__(self, buffer):
        self._buffer = memoryview(buffer).cast('B')

    def __repr__(self):
        return ("<{0} header_bytes={1}, nrecords={2},\n"
                " labels={3}>".format(self.__class__.__name__,
                                      self.header.nbytes, self.nrecords,
                                      self.header.labels))

    @lazyproperty
    def header(self):
        """Decoded header.  Immutable; use `read_header` to get a copy."""
        return EDFHeader.frombytes(self._buffer)

    def read_header(self):
        """Return an independent, mutable copy of the header."""
        return self.header.copy()

    @lazyproperty
    def _records(self):
        """Data records as a 2-dimensional array of 16-bit words."""
        header = self.header
        record_nbytes = header.record_nbytes
        offset = header['header_bytes'] or header.nbytes
        if record_nbytes == 0:
            available = 0
        else:
            available = max(len(self._buffer) - offset, 0) // record_nbytes

        declared = header['data_records']
        if declared is None or declared < 0:
            nrecord = available
        elif declared > available:
            warnings.warn("buffer holds only {0} of the {1} data records "
                          "declared in the header".format(available, declared))
            nrecord = available
        else:
            nrecord = declared

        nword = record_nbytes // 2
        if nrecord == 0:
            return np.zeros((0, nword), '<i2')
        words = np.frombuffer(self._buffer, dtype='<i2',
                              count=nrecord * nword, offset=offset)
        return words.reshape(nrecord, nword)

    @property
    def nrecords(self):
        """Number of complete data records available."""
        return len(self._records)

    def _record_index(self, index):
        index = operator.index(index)
        if not -self.nrecords <= index < self.nrecords:
            raise IndexError("record index {0} out of range for {1} records"
                             .format(index, self.nrecords))
        return index % self.nrecords

    def _record_selection(self, records):
        """Convert a record selection to something usable for indexing."""
        if records is None:
            return slice(None)
        if isinstance(records, slice):
            return records
        if isinstance(records, range):
            indices = np.asarray(records, dtype=int)
            if np.any((indices < -self.nrecords)
                      | (indices >= self.nrecords)):
                raise IndexError("record range {0} out of range for {1} "
                                 "records".format(records, self.nrecords))
            return indices
        index = self._record_index(records)
        return slice(index, index + 1)

    def _signal_index(self, signal):
        if isinstance(signal, str):
            try:
                return self.header.labels.index(signal)
            except ValueError:
                raise KeyError("no signal labelled {0!r}".format(signal))

        index = operator.index(signal)
        nsignal = len(self.header.signals)
        if not -nsignal <= index < nsignal:
            raise IndexError("signal index {0} out of range for {1} signals"
                             .format(index, nsignal))
        return index % nsignal

    def _words(self, signal_index, records=slice(None)):
        start = self.header.signal_offsets[signal_index] // 2
        stop = (start
                + self.header.signals[signal_index].payload_nbytes // 2)
        return self._records[records, start:stop]

    def read_record(self, index):
        """Decode a single data record.

        Parameters
        ----------
        index : int
            Index of the record.  Negative values count from the end.

        Returns
        -------
        record : `~edfcodec.edf.EDFRecord`
        """
        words = self._records[self._record_index(index)]
        return EDFRecord.frombytes(words.view('u1'), self.header)

    def read_signal(self, signal, records=None, digital=False):
        """Read the samples of a signal.

        Parameters
        ----------
        signal : int or str
            Index or label of the signal.
        records : None, int, slice, or range, optional
            Data records to read.  Default: all.
        digital : bool, optional
            If `True`, return the stored integers rather than physical
            values.  Default: `False`.

        Returns
        -------
        data : `~numpy.ndarray`
            Samples of all selected records, concatenated in record order.
        """
        index = self._signal_index(signal)
        words = self._words(index, self._record_selection(records))
        payload = EDFPayload(words, header=self.header.signals[index])
        data = payload.digital if digital else payload.data
        return data.ravel()

    def _annotation_payload(self, signal_index, record_index):
        return AnnotationPayload(
            self._words(signal_index, record_index).view('u1'),
            header=self.header.signals[signal_index])

    def read_annotations(self, records=None):
        """Read the annotations, excluding timekeeping markers.

        Parameters
        ----------
        records : None, int, slice, or range, optional
            Data records to read the annotations of.  Default: all.

        Returns
        -------
        annotations : list of `~edfcodec.edf.annotations.Annotation`
            In record order.  Empty if there is no annotation signal.
        """
        signal_indices = [index for index, signal
                          in enumerate(self.header.signals)
                          if signal.is_annotation]
        if not signal_indices:
            return []

        record_indices = np.arange(self.nrecords)[
            self._record_selection(records)]
        return [annotation
                for record_index in record_indices
                for signal_index in signal_indices
                for annotation in self._annotation_payload(
                    signal_index, record_index).annotations]

    def get_record_timestamp(self, index):
        """Onset of a data record in seconds since the start of recording.

        For EDF+ files, this is taken from the record's timekeeping
        annotation (see `~edfcodec.edf.annotations.record_onset`); otherwise,
        the records are taken to be contiguous.
        """
        index = self._record_index(index)
        record_duration = self.header['record_duration']
        signal_index = self.header.annotation_index
        if signal_index is None:
            return index * record_duration
        return self._annotation_payload(signal_index, index).onset(
            index, record_duration)

    @lazyproperty
    def record_timestamps(self):
        """Onsets of all data records, in seconds since the start."""
        record_duration = self.header['record_duration']
        if self.header.annotation_index is None:
            return np.arange(self.nrecords) * record_duration
        return np.array([self.get_record_timestamp(index)
                         for index in range(self.nrecords)], dtype=float)

    def get_record_timestamps(self):
        """Return a copy of the onsets of all data records."""
        return self.record_timestamps.copy()


class EDFWriter:
    """Encoder for an EDF or EDF+ recording.

    Parameters
    ----------
    header : `~edfcodec.edf.EDFHeader`
        Header describing the recording.  It is copied, and the copy is
        adjusted as needed (see Notes); the result is available as the
        ``header`` attribute.
    data : list of array-like
        For each signal, its samples in physical units, for all records
        concatenated.  Shorter arrays are padded with zeros.  For the
        annotation signal, the content is ignored, but the length is checked
        against its capacity.  The entry for the annotation signal may be
        left out if that signal is the last one.
    annotations : iterable of `~edfcodec.edf.annotations.Annotation`, optional
        Annotations to store, as instances or as (onset, text[, duration])
        tuples.  Each is written in the data record its onset falls in.

    Notes
    -----
    If annotations are given and the header has no annotation signal, one
    is appended.  An annotation signal without a given number of samples
    per record is sized to hold the largest record's annotations.  If
    annotations are given, the recording is marked as EDF+ continuous
    unless it is already marked as discontinuous.

    Raises
    ------
    AnnotationOverflowError
        If the data for the annotation signal is longer than its capacity.
    """

    max_record_nbytes = 61440
    """Maximum recommended size of a data record."""

    annotation_signal_defaults = dict(
        label=ANNOTATION_LABEL, transducer='', physical_dimension='',
        physical_min=-32768, physical_max=32767,
        digital_min=-32768, digital_max=32767,
        prefiltering='', samples_per_record=0, reserved='')
    """Values used for an annotation signal added by the writer."""

    patient_id = staticmethod(identifiers.patient_id)
    recording_id = staticmethod(identifiers.recording_id)

    def __init__(self, header, data, annotations=None):
        self.header = header.copy()
        self.data = list(data)
        self.annotations = [Annotation(*annotation)
                            for annotation in (annotations or ())]
        self._configure_annotation_signal()

    def _configure_annotation_signal(self):
        header = self.header
        index = header.annotation_index
        if index is None:
            if not self.annotations:
                return
            signal = EDFSignalHeader.fromvalues(
                **self.annotation_signal_defaults)
            header.signals = list(header.signals) + [signal]
            index = len(header.signals) - 1

        signal = header.signals[index]
        if not signal['samples_per_record']:
            longest = max((len(block) for block in self._annotation_blocks),
                          default=0)
            signal['samples_per_record'] = math.ceil(longest / 2)

        if self.annotations and not header.discontinuous:
            header['reserved'] = 'EDF+C'

        # Only the entry for a trailing annotation signal may be left out.
        if len(self.data) == index == len(header.signals) - 1:
            self.data.append([])
        if len(self.data) <= index:
            return
        capacity = signal['samples_per_record'] * self._nrecord
        if len(self.data[index]) > capacity:
            raise AnnotationOverflowError(
                "data for annotation signal {0} has {1} entries, but it can "
                "hold only {2}".format(index, len(self.data[index]),
                                       capacity))

    @property
    def _nrecord(self):
        return max(self.header['data_records'] or 0, 0)

    @lazyproperty
    def _annotation_blocks(self):
        """Encoded annotation text for every data record."""
        record_duration = self.header['record_duration']
        buckets = bucket_annotations(self.annotations, self._nrecord,
                                     record_duration)
        return [encode_record_annotations(index, record_duration,
                                          bucket).encode('utf-8')
                for index, bucket in enumerate(buckets)]

    def _validated_data(self):
        """Check the data and pad it to the full length of the recording."""
        signals = self.header.signals
        if len(self.data) != len(signals):
            raise ShapeMismatchError(
                "got data for {0} signals, but the header has {1}"
                .format(len(self.data), len(signals)))

        data = []
        for index, (signal, values) in enumerate(zip(signals, self.data)):
            if signal.is_annotation:
                data.append(None)
                continue
            values = np.asanyarray(values, dtype=float).ravel()
            nsample = (signal['samples_per_record'] or 0) * self._nrecord
            if len(values) > nsample:
                raise DataTooLongError(
                    "signal {0} ({1!r}) has {2} samples, but the recording "
                    "can hold only {3}".format(index, signal['label'],
                                               len(values), nsample))
            padded = np.zeros(nsample)
            padded[:len(values)] = values
            data.append(padded)

        return data

    def write(self):
        """Encode the recording.

        Returns
        -------
        raw : bytes
            Header followed by all data records.

        Raises
        ------
        ShapeMismatchError
            If the number of data arrays differs from the number of signals.
        DataTooLongError
            If an array has more samples than the recording can hold.
        """
        data = self._validated_data()
        header = self.header
        if header.record_nbytes > self.max_record_nbytes:
            warnings.warn("data records of {0} bytes exceed the recommended "
                          "maximum of {1} bytes"
                          .format(header.record_nbytes,
                                  self.max_record_nbytes))

        chunks = [header.tobytes()]
        for record in range(self._nrecord):
            record_data = []
            for signal, values in zip(header.signals, data):
                if signal.is_annotation:
                    record_data.append(self._annotation_blocks[record])
                else:
                    nsample = signal['samples_per_record']
                    record_data.append(
                        values[record * nsample:(record + 1) * nsample])
            chunks.append(EDFRecord.fromdata(record_data, header).tobytes())

        return b''.join(chunks)
