# Licensed under the GPLv3 - see LICENSE
import pytest
import numpy as np

from ..annotations import (Annotation, TAL, iter_tals, parse_tal, encode_tal,
                           encode_record_annotations, bucket_annotations,
                           record_onset, AnnotationPayload)
from .test_header import make_signal


class TestTAL:
    def test_parse_tal(self):
        annotations = parse_tal(
            '+24784\x1517\x14Central Apnea\x14Another Event')
        assert annotations == [
            Annotation(24784., 'Central Apnea', 17.),
            Annotation(24784., 'Another Event', 17.)]

    def test_iter_tals(self):
        raw = (b'+0\x14\x14\x00+1.5\x150.5\x14Start\x14\x00'
               b'-2\x14Before\x14After\x14\x00\x00\x00')
        tals = list(iter_tals(raw))
        assert tals == [TAL(0., None, ['', '']),
                        TAL(1.5, 0.5, ['Start', '']),
                        TAL(-2., None, ['Before', 'After', ''])]
        assert [tal.timekeeping for tal in tals] == [True, False, False]
        assert tals[0].annotations == []
        assert tals[1].annotations == [Annotation(1.5, 'Start', 0.5)]
        assert len(tals[2].annotations) == 2

    def test_utf8(self):
        raw = '+3\x14Schlafstadium Wach ü\x14\x00'.encode('utf-8')
        assert parse_tal(raw) == [Annotation(3., 'Schlafstadium Wach ü')]

    def test_missing_sign(self):
        with pytest.warns(UserWarning, match='skipping'):
            tals = list(iter_tals(b'24\x14Event\x14\x00+1\x14Ok\x14\x00'))
        assert tals == [TAL(1., None, ['Ok', ''])]

    def test_bad_duration(self):
        with pytest.warns(UserWarning, match='skipping'):
            assert parse_tal(b'+1\x15long\x14Event\x14\x00') == []

    def test_padding_only(self):
        assert list(iter_tals(b'\x00' * 10)) == []
        assert list(iter_tals(b'')) == []


class TestEncode:
    def test_encode_tal(self):
        assert encode_tal(0.) == '+0.000\x14\x14\x00'
        assert encode_tal(0.5, ('Event A',)) == '+0.500\x14Event A\x14\x00'
        assert (encode_tal(0, ('Start',), 0.5)
                == '+0.000\x150.500\x14Start\x14\x00')
        assert encode_tal(-1.25, ('a', 'b')) == '-1.250\x14a\x14b\x14\x00'

    def test_encode_record_annotations(self):
        text = encode_record_annotations(2, 1.5, [Annotation(3.2, 'x')])
        assert text == '+3.000\x14\x14\x00+3.200\x14x\x14\x00'
        assert encode_record_annotations(0, 1.) == '+0.000\x14\x14\x00'

    def test_encode_decode(self):
        annotations = [Annotation(0., 'Start', 0.5),
                       Annotation(0.5, 'Event A')]
        text = encode_record_annotations(0, 1., annotations)
        assert parse_tal(text) == annotations


class TestBucket:
    def test_windows(self):
        annotations = [Annotation(onset, str(onset))
                       for onset in (0., 0.999, 1., 1.5, 2.)]
        buckets = bucket_annotations(annotations, 3, 1.)
        assert [[a.onset for a in bucket] for bucket in buckets] == [
            [0., 0.999], [1., 1.5], [2.]]

    def test_order_preserved(self):
        annotations = [Annotation(0.7, 'late'), Annotation(0.2, 'early')]
        assert bucket_annotations(annotations, 1, 1.) == [annotations]

    def test_outside(self):
        annotations = [Annotation(-0.5, 'before'), Annotation(0.5, 'in'),
                       Annotation(2., 'after')]
        with pytest.warns(UserWarning, match='dropping 2'):
            buckets = bucket_annotations(annotations, 2, 1.)
        assert buckets == [[annotations[1]], []]

    def test_fractional_duration(self):
        annotations = [Annotation(0.25, 'a'), Annotation(0.5, 'b')]
        buckets = bucket_annotations(annotations, 3, 0.25)
        assert buckets == [[], [annotations[0]], [annotations[1]]]


class TestRecordOnset:
    def test_timekeeping(self):
        tals = [TAL(60., None, ['', '']), TAL(61., None, ['Event', ''])]
        assert record_onset(tals, 2, 30.) == 60.

    def test_first_record(self):
        tals = [TAL(0., None, ['', '']), TAL(5., None, ['Event', ''])]
        assert record_onset(tals, 0, 30.) == 0.

    def test_zeroed_timekeeping(self):
        tals = [TAL(0., None, ['', '']), TAL(9., None, ['Event', '']),
                TAL(12., None, ['Other', ''])]
        assert record_onset(tals, 3, 30.) == 9.

    def test_no_timekeeping(self):
        tals = [TAL(14., 2., ['Event', ''])]
        assert record_onset(tals, 1, 30.) == 14.

    def test_fallback(self):
        assert record_onset([], 4, 2.) == 8.
        assert record_onset([TAL(0., None, ['', ''])], 2, 2.5) == 5.


class TestAnnotationPayload:
    def setup_class(cls):
        cls.signal = make_signal('EDF Annotations', samples_per_record=15,
                                 physical_min=-1, physical_max=1)
        cls.annotations = [Annotation(0.5, 'Event A')]
        cls.text = encode_record_annotations(0, 1., cls.annotations)

    def test_fromdata(self):
        payload = AnnotationPayload.fromdata(self.text, self.signal)
        assert payload.nbytes == 30
        assert payload.words.dtype == np.dtype('u1')
        raw = payload.tobytes()
        assert raw == self.text.encode('ascii').ljust(30, b'\x00')
        assert payload.annotations == self.annotations
        assert payload.data == self.annotations
        assert payload[0] == self.annotations[0]
        assert payload.dtype == np.dtype(object)
        assert payload.tals[0].timekeeping
        assert payload.onset(0, 1.) == 0.

    def test_frombytes(self):
        raw = self.text.encode('ascii').ljust(30, b'\x00')
        payload = AnnotationPayload.frombytes(raw, header=self.signal)
        assert payload == AnnotationPayload.fromdata(self.text, self.signal)
        with pytest.raises(TypeError):
            payload[0] = Annotation(1., 'other')

    def test_truncation(self):
        signal = make_signal('EDF Annotations', samples_per_record=6)
        with pytest.warns(UserWarning, match='truncating'):
            payload = AnnotationPayload.fromdata(self.text, signal)
        assert payload.nbytes == 12
        assert payload.tobytes() == self.text.encode('ascii')[:12]
        assert payload.annotations == []
