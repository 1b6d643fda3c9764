# Licensed under the GPLv3 - see LICENSE
import datetime

import pytest

from ..identifiers import patient_id, recording_id


class TestPatientId:
    def test_full(self):
        assert patient_id(hospital_code='MCH 0234567', sex='F',
                          birthdate=datetime.date(1951, 8, 2),
                          name='Haagse Harry') == (
                              'MCH_0234567 F 02-AUG-1951 Haagse_Harry')

    def test_missing(self):
        assert patient_id() == 'X X X X'
        assert patient_id(hospital_code='', name='') == 'X X X X'

    def test_sex(self):
        assert patient_id(sex='m') == 'X M X X'
        with pytest.raises(ValueError):
            patient_id(sex='Q')

    def test_whitespace_runs(self):
        assert patient_id(name='Jan  van\tDam') == 'X X X Jan_van_Dam'

    def test_datetime(self):
        birthdate = datetime.datetime(2001, 12, 31, 23, 59)
        assert patient_id(birthdate=birthdate) == 'X X 31-DEC-2001 X'


class TestRecordingId:
    def test_full(self):
        assert recording_id(start_date=datetime.date(2002, 3, 2),
                            study_code='PSG 1234/2002',
                            technician_code='NN',
                            equipment_code='Telemetry 03') == (
                                'Startdate 02-MAR-2002 PSG_1234/2002 NN '
                                'Telemetry_03')

    def test_missing(self):
        assert recording_id() == 'Startdate X X X X'
