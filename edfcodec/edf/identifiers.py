# Licensed under the GPLv3 - see LICENSE
"""
Builders for the structured EDF+ patient and recording identification.

EDF+ subdivides the ``patient_id`` and ``recording_id`` header fields into
space-separated subfields, in which unknown values are written as 'X' and
spaces inside a value are replaced by underscores.
"""
import re


__all__ = ['patient_id', 'recording_id']


MONTHS = ('JAN', 'FEB', 'MAR', 'APR', 'MAY', 'JUN',
          'JUL', 'AUG', 'SEP', 'OCT', 'NOV', 'DEC')

_WHITESPACE = re.compile(r'\s+')


def _field(value):
    if not value:
        return 'X'
    return _WHITESPACE.sub('_', value)


def _date(date):
    # English month abbreviations regardless of locale, hence no strftime.
    if date is None:
        return 'X'
    return '{0:02d}-{1}-{2:04d}'.format(date.day, MONTHS[date.month - 1],
                                        date.year)


def patient_id(hospital_code=None, sex=None, birthdate=None, name=None):
    """Construct an EDF+ patient identification.

    Parameters
    ----------
    hospital_code : str, optional
        Hospital administration code of the patient.
    sex : {'M', 'F', 'X'}, optional
        Case insensitive.
    birthdate : `~datetime.date` or `~datetime.datetime`, optional
    name : str, optional
        Name of the patient.

    Returns
    -------
    patient_id : str

    Examples
    --------
    >>> import datetime
    >>> patient_id('MCH 0234567', 'F', datetime.date(1951, 8, 2),
    ...            'Haagse Harry')
    'MCH_0234567 F 02-AUG-1951 Haagse_Harry'
    >>> patient_id()
    'X X X X'
    """
    sex = (sex or 'X').upper()
    if sex not in ('M', 'F', 'X'):
        raise ValueError("sex should be one of 'M', 'F', or 'X', not {0!r}"
                         .format(sex))
    return ' '.join((_field(hospital_code), sex, _date(birthdate),
                     _field(name)))


def recording_id(start_date=None, study_code=None, technician_code=None,
                 equipment_code=None):
    """Construct an EDF+ recording identification.

    Parameters
    ----------
    start_date : `~datetime.date` or `~datetime.datetime`, optional
    study_code : str, optional
        Hospital administration code of the investigation.
    technician_code : str, optional
        Code of the responsible investigator or technician.
    equipment_code : str, optional
        Code of the equipment used.

    Returns
    -------
    recording_id : str
    """
    return ' '.join(('Startdate', _date(start_date), _field(study_code),
                     _field(technician_code), _field(equipment_code)))
