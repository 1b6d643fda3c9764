# Licensed under the GPLv3 - see LICENSE
"""Biosignal recordings in the European Data Format (EDF and EDF+)."""
from importlib.metadata import version as _version, PackageNotFoundError

from .edf import (EDFReader, EDFWriter, EDFHeader, EDFSignalHeader,  # noqa
                  Annotation, ShapeMismatchError, DataLengthError,
                  DataTooLongError, AnnotationOverflowError)

try:
    __version__ = _version('edfcodec')
except PackageNotFoundError:  # Can happen in source checkout.
    __version__ = ''

# Define minima for the documentation, but do not bother to explicitly check.
__minimum_python_version__ = '3.10'
__minimum_astropy_version__ = '5.1'
__minimum_numpy_version__ = '1.24'
