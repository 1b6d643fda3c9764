# Licensed under the GPLv3 - see LICENSE
"""European Data Format (EDF and EDF+) reader/writer."""
from .base import (EDFReader, EDFWriter, ShapeMismatchError,  # noqa
                   DataLengthError, DataTooLongError, AnnotationOverflowError)
from .header import ANNOTATION_LABEL, EDFHeader, EDFSignalHeader  # noqa
from .payload import EDFPayload  # noqa
from .annotations import Annotation, TAL, AnnotationPayload  # noqa
from .frame import EDFRecord  # noqa
from .identifiers import patient_id, recording_id  # noqa
