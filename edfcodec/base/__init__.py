# Licensed under the GPLv3 - see LICENSE
"""Base implementations shared by the format-specific modules.

Recordings are considered as a header followed by data records, each of
which holds one payload per signal.  Base classes implementing the decoding
and encoding of headers made of fixed-width ASCII fields, and of payloads
held as numpy words, are found in the corresponding `~edfcodec.base.header`
and `~edfcodec.base.payload` modules.

Finally, `~edfcodec.base.utils` contains routines to render values into
fixed-width fields.
"""
