# Licensed under the GPLv3 - see LICENSE
"""
Base definitions for headers composed of fixed-width ASCII fields.

A header class keeps the raw bytes of its block and decodes a field only
when it is asked for, through a dict-like interface.  Where each field lives
and how its text maps to a value is described by a `HeaderParser`, which
builds (and caches) the parser and setter functions for every key.
"""
import warnings

from .utils import fixed_width


__all__ = ['make_parser', 'make_setter', 'get_default',
           'ParserDict', 'HeaderParserBase', 'HeaderParser',
           'ParsedHeaderBase']


def make_parser(start, width, forward=str, backward=str, default=None):
    """Construct a function that converts a field of a header to a value.

    The function acts on the bytes of a header block, extracting the given
    field, decoding it as ASCII, stripping surrounding blanks, and then
    converting it with ``forward``.  A blank field gives ``default`` for
    fields that are not plain strings.

    Parameters
    ----------
    start : int
        Byte offset of the field in the header block.
    width : int
        Number of bytes in the field.
    forward : callable
        Converts the stripped text to a value.  Default: `str`.

    Returns
    -------
    parser : function
        Called with the header block as its only argument.
    """
    stop = start + width

    def parser(words):
        text = bytes(words[start:stop]).decode('ascii', 'replace').strip()
        if not text and forward is not str:
            return default
        return forward(text)

    return parser


def make_setter(start, width, forward=str, backward=str, default=None):
    """Construct a function that uses a value to set a field in a header.

    The value is converted to text with ``backward``, and stored
    left-justified, padded with blanks, and truncated to the field width.

    Parameters
    ----------
    start : int
        Byte offset of the field in the header block.
    width : int
        Number of bytes in the field.
    backward : callable
        Converts a value to text.  Default: `str`.
    default : object or None
        Used in place of a value of `None`.

    Returns
    -------
    setter : function
        Called with a mutable header block and the value to store.
    """
    stop = start + width

    def setter(words, value):
        if value is None:
            if default is None:
                raise ValueError("field has no default, so it cannot be "
                                 "set to None.")
            value = default
        words[start:stop] = fixed_width(backward(value), width)
        return words

    return setter


def get_default(start, width, forward=str, backward=str, default=None):
    """Return the default value from a header keyword definition."""
    return default


class ParserDict:
    """Descriptor giving a dict of parsers, setters or defaults per key.

    On first access from a `HeaderParserBase` instance, ``factory`` is
    applied to each keyword definition, and the resulting dict is stored on
    the instance under the descriptor's own name.  Being a non-data
    descriptor, it is then shadowed by that dict.

    Parameters
    ----------
    factory : callable
        Called with the unpacked definition of a keyword, e.g.,
        `make_parser`, `make_setter` or `get_default`.
    """

    def __init__(self, factory):
        self.factory = factory

    def __set_name__(self, owner, name):
        self.name = name
        self.__doc__ = f"Lazily evaluated dict of {name}"

    def __get__(self, instance, cls=None):
        if instance is None:
            return self
        result = {key: self.factory(*definition)
                  for key, definition in instance.items()}
        setattr(instance, self.name, result)
        return result

    def __repr__(self):
        return f"{type(self).__name__}({self.factory})"


class HeaderParserBase(dict):
    """Ordered mapping of header keywords to their definitions.

    Initialised like a dict, from (key, definition) pairs, where each
    definition is a tuple that tells how a value is stored in the header.
    Subclasses add `ParserDict` attributes that turn these definitions into
    functions.  Those are computed once per instance, so the mapping should
    not be changed after they are first used.
    """


class HeaderParser(HeaderParserBase):
    """Parser & setter for fixed-width ASCII header fields.

    Each definition is a tuple of:

    start : int
        Byte offset of the field.
    width : int
        Number of bytes in the field.
    forward : callable, optional
        Function converting the stripped text to a value.  Default: `str`.
    backward : callable, optional
        Function converting a value to text.  Default: `str`.
    default : object or None, optional
        Value for a blank (non-string) field, and used when setting `None`.
    """
    parsers = ParserDict(make_parser)
    setters = ParserDict(make_setter)
    defaults = ParserDict(get_default)


class ParsedHeaderBase:
    """Base class for headers held as a block of fixed-width ASCII fields.

    Subclasses set ``_header_parser`` (a `HeaderParser`) and ``_nbytes``
    (the size of the block).  They can list in ``_properties`` any
    properties that can be set on initialisation or update.

    Parameters
    ----------
    words : bytes, bytearray, or None
        Header block.  If given as `bytes`, the header is immutable.  If
        `None`, set to a mutable block of blanks for later initialisation
        (and skip any verification).
    verify : bool, optional
        Whether to check the block.  Default: `True`.
    """

    _nbytes = 0
    _properties = ()

    def __init__(self, words, verify=True):
        if words is None:
            words = bytearray(b' ' * self._nbytes)
            verify = False
        self.words = words
        if verify:
            self.verify()

    def verify(self):
        """Verify that the size of the block is consistent.

        Subclasses can override this to do more thorough checks.
        """
        assert len(self.words) == self._nbytes

    def copy(self, **kwargs):
        """Return a mutable copy that does not share data with this header.

        Any keyword arguments are passed on to the initialiser.
        """
        kwargs.setdefault('verify', False)
        return type(self)(bytearray(self.words), **kwargs)

    def __copy__(self):
        return self.copy()

    @property
    def mutable(self):
        """Whether fields can be set (i.e., words is a `bytearray`)."""
        return isinstance(self.words, bytearray)

    @mutable.setter
    def mutable(self, mutable):
        self.words = bytearray(self.words) if mutable else bytes(self.words)

    @property
    def nbytes(self):
        """Number of bytes in the header block."""
        return self._nbytes

    @classmethod
    def frombytes(cls, raw, *args, **kwargs):
        """Create an immutable header from the start of a byte buffer.

        Any further arguments are passed on to the initialiser.

        Raises
        ------
        EOFError
            If the buffer is shorter than the header.
        """
        words = bytes(raw[:cls._nbytes])
        if len(words) < cls._nbytes:
            raise EOFError("buffer too short for {0}: {1} < {2} bytes"
                           .format(cls.__name__, len(words), cls._nbytes))
        return cls(words, *args, **kwargs)

    def tobytes(self):
        """Encoded header block."""
        return bytes(self.words)

    @classmethod
    def fromvalues(cls, *args, **kwargs):
        """Create a header from values for its keys and properties.

        Keys that are not given are set to their default, if they have one.
        For an existing header, ``cls.fromvalues(**header) == header``.

        Parameters
        ----------
        *args
            Passed on to the initialiser, after the (blank) words.
        **kwargs
            Values of header keys, or of properties listed in
            ``_properties``.
        """
        self = cls(None, *args, verify=False)
        defaults = self._header_parser.defaults
        for key in self.keys():
            if key not in kwargs and defaults[key] is not None:
                kwargs[key] = defaults[key]

        self.update(**kwargs)
        return self

    @classmethod
    def fromkeys(cls, *args, **kwargs):
        """Create a header from values for exactly all of its keys.

        Unlike `fromvalues`, properties are not accepted and no defaults
        are filled in.

        Raises
        ------
        KeyError
            If keys are missing, or unknown keys are present.
        """
        self = cls(None, *args, verify=False)
        given = set(kwargs) - {'verify'}
        missing = set(self.keys()) - given
        extra = given - set(self.keys())
        if missing or extra:
            problems = []
            if missing:
                problems.append("is missing keys {0}".format(missing))
            if extra:
                problems.append("has extra keys {0}".format(extra))
            raise KeyError("input " + " and ".join(problems))

        self.update(**kwargs)
        return self

    def update(self, *, verify=True, **kwargs):
        """Set header keys and properties.

        Keys are set first, then properties, in the order of
        ``_properties``.  Anything else is ignored with a warning.

        Parameters
        ----------
        verify : bool, optional
            Whether to check the header afterwards.  Default: `True`.
        **kwargs
            Values for keys and properties.
        """
        for key in self.keys():
            if key in kwargs:
                self[key] = kwargs.pop(key)

        for key in self._properties:
            if key in kwargs:
                setattr(self, key, kwargs.pop(key))

        if kwargs:
            warnings.warn("unused keywords in header update: {0}"
                          .format(kwargs))

        if verify:
            self.verify()

    def __getitem__(self, item):
        """Decode the value of the given key from the header block."""
        try:
            parser = self._header_parser.parsers[item]
        except KeyError:
            raise KeyError("{0} has no key {1!r}"
                           .format(type(self).__name__, item)) from None
        return parser(self.words)

    def __setitem__(self, item, value):
        """Encode a value for the given key in the header block.

        A value of `None` sets the key to its default (if it has one).
        """
        try:
            setter = self._header_parser.setters[item]
        except KeyError:
            raise KeyError("{0} has no key {1!r}"
                           .format(type(self).__name__, item)) from None
        if not self.mutable:
            raise TypeError("cannot set {0!r} in an immutable header; set "
                            "'.mutable' or use a copy.".format(item))
        setter(self.words, value)

    def keys(self):
        """Keys of the header, in the order of the fields."""
        return self._header_parser.keys()

    def _ipython_key_completions_(self):
        return self.keys()

    def __contains__(self, key):
        return key in self._header_parser

    def __eq__(self, other):
        return (type(self) is type(other)
                and bytes(self.words) == bytes(other.words))

    def __repr__(self):
        name = type(self).__name__
        indent = ",\n  " + " " * len(name)
        return "<{0} {1}>".format(name, indent.join(
            "{0}: {1!r}".format(key, self[key]) for key in self.keys()))
