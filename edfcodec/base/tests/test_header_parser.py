# Licensed under the GPLv3 - see LICENSE
import pytest

from ..header import (ParserDict, HeaderParserBase, HeaderParser,
                      ParsedHeaderBase)


class ParserDictSetup:
    @staticmethod
    def create_parser(index, default):
        def parser(words):
            return words[index]
        return parser

    @staticmethod
    def get_default(index, default):
        return default

    @staticmethod
    def random_name(index, default):
        return index


class TestHeaderParserBase(ParserDictSetup):
    def setup_class(cls):
        cls.hp = {'0': (0, 'default0'),
                  '1': (1, 'default1')}

        class H(HeaderParserBase):
            parsers = ParserDict(cls.create_parser)
            indices = ParserDict(cls.random_name)
            defaults = ParserDict(cls.get_default)

        cls.H = H

    def test_parserdict(self):
        assert self.H.parsers.name == 'parsers'
        assert self.H.indices.name == 'indices'
        assert repr(self.H.parsers).startswith('ParserDict')
        assert 'Lazily evaluated' in self.H.defaults.__doc__

    def test_init(self):
        h = self.H(self.hp)
        words = ['first', 'second']
        assert h.parsers['0'](words) == 'first'
        assert h.defaults['1'] == 'default1'
        assert h.indices['1'] == 1

    def test_cached(self):
        h = self.H(self.hp)
        assert h.indices is h.indices
        assert 'indices' in vars(h)
        assert 'parsers' not in vars(h)


class TestHeaderParser:
    def setup_class(cls):
        cls.header_parser = HeaderParser(
            (('name', (0, 8)),
             ('count', (8, 4, int, str, 0)),
             ('value', (12, 6, float))))

    def test_parse(self):
        words = b'ab      12  1.5   '
        parsers = self.header_parser.parsers
        assert parsers['name'](words) == 'ab'
        assert parsers['count'](words) == 12
        assert parsers['value'](words) == 1.5

    def test_blank_numbers(self):
        words = b' ' * 18
        parsers = self.header_parser.parsers
        assert parsers['name'](words) == ''
        assert parsers['count'](words) == 0
        assert parsers['value'](words) is None

    def test_set(self):
        words = bytearray(b' ' * 18)
        setters = self.header_parser.setters
        setters['name'](words, 'a much too long name')
        setters['count'](words, None)
        setters['value'](words, 2.25)
        assert words == b'a much t0   2.25  '
        with pytest.raises(ValueError):
            setters['value'](words, None)

    def test_non_ascii(self):
        words = bytearray(b' ' * 18)
        self.header_parser.setters['name'](words, 'Zoë')
        assert words[:8] == b'Zo?     '

    def test_defaults(self):
        assert self.header_parser.defaults == {
            'name': None, 'count': 0, 'value': None}


class SimpleHeader(ParsedHeaderBase):
    _nbytes = 12
    _header_parser = HeaderParser(
        (('name', (0, 8, str, str, 'none')),
         ('count', (8, 4, int, str, 1))))
    _properties = ('double',)

    @property
    def double(self):
        return self['count'] * 2

    @double.setter
    def double(self, double):
        self['count'] = double // 2


class TestParsedHeader:
    def setup_method(self):
        self.header = SimpleHeader(b'eeg     7   ')

    def test_basics(self):
        header = self.header
        assert header['name'] == 'eeg'
        assert header['count'] == 7
        assert header.double == 14
        assert header.nbytes == 12
        assert header.tobytes() == b'eeg     7   '
        assert 'count' in header
        assert 'other' not in header
        assert list(header.keys()) == ['name', 'count']
        assert header._ipython_key_completions_() == header.keys()
        assert "name: 'eeg'" in repr(header)
        with pytest.raises(KeyError):
            header['other']

    def test_immutable(self):
        assert not self.header.mutable
        with pytest.raises(TypeError):
            self.header['count'] = 3
        with pytest.raises(KeyError):
            self.header['other'] = 3
        self.header.mutable = True
        self.header['count'] = 3
        assert self.header['count'] == 3
        self.header.mutable = False
        assert isinstance(self.header.words, bytes)

    def test_copy(self):
        copy = self.header.copy()
        assert copy == self.header
        assert copy.mutable
        copy['name'] = 'ecg'
        assert copy != self.header
        assert self.header['name'] == 'eeg'

    def test_frombytes(self):
        header = SimpleHeader.frombytes(b'eeg     7   extra')
        assert header == self.header
        with pytest.raises(EOFError):
            SimpleHeader.frombytes(b'eeg')

    def test_fromvalues(self):
        header = SimpleHeader.fromvalues(name='eeg', count=7)
        assert header == self.header
        header = SimpleHeader.fromvalues(name='eeg', double=14)
        assert header == self.header
        header = SimpleHeader.fromvalues()
        assert header['name'] == 'none'
        assert header['count'] == 1
        with pytest.warns(UserWarning, match='unused'):
            SimpleHeader.fromvalues(name='eeg', bla=1)

    def test_fromkeys(self):
        header = SimpleHeader.fromkeys(**self.header)
        assert header == self.header
        with pytest.raises(KeyError, match='missing'):
            SimpleHeader.fromkeys(name='eeg')
        with pytest.raises(KeyError, match='extra'):
            SimpleHeader.fromkeys(name='eeg', count=7, bla=1)

    def test_verify(self):
        with pytest.raises(AssertionError):
            SimpleHeader(b'eeg')
        header = SimpleHeader(b'eeg', verify=False)
        assert header['name'] == 'eeg'
