# Licensed under the GPLv3 - see LICENSE
import pytest
import numpy as np

from ..utils import fixed_width, format_number


class TestFixedWidth:
    def test_pad_and_truncate(self):
        assert fixed_width('abc', 5) == b'abc  '
        assert fixed_width('abcdefg', 5) == b'abcde'
        assert fixed_width('', 3) == b'   '

    def test_non_ascii(self):
        assert fixed_width('µV', 4) == b'?V  '


class TestFormatNumber:
    @pytest.mark.parametrize('value, expected', [
        (0, '0'),
        (-32768, '-32768'),
        (np.int16(100), '100'),
        (200., '200'),
        (-3.5, '-3.5'),
        (0.1, '0.1'),
        (1/3, '0.333333'),
        (-1/3, '-0.33333'),
        (12345.678, '12345.68'),
        (1e-10, '0')])
    def test_format(self, value, expected):
        assert format_number(value, 8) == expected

    def test_narrow(self):
        assert format_number(12, 4) == '12'
        assert format_number(2.5, 4) == '2.5'

    def test_too_large(self):
        with pytest.raises(ValueError):
            format_number(123456789, 8)
        with pytest.raises(ValueError):
            format_number(-12345678.5, 8)
        with pytest.raises(ValueError):
            format_number(12345, 4)
