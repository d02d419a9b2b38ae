import os

import pytest

from brokerauth.core.codec import decode, encode
from brokerauth.errors import FormatError


def test_round_trip_including_empty():
    for n in (0, 1, 2, 3, 16, 64, 257):
        data = os.urandom(n)
        assert decode(encode(data)) == data


def test_encode_is_single_line_standard_alphabet():
    text = encode(bytes(range(256)) * 4)
    assert "\n" not in text
    assert "-" not in text and "_" not in text
    assert text.endswith("=")


def test_encode_known_values():
    assert encode(b"") == ""
    assert encode(b"abc") == "YWJj"
    assert encode(b"ab") == "YWI="
    assert encode(b"\xfb\xff") == "+/8="


def test_decode_empty_is_empty():
    assert decode("") == b""


@pytest.mark.parametrize("bad", ["YW*j", "YWJj ", "YWJj\n", "YW_j", "YéJj"])
def test_decode_rejects_non_alphabet(bad):
    with pytest.raises(FormatError):
        decode(bad)


@pytest.mark.parametrize("bad", ["QQ", "QQ=a", "=====", "QUJD=", "QUJD==", "QUJDRA"])
def test_decode_rejects_bad_padding(bad):
    with pytest.raises(FormatError):
        decode(bad)


def test_decode_padding_only_is_corruption():
    with pytest.raises(FormatError):
        decode("==")


def test_format_error_carries_code():
    with pytest.raises(FormatError) as exc_info:
        decode("!!!!")
    assert exc_info.value.code == 3001
