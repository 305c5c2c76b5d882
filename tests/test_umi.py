import pytest

from umicheck.umi import UmiLengthError, extract_umi_from_header


def test_extract_umi_from_header():
    assert extract_umi_from_header(b"READ_12345:ACGTACGTACGT", 12) == b"ACGTACGTACGT"


def test_extract_umi_raises_on_wrong_length():
    with pytest.raises(UmiLengthError, match="UMI length does not match"):
        extract_umi_from_header(b"READ:ACGT", 6)


def test_length_error_carries_values():
    with pytest.raises(UmiLengthError) as info:
        extract_umi_from_header(b"READ:ACGT", 6)
    assert info.value.expected == 6
    assert info.value.found == 4
    assert isinstance(info.value, ValueError)


def test_extract_umi_with_colon_and_underscore():
    assert extract_umi_from_header(b"ID:aaaacccc", 8) == b"AAAACCCC"
    assert extract_umi_from_header(b"ID_gggttt", 6) == b"GGGTTT"


def test_extract_umi_with_space_colon_and_underscore():
    assert extract_umi_from_header(b"ID:aaaacccc some other info:aaa", 8) == b"AAAACCCC"
    assert extract_umi_from_header(b"ID_gggttt additional_info", 6) == b"GGGTTT"


def test_last_separator_wins():
    assert extract_umi_from_header(b"A:B_C:GATTACA", 7) == b"GATTACA"


def test_header_without_separator_is_whole_token():
    assert extract_umi_from_header(b"ACGT", 4) == b"ACGT"


def test_str_header_accepted():
    assert extract_umi_from_header("read1_acgt", 4) == b"ACGT"


def test_invalid_utf8_returns_none():
    assert extract_umi_from_header(b"\xff\xfe:ACGT", 4) is None


@pytest.mark.parametrize("header", [b"", b"   ", b"\t\n"])
def test_empty_header_returns_none(header):
    assert extract_umi_from_header(header, 4) is None


def test_trailing_separator_gives_empty_umi_error():
    with pytest.raises(UmiLengthError) as info:
        extract_umi_from_header(b"READ:", 4)
    assert info.value.found == 0