import pytest

from umicheck.matcher import hamming_distance, is_umi_in_read


def test_hamming_distance_exact():
    assert hamming_distance(b"ACGTACGT", b"ACGTACGT") == 0


def test_hamming_distance_with_n_and_tail():
    assert hamming_distance(b"ACGTNACGTA", b"ACGTAACGTT") == 2


def test_hamming_distance_n_matches_n_still_counts():
    assert hamming_distance(b"NNNN", b"NNNN") == 4


def test_hamming_distance_all_different():
    assert hamming_distance(b"AAAAAAAAAAAA", b"CCCCCCCCCCCC") == 12


def test_hamming_distance_empty():
    assert hamming_distance(b"", b"") == 0


def test_hamming_distance_unequal_lengths():
    with pytest.raises(ValueError):
        hamming_distance(b"ACGT", b"ACG")


def test_is_umi_in_read_exact_and_mismatch():
    umi = b"ACGTACGTACGT"
    assert is_umi_in_read(umi, b"GGGGACGTACGTACGTGGGG", 0)

    read2 = b"GGGGACGTACGAACGTGGGG"
    assert is_umi_in_read(umi, read2, 1)
    assert not is_umi_in_read(umi, read2, 0)


def test_read_shorter_than_umi():
    assert not is_umi_in_read(b"ACGTACGT", b"ACGT", 3)


def test_umi_at_read_edges():
    umi = b"ACGTTGCA"
    assert is_umi_in_read(umi, b"ACGTTGCAGGGG", 0)
    assert is_umi_in_read(umi, b"GGGGACGTTGCA", 0)


def test_two_mismatches_need_two_allowed():
    umi = b"ACGTACGTACGT"
    read = b"TTTTACCTACGTACTTTTTT"
    assert not is_umi_in_read(umi, read, 1)
    assert is_umi_in_read(umi, read, 2)


def test_n_in_read_counts_as_mismatch():
    umi = b"ACGTACGTACGT"
    read = b"ACGTANGTACGT"
    assert not is_umi_in_read(umi, read, 0)
    assert is_umi_in_read(umi, read, 1)


def test_short_umi_fallback_path():
    # UMI shorter than the number of chunks uses the plain scan.
    assert is_umi_in_read(b"AC", b"TTGGTT", 2)
    assert not is_umi_in_read(b"ACG", b"TTTTTT", 2)
    assert is_umi_in_read(b"ACG", b"TTTTTT", 3)


def test_mismatch_spread_over_every_chunk_is_rejected():
    umi = b"AAAAAAAAAAAA"
    # one mismatch in each of the four chunks used for three mismatches
    read = b"CAAACAAACAAC"
    assert not is_umi_in_read(umi, read, 3)


def test_three_mismatches_allowed():
    umi = b"AAAAAAAAAAAA"
    read = b"CAAACAAACAAA"
    assert is_umi_in_read(umi, read, 3)


def test_empty_umi_raises():
    with pytest.raises(ValueError):
        is_umi_in_read(b"", b"ACGT", 1)