import random
from itertools import combinations

import pytest

import huffman as huff
from codec_errors import DecodeError, EmptyInputError, InvariantViolation, MissingCodeError

CORPORA = [
    "aaab",
    "abcd",
    "this is an example of a huffman tree",
    "line one\r\nline two\n\ttabbed\n",
    "naïve café 日本語 日本 日",
    "a" * 50 + "b" * 20 + "c" * 5 + "d",
]


def classic_table():
    return {"a": 5, "b": 9, "c": 12, "d": 13, "e": 16, "f": 45}


def assert_prefix_free(codebook):
    for (s1, c1), (s2, c2) in combinations(codebook.items(), 2):
        assert not c1.startswith(c2), (s1, s2)
        assert not c2.startswith(c1), (s1, s2)


def test_tabulate_counts_in_first_appearance_order():
    ft = huff.tabulate("abracadabra")
    assert ft == {"a": 5, "b": 2, "r": 2, "c": 1, "d": 1}
    assert list(ft) == ["a", "b", "r", "c", "d"]


def test_tabulate_bytes_yields_int_symbols():
    assert huff.tabulate(b"hello") == {104: 1, 101: 1, 108: 2, 111: 1}


def test_single_symbol():
    ft = huff.tabulate("aaaa")
    codebook = huff.build_codebook(ft)
    assert ft == {"a": 4}
    assert codebook == {"a": "0"}
    bits, n = huff.encode(codebook, "aaaa")
    assert (bits, n) == ("0000", 4)
    assert huff.savings(codebook, ft) == 28


def test_two_symbols():
    ft = huff.tabulate("aaab")
    codebook = huff.build_codebook(ft)
    assert codebook in ({"a": "0", "b": "1"}, {"a": "1", "b": "0"})
    # lighter node is extracted first and becomes the left child
    assert codebook == {"a": "1", "b": "0"}
    assert huff.encode(codebook, "aaab")[1] == 4
    assert huff.savings(codebook, ft) == 28


def test_classic_textbook_code_lengths():
    ft = classic_table()
    codebook = huff.build_codebook(ft)
    assert {s: len(c) for s, c in codebook.items()} == {"a": 4, "b": 4, "c": 3, "d": 3, "e": 3, "f": 1}
    assert sum(ft[s] * len(c) for s, c in codebook.items()) == 224


def test_all_equal_counts():
    ft = huff.tabulate("abcd")
    codebook = huff.build_codebook(ft)
    assert codebook == {"a": "00", "b": "01", "c": "10", "d": "11"}
    assert huff.encode(codebook, "abcd")[1] == 8
    assert huff.savings(codebook, ft) == 24


def test_empty_input():
    with pytest.raises(EmptyInputError):
        huff.build_codebook(huff.tabulate(""))
    with pytest.raises(ValueError):
        huff.build_tree({})


def test_missing_code():
    codebook = huff.build_codebook(huff.tabulate("ab"))
    with pytest.raises(MissingCodeError) as exc:
        huff.encode(codebook, "abc")
    assert exc.value.symbol == "c"
    assert isinstance(exc.value, LookupError)


def test_non_positive_count_rejected():
    with pytest.raises(ValueError):
        huff.build_codebook({"a": 3, "b": 0})


@pytest.mark.parametrize("text", CORPORA)
def test_codebook_properties(text):
    ft = huff.tabulate(text)
    codebook = huff.build_codebook(ft)

    assert_prefix_free(codebook)
    assert set(codebook) == {s for s, c in ft.items() if c > 0}
    for s1, s2 in combinations(ft, 2):
        if ft[s1] < ft[s2]:
            assert len(codebook[s1]) >= len(codebook[s2])
        elif ft[s2] < ft[s1]:
            assert len(codebook[s2]) >= len(codebook[s1])

    bits, n = huff.encode(codebook, text)
    assert n == len(bits) == sum(len(codebook[s]) for s in text)
    assert huff.savings(codebook, ft) == 8 * len(text) - n


@pytest.mark.parametrize("text", CORPORA)
def test_round_trip_through_tree_and_codebook(text):
    root = huff.build_tree(huff.tabulate(text))
    codebook = huff.extract_codes(root)
    bits, _ = huff.encode(codebook, text)
    assert "".join(huff.decode_with_tree(root, bits)) == text
    assert "".join(huff.decode(codebook, bits)) == text


def test_round_trip_random_bytes():
    rng = random.Random(42)
    data = bytes(rng.getrandbits(8) for _ in range(4096))
    coder = huff.HuffmanCoder.from_symbols(data)
    bits, n = coder.encode(data)
    packed, pad = huff.pack_bits(bits)
    assert len(packed) * 8 - pad == n
    assert bytes(huff.decode(coder.codebook, huff.unpack_bits(packed, pad))) == data
    assert bytes(coder.decode(bits)) == data


def test_internal_weights_and_leaf_count():
    ft = classic_table()
    root = huff.build_tree(ft)
    huff.check_tree(root, ft)
    assert root.weight == sum(ft.values())
    assert isinstance(root.left, huff.Leaf) and root.right.weight == 55


def test_deterministic_across_runs():
    text = "the quick brown fox jumps over the lazy dog" * 3
    first = huff.build_codebook(huff.tabulate(text))
    second = huff.build_codebook(huff.tabulate(text))
    assert first == second
    assert list(first.items()) == list(second.items())


def test_check_prefix_free_rejects_bad_codebooks():
    with pytest.raises(InvariantViolation):
        huff.check_prefix_free({"a": "0", "b": "01"})
    with pytest.raises(InvariantViolation):
        huff.check_prefix_free({"a": ""})
    huff.check_prefix_free({"a": "0", "b": "10", "c": "11"})


def test_check_tree_rejects_wrong_weights():
    bad = huff.Internal(5, huff.Leaf("a", 1), huff.Leaf("b", 1))
    with pytest.raises(InvariantViolation):
        huff.check_tree(bad, {"a": 1, "b": 1})


def test_decode_rejects_incomplete_or_unknown_bits():
    codebook = {"a": "0", "b": "10"}
    with pytest.raises(DecodeError):
        huff.decode(codebook, "01")
    with pytest.raises(DecodeError):
        huff.decode(codebook, "11")
    assert huff.decode(codebook, "0100") == ["a", "b", "a"]


def test_pack_bits_msb_first_with_padding():
    assert huff.pack_bits("") == (b"", 0)
    assert huff.pack_bits("101") == (b"\xa0", 5)
    assert huff.pack_bits("11111111") == (b"\xff", 0)
    assert huff.pack_bits("000000011") == (b"\x01\x80", 7)
    assert huff.pad_bits_for(9) == 7
    assert huff.unpack_bits(b"\x01\x80", 7) == "000000011"


def test_unpack_rejects_bad_pad():
    with pytest.raises(DecodeError):
        huff.unpack_bits(b"\x00", 8)
    with pytest.raises(DecodeError):
        huff.unpack_bits(b"", 3)


def test_negative_savings_are_reported():
    text = "".join(chr(0x4E00 + i) for i in range(512))
    coder = huff.HuffmanCoder.from_symbols(text)
    assert set(coder.code_lengths().values()) == {9}
    assert coder.savings() == 8 * 512 - 9 * 512


def test_coders_are_independent():
    one = huff.HuffmanCoder.from_symbols("aaab")
    two = huff.HuffmanCoder.from_frequencies(classic_table())
    assert one.codebook == {"a": "1", "b": "0"}
    assert len(two.codebook) == 6
    assert one.input_symbols == 4
    assert one.decode("10110", bit_length=4) == ["a", "b", "a", "a"]


def test_shannon_entropy():
    assert huff.shannon_entropy({"a": 1, "b": 1}) == pytest.approx(1.0)
    coder = huff.HuffmanCoder.from_frequencies(classic_table())
    assert coder.mean_code_length() >= huff.shannon_entropy(coder.frequencies)


def test_coder_entries_carry_count_code_and_length():
    coder = huff.HuffmanCoder.from_frequencies(classic_table())
    entries = coder.entries()
    assert [(e.symbol, e.frequency) for e in entries] == [("f", 45), ("e", 16), ("d", 13), ("c", 12), ("b", 9), ("a", 5)]
    assert all(e.code == coder.codebook[e.symbol] for e in entries)
    assert {e.symbol: e.code_length for e in entries} == coder.code_lengths()
