import json

import pytest

import huffman as huff
from codec_errors import DecodeError
from report import CodebookEntry, CodebookFile, codebook_entries, dump_codebook, format_symbol, load_codebook, render_report


def test_single_symbol_report():
    coder = huff.HuffmanCoder.from_symbols("aaaa")
    text = render_report(coder.entries(), coder.savings())
    assert text == "Total Savings: 28\na: 4: 0\n"


def test_entries_ordered_by_frequency_then_code():
    ft = {"a": 5, "b": 9, "c": 12, "d": 13, "e": 16, "f": 45}
    entries = codebook_entries(huff.build_codebook(ft), ft)
    assert [e.symbol for e in entries] == ["f", "e", "d", "c", "b", "a"]
    assert [e.code_length for e in entries] == [1, 3, 3, 3, 4, 4]

    ties = codebook_entries({"x": "11", "y": "0", "z": "10"}, {"x": 1, "y": 1, "z": 1})
    assert [e.symbol for e in ties] == ["y", "z", "x"]


def test_report_lines_and_negative_savings():
    entries = [CodebookEntry("\n", 3, "0"), CodebookEntry(" ", 2, "10"), CodebookEntry(0x41, 1, "11")]
    assert render_report(entries, -3).splitlines() == [
        "Total Savings: -3",
        "\\n: 3: 0",
        " : 2: 10",
        "0x41: 1: 11",
    ]


def test_format_symbol():
    assert format_symbol("a") == "a"
    assert format_symbol("é") == "é"
    assert format_symbol("\t") == "\\t"
    assert format_symbol("\x00") == "\\x00"
    assert format_symbol(10) == "0x0a"


def test_codebook_file_round_trip_chars():
    cb = CodebookFile({"\n": "0", "日": "10", '"': "11"}, "char", "utf-8", "packed", 13, 3)
    loaded = load_codebook(dump_codebook(cb))
    assert loaded == cb


def test_codebook_file_round_trip_bytes():
    cb = CodebookFile({0: "0", 255: "1"}, "byte", "utf-8", "ascii", 7, 0)
    loaded = load_codebook(dump_codebook(cb))
    assert loaded.codebook == {0: "0", 255: "1"}
    assert loaded.unit == "byte"


@pytest.mark.parametrize("doc", [
    "not json",
    json.dumps({"unit": "word", "format": "ascii", "bit_length": 1, "codes": []}),
    json.dumps({"unit": "char", "format": "ascii", "bit_length": 1, "codes": [["a", "2"]]}),
    json.dumps({"unit": "char", "format": "ascii", "bit_length": 1, "codes": [["ab", "0"]]}),
    json.dumps({"unit": "byte", "format": "ascii", "bit_length": 1, "codes": [[300, "0"]]}),
    json.dumps({"unit": "char", "format": "ascii", "bit_length": 1, "codes": [["a", "0"], ["a", "1"]]}),
    json.dumps({"unit": "char", "format": "ascii", "codes": []}),
    json.dumps({"unit": "char", "format": "ascii", "bit_length": 2, "codes": [["a", "0"], ["b", "01"], ["c", "1"]]}),
    json.dumps({"unit": "char", "format": "ascii", "bit_length": 1, "codes": [["a", "0"], ["b", "0"]]}),
    json.dumps({"unit": "char", "encoding": "no-such-codec", "format": "ascii", "bit_length": 1, "codes": [["a", "0"]]}),
])
def test_load_codebook_rejects_malformed(doc):
    with pytest.raises(DecodeError):
        load_codebook(doc)
