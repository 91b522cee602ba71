from __future__ import annotations

import codecs
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Hashable, List

from codec_errors import DecodeError

UNITS = ("char", "byte")
FORMATS = ("ascii", "packed")


@dataclass(frozen=True)
class CodebookEntry: # one report row
    symbol: Hashable
    frequency: int
    code: str

    @property
    def code_length(self) -> int:
        return len(self.code)


@dataclass
class CodebookFile: # everything a decoder needs besides the payload itself
    codebook: Dict[Hashable, str]
    unit: str = "char"
    encoding: str = "utf-8"
    payload_format: str = "ascii"
    bit_length: int = 0
    pad_bits: int = 0


def codebook_entries(codebook: Dict[Hashable, str], frequency_table: Dict[Hashable, int]) -> List[CodebookEntry]:
    """Rows ordered by frequency (highest first), then by code. Codes are unique so the order is total."""
    rows = [CodebookEntry(s, frequency_table[s], code) for s, code in codebook.items()]
    rows.sort(key=lambda r: (-r.frequency, r.code))
    return rows


def format_symbol(symbol) -> str:
    if isinstance(symbol, int):
        return f"0x{symbol:02x}"
    if symbol.isprintable():
        return symbol
    return repr(symbol)[1:-1] # '\n' -> \n, '\x00' -> \x00


def render_report(entries: List[CodebookEntry], total_savings: int) -> str:
    lines = [f"Total Savings: {total_savings}\n"]
    for e in entries:
        lines.append(f"{format_symbol(e.symbol)}: {e.frequency}: {e.code}\n")
    return "".join(lines)


def write_report(path: Path, entries: List[CodebookEntry], total_savings: int) -> None:
    with path.open("w", encoding="utf-8", newline="") as f:
        f.write(render_report(entries, total_savings))


def dump_codebook(cb: CodebookFile) -> str:
    doc = {
        "unit": cb.unit,
        "encoding": cb.encoding,
        "format": cb.payload_format,
        "bit_length": cb.bit_length,
        "pad_bits": cb.pad_bits,
        "codes": [[symbol, code] for symbol, code in cb.codebook.items()],
    }
    return json.dumps(doc, ensure_ascii=False, indent=1)


def load_codebook(text: str) -> CodebookFile:
    try:
        doc = json.loads(text)
        unit = doc["unit"]
        payload_format = doc["format"]
        pairs = doc["codes"]
        bit_length = int(doc["bit_length"])
        pad_bits = int(doc.get("pad_bits", 0))
        encoding = doc.get("encoding", "utf-8")
    except (ValueError, KeyError, TypeError) as e:
        raise DecodeError(f"malformed codebook: {e}") from e

    if unit not in UNITS:
        raise DecodeError(f"unknown symbol unit {unit!r}")
    if payload_format not in FORMATS:
        raise DecodeError(f"unknown payload format {payload_format!r}")
    if bit_length < 0:
        raise DecodeError(f"negative bit length {bit_length}")
    try:
        codecs.lookup(encoding)
    except (LookupError, TypeError) as e:
        raise DecodeError(f"unknown text encoding {encoding!r}") from e

    symbol_type = str if unit == "char" else int
    codebook: Dict[Hashable, str] = {}
    for pair in pairs:
        if not isinstance(pair, list) or len(pair) != 2:
            raise DecodeError(f"malformed codebook entry {pair!r}")
        symbol, code = pair
        if not isinstance(symbol, symbol_type) or isinstance(symbol, bool):
            raise DecodeError(f"symbol {symbol!r} does not match unit {unit!r}")
        if unit == "char" and len(symbol) != 1:
            raise DecodeError(f"character symbol {symbol!r} is not a single codepoint")
        if unit == "byte" and not 0 <= symbol <= 255:
            raise DecodeError(f"byte symbol {symbol} out of range")
        if not isinstance(code, str) or not code or code.strip("01"):
            raise DecodeError(f"malformed code {code!r} for symbol {symbol!r}")
        if symbol in codebook:
            raise DecodeError(f"symbol {symbol!r} listed twice")
        codebook[symbol] = code

    # a code that prefixes another sorts directly before some code it prefixes
    codes = sorted(codebook.values())
    for shorter, longer in zip(codes, codes[1:]):
        if longer.startswith(shorter):
            raise DecodeError(f"code {shorter!r} is a prefix of {longer!r}")

    return CodebookFile(codebook, unit, encoding, payload_format, bit_length, pad_bits)
