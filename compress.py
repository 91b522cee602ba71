"""
Huffman compressor driver

Encodes a file with a Huffman code built from its own symbol frequencies and
writes three artifacts:
  - the encoded payload ('0'/'1' text, or packed bytes with --format packed)
  - a report: "Total Savings: <bits>" then one "<symbol>: <frequency>: <code>" line per symbol
  - the codebook (JSON) that the decode subcommand needs to restore the input

How to run:
  python compress.py encode book.txt book.huf
  python compress.py encode photo.bin photo.huf --unit byte --format packed
  python compress.py decode book.huf book.huf.codebook.json book.out.txt

Exit codes: 0 success, 1 bad arguments, 2 I/O failure, 3 empty input, 4 internal error
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from loguru import logger

import huffman as huff
from codec_errors import DecodeError, EmptyInputError, HuffmanError
from report import FORMATS, UNITS, CodebookFile, dump_codebook, load_codebook, write_report

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_IO = 2
EXIT_EMPTY_INPUT = 3
EXIT_INTERNAL = 4

DEFAULT_REPORT_NAME = "totalSavingsAndFinalTripleChart.txt"


class ArgumentParser(argparse.ArgumentParser):
    def error(self, message):
        # argparse exits with 2 on usage errors; 2 is reserved for I/O failures here
        self.print_usage(sys.stderr)
        self.exit(EXIT_USAGE, f"{self.prog}: error: {message}\n")


@dataclass
class CompressConfig:
    command: str
    input_path: Path
    output_path: Path
    codebook_path: Path
    report_path: Optional[Path] = None
    unit: str = "char"
    encoding: str = "utf-8"
    payload_format: str = "ascii"
    verbose: bool = False

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "CompressConfig":
        output_path = Path(args.output)
        if args.command == "encode":
            codebook_path = Path(args.codebook) if args.codebook else Path(f"{args.output}.codebook.json")
            report_path = Path(args.report) if args.report else output_path.parent / DEFAULT_REPORT_NAME
            return cls(
                command="encode",
                input_path=Path(args.input),
                output_path=output_path,
                codebook_path=codebook_path,
                report_path=report_path,
                unit=args.unit,
                encoding=args.encoding,
                payload_format=args.format,
                verbose=args.verbose,
            )
        return cls(
            command="decode",
            input_path=Path(args.input),
            output_path=output_path,
            codebook_path=Path(args.codebook),
            verbose=args.verbose,
        )


def build_parser() -> ArgumentParser:
    ap = ArgumentParser(prog="huffman-compress", description="Huffman-code a file and report the space savings")
    sub = ap.add_subparsers(dest="command", required=True)

    enc = sub.add_parser("encode", help="Encode INPUT into OUTPUT")
    enc.add_argument("input", help="File to compress")
    enc.add_argument("output", help="Encoded payload destination")
    enc.add_argument("--report", default=None, help=f"Report path (default: {DEFAULT_REPORT_NAME} beside OUTPUT)")
    enc.add_argument("--codebook", default=None, help="Codebook path (default: OUTPUT.codebook.json)")
    enc.add_argument("--unit", choices=UNITS, default="char", help="Symbol unit: decoded characters or raw bytes")
    enc.add_argument("--encoding", default="utf-8", help="Text encoding used when --unit char")
    enc.add_argument("--format", choices=FORMATS, default="ascii", help="Payload as '0'/'1' text or packed bytes")
    enc.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    dec = sub.add_parser("decode", help="Restore a file from its payload and codebook")
    dec.add_argument("input", help="Encoded payload")
    dec.add_argument("codebook", help="Codebook written by encode")
    dec.add_argument("output", help="Restored file destination")
    dec.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return ap


def configure_logging(verbose: bool) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "INFO")


def to_symbols(data: bytes, unit: str, encoding: str) -> List[huff.Symbol]:
    if unit == "byte":
        return list(data)
    # bytes.decode does no newline translation, so every line terminator survives
    return list(data.decode(encoding))


def from_symbols(symbols: List[huff.Symbol], unit: str, encoding: str) -> bytes:
    if unit == "byte":
        return bytes(symbols)
    return "".join(symbols).encode(encoding)


def run_encode(cfg: CompressConfig) -> None:
    data = cfg.input_path.read_bytes()
    symbols = to_symbols(data, cfg.unit, cfg.encoding)
    logger.info(f"[compress] read {len(data)} bytes ({len(symbols)} {cfg.unit} symbols) from {cfg.input_path}")

    coder = huff.HuffmanCoder.from_symbols(symbols)
    bits, bit_length = coder.encode(symbols)
    pad_bits = huff.pad_bits_for(bit_length)

    if cfg.payload_format == "packed":
        packed, pad_bits = huff.pack_bits(bits)
        cfg.output_path.write_bytes(packed)
    else:
        cfg.output_path.write_text(bits, encoding="ascii")

    total_savings = coder.savings()
    cfg.codebook_path.write_text(
        dump_codebook(CodebookFile(coder.codebook, cfg.unit, cfg.encoding, cfg.payload_format, bit_length, pad_bits)),
        encoding="utf-8",
    )
    write_report(cfg.report_path, coder.entries(), total_savings)

    logger.info(f"[compress] {len(coder.codebook)} distinct symbols, {bit_length} bits, pad {pad_bits}")
    logger.info(f"[compress] total savings {total_savings} bits; report at {cfg.report_path}")


def run_decode(cfg: CompressConfig) -> None:
    cb = load_codebook(cfg.codebook_path.read_text(encoding="utf-8"))
    if cb.payload_format == "packed":
        bits = huff.unpack_bits(cfg.input_path.read_bytes(), cb.pad_bits)
    else:
        bits = cfg.input_path.read_text(encoding="ascii")
        if bits.strip("01"):
            raise DecodeError("ascii payload contains characters other than '0' and '1'")
    if len(bits) != cb.bit_length:
        raise DecodeError(f"payload holds {len(bits)} bits, codebook expects {cb.bit_length}")

    symbols = huff.decode(cb.codebook, bits)
    cfg.output_path.write_bytes(from_symbols(symbols, cb.unit, cb.encoding))
    logger.info(f"[compress] restored {len(symbols)} symbols to {cfg.output_path}")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    cfg = CompressConfig.from_args(args)
    configure_logging(cfg.verbose)

    try:
        if cfg.command == "encode":
            run_encode(cfg)
        else:
            run_decode(cfg)
    except EmptyInputError as e:
        logger.error(f"[compress] {cfg.input_path}: {e}")
        return EXIT_EMPTY_INPUT
    except (OSError, UnicodeError, DecodeError) as e:
        logger.error(f"[compress] {e}")
        return EXIT_IO
    except HuffmanError as e:
        logger.exception(f"[compress] internal error: {e}")
        return EXIT_INTERNAL
    except LookupError as e:
        # unknown --encoding name
        logger.error(f"[compress] {e}")
        return EXIT_USAGE
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
