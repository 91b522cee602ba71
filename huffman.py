from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Hashable, Iterable, List, Optional, Tuple, Union

from loguru import logger

from codec_errors import DecodeError, EmptyInputError, InvariantViolation, MissingCodeError
from minheap import MinHeap
from report import CodebookEntry, codebook_entries

Symbol = Hashable # a character (codepoint) or a byte value
FrequencyTable = Dict[Symbol, int]
Codebook = Dict[Symbol, str] # symbol -> code as a string of '0'/'1'

_NOT_FOUND = object()


@dataclass(frozen=True, eq=False)
class Leaf: # Node for Huffman tree holding one symbol
    symbol: Symbol
    weight: int


@dataclass(frozen=True, eq=False)
class Internal: # merged node; weight is the sum of its subtree leaf weights
    weight: int
    left: "Node"
    right: "Node"

    @classmethod
    def merge(cls, left: "Node", right: "Node") -> "Internal":
        return cls(left.weight + right.weight, left, right)


Node = Union[Leaf, Internal]


def tabulate(symbols: Iterable[Symbol]) -> FrequencyTable: # symbols in first-appearance order
    ft: FrequencyTable = {}
    for s in symbols:
        ft[s] = ft.get(s, 0) + 1
    return ft


def build_tree(frequency_table: FrequencyTable) -> Node: # frequency_table: dict of symbol -> count
    """
    Repeatedly extract the two lightest nodes and insert their merge until a
    single node remains. The first node extracted becomes the left child.
    A table with a single symbol yields a lone Leaf as the root.
    """
    if not frequency_table:
        raise EmptyInputError("cannot build a Huffman tree from an empty frequency table")
    for symbol, count in frequency_table.items():
        if count < 1:
            raise ValueError(f"frequency of {symbol!r} must be positive, got {count}")

    queue = MinHeap.from_items((Leaf(s, c), c) for s, c in frequency_table.items())

    while len(queue) > 1:
        left = queue.extract_min()
        right = queue.extract_min()
        merged = Internal.merge(left, right)
        queue.insert(merged, merged.weight)

    return queue.drain() # root of the tree


def extract_codes(root: Node) -> Codebook:
    """Pre-order walk appending '0' on the way left and '1' on the way right."""
    if isinstance(root, Leaf):
        return {root.symbol: "0"} # single-symbol input: one-bit code

    codes: Codebook = {}

    def walk(node: Node, path: str) -> None:
        if isinstance(node, Leaf):
            if node.symbol in codes:
                raise InvariantViolation(f"symbol {node.symbol!r} appears in more than one leaf")
            codes[node.symbol] = path
            return
        walk(node.left, path + "0")
        walk(node.right, path + "1")

    walk(root, "")
    return codes


def check_tree(root: Node, frequency_table: FrequencyTable) -> None:
    leaves = 0
    stack: List[Node] = [root]
    while stack:
        node = stack.pop()
        if isinstance(node, Leaf):
            leaves += 1
            if frequency_table.get(node.symbol) != node.weight:
                raise InvariantViolation(f"leaf {node.symbol!r} has weight {node.weight}")
            continue
        if node.weight != node.left.weight + node.right.weight:
            raise InvariantViolation(f"internal node weight {node.weight} is not the sum of its children")
        stack.append(node.right)
        stack.append(node.left)
    if leaves != len(frequency_table):
        raise InvariantViolation(f"tree has {leaves} leaves for {len(frequency_table)} symbols")


def check_prefix_free(codebook: Codebook) -> None:
    # after sorting, a code that prefixes another sorts directly before some code it prefixes
    codes = sorted(codebook.values())
    for code in codes:
        if not code or code.strip("01"):
            raise InvariantViolation(f"malformed code {code!r}")
    for shorter, longer in zip(codes, codes[1:]):
        if longer.startswith(shorter):
            raise InvariantViolation(f"code {shorter!r} is a prefix of {longer!r}")


def build_tree_and_codebook(frequency_table: FrequencyTable) -> Tuple[Node, Codebook]:
    root = build_tree(frequency_table)
    check_tree(root, frequency_table)
    codebook = extract_codes(root)
    if codebook.keys() != frequency_table.keys():
        raise InvariantViolation("codebook does not cover exactly the tabulated symbols")
    check_prefix_free(codebook)
    logger.debug(f"[huffman] built codebook for {len(codebook)} symbols")
    return root, codebook


def build_codebook(frequency_table: FrequencyTable) -> Codebook:
    return build_tree_and_codebook(frequency_table)[1]


def encode(codebook: Codebook, symbols: Iterable[Symbol]) -> Tuple[str, int]: # returns (bitstring, bit length)
    parts = []
    for s in symbols:
        try:
            parts.append(codebook[s])
        except KeyError:
            raise MissingCodeError(s) from None
    bits = "".join(parts)
    return bits, len(bits)


def savings(codebook: Codebook, frequency_table: FrequencyTable, bits_per_symbol: int = 8) -> int:
    """Uncompressed size minus encoded size, both in bits. May be negative."""
    n_symbols = 0
    encoded_bits = 0
    for symbol, count in frequency_table.items():
        if symbol not in codebook:
            raise MissingCodeError(symbol)
        n_symbols += count
        encoded_bits += count * len(codebook[symbol])
    return bits_per_symbol * n_symbols - encoded_bits


def pad_bits_for(bit_length: int) -> int: # zero bits needed to fill the final byte
    return -bit_length % 8


def pack_bits(bits: str) -> Tuple[bytes, int]:
    """
    Packs a '0'/'1' string into bytes, MSB first
    Returns (packed_bytes, pad_bits) where pad_bits is number of 0 bits added at the end
    """
    out = bytearray()
    acc = 0
    acc_bits = 0

    for ch in bits:
        acc = (acc << 1) | (ch == "1")
        acc_bits += 1
        if acc_bits == 8:
            out.append(acc)
            acc = 0
            acc_bits = 0

    pad_bits = pad_bits_for(len(bits))
    if acc_bits:
        out.append((acc << pad_bits) & 0xFF)

    return bytes(out), pad_bits


def unpack_bits(packed: bytes, pad_bits: int) -> str:
    if not 0 <= pad_bits < 8 or (pad_bits and not packed):
        raise DecodeError(f"invalid pad length {pad_bits} for {len(packed)} packed bytes")
    bits = "".join(format(byte, "08b") for byte in packed)
    return bits[:len(bits) - pad_bits]


def decode(codebook: Codebook, bits: str) -> List[Symbol]:
    """Decodes a bitstring using only the codebook, no tree required."""
    table = {code: symbol for symbol, code in codebook.items()}
    if len(table) != len(codebook):
        raise DecodeError("codebook assigns the same code to two symbols")
    longest = max((len(code) for code in table), default=0)

    decoded = []
    current = ""
    for bit in bits:
        current += bit
        symbol = table.get(current, _NOT_FOUND)
        if symbol is not _NOT_FOUND:
            decoded.append(symbol)
            current = ""
        elif len(current) >= longest:
            raise DecodeError(f"bit sequence {current!r} matches no code")
    if current:
        raise DecodeError(f"{len(current)} trailing bits do not form a complete code")
    return decoded


def decode_with_tree(root: Node, bits: str) -> List[Symbol]: # walks the tree one bit per step
    if isinstance(root, Leaf):
        return [root.symbol for _ in bits]

    decoded = []
    node = root
    for bit in bits:
        node = node.right if bit == "1" else node.left
        if isinstance(node, Leaf): # reached a leaf
            decoded.append(node.symbol)
            node = root
    if node is not root:
        raise DecodeError("bitstring ends inside a code")
    return decoded


def shannon_entropy(frequency_table: FrequencyTable) -> float: # bits per symbol
    total = sum(frequency_table.values())
    if total == 0:
        return 0.0
    return -sum((c / total) * math.log2(c / total) for c in frequency_table.values())


class HuffmanCoder:
    """
    Owns one frequency table, its tree and the derived codebook.
    Independent instances share no state.
    """

    def __init__(self, frequency_table: FrequencyTable):
        self.frequencies: FrequencyTable = dict(frequency_table)
        self.tree, self.codebook = build_tree_and_codebook(self.frequencies)

    @classmethod
    def from_symbols(cls, symbols: Iterable[Symbol]) -> "HuffmanCoder":
        return cls(tabulate(symbols))

    @classmethod
    def from_frequencies(cls, frequency_table: FrequencyTable) -> "HuffmanCoder":
        return cls(frequency_table)

    @property
    def input_symbols(self) -> int:
        return sum(self.frequencies.values())

    def encode(self, symbols: Iterable[Symbol]) -> Tuple[str, int]:
        return encode(self.codebook, symbols)

    def decode(self, bits: str, bit_length: Optional[int] = None) -> List[Symbol]:
        if bit_length is not None:
            bits = bits[:bit_length]
        return decode_with_tree(self.tree, bits)

    def savings(self, bits_per_symbol: int = 8) -> int:
        return savings(self.codebook, self.frequencies, bits_per_symbol)

    def code_lengths(self) -> Dict[Symbol, int]:
        return {s: len(code) for s, code in self.codebook.items()}

    def mean_code_length(self) -> float:
        total = self.input_symbols
        return sum(self.frequencies[s] * len(c) for s, c in self.codebook.items()) / total


    def entries(self) -> List[CodebookEntry]: # report rows: symbol, frequency, code
        return codebook_entries(self.codebook, self.frequencies)
