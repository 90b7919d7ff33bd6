"""
test_definition.py - Testes para textDocument/definition

Cobertura:
    - Definição local (linha do label/.equ, coluna 0)
    - Ocorrências do pack (linha 1-based → 0-based)
    - Local + pack em lista, local primeiro
"""

from __future__ import annotations

from lsprotocol.types import Location, Position

from avr_asm_lsp.definition import compute_definition
from avr_asm_lsp.dfp_index import MAX_ENTRIES_PER_SYMBOL, DfpEntry, DfpIndex
from avr_asm_lsp.local_symbols import parse_local_symbols

URI = "file:///projeto/main.S"


def _make_index(symbol: str, count: int) -> DfpIndex:
    entries = [
        DfpEntry(
            file="/pack/avrasm/inc/m328Pdef.inc",
            line=100 + i,
            text=f".equ {symbol} = {i}",
            kind="equ",
        )
        for i in range(count)
    ]
    return DfpIndex(pack_root="/pack", symbols={symbol: entries}, symbol_list=[symbol])


def _definition(source: str, line: int, character: int, index=None):
    return compute_definition(
        source, Position(line=line, character=character), URI, parse_local_symbols(source), index
    )


class TestDefinition:
    def test_local_label(self):
        source = "main:\n    rjmp loop\n  loop:\n    rjmp main\n"
        result = _definition(source, 1, 10)

        assert isinstance(result, Location)
        assert result.uri == URI
        assert result.range.start.line == 2
        assert result.range.start.character == 0

    def test_pack_symbol(self):
        result = _definition("    ldi r16, RAMEND\n", 0, 15, index=_make_index("RAMEND", 1))

        assert isinstance(result, Location)
        assert result.uri == "file:///pack/avrasm/inc/m328Pdef.inc"
        assert result.range.start.line == 99

    def test_local_then_pack(self):
        source = ".equ RAMEND = 0x08ff\n    ldi r16, RAMEND\n"
        result = _definition(source, 1, 15, index=_make_index("RAMEND", 2))

        assert isinstance(result, list)
        assert [loc.uri for loc in result] == [
            URI,
            "file:///pack/avrasm/inc/m328Pdef.inc",
            "file:///pack/avrasm/inc/m328Pdef.inc",
        ]
        assert result[0].range.start.line == 0

    def test_pack_hits_are_capped(self):
        index = _make_index("RAMEND", MAX_ENTRIES_PER_SYMBOL + 5)
        result = _definition("    ldi r16, RAMEND\n", 0, 15, index=index)
        assert len(result) == MAX_ENTRIES_PER_SYMBOL

    def test_unknown_symbol(self):
        assert _definition("    rjmp nowhere\n", 0, 10) is None

    def test_no_word(self):
        assert _definition("    \n", 0, 2) is None
