"""
test_hover.py - Testes para textDocument/hover

Propósito:
    Validar o Markdown montado a partir da definição local e das
    ocorrências do pack DFP.
"""

from __future__ import annotations

from lsprotocol.types import MarkupKind, Position

from avr_asm_lsp.dfp_index import DfpEntry, DfpIndex
from avr_asm_lsp.hover import compute_hover
from avr_asm_lsp.local_symbols import parse_local_symbols


def _make_index(symbol: str, count: int) -> DfpIndex:
    entries = [
        DfpEntry(
            file="/pack/include/avr/iom328p.h",
            line=10 + i,
            text=f"#define   {symbol}   _SFR_IO8(0x0{i})",
            kind="macro",
        )
        for i in range(count)
    ]
    return DfpIndex(
        pack_root="/pack", device="ATmega328P", symbols={symbol: entries}, symbol_list=[symbol]
    )


def _hover(source: str, line: int, character: int, index=None, max_results: int = 6):
    return compute_hover(
        source,
        Position(line=line, character=character),
        parse_local_symbols(source),
        index,
        max_results,
    )


class TestHover:
    def test_local_definition(self):
        source = ".equ LED_PIN = 5\n    sbi PORTB, LED_PIN\n"
        result = _hover(source, 1, 17)

        assert result is not None
        assert result.contents.kind == MarkupKind.Markdown
        md = result.contents.value
        assert md.startswith("**LED\\_PIN**")
        assert "Local equ in this file at line 1." in md
        assert "```asm\n.equ LED_PIN = 5\n```" in md

    def test_pack_matches(self):
        source = "    out PORTB, r16\n"
        result = _hover(source, 0, 9, index=_make_index("PORTB", 2))

        md = result.contents.value
        assert "ATmega328P pack matches:" in md
        assert "- `include/avr/iom328p.h:10` (macro)" in md
        assert "```c\n#define PORTB _SFR_IO8(0x00)\n```" in md
        assert "more match" not in md

    def test_pack_matches_truncated(self):
        result = _hover("    out PORTB, r16\n", 0, 9, index=_make_index("PORTB", 9), max_results=6)

        md = result.contents.value
        assert md.count("```c") == 6
        assert "... 3 more match(es)." in md

    def test_local_and_pack(self):
        source = "PORTB:\n    rjmp PORTB\n"
        md = _hover(source, 1, 10, index=_make_index("PORTB", 1)).contents.value
        assert md.index("Local label") < md.index("pack matches")

    def test_unknown_symbol(self):
        assert _hover("    nop\n", 0, 5, index=_make_index("PORTB", 1)) is None

    def test_whitespace(self):
        assert _hover("    nop\n", 0, 1) is None

    def test_line_out_of_range(self):
        assert _hover("nop", 5, 0) is None
