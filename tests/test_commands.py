"""
test_commands.py - Testes para a lógica dos comandos do servidor

Cobertura:
    - compute_lookup_picks: local primeiro, depois pack (limitado)
    - rebuild_summary: warning sem arquivos, sucesso com contagem
    - active_target_info
"""

from __future__ import annotations

from avr_asm_lsp.commands import (
    MAX_LOOKUP_PICKS,
    active_target_info,
    compute_lookup_picks,
    no_matches_message,
    rebuild_summary,
)
from avr_asm_lsp.dfp_index import DfpEntry, DfpIndex
from avr_asm_lsp.local_symbols import parse_local_symbols

URI = "file:///projeto/main.S"


def _make_index(count: int = 1, scanned=("/pack/include/avr/iom328p.h",)) -> DfpIndex:
    entries = [
        DfpEntry(
            file="/pack/include/avr/iom328p.h",
            line=20 + i,
            text=f"#define PORTB   _SFR_IO8({i})",
            kind="macro",
        )
        for i in range(count)
    ]
    return DfpIndex(
        pack_root="/pack",
        device="ATmega328P",
        dev_lib_name="m328p",
        symbols={"PORTB": entries} if entries else {},
        symbol_list=["PORTB"] if entries else [],
        scanned_files=list(scanned),
    )


class TestLookupPicks:
    def test_local_then_pack(self):
        local_symbols = parse_local_symbols("\n.equ PORTB = 5\n")
        picks = compute_lookup_picks("PORTB", URI, local_symbols, _make_index(2))

        assert [p.label for p in picks] == [
            "Local equ: PORTB",
            "PORTB (macro)",
            "PORTB (macro)",
        ]
        assert picks[0].description == "line 2"
        assert picks[0].location.uri == URI
        assert picks[0].location.range.start.line == 1
        assert picks[1].description == "include/avr/iom328p.h:20"
        assert picks[1].detail == "#define PORTB _SFR_IO8(0)"
        assert picks[1].location.range.start.line == 19

    def test_local_needs_uri(self):
        local_symbols = parse_local_symbols(".equ PORTB = 5\n")
        picks = compute_lookup_picks("PORTB", None, local_symbols, None)
        assert picks == []

    def test_pack_picks_capped(self):
        picks = compute_lookup_picks("PORTB", None, None, _make_index(MAX_LOOKUP_PICKS + 10))
        assert len(picks) == MAX_LOOKUP_PICKS

    def test_to_dict(self):
        pick = compute_lookup_picks("PORTB", None, None, _make_index(1))[0]
        data = pick.to_dict()
        assert data["uri"] == "file:///pack/include/avr/iom328p.h"
        assert data["line"] == 19
        assert data["character"] == 0
        assert pick.title == "PORTB (macro)  include/avr/iom328p.h:20"

    def test_no_matches_message(self):
        assert no_matches_message("FOO", _make_index()) == (
            'No symbol matches found for "FOO" in ATmega328P.'
        )
        assert "current AVR target" in no_matches_message("FOO", None)


class TestRebuildSummary:
    def test_warning_without_files(self):
        summary = rebuild_summary(_make_index(0, scanned=()))
        assert summary["success"] is False
        assert "no DFP symbol files found for ATmega328P" in summary["warning"]
        assert summary["symbolCount"] == 0

    def test_success(self):
        summary = rebuild_summary(_make_index(1))
        assert summary["success"] is True
        assert summary["symbolCount"] == 1
        assert summary["message"] == "AVR ASM Navigator index rebuilt for ATmega328P (1 symbols)."


class TestActiveTarget:
    def test_info(self):
        info = active_target_info(_make_index(1))
        assert info["packRoot"] == "/pack"
        assert info["device"] == "ATmega328P"
        assert info["devLibName"] == "m328p"
        assert info["scannedFiles"] == ["/pack/include/avr/iom328p.h"]
        assert info["projectFile"] is None
        assert "builtAt" in info
