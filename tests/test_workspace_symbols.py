"""
test_workspace_symbols.py - Testes para workspace/symbol

Cobertura:
    - Busca por substring sem diferenciar maiúsculas
    - Arquivos em disco, diretórios ignorados e buffers abertos
    - Símbolos do pack (opcionais) e limite de resultados
"""

from __future__ import annotations

from lsprotocol.types import SymbolKind

from avr_asm_lsp.config import Settings
from avr_asm_lsp.converters import file_uri
from avr_asm_lsp.dfp_index import DfpEntry, DfpIndex
from avr_asm_lsp.workspace_symbols import compute_workspace_symbols

from conftest import write


def _make_index(*symbols: str) -> DfpIndex:
    entries = {
        symbol: [
            DfpEntry(
                file="/pack/include/avr/io.h", line=5, text=f"#define {symbol} 1", kind="macro"
            )
        ]
        for symbol in symbols
    }
    return DfpIndex(
        pack_root="/pack", device="ATmega328P", symbols=entries, symbol_list=list(symbols)
    )


class TestWorkspaceSymbols:
    def test_blank_query(self, tmp_path):
        write(tmp_path / "main.S", "main:\n")
        assert compute_workspace_symbols("   ", [tmp_path], {}, None, Settings()) == []

    def test_substring_case_insensitive(self, tmp_path):
        main = write(tmp_path / "main.S", "main:\nmain_loop:\n.equ TIMER_MAIN = 3\n")
        write(tmp_path / "lib" / "delay.inc", "delay_ms:\n")

        results = compute_workspace_symbols("MAIN", [tmp_path], {}, None, Settings())

        assert [r.name for r in results] == ["main", "main_loop", "TIMER_MAIN"]
        assert results[0].location.uri == file_uri(main)
        assert results[0].kind == SymbolKind.Function
        assert results[0].container_name == "label local symbol"
        assert results[2].kind == SymbolKind.Constant

    def test_excluded_directories(self, tmp_path):
        write(tmp_path / "_build" / "gen.S", "main_gen:\n")
        write(tmp_path / "node_modules" / "x.asm", "main_x:\n")
        write(tmp_path / "src" / "app.asm", "main_app:\n")

        results = compute_workspace_symbols("main", [tmp_path], {}, None, Settings())
        assert [r.name for r in results] == ["main_app"]

    def test_open_buffer_wins_over_disk(self, tmp_path):
        main = write(tmp_path / "main.S", "old_name:\n")
        open_documents = {file_uri(main): "new_name:\n"}

        results = compute_workspace_symbols("name", [tmp_path], open_documents, None, Settings())
        assert [r.name for r in results] == ["new_name"]

    def test_pack_symbols(self, tmp_path):
        write(tmp_path / "main.S", "portb_init:\n")
        index = _make_index("PORTB", "PORTC")

        results = compute_workspace_symbols("portb", [tmp_path], {}, index, Settings())

        assert [r.name for r in results] == ["portb_init", "PORTB"]
        pack = results[1]
        assert pack.kind == SymbolKind.Constant
        assert pack.container_name == "macro (ATmega328P pack)"
        assert pack.location.uri == "file:///pack/include/avr/io.h"
        assert pack.location.range.start.line == 4
        assert pack.location.range.start.character == 8

    def test_pack_symbols_disabled(self, tmp_path):
        index = _make_index("PORTB")
        settings = Settings(include_dfp_in_workspace_symbols=False)
        assert compute_workspace_symbols("PORTB", [tmp_path], {}, index, settings) == []

    def test_result_cap(self, tmp_path):
        write(tmp_path / "many.S", "".join(f"label_{i:03d}:\n" for i in range(50)))
        settings = Settings(max_workspace_symbols=20)

        results = compute_workspace_symbols("label", [tmp_path], {}, None, settings)
        assert len(results) == 20

    def test_duplicate_uris_not_repeated(self, tmp_path):
        """Documento aberto que também está em disco aparece uma vez."""
        main = write(tmp_path / "main.S", "main:\n")
        open_documents = {file_uri(main): "main:\n"}

        results = compute_workspace_symbols("main", [tmp_path], open_documents, None, Settings())
        assert len(results) == 1
