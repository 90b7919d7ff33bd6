"""
test_references.py - Testes para textDocument/references

Cobertura:
    - Casamento de identificador inteiro (sem prefixos/sufixos)
    - Exclusão da definição sem includeDeclaration
    - Ocorrências do pack com includeDeclaration
    - Documento do request fora das pastas do workspace
    - Flag enableReferences e limite de resultados
"""

from __future__ import annotations

from avr_asm_lsp.config import Settings
from avr_asm_lsp.converters import file_uri
from avr_asm_lsp.dfp_index import DfpEntry, DfpIndex
from avr_asm_lsp.references import compute_references, find_symbol_matches

from conftest import write

SOURCE = """\
main:
    rjmp loop
loop:
    rjmp loop
    rjmp loop2
    rjmp .loop
"""


class TestFindSymbolMatches:
    def test_whole_identifier_only(self):
        matches = find_symbol_matches(SOURCE, "loop")
        assert [(m.line, m.column) for m in matches] == [(1, 9), (2, 0), (3, 9)]

    def test_multiple_per_line(self):
        matches = find_symbol_matches("    cp r16, r16\n", "r16")
        assert [m.column for m in matches] == [7, 12]

    def test_special_characters_escaped(self):
        matches = find_symbol_matches("    ldi r16, $val\n", "$val")
        assert [m.column for m in matches] == [13]

    def test_empty(self):
        assert find_symbol_matches("", "loop") == []
        assert find_symbol_matches(SOURCE, "") == []


class TestComputeReferences:
    def test_excludes_definition(self, tmp_path):
        main = write(tmp_path / "main.S", SOURCE)
        uri = file_uri(main)

        locations = compute_references("loop", uri, [tmp_path], {}, None, Settings())

        found = [(loc.uri, loc.range.start.line, loc.range.start.character) for loc in locations]
        assert found == [(uri, 1, 9), (uri, 3, 9)]
        assert locations[0].range.end.character == 13

    def test_include_declaration(self, tmp_path):
        main = write(tmp_path / "main.S", SOURCE)
        locations = compute_references(
            "loop", file_uri(main), [tmp_path], {}, None, Settings(), include_declaration=True
        )
        assert [loc.range.start.line for loc in locations] == [1, 2, 3]

    def test_across_files(self, tmp_path):
        main = write(tmp_path / "main.S", "    rcall delay\n")
        write(tmp_path / "lib" / "delay.inc", "delay:\n    ret\n")
        write(tmp_path / "lib" / "notes.txt", "delay\n")

        locations = compute_references("delay", file_uri(main), [tmp_path], {}, None, Settings())
        assert [loc.uri for loc in locations] == [file_uri(main)]

        with_decl = compute_references(
            "delay", file_uri(main), [tmp_path], {}, None, Settings(), include_declaration=True
        )
        assert len(with_decl) == 2

    def test_pack_hits_with_declaration(self, tmp_path):
        main = write(tmp_path / "main.S", "    out PORTB, r16\n")
        index = DfpIndex(
            pack_root="/pack",
            symbols={
                "PORTB": [
                    DfpEntry(file="/pack/io.h", line=3, text="#define PORTB 5", kind="macro")
                ]
            },
            symbol_list=["PORTB"],
        )

        without = compute_references("PORTB", file_uri(main), [tmp_path], {}, index, Settings())
        assert len(without) == 1

        locations = compute_references(
            "PORTB", file_uri(main), [tmp_path], {}, index, Settings(), include_declaration=True
        )
        assert [loc.uri for loc in locations] == [file_uri(main), "file:///pack/io.h"]
        assert locations[1].range.start.line == 2
        assert locations[1].range.start.character == 8

    def test_request_document_outside_workspace(self, tmp_path):
        """Documento do request é incluído mesmo fora das pastas."""
        outside = tmp_path / "outside" / "solo.asm"
        uri = file_uri(outside)
        open_documents = {uri: "    rjmp here\nhere:\n"}

        locations = compute_references(
            "here", uri, [tmp_path / "ws"], open_documents, None, Settings()
        )
        assert [(loc.uri, loc.range.start.line) for loc in locations] == [(uri, 0)]

    def test_disabled(self, tmp_path):
        main = write(tmp_path / "main.S", SOURCE)
        settings = Settings(enable_references=False)
        assert compute_references("loop", file_uri(main), [tmp_path], {}, None, settings) == []

    def test_no_symbol(self, tmp_path):
        assert compute_references(None, "file:///x.S", [tmp_path], {}, None, Settings()) == []

    def test_result_cap(self, tmp_path):
        main = write(tmp_path / "main.S", "    nop ; tick\n" * 40)
        settings = Settings(max_reference_results=20)

        locations = compute_references("tick", file_uri(main), [tmp_path], {}, None, settings)
        assert len(locations) == 20

    def test_short_name_inside_directive(self, tmp_path):
        """Definição ".equ e" não vaza como referência sem includeDeclaration."""
        main = write(tmp_path / "main.S", ".equ e = 1\n    ldi r16, e\n")
        uri = file_uri(main)

        locations = compute_references("e", uri, [tmp_path], {}, None, Settings())
        assert [(loc.range.start.line, loc.range.start.character) for loc in locations] == [(1, 13)]

        with_decl = compute_references(
            "e", uri, [tmp_path], {}, None, Settings(), include_declaration=True
        )
        assert [(loc.range.start.line, loc.range.start.character) for loc in with_decl] == [
            (0, 5),
            (1, 13),
        ]
