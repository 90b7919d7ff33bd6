"""
test_local_symbols.py - Testes para o parser de símbolos locais

Cobertura:
    - Labels, .equ e .set (inclusive maiúsculas)
    - Último registro vence no mapa; entries preservam ordem
    - Detecção de ocorrência de definição (references)
"""

from __future__ import annotations

from avr_asm_lsp.local_symbols import (
    is_definition_occurrence,
    match_local_definition,
    parse_local_symbols,
)

SOURCE = """\
.equ LED_PIN = 5
.SET counter = 0
main:
    ldi r16, LED_PIN
  loop:   rjmp loop
.set counter = 1
"""


class TestParseLocalSymbols:
    def test_kinds_and_lines(self):
        result = parse_local_symbols(SOURCE, version=3)
        assert result.version == 3
        assert [(e.symbol, e.kind, e.line) for e in result.entries] == [
            ("LED_PIN", "equ", 0),
            ("counter", "set", 1),
            ("main", "label", 2),
            ("loop", "label", 4),
            ("counter", "set", 5),
        ]

    def test_last_definition_wins(self):
        result = parse_local_symbols(SOURCE)
        assert result.get("counter").line == 5

    def test_column_and_detail(self):
        result = parse_local_symbols(SOURCE)
        loop = result.get("loop")
        assert loop.column == 2
        assert loop.detail == "loop: rjmp loop"

    def test_same_text_same_result(self):
        """Parse é determinístico."""
        assert parse_local_symbols(SOURCE) == parse_local_symbols(SOURCE)

    def test_empty_text(self):
        result = parse_local_symbols("")
        assert result.entries == []
        assert result.get("main") is None

    def test_instruction_line_is_not_definition(self):
        assert match_local_definition("    ldi r16, 0x20") is None

    def test_label_before_equ(self):
        """Primeiro padrão que casa vence."""
        assert match_local_definition("start: .equ X = 1") == ("label", "start", 0)


class TestDefinitionOccurrence:
    def test_label_definition(self):
        assert is_definition_occurrence("loop:", "loop", 0) is True

    def test_label_use(self):
        assert is_definition_occurrence("    rjmp loop", "loop", 9) is False

    def test_equ_definition(self):
        assert is_definition_occurrence(".equ LED_PIN = 5", "LED_PIN", 5) is True

    def test_other_column(self):
        """Mesmo símbolo em outra coluna da linha de definição não é definição."""
        assert is_definition_occurrence("loop: rjmp loop", "loop", 11) is False

    def test_name_inside_directive(self):
        """Nome contido em ".equ"/".set" aponta para o identificador, não para a diretiva."""
        assert is_definition_occurrence(".equ e = 1", "e", 5) is True
        assert is_definition_occurrence(".equ e = 1", "e", 2) is False
        assert is_definition_occurrence(".set s = 0", "s", 5) is True


class TestDefinitionColumn:
    def test_column_after_directive(self):
        result = parse_local_symbols(".equ e = 1\n.set s = 0\n  .equ qu = 3\n")
        assert [(e.symbol, e.column) for e in result.entries] == [("e", 5), ("s", 5), ("qu", 7)]
