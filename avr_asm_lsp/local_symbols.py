"""
local_symbols.py - Símbolos locais (labels, .equ, .set) de um documento

Propósito:
    Varre o texto de um único documento com três regexes e produz o mapa
    símbolo → LocalSymbol e a lista ordenada de entradas.

Notas de implementação:
    - Ordem de prioridade por linha: label, .equ, .set (primeiro match vence)
    - symbols: último registro vence; entries: ordem do documento
    - O mesmo texto sempre produz o mesmo resultado (sem estado)
    - is_definition_occurrence reaplica as três regexes para references
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional

from avr_asm_lsp.converters import IDENTIFIER_PATTERN, split_lines, trim_line

LOCAL_LABEL_REGEX = re.compile(rf"^\s*({IDENTIFIER_PATTERN})\s*:")
LOCAL_EQU_REGEX = re.compile(rf"^\s*\.equ\s+({IDENTIFIER_PATTERN})\s*=\s*(.+)$", re.IGNORECASE)
LOCAL_SET_REGEX = re.compile(rf"^\s*\.set\s+({IDENTIFIER_PATTERN})\s*=\s*(.+)$", re.IGNORECASE)

_LOCAL_PATTERNS = (
    ("label", LOCAL_LABEL_REGEX),
    ("equ", LOCAL_EQU_REGEX),
    ("set", LOCAL_SET_REGEX),
)


@dataclass(frozen=True)
class LocalSymbol:
    """Definição local encontrada no documento (line/column 0-based)."""

    symbol: str
    kind: str
    line: int
    column: int
    detail: str


@dataclass
class LocalSymbols:
    """Resultado do parse de um documento."""

    symbols: dict[str, LocalSymbol] = field(default_factory=dict)
    entries: list[LocalSymbol] = field(default_factory=list)
    version: Optional[int] = None

    def get(self, symbol: str) -> Optional[LocalSymbol]:
        return self.symbols.get(symbol)


def match_local_definition(line: str) -> Optional[tuple[str, str, int]]:
    """Retorna (kind, symbol, coluna) do primeiro padrão que casa com a linha."""
    for kind, regex in _LOCAL_PATTERNS:
        match = regex.match(line)
        if match:
            return kind, match.group(1), match.start(1)
    return None


def parse_local_symbols(text: str, version: Optional[int] = None) -> LocalSymbols:
    """Extrai labels, .equ e .set do texto completo do documento."""
    return parse_local_symbols_from_lines(split_lines(text), version)


def parse_local_symbols_from_lines(lines: list[str], version: Optional[int] = None) -> LocalSymbols:
    result = LocalSymbols(version=version)

    for index, line in enumerate(lines):
        found = match_local_definition(line)
        if not found:
            continue
        kind, symbol, column = found
        entry = LocalSymbol(
            symbol=symbol,
            kind=kind,
            line=index,
            column=column,
            detail=trim_line(line),
        )
        result.symbols[symbol] = entry
        result.entries.append(entry)

    return result


def is_definition_occurrence(line_text: str, symbol: str, column: int) -> bool:
    """
    Verifica se a ocorrência de symbol em column é a própria definição.

    Cada regex é testada independentemente; basta uma confirmar o símbolo
    na mesma coluna.
    """
    for _kind, regex in _LOCAL_PATTERNS:
        match = regex.match(line_text)
        if not match or match.group(1) != symbol:
            continue
        if match.start(1) == column:
            return True
    return False
