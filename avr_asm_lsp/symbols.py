"""
symbols.py - Document symbols (outline view) para arquivos assembly AVR

Mapeamento de símbolos locais → LSP SymbolKind:
    label    → Function
    .equ/.set → Constant

Notas de implementação:
    - range cobre a linha inteira; selection_range apenas o nome do símbolo
    - detail: "<kind> (line N)" com N 1-based
"""

from __future__ import annotations

from typing import List

from lsprotocol.types import DocumentSymbol, Position, Range

from avr_asm_lsp.converters import local_kind_to_symbol_kind, split_lines, symbol_range
from avr_asm_lsp.local_symbols import LocalSymbols


def compute_document_symbols(source: str, local_symbols: LocalSymbols) -> List[DocumentSymbol]:
    """Um DocumentSymbol por entrada local, na ordem do documento."""
    if not local_symbols.entries:
        return []

    lines = split_lines(source)
    symbols: List[DocumentSymbol] = []
    for entry in local_symbols.entries:
        line_length = len(lines[entry.line]) if entry.line < len(lines) else 0
        line_range = Range(
            start=Position(line=entry.line, character=0),
            end=Position(line=entry.line, character=line_length),
        )
        symbols.append(
            DocumentSymbol(
                name=entry.symbol,
                detail=f"{entry.kind} (line {entry.line + 1})",
                kind=local_kind_to_symbol_kind(entry.kind),
                range=line_range,
                selection_range=symbol_range(entry.line, entry.column, entry.symbol),
            )
        )
    return symbols
