"""
definition.py - Go-to-definition para símbolos AVR

Propósito:
    Resolve a definição do símbolo sob o cursor:
    - label/.equ/.set local → linha no próprio documento
    - símbolo do pack       → até 20 ocorrências nos arquivos do DFP

Notas de implementação:
    - Local primeiro; depois as ocorrências do pack
    - Uma única localização é devolvida como Location, várias como lista
    - DfpEntry.line é 1-based; convertida para 0-based (LSP)
"""

from __future__ import annotations

import logging
from typing import Optional, Union

from lsprotocol.types import Location, Position, Range

from avr_asm_lsp.converters import dfp_location, get_word_at_position, split_lines
from avr_asm_lsp.dfp_index import MAX_ENTRIES_PER_SYMBOL, DfpIndex
from avr_asm_lsp.local_symbols import LocalSymbols

logger = logging.getLogger(__name__)


def compute_definition(
    source: str,
    position: Position,
    uri: str,
    local_symbols: LocalSymbols,
    index: Optional[DfpIndex],
) -> Optional[Union[Location, list[Location]]]:
    """
    Resolve definição: local → documento, pack → arquivos do DFP.

    Returns:
        Location, lista de Location, ou None
    """
    lines = split_lines(source)
    if position.line >= len(lines):
        return None

    symbol = get_word_at_position(lines[position.line], position.character)
    if not symbol:
        return None

    locations: list[Location] = []
    local = local_symbols.get(symbol)
    if local:
        start = Position(line=local.line, character=0)
        locations.append(Location(uri=uri, range=Range(start=start, end=start)))

    if index:
        for hit in index.hits(symbol)[:MAX_ENTRIES_PER_SYMBOL]:
            locations.append(dfp_location(hit))

    if not locations:
        return None
    if len(locations) == 1:
        return locations[0]
    return locations
