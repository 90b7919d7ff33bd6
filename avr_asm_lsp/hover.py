"""
hover.py - Informação contextual ao passar o mouse (textDocument/hover)

Propósito:
    Mostra a definição local do símbolo sob o cursor e as ocorrências
    encontradas no pack DFP do dispositivo.

Formato (Markdown):
    **SIMBOLO**
    Local <kind> in this file at line N.   + bloco ```asm
    <device> pack matches:                 + até maxHoverResults blocos ```c
    ... K more match(es).

Notas de implementação:
    - Sem definição local nem ocorrência no pack → None
    - Caminhos do pack exibidos relativos ao pack root
"""

from __future__ import annotations

import logging
from typing import Optional

from lsprotocol.types import Hover, MarkupContent, MarkupKind, Position

from avr_asm_lsp.converters import (
    get_word_at_position,
    relative_path,
    safe_markdown,
    split_lines,
    trim_line,
)
from avr_asm_lsp.dfp_index import DfpIndex
from avr_asm_lsp.local_symbols import LocalSymbols

logger = logging.getLogger(__name__)


def compute_hover(
    source: str,
    position: Position,
    local_symbols: LocalSymbols,
    index: Optional[DfpIndex],
    max_results: int = 6,
) -> Optional[Hover]:
    """
    Computa hover baseado na posição do cursor.

    Args:
        source: Texto-fonte do documento
        position: Posição do cursor (0-based)
        local_symbols: Símbolos locais do documento
        index: Índice DFP (pode ser None)
        max_results: Máximo de ocorrências do pack exibidas

    Returns:
        Hover com MarkupContent ou None se nada encontrado
    """
    lines = split_lines(source)
    if position.line >= len(lines):
        return None

    symbol = get_word_at_position(lines[position.line], position.character)
    if not symbol:
        return None

    local = local_symbols.get(symbol)
    hits = index.hits(symbol) if index else []
    if not local and not hits:
        return None

    md = f"**{safe_markdown(symbol)}**"

    if local:
        md += f"\n\nLocal {local.kind} in this file at line {local.line + 1}."
        md += _code_block(local.detail, "asm")

    if hits:
        md += f"\n\n{safe_markdown(index.device_label)} pack matches:"
        for hit in hits[:max_results]:
            rel_path = relative_path(hit.file, index.pack_root)
            md += f"\n- `{safe_markdown(rel_path)}:{hit.line}` ({hit.kind})"
            md += _code_block(trim_line(hit.text), "c")
        if len(hits) > max_results:
            md += f"\n... {len(hits) - max_results} more match(es)."

    return Hover(contents=MarkupContent(kind=MarkupKind.Markdown, value=md))


def _code_block(code: str, language: str) -> str:
    return f"\n\n```{language}\n{code}\n```\n"
