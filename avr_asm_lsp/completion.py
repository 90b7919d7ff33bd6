"""
completion.py - Autocomplete de mnemônicos, registradores e símbolos

Propósito:
    Fornece sugestões de completamento contextual:
    - Posição de mnemônico: instruções AVR (ou diretivas após ".")
    - Posição de operando: r0..r31 e aliases x/y/z/xl/xh/yl/yh/zl/zh
    - Símbolos locais (tier 0) e depois símbolos do pack DFP (tier 1)

Notas de implementação:
    - Trigger characters: "_", "." e "," (operandos)
    - Mnemônico digitado que casa com instruções → somente instruções
    - Insert text "<mnemônico> " para instruções que recebem operandos
    - Lista total limitada por maxCompletionItems (is_incomplete quando cortada)
    - Dentro de comentário (";" ou "//") não há sugestões
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from lsprotocol.types import (
    CompletionItem,
    CompletionItemKind,
    CompletionList,
    Position,
)

from avr_asm_lsp.avr_isa import (
    AVR_DIRECTIVES,
    AVR_INSTRUCTION_MNEMONICS,
    AVR_REGISTER_NAMES,
    is_instruction,
    takes_operands,
)
from avr_asm_lsp.config import Settings
from avr_asm_lsp.converters import IDENTIFIER_CHARS, IDENTIFIER_PATTERN, relative_path, split_lines
from avr_asm_lsp.dfp_index import DfpIndex
from avr_asm_lsp.local_symbols import LocalSymbols

logger = logging.getLogger(__name__)

COMPLETION_TRIGGER_CHARACTERS = ["_", ".", ","]

_PREFIX_REGEX = re.compile(rf"[{IDENTIFIER_CHARS}]*$")
_LEADING_LABEL_REGEX = re.compile(rf"^\s*{IDENTIFIER_PATTERN}\s*:")

MNEMONIC = "mnemonic"
OPERAND = "operand"


def compute_completions(
    source: str,
    position: Position,
    local_symbols: LocalSymbols,
    index: Optional[DfpIndex],
    settings: Settings,
) -> CompletionList:
    """
    Computa lista de completamento.

    Args:
        source: Texto-fonte do documento
        position: Posição do cursor (0-based)
        local_symbols: Símbolos locais do documento
        index: Índice DFP (pode ser None)
        settings: Configuração atual (flags e maxCompletionItems)

    Returns:
        CompletionList com sugestões na ordem: palavras-chave, locais, pack
    """
    if not settings.enable_completion:
        return CompletionList(is_incomplete=False, items=[])

    lines = split_lines(source)
    line = lines[position.line] if position.line < len(lines) else ""
    before = line[: min(position.character, len(line))]
    if _in_comment(before):
        return CompletionList(is_incomplete=False, items=[])

    prefix = _PREFIX_REGEX.search(before).group(0)
    statement = before[: len(before) - len(prefix)]
    context, mnemonic = _statement_context(statement)

    max_items = settings.max_completion_items
    items: list[CompletionItem] = []

    if context == MNEMONIC and settings.enable_instruction_completion:
        keyword_items = _mnemonic_items(prefix)
        items.extend(keyword_items)
        if prefix and keyword_items:
            return _finish(items, max_items)

    if context == OPERAND and mnemonic and is_instruction(mnemonic):
        items.extend(_register_items(prefix))

    if len(items) > max_items:
        return _finish(items, max_items)

    seen: set[str] = set()
    for symbol, info in local_symbols.symbols.items():
        if prefix and not symbol.startswith(prefix):
            continue
        items.append(
            CompletionItem(
                label=symbol,
                kind=CompletionItemKind.Variable,
                detail=f"local {info.kind} (line {info.line + 1})",
                sort_text=f"0_{symbol}",
            )
        )
        seen.add(symbol)
        if len(items) > max_items:
            return _finish(items, max_items)

    if index:
        for symbol in index.symbol_list:
            if symbol in seen:
                continue
            if prefix and not symbol.startswith(prefix):
                continue
            first = index.first(symbol)
            detail = None
            if first:
                rel_path = relative_path(first.file, index.pack_root)
                detail = f"{first.kind} from {rel_path}:{first.line}"
            items.append(
                CompletionItem(
                    label=symbol,
                    kind=CompletionItemKind.Constant,
                    detail=detail,
                    sort_text=f"1_{symbol}",
                )
            )
            if len(items) > max_items:
                break

    return _finish(items, max_items)


def _finish(items: list[CompletionItem], max_items: int) -> CompletionList:
    truncated = len(items) > max_items
    return CompletionList(is_incomplete=truncated, items=items[:max_items])


def _in_comment(before: str) -> bool:
    return ";" in before or "//" in before


def _statement_context(statement: str) -> tuple[str, Optional[str]]:
    """
    Classifica o texto antes do prefixo.

    Returns:
        (MNEMONIC, None) se o cursor está no primeiro token da instrução;
        (OPERAND, mnemônico) caso contrário
    """
    body = _LEADING_LABEL_REGEX.sub("", statement, count=1)
    tokens = body.split()
    if not tokens:
        return MNEMONIC, None
    return OPERAND, tokens[0].rstrip(",")


def _mnemonic_items(prefix: str) -> list[CompletionItem]:
    lowered = prefix.lower()
    candidates = AVR_DIRECTIVES if lowered.startswith(".") else AVR_INSTRUCTION_MNEMONICS
    items: list[CompletionItem] = []
    for i, mnemonic in enumerate(candidates):
        if lowered and not mnemonic.startswith(lowered):
            continue
        items.append(
            CompletionItem(
                label=mnemonic,
                kind=CompletionItemKind.Keyword,
                detail="directive" if mnemonic.startswith(".") else "instruction",
                insert_text=f"{mnemonic} " if takes_operands(mnemonic) else mnemonic,
                sort_text=f"00_{i:04d}",
            )
        )
    return items


def _register_items(prefix: str) -> list[CompletionItem]:
    lowered = prefix.lower()
    items: list[CompletionItem] = []
    for i, register in enumerate(AVR_REGISTER_NAMES):
        if lowered and not register.startswith(lowered):
            continue
        items.append(
            CompletionItem(
                label=register,
                kind=CompletionItemKind.Variable,
                detail="register" if register.startswith("r") else "pointer register",
                sort_text=f"00_{i:04d}",
            )
        )
    return items
