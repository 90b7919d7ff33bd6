"""
converters.py - Conversão entre entradas de símbolo e tipos LSP

Propósito:
    Funções compartilhadas pelos providers: extração da palavra sob o
    cursor, formatação de texto e conversão de entradas para Range/Location.

Componentes principais:
    - get_word_at_position: identificador AVR sob o cursor
    - trim_line / safe_markdown: formatação para detail e hover
    - symbol_range / dfp_location: coordenadas → tipos lsprotocol
    - local_kind_to_symbol_kind: label → Function, equ/set → Constant

Notas de implementação:
    - LocalSymbol.line é 0-based; DfpEntry.line é 1-based (como no arquivo)
    - Coordenadas LSP são 0-based (line, character)
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Optional
from urllib.parse import unquote, urlparse

from lsprotocol.types import Location, Position, Range, SymbolKind

IDENTIFIER_CHARS = "A-Za-z0-9_.$"
IDENTIFIER_PATTERN = r"[A-Za-z_.$][A-Za-z0-9_.$]*"

_WORD_CHARS = re.compile(rf"[{IDENTIFIER_CHARS}]")
_WORD_REGEX = re.compile(rf"^{IDENTIFIER_PATTERN}$")
_MARKDOWN_SPECIAL = re.compile(r"([`*_{}\[\]()#+\-!])")


def get_word_at_position(line: str, character: int) -> Optional[str]:
    """
    Extrai o identificador na posição do cursor.

    Expande para esquerda e direita a partir do cursor (inclusive quando o
    cursor está logo após a palavra) e exige que o resultado seja um
    identificador válido (não começa com dígito).
    """
    bounds = get_word_bounds(line, character)
    if not bounds:
        return None
    start, end = bounds
    word = line[start:end]
    if not _WORD_REGEX.match(word):
        return None
    return word


def get_word_bounds(line: str, character: int) -> Optional[tuple[int, int]]:
    """Retorna (start, end) da sequência de caracteres de identificador no cursor."""
    cursor = max(0, min(character, len(line)))

    start = cursor
    while start > 0 and _WORD_CHARS.match(line[start - 1]):
        start -= 1

    end = cursor
    while end < len(line) and _WORD_CHARS.match(line[end]):
        end += 1

    if start == end:
        return None
    return start, end


def split_lines(text: str) -> list[str]:
    """Divide em linhas aceitando \\n e \\r\\n (linha final vazia preservada)."""
    return re.split(r"\r?\n", text)


def trim_line(text: str, max_length: int = 120) -> str:
    """Comprime espaços e corta em max_length com sufixo '...'."""
    squashed = re.sub(r"\s+", " ", text.strip())
    if len(squashed) <= max_length:
        return squashed
    return f"{squashed[:max_length - 3]}..."


def safe_markdown(text: str) -> str:
    """Escapa caracteres especiais de Markdown."""
    return _MARKDOWN_SPECIAL.sub(r"\\\1", text)


def symbol_range(line: int, column: int, symbol: str) -> Range:
    """Range cobrindo o símbolo na linha (0-based)."""
    safe_column = max(0, column)
    return Range(
        start=Position(line=line, character=safe_column),
        end=Position(line=line, character=safe_column + len(symbol)),
    )


def dfp_location(entry) -> Location:
    """Location de uma DfpEntry (linha 1-based → 0-based, coluna 0)."""
    position = Position(line=max(0, entry.line - 1), character=0)
    return Location(uri=file_uri(entry.file), range=Range(start=position, end=position))


def dfp_symbol_location(entry, symbol: str) -> Location:
    """Location de uma DfpEntry cobrindo o símbolo dentro da linha."""
    column = max(0, (entry.text or "").find(symbol))
    return Location(
        uri=file_uri(entry.file),
        range=symbol_range(max(0, entry.line - 1), column, symbol),
    )


def local_kind_to_symbol_kind(kind: str) -> SymbolKind:
    if kind == "label":
        return SymbolKind.Function
    if kind in ("equ", "set"):
        return SymbolKind.Constant
    return SymbolKind.Variable


def relative_path(path: str, root: str) -> str:
    """Caminho relativo a root quando possível; caso contrário o próprio path."""
    if not root:
        return path
    try:
        rel = Path(path).relative_to(Path(root))
    except ValueError:
        return path
    return rel.as_posix() or path


def uri_to_path(uri) -> Optional[Path]:
    """
    Normaliza URI file:// (ou path) para Path.

    Mantém o caminho sem resolve() para evitar dependência do filesystem.
    """
    if not uri:
        return None

    if isinstance(uri, Path):
        return uri

    if not isinstance(uri, str):
        return None

    if uri.startswith("file://"):
        parsed = urlparse(uri)
        path_str = unquote(parsed.path or "")

        # UNC paths: file://server/share/path -> //server/share/path
        if parsed.netloc:
            path_str = f"//{parsed.netloc}{path_str}"

        # Windows drive: /d:/path -> d:/path
        if len(path_str) >= 3 and path_str[0] == "/" and path_str[2] == ":":
            path_str = path_str[1:]

        return Path(path_str)

    if "://" in uri:
        return None

    return Path(uri)


def file_uri(path) -> str:
    """URI file:// de um caminho (relativo é ancorado no diretório atual)."""
    return Path(path).absolute().as_uri()
