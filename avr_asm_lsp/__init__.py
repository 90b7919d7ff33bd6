"""
avr_asm_lsp - Language Server Protocol para assembly AVR

Propósito:
    Servidor LSP que fornece navegação (hover, definição, completion,
    símbolos e referências) para arquivos assembly AVR, cruzando símbolos
    locais com os metadados dos Device Family Packs (DFP) da Microchip.

Componentes principais:
    - server: Servidor principal usando pygls
    - local_symbols: Parser de labels/.equ/.set do documento
    - dfp_resolver / dfp_index: Resolução do pack e índice global de símbolos
    - cache: Cache de símbolos locais e do índice DFP (single-flight)

Exemplo de uso:
    avr-asm-lsp

Notas de implementação:
    - Comunica via STDIO com o cliente
    - Falhas de I/O nunca derrubam o servidor (degradam para "sem resultado")
"""
from importlib.metadata import PackageNotFoundError, version as _pkg_version
from pathlib import Path
import re


def _read_version_from_pyproject() -> str:
    pyproject = Path(__file__).resolve().parents[1] / "pyproject.toml"
    try:
        text = pyproject.read_text(encoding="utf-8")
    except OSError:
        return "0.0.0"
    match = re.search(r'(?m)^version = "([^"]+)"\s*$', text)
    return match.group(1) if match else "0.0.0"


try:
    __version__ = _pkg_version("avr-asm-lsp")
except PackageNotFoundError:
    __version__ = _read_version_from_pyproject()

__all__ = ["server", "local_symbols", "dfp_index", "cache"]
