"""
server.py - Servidor LSP principal para assembly AVR usando pygls

Propósito:
    Servidor Language Server Protocol que fornece hover, go-to-definition,
    completion, document/workspace symbols e references para arquivos
    assembly AVR (.S, .s, .asm, .as, .inc), cruzando símbolos locais com o
    índice do Device Family Pack (DFP) do dispositivo.

Componentes principais:
    - AvrAsmLanguageServer: Servidor principal com pygls e os caches
    - Handlers de features: hover, definition, completion, symbols, references
    - Comandos: lookupSymbol, rebuildIndex, showActiveTarget
    - Eventos de invalidação: configuração, save de .mplab.json, didClose

Dependências críticas:
    - pygls: Framework LSP
    - lsprotocol: Tipos do protocolo

Exemplo de uso:
    avr-asm-lsp

Notas de implementação:
    - Comunica via STDIO (entrada/saída padrão); logs vão para STDERR
    - Configuração (seção avrAsmNavigator) relida a cada request
    - Índice DFP construído sob demanda, em thread, com build único compartilhado
    - Tratamento robusto de exceções (nunca crasha; degrada para resultado vazio)
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

from lsprotocol.types import (
    INITIALIZE,
    INITIALIZED,
    TEXT_DOCUMENT_COMPLETION,
    TEXT_DOCUMENT_DEFINITION,
    TEXT_DOCUMENT_DID_CLOSE,
    TEXT_DOCUMENT_DID_OPEN,
    TEXT_DOCUMENT_DID_SAVE,
    TEXT_DOCUMENT_DOCUMENT_SYMBOL,
    TEXT_DOCUMENT_HOVER,
    TEXT_DOCUMENT_REFERENCES,
    WINDOW_SHOW_MESSAGE_REQUEST,
    WORKSPACE_DID_CHANGE_CONFIGURATION,
    WORKSPACE_DID_CHANGE_WATCHED_FILES,
    WORKSPACE_DID_CHANGE_WORKSPACE_FOLDERS,
    WORKSPACE_SYMBOL,
    CompletionList,
    CompletionOptions,
    CompletionParams,
    DefinitionParams,
    DidChangeConfigurationParams,
    DidChangeWatchedFilesParams,
    DidChangeWorkspaceFoldersParams,
    DidCloseTextDocumentParams,
    DidOpenTextDocumentParams,
    DidSaveTextDocumentParams,
    DocumentSymbolParams,
    HoverParams,
    InitializedParams,
    InitializeParams,
    MessageActionItem,
    MessageType,
    ReferenceParams,
    ShowDocumentParams,
    ShowMessageRequestParams,
    WorkspaceSymbolParams,
)
from pygls.server import LanguageServer

from avr_asm_lsp import __version__
from avr_asm_lsp.cache import DfpIndexCache, LocalSymbolCache
from avr_asm_lsp.commands import (
    LOOKUP_SYMBOL_COMMAND,
    REBUILD_INDEX_COMMAND,
    SHOW_ACTIVE_TARGET_COMMAND,
    active_target_info,
    compute_lookup_picks,
    no_matches_message,
    rebuild_summary,
)
from avr_asm_lsp.completion import COMPLETION_TRIGGER_CHARACTERS, compute_completions
from avr_asm_lsp.config import Settings, affects_configuration
from avr_asm_lsp.converters import get_word_at_position, split_lines, uri_to_path
from avr_asm_lsp.definition import compute_definition
from avr_asm_lsp.dfp_index import DfpIndex, build_dfp_index
from avr_asm_lsp.hover import compute_hover
from avr_asm_lsp.local_symbols import LocalSymbols
from avr_asm_lsp.mplab import is_mplab_project_file
from avr_asm_lsp.references import compute_references
from avr_asm_lsp.symbols import compute_document_symbols
from avr_asm_lsp.workspace_files import is_assembly_uri
from avr_asm_lsp.workspace_symbols import compute_workspace_symbols

# Configuração de logging (STDOUT é do protocolo)
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)


class AvrAsmLanguageServer(LanguageServer):
    """
    Servidor LSP especializado para assembly AVR.

    Attributes:
        settings: Configuração atual (trocada inteira a cada mudança)
        local_cache: LocalSymbols por URI/versão de documento
        index_cache: Índice DFP do processo (single-flight)
        packs_home: Raiz dos packs Microchip (None → ~/.mchp_packs)
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.settings: Settings = Settings()
        self.local_cache: LocalSymbolCache = LocalSymbolCache()
        self.index_cache: DfpIndexCache = DfpIndexCache()
        self.packs_home: Optional[Path] = None


# Instância global do servidor
server = AvrAsmLanguageServer("avr-asm-lsp", f"v{__version__}")


# --- Helpers ---

def _workspace_folder_paths(ls) -> list[Path]:
    """Pastas do workspace (workspace folders do LSP ou root_uri)."""
    workspace = getattr(ls, "workspace", None)
    if not workspace:
        return []

    paths: list[Path] = []
    folders = getattr(workspace, "folders", None) or {}
    for folder in folders.values():
        path = uri_to_path(folder.uri)
        if path and path not in paths:
            paths.append(path)

    if not paths:
        root = uri_to_path(getattr(workspace, "root_uri", None)) or uri_to_path(
            getattr(workspace, "root_path", None)
        )
        if root:
            paths.append(root)
    return paths


def _open_assembly_documents(ls) -> dict[str, str]:
    """URI → texto dos documentos assembly abertos (scheme file)."""
    workspace = getattr(ls, "workspace", None)
    if not workspace:
        return {}
    documents = getattr(workspace, "text_documents", None) or {}
    return {
        uri: doc.source for uri, doc in documents.items() if is_assembly_uri(uri)
    }


def _local_symbols_for(ls, doc) -> LocalSymbols:
    return ls.local_cache.get(doc.uri, getattr(doc, "version", None), doc.source)


def _index_builder(ls):
    """Captura configuração e pastas atuais para o build em thread."""
    settings = ls.settings
    folders = _workspace_folder_paths(ls)
    packs_home = ls.packs_home

    def build() -> DfpIndex:
        return build_dfp_index(settings, folders, packs_home)

    return build


async def get_dfp_index(ls, force: bool = False) -> DfpIndex:
    """Índice DFP atual, construindo sob demanda."""
    return await ls.index_cache.get(_index_builder(ls), force=force)


async def _index_or_none(ls) -> Optional[DfpIndex]:
    try:
        return await get_dfp_index(ls)
    except Exception as e:
        logger.error(f"Falha ao construir índice DFP: {e}", exc_info=True)
        return None


def _command_args(params) -> dict:
    """Argumentos de executeCommand: dict direto ou primeiro elemento da lista."""
    if isinstance(params, dict):
        return params
    if isinstance(params, list) and len(params) > 0 and isinstance(params[0], dict):
        return params[0]
    return {}


def invalidate_dfp_index(ls, reason: str) -> None:
    logger.info(f"Invalidando índice DFP: {reason}")
    ls.index_cache.invalidate()


# --- Ciclo de vida ---

@server.feature(INITIALIZE)
def initialize(ls: AvrAsmLanguageServer, params: InitializeParams) -> None:
    """Lê initializationOptions (seção avrAsmNavigator)."""
    ls.settings = Settings.from_dict(params.initialization_options)
    logger.info(f"Configuração inicial: {ls.settings}")


@server.feature(INITIALIZED)
async def initialized(ls: AvrAsmLanguageServer, params: InitializedParams) -> None:
    """Aquece o índice DFP para que o primeiro hover seja rápido."""
    await _index_or_none(ls)


@server.feature(TEXT_DOCUMENT_DID_OPEN)
def did_open(ls: AvrAsmLanguageServer, params: DidOpenTextDocumentParams) -> None:
    doc = params.text_document
    ls.local_cache.get(doc.uri, doc.version, doc.text)


@server.feature(TEXT_DOCUMENT_DID_CLOSE)
def did_close(ls: AvrAsmLanguageServer, params: DidCloseTextDocumentParams) -> None:
    """Remove símbolos locais do documento fechado."""
    ls.local_cache.evict(params.text_document.uri)


@server.feature(TEXT_DOCUMENT_DID_SAVE)
def did_save(ls: AvrAsmLanguageServer, params: DidSaveTextDocumentParams) -> None:
    """Salvar um .mplab.json pode trocar device/pack: invalida o índice."""
    uri = params.text_document.uri
    if is_mplab_project_file(uri):
        invalidate_dfp_index(ls, f"projeto MPLAB salvo ({uri})")


@server.feature(WORKSPACE_DID_CHANGE_WATCHED_FILES)
def did_change_watched_files(
    ls: AvrAsmLanguageServer, params: DidChangeWatchedFilesParams
) -> None:
    """Criação/alteração/remoção de .mplab.json invalida o índice."""
    for change in params.changes:
        if is_mplab_project_file(change.uri):
            invalidate_dfp_index(ls, f"projeto MPLAB mudou ({change.uri})")
            return


@server.feature(WORKSPACE_DID_CHANGE_WORKSPACE_FOLDERS)
def did_change_workspace_folders(
    ls: AvrAsmLanguageServer, params: DidChangeWorkspaceFoldersParams
) -> None:
    """Pastas adicionadas/removidas mudam a detecção MPLAB: invalida o índice."""
    event = params.event
    if not event.added and not event.removed:
        return
    names = [folder.name for folder in [*event.added, *event.removed]]
    invalidate_dfp_index(ls, f"pastas do workspace mudaram ({', '.join(names)})")


@server.feature(WORKSPACE_DID_CHANGE_CONFIGURATION)
def did_change_configuration(
    ls: AvrAsmLanguageServer, params: DidChangeConfigurationParams
) -> None:
    """
    Handler para mudanças na configuração do workspace.

    A configuração vem em params.settings quando o cliente sincroniza a seção
    avrAsmNavigator. Mudança na seção (ou settings ausente) invalida o índice.
    """
    try:
        settings = params.settings
        if not affects_configuration(settings):
            return
        if isinstance(settings, dict):
            ls.settings = Settings.from_dict(settings)
            logger.info(f"Configuração atualizada: {ls.settings}")
        invalidate_dfp_index(ls, "configuração alterada")
    except Exception as e:
        logger.error(f"Erro ao processar mudança de configuração: {e}", exc_info=True)


# --- Features ---

@server.feature(TEXT_DOCUMENT_HOVER)
async def hover(ls: AvrAsmLanguageServer, params: HoverParams):
    """Definição local + ocorrências do pack para o símbolo sob o cursor."""
    if not ls.settings.enable_hover:
        return None
    try:
        doc = ls.workspace.get_text_document(params.text_document.uri)
        local_symbols = _local_symbols_for(ls, doc)
        index = await _index_or_none(ls)
        return compute_hover(
            doc.source, params.position, local_symbols, index, ls.settings.max_hover_results
        )
    except Exception as e:
        logger.error(f"Erro no hover: {e}", exc_info=True)
        return None


@server.feature(TEXT_DOCUMENT_DEFINITION)
async def definition(ls: AvrAsmLanguageServer, params: DefinitionParams):
    """Go-to-definition: local primeiro, depois o pack."""
    if not ls.settings.enable_definition:
        return None
    try:
        doc = ls.workspace.get_text_document(params.text_document.uri)
        local_symbols = _local_symbols_for(ls, doc)
        index = await _index_or_none(ls)
        return compute_definition(doc.source, params.position, doc.uri, local_symbols, index)
    except Exception as e:
        logger.error(f"Erro no definition: {e}", exc_info=True)
        return None


@server.feature(
    TEXT_DOCUMENT_COMPLETION,
    CompletionOptions(trigger_characters=COMPLETION_TRIGGER_CHARACTERS),
)
async def completion(ls: AvrAsmLanguageServer, params: CompletionParams):
    """Autocomplete: mnemônicos, registradores, símbolos locais e do pack."""
    settings = ls.settings
    if not settings.enable_completion:
        return CompletionList(is_incomplete=False, items=[])
    try:
        doc = ls.workspace.get_text_document(params.text_document.uri)
        local_symbols = _local_symbols_for(ls, doc)
        index = await _index_or_none(ls)
        return compute_completions(doc.source, params.position, local_symbols, index, settings)
    except Exception as e:
        logger.error(f"Erro no completion: {e}", exc_info=True)
        return CompletionList(is_incomplete=False, items=[])


@server.feature(TEXT_DOCUMENT_DOCUMENT_SYMBOL)
def document_symbol(ls: AvrAsmLanguageServer, params: DocumentSymbolParams) -> list:
    """Outline: labels, .equ e .set do documento."""
    try:
        doc = ls.workspace.get_text_document(params.text_document.uri)
        return compute_document_symbols(doc.source, _local_symbols_for(ls, doc))
    except Exception as e:
        logger.error(f"Erro no documentSymbol: {e}", exc_info=True)
        return []


@server.feature(WORKSPACE_SYMBOL)
async def workspace_symbol(ls: AvrAsmLanguageServer, params: WorkspaceSymbolParams) -> list:
    """Busca por substring em todos os arquivos assembly e no pack."""
    settings = ls.settings
    try:
        if not (params.query or "").strip():
            return []
        index = await _index_or_none(ls) if settings.include_dfp_in_workspace_symbols else None
        return compute_workspace_symbols(
            params.query,
            _workspace_folder_paths(ls),
            _open_assembly_documents(ls),
            index,
            settings,
        )
    except Exception as e:
        logger.error(f"Erro no workspace/symbol: {e}", exc_info=True)
        return []


@server.feature(TEXT_DOCUMENT_REFERENCES)
async def references(ls: AvrAsmLanguageServer, params: ReferenceParams):
    """Find All References: identificador inteiro em todo o workspace."""
    settings = ls.settings
    if not settings.enable_references:
        return []
    try:
        doc = ls.workspace.get_text_document(params.text_document.uri)
        lines = split_lines(doc.source)
        if params.position.line >= len(lines):
            return []
        symbol = get_word_at_position(lines[params.position.line], params.position.character)
        if not symbol:
            return []

        include_declaration = bool(params.context and params.context.include_declaration)
        index = await _index_or_none(ls) if include_declaration else None
        return compute_references(
            symbol,
            doc.uri,
            _workspace_folder_paths(ls),
            _open_assembly_documents(ls),
            index,
            settings,
            include_declaration,
        )
    except Exception as e:
        logger.error(f"Erro no references: {e}", exc_info=True)
        return []


# --- Comandos ---

@server.command(LOOKUP_SYMBOL_COMMAND)
async def cmd_lookup_symbol(ls: AvrAsmLanguageServer, params) -> dict:
    """
    Procura um símbolo (local + pack) e oferece os resultados ao usuário.

    Argumentos (dict):
        symbol: Símbolo explícito (opcional)
        uri, position: Documento/posição para extrair a palavra sob o cursor
        interactive: Se False, apenas retorna os picks (padrão: True)
    """
    args = _command_args(params)
    uri = args.get("uri")
    symbol = (args.get("symbol") or "").strip()

    doc = None
    if uri:
        try:
            doc = ls.workspace.get_text_document(uri)
        except Exception as e:
            logger.warning(f"Documento indisponível para lookup {uri}: {e}")

    if not symbol and doc is not None:
        position = args.get("position") or {}
        lines = split_lines(doc.source)
        line_index = position.get("line", 0)
        if 0 <= line_index < len(lines):
            symbol = get_word_at_position(lines[line_index], position.get("character", 0)) or ""

    if not symbol:
        return {"success": False, "error": "No symbol provided"}

    local_symbols = _local_symbols_for(ls, doc) if doc is not None else None
    index = await _index_or_none(ls)
    picks = compute_lookup_picks(symbol, uri, local_symbols, index)

    if not picks:
        ls.show_message(no_matches_message(symbol, index), MessageType.Info)
        return {"success": True, "symbol": symbol, "picks": [], "selected": None}

    selected = None
    if args.get("interactive", True):
        selected = await _offer_picks(ls, symbol, picks)

    return {
        "success": True,
        "symbol": symbol,
        "picks": [pick.to_dict() for pick in picks],
        "selected": selected.to_dict() if selected else None,
    }


async def _offer_picks(ls, symbol: str, picks):
    """Mostra os picks via showMessageRequest e abre o escolhido."""
    by_title = {}
    for pick in picks:
        by_title.setdefault(pick.title, pick)

    try:
        response = await ls.lsp.send_request_async(
            WINDOW_SHOW_MESSAGE_REQUEST,
            ShowMessageRequestParams(
                type=MessageType.Info,
                message=f"Matches for {symbol}",
                actions=[MessageActionItem(title=title) for title in by_title],
            ),
        )
    except Exception as e:
        logger.warning(f"Cliente não respondeu ao showMessageRequest: {e}")
        return None

    if not response:
        return None
    selected = by_title.get(getattr(response, "title", None))
    if not selected:
        return None

    try:
        await ls.show_document_async(
            ShowDocumentParams(
                uri=selected.location.uri,
                take_focus=True,
                selection=selected.location.range,
            )
        )
    except Exception as e:
        logger.warning(f"Falha ao abrir {selected.location.uri}: {e}")
    return selected


@server.command(REBUILD_INDEX_COMMAND)
async def cmd_rebuild_index(ls: AvrAsmLanguageServer, params) -> dict:
    """Reconstrói o índice DFP ignorando o cache."""
    try:
        index = await get_dfp_index(ls, force=True)
    except Exception as e:
        logger.error(f"rebuildIndex falhou: {e}", exc_info=True)
        return {"success": False, "error": str(e)}

    summary = rebuild_summary(index)
    if summary["success"]:
        ls.show_message(summary["message"], MessageType.Info)
    else:
        ls.show_message(summary["warning"], MessageType.Warning)
    return summary


@server.command(SHOW_ACTIVE_TARGET_COMMAND)
async def cmd_show_active_target(ls: AvrAsmLanguageServer, params) -> dict:
    """Retorna pack, device e arquivos usados pelo índice atual."""
    index = await _index_or_none(ls)
    if index is None:
        return {"success": False, "error": "DFP index unavailable"}

    info = active_target_info(index)
    ls.show_message(
        f"AVR target: {index.device_label} ({index.pack_root or 'no pack'})", MessageType.Info
    )
    return info


def main() -> None:
    """
    Ponto de entrada principal do servidor.

    Inicia servidor LSP em modo STDIO.
    """
    logger.info("Iniciando AVR Assembly Language Server...")
    logger.info("Python executable: %s", sys.executable)
    logger.info("avr-asm-lsp version: %s", __version__)
    server.start_io()


if __name__ == "__main__":
    main()
