"""pygls language server exposing live Tact compiler diagnostics.

Run via::

    tact-language-server                 # stdio (what editors spawn)
    tact-language-server --tcp --port 2087

Settings are loaded from environment variables and ``.env`` file (see
:class:`tactls.settings.Settings`); the editor can override the validation
options at runtime through ``workspace/didChangeConfiguration``.
"""

from __future__ import annotations

import argparse
import logging
from typing import Any

from lsprotocol import types as lsp
from pydantic import ValidationError
from pygls.lsp.server import LanguageServer
from pygls.uris import to_fs_path

from tactls import __version__
from tactls.compiler.adapter import TactCompiler
from tactls.compiler.backend import CommandBackend, CompilerBackend, SyntaxCheckBackend
from tactls.compiler.diagnostics import DiagnosticMapper
from tactls.compiler.pipeline import ValidationPipeline
from tactls.models.contracts import Document
from tactls.service.scheduler import ValidationScheduler
from tactls.settings import ClientSettings, Settings, TactClientSettings

logger = logging.getLogger("tactls.server")


def uri_to_path(uri: str) -> str:
    return to_fs_path(uri) or uri


def build_backend(settings: Settings) -> CompilerBackend:
    if settings.compiler_command:
        return CommandBackend(settings.compiler_command, timeout=settings.compiler_timeout_seconds)
    return SyntaxCheckBackend()


class TactLanguageServer(LanguageServer):
    """Language server holding the validation pipeline and its scheduler."""

    def __init__(self, settings: Settings | None = None) -> None:
        super().__init__(
            "tact-language-server",
            __version__,
            text_document_sync_kind=lsp.TextDocumentSyncKind.Full,
        )
        self.server_settings = settings or Settings()
        self.root_path: str | None = None
        self.pipeline = self._build_pipeline()
        self.scheduler = ValidationScheduler(
            self.validate_document,
            self.publish_tact_diagnostics,
            self.open_documents,
            live_check_enabled=self.server_settings.enabled_as_you_type_check,
            debounce_ms=self.server_settings.validation_delay_ms,
            validate_on_change=self.server_settings.validate_on_change,
        )

    # -- wiring --------------------------------------------------------------

    def _build_pipeline(self) -> ValidationPipeline:
        return ValidationPipeline(
            TactCompiler(self.root_path, build_backend(self.server_settings)),
            DiagnosticMapper(self.server_settings.surface_imported_errors),
        )

    def configure(self, settings: Settings) -> None:
        """Replace process settings before the server starts."""
        self.server_settings = settings
        self.pipeline = self._build_pipeline()
        self.scheduler.live_check_enabled = settings.enabled_as_you_type_check
        self.scheduler.debounce_ms = settings.validation_delay_ms
        self.scheduler.validate_on_change = settings.validate_on_change

    def set_root_path(self, root_path: str | None) -> None:
        self.root_path = root_path
        self.pipeline = self._build_pipeline()

    def apply_client_settings(self, client: TactClientSettings) -> None:
        """Merge the editor's ``tact`` section; unset fields keep their value."""
        if client.surface_imported_errors is not None:
            self.pipeline.mapper.surface_imported_errors = client.surface_imported_errors
        self.scheduler.on_configuration_change(
            live_check_enabled=(
                client.enabled_as_you_type_check
                if client.enabled_as_you_type_check is not None
                else self.scheduler.live_check_enabled
            ),
            debounce_ms=(
                client.validation_delay_ms
                if client.validation_delay_ms is not None
                else self.scheduler.debounce_ms
            ),
            validate_on_change=client.validate_on_change,
        )

    # -- document access -----------------------------------------------------

    def snapshot(self, uri: str) -> Document:
        doc = self.workspace.get_text_document(uri)
        return Document(uri=doc.uri, text=doc.source, version=doc.version)

    def open_documents(self) -> list[Document]:
        return [self.snapshot(uri) for uri in list(self.workspace.text_documents)]

    async def validate_document(self, document: Document) -> list[lsp.Diagnostic]:
        path = uri_to_path(document.uri)
        overlay = {
            uri_to_path(d.uri): d.text for d in self.open_documents() if d.uri != document.uri
        }
        return await self.pipeline.validate(path, document.text, overlay)

    def publish_tact_diagnostics(self, uri: str, diagnostics: list[lsp.Diagnostic]) -> None:
        logger.debug("Publishing %d diagnostics for %s", len(diagnostics), uri)
        self.text_document_publish_diagnostics(
            lsp.PublishDiagnosticsParams(uri=uri, diagnostics=diagnostics)
        )


server = TactLanguageServer()


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


def _client_settings(raw: Any) -> TactClientSettings | None:
    """Validate a raw settings payload; ``None`` when it is unusable."""
    if not isinstance(raw, dict):
        return None
    try:
        return ClientSettings.model_validate(raw).tact
    except ValidationError as exc:
        logger.warning("Ignoring invalid tact settings: %s", exc)
        return None


@server.feature(lsp.INITIALIZE)
def on_initialize(ls: TactLanguageServer, params: lsp.InitializeParams) -> None:
    root_uri = None
    if params.workspace_folders:
        root_uri = params.workspace_folders[0].uri
    elif params.root_uri:
        root_uri = params.root_uri
    if root_uri is not None:
        ls.set_root_path(uri_to_path(root_uri))
    elif params.root_path:
        ls.set_root_path(params.root_path)

    client = _client_settings(params.initialization_options)
    if client is not None:
        ls.apply_client_settings(client)


@server.feature(lsp.INITIALIZED)
def on_initialized(ls: TactLanguageServer, params: lsp.InitializedParams) -> None:
    logger.info("Tact language server is created (root=%s)", ls.root_path or "<none>")


@server.feature(lsp.WORKSPACE_DID_CHANGE_CONFIGURATION)
async def did_change_configuration(
    ls: TactLanguageServer, params: lsp.DidChangeConfigurationParams
) -> None:
    client = _client_settings(params.settings)
    if client is None:
        return
    ls.apply_client_settings(client)


# ---------------------------------------------------------------------------
# Text document synchronisation
# ---------------------------------------------------------------------------


@server.feature(lsp.TEXT_DOCUMENT_DID_OPEN)
async def did_open(ls: TactLanguageServer, params: lsp.DidOpenTextDocumentParams) -> None:
    ls.scheduler.on_open(ls.snapshot(params.text_document.uri))


@server.feature(lsp.TEXT_DOCUMENT_DID_CHANGE)
async def did_change(ls: TactLanguageServer, params: lsp.DidChangeTextDocumentParams) -> None:
    ls.scheduler.on_change(ls.snapshot(params.text_document.uri))


@server.feature(lsp.TEXT_DOCUMENT_DID_SAVE)
async def did_save(ls: TactLanguageServer, params: lsp.DidSaveTextDocumentParams) -> None:
    ls.scheduler.on_save(ls.snapshot(params.text_document.uri))


@server.feature(lsp.TEXT_DOCUMENT_DID_CLOSE)
async def did_close(ls: TactLanguageServer, params: lsp.DidCloseTextDocumentParams) -> None:
    ls.scheduler.on_close(params.text_document.uri)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """Run the language server using settings from environment / .env file."""
    parser = argparse.ArgumentParser(description="Tact language server")
    parser.add_argument("--stdio", action="store_true", help="use stdio transport (default)")
    parser.add_argument("--tcp", action="store_true", help="use TCP transport")
    parser.add_argument("--host", help="TCP host")
    parser.add_argument("--port", type=int, help="TCP port")
    args = parser.parse_args(argv)

    settings = Settings()
    if args.tcp:
        settings.lsp_transport = "tcp"
    elif args.stdio:
        settings.lsp_transport = "stdio"
    if args.host:
        settings.lsp_host = args.host
    if args.port:
        settings.lsp_port = args.port

    logging.basicConfig(level=settings.log_level.upper())
    logger.info(
        "Tact Language Server v%s starting (transport=%s)", __version__, settings.lsp_transport
    )
    server.configure(settings)

    if settings.lsp_transport == "tcp":
        server.start_tcp(settings.lsp_host, settings.lsp_port)
    else:
        server.start_io()


if __name__ == "__main__":
    main()
