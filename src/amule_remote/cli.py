"""CLI utilitário para inspecionar páginas salvas da interface web do aMule."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any, Iterable, Optional

from . import parsers
from .ed2k import parse_link
from .preferences import PreferenceMapping, parse_preferences
from .profiles import ProfileRegistry, VersionProfile
from .version import compatibility_message, detect_version

LOGGER = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

PAGE_COMMANDS = ("downloads", "uploads", "servers", "search", "stats", "prefs", "log", "version")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="amule-remote-cli",
        description="Extrai dados de páginas salvas da interface web do aMule.",
    )
    parser.add_argument("--debug", action="store_true", help="Ativa logs detalhados.")
    parser.add_argument("--json", action="store_true", help="Exibe a saída em JSON.")
    parser.add_argument("--profiles", type=Path, help="Arquivo xpaths.json alternativo.")
    parser.add_argument("--mapping", type=Path, help="Arquivo de mapeamento de preferências alternativo.")
    parser.add_argument(
        "--daemon-version",
        default=None,
        help="Versão do aMule usada para escolher o perfil (ex.: 2.3.2).",
    )
    parser.add_argument(
        "--decimal-separator",
        choices=(".", ","),
        default=None,
        help="Separador decimal usado pelo daemon (padrão: o da localidade).",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    for name in PAGE_COMMANDS:
        page_parser = subparsers.add_parser(name, help=f"Lê uma página salva ({name}).")
        page_parser.add_argument("page", type=Path, help="Arquivo HTML salvo.")

    link_parser = subparsers.add_parser("link", help="Valida um link ed2k://.")
    link_parser.add_argument("uri", help="Link ed2k.")

    return parser


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(level=logging.DEBUG if debug else logging.INFO, format=LOG_FORMAT)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.debug)

    if args.command == "link":
        return _cmd_link(args.uri, json_output=args.json)

    try:
        html = args.page.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        LOGGER.error("Falha ao ler %s: %s", args.page, exc)
        return 1

    if args.command == "version":
        return _cmd_version(html, json_output=args.json)

    registry = ProfileRegistry.load(args.profiles)
    profile = registry.resolve(args.daemon_version)
    return _cmd_page(args, html, profile)


def _cmd_page(args: argparse.Namespace, html: str, profile: VersionProfile) -> int:
    command = args.command
    if command == "downloads":
        result: Any = parsers.parse_downloads(html, profile, args.decimal_separator)
    elif command == "uploads":
        result = parsers.parse_uploads(html, profile)
    elif command == "servers":
        result = parsers.parse_servers(html, profile)
    elif command == "search":
        result = parsers.parse_search(html, profile)
    elif command == "stats":
        result = parsers.parse_stats(html, profile)
    elif command == "prefs":
        result = parse_preferences(html, profile, PreferenceMapping.load(args.mapping))
    else:
        result = parsers.parse_log(html, profile)

    if result is None:
        print("Nenhum dado encontrado.")
        return 0
    if isinstance(result, str):
        print(json.dumps(result, ensure_ascii=False) if args.json else result)
        return 0
    if isinstance(result, list):
        return _print_records(result, json_output=args.json)
    return _print_records([result], json_output=args.json)


def _print_records(records: Iterable[Any], json_output: bool = False) -> int:
    entries = [record.to_dict() for record in records]
    if json_output:
        print(json.dumps(entries, indent=2, ensure_ascii=False))
        return 0

    if not entries:
        print("Nenhum registro encontrado.")
        return 0

    for entry in entries:
        print("  ".join(f"{key}={value}" for key, value in entry.items() if value not in (None, "")))
    return 0


def _cmd_version(html: str, json_output: bool = False) -> int:
    version = detect_version(html)
    message = compatibility_message(version)
    if json_output:
        print(json.dumps({"version": version, "message": message}, indent=2, ensure_ascii=False))
    else:
        print(f"{version}: {message}")
    return 0


def _cmd_link(uri: str, json_output: bool = False) -> int:
    result = parse_link(uri)
    if not result.ok:
        if json_output:
            print(json.dumps({"error": result.error.value, "message": result.message}, indent=2))
        else:
            print(f"Link inválido: {result.message}")
        return 1

    link = result.link
    if json_output:
        print(
            json.dumps(
                {
                    "name": link.name,
                    "size": link.size,
                    "hash": link.file_hash,
                    "hash_set": link.hash_set,
                    "sources": list(link.sources or ()),
                },
                indent=2,
                ensure_ascii=False,
            )
        )
    else:
        print(f"{link.name}  {link.formatted_size}  {link.file_hash}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
