"""Command-line interface for the custom emoji store."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Tuple

import aiohttp
from colorama import Fore, Style, init as colorama_init
from tqdm import tqdm

from .common.types import EmojiRecord, RenameStatus
from .composer import ComposeSettings, expand_placeholders
from .config import Config, save_config
from .core.crypto import NameCipher
from .renderer import LinkRewriter, RenderPolicy
from .services.library import EmojiLibrary
from .utils import StossymojiError, format_bytes, setup_logging


def _cli_header() -> str:
    return (
        f"{Fore.CYAN}Stossymoji{Style.RESET_ALL} "
        f"{Fore.WHITE}encrypted custom emoji for your chats.{Style.RESET_ALL}\n"
    )


def _command_showcase() -> List[Tuple[str, str, str]]:
    return [
        ("list [--json]", "List emoji", "Decrypted names from the store."),
        ("upload <file>... [--name]", "Upload emoji", "Encrypt names & store images."),
        ("delete <name>", "Delete emoji", "Remove an emoji from the store."),
        ("rename <name> <new_name>", "Rename emoji", "Delete + re-upload, not atomic."),
        ("render <text> [--plain]", "Render message", "Preview how a message displays."),
        ("compose <text>", "Expand placeholders", "Turn ::{key}:: into links."),
        ("configure", "Configure store", "Save store id and token to .env."),
    ]


def _print_command_help(title: str) -> None:
    print(_cli_header())
    print(title)
    print("Usage: python main.py <command> [options]")
    print("\nAvailable commands:\n")
    for command, label, usecase in _command_showcase():
        print(f"  {command:<28} - {label} ({usecase})")
    print("\nExamples:")
    print("  python main.py upload ./party_parrot.gif --name parrot")
    print("  python main.py render 'gg https://abc.public.blob.vercel-storage.com/T.stossymoji.png'")
    print("")


class _FriendlyArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:
        _print_command_help(f"{Fore.RED}Error:{Style.RESET_ALL} {message}")
        print(f"{Fore.YELLOW}Tip:{Style.RESET_ALL} Run `python main.py help` for examples.")
        raise SystemExit(2)


def parse_arguments(argv: List[str] | None = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed arguments namespace.
    """
    parser = _FriendlyArgumentParser(description="Stossymoji CLI")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command")

    list_parser = subparsers.add_parser("list", help="List emoji")
    list_parser.add_argument("--json", action="store_true", help="Print JSON")

    upload_parser = subparsers.add_parser("upload", help="Upload emoji images")
    upload_parser.add_argument("paths", nargs="+", help="Image files (already resized)")
    upload_parser.add_argument("--name", type=str, help="Emoji name (single file only)")

    delete_parser = subparsers.add_parser("delete", help="Delete an emoji")
    delete_parser.add_argument("name", help="Display name or object key")
    delete_parser.add_argument("--yes", action="store_true", help="Skip confirmation")

    rename_parser = subparsers.add_parser("rename", help="Rename an emoji")
    rename_parser.add_argument("name", help="Display name or object key")
    rename_parser.add_argument("new_name", help="New display name")

    render_parser = subparsers.add_parser("render", help="Render a message body")
    render_parser.add_argument("text", help="Message text, or - for stdin")
    render_parser.add_argument("--plain", action="store_true", help="Text-only rendering")

    compose_parser = subparsers.add_parser("compose", help="Expand ::{key}:: placeholders")
    compose_parser.add_argument("text", help="Draft message text, or - for stdin")

    subparsers.add_parser("configure", help="Save store credentials")
    subparsers.add_parser("help", help="Show help and usage examples")

    return parser.parse_args(argv)


def _read_text(value: str) -> str:
    if value == "-":
        return sys.stdin.read()
    return value


def _resolve(library: EmojiLibrary, name: str) -> EmojiRecord:
    record = library.find(name)
    if record is None:
        raise StossymojiError(f"No emoji named '{name}'. Check `python main.py list`.")
    return record


def command_list(args: argparse.Namespace, config: Config) -> None:
    """
    Handle list command.
    """
    async def _run() -> List[EmojiRecord]:
        async with EmojiLibrary.from_config(config) as library:
            await library.reload()
            return list(library.emojis)

    emojis = asyncio.run(_run())
    if args.json:
        print(json.dumps([record.to_dict() for record in emojis], indent=2))
        return
    if not emojis:
        print("No emoji found. Upload one with `python main.py upload <file>`.")
        return
    print(f"{Fore.CYAN}Emoji in {config.credentials().full_store_identifier}:{Style.RESET_ALL}")
    print(f"{'Name':<28}  {'Type':<12}  {'Size':>10}  Object key")
    print("-" * 84)
    for record in emojis:
        name = record.display_name
        if len(name) > 28:
            name = f"{name[:25]}..."
        print(
            f"{name:<28}  {(record.content_type or '-'):<12}  "
            f"{format_bytes(record.size):>10}  {record.id}"
        )


def command_upload(args: argparse.Namespace, config: Config) -> None:
    """
    Handle upload command.
    """
    paths = [Path(path).expanduser() for path in args.paths]
    if args.name and len(paths) > 1:
        raise StossymojiError("--name can only be used with a single file.")
    missing = [str(path) for path in paths if not path.is_file()]
    if missing:
        raise StossymojiError(f"File not found: {', '.join(missing)}")

    uploaded: List[EmojiRecord] = []

    async def _run() -> None:
        async with EmojiLibrary.from_config(config) as library:
            for path in tqdm(paths, desc="Uploading", unit="emoji", disable=len(paths) < 2):
                uploaded.append(await library.upload_file(path, name=args.name))

    try:
        asyncio.run(_run())
    finally:
        for record in uploaded:
            print(f"{Fore.GREEN}✅ Uploaded '{record.display_name}' → {record.download_url}{Style.RESET_ALL}")
        if len(uploaded) < len(paths):
            print(f"{Fore.YELLOW}Uploaded {len(uploaded)} of {len(paths)} files.{Style.RESET_ALL}")


def command_delete(args: argparse.Namespace, config: Config) -> None:
    """
    Handle delete command.
    """
    if not args.yes:
        confirm = input(f"Delete emoji '{args.name}'? [y/N]: ").strip().lower()
        if confirm != "y":
            print("Delete cancelled.")
            return

    async def _run() -> EmojiRecord:
        async with EmojiLibrary.from_config(config) as library:
            await library.reload()
            record = _resolve(library, args.name)
            await library.delete(record)
            return record

    record = asyncio.run(_run())
    print(f"{Fore.YELLOW}Deleted '{record.display_name}'.{Style.RESET_ALL}")


def command_rename(args: argparse.Namespace, config: Config) -> None:
    """
    Handle rename command.
    """
    async def _run():
        async with EmojiLibrary.from_config(config) as library:
            await library.reload()
            record = _resolve(library, args.name)
            return await library.rename(record, args.new_name)

    result = asyncio.run(_run())
    if result.status is RenameStatus.DELETED_BUT_UPLOAD_FAILED:
        print(
            f"{Fore.RED}⚠️  '{args.name}' was deleted but the re-upload failed: "
            f"{result.error}{Style.RESET_ALL}"
        )
        print("Upload the original image again to restore it.")
        raise SystemExit(1)
    print(f"{Fore.GREEN}✅ Renamed to '{result.record.display_name}'.{Style.RESET_ALL}")


def command_render(args: argparse.Namespace, config: Config) -> None:
    """
    Handle render command.
    """
    credentials = config.credentials()
    cipher = None if credentials.is_empty else NameCipher(credentials)
    rewriter = LinkRewriter(cipher)
    text = _read_text(args.text)
    if args.plain:
        print(rewriter.render_plain(text, config.text_template))
    else:
        print(rewriter.render(text, RenderPolicy.from_config(config)))


def command_compose(args: argparse.Namespace, config: Config) -> None:
    """
    Handle compose command.
    """
    print(expand_placeholders(_read_text(args.text), ComposeSettings.from_config(config)))


def command_configure(_: argparse.Namespace, config: Config) -> None:
    """
    Handle configure command.
    """
    store_id = input(f"Store id [{config.store_id or 'none'}]: ").strip() or config.store_id
    token = input("Blob read/write token (leave empty to keep): ").strip() or config.blob_token
    hyperlink = input(
        f"Hyperlink text for sent emoji [{config.hyperlink_text or 'bare link'}]: "
    ).strip() or config.hyperlink_text
    updated = replace(
        config,
        enabled=bool(store_id and token),
        store_id=store_id,
        blob_token=token,
        hyperlink_text=hyperlink,
    )
    save_config(updated)
    Config.reset_instance()
    print(f"{Fore.GREEN}✓ Configuration saved.{Style.RESET_ALL}")


_COMMANDS = {
    "list": command_list,
    "upload": command_upload,
    "delete": command_delete,
    "rename": command_rename,
    "render": command_render,
    "compose": command_compose,
    "configure": command_configure,
}


def main(argv: List[str] | None = None) -> None:
    """
    CLI entry point.
    """
    colorama_init()
    args = parse_arguments(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.WARNING)

    try:
        if not args.command:
            _print_command_help("Choose a command to continue.")
            return
        if args.command == "help":
            _print_command_help("Stossymoji CLI Help")
            return
        _COMMANDS[args.command](args, Config.get_instance())
    except StossymojiError as exc:
        print(f"{Fore.RED}Error: {exc}{Style.RESET_ALL}")
        raise SystemExit(1) from exc
    except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
        print(f"{Fore.RED}Network error: {exc or exc.__class__.__name__}{Style.RESET_ALL}")
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
