"""CLI for fenceplus - titled, numbered and highlighted code blocks."""

import argparse
import asyncio
import json
import logging
import platform
import sys
from pathlib import Path
from typing import Any

from . import __version__
from .core.directives import directives_to_data, expand_line_ranges
from .reading.processor import render_page
from .runtime import build_runtime


def setup_logging(level: str) -> None:
    """One stderr handler on the package logger."""
    logger = logging.getLogger("fenceplus")
    logger.setLevel(getattr(logging, level.upper(), logging.WARNING))
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
        logger.addHandler(handler)


def cmd_fence(args: argparse.Namespace, rt: Any) -> int:
    """Print the directives of a fence-open line."""
    data = directives_to_data(args.line)
    if data is None:
        print("Not a fence-open line with a language tag", file=sys.stderr)
        return 1
    if args.json:
        print(json.dumps(data, indent=2))
        return 0
    print(f"Language: {data['language_tag']}")
    print(f"Title: {data['title']}")
    print(f"Highlight: {','.join(str(n) for n in data['highlight_lines'])}")
    print(f"Collapsed: {'yes' if data['collapsed'] else 'no'}")
    return 0


def cmd_expand(args: argparse.Namespace, rt: Any) -> int:
    """Print the lines an HL payload covers."""
    lines = expand_line_ranges(args.payload)
    if args.json:
        print(json.dumps(lines))
    else:
        print(" ".join(str(n) for n in lines))
    return 0


def cmd_render(args: argparse.Namespace, rt: Any) -> int:
    """Render a note to reading-view HTML."""
    result = asyncio.run(rt.render_file(args.file, export=args.export))
    if result is None:
        print(f"Note {args.file} not found", file=sys.stderr)
        return 1

    page = render_page(result.html, title=Path(args.file).stem)
    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(page, encoding="utf-8")
        if not args.quiet:
            print(f"Wrote {args.output} ({len(result.occurrences)} code blocks)")
    else:
        print(page)
    return 0


def cmd_decorations(args: argparse.Namespace, rt: Any) -> int:
    """Dump live-preview decorations for a note."""
    text = rt.reader.read_sync(args.file)
    if text is None:
        print(f"Note {args.file} not found", file=sys.stderr)
        return 1

    viewport = (
        args.from_ if args.from_ is not None else 0,
        args.to if args.to is not None else len(text),
    )
    decorations = rt.decorations_for(text, viewport)

    if args.json:
        print(json.dumps([d.to_data() for d in decorations], indent=2))
        return 0
    for deco in decorations:
        if deco.widget is not None:
            print(f"{deco.from_:>6}  widget  line {deco.widget.number}")
        elif deco.css_class:
            print(f"{deco.from_:>6}  line    class={deco.css_class}")
        else:
            print(f"{deco.from_:>6}  line    style={deco.attributes.get('style', '')}")
    return 0


def cmd_settings(args: argparse.Namespace, rt: Any) -> int:
    """Show effective settings, or persist new values."""
    if args.set:
        settings = rt.settings
        for kv in args.set:
            key, sep, value = kv.partition("=")
            if not sep:
                print(f"Error: expected KEY=VALUE, got {kv!r}", file=sys.stderr)
                return 1
            try:
                settings = settings.with_value(key.strip(), value.strip())
            except KeyError:
                print(f"Error: unknown setting {key.strip()!r}", file=sys.stderr)
                return 1
            except ValueError as e:
                print(f"Error: {e}", file=sys.stderr)
                return 1
        rt.settings = settings
        rt.save_settings()
        if not args.quiet:
            print(f"Saved {rt.store.path}")

    data = rt.settings.to_data()
    if args.json:
        print(json.dumps(data, indent=2))
    elif not args.set or not args.quiet:
        for key, value in data.items():
            print(f"{key}: {value if value is not None else ''}")
    return 0


def cmd_watch(args: argparse.Namespace, rt: Any) -> int:
    """Watch the vault and re-render changed notes."""
    from .watch import watch_vault

    return watch_vault(
        rt,
        out_dir=args.out,
        debounce_ms=args.debounce_ms,
        quiet=args.quiet,
        json_output=args.json,
    )


def cmd_serve(args: argparse.Namespace, rt: Any) -> int:
    """Start local JSON API server."""
    import uvicorn

    from .api.app import create_app, generate_token

    token_arg = getattr(args, 'token', 'auto')
    token = None

    if token_arg == 'auto':
        token = generate_token()
        print(f"Generated bearer token: {token}")
        print(f"Use in requests: Authorization: Bearer {token}")
    elif token_arg == 'none':
        print("Warning: Running without authentication. Only use in trusted environments.")
        token = None
    else:
        token = token_arg

    app = create_app(rt, token=token, enable_cors=args.cors)

    print(f"Starting fenceplus API on http://{args.host}:{args.port}")
    uvicorn.run(app, host=args.host, port=args.port, log_level="warning")
    return 0


def version_string() -> str:
    return (
        f"fenceplus {__version__} "
        f"(python {platform.python_version()}, platform {platform.system().lower()})"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fenceplus", description="fenceplus CLI"
    )
    parser.add_argument(
        "--version", action="version", version=version_string()
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config file (default: search cwd/fenceplus.toml, vault/fenceplus.toml)",
    )
    parser.add_argument(
        "--vault",
        type=Path,
        default=None,
        help="Path to vault directory (overrides config)",
    )
    parser.add_argument(
        "-q", "--quiet", action="store_true", help="Minimize output"
    )
    parser.add_argument(
        "--json", action="store_true", help="Machine-readable output"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Debug logging"
    )

    subparsers = parser.add_subparsers(dest="cmd", required=True)

    parser_fence = subparsers.add_parser("fence", help="Parse a fence-open line")
    parser_fence.add_argument("line", help='e.g. \'```python TI:"demo.py" HL:"1-2"\'')

    parser_expand = subparsers.add_parser("expand", help="Expand an HL payload")
    parser_expand.add_argument("payload", help='e.g. "1-3,5"')

    parser_render = subparsers.add_parser("render", help="Render a note to HTML")
    parser_render.add_argument("file", help="Vault-relative note path")
    parser_render.add_argument("-o", "--output", type=Path, default=None, help="Write HTML here")
    parser_render.add_argument(
        "--export", action="store_true",
        help="Recover text from storage instead of the buffer (print/export path)"
    )

    parser_decorations = subparsers.add_parser(
        "decorations", help="Dump live-preview decorations"
    )
    parser_decorations.add_argument("file", help="Vault-relative note path")
    parser_decorations.add_argument("--from", dest="from_", type=int, default=None, help="Viewport start offset")
    parser_decorations.add_argument("--to", type=int, default=None, help="Viewport end offset")

    parser_settings = subparsers.add_parser("settings", help="Show or persist settings")
    parser_settings.add_argument(
        "--set", action="append", default=[], metavar="KEY=VALUE",
        help="Persist a setting (repeatable), e.g. showLineNumber=false"
    )

    parser_watch = subparsers.add_parser("watch", help="Re-render notes on change")
    parser_watch.add_argument(
        "--out", type=Path, default=Path("site"),
        help="Output directory (default: site)"
    )
    parser_watch.add_argument(
        "--debounce-ms", type=int, default=150,
        help="Debounce window in milliseconds (default: 150)"
    )

    parser_serve = subparsers.add_parser("serve", help="Start local JSON API server")
    parser_serve.add_argument(
        "--host", default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1)"
    )
    parser_serve.add_argument(
        "--port", type=int, default=8766,
        help="Port to bind to (default: 8766)"
    )
    parser_serve.add_argument(
        "--token", default="auto",
        help="Bearer token (auto|<string>|none, default: auto)"
    )
    parser_serve.add_argument(
        "--cors", action="store_true",
        help="Enable CORS (default: false)"
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    rt = build_runtime(vault_path=args.vault, config_path=args.config)
    setup_logging("DEBUG" if args.verbose else rt.config.logging.level)

    handlers = {
        "fence": cmd_fence,
        "expand": cmd_expand,
        "render": cmd_render,
        "decorations": cmd_decorations,
        "settings": cmd_settings,
        "watch": cmd_watch,
        "serve": cmd_serve,
    }

    handler = handlers.get(args.cmd)
    if handler:
        try:
            exit_code = handler(args, rt)
            sys.exit(exit_code)
        except Exception as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
    else:
        print(f"Unknown command: {args.cmd}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
