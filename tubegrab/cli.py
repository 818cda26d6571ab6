"""
Fetch one YouTube video with the best scored stream pair and a clean filename.
- Scores every stream yt-dlp lists (resolution, codec efficiency, bitrate, fps, Premium).
- Downloads into a throwaway workspace that is removed on every exit path.
- Renames the result (id tag, junk phrases, illegal characters, release year) into the output directory.
"""

import argparse
import dataclasses
import json
import logging
import os
import sys

from tubegrab.config import Settings, load_config
from tubegrab.core import list_formats, run_download
from tubegrab.errors import CatalogUnavailable, InvalidReference, MissingPrerequisite, TubegrabError
from tubegrab.paths import build_tool_paths, ensure_dir
from tubegrab.references import VIDEO_ID_RE, is_valid_reference
from tubegrab.runtime import check_prerequisites, get_runtime_info

_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


def _setup_logging(log_dir, verbose=False):
    level = logging.DEBUG if verbose else logging.INFO
    root = logging.getLogger("")
    root.setLevel(level)
    if getattr(root, "_tubegrab_configured", False):
        return
    root._tubegrab_configured = True
    try:
        ensure_dir(log_dir)
        file_handler = logging.FileHandler(os.path.join(log_dir, "tubegrab.log"))
        file_handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        root.addHandler(file_handler)
    except OSError as exc:
        print(f"WARNING: file logging disabled ({exc})", file=sys.stderr)
    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter(_LOG_FORMAT))
    console.setLevel(level)
    root.addHandler(console)
    # yt-dlp is chatty at debug level; only surface its warnings
    logging.getLogger("yt_dlp").setLevel(logging.DEBUG if verbose else logging.WARNING)


def build_parser():
    parser = argparse.ArgumentParser(
        prog="tubegrab",
        description="Download a YouTube video with the best scored format and a clean filename.",
        epilog="Arguments after a bare -- are passed to yt-dlp verbatim, e.g. tubegrab URL -- --limit-rate 1M",
    )
    parser.add_argument("reference", nargs="?", help="Video URL (watch, youtu.be or embed) or 11-character id.")
    parser.add_argument("-b", "--browser", help="Browser to read cookies from (e.g. firefox, chrome). Pass '' to disable.")
    parser.add_argument("-p", "--profile", help="Browser profile name or path for cookies.")
    parser.add_argument("-c", "--container", help="Browser container for cookies (Firefox).")
    parser.add_argument("-f", "--format", dest="explicit_format", help="Stream id or yt-dlp format expression; a bare id gets +bestaudio.")
    parser.add_argument("-l", "--list", action="store_true", help="List scored formats and exit.")
    parser.add_argument("-i", "--interactive", action="store_true", help="Show scored formats and prompt for a choice.")
    parser.add_argument("--overwrite", action="store_true", help="Overwrite existing files.")
    parser.add_argument("--no-clean", action="store_true", help="Keep the filename yt-dlp produced.")
    parser.add_argument("--no-year", action="store_true", help="Do not add the release year to the filename.")
    parser.add_argument("-o", "--output-dir", help="Directory for the finished file.")
    parser.add_argument("--output-format", help="Output container (e.g. mkv, mp4, webm).")
    parser.add_argument("--config", default=None, help="Config file (default: <home>/config.json).")
    parser.add_argument("--js-runtime", help="JS runtime for yt-dlp (e.g. deno, node:/usr/bin/node).")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    parser.add_argument("--version", action="store_true", help="Show version info and exit.")
    return parser


def apply_overrides(settings, args):
    overrides = {}
    if args.browser is not None:
        overrides["browser"] = args.browser.strip()
    if args.profile is not None:
        overrides["profile"] = args.profile.strip()
    if args.container is not None:
        overrides["container"] = args.container.strip()
    if args.output_dir:
        overrides["output_directory"] = args.output_dir
    if args.output_format:
        overrides["output_format"] = args.output_format.strip().lstrip(".").lower()
    if args.no_clean:
        overrides["clean_filenames"] = False
    if args.no_year:
        overrides["add_release_year"] = False
    if not overrides:
        return settings
    return dataclasses.replace(settings, **overrides)


def _print_formats(reference, settings, js_runtime):
    try:
        print(list_formats(reference, settings, js_runtime=js_runtime))
    except CatalogUnavailable as exc:
        logging.warning("%s", exc)
        print(f"Format list unavailable; a download would use: {settings.default_format}")
    return 0


def split_passthrough(argv):
    """Split argv at the first bare -- into (own args, yt-dlp args)."""
    argv = list(argv)
    if "--" not in argv:
        return argv, []
    idx = argv.index("--")
    return argv[:idx], argv[idx + 1:]


def split_dash_id(parser, argv):
    """Pull out a bare video id that starts with "-" so argparse does not read it as an option."""
    known = {opt for action in parser._actions for opt in action.option_strings}
    for idx, arg in enumerate(argv):
        if arg.startswith("-") and arg not in known and VIDEO_ID_RE.match(arg):
            return arg, argv[:idx] + argv[idx + 1:]
    return None, argv


def main(argv=None):
    own_args, ytdlp_args = split_passthrough(sys.argv[1:] if argv is None else argv)
    parser = build_parser()
    dash_id, own_args = split_dash_id(parser, own_args)
    args = parser.parse_args(own_args)
    if dash_id:
        if args.reference:
            parser.error("only one video URL or id can be given")
        args.reference = dash_id

    if args.version:
        print(json.dumps(get_runtime_info(), indent=2))
        return 0
    if not args.reference:
        parser.error("a video URL or id is required")

    paths = build_tool_paths(config_path=args.config)
    _setup_logging(paths.log_dir, verbose=args.verbose)
    if not is_valid_reference(args.reference):
        logging.error("%s", InvalidReference(args.reference))
        return 1

    try:
        settings = apply_overrides(Settings.from_config(load_config(paths.config_path)), args)
        js_runtime = check_prerequisites(args.js_runtime)
        if args.list:
            return _print_formats(args.reference, settings, js_runtime)
        status = run_download(
            args.reference,
            settings,
            workspace_root=paths.workspace_root,
            explicit_format=args.explicit_format,
            interactive=args.interactive,
            overwrite=args.overwrite,
            js_runtime=js_runtime,
            extra_args=ytdlp_args,
        )
    except MissingPrerequisite as exc:
        logging.error("%s", exc)
        if exc.remedy:
            logging.error("Fix: %s", exc.remedy)
        return 1
    except TubegrabError as exc:
        logging.error("%s", exc)
        return 1
    except KeyboardInterrupt:
        logging.warning("Interrupted")
        return 130

    for path in status.saved:
        print(path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
