import logging
import optparse
import os
import shutil
from dataclasses import dataclass, field
from enum import Enum

from yt_dlp import YoutubeDL, parse_options
from yt_dlp.utils import DownloadError

from tubegrab.catalog import auth_opts, fetch_video_info, format_catalog
from tubegrab.errors import CatalogUnavailable, FileFailure, InvalidReference, SetupError
from tubegrab.filenames import clean_filename, compile_rules, insert_release_year
from tubegrab.format_scoring import rank_streams
from tubegrab.paths import ensure_dir, resolve_output_dir
from tubegrab.references import extract_video_id, is_valid_reference, normalize_reference
from tubegrab.selection import best_video, prompt_selection, resolve_selection
from tubegrab.workspace import Workspace

OUTPUT_TEMPLATE = "%(title)s [%(id)s].%(ext)s"


class RunPhase(Enum):
    VALIDATING = "validating"
    SELECTING = "selecting"
    SCORING = "scoring"
    DOWNLOADING = "downloading"
    RELOCATING = "relocating"
    DONE = "done"
    FAILED = "failed"


@dataclass
class RunStatus:
    reference: str | None = None
    url: str | None = None
    phase: RunPhase = RunPhase.VALIDATING
    video_id: str | None = None
    title: str | None = None
    release_year: str | None = None
    selection: str | None = None
    download_code: int | None = None
    workspace_path: str | None = None
    saved: list[str] = field(default_factory=list)
    failures: list[FileFailure] = field(default_factory=list)


def _set_phase(status, phase):
    status.phase = phase
    logging.debug("[%s] Phase: %s", status.video_id or "-", phase.value)


# ------------------------------------------------------------------
# yt-dlp options
# ------------------------------------------------------------------

def passthrough_opts(args):
    """Translate raw yt-dlp CLI arguments into the options that differ from its defaults."""
    args = [str(arg) for arg in (args or [])]
    if not args:
        return {}
    try:
        defaults = parse_options([]).ydl_opts
        parsed = parse_options(args).ydl_opts
    except (SystemExit, optparse.OptParseError) as exc:
        raise SetupError(f"Invalid yt-dlp arguments: {' '.join(args)}") from exc

    diff = {key: value for key, value in parsed.items() if defaults.get(key) != value}
    if "postprocessors" in diff:
        default_pps = defaults.get("postprocessors") or []
        diff["postprocessors"] = [pp for pp in diff["postprocessors"] if pp not in default_pps]
    return diff


def _merge_extra_opts(opts, extra_opts):
    if not extra_opts:
        return
    extra = dict(extra_opts)
    extra_pps = extra.pop("postprocessors", None) or []
    opts.update(extra)
    if extra_pps:
        opts["postprocessors"] = list(opts.get("postprocessors") or []) + list(extra_pps)
    logging.info("Pass-through yt-dlp options: %s", ", ".join(sorted(extra_opts)))


def build_download_opts(settings, selection, workspace_dir, *, js_runtime=None,
                        overwrite=False, extra_opts=None):
    output_format = settings.output_format
    opts = {
        "format": selection,
        "outtmpl": OUTPUT_TEMPLATE,
        "paths": {"home": workspace_dir, "temp": workspace_dir},
        "merge_output_format": output_format,
        "noplaylist": True,
        "continuedl": True,
        "postprocessors": [
            {"key": "FFmpegVideoRemuxer", "preferedformat": output_format},
        ],
    }
    opts.update(auth_opts(settings, js_runtime))

    if settings.embed_subtitles:
        langs = [lang.strip() for lang in settings.subtitle_languages.split(",") if lang.strip()]
        opts["writesubtitles"] = True
        opts["subtitleslangs"] = langs or ["en.*"]
        opts["postprocessors"].append({"key": "FFmpegEmbedSubtitle", "already_have_subtitle": False})
    if settings.embed_metadata:
        opts["postprocessors"].append({"key": "FFmpegMetadata", "add_metadata": True, "add_chapters": True})
    if overwrite:
        opts["overwrites"] = True

    _merge_extra_opts(opts, extra_opts)
    return opts


def download(url, opts):
    """Run yt-dlp and return its exit code. Extractor errors count as code 1."""
    try:
        with YoutubeDL(opts) as ydl:
            return ydl.download([url])
    except DownloadError as exc:
        logging.warning("yt-dlp reported an error: %s", exc)
        return 1


# ------------------------------------------------------------------
# Relocation
# ------------------------------------------------------------------

def target_filename(name, settings, release_year):
    year = release_year if settings.add_release_year else None
    if settings.clean_filenames:
        cleaned = clean_filename(name, year, compile_rules(settings.phrases_to_remove))
    else:
        cleaned = insert_release_year(name, year)
    if not cleaned:
        logging.warning("Cleanup left nothing of %r; keeping the original name", name)
        return name
    return cleaned


def relocate(workspace, settings, release_year, dest_dir, *, overwrite=False, status=None):
    """Rename each produced file in place, then move it to dest_dir. Failures are per file."""
    if status is None:
        status = RunStatus()
    produced = workspace.list_media(settings.output_format)
    if not produced:
        logging.warning("No .%s files were produced in %s", settings.output_format, workspace.path)
        return status

    for path in produced:
        original = os.path.basename(path)
        new_name = target_filename(original, settings, release_year)
        current = path
        if new_name != original:
            renamed = os.path.join(os.path.dirname(path), new_name)
            try:
                if os.path.exists(renamed):
                    raise FileExistsError(f"{new_name} already exists in the workspace")
                os.rename(path, renamed)
                current = renamed
                logging.info("Renamed %s -> %s", original, new_name)
            except OSError as exc:
                logging.error("Rename failed for %s: %s", original, exc)
                status.failures.append(FileFailure(path=path, stage="rename", error=str(exc)))

        dest = os.path.join(dest_dir, os.path.basename(current))
        try:
            if os.path.exists(dest):
                if not overwrite:
                    raise FileExistsError(f"{dest} already exists (use --overwrite to replace it)")
                os.remove(dest)
            shutil.move(current, dest)
        except (OSError, shutil.Error) as exc:
            logging.error("Move failed for %s: %s", os.path.basename(current), exc)
            status.failures.append(FileFailure(path=current, stage="move", error=str(exc)))
            continue
        status.saved.append(dest)
        logging.info("Saved %s", dest)
    return status


# ------------------------------------------------------------------
# Main pipeline
# ------------------------------------------------------------------

def _validated_url(reference, status):
    _set_phase(status, RunPhase.VALIDATING)
    if not is_valid_reference(reference):
        _set_phase(status, RunPhase.FAILED)
        raise InvalidReference(reference)
    status.url = normalize_reference(reference.strip())
    status.video_id = extract_video_id(reference)
    return status.url


def _load_catalog(url, settings, js_runtime, vid):
    try:
        info = fetch_video_info(url, settings, js_runtime=js_runtime)
    except CatalogUnavailable as exc:
        logging.warning("[%s] %s", vid, exc)
        return None
    logging.info("[%s] %s: %d streams in catalog", vid, info.title or vid, len(info.streams))
    return info


def list_formats(reference, settings, *, js_runtime=None):
    """List-only mode: the ranked catalog as text."""
    status = RunStatus(reference=reference)
    url = _validated_url(reference, status)
    info = fetch_video_info(url, settings, js_runtime=js_runtime)
    if not info.streams:
        raise CatalogUnavailable(f"No downloadable streams listed for {url}")
    ranked = rank_streams(info.streams)
    best = best_video(ranked)
    return format_catalog(ranked, selected_id=best.id if best else None)


def run_download(reference, settings, *, workspace_root, explicit_format=None,
                 interactive=False, overwrite=False, js_runtime=None, extra_args=None,
                 input_func=input, output=print):
    """Validate, pick a format, download into a workspace and move the results out."""
    status = RunStatus(reference=reference)
    url = _validated_url(reference, status)
    vid = status.video_id

    try:
        extra_opts = passthrough_opts(extra_args)
        dest_dir = resolve_output_dir(settings.output_directory)
        try:
            ensure_dir(dest_dir)
        except OSError as exc:
            raise SetupError(f"Output directory {dest_dir} could not be created: {exc}") from exc

        _set_phase(status, RunPhase.SELECTING)
        info = _load_catalog(url, settings, js_runtime, vid)
        ranked = rank_streams(info.streams) if info else []
        if info:
            status.title = info.title
            status.release_year = info.release_year

        if interactive and not explicit_format and ranked:
            _set_phase(status, RunPhase.SCORING)
            selection = prompt_selection(ranked, settings.default_format, input_func=input_func, output=output)
        else:
            selection = resolve_selection(explicit_format, ranked, settings.default_format)
        status.selection = selection
        logging.info("[%s] Format selection: %s", vid, selection)

        workspace = Workspace(workspace_root, vid)
        try:
            workspace.open()
        except OSError as exc:
            raise SetupError(f"Workspace could not be created under {workspace_root}: {exc}") from exc

        with workspace:
            status.workspace_path = workspace.path
            _set_phase(status, RunPhase.DOWNLOADING)
            opts = build_download_opts(
                settings,
                selection,
                workspace.path,
                js_runtime=js_runtime,
                overwrite=overwrite,
                extra_opts=extra_opts,
            )
            status.download_code = download(url, opts)
            if status.download_code:
                logging.warning(
                    "[%s] yt-dlp exited with code %s; checking the workspace for usable output",
                    vid,
                    status.download_code,
                )

            _set_phase(status, RunPhase.RELOCATING)
            relocate(workspace, settings, status.release_year, dest_dir, overwrite=overwrite, status=status)
    except BaseException:
        _set_phase(status, RunPhase.FAILED)
        raise

    _set_phase(status, RunPhase.DONE)
    if status.failures:
        logging.warning("[%s] Finished with %d file error(s)", vid, len(status.failures))
    elif not status.saved:
        logging.warning("[%s] Finished without producing any file", vid)
    else:
        logging.info("[%s] Done", vid)
    return status
