import os
import platform
import shutil
import sys
from importlib import metadata

from tubegrab.errors import MissingPrerequisite


def normalize_js_runtime(js_runtime):
    """Accept bare binary names or paths; return 'name:/full/path' or None."""
    if not js_runtime:
        return None
    if ":" in js_runtime and not os.path.exists(js_runtime):
        return js_runtime
    path = shutil.which(js_runtime)
    if not path and os.path.exists(js_runtime):
        path = js_runtime
    if not path:
        return None
    prefix = "deno" if "deno" in os.path.basename(path).lower() else "node"
    return f"{prefix}:{path}"


def resolve_js_runtime(override=None):
    runtime = normalize_js_runtime(override or os.environ.get("TUBEGRAB_JS_RUNTIME"))
    if runtime:
        return runtime

    deno = shutil.which("deno")
    if deno:
        return f"deno:{deno}"

    node = shutil.which("node")
    if node:
        return f"node:{node}"

    return None


def check_prerequisites(js_runtime_override=None):
    """Fail fast when a tool the download depends on is missing. Returns the JS runtime."""
    if not shutil.which("ffmpeg"):
        raise MissingPrerequisite(
            "ffmpeg was not found on PATH; it is needed to merge and remux streams",
            remedy="Install ffmpeg (https://ffmpeg.org/download.html) and make sure it is on PATH.",
        )
    js_runtime = resolve_js_runtime(js_runtime_override)
    if not js_runtime:
        raise MissingPrerequisite(
            "No JavaScript runtime (deno or node) was found; YouTube needs one to unlock formats",
            remedy="Install deno (https://deno.land) or pass --js-runtime /path/to/deno.",
        )
    return js_runtime


def _package_version(name):
    try:
        return metadata.version(name)
    except metadata.PackageNotFoundError:
        return None


def get_runtime_info():
    return {
        "tubegrab": _package_version("tubegrab"),
        "yt_dlp": _package_version("yt-dlp"),
        "python": sys.version.split()[0],
        "platform": platform.platform(),
        "ffmpeg": shutil.which("ffmpeg"),
        "js_runtime": resolve_js_runtime(),
    }
