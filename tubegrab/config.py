import copy
import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from tubegrab.errors import SetupError
from tubegrab.paths import ensure_dir

DEFAULT_FORMAT = "bestvideo+bestaudio/best"

DEFAULT_PHRASES = [
    r"\s*[-|]?\s*[\(\[]?\bofficial\s+(?:music\s+|lyrics?\s+|audio\s+|hd\s+|4k\s+)?(?:video|audio|visualizer|visualiser)\b[\)\]]?",
    r"\s*[-|]?\s*[\(\[]?\blyrics?\s+video\b[\)\]]?",
    r"\s*[\(\[]\s*(?:lyrics?|audio|visualizer|hd|hq|4k|remastered)\s*[\)\]]",
    "- Topic",
]

DEFAULT_CONFIG = {
    "browser": "firefox",
    "profile": "",
    "container": "",
    "outputDirectory": str(Path.home() / "Videos"),
    "defaultFormat": DEFAULT_FORMAT,
    "outputFormat": "mkv",
    "subtitleLanguages": "en.*",
    "embedSubtitles": True,
    "embedMetadata": True,
    "cleanFilenames": True,
    "addReleaseYear": True,
    "phrasesToRemove": list(DEFAULT_PHRASES),
}

_STRING_KEYS = (
    "browser",
    "profile",
    "container",
    "outputDirectory",
    "defaultFormat",
    "outputFormat",
    "subtitleLanguages",
)
_BOOL_KEYS = ("embedSubtitles", "embedMetadata", "cleanFilenames", "addReleaseYear")


@dataclass(frozen=True)
class Settings:
    browser: str = DEFAULT_CONFIG["browser"]
    profile: str = ""
    container: str = ""
    output_directory: str = DEFAULT_CONFIG["outputDirectory"]
    default_format: str = DEFAULT_FORMAT
    output_format: str = "mkv"
    subtitle_languages: str = "en.*"
    embed_subtitles: bool = True
    embed_metadata: bool = True
    clean_filenames: bool = True
    add_release_year: bool = True
    phrases_to_remove: tuple = tuple(DEFAULT_PHRASES)

    @classmethod
    def from_config(cls, config):
        merged = dict(DEFAULT_CONFIG)
        merged.update(config or {})
        return cls(
            browser=(merged["browser"] or "").strip(),
            profile=(merged["profile"] or "").strip(),
            container=(merged["container"] or "").strip(),
            output_directory=merged["outputDirectory"] or DEFAULT_CONFIG["outputDirectory"],
            default_format=(merged["defaultFormat"] or DEFAULT_FORMAT).strip(),
            output_format=(merged["outputFormat"] or "mkv").strip().lstrip(".").lower(),
            subtitle_languages=(merged["subtitleLanguages"] or "").strip(),
            embed_subtitles=bool(merged["embedSubtitles"]),
            embed_metadata=bool(merged["embedMetadata"]),
            clean_filenames=bool(merged["cleanFilenames"]),
            add_release_year=bool(merged["addReleaseYear"]),
            phrases_to_remove=tuple(merged["phrasesToRemove"] or ()),
        )


def validate_config(config):
    errors = []
    if not isinstance(config, dict):
        return ["config must be a JSON object"]

    for key in _STRING_KEYS:
        value = config.get(key)
        if value is not None and not isinstance(value, str):
            errors.append(f"{key} must be a string")

    for key in _BOOL_KEYS:
        value = config.get(key)
        if value is not None and not isinstance(value, bool):
            errors.append(f"{key} must be true or false")

    phrases = config.get("phrasesToRemove")
    if phrases is not None:
        if not isinstance(phrases, list):
            errors.append("phrasesToRemove must be a list")
        else:
            for idx, phrase in enumerate(phrases):
                if not isinstance(phrase, str):
                    errors.append(f"phrasesToRemove[{idx}] must be a string")

    output_format = config.get("outputFormat")
    if isinstance(output_format, str) and not output_format.strip():
        errors.append("outputFormat must not be empty")

    return errors


def _write_config(path, config):
    ensure_dir(os.path.dirname(path))
    with open(path, "w") as f:
        json.dump(config, f, indent=2)
        f.write("\n")


def load_config(path):
    """Read the JSON config, creating it or backfilling missing keys from defaults."""
    if not os.path.exists(path):
        config = copy.deepcopy(DEFAULT_CONFIG)
        try:
            _write_config(path, config)
            logging.info("Created default config at %s", path)
        except OSError as exc:
            logging.warning("Could not write default config to %s: %s", path, exc)
        return config

    try:
        with open(path, "r") as f:
            config = json.load(f)
    except json.JSONDecodeError as exc:
        raise SetupError(f"Config file {path} is not valid JSON: {exc}") from exc
    except OSError as exc:
        raise SetupError(f"Config file {path} could not be read: {exc}") from exc

    errors = validate_config(config)
    if errors:
        raise SetupError(f"Config file {path} is invalid: " + "; ".join(errors))

    missing = [key for key in DEFAULT_CONFIG if key not in config]
    if missing:
        for key in missing:
            config[key] = copy.deepcopy(DEFAULT_CONFIG[key])
        logging.info("Config backfilled with defaults for: %s", ", ".join(missing))
        try:
            _write_config(path, config)
        except OSError as exc:
            logging.warning("Could not update config %s: %s", path, exc)
    return config
