import logging
import os
import shutil
from datetime import datetime

from tubegrab.paths import ensure_dir

_PARTIAL_SUFFIXES = (".part", ".ytdl", ".temp")


class Workspace:
    """Scratch directory owned by one run; everything yt-dlp writes lands here."""

    def __init__(self, root, video_id=None, now=None):
        self.root = root
        self.video_id = video_id
        self.created_at = now or datetime.now()
        self.path = None

    @property
    def name(self):
        stamp = self.created_at.strftime("%Y%m%d_%H%M%S")
        if self.video_id:
            return f"temp_{stamp}_{self.video_id}"
        return f"temp_{stamp}"

    def open(self):
        ensure_dir(self.root)
        base = os.path.join(self.root, self.name)
        candidate = base
        attempt = 1
        while True:
            try:
                os.makedirs(candidate)
                break
            except FileExistsError:
                attempt += 1
                candidate = f"{base}_{attempt}"
        self.path = candidate
        logging.debug("Workspace opened: %s", self.path)
        return self

    def __enter__(self):
        if self.path is None:
            self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def close(self):
        path, self.path = self.path, None
        if not path:
            return
        try:
            shutil.rmtree(path)
            logging.debug("Workspace removed: %s", path)
        except FileNotFoundError:
            pass
        except OSError as exc:
            logging.warning("Could not remove workspace %s: %s", path, exc)

    def list_media(self, extension):
        if not self.path or not os.path.isdir(self.path):
            return []
        suffix = "." + extension.lstrip(".").lower()
        found = []
        for name in sorted(os.listdir(self.path)):
            full = os.path.join(self.path, name)
            if not os.path.isfile(full) or name.endswith(_PARTIAL_SUFFIXES):
                continue
            if name.lower().endswith(suffix):
                found.append(full)
        return found
