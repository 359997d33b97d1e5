import mimetypes
from pathlib import Path

DEFAULT_ROOT = Path(__file__).parent / "ui"
INDEX = "index.html"


class AssetProvider:
    """Read-only static files served under "/".

    Only files below root are reachable; anything that resolves outside it is
    treated as missing.
    """

    def __init__(self, root=None):
        self.root = Path(root or DEFAULT_ROOT).resolve()

    def get(self, name):
        """Return (content_bytes, content_type), or None if there is no such asset."""
        name = name.lstrip("/") or INDEX
        path = (self.root / name).resolve()
        if path != self.root and self.root not in path.parents:
            return None
        if path.is_dir():
            path = path / INDEX
        if not path.is_file():
            return None
        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        if content_type.startswith("text/") or content_type == "application/javascript":
            content_type += "; charset=utf-8"
        return path.read_bytes(), content_type
