"""Note content stored in {data_dir}/note_{note_id}.{ext}"""

import logging
import re
from pathlib import Path

from notestore.exceptions import ContentNotFound
from notestore.schemas.note import NoteKind

logger = logging.getLogger(__name__)

EXTENSIONS: dict[NoteKind, str] = {
    NoteKind.MARKDOWN: "md",
    NoteKind.DRAWING: "json",
}

_NOTE_FILE = re.compile(r"^note_(?P<id>[A-Za-z0-9_-]+)\.(?:md|json)$")


class ContentStore:
    def __init__(self, root: str | Path):
        self.root = Path(root)

    def _ensure_workspace(self) -> Path:
        self.root.mkdir(parents=True, exist_ok=True)
        return self.root

    def note_path(self, note_id: str, kind: NoteKind) -> Path:
        return self._ensure_workspace() / f"note_{note_id}.{EXTENSIONS[kind]}"

    def exists(self, note_id: str, kind: NoteKind) -> bool:
        return self.note_path(note_id, kind).exists()

    def load(self, note_id: str, kind: NoteKind) -> bytes:
        path = self.note_path(note_id, kind)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            raise ContentNotFound(f"No content stored for note {note_id}") from None

    def save(self, note_id: str, kind: NoteKind, content: bytes) -> None:
        # Markdown files always end with a newline; drawings are stored verbatim
        if kind == NoteKind.MARKDOWN and content and not content.endswith(b"\n"):
            content = content + b"\n"
        self.note_path(note_id, kind).write_bytes(content)

    def delete(self, note_id: str, kind: NoteKind) -> None:
        path = self.note_path(note_id, kind)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.error("Failed to delete note content", extra={"note_id": note_id, "error": str(e)})

    def take_over(self, other: "ContentStore") -> int:
        """Move every note file from another store into this one, replacing same-named files."""
        root = self._ensure_workspace()
        moved = 0
        for path in other.stored_files():
            path.replace(root / path.name)
            moved += 1
        return moved

    def stored_files(self) -> dict[Path, str]:
        """Content files present on disk, mapped to the note id they belong to."""
        if not self.root.exists():
            return {}
        found: dict[Path, str] = {}
        for path in self.root.iterdir():
            match = _NOTE_FILE.match(path.name)
            if match and path.is_file():
                found[path] = match.group("id")
        return found
