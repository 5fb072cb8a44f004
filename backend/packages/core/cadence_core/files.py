"""JSON file helpers shared by the registry and snapshot stores."""

import json
import os
import tempfile
from pathlib import Path
from typing import Any


def dump_json(document: Any) -> str:
    """Pretty-print a document the way every data file is stored: 2-space indent, UTF-8."""
    return json.dumps(document, indent=2, ensure_ascii=False) + "\n"


def write_atomic(path: Path, content: str) -> None:
    """Write ``content`` to ``path`` through a temp file so readers never see a partial file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(content)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
