"""Template source: raw template documents read by name from a directory.

The templates packaged under `provisioner/templates/files/` are used unless
TEMPLATE_DIR points somewhere else (e.g. a mounted volume maintained by the
platform team).
"""

from pathlib import Path
from typing import Optional

PACKAGED_TEMPLATE_DIR = Path(__file__).parent / "files"


class TemplateSource:
    def __init__(self, directory: Optional[Path] = None) -> None:
        self.directory = Path(directory) if directory else PACKAGED_TEMPLATE_DIR

    def read(self, name: str) -> str:
        """Return the raw text of template `name`.

        Raises:
            ValueError: `name` is not a bare file name.
            FileNotFoundError: no such template.
        """
        if not name or Path(name).name != name:
            raise ValueError(f"Invalid template name: {name!r}")
        return (self.directory / name).read_text(encoding="utf-8")


def get_template_source(template_dir: str = "") -> TemplateSource:
    return TemplateSource(Path(template_dir) if template_dir else None)
