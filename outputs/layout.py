"""
Download Layout
下载目录结构:

    root/<category>/<0001>_<difficulty>_<slug>/
        description/{problem.html, problem.md, problem.raw.txt, images/}
        templates/solution.<ext>
        solutions/official/{solution.md, images/}
        solutions/community/<lang>/{solution.md, images/}
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import re

from models import Item, extension_for


FOLDER_NAME_PATTERN = re.compile(r"^(\d+)_(\w+)_(.+)$")


def sanitize_folder_name(name: str) -> str:
    name = re.sub(r"[^a-zA-Z0-9]", "-", name or "")
    name = re.sub(r"-+", "-", name)
    return name.strip("-")


def item_folder_name(item: Item) -> str:
    return f"{item.id.zfill(4)}_{item.difficulty}_{item.slug}"


@dataclass(frozen=True)
class ItemLayout:
    root: Path
    item: Item

    @property
    def category(self) -> str:
        return sanitize_folder_name(self.item.primary_tag) or "uncategorized"

    @property
    def path(self) -> Path:
        return self.root / self.category / item_folder_name(self.item)

    @property
    def relative_path(self) -> str:
        return str(Path(self.root.name) / self.category / item_folder_name(self.item))

    @property
    def description_dir(self) -> Path:
        return self.path / "description"

    @property
    def templates_dir(self) -> Path:
        return self.path / "templates"

    @property
    def official_dir(self) -> Path:
        return self.path / "solutions" / "official"

    def community_dir(self, variant: str) -> Path:
        return self.path / "solutions" / "community" / variant

    def template_path(self, variant: str) -> Path:
        return self.templates_dir / f"solution.{extension_for(variant)}"

    def ensure(self) -> None:
        for directory in (self.description_dir, self.templates_dir, self.path / "solutions"):
            directory.mkdir(parents=True, exist_ok=True)
