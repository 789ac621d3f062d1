"""
Durable local progress cache

The file holds a nested JSON object::

    {phaseId: {sectionId: {itemId: {completed?, inProgress?, startedAt?,
                                    completedAt?, syncState}}}}

An entry with neither ``completed`` nor ``inProgress`` is a not-started
write still waiting to be pushed.
"""
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Tuple

import aiofiles
import aiofiles.os

from roadmap_tracker.enums import ProgressStatus

logger = logging.getLogger(__name__)

Entry = Dict[str, Any]


def entry_status(entry: Entry) -> str:
    if entry.get("completed"):
        return ProgressStatus.COMPLETED.value
    if entry.get("inProgress"):
        return ProgressStatus.IN_PROGRESS.value
    return ProgressStatus.NOT_STARTED.value


class LocalProgressCache:
    """Nested phase/section/item map persisted to a JSON file with aiofiles"""

    def __init__(self, path: str):
        self.path = Path(path)
        self.entries: Dict[str, Dict[str, Dict[str, Entry]]] = {}
        self.loaded = False

    async def load(self) -> None:
        """Read the cache file once; a missing or corrupt file starts empty"""
        self.entries = {}
        if await aiofiles.os.path.exists(self.path):
            async with aiofiles.open(self.path, "r", encoding="utf-8") as f:
                raw = await f.read()
            try:
                data = json.loads(raw) if raw.strip() else {}
            except json.JSONDecodeError as e:
                logger.warning(f"Ignoring unreadable progress cache {self.path}: {e}")
                data = {}
            if isinstance(data, dict):
                self.entries = data
        self.loaded = True

    async def save(self) -> None:
        parent = self.path.parent
        if str(parent) not in ("", "."):
            await aiofiles.os.makedirs(parent, exist_ok=True)

        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
            await f.write(json.dumps(self.entries, indent=2, sort_keys=True))
        await aiofiles.os.replace(tmp_path, self.path)

    def get(self, item_id: str, phase_id: str, section_id: str) -> Optional[Entry]:
        return self.entries.get(phase_id, {}).get(section_id, {}).get(item_id)

    def find(self, item_id: str) -> Optional[Tuple[str, str, Entry]]:
        """Locate an item without knowing its phase and section"""
        for phase_id, sections in self.entries.items():
            for section_id, items in sections.items():
                if item_id in items:
                    return phase_id, section_id, items[item_id]
        return None

    def put(self, item_id: str, phase_id: str, section_id: str, entry: Entry) -> None:
        self.entries.setdefault(phase_id, {}).setdefault(section_id, {})[item_id] = entry

    def remove(self, item_id: str, phase_id: str, section_id: str) -> None:
        """Drop an entry and prune the section and phase maps it leaves empty"""
        sections = self.entries.get(phase_id)
        if not sections or section_id not in sections:
            return

        sections[section_id].pop(item_id, None)
        if not sections[section_id]:
            del sections[section_id]
        if not sections:
            del self.entries[phase_id]

    def iter_entries(self) -> Iterator[Tuple[str, str, str, Entry]]:
        for phase_id, sections in list(self.entries.items()):
            for section_id, items in list(sections.items()):
                for item_id, entry in list(items.items()):
                    yield phase_id, section_id, item_id, entry
