"""
In-memory roadmap definition: phases, sections and items
"""
import json
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

import aiofiles


@dataclass(frozen=True)
class Item:
    id: str
    title: str = ""
    type: str = "skill"


@dataclass(frozen=True)
class Section:
    id: str
    title: str = ""
    items: List[Item] = field(default_factory=list)


@dataclass(frozen=True)
class Phase:
    id: str
    title: str = ""
    sections: List[Section] = field(default_factory=list)

    def iter_items(self) -> Iterator[Tuple[Section, Item]]:
        for section in self.sections:
            for item in section.items:
                yield section, item


@dataclass(frozen=True)
class Roadmap:
    title: str = ""
    phases: List[Phase] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Roadmap":
        return cls(
            title=data.get("title", ""),
            phases=[
                Phase(
                    id=phase["id"],
                    title=phase.get("title", ""),
                    sections=[
                        Section(
                            id=section["id"],
                            title=section.get("title", ""),
                            items=[
                                Item(
                                    id=item["id"],
                                    title=item.get("title", ""),
                                    type=item.get("type", "skill"),
                                )
                                for item in section.get("items", [])
                            ],
                        )
                        for section in phase.get("sections", [])
                    ],
                )
                for phase in data.get("phases", [])
            ],
        )

    @classmethod
    async def load(cls, path: str) -> "Roadmap":
        """Read a roadmap definition from a JSON file"""
        async with aiofiles.open(path, "r", encoding="utf-8") as f:
            return cls.from_dict(json.loads(await f.read()))

    def find_phase(self, phase_id: str) -> Optional[Phase]:
        for phase in self.phases:
            if phase.id == phase_id:
                return phase
        return None

    def iter_items(self) -> Iterator[Tuple[Phase, Section, Item]]:
        for phase in self.phases:
            for section, item in phase.iter_items():
                yield phase, section, item
