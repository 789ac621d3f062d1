"""
Offline-capable progress client

Writes go to the backend first. When it cannot be reached the write lands
in the local cache marked ``pending_push`` and the client switches to
offline mode, where reads use the cache only. Writes keep trying the
backend; the first one that gets through brings the client back online
and runs ``sync_progress_with_backend``, which pushes what is pending.
Items whose backend status moved on in the meantime become ``conflict``
until ``resolve_conflict`` picks a side.

Usage:
    roadmap = await Roadmap.load("roadmap.json")
    client = ReconciliationClient(api, LocalProgressCache("progress.json"), roadmap)
    await client.mark_completed("html-css", "phase1", "month1")
    summary = await client.sync_progress_with_backend()
"""
import logging
from typing import Any, Dict, Optional

from roadmap_tracker.client.api_client import (
    BackendRejectedError, BackendUnavailableError, RoadmapApiClient
)
from roadmap_tracker.client.curriculum import Phase, Roadmap
from roadmap_tracker.client.local_cache import Entry, LocalProgressCache, entry_status
from roadmap_tracker.enums import ConflictPreference, ProgressStatus, SyncState
from roadmap_tracker.utils.clock import Clock, utcnow

logger = logging.getLogger(__name__)


def _progress_summary(total: int, completed: int, in_progress: int) -> Dict[str, int]:
    return {
        "total_items": total,
        "completed_items": completed,
        "in_progress_items": in_progress,
        "not_started_items": max(total - completed - in_progress, 0),
        "completion_percentage": round(completed / total * 100) if total else 0,
    }


class ReconciliationClient:
    """Keeps a local progress cache consistent with the backend"""

    def __init__(
        self,
        api: RoadmapApiClient,
        cache: LocalProgressCache,
        roadmap: Optional[Roadmap] = None,
        clock: Clock = utcnow,
    ):
        self.api = api
        self.cache = cache
        self.roadmap = roadmap or Roadmap()
        self.clock = clock
        self.online = True

    async def _ensure_loaded(self) -> None:
        if not self.cache.loaded:
            await self.cache.load()

    def _go_offline(self, error: BackendUnavailableError) -> None:
        if self.online:
            logger.warning(f"Backend unavailable, switching to offline mode: {error}")
        self.online = False

    # ------------------------------------------------------------------
    # Cache entry translation
    # ------------------------------------------------------------------

    @staticmethod
    def _entry_from_record(record: Dict[str, Any], sync_state: SyncState) -> Entry:
        entry: Entry = {"syncState": sync_state.value}
        if record["status"] == ProgressStatus.COMPLETED.value:
            entry["completed"] = True
            entry["completedAt"] = record.get("completedAt")
        elif record["status"] == ProgressStatus.IN_PROGRESS.value:
            entry["inProgress"] = True
        if record.get("startedAt"):
            entry["startedAt"] = record["startedAt"]
        return entry

    def _local_entry(self, status: str, existing: Optional[Entry]) -> Entry:
        """Entry for a write made while the backend is unreachable"""
        now = self.clock().isoformat()
        started_at = (existing or {}).get("startedAt")
        entry: Entry = {"syncState": SyncState.PENDING_PUSH.value}

        if status == ProgressStatus.COMPLETED.value:
            entry["completed"] = True
            entry["startedAt"] = started_at or now
            entry["completedAt"] = (
                existing.get("completedAt")
                if existing and existing.get("completed")
                else now
            )
        elif status == ProgressStatus.IN_PROGRESS.value:
            entry["inProgress"] = True
            entry["startedAt"] = started_at or now
        return entry

    def _mirror(self, record: Dict[str, Any]) -> None:
        """Store the backend's authoritative record as synced"""
        item_id, phase_id, section_id = record["itemId"], record["phaseId"], record["sectionId"]
        if record["status"] == ProgressStatus.NOT_STARTED.value:
            self.cache.remove(item_id, phase_id, section_id)
        else:
            self.cache.put(item_id, phase_id, section_id, self._entry_from_record(record, SyncState.SYNCED))

    @staticmethod
    def _view(item_id: str, phase_id: str, section_id: str, entry: Entry) -> Dict[str, Any]:
        return {
            "item_id": item_id,
            "phase_id": phase_id,
            "section_id": section_id,
            "status": entry_status(entry),
            "started_at": entry.get("startedAt"),
            "completed_at": entry.get("completedAt"),
            "sync_state": entry.get("syncState", SyncState.SYNCED.value),
        }

    def _record_view(self, record: Dict[str, Any]) -> Dict[str, Any]:
        return self._view(
            record["itemId"],
            record["phaseId"],
            record["sectionId"],
            self._entry_from_record(record, SyncState.SYNCED),
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def _mark(self, item_id: str, phase_id: str, section_id: str, status: ProgressStatus) -> Dict[str, Any]:
        await self._ensure_loaded()

        # Writes always try the backend, even in offline mode
        try:
            record = await self.api.upsert_progress(item_id, phase_id, section_id, status.value)
        except BackendUnavailableError as e:
            self._go_offline(e)
        else:
            reconnected = not self.online
            self.online = True
            self._mirror(record)
            await self.cache.save()
            if reconnected:
                logger.info("Backend reachable again, syncing pending writes")
                await self.sync_progress_with_backend()
            return self._record_view(record)

        existing = self.cache.get(item_id, phase_id, section_id)
        entry = self._local_entry(status.value, existing)
        self.cache.put(item_id, phase_id, section_id, entry)
        await self.cache.save()
        logger.info(f"Cached {status.value} for {item_id} pending push")
        return self._view(item_id, phase_id, section_id, entry)

    async def mark_completed(self, item_id: str, phase_id: str, section_id: str) -> Dict[str, Any]:
        return await self._mark(item_id, phase_id, section_id, ProgressStatus.COMPLETED)

    async def mark_in_progress(self, item_id: str, phase_id: str, section_id: str) -> Dict[str, Any]:
        return await self._mark(item_id, phase_id, section_id, ProgressStatus.IN_PROGRESS)

    async def mark_not_started(self, item_id: str, phase_id: str, section_id: str) -> Dict[str, Any]:
        return await self._mark(item_id, phase_id, section_id, ProgressStatus.NOT_STARTED)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_item_progress(self, item_id: str) -> Optional[Dict[str, Any]]:
        """
        Progress for one item, or None when there is none

        Asks the backend while online and falls back to the cache otherwise.
        """
        await self._ensure_loaded()

        if self.online:
            try:
                record = await self.api.get_item(item_id)
            except BackendUnavailableError as e:
                self._go_offline(e)
            else:
                return self._record_view(record) if record else None

        found = self.cache.find(item_id)
        if found is None:
            return None
        phase_id, section_id, entry = found
        return self._view(item_id, phase_id, section_id, entry)

    def _local_counts(self, phase: Phase):
        completed = in_progress = total = 0
        for section, item in phase.iter_items():
            total += 1
            entry = self.cache.get(item.id, phase.id, section.id)
            status = entry_status(entry) if entry else ProgressStatus.NOT_STARTED.value
            if status == ProgressStatus.COMPLETED.value:
                completed += 1
            elif status == ProgressStatus.IN_PROGRESS.value:
                in_progress += 1
        return total, completed, in_progress

    async def calculate_overall_progress(self) -> Dict[str, int]:
        """
        Completion summary across the whole roadmap

        Item totals always come from the roadmap definition; completed and
        in-progress counts come from the backend when reachable.
        """
        await self._ensure_loaded()
        total = sum(1 for _ in self.roadmap.iter_items())

        if self.online:
            try:
                overview = await self.api.get_overview()
            except BackendUnavailableError as e:
                self._go_offline(e)
            else:
                return _progress_summary(
                    total or overview["totalItems"],
                    overview["completedItems"],
                    overview["inProgressItems"],
                )

        completed = in_progress = 0
        for phase in self.roadmap.phases:
            _, phase_completed, phase_in_progress = self._local_counts(phase)
            completed += phase_completed
            in_progress += phase_in_progress
        return _progress_summary(total, completed, in_progress)

    async def calculate_phase_progress(self, phase_id: str) -> Dict[str, int]:
        """
        Completion summary for one phase

        Online, counts come from the backend's section breakdown and the item
        total from the roadmap, or from the backend when the roadmap does not
        define the phase. Offline, the roadmap must define it.

        Raises:
            KeyError: offline and the phase is not in the roadmap
        """
        await self._ensure_loaded()
        phase = self.roadmap.find_phase(phase_id)

        if self.online:
            try:
                sections = await self.api.get_phase_progress(phase_id)
            except BackendUnavailableError as e:
                self._go_offline(e)
            else:
                if phase is not None:
                    total = sum(1 for _ in phase.iter_items())
                else:
                    total = sum(s["totalItems"] for s in sections)
                return _progress_summary(
                    total,
                    sum(s["completedItems"] for s in sections),
                    sum(s["inProgressItems"] for s in sections),
                )

        if phase is None:
            raise KeyError(f"Phase {phase_id} is not in the roadmap; its progress cannot be computed offline")
        return _progress_summary(*self._local_counts(phase))

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    async def sync_progress_with_backend(self) -> Dict[str, int]:
        """
        Reconcile every cached item with the backend

        - Items the backend does not have are pushed, then marked synced
        - Pending items whose backend status already matches become synced
        - Pending items whose backend status differs become conflicts
        - Synced items are refreshed from the backend

        Returns:
            Counts of pushed, synced, conflicts and failed items
        """
        await self._ensure_loaded()
        summary = {"pushed": 0, "synced": 0, "conflicts": 0, "failed": 0}

        try:
            remote = await self.api.list_all_progress()
        except BackendUnavailableError as e:
            self._go_offline(e)
            summary["failed"] = sum(
                1 for *_, entry in self.cache.iter_entries()
                if entry.get("syncState") == SyncState.PENDING_PUSH.value
            )
            return summary

        if not self.online:
            logger.info("Backend reachable again, back online")
        self.online = True

        for phase_id, section_id, item_id, entry in self.cache.iter_entries():
            local_status = entry_status(entry)
            state = entry.get("syncState", SyncState.SYNCED.value)
            backend = remote.get(item_id)

            if backend is None:
                if local_status == ProgressStatus.NOT_STARTED.value:
                    self.cache.remove(item_id, phase_id, section_id)
                    summary["synced"] += 1
                    continue
                if not self.online:
                    summary["failed"] += 1
                    continue
                try:
                    record = await self.api.upsert_progress(item_id, phase_id, section_id, local_status)
                except BackendUnavailableError as e:
                    self._go_offline(e)
                    summary["failed"] += 1
                except BackendRejectedError as e:
                    logger.warning(f"Backend rejected push for {item_id}: {e.message}")
                    summary["failed"] += 1
                else:
                    self._mirror(record)
                    summary["pushed"] += 1
            elif state == SyncState.PENDING_PUSH.value:
                if backend["status"] == local_status:
                    self._mirror(backend)
                    summary["synced"] += 1
                else:
                    entry["syncState"] = SyncState.CONFLICT.value
                    summary["conflicts"] += 1
                    logger.warning(
                        f"Conflict on {item_id}: local={local_status} backend={backend['status']}"
                    )
            elif state == SyncState.CONFLICT.value:
                summary["conflicts"] += 1
            else:
                # Already synced: take whatever the backend holds now
                self._mirror(backend)

        await self.cache.save()
        logger.info(f"Sync finished: {summary}")
        return summary

    async def resolve_conflict(self, item_id: str, prefer: str) -> Optional[Dict[str, Any]]:
        """
        Settle one conflicted item

        Args:
            item_id: Item in conflict
            prefer: "local" pushes the cached state, "backend" overwrites the cache

        Raises:
            KeyError: the item is not in the local cache
            ValueError: prefer is not local or backend
        """
        preference = ConflictPreference(prefer)
        await self._ensure_loaded()

        found = self.cache.find(item_id)
        if found is None:
            raise KeyError(f"No cached progress for item {item_id}")
        phase_id, section_id, entry = found

        try:
            if preference == ConflictPreference.LOCAL:
                record = await self.api.upsert_progress(
                    item_id, phase_id, section_id, entry_status(entry)
                )
            else:
                record = await self.api.get_item(item_id)
        except BackendUnavailableError as e:
            self._go_offline(e)
            raise

        if record is None:
            self.cache.remove(item_id, phase_id, section_id)
            await self.cache.save()
            return None

        self._mirror(record)
        await self.cache.save()
        return self._record_view(record)
