"""Record service: personal-best submissions and display-name changes."""

import logging
from dataclasses import dataclass
from typing import Any, Optional, Union

from racers_api.config import Settings
from racers_api.core.best_times import order_best_times
from racers_api.core.errors import (
    AuthError,
    NotFoundError,
    UpstreamError,
    ValidationError,
    VersionConflictError,
)
from racers_api.core.normalize import normalize_difficulty, normalize_map
from racers_api.core.ranking import ALL, LeaderboardEntry, rank
from racers_api.core.records import PlayerRecord, apply_submission
from racers_api.core.result import Failed, NotFound
from racers_api.core.time_parser import format_time, parse_time
from racers_api.services.document_store import DocumentStore
from racers_api.services.leaderboard_service import record_key, snapshot_key
from racers_api.services.steam import SteamClient, extract_auth_ticket

logger = logging.getLogger(__name__)


@dataclass
class SubmitOutcome:
    """Result of a time submission."""

    is_new_record: bool
    previous_time: Optional[Union[int, float]]
    submitted_time: int
    display_name: Optional[str]
    display_name_updated: bool
    commit_url: Optional[str] = None

    @property
    def message(self) -> str:
        if not self.is_new_record:
            return "Existing time is faster"
        if self.previous_time is None:
            return "New personal best recorded!"
        return "Personal best updated!"


@dataclass
class RenameOutcome:
    """Result of a display-name change."""

    updated_files_count: int
    record_updated: bool
    commit_url: Optional[str] = None


def _coerce_time(value: Any) -> int:
    parsed = parse_time(value)
    if parsed is None or isinstance(value, bool):
        raise ValidationError(f"Invalid time: {value!r}")
    if isinstance(parsed, float):
        if not parsed.is_integer():
            raise ValidationError(f"Invalid time: {value!r}")
        parsed = int(parsed)
    if parsed < 0:
        raise ValidationError("Time must not be negative")
    return parsed


class RecordService:
    """Service for updating player records in the document store."""

    def __init__(self, store: DocumentStore, steam: SteamClient, settings: Settings):
        self.store = store
        self.steam = steam
        self.settings = settings

    async def _authenticate(
        self, platform: str, platform_user_id: str, auth_header: Optional[str]
    ) -> None:
        if platform.lower() != "steam":
            return
        ticket = extract_auth_ticket(auth_header)
        if not ticket:
            raise AuthError("Authentication required", details="Steam auth ticket required")
        if not await self.steam.verify_ticket(platform_user_id, ticket):
            raise AuthError(
                "Authentication failed", details="Invalid Steam authentication ticket"
            )

    async def _read_record(
        self, platform_user_id: str, platform: str, ref: str
    ) -> PlayerRecord:
        result = await self.store.get(record_key(self.settings, platform_user_id), ref=ref)
        if isinstance(result, NotFound):
            return PlayerRecord.new(platform_user_id, platform)
        if isinstance(result, Failed):
            raise UpstreamError("Could not read player record", details=result.reason)
        try:
            return PlayerRecord.from_document(result.value.content)
        except (ValueError, TypeError, AttributeError) as e:
            raise UpstreamError("Invalid player record", details=str(e)) from e

    async def _updated_snapshot(
        self,
        record: PlayerRecord,
        map_name: str,
        difficulty: str,
        time_ms: int,
        ref: str,
    ) -> tuple[str, list[dict]]:
        """Stored leaderboard for the board with this player's new time."""
        key = snapshot_key(self.settings, f"{map_name}_{difficulty}")
        result = await self.store.get(key, ref=ref)
        if isinstance(result, Failed):
            raise UpstreamError("Could not read leaderboard snapshot", details=result.reason)

        rows = result.value.content if not isinstance(result, NotFound) else []
        if not isinstance(rows, list):
            raise UpstreamError(f"Leaderboard snapshot {key} is not a list")

        entries = [
            LeaderboardEntry.from_dict(row)
            for row in rows
            if isinstance(row, dict)
        ]
        entries = [e for e in entries if e.platform_id != record.platform_id]
        entries.append(
            LeaderboardEntry(
                platform_id=record.platform_id,
                platform=record.platform,
                value=time_ms,
                display_name=record.display_name,
            )
        )
        return key, [entry.to_dict() for entry in rank(entries, ALL)]

    async def submit_time(
        self,
        platform: Optional[str],
        platform_user_id: Optional[str],
        map_name: Optional[str],
        difficulty: Optional[str],
        time_ms: Any,
        auth_header: Optional[str] = None,
    ) -> SubmitOutcome:
        """
        Record a run if it beats the player's personal best.

        The player document and the board's stored snapshot are written in one
        commit. If the store changes between read and write the whole update
        is recomputed, up to write_retry_attempts times.

        Raises:
            ValidationError: If a required field is missing or malformed
            AuthError: If a Steam submission lacks a valid ticket
            VersionConflictError: If every attempt lost a write race
            UpstreamError: If the store or Steam fails
        """
        map_name = normalize_map(map_name)
        difficulty = normalize_difficulty(difficulty)
        if not platform or not platform_user_id or not map_name or not difficulty or time_ms is None:
            raise ValidationError("Missing required fields")

        platform_user_id = str(platform_user_id).strip()
        submitted = _coerce_time(time_ms)
        key = record_key(self.settings, platform_user_id)
        snapshot_key(self.settings, f"{map_name}_{difficulty}")

        await self._authenticate(platform, platform_user_id, auth_header)

        persona_name = None
        if platform.lower() == "steam":
            persona_name = await self.steam.get_persona_name(platform_user_id)

        for attempt in range(1, self.settings.write_retry_attempts + 1):
            head = await self.store.head()
            record = await self._read_record(platform_user_id, platform, head)

            display_name_updated = False
            if persona_name and persona_name != record.display_name:
                logger.info(
                    f'Updated displayName from "{record.display_name}" to "{persona_name}" '
                    f"for {platform_user_id}"
                )
                record.display_name = persona_name
                display_name_updated = True

            evaluation = apply_submission(record.best_times, map_name, difficulty, submitted)
            outcome = SubmitOutcome(
                is_new_record=evaluation.is_new_record,
                previous_time=evaluation.previous_time,
                submitted_time=submitted,
                display_name=record.display_name,
                display_name_updated=display_name_updated,
            )

            if evaluation.is_new_record:
                record.best_times = evaluation.best_times
                snap_key, snapshot = await self._updated_snapshot(
                    record, map_name, difficulty, submitted, head
                )
                changes = {key: record.to_document(), snap_key: snapshot}
                message = (
                    f"{record.display_name} - {format_time(submitted)} {map_name} {difficulty}"
                )
            elif display_name_updated:
                record.best_times = order_best_times(record.best_times)
                changes = {key: record.to_document()}
                message = f"{record.display_name} - Updated display name"
            else:
                logger.info(
                    f"Existing time {evaluation.previous_time} is faster than {submitted}"
                )
                return outcome

            try:
                commit = await self.store.put(changes, expected_version=head, message=message)
            except VersionConflictError:
                logger.warning(
                    f"Write conflict for {platform_user_id} (attempt {attempt}/"
                    f"{self.settings.write_retry_attempts})"
                )
                continue

            logger.info(message)
            outcome.commit_url = commit.url
            return outcome

        raise VersionConflictError("Leaderboard changed during update, please retry")

    async def rename(
        self,
        platform_user_id: Optional[str],
        new_display_name: Optional[str],
    ) -> RenameOutcome:
        """
        Change a player's display name everywhere it is stored.

        Every stored leaderboard containing the player and the player's own
        record are rewritten in one commit.

        Raises:
            ValidationError: If either field is missing
            NotFoundError: If the player appears in no leaderboard or record
        """
        if not platform_user_id or not new_display_name:
            raise ValidationError("Missing required fields")
        platform_user_id = str(platform_user_id).strip()
        pb_key = record_key(self.settings, platform_user_id)

        for attempt in range(1, self.settings.write_retry_attempts + 1):
            head = await self.store.head()
            changes: dict[str, Any] = {}

            keys = await self.store.list_keys(self.settings.leaderboards_dir, ref=head)
            for key in keys:
                result = await self.store.get(key, ref=head)
                if isinstance(result, Failed):
                    logger.error(f"Error processing {key}: {result.reason}")
                    continue
                if isinstance(result, NotFound) or not isinstance(result.value.content, list):
                    continue

                rows = result.value.content
                matched = False
                for row in rows:
                    if not isinstance(row, dict):
                        continue
                    composite = row.get("compositeUserId") or {}
                    if str(composite.get("platformId")) == platform_user_id:
                        row["displayName"] = new_display_name
                        matched = True
                if matched:
                    changes[key] = rows

            updated_files_count = len(changes)

            record_updated = False
            result = await self.store.get(pb_key, ref=head)
            if not isinstance(result, (NotFound, Failed)) and isinstance(result.value.content, dict):
                document = result.value.content
                if document.get("displayName") != new_display_name:
                    document["displayName"] = new_display_name
                    changes[pb_key] = document
                    record_updated = True

            if not changes:
                raise NotFoundError("User not found in any leaderboard")

            message = f'Updated display name for user {platform_user_id} to "{new_display_name}"'
            try:
                commit = await self.store.put(changes, expected_version=head, message=message)
            except VersionConflictError:
                logger.warning(
                    f"Write conflict renaming {platform_user_id} (attempt {attempt}/"
                    f"{self.settings.write_retry_attempts})"
                )
                continue

            logger.info(message)
            return RenameOutcome(
                updated_files_count=updated_files_count,
                record_updated=record_updated,
                commit_url=commit.url,
            )

        raise VersionConflictError("Leaderboard changed during update, please retry")
