"""Room data model for managed rooms."""

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from roombot.models.visibility import DEFAULT_VISIBILITY, DISCOVERED_VISIBILITY, Visibility


def _parse_timestamp(value: Any) -> datetime:
    """Read a stored timestamp (ISO string or epoch milliseconds)."""
    if value is None or value == "":
        return datetime.now()
    if isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000)
        except (OverflowError, OSError) as e:
            raise ValueError(f"Timestamp out of range: {value!r}") from e
    return datetime.fromisoformat(value)


@dataclass
class Room:
    """A chat room managed by the bot, keyed by its title."""

    title: str
    group_id: str  # Platform id (vgroupid), used for every platform call
    owner: Optional[str] = None  # Creator; None when discovered by sync
    visibility: Visibility = DEFAULT_VISIBILITY
    created: datetime = field(default_factory=datetime.now)
    last_updated: datetime = field(default_factory=datetime.now)
    description: str = ""
    members: List[str] = field(default_factory=list)
    moderators: List[str] = field(default_factory=list)

    def __post_init__(self):
        self.visibility = Visibility.coerce(self.visibility)

    def is_owner(self, user: str) -> bool:
        return self.owner is not None and user == self.owner

    def is_moderator(self, user: str) -> bool:
        return user in self.moderators

    def is_member(self, user: str) -> bool:
        return user in self.members

    def add_member(self, user: str) -> bool:
        """Add a user to the member list.

        Returns:
            True if added, False if already a member
        """
        if user in self.members:
            return False
        self.members.append(user)
        return True

    def describe(self) -> str:
        """Render every field as indented JSON for authorized viewers."""
        return json.dumps({"title": self.title, **self.to_record()}, indent=2)

    def to_record(self) -> Dict[str, Any]:
        """Serialize to the persisted record (title is the mapping key)."""
        return {
            "group_id": self.group_id,
            "owner": self.owner,
            "visibility": self.visibility.value,
            "description": self.description,
            "members": list(self.members),
            "moderators": list(self.moderators),
            "created": self.created.isoformat(),
            "last_updated": self.last_updated.isoformat(),
        }

    @classmethod
    def from_record(cls, title: str, data: Dict[str, Any]) -> "Room":
        """Rebuild a room from its persisted record.

        Legacy camelCase records (``vgroupid``, ``lastUpdated``) are read
        as well.

        Raises:
            KeyError: If the record has no group id
            ValueError: If a timestamp cannot be parsed
        """
        return cls(
            title=title,
            group_id=data["group_id"] if "group_id" in data else data["vgroupid"],
            owner=data.get("owner"),
            visibility=data.get("visibility", DEFAULT_VISIBILITY.value),
            created=_parse_timestamp(data.get("created")),
            last_updated=_parse_timestamp(data.get("last_updated", data.get("lastUpdated"))),
            description=data.get("description") or "",
            members=list(data.get("members") or []),
            moderators=list(data.get("moderators") or []),
        )

    @classmethod
    def from_platform(cls, data: Dict[str, Any]) -> "Room":
        """Build a transient room view from one entry of the platform room list.

        The platform does not know about titles-as-identity or visibility,
        so the view is hidden and ownerless until merged.

        Args:
            data: Room entry with ``vgroupid``, ``title``, ``description``,
                ``members`` and ``masters`` (lists of ``{"name": ...}``)

        Raises:
            KeyError: If a required field is missing
            TypeError: If members or masters are not lists of objects
        """
        return cls(
            title=data["title"],
            group_id=data["vgroupid"],
            visibility=DISCOVERED_VISIBILITY,
            description=data.get("description") or "",
            members=[m["name"] for m in data["members"]],
            moderators=[m["name"] for m in data["masters"]],
        )
