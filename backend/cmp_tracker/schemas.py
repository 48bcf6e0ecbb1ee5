"""Typed views over the TBA payloads we consume, plus the tracker's own output records.

Only the fields the tracker actually reads are modelled; anything else TBA
sends is ignored at parse time.
"""
from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class _UpstreamModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class _OutputModel(BaseModel):
    """Output records serialise with camelCase keys (the dashboard's contract)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Upstream records ────────────────────────────────────────


class WinLossRecord(_UpstreamModel):
    wins: int = Field(default=0, ge=0)
    losses: int = Field(default=0, ge=0)
    ties: int = Field(default=0, ge=0)

    def __add__(self, other: "WinLossRecord") -> "WinLossRecord":
        if not isinstance(other, WinLossRecord):
            return NotImplemented
        return WinLossRecord(
            wins=self.wins + other.wins,
            losses=self.losses + other.losses,
            ties=self.ties + other.ties,
        )

    def __str__(self) -> str:
        return f"{self.wins}-{self.losses}-{self.ties}"

    @classmethod
    def combine(cls, *records: Optional["WinLossRecord"]) -> Optional["WinLossRecord"]:
        """Field-wise sum of the records that are present; None if none are."""
        present = [r for r in records if r is not None]
        if not present:
            return None
        total = present[0]
        for r in present[1:]:
            total = total + r
        return total


class Event(_UpstreamModel):
    key: str
    name: str = ""
    short_name: Optional[str] = None
    event_type: int = -1
    event_type_string: Optional[str] = None
    year: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    city: Optional[str] = None
    state_prov: Optional[str] = None
    country: Optional[str] = None
    parent_event_key: Optional[str] = None
    division_keys: list[str] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _year_from_key(cls, data: Any) -> Any:
        # Event keys are "<year><code>", e.g. 2025new
        if isinstance(data, dict) and data.get("year") is None:
            key = str(data.get("key", ""))
            if key[:4].isdigit():
                data = {**data, "year": int(key[:4])}
        return data

    @field_validator("name", mode="before")
    @classmethod
    def _name_not_null(cls, v: Any) -> Any:
        return v or ""

    @field_validator("division_keys", mode="before")
    @classmethod
    def _division_keys_not_null(cls, v: Any) -> Any:
        return v or []

    @property
    def display_location(self) -> str:
        return self.city or self.name


class Team(_UpstreamModel):
    key: str
    team_number: int
    name: str = ""
    nickname: Optional[str] = None
    city: Optional[str] = None
    state_prov: Optional[str] = None
    country: Optional[str] = None
    rookie_year: Optional[int] = None
    data: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _number_from_key(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("team_number") is None:
            key = str(data.get("key", ""))
            if key.startswith("frc") and key[3:].isdigit():
                data = {**data, "team_number": int(key[3:])}
        return data

    @field_validator("name", mode="before")
    @classmethod
    def _name_not_null(cls, v: Any) -> Any:
        return v or ""

    @field_validator("data", mode="before")
    @classmethod
    def _data_not_null(cls, v: Any) -> Any:
        return v or {}


class RankingEntry(_UpstreamModel):
    team_key: str
    rank: Optional[int] = None
    record: Optional[WinLossRecord] = None


class EventRankings(_UpstreamModel):
    rankings: list[RankingEntry] = Field(default_factory=list)

    @field_validator("rankings", mode="before")
    @classmethod
    def _rankings_not_null(cls, v: Any) -> Any:
        return v or []


class QualRanking(_UpstreamModel):
    rank: Optional[int] = None
    record: Optional[WinLossRecord] = None


class TeamEventQual(_UpstreamModel):
    num_teams: Optional[int] = None
    status: Optional[str] = None
    ranking: Optional[QualRanking] = None


class TeamEventPlayoff(_UpstreamModel):
    level: Optional[str] = None
    status: Optional[str] = None
    record: Optional[WinLossRecord] = None


class TeamEventAlliance(_UpstreamModel):
    name: Optional[str] = None
    number: Optional[int] = None
    pick: Optional[int] = None


class TeamEventStatus(_UpstreamModel):
    qual: Optional[TeamEventQual] = None
    playoff: Optional[TeamEventPlayoff] = None
    alliance: Optional[TeamEventAlliance] = None
    overall_status_str: Optional[str] = None
    alliance_status_str: Optional[str] = None

    @property
    def qual_record(self) -> Optional[WinLossRecord]:
        if self.qual and self.qual.ranking:
            return self.qual.ranking.record
        return None

    @property
    def playoff_record(self) -> Optional[WinLossRecord]:
        return self.playoff.record if self.playoff else None

    @property
    def combined_record(self) -> Optional[WinLossRecord]:
        return WinLossRecord.combine(self.qual_record, self.playoff_record)


class AwardRecipient(_UpstreamModel):
    team_key: Optional[str] = None
    awardee: Optional[str] = None


class Award(_UpstreamModel):
    name: str
    award_type: Optional[int] = None
    event_key: Optional[str] = None
    year: Optional[int] = None
    recipient_list: list[AwardRecipient] = Field(default_factory=list)

    @field_validator("recipient_list", mode="before")
    @classmethod
    def _recipients_not_null(cls, v: Any) -> Any:
        return v or []

    def has_recipient(self, team_key: str) -> bool:
        return any(r.team_key == team_key for r in self.recipient_list)


# ── Tracker output ──────────────────────────────────────────


class QualificationPath(str, Enum):
    DIVISION = "division"
    FINALS = "finals"


class QualificationStatus(str, Enum):
    QUALIFIED = "QUALIFIED"
    WAITLIST = "WAITLIST"
    NOT_QUALIFIED = "NOT_QUALIFIED"
    UNKNOWN = "UNKNOWN"


class TeamChampionshipStatus(_OutputModel):
    """One team's championship picture as of the request.

    ``waitlist_position`` is a heuristic estimate (1 = likely waitlisted,
    0 = not qualified), never upstream truth. It is None for qualified teams.
    """

    model_config = ConfigDict(frozen=True)

    team: Team
    is_qualified: bool = False
    qualified_via: Optional[QualificationPath] = None
    waitlist_position: Optional[int] = None
    championship_location: str = ""
    championship_event_key: str = ""
    division: str = ""
    division_event_key: str = ""
    championship_rank: Optional[int] = None
    championship_record: Optional[str] = None
    division_total_teams: Optional[int] = None
    championship_awards: tuple[Award, ...] = ()
    final_event_key: str = ""
    final_rank: Optional[str] = None
    final_record: Optional[str] = None
    rank: Optional[int] = None
    record: Optional[str] = None
    total_teams: Optional[int] = None
    overall_status_str: Optional[str] = Field(default=None, alias="overall_status_str")
    alliance_status_str: Optional[str] = Field(default=None, alias="alliance_status_str")

    @computed_field(alias="qualificationStatus")
    @property
    def qualification_status(self) -> QualificationStatus:
        if self.is_qualified:
            return QualificationStatus.QUALIFIED
        if self.waitlist_position is None:
            return QualificationStatus.UNKNOWN
        if self.waitlist_position > 0:
            return QualificationStatus.WAITLIST
        return QualificationStatus.NOT_QUALIFIED


class EventBrief(_OutputModel):
    key: str
    name: str
    short_name: Optional[str] = Field(default=None, alias="short_name")
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    event_type: int
    event_type_string: str = ""
    city: Optional[str] = None
    state_prov: Optional[str] = None
    country: Optional[str] = None


class EventPerformance(_OutputModel):
    rank: Optional[int] = None
    total_teams: int = 0
    record: Optional[str] = None


class EventAchievement(_OutputModel):
    event: EventBrief
    performance: Optional[EventPerformance] = None
    status: Optional[TeamEventStatus] = None
    awards: list[Award] = Field(default_factory=list)
    alliance_status_html: str = ""
    overall_status_html: str = ""
    error: Optional[str] = None


class TeamAchievements(_OutputModel):
    team_key: str
    team_number: int
    team_name: str
    team_nickname: Optional[str] = None
    rookie_year: Optional[int] = None
    year: int
    achievements: list[EventAchievement] = Field(default_factory=list)
