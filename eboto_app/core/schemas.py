from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from pydantic.alias_generators import to_camel

LEVELS: tuple[str, ...] = ("Elementary", "JHS", "SHS", "College")
# Records without a level are treated as College.
DEFAULT_LEVEL = "College"
POSITIONS: tuple[str, ...] = (
    "President",
    "Vice President",
    "Secretary",
    "Treasurer",
    "Auditor",
    "Representative",
)
GENDERS: tuple[str, ...] = ("Male", "Female")

INDEPENDENT_PARTY = "Independent"


def _to_str(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip()


def normalize_year(value: object) -> str:
    """Coerce the API's year field to display text.

    Older rows were written through a numeric column and come back as a
    number, null, or the literal string "NaN".
    """

    if isinstance(value, bool) or value is None:
        return ""
    if isinstance(value, str):
        s = value.strip()
        return "" if s == "NaN" else s
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            return ""
        return str(int(value)) if value.is_integer() else str(value)
    return ""


def party_label(party_list: str) -> str:
    return (party_list or "").strip() or INDEPENDENT_PARTY


def join_name(first: str, middle: str, last: str) -> str:
    parts = [p.strip() for p in (first, middle, last) if p and p.strip()]
    return " ".join(parts)


class APIModel(BaseModel):
    """Base for payloads exchanged with the E-Boto API (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class Candidate(APIModel):
    id: str
    level: str | None = None
    position: str = ""
    party_list: str = ""
    first_name: str = ""
    middle_name: str = ""
    last_name: str = ""
    gender: str = ""
    year: str = ""
    photo_path: str | None = None
    photo_url: str | None = None

    @field_validator("id", "position", "party_list", "first_name", "middle_name", "last_name", "gender", mode="before")
    @classmethod
    def _clean_text(cls, value: object) -> str:
        return _to_str(value)

    @field_validator("level", mode="before")
    @classmethod
    def _clean_level(cls, value: object) -> str | None:
        s = _to_str(value)
        return s or None

    @field_validator("year", mode="before")
    @classmethod
    def _clean_year(cls, value: object) -> str:
        return normalize_year(value)

    @property
    def display_name(self) -> str:
        return join_name(self.first_name, self.middle_name, self.last_name)

    @property
    def party_label(self) -> str:
        return party_label(self.party_list)

    def resolved_photo_url(self, api_base: str) -> str:
        if self.photo_url:
            return self.photo_url
        if not self.photo_path:
            return ""
        if self.photo_path.startswith(("http://", "https://")):
            return self.photo_path
        return f"{api_base.rstrip('/')}{self.photo_path}"


class Voter(APIModel):
    id: str
    school_id: str = ""
    full_name: str = ""
    course: str | None = None
    year: str = ""
    status: int = 0
    department: str | None = None

    @field_validator("id", "school_id", "full_name", mode="before")
    @classmethod
    def _clean_text(cls, value: object) -> str:
        return _to_str(value)

    @field_validator("course", "department", mode="before")
    @classmethod
    def _clean_optional(cls, value: object) -> str | None:
        s = _to_str(value)
        return s or None

    @field_validator("year", mode="before")
    @classmethod
    def _clean_year(cls, value: object) -> str:
        return normalize_year(value)

    @field_validator("status", mode="before")
    @classmethod
    def _clean_status(cls, value: object) -> int:
        # Anything but an explicit 1 (number, string or bool) means "not voted".
        if value is True:
            return 1
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return 1 if value == 1 else 0
        if isinstance(value, str):
            return 1 if value.strip() == "1" else 0
        return 0

    @property
    def has_voted(self) -> bool:
        return self.status == 1


class VoteTally(APIModel):
    candidate_id: str
    first_name: str = ""
    middle_name: str = ""
    last_name: str = ""
    party_list: str = ""
    position: str = ""
    level: str = ""
    photo_url: str | None = None
    votes: int = 0

    @field_validator(
        "candidate_id", "first_name", "middle_name", "last_name", "party_list", "position", "level", mode="before"
    )
    @classmethod
    def _clean_text(cls, value: object) -> str:
        return _to_str(value)

    @field_validator("votes", mode="before")
    @classmethod
    def _clean_votes(cls, value: object) -> int:
        try:
            return int(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return 0

    @property
    def display_name(self) -> str:
        return join_name(self.first_name, self.middle_name, self.last_name)

    @property
    def party_label(self) -> str:
        return party_label(self.party_list)


class VotingStatus(APIModel):
    open: bool = False


class SessionUser(APIModel):
    id: str = ""
    username: str = ""
    school_id: str = ""
    full_name: str = ""
    role: str = ""
    department: str | None = None

    @field_validator("id", "username", "school_id", "full_name", mode="before")
    @classmethod
    def _clean_text(cls, value: object) -> str:
        return _to_str(value)

    @field_validator("role", mode="before")
    @classmethod
    def _clean_role(cls, value: object) -> str:
        return _to_str(value).lower()

    @field_validator("department", mode="before")
    @classmethod
    def _clean_department(cls, value: object) -> str | None:
        s = _to_str(value)
        return s or None


class SessionPayload(APIModel):
    user: SessionUser | None = None
    role: str = ""

    @field_validator("role", mode="before")
    @classmethod
    def _clean_role(cls, value: object) -> str:
        return _to_str(value).lower()


class ExistingVote(APIModel):
    candidate_id: str = ""

    @field_validator("candidate_id", mode="before")
    @classmethod
    def _clean_text(cls, value: object) -> str:
        return _to_str(value)


class VoteConflict(APIModel):
    error: str = ""
    existing: ExistingVote | None = None


class MyVote(APIModel):
    position: str
    candidate_id: str

    @field_validator("position", "candidate_id", mode="before")
    @classmethod
    def _clean_text(cls, value: object) -> str:
        return _to_str(value)


class ImportResult(APIModel):
    message: str = ""
    inserted: int | None = None
    invalid: int | None = None
    duplicates: int | None = None
    skipped: int | None = None

    def summary(self, level: str) -> str:
        if self.message:
            return self.message
        parts = [f"Upload complete for {level}."]
        if self.inserted:
            parts.append(f"Inserted: {self.inserted}.")
        for label, value in (("Invalid", self.invalid), ("Duplicates", self.duplicates), ("Skipped", self.skipped)):
            if value:
                parts.append(f"{label}: {value}.")
        return " ".join(parts)


class ResetResult(APIModel):
    deleted_votes: int = 0
    voters_reset: int = 0

    @field_validator("deleted_votes", "voters_reset", mode="before")
    @classmethod
    def _clean_count(cls, value: object) -> int:
        return value if isinstance(value, int) and not isinstance(value, bool) else 0


def parse_session(payload: object) -> SessionUser | None:
    """Return the session user from an /api/auth/me payload, or None.

    The API nests the user under `user`, but some deployments only return a
    top-level `role`.
    """

    if not isinstance(payload, dict):
        return None
    try:
        parsed = SessionPayload.model_validate(payload)
    except ValidationError:
        return None

    user = parsed.user or SessionUser()
    if not user.role and parsed.role:
        user = user.model_copy(update={"role": parsed.role})
    if not user.role:
        return None
    return user


T = TypeVar("T", bound=APIModel)


def parse_list(model: type[T], payload: object) -> list[T]:
    """Validate a JSON list, dropping rows that don't match the model."""

    if isinstance(payload, dict):
        for key in ("items", "rows", "data", "results"):
            if isinstance(payload.get(key), list):
                payload = payload[key]
                break
    if not isinstance(payload, list):
        return []

    out: list[T] = []
    for row in payload:
        try:
            out.append(model.model_validate(row))
        except ValidationError:
            continue
    return out


def parse_my_votes(payload: object) -> dict[str, str]:
    """Return {position: candidate_id} from an /api/votes/me payload.

    Accepts a position-keyed map (bare or under `votes`/`voted`) or a list of
    {position, candidateId} rows.
    """

    container: Any = payload
    if isinstance(payload, dict):
        for key in ("votes", "voted", "myVotes"):
            if key in payload:
                container = payload[key]
                break

    if isinstance(container, list):
        return {v.position: v.candidate_id for v in parse_list(MyVote, container) if v.position and v.candidate_id}

    if isinstance(container, dict):
        out: dict[str, str] = {}
        for position, candidate_id in container.items():
            if position not in POSITIONS:
                continue
            cid = _to_str(candidate_id)
            if cid:
                out[position] = cid
        return out

    return {}


def parse_import_result(payload: object) -> ImportResult:
    if not isinstance(payload, dict):
        return ImportResult()
    data = dict(payload)
    if data.get("inserted") is None:
        for key in ("count", "rows"):
            if isinstance(data.get(key), int):
                data["inserted"] = data[key]
                break
    try:
        return ImportResult.model_validate(data)
    except ValidationError:
        message = data.get("message")
        return ImportResult(message=message if isinstance(message, str) else "")



def parse_vote_conflict(payload: object) -> VoteConflict:
    if not isinstance(payload, dict):
        return VoteConflict()
    try:
        return VoteConflict.model_validate(payload)
    except ValidationError:
        error = payload.get("error")
        return VoteConflict(error=error if isinstance(error, str) else "")
