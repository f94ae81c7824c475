"""
Dashboard Entity Kinds

Descriptors for the draftable dashboard content kinds. A descriptor carries
everything the generic workflow needs to know about one kind: its content
fields, draft table, readiness predicate and the mapping to and from the
published campaign tables.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional, Tuple, Type, Union

from pydantic import BaseModel, ValidationError

from .models import (
    CampaignInfoContent,
    CampaignSummaryContent,
    EntityType,
    SocialsContent,
)
from .protocols import ApprovalValidationError

ContentMapper = Callable[[Dict[str, Any]], Dict[str, Any]]


@dataclass(frozen=True)
class EntityKindDescriptor:
    """Static description of one draftable content kind"""

    entity_type: EntityType
    label: str
    path: str
    table: str
    content_model: Type[BaseModel]
    is_ready: Callable[[Dict[str, Any]], bool]
    to_canonical: ContentMapper
    from_canonical: ContentMapper
    boolean_fields: FrozenSet[str] = frozenset()

    @property
    def content_fields(self) -> Tuple[str, ...]:
        return tuple(self.content_model.model_fields)

    def column_type(self, field: str) -> str:
        return "BOOLEAN" if field in self.boolean_fields else "TEXT"

    def validate_content(self, content: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """Validate raw content and return only the fields that were provided"""
        try:
            parsed = self.content_model.model_validate(content or {})
        except ValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(part) for part in first.get("loc", ())) or None
            raise ApprovalValidationError(
                f"Invalid {self.label.lower()} content: {first.get('msg')}", field
            )
        return parsed.model_dump(exclude_unset=True)

    def empty_content(self) -> Dict[str, Any]:
        return {field: None for field in self.content_fields}


# ====================
# Readiness
# ====================


def _has_text(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _any_text(fields: Tuple[str, ...]) -> Callable[[Dict[str, Any]], bool]:
    def check(content: Dict[str, Any]) -> bool:
        return any(_has_text(content.get(field)) for field in fields)
    return check


_INFO_TEXT_FIELDS = ("milestones", "investor_pitch", "investor_pitch_title")
_SUMMARY_FIELDS = ("summary", "tag_line")
_SOCIAL_FIELDS = ("linked_in", "twitter", "instagram", "facebook", "tiktok", "yelp")


def _info_is_ready(content: Dict[str, Any]) -> bool:
    # An explicit pitch visibility choice counts as content, even False
    return _any_text(_INFO_TEXT_FIELDS)(content) or content.get("is_show_pitch") is not None


# ====================
# Canonical mapping
# ====================


def _info_to_canonical(content: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "milestones": content.get("milestones"),
        "investor_pitch": content.get("investor_pitch"),
        "is_show_pitch": bool(content.get("is_show_pitch")),
        "investor_pitch_title": content.get("investor_pitch_title"),
    }


def _info_from_canonical(row: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "milestones": row.get("milestones"),
        "investor_pitch": row.get("investor_pitch"),
        "is_show_pitch": row.get("is_show_pitch"),
        "investor_pitch_title": row.get("investor_pitch_title"),
    }


def _summary_to_canonical(content: Dict[str, Any]) -> Dict[str, Any]:
    # campaigns has no tag line column
    return {"summary": content.get("summary")}


def _summary_from_canonical(row: Dict[str, Any]) -> Dict[str, Any]:
    return {"summary": row.get("summary"), "tag_line": ""}


def _socials_to_canonical(content: Dict[str, Any]) -> Dict[str, Any]:
    return {field: content.get(field) or None for field in _SOCIAL_FIELDS}


def _socials_from_canonical(row: Dict[str, Any]) -> Dict[str, Any]:
    return {field: row.get(field) for field in _SOCIAL_FIELDS}


# ====================
# Registry
# ====================


CAMPAIGN_INFO = EntityKindDescriptor(
    entity_type=EntityType.CAMPAIGN_INFO,
    label="Dashboard campaign info",
    path="campaign-info",
    table="dashboard_campaign_info",
    content_model=CampaignInfoContent,
    is_ready=_info_is_ready,
    to_canonical=_info_to_canonical,
    from_canonical=_info_from_canonical,
    boolean_fields=frozenset({"is_show_pitch"}),
)

CAMPAIGN_SUMMARY = EntityKindDescriptor(
    entity_type=EntityType.CAMPAIGN_SUMMARY,
    label="Dashboard campaign summary",
    path="campaign-summary",
    table="dashboard_campaign_summary",
    content_model=CampaignSummaryContent,
    is_ready=_any_text(_SUMMARY_FIELDS),
    to_canonical=_summary_to_canonical,
    from_canonical=_summary_from_canonical,
)

SOCIALS = EntityKindDescriptor(
    entity_type=EntityType.SOCIALS,
    label="Dashboard socials",
    path="socials",
    table="dashboard_socials",
    content_model=SocialsContent,
    is_ready=_any_text(_SOCIAL_FIELDS),
    to_canonical=_socials_to_canonical,
    from_canonical=_socials_from_canonical,
)

ENTITY_KINDS: Dict[EntityType, EntityKindDescriptor] = {
    kind.entity_type: kind for kind in (CAMPAIGN_INFO, CAMPAIGN_SUMMARY, SOCIALS)
}

KINDS_BY_PATH: Dict[str, EntityKindDescriptor] = {
    kind.path: kind for kind in ENTITY_KINDS.values()
}


def get_entity_kind(value: Union[EntityType, str]) -> EntityKindDescriptor:
    """Resolve a kind from its EntityType, type tag or URL path segment"""
    if isinstance(value, EntityType):
        return ENTITY_KINDS[value]
    if value in KINDS_BY_PATH:
        return KINDS_BY_PATH[value]
    try:
        return ENTITY_KINDS[EntityType(value)]
    except ValueError:
        raise ApprovalValidationError(f"Invalid entity type: {value}", "entity_type")


def resolve_entity_kinds(values: Optional[Iterable[Union[EntityType, str]]]) -> List[EntityKindDescriptor]:
    """Resolve a list of kinds, defaulting to every kind; duplicates are dropped"""
    if values is None:
        return list(ENTITY_KINDS.values())

    kinds: List[EntityKindDescriptor] = []
    for value in values:
        kind = get_entity_kind(value)
        if kind not in kinds:
            kinds.append(kind)
    return kinds


__all__ = [
    "EntityKindDescriptor",
    "CAMPAIGN_INFO",
    "CAMPAIGN_SUMMARY",
    "SOCIALS",
    "ENTITY_KINDS",
    "KINDS_BY_PATH",
    "get_entity_kind",
    "resolve_entity_kinds",
]
