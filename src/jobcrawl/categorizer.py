"""
Categorizer - rule-based, non-exclusive labelling of job records
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, List, Optional, Sequence

from pydantic import BaseModel, Field, field_validator, model_validator

from jobcrawl.models import RawRecord

logger = logging.getLogger(__name__)

RECORD_FIELDS = ("title", "company", "location", "description", "body")

BOSTON_PATTERN = r"boston|massachusetts|\bma\b"
AI_PATTERN = r"\b(ai|machine learning|artificial intelligence|ml)\b"
ANALYST_PATTERN = r"\banalyst\b"
C2C_PATTERN = r"\bc2c\b|\bcorp[\s-]*(?:to|2)[\s-]*corp\b"

AI_FIELDS = ["title", "description", "body"]


class RuleCondition(BaseModel):
    """Keyword or regex predicate over the concatenation of some record fields.

    A condition whose fields are all absent never holds, negated or not.
    """

    fields: List[str]
    keywords: List[str] = Field(default_factory=list)
    pattern: Optional[str] = None
    negate: bool = False

    @field_validator("fields")
    @classmethod
    def _known_fields(cls, value: List[str]) -> List[str]:
        if not value:
            raise ValueError("condition needs at least one field")
        unknown = [f for f in value if f not in RECORD_FIELDS]
        if unknown:
            raise ValueError(f"unknown record field(s): {', '.join(unknown)}")
        return value

    @field_validator("pattern")
    @classmethod
    def _compiles(cls, value: Optional[str]) -> Optional[str]:
        if value is not None:
            try:
                re.compile(value)
            except re.error as exc:
                raise ValueError(f"invalid pattern {value!r}: {exc}") from exc
        return value

    @model_validator(mode="after")
    def _one_matcher(self) -> "RuleCondition":
        if bool(self.keywords) == bool(self.pattern):
            raise ValueError("condition needs exactly one of 'keywords' or 'pattern'")
        return self

    def matches(self, record: RawRecord) -> bool:
        text = _field_text(record, self.fields)
        if text is None:
            return False
        if self.pattern:
            hit = re.search(self.pattern, text, re.IGNORECASE) is not None
        else:
            hit = _match_any(text, self.keywords)
        return not hit if self.negate else hit


class CategoryRule(BaseModel):
    label: str
    conditions: List[RuleCondition]

    @field_validator("conditions")
    @classmethod
    def _not_empty(cls, value: List[RuleCondition]) -> List[RuleCondition]:
        if not value:
            raise ValueError("rule needs at least one condition")
        return value

    def matches(self, record: RawRecord) -> bool:
        return all(condition.matches(record) for condition in self.conditions)


def _field_value(record: RawRecord, name: str) -> Optional[str]:
    if name == "body":
        value = record.body_text
    else:
        value = getattr(record, name, None)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _field_text(record: RawRecord, fields: Sequence[str]) -> Optional[str]:
    parts = [v for v in (_field_value(record, f) for f in fields) if v]
    if not parts:
        return None
    return "\n".join(parts)


def _match_any(text: str, keywords: Iterable[str]) -> bool:
    lower = text.lower()
    for kw in keywords:
        kw = kw.strip().lower()
        if not kw:
            continue
        if len(kw) <= 2:
            if re.search(rf"\b{re.escape(kw)}\b", lower):
                return True
            continue
        if kw in lower:
            return True
    return False


def default_rules() -> List[CategoryRule]:
    """Boston / other-state, AI, analyst and corp-to-corp buckets"""
    boston = {"fields": ["location"], "pattern": BOSTON_PATTERN}
    not_boston = {"fields": ["location"], "pattern": BOSTON_PATTERN, "negate": True}
    ai = {"fields": AI_FIELDS, "pattern": AI_PATTERN}
    raw_rules = [
        {"label": "BostonAI", "conditions": [boston, ai]},
        {"label": "OtherUSAI", "conditions": [not_boston, ai]},
        {"label": "C2C", "conditions": [{"fields": ["title", "body", "description"], "pattern": C2C_PATTERN}]},
        {"label": "Boston", "conditions": [boston]},
        {"label": "OtherState", "conditions": [not_boston]},
        {"label": "AI", "conditions": [ai]},
        {"label": "Analyst", "conditions": [{"fields": ["title"], "pattern": ANALYST_PATTERN}]},
    ]
    return [CategoryRule.model_validate(rule) for rule in raw_rules]


class Categorizer:
    """Applies every rule independently; a record may earn several labels."""

    def __init__(self, rules: Optional[List[CategoryRule]] = None) -> None:
        self.rules = list(rules) if rules is not None else default_rules()

    @property
    def labels(self) -> List[str]:
        seen: List[str] = []
        for rule in self.rules:
            if rule.label not in seen:
                seen.append(rule.label)
        return seen

    def classify(self, record: RawRecord) -> List[str]:
        labels: List[str] = []
        for rule in self.rules:
            if rule.label in labels:
                continue
            if rule.matches(record):
                labels.append(rule.label)
        logger.debug("Classified %s -> %s", record.link or record.title, labels)
        return labels
