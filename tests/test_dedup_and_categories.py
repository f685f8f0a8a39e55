# tests/test_dedup_and_categories.py
from datetime import datetime

import pytest
from pydantic import ValidationError

from jobcrawl.aggregator import Aggregator
from jobcrawl.categorizer import Categorizer, CategoryRule, RuleCondition
from jobcrawl.dedup import Deduplicator
from jobcrawl.models import EnrichedRecord, RawRecord


def _record(**kwargs):
    return EnrichedRecord(**kwargs)


# ----------------------------------------------------------------------
# Deduplicator
# ----------------------------------------------------------------------
def test_admit_once_per_link():
    dedup = Deduplicator()
    assert dedup.admit("https://x/job/1") is True
    assert dedup.admit("https://x/job/1") is False
    assert dedup.admit("https://x/job/2") is True
    assert dedup.duplicates == 1
    assert len(dedup) == 2


def test_missing_link_always_admitted():
    dedup = Deduplicator()
    assert dedup.admit(None) is True
    assert dedup.admit(None) is True
    assert dedup.admit("   ") is True
    assert len(dedup) == 0


# ----------------------------------------------------------------------
# Categorizer
# ----------------------------------------------------------------------
def test_c2c_detected_from_title_and_body():
    record = _record(title="Java Developer (C2C only)", body_text="Long term, corp to corp")
    assert "C2C" in Categorizer().classify(record)


@pytest.mark.parametrize("text", ["Corp-to-Corp ok", "corp2corp", "CORP TO CORP"])
def test_c2c_variants(text):
    assert "C2C" in Categorizer().classify(_record(title="Engineer", body_text=text))


def test_ai_and_boston_are_not_exclusive():
    labels = Categorizer().classify(_record(title="AI Engineer", location="Boston, MA"))
    assert "AI" in labels
    assert "Boston" in labels
    assert "BostonAI" in labels
    assert "OtherState" not in labels
    assert "OtherUSAI" not in labels


def test_other_state_requires_a_location():
    categorizer = Categorizer()
    assert "OtherState" in categorizer.classify(_record(title="Data Analyst", location="Austin, TX"))
    labels = categorizer.classify(_record(title="Data Analyst"))
    assert "OtherState" not in labels
    assert "Boston" not in labels
    assert "Analyst" in labels


def test_ai_word_boundaries():
    categorizer = Categorizer()
    assert "AI" not in categorizer.classify(_record(title="Email Campaign Manager"))
    assert "AI" in categorizer.classify(_record(title="Analyst", description="Uses machine learning"))


def test_classify_is_idempotent():
    categorizer = Categorizer()
    record = _record(title="ML Analyst", location="Cambridge, Massachusetts", body_text="c2c")
    assert categorizer.classify(record) == categorizer.classify(record)


def test_keyword_rule_and_negation():
    rules = [
        CategoryRule(label="Remote", conditions=[RuleCondition(fields=["location", "body"], keywords=["remote"])]),
        CategoryRule(label="Onsite", conditions=[
            RuleCondition(fields=["location"], keywords=["remote"], negate=True),
        ]),
    ]
    categorizer = Categorizer(rules)
    assert categorizer.classify(_record(location="Remote")) == ["Remote"]
    assert categorizer.classify(_record(location="Denver, CO")) == ["Onsite"]
    assert categorizer.classify(_record()) == []


def test_rule_validation():
    with pytest.raises(ValidationError):
        RuleCondition(fields=["salary"], keywords=["x"])
    with pytest.raises(ValidationError):
        RuleCondition(fields=["title"])
    with pytest.raises(ValidationError):
        RuleCondition(fields=["title"], pattern="(unclosed")
    with pytest.raises(ValidationError):
        CategoryRule(label="Empty", conditions=[])


# ----------------------------------------------------------------------
# Aggregator
# ----------------------------------------------------------------------
def test_aggregate_buckets_and_totals():
    records = [
        _record(title="AI Engineer", location="Boston, MA", link="https://x/1"),
        _record(title="Data Analyst", location="Austin, TX", link="https://x/2"),
        _record(title="Java Developer (C2C only)", body_text="corp to corp", link="https://x/3"),
    ]
    stamp = datetime(2026, 1, 1, 12, 0)
    report = Aggregator().aggregate(records, pages_visited=2, generated_at=stamp)

    assert report.total_collected == len(report.all_records) == 3
    assert [r.link for r in report.all_records] == ["https://x/1", "https://x/2", "https://x/3"]
    assert [r.link for r in report.per_category["Boston"]] == ["https://x/1"]
    assert [r.link for r in report.per_category["Analyst"]] == ["https://x/2"]
    assert [r.link for r in report.per_category["C2C"]] == ["https://x/3"]
    assert report.per_category["OtherUSAI"] == []
    assert report.generated_at == stamp
    assert report.pages_visited == 2
    all_links = {r.link for r in report.all_records}
    for bucket in report.per_category.values():
        assert {r.link for r in bucket} <= all_links


def test_aggregate_is_deterministic_and_does_not_mutate_input():
    records = [_record(title="AI Analyst", location="Boston, MA", link="https://x/1")]
    stamp = datetime(2026, 1, 1)
    first = Aggregator().aggregate(records, generated_at=stamp)
    second = Aggregator().aggregate(records, generated_at=stamp)
    assert first == second
    assert records[0].categories == []
    assert first.all_records[0].categories == ["BostonAI", "Boston", "AI", "Analyst"]


def test_aggregate_empty():
    report = Aggregator().aggregate([])
    assert report.total_collected == 0
    assert report.all_records == []
    assert set(report.category_counts().values()) == {0}


def test_from_raw_preserves_raw():
    raw = RawRecord(title="Analyst", link="https://x/1", body_text="text")
    enriched = EnrichedRecord.from_raw(raw, description="desc", title="Other")
    assert enriched.title == "Analyst"
    assert enriched.description == "desc"
    assert enriched.to_row()["categories"] == ""
    assert enriched.to_row()["application_signal"] == "Unvisited"
