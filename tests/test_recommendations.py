"""Tests for the fundability recommendation generator."""

from app.modules.fundability.criteria import (
    Category,
    CriteriaCatalog,
    Criterion,
    ResponseType,
    get_catalog,
    industry_slug,
)
from app.modules.fundability.engine import score_responses
from app.modules.fundability.recommendations import (
    CATEGORY_TEMPLATES,
    CRITERION_TEMPLATES,
    INDUSTRY_TEMPLATES,
    Priority,
    generate_recommendations,
)


def _recommend(responses, *, catalog=None, industry=None, threshold=80):
    catalog = catalog or get_catalog()
    result = score_responses(catalog, responses)
    return generate_recommendations(
        result.category_scores,
        responses,
        catalog=catalog,
        industry=industry,
        threshold=threshold,
    )


def _flag(cid: str, category_id: str, weight: float, *, critical: bool = False) -> Criterion:
    return Criterion(
        id=cid,
        category_id=category_id,
        question=f"Is {cid} in place?",
        response_type=ResponseType.BOOLEAN,
        weight=weight,
        is_critical=critical,
    )


class TestOrdering:
    def test_critical_items_ordered_by_impact(self, strong_responses):
        responses = {**strong_responses, "ein": False, "business-bank-account": False}
        recs = _recommend(responses)

        assert [r.id for r in recs] == [
            "business-bank-account",
            "ein",
            "banking-finance",
            "business-structure",
        ]
        bank, ein, banking, structure = recs
        assert bank.priority is Priority.CRITICAL
        assert ein.priority is Priority.CRITICAL
        # 6/17 of banking (20%) vs 5/23 of structure (25%)
        assert bank.estimated_impact == 7.1
        assert ein.estimated_impact == 5.4
        assert banking.priority is Priority.MEDIUM
        assert banking.estimated_impact == 7.0
        assert structure.estimated_impact == 5.5
        assert structure.criterion_id is None

    def test_equal_impact_breaks_on_category_weight(self):
        catalog = CriteriaCatalog(
            version="t",
            categories=(
                Category(
                    id="heavy",
                    name="Heavy",
                    weight=60,
                    criteria=(_flag("x", "heavy", 1, critical=True), _flag("y", "heavy", 2)),
                ),
                Category(
                    id="light",
                    name="Light",
                    weight=40,
                    criteria=(_flag("z", "light", 1, critical=True), _flag("w", "light", 1)),
                ),
            ),
        )
        recs = _recommend({"x": False, "y": True, "z": False, "w": True}, catalog=catalog)
        assert [r.id for r in recs] == ["x", "z"]
        assert recs[0].estimated_impact == recs[1].estimated_impact == 20.0

    def test_equal_impact_and_weight_breaks_on_id(self):
        catalog = CriteriaCatalog(
            version="t",
            categories=(
                Category(
                    id="only",
                    name="Only",
                    weight=100,
                    criteria=(
                        _flag("m", "only", 2, critical=True),
                        _flag("k", "only", 2, critical=True),
                        _flag("j", "only", 1),
                    ),
                ),
            ),
        )
        recs = _recommend({"m": False, "k": False, "j": True}, catalog=catalog)
        assert [r.id for r in recs] == ["k", "m"]

    def test_deterministic(self, strong_responses):
        responses = {**strong_responses, "duns-number": False, "business-age": 8}
        assert _recommend(responses) == _recommend(responses)


class TestPriorities:
    def test_all_met_yields_nothing(self, strong_responses):
        assert _recommend(strong_responses) == []

    def test_non_critical_in_strong_category_is_low(self, strong_responses):
        recs = _recommend({**strong_responses, "credit-monitoring": False})
        assert len(recs) == 1
        assert recs[0].id == "credit-monitoring"
        assert recs[0].priority is Priority.LOW

    def test_partial_critical_criterion_is_not_critical(self, strong_responses):
        recs = _recommend({**strong_responses, "personal-credit-score": "650-699"})
        assert [r.id for r in recs] == ["personal-credit-score"]
        assert recs[0].priority is Priority.LOW
        # 2 missing points of 27 in a 30% category
        assert recs[0].estimated_impact == 2.2

    def test_empty_responses(self):
        recs = _recommend({})
        ids = [r.id for r in recs]
        assert len(ids) == len(set(ids))

        critical = [r for r in recs if r.priority is Priority.CRITICAL]
        assert {r.id for r in critical} == {
            c.id for c in get_catalog().criteria if c.is_critical
        }
        assert recs[: len(critical)] == critical
        assert all(r.priority is Priority.HIGH for r in recs[len(critical):])
        assert set(CATEGORY_TEMPLATES) <= set(ids)

    def test_threshold_controls_category_items(self, strong_responses):
        responses = {**strong_responses, "ein": False}
        # business-structure lands at 78%
        assert "business-structure" in [r.id for r in _recommend(responses, threshold=80)]
        assert [r.id for r in _recommend(responses, threshold=70)] == ["ein"]


class TestTemplates:
    def test_criterion_template_content(self, strong_responses):
        recs = _recommend({**strong_responses, "ein": False})
        ein = next(r for r in recs if r.id == "ein")
        assert ein.title == CRITERION_TEMPLATES["ein"].title
        assert ein.timeframe == "1-2 days"
        assert ein.resources[0]["url"].startswith("https://www.irs.gov/")
        assert ein.category_id == "business-structure"
        assert ein.criterion_id == "ein"

    def test_generic_template_when_no_entry(self, strong_responses):
        responses = dict(strong_responses)
        del responses["industry"]
        recs = _recommend(responses)
        industry = next(r for r in recs if r.id == "industry")
        assert "industry" not in CRITERION_TEMPLATES
        assert industry.title == (
            "Improve Industry & Operations: Which industry does your business operate in?"
        )
        assert industry.action_items == ["Address: Which industry does your business operate in?"]

    def test_required_criteria_without_templates(self):
        required = {c.id for c in get_catalog().criteria if c.required}
        assert required - set(CRITERION_TEMPLATES) == {"industry"}


class TestIndustryVariants:
    def test_templates_keyed_by_catalog_industry_options(self):
        options = {industry_slug(o) for o in get_catalog().criterion("industry").options}
        assert set(INDUSTRY_TEMPLATES) <= options

    def test_industry_text_normalised(self, strong_responses):
        loose = _recommend(strong_responses, industry="  restaurant-food service ")
        assert [r.id for r in loose] == [
            "industry-restaurant-food-service-1",
            "industry-restaurant-food-service-2",
        ]

    def test_variants_appended_after_base_items(self, strong_responses):
        responses = {**strong_responses, "ein": False}
        base = _recommend(responses)
        recs = _recommend(responses, industry="Restaurant/Food Service")

        assert recs[: len(base)] == base
        extra = recs[len(base):]
        assert [r.id for r in extra] == [
            "industry-restaurant-food-service-1",
            "industry-restaurant-food-service-2",
        ]
        assert [r.priority for r in extra] == [Priority.MEDIUM, Priority.LOW]
        assert all(r.estimated_impact == 0.0 for r in extra)
        assert all(r.category_id is None for r in extra)

    def test_variants_emitted_even_when_all_met(self, strong_responses):
        recs = _recommend(strong_responses, industry="Construction")
        assert len(recs) == len(INDUSTRY_TEMPLATES["construction"])

    def test_unknown_industry_adds_nothing(self, strong_responses):
        assert _recommend(strong_responses, industry="Aerospace") == []
