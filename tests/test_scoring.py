from decimal import Decimal

import pytest

from performance.exceptions import ValidationError
from performance.services import templates as template_svc
from performance.services.scoring import check_weights, label_for, quantize, score_sections


@pytest.mark.django_db
class TestScoreSections:

    def test_weighted_total(self, template):
        card = score_sections(template, [{"key": "quality", "rating_value": 4}, {"key": "delivery", "rating_value": 5}])
        assert card.total_score == Decimal("4.40")

    def test_total_does_not_depend_on_order(self, template):
        forward = score_sections(template, [{"key": "quality", "rating": 4}, {"key": "delivery", "rating": 5}])
        backward = score_sections(template, [{"key": "delivery", "rating": 5}, {"key": "quality", "rating": 4}])
        assert forward.total_score == backward.total_score == Decimal("4.40")

    def test_missing_criterion_scores_zero_and_is_flagged(self, template):
        card = score_sections(template, [{"key": "quality", "rating_value": 5}])
        assert card.total_score == Decimal("3.00")
        assert card.missing_keys == ["delivery"]

    @pytest.mark.parametrize("raw", ["NaN", "sNaN", "Infinity", "-Infinity"])
    def test_non_finite_rating_rejected(self, template, raw):
        with pytest.raises(ValidationError):
            score_sections(template, [{"key": "quality", "rating_value": raw}])

    def test_unknown_or_repeated_keys_rejected(self, template):
        with pytest.raises(ValidationError):
            score_sections(template, [{"key": "charisma", "rating_value": 3}])
        with pytest.raises(ValidationError):
            score_sections(template, [{"key": "quality", "rating_value": 3}, {"key": "quality", "rating_value": 4}])

    def test_out_of_scale_rating_rejected(self, template):
        with pytest.raises(ValidationError):
            score_sections(template, [{"key": "quality", "rating_value": 6}])

    def test_unweighted_template_uses_mean(self, hr_actor):
        template = template_svc.create_template(hr_actor, name="Mean", criteria=[{"key": "a"}, {"key": "b"}])
        card = score_sections(template, [{"key": "a", "rating_value": 3}, {"key": "b", "rating_value": 4}])
        assert card.total_score == Decimal("3.50")

    def test_labels_follow_scale(self, template):
        assert label_for(template, Decimal("4.40")) == "Very good"
        assert label_for(template, Decimal("1")) == "Poor"
        assert label_for(template, None) == ""


class TestWeights:

    def test_all_zero_is_fine(self):
        check_weights([Decimal("0"), Decimal("0")])

    def test_out_of_range_weight(self):
        with pytest.raises(ValidationError):
            check_weights([Decimal("120"), Decimal("-20")])

    def test_quantize_half_up(self):
        assert quantize(Decimal("4.405")) == Decimal("4.41")
        assert quantize(None) is None
