"""Tests for the email content renderer."""

from unittest.mock import MagicMock

import pytest

from funnelmind.tests.conftest import make_answers

STAGES = [
    "welcome", "assessment_results", "success_stories",
    "course_deep_dive", "social_proof", "final_cta",
]


@pytest.fixture
def renderer():
    from funnelmind.services.email_content import EmailRenderer

    return EmailRenderer(cta_link="https://cal.example.com/book", advisor_name="Sarah Chen")


class TestLoadTemplates:
    """YAML template store."""

    def test_bundled_store_has_every_stage(self):
        from funnelmind.services.email_content import load_templates

        templates = load_templates()
        assert set(STAGES) <= set(templates)
        assert all(t["subject"] and t["template"] for t in templates.values())

    def test_missing_file_returns_empty(self, tmp_path):
        from funnelmind.services.email_content import load_templates

        assert load_templates(tmp_path / "nope.yaml") == {}

    def test_invalid_yaml_returns_empty(self, tmp_path):
        from funnelmind.services.email_content import load_templates

        path = tmp_path / "broken.yaml"
        path.write_text("welcome: [unclosed\n", encoding="utf-8")
        assert load_templates(path) == {}

    def test_skips_malformed_entries(self, tmp_path):
        from funnelmind.services.email_content import load_templates

        path = tmp_path / "partial.yaml"
        path.write_text(
            "welcome:\n  subject: Hi\n  template: Hello {{name}}\nbroken: just a string\n",
            encoding="utf-8",
        )
        assert list(load_templates(path)) == ["welcome"]


class TestRender:
    """Template resolution, substitution and the markdown pass."""

    def test_every_stage_fully_substituted(self, renderer):
        for stage in STAGES:
            email = renderer.render(stage, make_answers(), "Priya")
            assert email["subject"]
            assert "{{" not in email["subject"]
            assert "{{" not in email["content"]
            assert email["cta"] == "Book Your Free Consultation"

    def test_subject_placeholders_substituted(self, renderer):
        email = renderer.render("course_deep_dive", {"interest": "mlops"}, "Arjun")
        assert email["subject"] == "Inside the MLOps & Deployment Program"

    def test_markdown_converted(self, renderer):
        email = renderer.render("welcome", make_answers(), "Priya")
        assert "<strong>Data Science &amp; Analytics Program</strong>" not in email["content"]
        assert "<strong>Data Science & Analytics Program</strong>" in email["content"]
        assert "<em>Career Advisor, Scaler</em>" in email["content"]
        assert "\n" not in email["content"]
        assert "<br>" in email["content"]

    def test_roadmap_and_identity_included(self, renderer):
        email = renderer.render("welcome", make_answers(experience="beginner"), "Priya")
        content = email["content"]
        assert "Hi Priya" in content
        assert "<strong>Timeline:</strong> 15 months (includes extended foundation period)" in content
        assert "Phase 1: Foundation Building" in content
        assert "Hands-on Projects Included" in content
        assert "https://cal.example.com/book" in content
        assert "Sarah Chen" in content

    def test_name_escaped_and_defaulted(self, renderer):
        email = renderer.render("welcome", {}, "<script>x</script>")
        assert "<script>" not in email["content"]
        assert "&lt;script&gt;" in email["content"]
        assert "Hi there" in renderer.render("welcome", {}, None)["content"]

    def test_unknown_stage_uses_generic_template(self, renderer):
        email = renderer.render("no_such_stage", make_answers(), "Priya")
        assert email["subject"] == "Your Personalized AI Career Roadmap"
        assert email["cta"] == "Schedule Your Consultation"
        assert "Data Science & Analytics Program" in email["content"]

    def test_missing_store_uses_generic_template(self):
        from funnelmind.services.email_content import EmailRenderer

        email = EmailRenderer(templates={}).render("welcome", None, "Priya")
        assert email["subject"] == "Your Personalized AI Career Roadmap"
        assert "AI & Machine Learning Program" in email["content"]

    def test_unknown_placeholders_left_alone(self):
        from funnelmind.services.email_content import EmailRenderer

        templates = {"welcome": {"subject": "Hi {{name}}", "template": "{{name}} {{coupon}}"}}
        email = EmailRenderer(templates=templates).render("welcome", {}, "Ana")
        assert email["subject"] == "Hi Ana"
        assert email["content"] == "Ana {{coupon}}"

    def test_subject_uses_unescaped_name(self):
        from funnelmind.services.email_content import EmailRenderer

        templates = {"welcome": {"subject": "Welcome {{name}}", "template": "Hi {{name}}"}}
        email = EmailRenderer(templates=templates).render("welcome", {}, "O'Brien <Pat>")
        assert email["subject"] == "Welcome O'Brien <Pat>"
        assert email["content"] == "Hi O&#x27;Brien &lt;Pat&gt;"

    def test_recommender_failure_returns_static_fallback(self):
        from funnelmind.services.email_content import STATIC_FALLBACK, EmailRenderer

        recommender = MagicMock()
        recommender.recommend.side_effect = RuntimeError("boom")
        email = EmailRenderer(recommender=recommender).render("welcome", {}, "Ana")
        assert email == STATIC_FALLBACK

    def test_never_raises_on_odd_input(self, renderer):
        for stage in ("", None, 42):
            email = renderer.render(stage, {"interest": ["weird"]}, 123)
            assert set(email) == {"subject", "content", "cta"}


class TestMarkdown:

    def test_bold_before_italic(self):
        from funnelmind.services.email_content import markdown_to_html

        assert markdown_to_html("**a** *b*\nc") == "<strong>a</strong> <em>b</em><br>c"
