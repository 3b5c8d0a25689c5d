"""Email content renderer — stage template + recommendation -> subject/content/cta."""

import html
import logging
import re
from pathlib import Path

import yaml

from funnelmind.config import ADVISOR_NAME, CTA_LINK, EMAIL_TEMPLATES_PATH
from funnelmind.services.recommendations import (
    TIMELINE_NOTES, Recommendation, RuleBasedRecommender,
)

logger = logging.getLogger(__name__)

TEMPLATE_CTA = "Book Your Free Consultation"
FALLBACK_CTA = "Schedule Your Consultation"

FALLBACK_SUBJECT = "Your Personalized AI Career Roadmap"

# Used when the stage has no template (or the template store failed to load)
FALLBACK_TEMPLATE = """Hi {{name}}!

Thank you for completing our career assessment. Based on your responses, we've created a personalized roadmap for your AI career transformation.

**Your Recommended Path:** {{recommendedCourse}}

**Why this is perfect for you:**
{{reasoning}}

**Expected Outcome:**
{{expectedOutcome}}

**Your Personalized Learning Roadmap:**
{{detailedRoadmap}}

**Success Story:**
{{successStory}}

**What's Next:**
✅ Review your detailed career roadmap above
📞 Book a free 1-on-1 consultation with our career advisor: {{ctaLink}}
🎯 Get personalized guidance on your learning journey
💼 Access exclusive job opportunities in our partner network

Our team will contact you within 24 hours to discuss your next steps.

Best regards,
The Scaler Team

P.S. Over 50,000 engineers have transformed their careers with us. You're next! 🚀"""

# Last resort when rendering itself fails; contains no placeholders
STATIC_FALLBACK = {
    "subject": FALLBACK_SUBJECT,
    "content": (
        "Hi there!<br><br>"
        "Thank you for completing our career assessment. Our advisors are preparing your "
        "personalized AI career roadmap and will contact you within 24 hours.<br><br>"
        "Best regards,<br>The Scaler Team"
    ),
    "cta": FALLBACK_CTA,
}

PHASE_HEADINGS = (
    ("foundation", "Phase 1: Foundation Building (Months 1-3)"),
    ("core", "Phase 2: Core Skills Development (Months 4-8)"),
    ("specialization", "Phase 3: Specialization & Advanced Topics (Months 9-11)"),
    ("career", "Phase 4: Career Transition & Job Placement (Month 12+)"),
)

PROJECTS_SECTION = (
    "Build 8-10 real-world projects for your portfolio",
    "Work on live industry problems with mentor guidance",
    "Collaborate with peers on team projects",
    "Present your work to industry experts",
)

SUPPORT_SECTION = (
    "Weekly 1-on-1 mentorship sessions",
    "24/7 doubt resolution support",
    "Peer learning groups and study circles",
    "Industry networking events and job fairs",
)

_BOLD_RE = re.compile(r"\*\*(.*?)\*\*")
_ITALIC_RE = re.compile(r"\*(.*?)\*")


def load_templates(path: Path = EMAIL_TEMPLATES_PATH) -> dict:
    """Load the stage -> {subject, template} store. Returns {} on any failure."""
    try:
        data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.error("Failed to load email templates from %s: %s", path, e)
        return {}

    if not isinstance(data, dict):
        logger.error("Email template store %s is not a mapping", path)
        return {}

    templates = {}
    for stage, entry in data.items():
        if isinstance(entry, dict) and entry.get("subject") and entry.get("template"):
            templates[stage] = {"subject": str(entry["subject"]), "template": str(entry["template"])}
        else:
            logger.warning("Skipping malformed email template %r", stage)
    logger.info("Loaded %d email templates: %s", len(templates), ", ".join(templates))
    return templates


def _bullets(items) -> str:
    return "\n".join(f"• {item}" for item in items)


def render_roadmap(recommendation: Recommendation) -> str:
    """Phase-labelled, bulleted roadmap text (markdown, not yet HTML)."""
    timeline = recommendation.timeline
    note = TIMELINE_NOTES.get(timeline)
    lines = [f"**Timeline:** {timeline} ({note})" if note else f"**Timeline:** {timeline}"]

    for phase, heading in PHASE_HEADINGS:
        lines.append("")
        lines.append(f"**{heading}**")
        lines.append(_bullets(recommendation.roadmap.get(phase, ())))

    lines += ["", "**Hands-on Projects Included:**", _bullets(PROJECTS_SECTION)]
    lines += ["", "**Support Throughout Your Journey:**", _bullets(SUPPORT_SECTION)]
    return "\n".join(lines)


def substitute(text: str, values: dict) -> str:
    """Replace {{key}} placeholders; unknown placeholders are left as-is."""
    for key, value in values.items():
        text = text.replace("{{" + key + "}}", value)
    return text


def markdown_to_html(text: str) -> str:
    """Minimal pass: **bold**, *italic*, newlines."""
    text = _BOLD_RE.sub(r"<strong>\1</strong>", text)
    text = _ITALIC_RE.sub(r"<em>\1</em>", text)
    return text.replace("\n", "<br>")


class EmailRenderer:
    """Renders sequence emails. ``render`` never raises."""

    def __init__(self, templates: dict | None = None, recommender=None,
                 cta_link: str = CTA_LINK, advisor_name: str = ADVISOR_NAME):
        self.templates = load_templates() if templates is None else templates
        self.recommender = recommender or RuleBasedRecommender()
        self.cta_link = cta_link
        self.advisor_name = advisor_name

    def render(self, stage: str, answers: dict | None, name: str | None) -> dict:
        try:
            return self._render(stage, answers, name)
        except Exception:
            logger.exception("Email render failed for stage %s, using static fallback", stage)
            return dict(STATIC_FALLBACK)

    def _render(self, stage: str, answers: dict | None, name: str | None) -> dict:
        result = self.recommender.recommend(answers)
        recommendation = result.value

        template = self.templates.get(stage)
        if template:
            subject, body, cta = template["subject"], template["template"], TEMPLATE_CTA
        else:
            logger.warning("No email template for stage %r, using generic fallback", stage)
            subject, body, cta = FALLBACK_SUBJECT, FALLBACK_TEMPLATE, FALLBACK_CTA

        display_name = (name or "").strip() or "there"
        values = {
            "name": html.escape(display_name),
            "recommendedCourse": recommendation.recommended_course,
            "reasoning": recommendation.reasoning,
            "expectedOutcome": recommendation.expected_outcome,
            "detailedRoadmap": render_roadmap(recommendation),
            "successStory": recommendation.success_story,
            "ctaLink": self.cta_link,
            "advisorName": self.advisor_name,
        }

        content = markdown_to_html(substitute(body.strip(), values))
        logger.debug(
            "Rendered %s email: course=%s fallback_recommendation=%s length=%d",
            stage, recommendation.recommended_course, result.fallback, len(content),
        )
        return {
            "subject": substitute(subject, dict(values, name=display_name)),
            "content": content,
            "cta": cta,
        }
