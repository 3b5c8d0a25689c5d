"""AI content generation via Anthropic, with fixed per-type fallbacks."""

import json
import logging
from datetime import datetime, timezone
from functools import lru_cache

from funnelmind.config import ANTHROPIC_API_KEY, ANTHROPIC_MODEL

logger = logging.getLogger(__name__)

SYSTEM_PROMPTS = {
    "cta-generation": (
        "You are an expert conversion copywriter for Scaler, an edtech company specializing "
        "in AI and Data Science courses. Generate compelling, personalized call-to-action "
        "content that converts software engineers into leads. Focus on career transformation, "
        "salary increases, and practical skills. Always return valid JSON."
    ),
    "course-recommendation": (
        "You are a career advisor for Scaler's AI and Data Science programs. Analyze user "
        "profiles and recommend the most suitable course with detailed reasoning. Consider "
        "career goals, experience level, and learning preferences. Provide specific, "
        "actionable insights. Always return valid JSON."
    ),
    "email-generation": (
        "You are an email marketing specialist for Scaler. Create personalized, engaging "
        "email content for software engineers interested in AI/Data Science career "
        "transitions. Use a professional but encouraging tone. Include social proof and "
        "clear value propositions. Always return valid JSON."
    ),
    "popup-generation": (
        "You are a conversion optimization expert. Create compelling exit-intent popup "
        "content that addresses user hesitations and provides clear value. Focus on urgency "
        "without being pushy. Include social proof and strong offers. Always return valid JSON."
    ),
    "general": (
        "You are an AI assistant for Scaler, helping potential students understand our AI "
        "and Data Science programs. Provide helpful, accurate information about career "
        "transitions in tech. Be encouraging and focus on transformation opportunities."
    ),
}

FALLBACK_RESPONSES = {
    "cta-generation": {
        "buttonText": "Start Your Journey",
        "supportMessage": "Transform your career with AI expertise from industry leaders",
    },
    "course-recommendation": {
        "recommendedCourse": "AI & Machine Learning Program",
        "reasoning": (
            "This comprehensive program is designed for software engineers looking to "
            "transition into high-growth AI roles."
        ),
        "expectedOutcome": "Land a high-paying AI/ML position within 12 months",
        "learningPath": [
            "Python & Math Foundations",
            "Machine Learning Core",
            "Deep Learning",
            "Real-world Projects",
            "Job Placement",
        ],
        "successProbability": "90%+",
        "personalizedMessage": (
            "Based on the growing demand for AI professionals, this program offers the best "
            "career advancement opportunity."
        ),
    },
    "email-generation": {
        "subject": "Your AI Career Transformation Starts Here",
        "content": (
            "Thank you for your interest in advancing your career with AI and Data Science. "
            "Our programs have helped thousands of engineers like you achieve significant "
            "career growth."
        ),
        "cta": "Schedule Your Free Consultation",
    },
    "popup-generation": {
        "title": "Don't miss your AI career opportunity!",
        "message": (
            "Join thousands of engineers who have transformed their careers with our proven "
            "AI programs."
        ),
        "offer": "Free Career Assessment + Personalized Roadmap",
        "buttonText": "Get My Free Assessment",
    },
}

GENERAL_FALLBACK = "Thank you for your interest in Scaler's AI programs!"


class AIUnavailableError(RuntimeError):
    """No Anthropic client could be created (missing key or SDK failure)."""


@lru_cache(maxsize=1)
def _get_client():
    if not ANTHROPIC_API_KEY:
        return None
    try:
        import anthropic
        return anthropic.Anthropic(api_key=ANTHROPIC_API_KEY)
    except Exception as e:
        logger.error("Failed to create Anthropic client: %s", e)
        return None


def is_configured() -> bool:
    return _get_client() is not None


def complete(prompt: str, content_type: str = "general", max_tokens: int = 500,
             client=None) -> str:
    """Run one prompt against the model and return the text of the reply."""
    client = client or _get_client()
    if client is None:
        raise AIUnavailableError("ANTHROPIC_API_KEY not configured")

    response = client.messages.create(
        model=ANTHROPIC_MODEL,
        max_tokens=max_tokens,
        system=get_system_prompt(content_type),
        messages=[{"role": "user", "content": prompt}],
    )
    return response.content[0].text


def parse_json_reply(text: str) -> dict:
    """Parse a JSON object out of a model reply, tolerating code fences."""
    json_text = text.strip()
    if json_text.startswith("```"):
        json_text = json_text.split("```")[1]
        if json_text.startswith("json"):
            json_text = json_text[4:]
        json_text = json_text.strip()
    data = json.loads(json_text)
    if not isinstance(data, dict):
        raise ValueError("Model reply is not a JSON object")
    return data


def get_system_prompt(content_type: str) -> str:
    return SYSTEM_PROMPTS.get(content_type, SYSTEM_PROMPTS["general"])


def get_fallback_response(content_type: str) -> str:
    """Canned response for a content type, serialized like a model reply."""
    fallback = FALLBACK_RESPONSES.get(content_type)
    if fallback is None:
        return GENERAL_FALLBACK
    return json.dumps(fallback)


def generate_content(prompt: str, content_type: str = "general", client=None) -> dict:
    """Generate content for the /api/ai endpoint.

    Never raises: any model failure returns the canned response for the type
    with ``fallback: True``.
    """
    timestamp = datetime.now(timezone.utc).isoformat()
    try:
        text = complete(prompt, content_type, client=client)
        return {"response": text, "type": content_type, "timestamp": timestamp}
    except Exception as e:
        logger.warning("AI generation failed for %s, using fallback: %s", content_type, e)
        return {
            "response": get_fallback_response(content_type),
            "type": content_type,
            "fallback": True,
            "timestamp": timestamp,
        }
