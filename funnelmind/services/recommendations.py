"""Course recommendations from assessment answers.

The rule-based generator is pure and deterministic: identical answers always
produce an identical ``Recommendation``. ``AIRecommender`` optionally refines
the prose through Anthropic and falls back to the rule-based result whenever
the model is unavailable or returns something unusable.
"""

import json
import logging
from dataclasses import dataclass, field, replace

from funnelmind.services import ai_content

logger = logging.getLogger(__name__)

PHASES = ("foundation", "core", "specialization", "career")

DEFAULT_COURSE = "AI & Machine Learning Program"

TRACKS = {
    "default": {
        "course": DEFAULT_COURSE,
        "reasoning": (
            "Based on your responses, this comprehensive program offers the best career "
            "advancement opportunities."
        ),
        "outcome": (
            "Achieve a 2-3x salary increase and land roles at top tech companies within 12 months"
        ),
        "story": (
            "Like thousands of engineers who have successfully transitioned to AI roles with us."
        ),
        "roadmap": {
            "foundation": (
                "Python programming mastery",
                "Mathematics for AI (statistics, linear algebra)",
                "Data structures and algorithms review",
                "Introduction to machine learning concepts",
            ),
            "core": (
                "Supervised learning algorithms and implementation",
                "Unsupervised learning and clustering",
                "Deep learning and neural networks",
                "Computer vision and image processing",
                "Natural language processing basics",
            ),
            "specialization": (
                "Advanced deep learning architectures",
                "MLOps and production deployment",
                "AI ethics and responsible AI development",
                "Industry-specific AI applications",
            ),
            "career": (
                "Capstone project with real industry mentor",
                "Technical interview preparation",
                "Portfolio development and GitHub optimization",
                "Mock interviews and salary negotiation",
                "Job placement with 100+ partner companies",
            ),
        },
    },
    "data_science": {
        "course": "Data Science & Analytics Program",
        "reasoning": (
            "Your interest in data science makes this program perfect for developing analytical "
            "and statistical skills that are in high demand."
        ),
        "outcome": (
            "Become a data science expert with skills in Python, SQL, machine learning, and "
            "statistical analysis. Expected salary range: ₹15-25 LPA."
        ),
        "story": (
            "Like Priya, who transitioned from web development to Data Scientist at Microsoft "
            "with a 150% salary increase."
        ),
        "roadmap": {
            "foundation": (
                "Master Python and SQL fundamentals",
                "Statistics and probability theory",
                "Data visualization with Matplotlib and Seaborn",
                "Pandas and NumPy for data manipulation",
            ),
            "core": (
                "Machine learning algorithms (supervised and unsupervised)",
                "Feature engineering and model selection",
                "Deep learning with TensorFlow/PyTorch",
                "Time series analysis and forecasting",
                "A/B testing and experimental design",
            ),
            "specialization": (
                "Advanced analytics and business intelligence",
                "Big data technologies (Spark, Hadoop)",
                "MLOps and model deployment",
                "Domain-specific projects (finance, healthcare, e-commerce)",
            ),
            "career": (
                "Build impressive portfolio with 5+ real-world projects",
                "Mock interviews with industry experts",
                "Resume optimization for data science roles",
                "Networking with Scaler alumni network",
                "Job placement assistance with partner companies",
            ),
        },
    },
    "mlops": {
        "course": "MLOps & Deployment Program",
        "reasoning": (
            "Your technical background makes you ideal for this specialized program focusing on "
            "production ML systems and deployment pipelines."
        ),
        "outcome": (
            "Master MLOps tools and become an expert in deploying ML models at scale. "
            "Expected salary range: ₹18-30 LPA."
        ),
        "story": (
            "Like Arjun, who became an MLOps Engineer at Amazon and doubled his salary within "
            "8 months."
        ),
        "roadmap": {
            "foundation": (
                "DevOps fundamentals and containerization (Docker)",
                "Cloud platforms (AWS/GCP/Azure) basics",
                "Python programming and software engineering practices",
                "Version control with Git and MLflow",
            ),
            "core": (
                "ML model lifecycle management",
                "CI/CD pipelines for ML projects",
                "Monitoring and logging for ML systems",
                "Kubernetes for ML deployment",
                "Infrastructure as Code (Terraform)",
            ),
            "specialization": (
                "Advanced ML orchestration tools (Airflow, Kubeflow)",
                "Model serving and API development",
                "Edge deployment and optimization",
                "Security and compliance in ML systems",
            ),
            "career": (
                "Build end-to-end MLOps pipeline projects",
                "Contribute to open-source ML tools",
                "Industry certifications (AWS ML, GCP ML)",
                "Technical interview preparation",
                "Job placement with top tech companies",
            ),
        },
    },
    "ai_research": {
        "course": "Advanced AI & Research Program",
        "reasoning": (
            "Your interest in AI research aligns perfectly with our advanced program covering "
            "cutting-edge AI techniques and research methodologies."
        ),
        "outcome": (
            "Develop expertise in advanced AI research and land roles at top research labs or "
            "AI-first companies. Expected salary range: ₹20-35 LPA."
        ),
        "story": (
            "Like Dr. Karthik, who transitioned from software engineering to AI Research "
            "Scientist at OpenAI."
        ),
        "roadmap": {
            "foundation": (
                "Advanced mathematics (linear algebra, calculus)",
                "Research methodology and academic writing",
                "Python and deep learning frameworks",
                "Literature review and paper analysis",
            ),
            "core": (
                "Advanced neural network architectures",
                "Natural language processing and computer vision",
                "Reinforcement learning and optimization",
                "Research project execution",
                "Conference paper writing and submission",
            ),
            "specialization": (
                "Cutting-edge AI research areas (LLMs, multimodal AI)",
                "Research collaboration and mentorship",
                "Grant writing and funding acquisition",
                "Industry-academia partnerships",
            ),
            "career": (
                "Publish papers in top-tier conferences",
                "Build research portfolio and online presence",
                "Network with research community",
                "Prepare for research scientist interviews",
                "Transition to research roles in industry or academia",
            ),
        },
    },
}

# Used verbatim when no assessment answers were submitted at all
GENERIC_REASONING = (
    "Our comprehensive program offers the best career advancement opportunities in the "
    "rapidly growing AI field."
)
GENERIC_OUTCOME = (
    "Achieve a 2-3x salary increase and land roles at top tech companies within 12 months."
)
GENERIC_STORY = (
    "Like Rahul, who went from a software developer to AI Engineer at Google with a 120% "
    "salary increase."
)

EXPERIENCE_CAVEATS = {
    "beginner": (
        " The program includes comprehensive foundation modules to ensure you build strong "
        "fundamentals before diving into advanced topics."
    ),
    "expert": (
        " With your advanced background, you can skip foundational modules and focus on "
        "cutting-edge techniques and specializations."
    ),
}

TIMELINES = {"beginner": "15 months", "expert": "9 months"}
DEFAULT_TIMELINE = "12 months"

TIMELINE_NOTES = {
    "15 months": "includes extended foundation period",
    "9 months": "accelerated track available",
}


@dataclass(frozen=True)
class Recommendation:
    recommended_course: str
    reasoning: str
    expected_outcome: str
    success_story: str
    roadmap: dict = field(default_factory=dict)
    timeline: str = DEFAULT_TIMELINE

    def to_dict(self) -> dict:
        return {
            "recommendedCourse": self.recommended_course,
            "reasoning": self.reasoning,
            "expectedOutcome": self.expected_outcome,
            "successStory": self.success_story,
            "roadmap": {phase: list(self.roadmap.get(phase, ())) for phase in PHASES},
            "timeline": self.timeline,
        }


@dataclass(frozen=True)
class GenerationResult:
    """Tagged generator output: ``fallback`` is True when the AI path was skipped."""

    value: Recommendation
    fallback: bool = False
    error: str = ""


def _answer(answers: dict, key: str) -> str | None:
    """String answer for a key; any other value counts as unanswered."""
    value = answers.get(key)
    return value if isinstance(value, str) else None


def generate_recommendation(answers: dict | None) -> Recommendation:
    """Deterministic course recommendation for a set of assessment answers."""
    if not answers:
        track = TRACKS["default"]
        return Recommendation(
            recommended_course=track["course"],
            reasoning=GENERIC_REASONING,
            expected_outcome=GENERIC_OUTCOME,
            success_story=GENERIC_STORY,
            roadmap=dict(track["roadmap"]),
            timeline=DEFAULT_TIMELINE,
        )

    track = TRACKS.get(_answer(answers, "interest"), TRACKS["default"])
    experience = _answer(answers, "experience")

    return Recommendation(
        recommended_course=track["course"],
        reasoning=track["reasoning"] + EXPERIENCE_CAVEATS.get(experience, ""),
        expected_outcome=track["outcome"],
        success_story=track["story"],
        roadmap=dict(track["roadmap"]),
        timeline=TIMELINES.get(experience, DEFAULT_TIMELINE),
    )


class RuleBasedRecommender:
    """Default strategy: the deterministic generator."""

    def recommend(self, answers: dict | None) -> GenerationResult:
        return GenerationResult(generate_recommendation(answers))


class AIRecommender:
    """Refines the rule-based recommendation's prose with the model.

    Course, roadmap and timeline always come from the rule-based generator;
    the model may only rewrite reasoning, outcome and success story.
    """

    _REQUIRED = ("reasoning", "expectedOutcome", "successStory")

    def __init__(self, client=None, base: RuleBasedRecommender | None = None):
        self.client = client
        self.base = base or RuleBasedRecommender()

    def _prompt(self, answers: dict, draft: Recommendation) -> str:
        return (
            "Personalize this course recommendation for a prospective student.\n\n"
            f"Assessment answers: {json.dumps(answers or {}, sort_keys=True)}\n"
            f"Recommended course: {draft.recommended_course}\n"
            f"Draft reasoning: {draft.reasoning}\n\n"
            "Return ONLY a JSON object with string fields "
            '"reasoning", "expectedOutcome" and "successStory".'
        )

    def recommend(self, answers: dict | None) -> GenerationResult:
        draft = self.base.recommend(answers).value
        try:
            text = ai_content.complete(
                self._prompt(answers or {}, draft), "course-recommendation", client=self.client,
            )
            data = ai_content.parse_json_reply(text)
            missing = [
                k for k in self._REQUIRED
                if not isinstance(data.get(k), str) or not data[k].strip()
            ]
            if missing:
                raise ValueError(f"Model reply missing fields: {', '.join(missing)}")
        except Exception as e:
            logger.info("AI recommendation unavailable, using rule-based: %s", e)
            return GenerationResult(draft, fallback=True, error=str(e))

        return GenerationResult(replace(
            draft,
            reasoning=data["reasoning"].strip(),
            expected_outcome=data["expectedOutcome"].strip(),
            success_story=data["successStory"].strip(),
        ))


def build_recommender():
    """AI strategy when Anthropic is configured, otherwise rule-based."""
    if ai_content.is_configured():
        return AIRecommender()
    return RuleBasedRecommender()
