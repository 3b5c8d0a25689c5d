"""Lead nurture sequence — assessment follow-up after lead capture."""

SEQUENCE = {
    "id": "lead_nurture_v1",
    "name": "Assessment Lead Nurture",
    "description": "Welcome on capture, then results, stories, curriculum, social proof and a final CTA.",
    "trigger": "lead_captured",
    "active": True,
    # delay_hours is measured from capture time, not from the previous step
    "steps": [
        {"delay_hours": 0, "stage": "welcome"},
        {"delay_hours": 24, "stage": "assessment_results"},
        {"delay_hours": 3 * 24, "stage": "success_stories"},
        {"delay_hours": 5 * 24, "stage": "course_deep_dive"},
        {"delay_hours": 7 * 24, "stage": "social_proof"},
        {"delay_hours": 10 * 24, "stage": "final_cta"},
    ],
}
