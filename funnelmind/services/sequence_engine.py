"""Sequence engine — welcome send on capture plus scheduled follow-up stages.

Follow-ups are APScheduler ``date`` jobs in the in-memory job store, keyed
``<lead_id>:<stage>``. They are not persisted: a process restart drops every
follow-up that has not fired yet.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone

from funnelmind.sequences import DEFAULT_SEQUENCE_ID, get_sequence

logger = logging.getLogger(__name__)


def _lead_snapshot(lead: dict) -> dict:
    """The fields a stage needs at fire time, detached from the stored record."""
    return {
        "lead_id": lead.get("lead_id", ""),
        "name": lead.get("name", ""),
        "email": lead.get("email", ""),
        "assessment_answers": dict(lead.get("assessment_answers") or {}),
    }


def job_id(lead_id: str, stage: str) -> str:
    return f"{lead_id}:{stage}"


class SequenceScheduler:
    """Runs one sequence definition for each captured lead."""

    def __init__(self, scheduler, renderer, dispatcher,
                 sequence_id: str = DEFAULT_SEQUENCE_ID, clock=None):
        sequence = get_sequence(sequence_id)
        if not sequence:
            raise ValueError(f"Unknown sequence: {sequence_id}")
        self.sequence = sequence
        self.scheduler = scheduler
        self.renderer = renderer
        self.dispatcher = dispatcher
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @property
    def immediate_steps(self) -> list[dict]:
        return [s for s in self.sequence["steps"] if s["delay_hours"] <= 0]

    @property
    def deferred_steps(self) -> list[dict]:
        return [s for s in self.sequence["steps"] if s["delay_hours"] > 0]

    async def start_sequence(self, lead: dict, captured_at: datetime | None = None) -> dict:
        """Send the immediate stage(s) now and arm the deferred ones.

        A failed immediate send is logged and does not stop the follow-ups
        from being scheduled.
        """
        captured_at = captured_at or self._clock()
        sent = {}
        for step in self.immediate_steps:
            sent[step["stage"]] = await self.send_stage(lead, step["stage"])

        scheduled = self.schedule_followups(lead, captured_at)
        logger.info(
            "Sequence %s started for %s: %d sent now, %d scheduled",
            self.sequence["id"], lead.get("email"), len(sent), len(scheduled),
        )
        return {"sent": sent, "scheduled": scheduled}

    def schedule_followups(self, lead: dict, captured_at: datetime) -> list[str]:
        """Arm one date job per deferred stage. Returns the job ids."""
        snapshot = _lead_snapshot(lead)
        ids = []
        for step in self.deferred_steps:
            run_date = captured_at + timedelta(hours=step["delay_hours"])
            jid = job_id(snapshot["lead_id"], step["stage"])
            self.scheduler.add_job(
                self.send_stage,
                trigger="date",
                run_date=run_date,
                args=[snapshot, step["stage"]],
                id=jid,
                name=f"{self.sequence['id']}:{step['stage']}",
                replace_existing=True,
            )
            ids.append(jid)
        return ids

    async def send_stage(self, lead: dict, stage: str) -> dict | None:
        """Render and dispatch one stage. Returns the dispatch result, or None on failure."""
        try:
            content = await asyncio.to_thread(
                self.renderer.render, stage, lead.get("assessment_answers"), lead.get("name"),
            )
            result = await self.dispatcher.send({
                "to": lead["email"],
                "name": lead.get("name"),
                "subject": content["subject"],
                "content": content["content"],
                "cta": content.get("cta"),
                "type": stage,
            })
        except Exception:
            logger.exception("Sequence stage %s failed for %s", stage, lead.get("email"))
            return None

        logger.info(
            "Sequence email %s -> %s via %s (%s)",
            stage, lead.get("email"), result.get("provider"), result.get("message_id"),
        )
        return result

    def scheduled_jobs(self, lead_id: str | None = None) -> list[dict]:
        """Pending follow-ups, soonest first."""
        jobs = []
        for job in self.scheduler.get_jobs():
            if ":" not in job.id:
                continue
            owner, stage = job.id.rsplit(":", 1)
            if lead_id and owner != lead_id:
                continue
            jobs.append({
                "id": job.id,
                "lead_id": owner,
                "stage": stage,
                "run_date": job.trigger.run_date,
            })
        jobs.sort(key=lambda j: j["run_date"])
        return jobs
