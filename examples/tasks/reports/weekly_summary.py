"""Builds a weekly summary.  Async, with a select input and a date result."""

import asyncio
import datetime as dt

from onu import Task


async def run(input, ctx):
    await asyncio.sleep(0)
    today = dt.date.today()
    return {
        "format": input.get("format", "pdf"),
        "recipients": [r.strip() for r in input.get("recipients", "").split(",") if r.strip()],
        "week_start": today - dt.timedelta(days=today.weekday()),
    }


task = Task(
    name="Weekly summary",
    slug="weekly-summary",
    description="Compile the weekly summary and send it to the recipients",
    input={
        "recipients": {"name": "Recipients", "type": "csv", "description": "Comma-separated emails"},
        "format": {"name": "Format", "type": "select", "options": ["pdf", "html"]},
    },
    run=run,
)
