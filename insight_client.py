from __future__ import annotations

import json
import re
from http.client import HTTPException
from urllib.error import HTTPError
from urllib.request import Request, urlopen

from config import Settings, get_settings
from insights import format_currency
from stats import Stats

MAX_REMOTE_LINES = 10
BULLET_RE = re.compile(r"^[-*\u2022]\s*")

SYSTEM_PROMPT = (
    "You are a financial analyst. Summarize, in short bullets (max 8), insights, "
    "alerts and suggestions based on the data provided. Be concise, no emojis. "
    "Do not truncate sentences or words; deliver complete sentences."
)

PROMPT_RULES = (
    "Use exactly the values provided, without truncating or inventing numbers. "
    "Format as short bullets, without repeating a header.",
    "Limit to 8 bullets: 3 overview, 3 alerts, 2 suggestions/projections.",
    "Do not add repeated text. Do not use emojis. Do not split words.",
    "Keep currency amounts complete and numeric. Deliver complete sentences.",
)


class InsightProviderError(RuntimeError):
    pass


def split_bullets(text: str, limit: int = MAX_REMOTE_LINES) -> list[str]:
    lines = (BULLET_RE.sub("", line.strip()) for line in text.splitlines())
    return [line for line in lines if line][:limit]


def build_prompt(stats: Stats, currency_format: str = "${amount}") -> str:
    def money(value: float) -> str:
        return format_currency(value, currency_format)

    top_cats = ", ".join(
        f"{c.category} ({money(c.total)})" for c in stats.top_expenses_month[:3]
    )
    biggest = stats.biggest_expense
    lines = [
        f"Net balance this month: {money(stats.net_month)} "
        f"(income {money(stats.income_month)}, expenses {money(stats.expense_month)})",
        f"Last month: net {money(stats.net_prev_month)}, "
        f"expenses {money(stats.expense_prev_month)}",
        f"Top categories: {top_cats or 'n/a'}",
        "Largest expense: "
        + (f"{money(biggest.amount)} on {biggest.category}" if biggest else "n/a"),
        f"Daily average 30d (expenses): {money(stats.avg_daily_expense30)}",
        f"Week: income {money(stats.income_week)}, "
        f"expenses {money(stats.expense_week)}",
        f"Peak spending day: {stats.day_peak or 'n/a'}",
    ]
    return "\n".join([*PROMPT_RULES, "\n".join(lines)])


class InsightClient:
    """Chat-completion client for an OpenAI-compatible endpoint."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()

    def request_body(self, stats: Stats) -> dict[str, object]:
        return {
            "model": self.settings.insights_model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": build_prompt(stats, self.settings.currency_format),
                },
            ],
            "max_tokens": 420,
            "temperature": 0.2,
        }

    def fetch_insights(self, stats: Stats) -> list[str]:
        if not self.settings.insights_api_key:
            raise InsightProviderError("Remote insights are not configured")

        req = Request(
            self.settings.insights_api_url,
            data=json.dumps(self.request_body(stats)).encode("utf-8"),
            headers={
                "Content-Type": "application/json",
                "Accept": "application/json",
                "Authorization": f"Bearer {self.settings.insights_api_key}",
            },
            method="POST",
        )
        try:
            with urlopen(req, timeout=self.settings.insights_timeout_secs) as resp:
                payload = json.loads(resp.read().decode("utf-8"))
        except HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="replace").strip()
            suffix = f": {detail}" if detail else ""
            raise InsightProviderError(
                f"provider responded {exc.code}{suffix}"
            ) from exc
        except (OSError, ValueError, HTTPException) as exc:
            raise InsightProviderError(f"request failed: {exc}") from exc

        try:
            text = payload["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as exc:
            raise InsightProviderError("Unexpected provider response") from exc

        lines = split_bullets(str(text))
        if not lines:
            raise InsightProviderError("provider returned no insights")
        return lines
