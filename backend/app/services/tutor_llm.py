from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)

SCENARIO_SYSTEM_PROMPT = (
    "You are a patient tutor who writes short practice case scenarios for students. "
    "Write ONE realistic scenario of 80-150 words that forces the student to apply the topic, "
    "then end with a single open question addressed to the student. "
    "Plain text only, no Markdown, no answer."
)

TUTOR_SYSTEM_PROMPT = (
    "You are a Socratic tutor. The student is working through the case scenario below. "
    "Reply in at most 120 words: acknowledge what is right, point out one gap, "
    "and ask one follow-up question. Never give the full solution."
)


def _completion_text(data: Any) -> str | None:
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return None
    if not isinstance(content, str):
        return None
    text = content.strip()
    return text or None


def chat_completion(
    messages: list[dict[str, str]],
    *,
    debug_out: dict[str, Any] | None = None,
    base_url: str | None = None,
    model: str | None = None,
) -> str | None:
    """Call an OpenAI-compatible /chat/completions endpoint.

    Returns the assistant text, or None when the tutor is disabled, not
    configured, unreachable or returns an unusable body. `debug_out` gets an
    `error` key describing why.
    """

    def _set_debug(error: str) -> None:
        if debug_out is not None:
            debug_out["error"] = error

    if not settings.tutor_llm_enabled:
        _set_debug("disabled")
        return None

    token = (settings.tutor_llm_api_key or "").strip()
    if not token:
        _set_debug("missing_token")
        return None

    base = ((str(base_url).strip() if base_url is not None else "") or str(settings.tutor_llm_base_url or "")).rstrip("/")
    if not base:
        _set_debug("missing_base_url")
        return None

    use_model = (str(model).strip() if model is not None else "") or str(settings.tutor_llm_model or "").strip()
    payload = {
        "model": use_model,
        "stream": False,
        "messages": messages,
        "temperature": float(settings.tutor_llm_temperature),
    }
    url = base + "/chat/completions"

    timeout = httpx.Timeout(
        connect=float(settings.tutor_llm_timeout_connect),
        read=float(settings.tutor_llm_timeout_read),
        write=float(settings.tutor_llm_timeout_write),
        pool=3.0,
    )
    attempts = max(1, int(settings.tutor_llm_max_attempts))

    data: Any = None
    last_exc: Exception | None = None
    with httpx.Client(timeout=timeout) as client:
        for attempt in range(1, attempts + 1):
            try:
                r = client.post(url, json=payload, headers={"Authorization": f"Bearer {token}"})
                r.raise_for_status()
                data = r.json()
                last_exc = None
                break
            except (httpx.HTTPError, ValueError) as e:
                last_exc = e
                if attempt < attempts:
                    time.sleep(0.35 * attempt)

    if last_exc is not None:
        status = None
        resp = getattr(last_exc, "response", None)
        if resp is not None:
            status = int(getattr(resp, "status_code", 0) or 0) or None
            if debug_out is not None:
                debug_out["http_status"] = status
        logger.warning("tutor llm request failed url=%s err=%s status=%s", url, type(last_exc).__name__, status)
        _set_debug(f"request_failed:{type(last_exc).__name__}{(':HTTP_' + str(status)) if status else ''}")
        return None

    text = _completion_text(data)
    if text is None:
        _set_debug("empty_completion")
        return None
    return text


def generate_scenario(
    *,
    topic: str,
    difficulty: str,
    debug_out: dict[str, Any] | None = None,
) -> str | None:
    return chat_completion(
        [
            {"role": "system", "content": SCENARIO_SYSTEM_PROMPT},
            {"role": "user", "content": f"Topic: {topic}\nDifficulty: {difficulty}"},
        ],
        debug_out=debug_out,
    )


def tutor_reply(
    *,
    scenario: str,
    history: list[tuple[str, str]],
    debug_out: dict[str, Any] | None = None,
) -> str | None:
    """`history` is (role, message) pairs, oldest first, ending with the student's message."""
    messages = [{"role": "system", "content": f"{TUTOR_SYSTEM_PROMPT}\n\nScenario:\n{scenario}"}]
    # Keep the prompt bounded; the tail of the conversation matters most.
    for role, message in history[-20:]:
        messages.append({"role": role, "content": message})
    return chat_completion(messages, debug_out=debug_out)
