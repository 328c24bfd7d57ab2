# famhub/apps/family_api/ai_service.py
"""
Thin wrappers over the OpenAI chat completion API.

When the client is not configured or a call errors, helpers return a
fallback value instead of raising.
"""
import json
import logging
from datetime import timedelta

import openai
from django.conf import settings
from django.utils import timezone

logger = logging.getLogger(__name__)

TREND_ANALYSIS_DAYS = 14
CHAT_HISTORY_LIMIT = 20
TREND_FALLBACK = "Unable to generate analysis right now. Please try again later."
CHAT_FALLBACK = "I'm having trouble responding right now. Please try again!"

openai_client = None
_api_key = getattr(settings, 'OPENAI_API_KEY', None)
if _api_key:
    try:
        openai_client = openai.OpenAI(api_key=_api_key, timeout=15)
        logger.info("OpenAI client initialized successfully")
    except Exception as e:
        logger.error(f"Error initializing OpenAI client: {e}", exc_info=True)
        openai_client = None
else:
    logger.warning("OPENAI_API_KEY not set. AI text features will fall back to the original input.")


def complete(system_prompt, user_prompt, temperature=0.3, json_mode=False):
    """Single-shot completion. Returns the text, or None on any failure."""
    if not openai_client:
        return None
    kwargs = {
        'model': getattr(settings, 'OPENAI_MODEL', 'gpt-4o-mini'),
        'messages': [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
        'temperature': temperature,
    }
    if json_mode:
        kwargs['response_format'] = {"type": "json_object"}
    try:
        response = openai_client.chat.completions.create(**kwargs)
        content = response.choices[0].message.content
    except Exception as e:
        logger.error(f"AI completion failed: {e}", exc_info=True)
        return None
    return content.strip() if content else None


def capitalize_and_correct_text(text):
    if not text or not text.strip():
        return text
    corrected = complete(
        "You fix capitalization, spelling and obvious typos in short text typed into a family organizer. "
        "Keep the meaning, language and length. Reply with the corrected text only, no quotes.",
        text,
        temperature=0.0,
    )
    return corrected or text


def validate_health_input(log_type, value):
    """
    Ask whether `value` is a sensible entry for a health log of `log_type`.
    Returns {'is_valid': bool, 'suggestion': str}.
    """
    fallback = {'is_valid': True, 'suggestion': ''}
    if not value or not value.strip():
        return fallback
    content = complete(
        "You check entries in a child's health log. Reply with a JSON object with keys "
        "'is_valid' (boolean) and 'suggestion' (short friendly hint, empty when valid).",
        f"Log type: {log_type}\nEntry: {value}",
        temperature=0.0,
        json_mode=True,
    )
    if not content:
        return fallback
    try:
        data = json.loads(content)
    except json.JSONDecodeError:
        logger.warning(f"AI validation returned invalid JSON: {content!r}")
        return fallback
    if not isinstance(data, dict):
        return fallback
    return {
        'is_valid': bool(data.get('is_valid', True)),
        'suggestion': str(data.get('suggestion') or ''),
    }


def generate_trend_analysis(child, now=None):
    from .models import HealthLog

    since = (now or timezone.now()) - timedelta(days=TREND_ANALYSIS_DAYS)
    logs = HealthLog.objects.filter(child=child, timestamp__gte=since).order_by('timestamp')
    if not logs.exists():
        return f"Not enough data yet. Log meals, sleep and mood for {child.name} to see trends."

    log_lines = "\n".join(
        f"- {log.timestamp.date().isoformat()} {log.log_type}: {log.value}"
        + (f" (notes: {log.notes})" if log.notes else "")
        for log in logs
    )
    analysis = complete(
        "You are a supportive family health assistant. Summarize patterns in a child's meal, sleep and mood "
        "logs in a few short paragraphs with gentle suggestions. You are not a doctor; say so briefly.",
        f"Health log for {child.name} over the last {TREND_ANALYSIS_DAYS} days:\n{log_lines}",
        temperature=0.6,
    )
    return analysis or TREND_FALLBACK


def chat_reply(owner, message):
    """Answer a chat message and store both turns."""
    from .models import ChatMessage

    ChatMessage.objects.create(owner=owner, role='user', content=message)
    history = list(ChatMessage.objects.filter(owner=owner).order_by('-timestamp', '-id')[:CHAT_HISTORY_LIMIT])
    transcript = "\n".join(f"{m.role}: {m.content}" for m in reversed(history))

    reply = complete(
        "You are a warm, practical assistant helping parents organize family life: children, schedules, "
        "health and safety. Keep answers concise.",
        transcript,
        temperature=0.7,
    )
    if reply is None:
        reply = CHAT_FALLBACK
    ChatMessage.objects.create(owner=owner, role='assistant', content=reply)
    return reply
