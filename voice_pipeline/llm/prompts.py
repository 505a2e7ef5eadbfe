"""Prompt templates for every language model operation."""

from __future__ import annotations

from collections.abc import Sequence

from voice_pipeline.data.records import Client, RiskLevel, Session
from voice_pipeline.models import ConversationContext, DetectedIntent, VoiceReminder

REMINDER_SYSTEM_PROMPT = (
    "You are a clinical assistant for a mental health therapist. Your role is to "
    "analyze voice reminders recorded during or after therapy sessions and extract "
    "actionable information. Be precise and clinical in your analysis. Pay special "
    "attention to any risk indicators or urgent matters."
)

INTENT_SYSTEM_PROMPT = (
    "You are an intent parser for a therapy practice management assistant. "
    "Parse user queries and identify:\n"
    "1. What action they want (schedule lookup, client info, session history, etc.)\n"
    "2. Any entities mentioned (client names, dates, etc.)\n"
    "3. Time references (today, tomorrow, last session, etc.)\n"
    "Return structured JSON only."
)

RESPONSE_SYSTEM_PROMPT = (
    "You are a helpful voice assistant for a mental health therapist's practice. "
    "Provide clear, concise responses about appointments, clients, and session "
    "information. Be professional but warm. Keep responses brief as they will be "
    "spoken aloud."
)

SUMMARY_SYSTEM_PROMPT = (
    "You are a clinical assistant generating end-of-day summaries for a mental "
    "health therapist. Be concise, highlight important items, and flag any "
    "risk-related notes. Format for easy scanning."
)

FOLLOW_UPS_SYSTEM_PROMPT = (
    "You are a clinical assistant. Extract follow-up items and return them as a "
    "JSON array of strings."
)

CATEGORY_SYSTEM_PROMPT = (
    "You are a clinical assistant. Categorize the reminder and return only the category key."
)

PRIORITY_SYSTEM_PROMPT = (
    "You are a clinical assistant. Assess priority and return only the priority level."
)


def context_info(context: ConversationContext | None) -> str:
    """Describe the carried-forward conversation context for a prompt."""
    if context is None:
        return ""
    lines = ["Current context:"]
    if context.current_client_name:
        lines.append(f"- Currently discussing client: {context.current_client_name}")
    if context.last_intent:
        lines.append(f"- Previous query was about: {context.last_intent.value}")
    return "\n".join(lines)


def reminder_prompt(transcription: str, client: Client | None = None) -> str:
    prompt = (
        "Analyze this voice reminder from a therapy session and return a JSON object with:\n"
        "- extracted_follow_ups: Array of specific action items\n"
        "- suggested_category: One of session_follow_up, clinical_note, homework, "
        "risk_flag, administrative, personal, urgent\n"
        "- suggested_priority: One of low, medium, high, critical\n"
        "- key_entities: Array of important names, topics mentioned\n"
        "- action_items: Array of specific tasks to complete\n"
    )
    if client is not None and client.name:
        prompt += f"\nClient context: {client.name}"
        if client.clinical_considerations:
            prompt += f"\nClinical considerations: {', '.join(client.clinical_considerations)}"
    prompt += f'\n\nReminder transcription: "{transcription}"\n\nReturn only valid JSON.'
    return prompt


def follow_ups_prompt(note: str) -> str:
    return (
        "Extract specific follow-up items from this therapy session note.\n"
        "Return only a JSON array of strings, each being a clear action item.\n\n"
        f'Note: "{note}"'
    )


def category_prompt(note: str) -> str:
    return (
        "Categorize this therapy reminder into one of these categories:\n"
        "- session_follow_up: Related to client session follow-up\n"
        "- clinical_note: Clinical observation to document\n"
        "- homework: Homework assignment reminder\n"
        "- risk_flag: Risk-related notation requiring attention\n"
        "- administrative: Billing, scheduling, admin tasks\n"
        "- personal: Personal reminder\n"
        "- urgent: Requires immediate attention\n\n"
        f'Note: "{note}"\n\n'
        "Return only the category key as a single word."
    )


def priority_prompt(note: str, client_risk_level: RiskLevel | None = None) -> str:
    risk_context = f"Client's current risk level: {client_risk_level.value}" if client_risk_level else ""
    return (
        "Assess the priority of this therapy reminder:\n"
        "- low: Can be addressed in future sessions\n"
        "- medium: Should be addressed soon\n"
        "- high: Important, address in next session\n"
        "- critical: Urgent, requires immediate attention\n\n"
        f"{risk_context}\n\n"
        f'Note: "{note}"\n\n'
        "Return only the priority level as a single word."
    )


def intent_prompt(text: str, context: ConversationContext | None = None) -> str:
    return (
        "Parse the user's intent from this query and return a JSON object with these fields:\n"
        "- action: One of: query_next_appointment, query_client_history, "
        "query_previous_session, query_session_prep, create_reminder, search_clients, "
        "get_schedule, get_daily_summary, get_client_info, unknown\n"
        '- entity_type: Optional - "client", "appointment", "session", etc.\n'
        "- entity_name: Optional - Name mentioned (e.g., client name)\n"
        '- time_reference: Optional object with "type" (today, tomorrow, this_week, '
        'next_week, last_session, specific, range) plus "date" for specific or '
        '"start_date"/"end_date" for range, as YYYY-MM-DD\n\n'
        f"{context_info(context)}\n\n"
        f'User query: "{text}"\n\n'
        "Return only valid JSON."
    )


def response_prompt(
    intent: DetectedIntent, data_description: str, context: ConversationContext | None = None
) -> str:
    entity = f"Entity: {intent.entity_name}" if intent.entity_name else ""
    return (
        "Generate a natural, conversational response for a therapy practice assistant.\n\n"
        f"Intent: {intent.action.value}\n"
        f"{entity}\n"
        f"{context_info(context)}\n\n"
        "Data retrieved:\n"
        f"{data_description}\n\n"
        "Generate a helpful, concise response. Be professional but warm."
    )


def summary_prompt(reminders: Sequence[VoiceReminder], sessions: Sequence[Session]) -> str:
    reminders_text = "\n".join(f"- {r.transcription} [{r.priority.value}]" for r in reminders)
    sessions_text = "\n".join(f"- {s.title} at {s.scheduled_at.strftime('%H:%M')}" for s in sessions)
    return (
        "Generate a brief end-of-day summary for a therapist.\n\n"
        "Voice reminders recorded today:\n"
        f"{reminders_text or 'None'}\n\n"
        "Sessions completed today:\n"
        f"{sessions_text or 'None'}\n\n"
        "Provide a concise, actionable summary highlighting:\n"
        "1. Key items requiring attention\n"
        "2. Any risk-related notes\n"
        "3. Important follow-ups for tomorrow\n\n"
        "Keep it brief and scannable."
    )
