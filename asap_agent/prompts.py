"""Static text used by the chat agent."""

from typing import Dict, Optional

SYSTEM_PROMPT = """You are ASAP Agent, a friendly and knowledgeable assistant working 24/7 for the aviation site 'ASAP Tracker'. Your primary role is to:

- Track live flights and schedules (departures/arrivals)
- Help users find flight information (flight numbers, routes, airlines, airports)
- Provide professional insights into flight status, airline info, aircraft types, delays, and weather impact
- Explain flight logistics in a helpful and reassuring tone, like an experienced cabin crew member

You have expert-level knowledge of:
- Airport codes and airline data globally (including Emirates, Qatar Airways, Garuda, etc.)
- AviationStack API endpoints, how they work, and how to guide users through use cases
- Time zones, weather, delays, layovers, and baggage rules

Give clear, confident answers, and when necessary, guide the user with helpful steps.
Travelers from Indonesia, Asia, and global visitors alike should leave satisfied.

Refer users to relevant pages on the ASAP Tracker website when applicable:
- Flight Schedule: /flight-schedule
- Live Flight Tracker: /live-flight-tracker
- Airports & Airlines: /airports-airlines
- Flight Alerts: /flight-alerts
- Global Weather: /global-weather
- World Clock: /world-clock
- Contact: /contact"""

# Keyword -> reply, checked in this order with a plain substring test
CANNED_RESPONSES: Dict[str, str] = {
    "flight": "I can help you track flights, check schedules, and provide information about airports and airlines.",
    "weather": "Our global weather feature provides real-time weather data for airports around the world. You can check it at /global-weather.",
    "schedule": "You can view flight schedules, departures, and arrivals on our Flight Schedule page at /flight-schedule.",
    "track": "Our Live Flight Tracker allows you to monitor flights in real-time. Visit /live-flight-tracker to use this feature.",
    "airport": "You can find comprehensive information about airports worldwide in our Airports & Airlines database at /airports-airlines.",
    "alert": "Set up flight alerts to stay updated on any changes to your flight status by visiting /flight-alerts.",
    "contact": "For customer support, please visit our Contact page at /contact or email info@asaptracker.com.",
    "hello": "Hello! I'm your ASAP Agent. How can I help you with flight tracking, schedules, or other aviation information today?",
    "hi": "Hi there! I'm your ASAP Agent. How can I assist you with your aviation needs today?",
}

FALLBACK_RESPONSE = "I'm here to help with flight tracking, schedules, and other aviation information. What specifically would you like to know?"

PROCESSING_ERROR_RESPONSE = "I'm sorry, I couldn't process your request. How else can I help you with flight information?"


def match_canned(question: str, canned: Dict[str, str] = CANNED_RESPONSES) -> Optional[str]:
    """Return the reply for the first keyword contained in ``question``."""
    lowered = question.lower()
    for keyword, reply in canned.items():
        if keyword in lowered:
            return reply
    return None
