"""Keyword-matched answers for the in-app donation help assistant."""
from typing import Optional

ASSISTANT_NAME = "Merry"

_ELIGIBILITY = (
    "Blood donation eligibility depends on several factors including age, weight, health status, "
    "and medical history. Generally, you should:\n\n"
    "• Be at least 17 years old\n• Weigh at least 110 pounds\n• Be in good health\n"
    "• Have adequate iron levels\n• Not have donated whole blood in the last 56 days\n\n"
    "Some medications and medical conditions may affect eligibility. It's best to check with "
    "your local donation center for specific requirements."
)

# First matching rule wins
_RULES = (
    (("blood type", "compatible"),
     "Here's information about blood type compatibility:\n\n"
     "• Type O- can donate to all blood types\n• Type O+ can donate to O+, A+, B+, AB+\n"
     "• Type A- can donate to A-, A+, AB-, AB+\n• Type A+ can donate to A+, AB+\n"
     "• Type B- can donate to B-, B+, AB-, AB+\n• Type B+ can donate to B+, AB+\n"
     "• Type AB- can donate to AB-, AB+\n• Type AB+ can donate to AB+ only"),
    (("eligib", "can i donate"), _ELIGIBILITY),
    (("donate", "donation"),
     "To donate blood, you generally need to:\n\n1. Be at least 17 years old\n"
     "2. Weigh at least 110 pounds\n3. Be in good health\n4. Wait 56 days between whole blood donations\n\n"
     "You can record your donation from the dashboard!"),
    (("emergency", "urgent"),
     "For emergency blood requests, create an emergency request. Matching donors and "
     "administrators are alerted right away. Include accurate location information and contact details."),
    (("thank",),
     "You're welcome! I'm happy to help. Is there anything else you'd like to know about blood donation?"),
    (("benefit", "why donate"),
     "Donating blood has several benefits:\n\n• Saves lives - one donation can save up to 3 lives\n"
     "• Free health screening\n• Reduces risk of heart disease\n• Burns calories\n\n"
     "Most importantly, you're helping someone in need!"),
    (("who are you", "your name"),
     f"I'm {ASSISTANT_NAME}, your friendly blood donation assistant! I answer questions about blood "
     "donation, blood types and eligibility, and help you find your way around HeartBeat."),
)

_DEFAULT = (
    "I'm not sure I understand. Would you like information about blood donation, "
    "eligibility requirements, or how to use the HeartBeat platform?"
)


def reply_to(message: str, first_name: Optional[str] = None) -> str:
    text = message.lower()
    words = set(text.replace("!", " ").replace("?", " ").replace(",", " ").split())
    if "hello" in words or "hi" in words:
        return f"Hello{f' {first_name}' if first_name else ''}! How can I help you with blood donation today?"
    for keywords, answer in _RULES:
        if any(keyword in text for keyword in keywords):
            return answer
    return _DEFAULT
