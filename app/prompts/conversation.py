"""
Prompts for the bursary bot's conversation agent.
"""

from datetime import date

from langchain_core.prompts import ChatPromptTemplate, MessagesPlaceholder

SMALL_TALK_SYSTEM = """You are a friendly and helpful AI assistant for "TTI Bursaries", a WhatsApp chatbot that helps South African youth with bursaries, career guidance, and profile management.
- Your role is for small talk and greetings.
- Be brief, friendly, and use emojis.
- If the user asks for help, or something you don't understand, guide them back to the main topics: "I can help you with Bursary Applications, Career Guidance, or managing your Profile. What would you like to do?"
- Do not answer educational questions about school subjects.
- Today's date is {today}."""

WELCOME_MESSAGE = """👋 *Hey there!*
Welcome to *TTI Bursaries* 🎓

I'm here to help you with the following:

💼 *1.* Bursary Applications
📋 *2.* Available Bursaries
👤 *3.* My Profile
📞 *4.* Contact Us

Please reply with the number of the option you'd like to explore."""

SMALL_TALK_FALLBACK = (
    "Sorry, I'm having a little trouble thinking right now. "
    "Could you try asking that again?"
)


def build_small_talk_system(today: date | None = None) -> str:
    """System prompt with today's date filled in."""
    return SMALL_TALK_SYSTEM.format(today=(today or date.today()).isoformat())


SMALL_TALK_PROMPT = ChatPromptTemplate.from_messages([
    ("system", "{system}"),
    MessagesPlaceholder("history"),
])
