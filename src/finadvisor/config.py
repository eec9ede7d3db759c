"""Assistant configuration constants.

Centralizes fixed texts, caps and timings shared by the assistant modules.
"""

# Period selector meaning "no month filter"
ALL_PERIODS = "all"

# Notifications show at most this many created items
NOTIFICATION_ITEM_CAP = 5

# Seconds to wait before navigating so the user sees the chat response first
NAVIGATION_DELAY_SECONDS = 0.6

# View the UI navigates to after expenses are created
EXPENSES_VIEW = "/expenses"

DEFAULT_CURRENCY = "USD"

# Assistant texts
FALLBACK_REPLY = "I processed your request."
APOLOGY_REPLY = "Sorry, I encountered an error. Please try again."
GREETING_TEMPLATE = (
    "Hello {name}! I'm your AI financial assistant. I can track expenses, "
    "manage budgets and analyze your spending. Try saying something like "
    "\"I spent $10 on lunch today\" or \"How am I doing with my budgets?\"."
)
GREETING_FALLBACK_NAME = "there"

# Persisted record keys, suffixed with the user id
MESSAGES_KEY_PREFIX = "chat_messages_"
CONTEXT_KEY_PREFIX = "chat_context_"

# Gemini defaults
DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"
MAX_FUNCTION_ROUNDS = 3
EMPTY_RESPONSE_RETRIES = 3
