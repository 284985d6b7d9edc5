import os

CONTACTS_API_URL = os.getenv("CONTACTS_API_URL", "https://playground.4geeks.com/contact")
AGENDA_SLUG = os.getenv("AGENDA_SLUG", "mi-agenda-unica")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
