"""
Roster Service - sign-ups and team draws for recurring volleyball sessions

Responsibilities:
- Admission ledger (confirm, list, remove, clear) per group
- Capacity/waitlist split by arrival order
- Gender-balanced random team draw
- Group (tenant) registry with subscription status gating
- Bearer-token sessions for group admins
- Sharing draws over WhatsApp
"""
