"""
Pointsman signals: public event API.

Emitted signals (sent by LoyaltyService after the operation's atomic block):
- account_created: a loyalty account was opened
- points_changed: a transaction was appended to an account's ledger
- tier_upgraded: an account moved up to a higher tier
"""

from django.dispatch import Signal

account_created = Signal()  # sender=LoyaltyAccount, account
points_changed = Signal()  # sender=LoyaltyTransaction, transaction, account
tier_upgraded = Signal()  # sender=LoyaltyAccount, account, previous_tier
