"""
Background email delivery.

distributor -> Redis -> processor -> SMTP; the outbox dispatcher feeds the
distributor from rows written inside database transactions.
"""
