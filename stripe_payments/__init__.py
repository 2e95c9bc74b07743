"""
stripe_payments

Django app: Stripe payment forms (one-time charges, subscriptions, iDEAL/SEPA)
with local order bookkeeping and notification emails.
"""
