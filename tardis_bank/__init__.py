"""
Tardis Bank

A hypermedia banking ledger: logins own accounts, accounts carry
transactions with a running balance, and recurring schedules append
transactions on a day, week, month or year cadence.
"""

__version__ = "1.0.0"
