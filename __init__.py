"""FinanceOS personal finance tracker.

Portfolios of transactions and installment debts with precomputed payoff
plans, plus upcoming-payment reminders.  See ``ledger.py`` and
``reminders.py`` for the engine, ``app.py`` for the Streamlit UI and
``mcp_server.py`` for the tool server.
"""
