"""Simple interest on overdue invoices of a single party ledger."""
