"""Time Bank package.

Working-time ledger with provider sync, balance reports, adjustments and
period closing. Organized by feature modules (entries, balance, closures,
integrations, ...) with a thin Flask controller layer over service/repository
layers.
"""
